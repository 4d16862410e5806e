"""GraphQL error formatter - the single place errors are shaped for clients"""

from typing import Any, Dict

from graphql import GraphQLError, GraphQLSyntaxError

from ..exceptions import INTERNAL_SERVER_ERROR, ApiError, ErrorKind, error_record

GRAPHQL_PARSE_FAILED = "GRAPHQL_PARSE_FAILED"
GRAPHQL_VALIDATION_FAILED = "GRAPHQL_VALIDATION_FAILED"


def _document_error_code(error: GraphQLError) -> str:
    """Code for errors raised before execution: no cause and no result path"""
    if isinstance(error, GraphQLSyntaxError):
        return GRAPHQL_PARSE_FAILED
    return GRAPHQL_VALIDATION_FAILED


def format_error(error: GraphQLError) -> Dict[str, Any]:
    """
    Formatted record for one GraphQL error

    - path: where in the result the error happened (None for parse/validation)
    - error: the outer message
    - message: the typed cause's message when there is one, else the outer one
    - status: extensions.code, else the typed cause's code, else
      GRAPHQL_PARSE_FAILED / GRAPHQL_VALIDATION_FAILED for document errors,
      else INTERNAL_SERVER_ERROR
    - statusCode: the typed cause's status code, 400 for document errors, else None
    """
    extensions = error.extensions or {}
    cause = error.original_error

    message = error.message
    status = extensions.get("code")
    status_code = None

    if isinstance(cause, ApiError):
        message = cause.message or error.message
        status_code = cause.status_code
        status = status or cause.code
    elif cause is None and error.path is None:
        status = status or _document_error_code(error)
        status_code = ErrorKind.VALIDATION.status_code

    return error_record(
        error.path,
        error.message,
        message,
        status or INTERNAL_SERVER_ERROR,
        status_code,
    )
