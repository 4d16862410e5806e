"""Exception hierarchy - every failure that can reach a client is a tagged ApiError"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ErrorKind(Enum):
    """Error kinds as seen by clients: (status code string, HTTP status)"""

    VALIDATION = ("BAD_USER_INPUT", 400)
    UNAUTHENTICATED = ("UNAUTHENTICATED", 401)
    FORBIDDEN = ("FORBIDDEN", 403)
    NOT_FOUND = ("NOT_FOUND", 404)
    CONFLICT = ("CONFLICT", 409)
    THROTTLED = ("THROTTLED", 429)
    INTERNAL = (INTERNAL_SERVER_ERROR, 500)

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def status_code(self) -> int:
        return self.value[1]


class ApiError(Exception):
    """
    Base application exception
    - kind decides the client-visible status and HTTP status code
    - message is what the client sees; details stay in the logs
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        kind: Optional[ErrorKind] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        """
        Args:
            message: client-visible message
            kind: error kind, defaults to the class-level kind
            status_code: overrides the kind's HTTP status
            details: extra debugging information (never sent to clients)
            original_exception: chained cause
        """
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.status_code = status_code or self.kind.status_code
        self.details = details or {}
        self.original_exception = original_exception
        self.occurrence_time = datetime.now()

    @property
    def code(self) -> str:
        return self.kind.code

    def to_dict(self) -> Dict[str, Any]:
        """Exception as a dictionary (for logging)"""
        return {
            "kind": self.kind.name,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "occurrence_time": self.occurrence_time.isoformat(),
            "original_exception": (
                str(self.original_exception) if self.original_exception else None
            ),
        }


class ValidationFailedError(ApiError):
    kind = ErrorKind.VALIDATION


class UniqueViolationError(ValidationFailedError):
    """A field declared unique already holds the submitted value"""

    def __init__(self, path: str, message: str, **kwargs):
        super().__init__(message, details={"path": path}, **kwargs)
        self.path = path


class UnauthenticatedError(ApiError):
    kind = ErrorKind.UNAUTHENTICATED


class ForbiddenError(ApiError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(ApiError):
    kind = ErrorKind.CONFLICT


class ThrottledError(ApiError):
    kind = ErrorKind.THROTTLED


class ConfigurationException(ApiError):
    """Environment variables / configuration errors, fatal at startup"""


class DatabaseConnectionException(ApiError):
    """MongoDB connection errors"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, status_code=503, **kwargs)


class DatabaseOperationException(ApiError):
    """MongoDB operation errors"""


def error_record(
    path: Any,
    error: str,
    message: str,
    status: str,
    status_code: Optional[int],
) -> Dict[str, Any]:
    """The one shape every error takes on its way to a client"""
    return {
        "path": path,
        "error": error,
        "message": message,
        "status": status,
        "statusCode": status_code,
    }


async def handle_fastapi_exception(request: Request, exception: Exception) -> JSONResponse:
    """Exception handler for the plain HTTP routes (GraphQL has its own formatter)"""
    from .logger import get_logger

    logger = get_logger("exceptions")

    if isinstance(exception, ApiError):
        record = error_record(
            request.url.path,
            str(exception),
            exception.message,
            exception.code,
            exception.status_code,
        )
        http_status = exception.status_code
    else:
        logger.error(
            f"🌐 Unhandled web exception\n"
            f"   path: {request.url.path}\n"
            f"   method: {request.method}\n"
            f"   error: {type(exception).__name__}: {exception}"
        )
        record = error_record(
            request.url.path,
            "Internal server error",
            "Internal server error",
            INTERNAL_SERVER_ERROR,
            500,
        )
        http_status = 500

    return JSONResponse(status_code=http_status, content=record)
