"""
GraphQL layer
- access: per-field public/roles declarations
- schema: ahead-of-time schema composition
- extension: guards + sanitizer around root fields
- errors: client-facing error formatting
- router: FastAPI endpoint
"""

from .access import AUTHENTICATED, AccessPolicy, public, roles
from .errors import GRAPHQL_PARSE_FAILED, GRAPHQL_VALIDATION_FAILED, format_error
from .router import GatewayGraphQLRouter, get_graphql_context
from .schema import build_schema, schema_sdl

__all__ = [
    "AUTHENTICATED",
    "AccessPolicy",
    "GRAPHQL_PARSE_FAILED",
    "GRAPHQL_VALIDATION_FAILED",
    "GatewayGraphQLRouter",
    "build_schema",
    "format_error",
    "get_graphql_context",
    "public",
    "roles",
    "schema_sdl",
]
