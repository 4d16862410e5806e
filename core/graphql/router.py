"""
FastAPI router serving the GraphQL endpoint
- browsers get the static landing page instead of GraphiQL
- every error in a result goes through format_error
"""

from typing import Any, Dict

import strawberry
from fastapi import Request, Response
from fastapi.responses import HTMLResponse
from strawberry.fastapi import GraphQLRouter
from strawberry.types import ExecutionResult

from ..context import GraphQLContext
from .errors import format_error
from .landing import LANDING_PAGE_HTML


async def get_graphql_context(request: Request, response: Response) -> GraphQLContext:
    """Per-request context: raw request/response plus the process-wide context"""
    return GraphQLContext(request.app.state.app_context, request, response)


class GatewayGraphQLRouter(GraphQLRouter):
    def __init__(self, schema: strawberry.Schema, **kwargs: Any):
        kwargs.setdefault("context_getter", get_graphql_context)
        # the IDE slot is kept so browser GETs reach render_graphql_ide below
        kwargs.setdefault("graphql_ide", "graphiql")
        super().__init__(schema, **kwargs)

    async def render_graphql_ide(self, request: Request) -> HTMLResponse:
        return HTMLResponse(LANDING_PAGE_HTML)

    async def process_result(self, request: Request, result: ExecutionResult) -> Dict[str, Any]:
        data: Dict[str, Any] = {"data": result.data}
        if result.errors:
            data["errors"] = [format_error(error) for error in result.errors]
        if result.extensions:
            data["extensions"] = result.extensions
        return data
