"""
Contexts passed explicitly through the request path

- ApplicationContext: one per process; owns the connection and shared services
- GraphQLContext: one per HTTP request; request/response plus the caller
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from fastapi import Request, Response
from strawberry.fastapi import BaseContext

from .config import Settings
from .database import DatabaseConnection
from .metrics import MetricsCollector
from .throttler import SlidingWindowThrottler


@dataclass
class ApplicationContext:
    settings: Settings
    connection: DatabaseConnection
    throttler: SlidingWindowThrottler
    metrics: MetricsCollector
    services: Dict[str, Any] = field(default_factory=dict)
    # Filled in by the composition root once the schema is built
    guard_pipeline: Any = None
    access_policies: Dict[Tuple[str, str], Any] = field(default_factory=dict)

    def service(self, name: str) -> Any:
        return self.services[name]


class GraphQLContext(BaseContext):
    """Per-request execution context handed to guards and resolvers"""

    def __init__(
        self,
        app_context: ApplicationContext,
        request: Optional[Request] = None,
        response: Optional[Response] = None,
    ):
        super().__init__()
        self.app_context = app_context
        self.request = request
        self.response = response
        self.user: Optional[Dict[str, Any]] = None

    @property
    def user_id(self) -> Optional[str]:
        if self.user is None:
            return None
        return str(self.user["_id"])

    def service(self, name: str) -> Any:
        return self.app_context.service(name)
