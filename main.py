"""
Gateway composition root
- AppModule wires configuration, the MongoDB connection, feature modules,
  the GraphQL schema and the guard pipeline into one FastAPI application
- the process-wide ApplicationContext is built here and handed to every
  request through app.state
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI

from core.config import Settings, get_settings
from core.context import ApplicationContext
from core.database import (
    UNIQUE_MESSAGE,
    DatabaseConnection,
    attach_lifecycle_logging,
    pagination_plugin,
    unique_validator_plugin,
)
from core.exceptions import ApiError, handle_fastapi_exception
from core.global_error_handler import (
    ErrorSeverity,
    handle_exception,
    setup_global_exception_handlers,
)
from core.graphql import GatewayGraphQLRouter, build_schema
from core.guards import AuthGuard, GuardPipeline, RolesGuard, ThrottleGuard
from core.logger import get_logger, logger_manager
from core.metrics import get_metrics_collector
from core.throttler import SlidingWindowThrottler
from services.activity_logs import ActivityLogModule, ActivityLogService
from services.app import AppFeature, router as app_router
from services.auth import AuthModule
from services.users import UserModule

logger = get_logger("main")


class AppModule:
    """
    Root module of the gateway

    Startup order:
    1. connection created; on_connection_create registers the global plugins
    2. feature modules register their services (collections get the plugins)
    3. schema built from the registered resolver classes
    4. lifespan connects on startup and closes on shutdown
    """

    # order matters: auth depends on the users service
    imports = (ActivityLogModule, UserModule, AuthModule, AppFeature)

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self.settings = settings or get_settings()

        self.connection = DatabaseConnection(
            self.settings.mongodb_uri,
            client_factory=client_factory,
            on_connection_create=self.on_connection_create,
            server_selection_timeout_ms=self.settings.mongodb_server_selection_timeout_ms,
        )
        self.app_context = ApplicationContext(
            settings=self.settings,
            connection=self.connection,
            throttler=SlidingWindowThrottler(
                ttl_ms=self.settings.throttle_ttl_ms,
                limit=self.settings.throttle_limit,
            ),
            metrics=get_metrics_collector(),
        )

        for module in self.imports:
            module.register(self.app_context)

        with logger_manager.performance_logger("schema_build"):
            self.schema, access_policies = build_schema(
                [query for module in self.imports for query in module.queries],
                [mutation for module in self.imports for mutation in module.mutations],
            )
        self.app_context.access_policies = access_policies
        self.app_context.guard_pipeline = GuardPipeline(
            [
                ThrottleGuard(trust_proxy=self.settings.trust_proxy),
                AuthGuard(self.app_context.service("auth").authenticate_token),
                RolesGuard(),
            ]
        )

        self.web_application = FastAPI(
            title="GraphQL Gateway",
            description="GraphQL API over MongoDB",
            version="1.0.0",
            lifespan=self.lifespan,
        )
        self.web_application.state.app_context = self.app_context
        self._setup_web_routes()
        self._setup_exception_handlers()

        logger.info(
            f"🏗️ AppModule ready: {len(self.imports)} modules, "
            f"{len(access_policies)} root fields"
        )

    @staticmethod
    def on_connection_create(connection: DatabaseConnection) -> None:
        """Global connection setup, run once before any collection exists"""
        attach_lifecycle_logging(connection)
        connection.plugin(pagination_plugin)
        connection.plugin(unique_validator_plugin, message=UNIQUE_MESSAGE)
        connection.plugin(ActivityLogService.apply)

    def _setup_web_routes(self) -> None:
        self.web_application.include_router(app_router)
        self.web_application.include_router(
            GatewayGraphQLRouter(self.schema), prefix=self.settings.graphql_path
        )

    def _setup_exception_handlers(self) -> None:
        self.web_application.add_exception_handler(ApiError, handle_fastapi_exception)
        self.web_application.add_exception_handler(Exception, handle_fastapi_exception)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.initialize_system()
        try:
            yield
        finally:
            await self.shutdown_system()

    async def initialize_system(self) -> None:
        setup_global_exception_handlers(asyncio.get_running_loop())
        logger.info("🔄 Connecting to MongoDB...")
        await self.connection.connect()
        logger.info("✅ Gateway started")

    async def shutdown_system(self) -> None:
        logger.info("🛑 Gateway shutting down...")
        try:
            await self.connection.close()
        except Exception as close_error:
            handle_exception(close_error, "MongoDB shutdown", ErrorSeverity.HIGH)
        logger.info("✅ Gateway stopped")


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[Callable[..., Any]] = None,
) -> FastAPI:
    """Build the FastAPI application; connection opens in the lifespan"""
    return AppModule(settings, client_factory).web_application
