"""Root HTTP routes: greeting, health and Prometheus metrics"""

import time
from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST

from core.context import ApplicationContext
from core.global_error_handler import global_error_handler
from core.logger import get_logger

logger = get_logger("services.app")

GREETING = "Hello World!"


class AppService:
    def __init__(self, app_context: ApplicationContext):
        self.app_context = app_context
        self.start_time = time.monotonic()

    def greeting(self) -> str:
        return GREETING

    def health(self) -> Dict[str, Any]:
        connection = self.app_context.connection
        if not connection.is_connected:
            logger.warning(f"⚠️ Health check while MongoDB is {connection.state.value}")
        return {
            "status": "ok" if connection.is_connected else "degraded",
            "uptime_seconds": round(time.monotonic() - self.start_time, 3),
            "mongodb": {
                "state": connection.state.value,
                "database": connection.database_name,
            },
            "unhandled_errors": global_error_handler.get_error_summary()["total_unique_errors"],
        }


def _app_service(request: Request) -> AppService:
    return request.app.state.app_context.service("app")


router = APIRouter()


@router.get("/")
async def get_greeting(request: Request) -> str:
    return _app_service(request).greeting()


@router.get("/health")
async def health_check(request: Request):
    """Service status endpoint"""
    return _app_service(request).health()


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    collector = request.app.state.app_context.metrics
    return Response(content=collector.export(), media_type=CONTENT_TYPE_LATEST)
