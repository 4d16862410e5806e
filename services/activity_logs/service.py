"""
Activity log service

ActivityLogService.apply is registered as a connection plugin: every
collection created on the connection records its writes into
``activity_logs``. The log collection itself is never audited.
"""

from typing import Any, Dict, Optional

from core.database import DatabaseConnection, ModelCollection, WriteEvent
from core.database.collection import WRITE_OPERATIONS
from core.global_error_handler import ErrorSeverity, handle_exception
from core.logger import get_logger
from models.dtos import ActivityLogDTO, PageDTO
from models.interfaces import IActivityLogService

logger = get_logger("services.activity_logs")

ACTIVITY_LOG_COLLECTION = "activity_logs"
REDACTED = "[REDACTED]"


def redact(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: REDACTED if "password" in key.lower() else value
        for key, value in changes.items()
    }


class ActivityLogService(IActivityLogService):
    def __init__(self, connection: DatabaseConnection):
        self.collection = connection.collection(
            ACTIVITY_LOG_COLLECTION,
            indexes=[
                ([("created_at", -1)], {}),
                ([("collection", 1), ("created_at", -1)], {}),
            ],
        )

    @staticmethod
    def apply(collection: ModelCollection) -> None:
        """Connection plugin: audit every write on ``collection``"""
        if collection.name == ACTIVITY_LOG_COLLECTION:
            return
        for operation in WRITE_OPERATIONS:
            collection.post(operation, ActivityLogService.record)

    @staticmethod
    async def record(event: WriteEvent) -> None:
        log_collection = event.collection.connection.collection(ACTIVITY_LOG_COLLECTION)
        entry = {
            "collection": event.collection.name,
            "action": event.operation,
            "document_id": event.document_id,
            "actor_id": event.actor_id,
            "changes": redact(event.changes),
            "created_at": event.occurred_at,
        }
        # raw insert: the log collection has no hooks worth running
        try:
            await log_collection.raw.insert_one(entry)
        except Exception as log_error:
            # the audited write is already committed; a lost entry is reported, not raised
            handle_exception(
                log_error,
                f"activity log for {event.operation} on {event.collection.name}",
                ErrorSeverity.MEDIUM,
            )
            return
        logger.debug(
            f"📝 {event.operation} on {event.collection.name} ({event.document_id}) by {event.actor_id}"
        )

    async def list_logs(
        self, page: int = 1, limit: int = 20, collection: Optional[str] = None
    ) -> PageDTO:
        query = {"collection": collection} if collection else {}
        result = await self.collection.paginate(
            query, page=page, limit=limit, sort=[("created_at", -1)]
        )
        return PageDTO.from_page(
            result, [ActivityLogDTO.from_document(doc) for doc in result["docs"]]
        )
