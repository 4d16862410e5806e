"""Activity log feature: audit trail of every collection write"""

from core.module import FeatureModule

from .resolver import ActivityLogQuery
from .service import ACTIVITY_LOG_COLLECTION, ActivityLogService

ActivityLogModule = FeatureModule(
    name="activity_logs",
    providers=lambda app_context: {
        "activity_logs": ActivityLogService(app_context.connection)
    },
    queries=(ActivityLogQuery,),
)

__all__ = [
    "ACTIVITY_LOG_COLLECTION",
    "ActivityLogModule",
    "ActivityLogQuery",
    "ActivityLogService",
]
