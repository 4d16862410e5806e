"""GraphQL surface of the activity log"""

from datetime import datetime
from typing import List, Optional

import strawberry
from strawberry.scalars import JSON
from strawberry.types import Info

from core.graphql import roles
from models.dtos import ActivityLogDTO, Role


@strawberry.type(name="ActivityLog")
class ActivityLogType:
    id: strawberry.ID
    collection: str
    action: str
    document_id: Optional[str]
    actor_id: Optional[str]
    changes: JSON
    created_at: datetime

    @classmethod
    def from_dto(cls, dto: ActivityLogDTO) -> "ActivityLogType":
        return cls(
            id=strawberry.ID(dto.id),
            collection=dto.collection,
            action=dto.action,
            document_id=dto.document_id,
            actor_id=dto.actor_id,
            changes=dto.changes,
            created_at=dto.created_at,
        )


@strawberry.type
class ActivityLogPage:
    items: List[ActivityLogType]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool


@strawberry.type
class ActivityLogQuery:
    @strawberry.field(description="Recorded writes, newest first", metadata=roles(Role.ADMIN))
    async def activity_logs(
        self,
        info: Info,
        page: int = 1,
        limit: int = 20,
        collection: Optional[str] = None,
    ) -> ActivityLogPage:
        result = await info.context.service("activity_logs").list_logs(page, limit, collection)
        return ActivityLogPage(
            items=[ActivityLogType.from_dto(item) for item in result.items],
            total_docs=result.total_docs,
            limit=result.limit,
            page=result.page,
            total_pages=result.total_pages,
            has_prev_page=result.has_prev_page,
            has_next_page=result.has_next_page,
        )
