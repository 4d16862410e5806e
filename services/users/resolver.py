"""GraphQL surface of the user module"""

from datetime import datetime
from typing import List, Optional

import strawberry
from strawberry.types import Info

from core.graphql import roles
from models.dtos import Role, UpdateProfileRequestDTO, UserDTO

strawberry.enum(Role, name="Role")


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    email: str
    name: str
    role: Role
    bio: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_dto(cls, dto: UserDTO) -> "UserType":
        return cls(
            id=strawberry.ID(dto.id),
            email=dto.email,
            name=dto.name,
            role=Role(dto.role),
            bio=dto.bio,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
        )


@strawberry.type
class UserPage:
    items: List[UserType]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool


@strawberry.input
class UpdateProfileInput:
    name: Optional[str] = None
    bio: Optional[str] = None


@strawberry.type
class UserQuery:
    @strawberry.field(description="The authenticated caller")
    async def me(self, info: Info) -> UserType:
        user_dto = await info.context.service("users").get_by_id(info.context.user_id)
        return UserType.from_dto(user_dto)

    @strawberry.field(metadata=roles(Role.ADMIN))
    async def user(self, info: Info, id: strawberry.ID) -> Optional[UserType]:
        document = await info.context.service("users").find_by_id(id)
        if document is None:
            return None
        return UserType.from_dto(UserDTO.from_document(document))

    @strawberry.field(metadata=roles(Role.ADMIN))
    async def users(self, info: Info, page: int = 1, limit: int = 10) -> UserPage:
        result = await info.context.service("users").list_users(page, limit)
        return UserPage(
            items=[UserType.from_dto(item) for item in result.items],
            total_docs=result.total_docs,
            limit=result.limit,
            page=result.page,
            total_pages=result.total_pages,
            has_prev_page=result.has_prev_page,
            has_next_page=result.has_next_page,
        )


@strawberry.type
class UserMutation:
    @strawberry.mutation(description="Update the caller's own profile")
    async def update_profile(self, info: Info, input: UpdateProfileInput) -> UserType:
        request = UpdateProfileRequestDTO.parse_input(name=input.name, bio=input.bio)
        user_dto = await info.context.service("users").update_profile(
            info.context.user_id, request, actor_id=info.context.user_id
        )
        return UserType.from_dto(user_dto)
