"""User service - user documents in the ``users`` collection"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.database import DatabaseConnection
from core.exceptions import NotFoundError
from core.logger import get_logger
from models.dtos import PageDTO, Role, UpdateProfileRequestDTO, UserDTO
from models.interfaces import IUserService

logger = get_logger("services.users")

USERS_COLLECTION = "users"


class UserService(IUserService):
    def __init__(self, connection: DatabaseConnection):
        self.collection = connection.collection(
            USERS_COLLECTION,
            unique_fields=("email",),
            indexes=[("email", {"unique": True})],
        )

    async def create(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: Role = Role.USER,
        actor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        document = {
            "email": email,
            "password_hash": password_hash,
            "name": name,
            "role": Role(role).value,
            "bio": None,
            "created_at": datetime.now(timezone.utc),
            "updated_at": None,
        }
        created = await self.collection.insert_one(document, actor_id=actor_id)
        logger.info(f"👤 User created: {created['_id']} ({created['role']})")
        return created

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"email": email.lower()})

    async def find_by_id(self, user_id: Any) -> Optional[Dict[str, Any]]:
        return await self.collection.find_by_id(user_id)

    async def get_by_id(self, user_id: Any) -> UserDTO:
        document = await self.find_by_id(user_id)
        if document is None:
            raise NotFoundError(f"User {user_id} not found")
        return UserDTO.from_document(document)

    async def update_profile(
        self,
        user_id: str,
        request: UpdateProfileRequestDTO,
        actor_id: Optional[str] = None,
    ) -> UserDTO:
        changes = request.changes()
        if not changes:
            return await self.get_by_id(user_id)

        changes["updated_at"] = datetime.now(timezone.utc)
        existing = await self.find_by_id(user_id)
        if existing is None:
            raise NotFoundError(f"User {user_id} not found")

        updated = await self.collection.update_one(
            {"_id": existing["_id"]}, changes, actor_id=actor_id
        )
        if updated is None:
            raise NotFoundError(f"User {user_id} not found")
        return UserDTO.from_document(updated)

    async def list_users(self, page: int = 1, limit: int = 10) -> PageDTO:
        result = await self.collection.paginate(
            {}, page=page, limit=limit, sort=[("created_at", -1)]
        )
        return PageDTO.from_page(
            result, [UserDTO.from_document(doc) for doc in result["docs"]]
        )
