"""
Service interface definition module
- Defines contracts for each feature service
- Abstract interfaces the resolvers depend on
- Abstraction layer for testing and extensibility
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .dtos import (
    LoginRequestDTO,
    PageDTO,
    RegisterRequestDTO,
    Role,
    UpdateProfileRequestDTO,
    UserDTO,
)


# ===== User Service Interface =====


class IUserService(ABC):
    """
    Service interface for user documents

    Responsibilities:
    - User creation (password already hashed)
    - Lookup by id / e-mail
    - Profile updates
    - Paginated listing for administrators
    """

    @abstractmethod
    async def create(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: Role = Role.USER,
        actor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Insert a new user document.

        Args:
            email: normalized login e-mail
            password_hash: bcrypt hash, never the plain password
            name: display name
            role: initial role
            actor_id: who performed the write (audit log)

        Returns:
            The stored document including its _id

        Raises:
            UniqueViolationError: e-mail already registered
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def find_by_id(self, user_id: Any) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: Any) -> UserDTO:
        """
        Raises:
            NotFoundError: no user with that id
        """
        pass

    @abstractmethod
    async def update_profile(
        self,
        user_id: str,
        request: UpdateProfileRequestDTO,
        actor_id: Optional[str] = None,
    ) -> UserDTO:
        pass

    @abstractmethod
    async def list_users(self, page: int = 1, limit: int = 10) -> PageDTO:
        pass


# ===== Auth Service Interface =====


class IAuthService(ABC):
    """
    Service interface for authentication

    Responsibilities:
    - Account registration
    - Credential checks
    - Access token issue and verification
    """

    @abstractmethod
    def issue_token(self, user: UserDTO) -> str:
        pass

    @abstractmethod
    async def authenticate_token(self, token: str) -> Dict[str, Any]:
        """
        Resolve an access token to the stored user document.

        Raises:
            UnauthenticatedError: invalid, expired or orphaned token
        """
        pass

    @abstractmethod
    async def register(self, request: RegisterRequestDTO) -> Dict[str, Any]:
        """
        Returns:
            {"access_token": str, "user": UserDTO}
        """
        pass

    @abstractmethod
    async def login(self, request: LoginRequestDTO) -> Dict[str, Any]:
        """
        Returns:
            {"access_token": str, "user": UserDTO}

        Raises:
            UnauthenticatedError: unknown e-mail or wrong password
        """
        pass


# ===== Activity Log Service Interface =====


class IActivityLogService(ABC):
    """Read side of the audit trail (the write side is a connection plugin)"""

    @abstractmethod
    async def list_logs(
        self, page: int = 1, limit: int = 20, collection: Optional[str] = None
    ) -> PageDTO:
        pass
