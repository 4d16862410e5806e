"""
Data Transfer Objects (DTOs)
- Standardized objects for data transfer between resolvers and services
- Input validation before anything reaches MongoDB
- Conversion from MongoDB documents
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.exceptions import ValidationFailedError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Role(str, Enum):
    """User roles checked by the authorization guard"""

    USER = "USER"
    ADMIN = "ADMIN"


class WriteAction(str, Enum):
    """Actions recorded in the activity log"""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


# ===== Base DTO Classes =====


class BaseDTO(BaseModel):
    """Base class for all DTOs"""

    model_config = {
        "validate_by_name": True,
        # Convert Enum to values during serialization
        "use_enum_values": True,
    }

    @classmethod
    def parse_input(cls, **values: Any):
        """Validate client input, turning pydantic errors into a client error"""
        try:
            return cls(**values)
        except ValidationError as validation_error:
            messages = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in validation_error.errors()
            ]
            raise ValidationFailedError(
                "; ".join(messages), details={"errors": messages}
            ) from validation_error


# ===== Auth / User DTOs =====


class RegisterRequestDTO(BaseDTO):
    email: str = Field(..., max_length=254, description="Login e-mail")
    password: str = Field(..., min_length=8, max_length=72, description="Plain password")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("must be a valid e-mail address")
        return value.lower()


class LoginRequestDTO(BaseDTO):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UpdateProfileRequestDTO(BaseDTO):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class UserDTO(BaseDTO):
    id: str = Field(..., description="User document id")
    email: str
    name: str
    role: Role = Role.USER
    bio: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "UserDTO":
        return cls(
            id=str(document["_id"]),
            email=document["email"],
            name=document["name"],
            role=document.get("role", Role.USER.value),
            bio=document.get("bio"),
            created_at=document["created_at"],
            updated_at=document.get("updated_at"),
        )


# ===== Activity Log DTOs =====


class ActivityLogDTO(BaseDTO):
    id: str
    collection: str
    action: WriteAction
    document_id: Optional[str] = None
    actor_id: Optional[str] = None
    changes: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ActivityLogDTO":
        return cls(
            id=str(document["_id"]),
            collection=document["collection"],
            action=document["action"],
            document_id=document.get("document_id"),
            actor_id=document.get("actor_id"),
            changes=document.get("changes") or {},
            created_at=document["created_at"],
        )


# ===== Pagination =====

ItemT = TypeVar("ItemT")


class PageDTO(BaseDTO, Generic[ItemT]):
    """One page of results as returned by collection.paginate()"""

    items: List[ItemT] = Field(default_factory=list)
    total_docs: int = 0
    limit: int = 10
    page: int = 1
    total_pages: int = 1
    has_prev_page: bool = False
    has_next_page: bool = False

    @classmethod
    def from_page(cls, page: Dict[str, Any], items: List[Any]) -> "PageDTO":
        return cls(
            items=items,
            total_docs=page["totalDocs"],
            limit=page["limit"],
            page=page["page"],
            total_pages=page["totalPages"],
            has_prev_page=page["hasPrevPage"],
            has_next_page=page["hasNextPage"],
        )
