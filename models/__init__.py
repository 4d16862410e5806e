# Models modules
"""
Models package
- dtos.py: Data Transfer Objects for validated input and service results
- interfaces.py: Service interface definitions
"""

from .dtos import (
    # Base
    BaseDTO,
    Role,
    WriteAction,
    # Auth / User DTOs
    RegisterRequestDTO,
    LoginRequestDTO,
    UpdateProfileRequestDTO,
    UserDTO,
    # Activity Log DTOs
    ActivityLogDTO,
    # Pagination
    PageDTO,
)

from .interfaces import (
    # Service Interfaces
    IUserService,
    IAuthService,
    IActivityLogService,
)

__all__ = [
    # Base
    "BaseDTO",
    "Role",
    "WriteAction",
    # Auth / User DTOs
    "RegisterRequestDTO",
    "LoginRequestDTO",
    "UpdateProfileRequestDTO",
    "UserDTO",
    # Activity Log DTOs
    "ActivityLogDTO",
    # Pagination
    "PageDTO",
    # Service Interfaces
    "IUserService",
    "IAuthService",
    "IActivityLogService",
]
