"""
Auth service
- bcrypt password hashing
- JWT issue / verification (python-jose)
- register / login on top of UserService
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from core.config import Settings
from core.decorators import track_error
from core.exceptions import NotFoundError, UnauthenticatedError
from core.logger import get_logger
from models.dtos import LoginRequestDTO, RegisterRequestDTO, Role, UserDTO
from models.interfaces import IAuthService, IUserService

logger = get_logger("services.auth")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class AuthService(IAuthService):
    def __init__(self, users: IUserService, settings: Settings):
        self.users = users
        self.settings = settings

    def issue_token(self, user: UserDTO) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": user.id,
            "role": user.role,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.settings.jwt_expires_in_seconds)).timestamp()),
        }
        return jwt.encode(claims, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    async def authenticate_token(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the stored user document"""
        try:
            claims = jwt.decode(
                token, self.settings.jwt_secret, algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as jwt_error:
            raise UnauthenticatedError("Unauthorized") from jwt_error

        user_id = claims.get("sub")
        if not user_id:
            raise UnauthenticatedError("Unauthorized")

        try:
            user = await self.users.find_by_id(user_id)
        except NotFoundError as lookup_error:
            # sub is not a valid ObjectId
            raise UnauthenticatedError("Unauthorized") from lookup_error
        if user is None:
            raise UnauthenticatedError("Unauthorized")
        return user

    @track_error("auth", "register")
    async def register(self, request: RegisterRequestDTO) -> Dict[str, Any]:
        """Create a USER account; duplicate e-mails are rejected by the unique validator"""
        document = await self.users.create(
            email=request.email,
            password_hash=hash_password(request.password),
            name=request.name,
            role=Role.USER,
        )
        user = UserDTO.from_document(document)
        logger.info(f"✅ Registered {user.email}")
        return {"access_token": self.issue_token(user), "user": user}

    async def login(self, request: LoginRequestDTO) -> Dict[str, Any]:
        document = await self.users.find_by_email(request.email)
        if document is None or not verify_password(
            request.password, document.get("password_hash", "")
        ):
            logger.info(f"🔒 Failed login for {request.email}")
            raise UnauthenticatedError("Invalid credentials")

        user = UserDTO.from_document(document)
        logger.info(f"🔓 Login {user.email}")
        return {"access_token": self.issue_token(user), "user": user}
