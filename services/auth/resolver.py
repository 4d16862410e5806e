"""GraphQL surface of the auth module"""

import strawberry
from strawberry.types import Info

from core.graphql import public
from core.guards import ACCESS_TOKEN_COOKIE
from models.dtos import LoginRequestDTO, RegisterRequestDTO
from services.users.resolver import UserType


@strawberry.type
class AuthPayload:
    access_token: str
    user: UserType


@strawberry.input
class RegisterInput:
    email: str
    password: str
    name: str


@strawberry.input
class LoginInput:
    email: str
    password: str


def _payload(info: Info, result) -> AuthPayload:
    response = info.context.response
    if response is not None:
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            result["access_token"],
            httponly=True,
            samesite="lax",
            max_age=info.context.app_context.settings.jwt_expires_in_seconds,
        )
    return AuthPayload(
        access_token=result["access_token"], user=UserType.from_dto(result["user"])
    )


@strawberry.type
class AuthMutation:
    @strawberry.mutation(metadata=public())
    async def register(self, info: Info, input: RegisterInput) -> AuthPayload:
        request = RegisterRequestDTO.parse_input(
            email=input.email, password=input.password, name=input.name
        )
        result = await info.context.service("auth").register(request)
        return _payload(info, result)

    @strawberry.mutation(metadata=public())
    async def login(self, info: Info, input: LoginInput) -> AuthPayload:
        request = LoginRequestDTO.parse_input(email=input.email, password=input.password)
        result = await info.context.service("auth").login(request)
        return _payload(info, result)
