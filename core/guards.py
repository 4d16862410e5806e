"""
Guard pipeline

Every root GraphQL field passes through the same ordered stages:
throttle -> authentication -> authorization. Each stage returns a
GuardDecision; the first deny stops the pipeline and its error is what the
client sees.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from fastapi import Request

from .exceptions import ApiError, ForbiddenError, ThrottledError, UnauthenticatedError
from .graphql.access import OperationTarget
from .logger import get_logger
from .metrics import get_metrics_collector

logger = get_logger("guards")

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    reason: str = ""
    error: Optional[ApiError] = None

    @classmethod
    def allow(cls, reason: str = "") -> "GuardDecision":
        return cls(True, reason)

    @classmethod
    def deny(cls, error: ApiError) -> "GuardDecision":
        return cls(False, error.message, error)


def client_key(request: Optional[Request], trust_proxy: bool = False) -> str:
    """Peer address of the caller; the first X-Forwarded-For hop when behind a trusted proxy"""
    if request is None:
        return "unknown"
    if trust_proxy:
        forwarded_for = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded_for:
            return forwarded_for
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def extract_token(request: Optional[Request]) -> Optional[str]:
    """Bearer token from the Authorization header, else the access_token cookie"""
    if request is None:
        return None
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


class Guard(ABC):
    name: str = "guard"

    @abstractmethod
    async def check(self, context, target: OperationTarget) -> GuardDecision:
        ...


class ThrottleGuard(Guard):
    """Rate limit per client key, counted per root GraphQL field"""

    name = "throttle"

    def __init__(self, trust_proxy: bool = False):
        self.trust_proxy = trust_proxy

    async def check(self, context, target: OperationTarget) -> GuardDecision:
        key = client_key(context.request, self.trust_proxy)
        result = context.app_context.throttler.hit(key)
        if result.allowed:
            return GuardDecision.allow(f"{result.total_hits}/{result.limit}")

        retry_after_seconds = max(1, math.ceil(result.retry_after_ms / 1000))
        if context.response is not None:
            context.response.headers["Retry-After"] = str(retry_after_seconds)
        return GuardDecision.deny(
            ThrottledError(
                "ThrottlerException: Too Many Requests",
                details={"key": key, "retry_after_ms": result.retry_after_ms},
            )
        )


class AuthGuard(Guard):
    """Resolves the caller from the request; public fields pass untouched"""

    name = "auth"

    def __init__(self, authenticate: Callable[[str], Awaitable[Dict[str, Any]]]):
        self._authenticate = authenticate

    async def check(self, context, target: OperationTarget) -> GuardDecision:
        if target.policy.public:
            return GuardDecision.allow("public")
        if context.user is not None:
            return GuardDecision.allow("already authenticated")

        token = extract_token(context.request)
        if not token:
            return GuardDecision.deny(UnauthenticatedError("Unauthorized"))

        try:
            context.user = await self._authenticate(token)
        except UnauthenticatedError as auth_error:
            return GuardDecision.deny(auth_error)
        return GuardDecision.allow("token accepted")


class RolesGuard(Guard):
    """Checks the caller's role against the roles a field declares"""

    name = "roles"

    async def check(self, context, target: OperationTarget) -> GuardDecision:
        required_roles = target.policy.roles
        if not required_roles:
            return GuardDecision.allow("no roles required")

        user = context.user
        if user is None or user.get("role") not in required_roles:
            return GuardDecision.deny(ForbiddenError("Forbidden resource"))
        return GuardDecision.allow(f"role {user['role']}")


class GuardPipeline:
    def __init__(self, guards: Sequence[Guard]):
        self.guards = list(guards)

    async def run(self, context, target: OperationTarget) -> GuardDecision:
        for guard in self.guards:
            decision = await guard.check(context, target)
            if not decision.allowed:
                get_metrics_collector().record_guard_rejection(guard.name)
                logger.info(
                    f"🛡️ {guard.name} guard rejected {target.parent_type}.{target.field_name}: {decision.reason}"
                )
                return decision
        return GuardDecision.allow()
