"""Guard pipeline: throttle -> auth -> roles"""

from types import SimpleNamespace

import pytest
from starlette.requests import Request
from starlette.responses import Response

from core.exceptions import ForbiddenError, ThrottledError, UnauthenticatedError
from core.graphql.access import AUTHENTICATED, AccessPolicy, OperationTarget
from core.guards import (
    AuthGuard,
    Guard,
    GuardDecision,
    GuardPipeline,
    RolesGuard,
    ThrottleGuard,
    client_key,
    extract_token,
)
from core.throttler import SlidingWindowThrottler


def make_request(headers=None, client=("9.9.9.9", 4321)):
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    return Request({"type": "http", "method": "POST", "path": "/graphql", "headers": raw_headers, "client": client})


def make_context(request=None, limit=30):
    app_context = SimpleNamespace(throttler=SlidingWindowThrottler(limit=limit))
    return SimpleNamespace(
        app_context=app_context,
        request=request or make_request(),
        response=Response(),
        user=None,
    )


def target(policy=AUTHENTICATED, field_name="me"):
    return OperationTarget("Query", field_name, policy)


async def accept_known_token(token):
    if token != "good-token":
        raise UnauthenticatedError("Unauthorized")
    return {"_id": "u1", "role": "USER"}


class RecordingGuard(Guard):
    def __init__(self, name, calls, allowed=True):
        self.name = name
        self.calls = calls
        self.allowed = allowed

    async def check(self, context, target):
        self.calls.append(self.name)
        if self.allowed:
            return GuardDecision.allow()
        return GuardDecision.deny(ForbiddenError(f"{self.name} says no"))


# ===== request helpers =====


def test_client_key_ignores_forwarded_for_by_default():
    request = make_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})
    assert client_key(request) == "9.9.9.9"


def test_client_key_uses_first_forwarded_hop_behind_trusted_proxy():
    request = make_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})
    assert client_key(request, trust_proxy=True) == "1.2.3.4"
    assert client_key(make_request(), trust_proxy=True) == "9.9.9.9"


def test_client_key_falls_back_to_peer_address():
    assert client_key(make_request()) == "9.9.9.9"
    assert client_key(make_request(client=None)) == "unknown"
    assert client_key(None) == "unknown"


def test_extract_token_from_header_or_cookie():
    assert extract_token(make_request({"Authorization": "Bearer abc"})) == "abc"
    assert extract_token(make_request({"Cookie": "access_token=xyz"})) == "xyz"
    assert extract_token(make_request({"Authorization": "Basic abc"})) is None
    assert extract_token(make_request()) is None


# ===== pipeline =====


@pytest.mark.asyncio
async def test_pipeline_runs_guards_in_order():
    calls = []
    pipeline = GuardPipeline(
        [RecordingGuard("throttle", calls), RecordingGuard("auth", calls), RecordingGuard("roles", calls)]
    )

    decision = await pipeline.run(make_context(), target())

    assert decision.allowed
    assert calls == ["throttle", "auth", "roles"]


@pytest.mark.asyncio
async def test_first_deny_short_circuits():
    calls = []
    pipeline = GuardPipeline(
        [
            RecordingGuard("throttle", calls),
            RecordingGuard("auth", calls, allowed=False),
            RecordingGuard("roles", calls),
        ]
    )

    decision = await pipeline.run(make_context(), target())

    assert not decision.allowed
    assert decision.error.message == "auth says no"
    assert calls == ["throttle", "auth"]


@pytest.mark.asyncio
async def test_throttled_request_never_reaches_auth():
    calls = []
    context = make_context(limit=1)
    pipeline = GuardPipeline([ThrottleGuard(), RecordingGuard("auth", calls)])

    first = await pipeline.run(context, target())
    second = await pipeline.run(context, target())

    assert first.allowed
    assert not second.allowed
    assert isinstance(second.error, ThrottledError)
    assert second.error.status_code == 429
    assert "Retry-After" in context.response.headers
    assert calls == ["auth"]


# ===== individual guards =====


@pytest.mark.asyncio
async def test_auth_guard_lets_public_fields_through():
    decision = await AuthGuard(accept_known_token).check(make_context(), target(AccessPolicy(public=True)))
    assert decision.allowed


@pytest.mark.asyncio
async def test_auth_guard_requires_a_token():
    decision = await AuthGuard(accept_known_token).check(make_context(), target())

    assert not decision.allowed
    assert isinstance(decision.error, UnauthenticatedError)


@pytest.mark.asyncio
async def test_auth_guard_rejects_bad_token():
    context = make_context(make_request({"Authorization": "Bearer forged"}))

    decision = await AuthGuard(accept_known_token).check(context, target())

    assert not decision.allowed
    assert context.user is None


@pytest.mark.asyncio
async def test_auth_guard_attaches_user():
    context = make_context(make_request({"Authorization": "Bearer good-token"}))

    decision = await AuthGuard(accept_known_token).check(context, target())

    assert decision.allowed
    assert context.user == {"_id": "u1", "role": "USER"}


@pytest.mark.asyncio
async def test_roles_guard():
    context = make_context()
    context.user = {"_id": "u1", "role": "USER"}
    admin_only = target(AccessPolicy(roles=("ADMIN",)), field_name="users")

    assert (await RolesGuard().check(context, target())).allowed

    denied = await RolesGuard().check(context, admin_only)
    assert not denied.allowed
    assert isinstance(denied.error, ForbiddenError)

    context.user = {"_id": "u2", "role": "ADMIN"}
    assert (await RolesGuard().check(context, admin_only)).allowed
