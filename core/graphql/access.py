"""Per-field access declarations, read by the guards"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

ACCESS_POLICY_KEY = "access_policy"


@dataclass(frozen=True)
class AccessPolicy:
    """public fields skip authentication; roles restrict authenticated callers"""

    public: bool = False
    roles: Tuple[str, ...] = ()


AUTHENTICATED = AccessPolicy()


@dataclass(frozen=True)
class OperationTarget:
    """The root field a request is trying to execute"""

    parent_type: str
    field_name: str
    policy: AccessPolicy


def public() -> Dict[str, Any]:
    """``@strawberry.field(metadata=public())``"""
    return {ACCESS_POLICY_KEY: AccessPolicy(public=True)}


def roles(*names: Any) -> Dict[str, Any]:
    """``@strawberry.mutation(metadata=roles(Role.ADMIN))``"""
    return {ACCESS_POLICY_KEY: AccessPolicy(roles=tuple(str(getattr(name, "value", name)) for name in names))}


def policy_of(metadata: Any) -> AccessPolicy:
    if not metadata:
        return AUTHENTICATED
    return metadata.get(ACCESS_POLICY_KEY, AUTHENTICATED)
