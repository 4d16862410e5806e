"""Auth feature: register, login and token verification"""

from core.module import FeatureModule

from .resolver import AuthMutation, AuthPayload
from .service import AuthService, hash_password, verify_password

AuthModule = FeatureModule(
    name="auth",
    providers=lambda app_context: {
        "auth": AuthService(app_context.service("users"), app_context.settings)
    },
    mutations=(AuthMutation,),
)

__all__ = [
    "AuthModule",
    "AuthMutation",
    "AuthPayload",
    "AuthService",
    "hash_password",
    "verify_password",
]
