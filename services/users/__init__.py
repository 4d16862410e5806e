"""User feature: profiles and admin listing"""

from core.module import FeatureModule

from .resolver import UserMutation, UserQuery, UserType
from .service import USERS_COLLECTION, UserService

UserModule = FeatureModule(
    name="users",
    providers=lambda app_context: {"users": UserService(app_context.connection)},
    queries=(UserQuery,),
    mutations=(UserMutation,),
)

__all__ = [
    "USERS_COLLECTION",
    "UserModule",
    "UserMutation",
    "UserQuery",
    "UserService",
    "UserType",
]
