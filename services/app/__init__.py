"""Root HTTP surface of the gateway"""

from core.module import FeatureModule

from .service import GREETING, AppService, router

AppFeature = FeatureModule(
    name="app",
    providers=lambda app_context: {"app": AppService(app_context)},
)

__all__ = ["AppFeature", "AppService", "GREETING", "router"]
