"""Feature module declaration used by the composition root"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type

from .context import ApplicationContext

ProviderFactory = Callable[[ApplicationContext], Dict[str, Any]]


@dataclass(frozen=True)
class FeatureModule:
    """
    What a feature contributes to the process

    - providers: builds the module's services; the returned mapping is merged
      into ApplicationContext.services
    - queries / mutations: resolver classes merged into Query / Mutation
    """

    name: str
    providers: Optional[ProviderFactory] = None
    queries: Tuple[Type, ...] = ()
    mutations: Tuple[Type, ...] = ()

    def register(self, app_context: ApplicationContext) -> None:
        if self.providers is None:
            return
        for service_name, service in self.providers(app_context).items():
            if service_name in app_context.services:
                raise ValueError(f"Service {service_name!r} registered twice")
            app_context.services[service_name] = service
