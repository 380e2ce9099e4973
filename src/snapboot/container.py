from dependency_injector import containers, providers

from .autoconfig.engine import AutoConfig
from .components.registry import ComponentRegistry, DefaultHealthChecker
from .context import ComponentContext
from .events import EventBus
from .health import HealthChecker, DEFAULT_INTERVAL
from .metrics import ApplicationMetrics


def _health_check_interval(properties) -> float:
    return properties.get_float("app.health_check_interval", DEFAULT_INTERVAL)


class ApplicationContainer(containers.DeclarativeContainer):
    properties = providers.Object(None)

    event_bus = providers.Singleton(EventBus)
    auto_config = providers.Singleton(AutoConfig)
    metrics = providers.Singleton(ApplicationMetrics)

    component_health_checker = providers.Singleton(DefaultHealthChecker)

    registry = providers.Singleton(
        ComponentRegistry,
        properties=properties,
        health_checker=component_health_checker,
    )

    context = providers.Singleton(
        ComponentContext,
        registry=registry,
        properties=properties,
        event_bus=event_bus,
    )

    health_checker = providers.Singleton(
        HealthChecker,
        registry=registry,
        interval=providers.Callable(_health_check_interval, properties),
        event_bus=event_bus,
        metrics=metrics,
    )
