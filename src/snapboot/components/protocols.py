from typing import Protocol, runtime_checkable, Optional, TYPE_CHECKING

from .types import ComponentType, ComponentStatus

if TYPE_CHECKING:
    from .registry import ComponentRegistry
    from .schema import ConfigSchema
    from ..application import Application
    from ..config.properties import PropertySource
    from ..context import ComponentContext


@runtime_checkable
class Component(Protocol):
    """
    Protocol defining the interface for components.

    Required:
        name: Unique name within a registry.
        type: Component category; decides lifecycle ordering.
        status: Current lifecycle status.

    Lifecycle methods (all async):
        initialize: Prepare resources; called once, in sorted order.
        start: Begin serving; called once after every component is initialized.
        stop: Release resources; called in reverse order, best effort.
        health_check: Raise if the component is unhealthy.
    """
    name: str
    type: ComponentType

    @property
    def status(self) -> ComponentStatus:
        ...

    async def initialize(self, ctx: "ComponentContext") -> None:
        ...

    async def start(self, ctx: "ComponentContext") -> None:
        ...

    async def stop(self, ctx: "ComponentContext") -> None:
        ...

    async def health_check(self) -> None:
        ...


@runtime_checkable
class ComponentFactory(Protocol):
    """Produces a component on demand and declares what it needs."""

    async def create(self, ctx: "ComponentContext", props: "PropertySource") -> Component:
        ...

    def dependencies(self) -> list[str]:
        ...

    def validate_config(self, props: "PropertySource") -> None:
        """Raise :class:`~snapboot.errors.ConfigError` when ``props`` is unusable."""
        ...

    def config_schema(self) -> "ConfigSchema":
        ...


@runtime_checkable
class AutoConfigurer(Protocol):
    """Contributes factories to a registry based on properties."""

    def order(self) -> int:
        ...

    async def configure(self, registry: "ComponentRegistry", props: "PropertySource") -> None:
        ...


@runtime_checkable
class ComponentActivator(Protocol):
    """Decides whether a component may be activated."""
    component_type: str

    def should_activate(self, props: "PropertySource") -> bool:
        ...


@runtime_checkable
class ComponentHealthChecker(Protocol):
    """Runs a single component's health check."""

    async def check_health(self, component: Component) -> Optional[BaseException]:
        ...


@runtime_checkable
class Plugin(Protocol):
    """Extension hook that registers itself into an application."""
    name: str

    def register(self, app: "Application") -> None:
        ...


def component_status(component: object) -> ComponentStatus:
    """Return a component's status, or UNKNOWN when it does not expose one."""
    status = getattr(component, "status", None)
    if isinstance(status, ComponentStatus):
        return status
    return ComponentStatus.UNKNOWN
