"""
Auto-configuration engine.

Configurers run in ascending ``order()`` after the default properties have
been seeded; each one decides from the properties whether to register its
factory. Activators can veto a configurer by component name.
"""
import logging
from typing import TYPE_CHECKING

from ..components.protocols import AutoConfigurer, ComponentActivator
from ..config.properties import PropertySource

if TYPE_CHECKING:
    from ..components.registry import ComponentRegistry

logger = logging.getLogger(__name__)


def apply_default_properties(props: PropertySource) -> None:
    """
    Seed default values for keys that are not set yet.

    Conditional defaults depend on the enabling flags, so that for example
    ``web.port`` is only seeded when ``web.enabled`` is true.
    """
    defaults = [
        ("app.name", "GoBootApp"),
        ("app.version", "1.0.0"),
        ("app.env", "development"),
        ("logger.level", "info"),
    ]
    for key, value in defaults:
        _set_default(props, key, value)

    if props.get_bool("database.enabled", False):
        _set_default(props, "database.driver", "sqlite")
        if props.get_string("database.driver") == "sqlite":
            _set_default(props, "database.dsn", ":memory:")

    _set_default(props, "cache.enabled", True)
    if props.get_bool("cache.enabled", True):
        _set_default(props, "cache.type", "memory")

    if props.get_bool("web.enabled", False):
        _set_default(props, "web.port", 8080)
        _set_default(props, "web.host", "0.0.0.0")


def _set_default(props: PropertySource, key: str, value) -> None:
    if not props.has_property(key):
        props.set_property(key, value)


class AutoConfig:

    def __init__(self) -> None:
        self._configurers: list[AutoConfigurer] = []
        self._activators: list[ComponentActivator] = []

    @property
    def configurers(self) -> list[AutoConfigurer]:
        return list(self._configurers)

    @property
    def activators(self) -> list[ComponentActivator]:
        return list(self._activators)

    def add_configurer(self, configurer: AutoConfigurer) -> None:
        self._configurers.append(configurer)
        # list.sort is stable: equal orders keep insertion order
        self._configurers.sort(key=lambda c: c.order())
        logger.debug("Added configurer %s (order %d)", type(configurer).__name__, configurer.order())

    def add_activator(self, activator: ComponentActivator) -> None:
        self._activators.append(activator)
        logger.debug("Added activator for %s", activator.component_type)

    def is_active(self, component_type: str, props: PropertySource) -> bool:
        """Whether every activator registered for ``component_type`` allows it."""
        return all(
            activator.should_activate(props)
            for activator in self._activators
            if activator.component_type == component_type
        )

    async def configure(self, registry: "ComponentRegistry", props: PropertySource) -> None:
        """
        Seed defaults and run every configurer in order.

        The first configurer error propagates; later configurers do not run.
        """
        apply_default_properties(props)

        for configurer in self._configurers:
            component_name = getattr(configurer, "component_name", None)
            if component_name is not None and not self.is_active(component_name, props):
                logger.info("Skipping configurer for %s: vetoed by activator", component_name)
                continue
            logger.debug("Running configurer %s", type(configurer).__name__)
            await configurer.configure(registry, props)
