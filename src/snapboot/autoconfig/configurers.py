import logging
from typing import ClassVar, Optional, TYPE_CHECKING

from ..builtin import CacheFactory, ConfigFactory, DBStoreFactory, LoggerFactory, WebFactory
from ..components.base import BaseComponentFactory
from ..config.properties import PropertySource

if TYPE_CHECKING:
    from ..components.registry import ComponentRegistry

logger = logging.getLogger(__name__)


class FactoryConfigurer:
    """
    Registers one factory when its enabling property is true.

    Subclasses set ``COMPONENT_NAME``, ``ORDER``, ``FACTORY`` and, unless the
    component is always on, ``ENABLED_PROPERTY`` with ``ENABLED_DEFAULT``.
    """
    COMPONENT_NAME: ClassVar[str]
    ORDER: ClassVar[int]
    FACTORY: ClassVar[type[BaseComponentFactory]]
    ENABLED_PROPERTY: ClassVar[Optional[str]] = None
    ENABLED_DEFAULT: ClassVar[bool] = True

    @property
    def component_name(self) -> str:
        return self.COMPONENT_NAME

    def order(self) -> int:
        return self.ORDER

    def enabled(self, props: PropertySource) -> bool:
        if self.ENABLED_PROPERTY is None:
            return True
        return props.get_bool(self.ENABLED_PROPERTY, self.ENABLED_DEFAULT)

    async def configure(self, registry: "ComponentRegistry", props: PropertySource) -> None:
        if not self.enabled(props):
            logger.debug("Component %s disabled by %s", self.COMPONENT_NAME, self.ENABLED_PROPERTY)
            return
        registry.register_factory(self.COMPONENT_NAME, self.FACTORY())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(order={self.ORDER})"


class ConfigConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "config"
    ORDER = 50
    FACTORY = ConfigFactory


class LoggerConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "logger"
    ORDER = 100
    FACTORY = LoggerFactory
    ENABLED_PROPERTY = "logger.enabled"
    ENABLED_DEFAULT = True


class DBStoreConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "dbstore"
    ORDER = 200
    FACTORY = DBStoreFactory
    ENABLED_PROPERTY = "database.enabled"
    ENABLED_DEFAULT = False


class CacheConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "cache"
    ORDER = 300
    FACTORY = CacheFactory
    ENABLED_PROPERTY = "cache.enabled"
    ENABLED_DEFAULT = True


class WebConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "web"
    ORDER = 400
    FACTORY = WebFactory
    ENABLED_PROPERTY = "web.enabled"
    ENABLED_DEFAULT = False


def default_configurations() -> list[FactoryConfigurer]:
    return [ConfigConfigurer(), LoggerConfigurer()]


def web_configurations() -> list[FactoryConfigurer]:
    return default_configurations() + [WebConfigurer()]


def storage_configurations() -> list[FactoryConfigurer]:
    return default_configurations() + [DBStoreConfigurer(), CacheConfigurer()]


def full_configurations() -> list[FactoryConfigurer]:
    """All built-in configurers, in order."""
    return default_configurations() + [DBStoreConfigurer(), CacheConfigurer(), WebConfigurer()]
