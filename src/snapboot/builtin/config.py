import logging

from ..components.base import BaseComponent, BaseComponentFactory
from ..components.types import ComponentType
from ..config.properties import PropertySource

logger = logging.getLogger(__name__)


class ConfigComponent(BaseComponent):
    """Exposes the application's property source as a component."""

    def __init__(self, properties: PropertySource) -> None:
        super().__init__("config", ComponentType.INFRASTRUCTURE)
        self.properties = properties

    async def on_initialize(self, ctx) -> None:
        logger.debug("Configuration component ready (%s)", self.properties)

    def get_bean(self) -> PropertySource:
        return self.properties


class ConfigFactory(BaseComponentFactory):
    PREFIX = "config"

    async def create(self, ctx, props: PropertySource) -> ConfigComponent:
        return ConfigComponent(props)
