import logging

import pydantic

from ..components.base import BaseComponent, BaseComponentFactory
from ..components.types import ComponentType
from ..config.properties import PropertySource

logger = logging.getLogger(__name__)


class WebSettings(pydantic.BaseModel):
    host: str = pydantic.Field(default="0.0.0.0", description="Bind address")
    port: int = pydantic.Field(default=8080, gt=0, le=65535, description="Listen port")


class WebComponent(BaseComponent):
    """HTTP endpoint placeholder; reports the configured address."""

    def __init__(self, settings: WebSettings) -> None:
        super().__init__("web", ComponentType.WEB)
        self.settings = settings

    @property
    def address(self) -> str:
        return f"{self.settings.host}:{self.settings.port}"

    async def on_start(self, ctx) -> None:
        self.set_metric("address", self.address)
        logger.info("Web component listening on %s", self.address)

    async def on_stop(self, ctx) -> None:
        logger.info("Web component on %s stopped", self.address)

    def get_bean(self) -> str:
        return self.address


class WebFactory(BaseComponentFactory):
    PREFIX = "web"
    SETTINGS = WebSettings
    DEPENDENCIES = ("logger", "config")

    async def create(self, ctx, props: PropertySource) -> WebComponent:
        return WebComponent(self.load_settings(props))
