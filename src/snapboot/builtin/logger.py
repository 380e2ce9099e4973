import logging
from typing import Optional

import pydantic

from ..components.base import BaseComponent, BaseComponentFactory
from ..components.types import ComponentType
from ..config.properties import PropertySource
from ..config.setup import setup_logging, parse_level


class LoggerSettings(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(populate_by_name=True)

    level: str = pydantic.Field(
        default="info",
        description="Log level: debug, info, warn, error, critical"
    )
    json_format: bool = pydantic.Field(
        default=False,
        alias="json",
        description="Emit JSON records instead of plain text"
    )
    file_path: str = pydantic.Field(
        default="",
        alias="file.path",
        description="Optional file receiving a copy of every record"
    )

    @pydantic.field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        parse_level(value)
        return value.strip().lower()


class LoggerComponent(BaseComponent):
    """Configures the application logger from the ``logger.*`` properties."""

    def __init__(self, settings: LoggerSettings, app_name: str, env: str) -> None:
        super().__init__("logger", ComponentType.INFRASTRUCTURE)
        self.settings = settings
        self.app_name = app_name
        self.env = env
        self.logger: Optional[logging.Logger] = None

    async def on_initialize(self, ctx) -> None:
        self.logger = setup_logging(
            name=self.app_name,
            level=parse_level(self.settings.level),
            json_format=self.settings.json_format,
            file_path=self.settings.file_path or None,
            env=self.env
        )
        self.set_metric("level", self.settings.level)
        self.logger.debug("Logger configured (level: %s)", self.settings.level)

    async def on_stop(self, ctx) -> None:
        if self.logger is None:
            return
        for handler in self.logger.handlers:
            handler.flush()

    def get_bean(self) -> Optional[logging.Logger]:
        return self.logger


class LoggerFactory(BaseComponentFactory):
    PREFIX = "logger"
    SETTINGS = LoggerSettings

    async def create(self, ctx, props: PropertySource) -> LoggerComponent:
        return LoggerComponent(
            self.load_settings(props),
            app_name=props.get_string("app.name", "GoBootApp"),
            env=props.get_string("app.env", "development")
        )
