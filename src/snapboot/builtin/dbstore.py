import logging

import pydantic

from ..components.base import BaseComponent, BaseComponentFactory
from ..components.types import ComponentType
from ..config.properties import PropertySource

logger = logging.getLogger(__name__)

DB_DRIVERS = ("mysql", "postgres", "sqlite")


class DatabaseSettings(pydantic.BaseModel):
    driver: str = pydantic.Field(description="Database driver: mysql, postgres or sqlite")
    dsn: str = pydantic.Field(default=":memory:", description="Data source name")

    @pydantic.field_validator("driver")
    @classmethod
    def validate_driver(cls, value: str) -> str:
        if value not in DB_DRIVERS:
            raise ValueError(f"unsupported database driver: {value}")
        return value


class DBStoreComponent(BaseComponent):
    """
    Database store placeholder.

    Holds the connection settings; drivers are provided by the application.
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        super().__init__("dbstore", ComponentType.DATA_SOURCE)
        self.settings = settings

    async def on_initialize(self, ctx) -> None:
        self.set_metric("driver", self.settings.driver)
        logger.info("Database store configured (driver: %s)", self.settings.driver)

    def get_bean(self) -> DatabaseSettings:
        return self.settings


class DBStoreFactory(BaseComponentFactory):
    PREFIX = "database"
    SETTINGS = DatabaseSettings
    DEPENDENCIES = ("logger", "config")

    async def create(self, ctx, props: PropertySource) -> DBStoreComponent:
        return DBStoreComponent(self.load_settings(props))
