import logging
import threading
from typing import Any, Optional

import pydantic
from cachetools import TTLCache

from ..components.base import BaseComponent, BaseComponentFactory
from ..components.types import ComponentType
from ..config.properties import PropertySource
from ..errors import HealthCheckFailed

logger = logging.getLogger(__name__)

CACHE_TYPES = ("memory", "redis")

_PROBE_KEY = "__health__"


class CacheSettings(pydantic.BaseModel):
    type: str = pydantic.Field(default="memory", description="Cache backend: memory or redis")
    max_size: int = pydantic.Field(default=1024, gt=0, description="Maximum number of entries")
    ttl: float = pydantic.Field(default=300.0, gt=0, description="Entry time-to-live in seconds")

    @pydantic.field_validator("type")
    @classmethod
    def validate_type(cls, value: str) -> str:
        if value not in CACHE_TYPES:
            raise ValueError(f"unsupported cache type: {value}")
        return value


class CacheComponent(BaseComponent):
    """In-process TTL cache."""

    def __init__(self, settings: CacheSettings) -> None:
        super().__init__("cache", ComponentType.INFRASTRUCTURE)
        self.settings = settings
        self._cache: Optional[TTLCache] = None
        self._cache_lock = threading.Lock()

    async def on_initialize(self, ctx) -> None:
        if self.settings.type == "redis":
            logger.warning("Redis cache is not available, falling back to in-memory cache")
        self._cache = TTLCache(maxsize=self.settings.max_size, ttl=self.settings.ttl)
        self.set_metric("backend", "memory")

    async def on_stop(self, ctx) -> None:
        self.clear()

    def get(self, key: str, default: Any = None) -> Any:
        with self._cache_lock:
            if self._cache is None:
                return default
            return self._cache.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._cache_lock:
            if self._cache is None:
                raise RuntimeError("cache is not initialized")
            self._cache[key] = value

    def delete(self, key: str) -> None:
        with self._cache_lock:
            if self._cache is not None:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._cache_lock:
            if self._cache is not None:
                self._cache.clear()

    async def health_check(self) -> None:
        await super().health_check()
        self.set(_PROBE_KEY, "ok")
        if self.get(_PROBE_KEY) != "ok":
            raise HealthCheckFailed("cache probe failed")
        self.delete(_PROBE_KEY)

    def get_bean(self) -> "CacheComponent":
        return self


class CacheFactory(BaseComponentFactory):
    PREFIX = "cache"
    SETTINGS = CacheSettings
    DEPENDENCIES = ("logger", "config")

    async def create(self, ctx, props: PropertySource) -> CacheComponent:
        return CacheComponent(self.load_settings(props))
