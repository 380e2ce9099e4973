"""
Base classes for components and component factories.

:class:`BaseComponent` tracks lifecycle status and a small metrics map; its
subclasses override the ``on_initialize``, ``on_start`` and ``on_stop`` hooks.
:class:`BaseComponentFactory` derives dependencies and the configuration
schema from class attributes, and validates properties against a pydantic
settings model.
"""
import logging
import threading
from datetime import datetime
from typing import Any, ClassVar, Optional, TYPE_CHECKING

import pydantic

from .schema import ConfigSchema, parse_string
from .types import ComponentType, ComponentStatus, can_advance
from ..errors import ComponentError, ComponentOperation, ConfigError, HealthCheckFailed

if TYPE_CHECKING:
    from ..config.properties import PropertySource
    from ..context import ComponentContext

logger = logging.getLogger(__name__)


class BaseComponent:
    """
    Component with status bookkeeping.

    Status only advances along Created, Initialized, Started, Stopped, or
    moves to Failed when a hook raises. Stopping a failed component runs the
    stop hook but keeps it Failed.
    """

    def __init__(self, name: str, component_type: ComponentType) -> None:
        self.name = name
        self.type = component_type
        self._status = ComponentStatus.CREATED
        self._lock = threading.Lock()
        self._metrics: dict[str, Any] = {}
        self.started_at: Optional[datetime] = None

    @property
    def status(self) -> ComponentStatus:
        with self._lock:
            return self._status

    def set_status(self, status: ComponentStatus, operation: ComponentOperation) -> None:
        with self._lock:
            if not can_advance(self._status, status):
                raise ComponentError(
                    self.name, operation,
                    f"illegal status transition {self._status} -> {status}"
                )
            self._status = status

    def set_metric(self, key: str, value: Any) -> None:
        with self._lock:
            self._metrics[key] = value

    def metrics(self) -> dict[str, Any]:
        with self._lock:
            metrics = dict(self._metrics)
            started_at = self.started_at
            status = self._status
        metrics["status"] = str(status)
        if started_at is not None and status is ComponentStatus.STARTED:
            metrics["uptime"] = (datetime.now() - started_at).total_seconds()
        return metrics

    async def initialize(self, ctx: "ComponentContext") -> None:
        self.set_status(ComponentStatus.INITIALIZED, ComponentOperation.INITIALIZE)
        await self._run_hook(self.on_initialize, ctx, ComponentOperation.INITIALIZE)
        self.set_metric("initialized_at", datetime.now())
        logger.debug("Component initialized: %s", self.name)

    async def start(self, ctx: "ComponentContext") -> None:
        self.set_status(ComponentStatus.STARTED, ComponentOperation.START)
        await self._run_hook(self.on_start, ctx, ComponentOperation.START)
        self.started_at = datetime.now()
        self.set_metric("started_at", self.started_at)
        logger.debug("Component started: %s", self.name)

    async def stop(self, ctx: "ComponentContext") -> None:
        failed = self.status is ComponentStatus.FAILED
        await self._run_hook(self.on_stop, ctx, ComponentOperation.STOP)
        if not failed:
            self.set_status(ComponentStatus.STOPPED, ComponentOperation.STOP)
        self.set_metric("stopped_at", datetime.now())
        logger.debug("Component stopped: %s", self.name)

    async def health_check(self) -> None:
        status = self.status
        if status is ComponentStatus.FAILED:
            raise HealthCheckFailed(f"component {self.name} is in failed state")
        if status is not ComponentStatus.STARTED:
            raise HealthCheckFailed(f"component {self.name} is not started (status: {status})")

    async def _run_hook(self, hook, ctx: "ComponentContext", operation: ComponentOperation) -> None:
        try:
            await hook(ctx)
        except BaseException:
            with self._lock:
                self._status = ComponentStatus.FAILED
            logger.debug("Component %s failed during %s", self.name, operation.value)
            raise

    async def on_initialize(self, ctx: "ComponentContext") -> None:
        pass

    async def on_start(self, ctx: "ComponentContext") -> None:
        pass

    async def on_stop(self, ctx: "ComponentContext") -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, type={self.type}, status={self.status})"


class BaseComponentFactory:
    """
    Factory helper driven by class attributes.

    Subclasses set ``PREFIX`` and ``SETTINGS`` (a pydantic model whose fields
    are read from ``<PREFIX>.<field>`` properties), optionally
    ``DEPENDENCIES``, and implement :meth:`create`.
    """
    PREFIX: ClassVar[str] = ""
    SETTINGS: ClassVar[Optional[type[pydantic.BaseModel]]] = None
    DEPENDENCIES: ClassVar[tuple[str, ...]] = ()

    async def create(self, ctx: "ComponentContext", props: "PropertySource"):
        raise NotImplementedError

    def dependencies(self) -> list[str]:
        return list(self.DEPENDENCIES)

    def config_schema(self) -> ConfigSchema:
        if self.SETTINGS is None:
            return ConfigSchema(dependencies=self.dependencies())
        return ConfigSchema.from_settings(self.PREFIX, self.SETTINGS, self.dependencies())

    def validate_config(self, props: "PropertySource") -> None:
        violations = self.config_schema().check(props)
        if violations:
            raise ConfigError("; ".join(violations), component=self.PREFIX or None)
        if self.SETTINGS is not None:
            self.load_settings(props)

    def load_settings(self, props: "PropertySource") -> pydantic.BaseModel:
        """
        Read and validate the factory's settings model from ``props``.

        Missing properties fall back to the model defaults. Values go through
        the typed property getters, so coercion follows the property source.

        :raises ConfigError: If the model rejects the values.
        """
        assert self.SETTINGS is not None
        schema = self.config_schema()
        values: dict[str, Any] = {}
        for name, field in self.SETTINGS.model_fields.items():
            alias = field.alias or name
            key = f"{self.PREFIX}.{alias}"
            if not props.has_property(key):
                continue
            values[alias] = _read_typed(props, key, schema.properties[key].type)
        try:
            return self.SETTINGS.model_validate(values)
        except pydantic.ValidationError as e:
            raise ConfigError(f"invalid {self.PREFIX} configuration", component=self.PREFIX, cause=e) from e


def _read_typed(props: "PropertySource", key: str, property_type: str) -> Any:
    if property_type == "bool":
        return props.get_bool(key)
    if property_type == "int":
        return props.get_int(key)
    if property_type == "float":
        return props.get_float(key)
    value, _ = props.get_property(key)
    text = parse_string(value)
    return value if text is None else text
