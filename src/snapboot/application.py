"""
Application lifecycle.

An :class:`Application` owns the registry, the auto-configuration engine, the
event bus and the health checker, and drives every component through
initialize, start and stop:

    Created -> Initializing -> Initialized -> Starting -> Running -> Stopping -> Stopped

Any non-terminal state may move to Failed. Components are initialized and
started in the registry's sorted order and stopped in the reverse order.
"""
import asyncio
import logging
import signal
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from dependency_injector import providers

from .autoconfig.engine import AutoConfig
from .components.protocols import Component, AutoConfigurer, ComponentActivator, component_status
from .components.registry import ComponentRegistry
from .components.types import ComponentType
from .config.properties import PropertySource, FilePropertySource, load_environment_variables
from .container import ApplicationContainer
from .context import ComponentContext
from .errors import (
    ComponentError,
    ComponentNotFound,
    ComponentOperation,
    ConfigError,
    NotBeanProvider,
)
from .events import (
    EventBus,
    APPLICATION_INITIALIZED,
    APPLICATION_STARTED,
    APPLICATION_STATE_CHANGED,
    APPLICATION_STOPPED,
    APPLICATION_STOPPING,
    COMPONENT_STOP_ERROR,
)
from .health import HealthChecker
from .metrics import ApplicationMetrics

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 30.0


class AppState(Enum):
    """
    Application lifecycle states.

    The linear states compare by their position in the lifecycle; FAILED is
    outside that order and comparing it raises TypeError.
    """
    CREATED = 0
    INITIALIZING = 1
    INITIALIZED = 2
    STARTING = 3
    RUNNING = 4
    STOPPING = 5
    STOPPED = 6
    FAILED = -1

    def _ordinal(self, other: "AppState") -> tuple[int, int]:
        if self is AppState.FAILED or other is AppState.FAILED:
            raise TypeError("FAILED is not ordered relative to other states")
        return self.value, other.value

    def __lt__(self, other):
        if not isinstance(other, AppState):
            return NotImplemented
        mine, theirs = self._ordinal(other)
        return mine < theirs

    def __le__(self, other):
        if not isinstance(other, AppState):
            return NotImplemented
        mine, theirs = self._ordinal(other)
        return mine <= theirs

    def __gt__(self, other):
        if not isinstance(other, AppState):
            return NotImplemented
        mine, theirs = self._ordinal(other)
        return mine > theirs

    def __ge__(self, other):
        if not isinstance(other, AppState):
            return NotImplemented
        mine, theirs = self._ordinal(other)
        return mine >= theirs

    @property
    def terminal(self) -> bool:
        return self in (AppState.STOPPED, AppState.FAILED)

    def __str__(self) -> str:
        return self.name.capitalize()


_TRANSITIONS: dict[AppState, frozenset[AppState]] = {
    AppState.CREATED: frozenset({AppState.INITIALIZING, AppState.STOPPING}),
    AppState.INITIALIZING: frozenset({AppState.INITIALIZED}),
    AppState.INITIALIZED: frozenset({AppState.STARTING, AppState.STOPPING}),
    AppState.STARTING: frozenset({AppState.RUNNING}),
    AppState.RUNNING: frozenset({AppState.STOPPING}),
    AppState.STOPPING: frozenset({AppState.STOPPED}),
    AppState.STOPPED: frozenset(),
    AppState.FAILED: frozenset(),
}


def can_transition(old: AppState, new: AppState) -> bool:
    if new is AppState.FAILED:
        return not old.terminal
    return new in _TRANSITIONS[old]


class Application:
    """
    Component container with a lifecycle.

    :param properties: Property source; the application reads and seeds it
                       but does not own it.
    :param container: Optional pre-built collaborator container.
    """

    def __init__(
            self,
            properties: PropertySource,
            container: Optional[ApplicationContainer] = None
    ) -> None:
        self.properties = properties

        self._container = container or ApplicationContainer()
        self._container.properties.override(providers.Object(properties))

        self.registry: ComponentRegistry = self._container.registry()
        self.event_bus: EventBus = self._container.event_bus()
        self.auto_config: AutoConfig = self._container.auto_config()
        self.metrics: ApplicationMetrics = self._container.metrics()
        self.context: ComponentContext = self._container.context()
        self.health_checker: HealthChecker = self._container.health_checker()
        self.registry.set_factory_context(self.context)

        self._state = AppState.CREATED
        self._state_lock = threading.Lock()
        self._shutdown_requested = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @classmethod
    def from_config(
            cls,
            config_path: Union[str, Path] = "configs",
            profile: Optional[str] = None,
            load_environment: bool = True
    ) -> "Application":
        """Create an application whose properties come from files and the environment."""
        properties = FilePropertySource(config_path, profile=profile)
        if load_environment:
            load_environment_variables(properties)
        return cls(properties)

    # -- properties --------------------------------------------------------

    @property
    def name(self) -> str:
        return self.properties.get_string("app.name", "GoBootApp")

    @property
    def version(self) -> str:
        return self.properties.get_string("app.version", "1.0.0")

    @property
    def state(self) -> AppState:
        with self._state_lock:
            return self._state

    @property
    def shutdown_timeout(self) -> float:
        return self.properties.get_float("app.shutdown_timeout", DEFAULT_SHUTDOWN_TIMEOUT)

    def _set_state(self, new_state: AppState) -> None:
        with self._state_lock:
            old_state = self._state
            if not can_transition(old_state, new_state):
                raise ConfigError(
                    f"illegal state transition {old_state} -> {new_state}",
                    component="application"
                )
            self._state = new_state

        logger.debug("Application state changed: %s -> %s", old_state, new_state)
        self.event_bus.publish(APPLICATION_STATE_CHANGED, {
            "old_state": old_state,
            "new_state": new_state,
        })

    def _fail(self) -> None:
        self.metrics.record_error()
        if not self.state.terminal:
            self._set_state(AppState.FAILED)

    # -- contributions -----------------------------------------------------

    def register_component(self, component: Component) -> None:
        self.registry.register_component(component)

    def add_configurer(self, configurer: AutoConfigurer) -> None:
        self.auto_config.add_configurer(configurer)

    def add_activator(self, activator: ComponentActivator) -> None:
        self.auto_config.add_activator(activator)

    async def get_component(self, name: str) -> Optional[Component]:
        return await self.registry.get_component(name)

    def get_component_by_type(self, component_type: ComponentType) -> Optional[Component]:
        return self.registry.get_component_by_type(component_type)

    def get_components_by_type(self, component_type: ComponentType) -> list[Component]:
        return self.registry.get_components_by_type(component_type)

    async def get_bean(self, name: str) -> Any:
        """
        Return the object a component provides.

        Components act as bean providers by implementing ``get_bean()``.

        :raises ConfigError: If the component does not exist or provides no bean.
        """
        component = await self.get_component(name)
        if component is None:
            raise ConfigError(f"component not found: {name}", component=name,
                              cause=ComponentNotFound(name))
        provider = getattr(component, "get_bean", None)
        if not callable(provider):
            raise ConfigError(f"component {name} does not provide beans", component=name,
                              cause=NotBeanProvider(name))
        return provider()

    # -- lifecycle ---------------------------------------------------------

    async def initialize(self) -> None:
        """
        Configure, resolve and initialize every component.

        :raises ConfigError: If auto-configuration fails.
        :raises DependencyError: If dependencies are cyclic or missing.
        :raises ComponentError: If a component cannot be created or initialized.
        """
        self._set_state(AppState.INITIALIZING)
        logger.info("Initializing application %s v%s", self.name, self.version)

        try:
            await self.auto_config.configure(self.registry, self.properties)
        except Exception as e:
            self._fail()
            raise ConfigError("auto-configuration failed", component="application", cause=e) from e

        try:
            await self.registry.resolve_dependencies()
        except Exception:
            self._fail()
            raise

        components = self.registry.get_all_components_sorted()
        for component in components:
            logger.debug("Initializing component: %s", component.name)
            try:
                await component.initialize(self.context)
            except Exception as e:
                self._fail()
                raise ComponentError(
                    component.name, ComponentOperation.INITIALIZE,
                    "failed to initialize component", cause=e
                ) from e

        self.metrics.set_component_count(len(components))
        self._set_state(AppState.INITIALIZED)
        self.event_bus.publish(APPLICATION_INITIALIZED, self)
        logger.info("Application initialized with %d components", len(components))

    async def start(self) -> None:
        """
        Start every component and the health checker.

        :raises ComponentError: If a component fails to start.
        """
        self._set_state(AppState.STARTING)

        for component in self.registry.get_all_components_sorted():
            logger.debug("Starting component: %s", component.name)
            try:
                await component.start(self.context)
            except Exception as e:
                self._fail()
                raise ComponentError(
                    component.name, ComponentOperation.START,
                    "failed to start component", cause=e
                ) from e

        self.health_checker.start(self.context)
        self.metrics.mark_started()
        self._set_state(AppState.RUNNING)
        self.event_bus.publish(APPLICATION_STARTED, self)
        logger.info("Application %s v%s started", self.name, self.version)

    async def run(self) -> None:
        """
        Initialize (if needed), start, then block until SIGINT, SIGTERM or
        :meth:`request_shutdown`, and shut down.
        """
        self._loop = asyncio.get_running_loop()
        if self.state is AppState.CREATED:
            await self.initialize()
        await self.start()

        with self._signal_handlers():
            await self._shutdown_requested.wait()

        logger.info("Shutdown requested")
        await self.shutdown(self.shutdown_timeout)

    def request_shutdown(self) -> None:
        """Ask a running application to shut down; safe to call from any thread."""
        loop = self._loop
        if loop is not None and not loop.is_closed():
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is not loop:
                loop.call_soon_threadsafe(self._shutdown_requested.set)
                return
        self._shutdown_requested.set()

    @contextmanager
    def _signal_handlers(self):
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("Cannot install handler for %s", sig.name)
        try:
            yield
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Received signal %s", sig.name)
        self.request_shutdown()

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Stop every component in reverse order, bounded by ``timeout`` seconds.

        Every component is attempted even when some fail. From FAILED the
        cleanup runs but the state stays FAILED.

        :param timeout: Overall stop budget; defaults to ``app.shutdown_timeout``.
        :raises ComponentError: The first stop failure, after all components were attempted.
        """
        state = self.state
        if state in (AppState.STOPPING, AppState.STOPPED):
            logger.debug("Application already %s", state)
            return

        failed = state is AppState.FAILED
        if not failed:
            self._set_state(AppState.STOPPING)
        self._shutdown_requested.set()
        logger.info("Shutting down application %s", self.name)

        await self.event_bus.publish_sync(APPLICATION_STOPPING, self)
        self.health_checker.stop()

        if timeout is None:
            timeout = self.shutdown_timeout
        ctx = self.context.with_timeout(timeout)

        errors: list[ComponentError] = []
        for component in self.registry.get_all_components_for_shutdown():
            logger.debug("Stopping component: %s (%s)", component.name, component_status(component))
            try:
                await asyncio.wait_for(component.stop(ctx), timeout=ctx.remaining())
            except Exception as e:
                error = ComponentError(
                    component.name, ComponentOperation.STOP,
                    "failed to stop component", cause=e
                )
                logger.error("%s", error)
                errors.append(error)
                self.metrics.record_error()
                self.event_bus.publish(COMPONENT_STOP_ERROR, {
                    "component": component.name,
                    "error": error,
                })

        self.context.cancel()
        if not failed:
            self._set_state(AppState.STOPPED)
        await self.event_bus.publish_sync(APPLICATION_STOPPED, self)
        logger.info("Application %s stopped", self.name)

        if errors:
            raise errors[0]

    # -- introspection -----------------------------------------------------

    def get_health_status(self) -> dict[str, Any]:
        failures = self.health_checker.status()
        state = self.state
        return {
            "state": str(state),
            "healthy": state is AppState.RUNNING and not failures,
            "last_check": self.health_checker.last_check,
            "components": {
                name: str(component_status(component))
                for name, component in sorted(self.registry.get_all_components().items())
            },
            "failures": {name: str(error) for name, error in failures.items()},
        }

    def get_metrics(self) -> dict[str, Any]:
        metrics = self.metrics.snapshot()
        metrics.update(
            name=self.name,
            version=self.version,
            state=str(self.state),
            registry=self.registry.get_metrics(),
        )
        return metrics

    def __repr__(self) -> str:
        return f"Application(name={self.name!r}, state={self.state})"
