"""
Component registry.

The registry stores components by name, creates components from factories on
demand, resolves factory dependencies into a creation order and reports the
sorted order used by every lifecycle phase.
"""
import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Optional, TYPE_CHECKING

from .protocols import Component, ComponentFactory, ComponentHealthChecker
from .types import ComponentType, TYPE_ORDER
from ..context import ComponentContext
from ..errors import (
    ComponentError,
    ComponentExists,
    ComponentOperation,
    DependencyError,
)

if TYPE_CHECKING:
    from ..config.properties import PropertySource

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass
class RegistryMetrics:
    component_count: int = 0
    factory_count: int = 0
    dependency_resolution_time: float = 0.0
    health_check_count: int = 0
    failed_components: list[str] = field(default_factory=list)


class DefaultHealthChecker:
    """
    Runs ``component.health_check()`` and returns the raised exception.

    :param timeout: Optional bound, in seconds, for a single check.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    async def check_health(self, component: Component) -> Optional[BaseException]:
        try:
            if self.timeout is None:
                await component.health_check()
            else:
                await asyncio.wait_for(component.health_check(), timeout=self.timeout)
        except Exception as e:
            return e
        return None


def _sort_key(component: Component) -> tuple[int, str]:
    if isinstance(component.type, ComponentType):
        rank = component.type.rank
    else:
        rank = len(TYPE_ORDER)
    return rank, component.name


class ComponentRegistry:
    """
    Thread-safe component store with factory support.

    :param properties: Property source handed to factories.
    :param health_checker: Strategy used by :meth:`health_check`.
    """

    def __init__(
            self,
            properties: "PropertySource",
            health_checker: Optional[ComponentHealthChecker] = None
    ) -> None:
        self.properties = properties
        self.health_checker: ComponentHealthChecker = health_checker or DefaultHealthChecker()

        self._lock = threading.RLock()
        self._metrics_lock = threading.Lock()
        self._components: dict[str, Component] = {}
        self._factories: dict[str, ComponentFactory] = {}
        self._dependencies: dict[str, list[str]] = {}
        self._graph: dict[str, list[str]] = {}
        self._creation_locks: dict[str, asyncio.Lock] = {}
        self._failed_attempts: dict[str, int] = {}
        self._metrics = RegistryMetrics()
        self._context: Optional["ComponentContext"] = None

    # -- registration ------------------------------------------------------

    def register_component(self, component: Component) -> None:
        """
        Register a ready-made component.

        :raises ComponentError: If a component with the same name exists.
        """
        name = component.name
        with self._lock:
            if name in self._components:
                raise ComponentError(
                    name, ComponentOperation.REGISTER,
                    "component already registered",
                    cause=ComponentExists(name)
                )
            self._components[name] = component
            count = len(self._components)

        with self._metrics_lock:
            self._metrics.component_count = count
        logger.debug("Registered component: %s (%s)", name, component.type)

    def register_factory(self, name: str, factory: ComponentFactory) -> None:
        """
        Register a factory after validating its configuration.

        Dependencies do not need to be registered yet; they are checked by
        :meth:`resolve_dependencies`.

        :raises ComponentError: If the factory rejects the current properties.
        """
        try:
            factory.validate_config(self.properties)
        except Exception as e:
            raise ComponentError(
                name, ComponentOperation.REGISTER, "invalid configuration", cause=e
            ) from e

        with self._lock:
            if name in self._factories:
                logger.warning("Replacing factory for component: %s", name)
            self._factories[name] = factory
            self._dependencies[name] = list(factory.dependencies())
            self._graph = {key: list(deps) for key, deps in self._dependencies.items()}
            count = len(self._factories)

        with self._metrics_lock:
            self._metrics.factory_count = count
        logger.debug("Registered factory: %s (depends on: %s)", name, self._dependencies[name])

    def set_factory_context(self, ctx: "ComponentContext") -> None:
        """Set the context passed to ``factory.create``."""
        self._context = ctx

    def _factory_context(self) -> "ComponentContext":
        if self._context is None:
            self._context = ComponentContext(registry=self, properties=self.properties)
        return self._context

    # -- lookup ------------------------------------------------------------

    async def get_component(self, name: str) -> Optional[Component]:
        """
        Return a component, creating it from its factory if needed.

        Concurrent callers trigger at most one creation. A failed creation is
        recorded in the metrics and yields None, also for callers that were
        waiting on it.
        """
        with self._lock:
            component = self._components.get(name)
            factory = self._factories.get(name)
            attempt = self._failed_attempts.get(name, 0)
        if component is not None:
            return component
        if factory is None:
            return None

        async with self._creation_lock(name):
            with self._lock:
                component = self._components.get(name)
                failed_meanwhile = self._failed_attempts.get(name, 0) != attempt
            if component is not None:
                return component
            if failed_meanwhile:
                return None
            try:
                component = await factory.create(self._factory_context(), self.properties)
            except Exception:
                logger.exception("Failed to create component: %s", name)
                self._record_failure(name)
                return None
            self._store_created(name, component)
        return component

    def get_component_by_type(self, component_type: ComponentType) -> Optional[Component]:
        """Return the first component (by name) of the given type."""
        matches = self.get_components_by_type(component_type)
        return matches[0] if matches else None

    def get_components_by_type(self, component_type: ComponentType) -> list[Component]:
        with self._lock:
            components = list(self._components.values())
        return sorted(
            (c for c in components if c.type == component_type),
            key=lambda c: c.name
        )

    def get_all_components(self) -> dict[str, Component]:
        with self._lock:
            return dict(self._components)

    def get_all_components_sorted(self) -> list[Component]:
        """Components grouped by type (infrastructure first), names ascending."""
        with self._lock:
            components = list(self._components.values())
        return sorted(components, key=_sort_key)

    def get_all_components_for_shutdown(self) -> list[Component]:
        return list(reversed(self.get_all_components_sorted()))

    def has_component(self, name: str) -> bool:
        with self._lock:
            return name in self._components

    def has_factory(self, name: str) -> bool:
        with self._lock:
            return name in self._factories

    def get_factory(self, name: str) -> Optional[ComponentFactory]:
        with self._lock:
            return self._factories.get(name)

    def factory_names(self) -> list[str]:
        with self._lock:
            return sorted(self._factories)

    def dependency_graph(self) -> dict[str, list[str]]:
        with self._lock:
            return {key: list(deps) for key, deps in self._graph.items()}

    # -- resolution --------------------------------------------------------

    async def resolve_dependencies(self) -> None:
        """
        Create every factory-backed component in dependency order.

        :raises DependencyError: On a dependency cycle or a missing dependency.
        :raises ComponentError: If a factory fails to create its component.
        """
        started = time.perf_counter()
        try:
            with self._lock:
                dependencies = {key: list(deps) for key, deps in self._dependencies.items()}
                present = set(self._components)

            self._detect_cycles(dependencies)
            order = self._creation_order(dependencies, present)
            logger.debug("Component creation order: %s", order)

            for name in order:
                await self._instantiate(name)
        finally:
            elapsed = time.perf_counter() - started
            with self._metrics_lock:
                self._metrics.dependency_resolution_time = elapsed

    @staticmethod
    def _detect_cycles(dependencies: dict[str, list[str]]) -> None:
        color: dict[str, int] = {}

        for root in sorted(dependencies):
            if color.get(root, _WHITE) != _WHITE:
                continue
            color[root] = _GREY
            path = [root]
            stack = [iter(dependencies[root])]
            while stack:
                for dep in stack[-1]:
                    state = color.get(dep, _WHITE)
                    if state == _GREY:
                        cycle = path[path.index(dep):] + [dep]
                        raise DependencyError("circular dependency detected", cycle, component=path[-1])
                    if state == _WHITE and dep in dependencies:
                        color[dep] = _GREY
                        path.append(dep)
                        stack.append(iter(dependencies[dep]))
                        break
                else:
                    stack.pop()
                    color[path.pop()] = _BLACK

    @staticmethod
    def _creation_order(dependencies: dict[str, list[str]], present: set[str]) -> list[str]:
        in_degree = {name: 0 for name in dependencies}
        dependents: dict[str, list[str]] = {name: [] for name in dependencies}

        for name in sorted(dependencies):
            for dep in dependencies[name]:
                # Only edges between factory nodes; existing components are satisfied.
                if dep in dependencies and dep not in present:
                    in_degree[name] += 1
                    dependents[dep].append(name)

        queue = deque(sorted(name for name, degree in in_degree.items() if degree == 0))
        order: list[str] = []
        while queue:
            name = queue.popleft()
            order.append(name)
            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(order) != len(dependencies):
            residual = sorted(name for name, degree in in_degree.items() if degree > 0)
            raise DependencyError("circular dependency detected", residual)
        return order

    async def _instantiate(self, name: str) -> None:
        with self._lock:
            if name in self._components:
                return
            factory = self._factories[name]
            dependencies = list(self._dependencies.get(name, ()))

        for dep in dependencies:
            if not self.has_component(dep):
                raise DependencyError(
                    f"component {name}: dependency {dep} not found",
                    [name, dep],
                    component=name
                )

        async with self._creation_lock(name):
            if self.has_component(name):
                return
            logger.debug("Creating component: %s", name)
            try:
                component = await factory.create(self._factory_context(), self.properties)
            except Exception as e:
                self._record_failure(name)
                raise ComponentError(
                    name, ComponentOperation.CREATE, "failed to create component", cause=e
                ) from e
            self._store_created(name, component)

    def _creation_lock(self, name: str) -> asyncio.Lock:
        with self._lock:
            lock = self._creation_locks.get(name)
            if lock is None:
                lock = self._creation_locks[name] = asyncio.Lock()
            return lock

    def _store_created(self, name: str, component: Component) -> None:
        with self._lock:
            self._components[name] = component
            count = len(self._components)
        with self._metrics_lock:
            self._metrics.component_count = count
        logger.debug("Created component: %s", name)

    # -- health & metrics --------------------------------------------------

    async def health_check(self) -> dict[str, BaseException]:
        """
        Check every registered component.

        :return: Failures keyed by component name; healthy components are absent.
        """
        with self._lock:
            components = sorted(self._components.items())

        results: dict[str, BaseException] = {}
        for name, component in components:
            error = await self.health_checker.check_health(component)
            if error is not None:
                logger.debug("Health check failed for %s: %s", name, error)
                results[name] = error

        with self._metrics_lock:
            self._metrics.health_check_count += 1
            for name in results:
                if name not in self._metrics.failed_components:
                    self._metrics.failed_components.append(name)
        return results

    def _record_failure(self, name: str) -> None:
        with self._lock:
            self._failed_attempts[name] = self._failed_attempts.get(name, 0) + 1
        with self._metrics_lock:
            if name not in self._metrics.failed_components:
                self._metrics.failed_components.append(name)

    def get_metrics(self) -> RegistryMetrics:
        with self._metrics_lock:
            return replace(self._metrics, failed_components=list(self._metrics.failed_components))
