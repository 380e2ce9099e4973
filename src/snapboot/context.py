"""
Component context.

A :class:`ComponentContext` is handed to every factory and lifecycle call. It
lets components look up their peers by name, read properties, launch
background work that is cancelled with the application, and observe an
optional deadline (shutdown uses a context bounded by the shutdown timeout).
"""
import asyncio
import logging
import time
import weakref
from typing import Any, Coroutine, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .components.protocols import Component
    from .components.registry import ComponentRegistry
    from .config.properties import PropertySource
    from .events import EventBus

logger = logging.getLogger(__name__)


class ComponentContext:

    def __init__(
            self,
            registry: Optional["ComponentRegistry"] = None,
            properties: Optional["PropertySource"] = None,
            event_bus: Optional["EventBus"] = None,
            deadline: Optional[float] = None,
            parent: Optional["ComponentContext"] = None
    ) -> None:
        self.registry = registry
        self.properties = properties
        self.event_bus = event_bus
        self.deadline = deadline
        self._parent = parent
        self._cancelled = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()
        self._children: weakref.WeakSet["ComponentContext"] = weakref.WeakSet()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def with_timeout(self, timeout: Optional[float]) -> "ComponentContext":
        """
        Derive a child context bounded by ``timeout`` seconds.

        The child shares this context's collaborators and is cancelled with it.
        A ``None`` timeout keeps the parent's deadline.
        """
        deadline = self.deadline
        if timeout is not None:
            child_deadline = time.monotonic() + timeout
            deadline = child_deadline if deadline is None else min(deadline, child_deadline)
        child = ComponentContext(
            registry=self.registry,
            properties=self.properties,
            event_bus=self.event_bus,
            deadline=deadline,
            parent=self,
        )
        self._children.add(child)
        return child

    def create_task(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """
        Run background work bound to this context.

        The task is cancelled when the context is cancelled.
        """
        if self._parent is not None:
            return self._parent.create_task(coro, name=name)
        task = asyncio.get_running_loop().create_task(coro, name=name)
        if self.cancelled:
            task.cancel()
            return task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def cancel(self) -> None:
        """Cancel the context, its children and every task launched under it."""
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        for child in list(self._children):
            child.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        logger.debug("Context cancelled (%d background tasks)", len(tasks))

    async def wait_cancelled(self) -> None:
        """Block until the context is cancelled."""
        await self._cancelled.wait()

    async def get_component(self, name: str) -> Optional["Component"]:
        """Look up a peer component by name."""
        if self.registry is None:
            return None
        return await self.registry.get_component(name)
