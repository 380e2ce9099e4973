"""
Periodic health polling.

The :class:`HealthChecker` runs the registry's aggregate health check every
``interval`` seconds, keeps the latest result and publishes
``application.health_check.passed`` or ``application.health_check.failed``.
"""
import asyncio
import logging
import threading
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from .events import HEALTH_CHECK_FAILED, HEALTH_CHECK_PASSED

if TYPE_CHECKING:
    from .components.registry import ComponentRegistry
    from .context import ComponentContext
    from .events import EventBus
    from .metrics import ApplicationMetrics

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class HealthChecker:

    def __init__(
            self,
            registry: "ComponentRegistry",
            interval: float = DEFAULT_INTERVAL,
            event_bus: Optional["EventBus"] = None,
            metrics: Optional["ApplicationMetrics"] = None
    ) -> None:
        if interval <= 0:
            logger.warning("Invalid health check interval %s, using %s", interval, DEFAULT_INTERVAL)
            interval = DEFAULT_INTERVAL
        self.registry = registry
        self.interval = interval
        self.event_bus = event_bus
        self.metrics = metrics

        self._lock = threading.Lock()
        self._status: dict[str, BaseException] = {}
        self._last_check: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None
        self._stopped: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_check(self) -> Optional[datetime]:
        with self._lock:
            return self._last_check

    def status(self) -> dict[str, BaseException]:
        """Failures from the latest check; empty when everything is healthy."""
        with self._lock:
            return dict(self._status)

    def start(self, ctx: "ComponentContext") -> None:
        """Start polling under ``ctx``; cancelling the context stops the poller."""
        if self.running:
            return
        self._stopped = asyncio.Event()
        self._task = ctx.create_task(self._run(self._stopped), name="health-checker")
        logger.debug("Health checker started (interval: %ss)", self.interval)

    def stop(self) -> None:
        if self._stopped is not None:
            self._stopped.set()
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Health checker stopped")

    async def _run(self, stopped: asyncio.Event) -> None:
        while not stopped.is_set():
            try:
                await asyncio.wait_for(stopped.wait(), timeout=self.interval)
                return
            except TimeoutError:
                pass
            try:
                await self.check_now()
            except Exception:
                logger.exception("Health check cycle failed")

    async def check_now(self) -> dict[str, BaseException]:
        """Run one health check cycle and publish its outcome."""
        results = await self.registry.health_check()

        with self._lock:
            self._last_check = datetime.now()
            self._status = dict(results)

        if self.metrics is not None:
            self.metrics.record_health_check(len(results))

        if results:
            logger.warning("Health check failed for: %s", ", ".join(sorted(results)))
            if self.event_bus is not None:
                self.event_bus.publish(HEALTH_CHECK_FAILED, dict(results))
        elif self.event_bus is not None:
            self.event_bus.publish(HEALTH_CHECK_PASSED, None)
        return results
