"""
Named publish/subscribe event bus.

Listeners are callables receiving ``(event_name, event_data)``; they may be
plain functions or coroutine functions. :meth:`EventBus.publish` delivers
asynchronously (one task per listener) and never blocks the publisher, while
:meth:`EventBus.publish_sync` delivers in subscription order on the caller's
task. A failing listener is logged and never affects the publisher or the
other listeners.
"""
import asyncio
import inspect
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

# Type aliases
EventListener = Callable[[str, Any], Union[None, Awaitable[None]]]

# Application events
APPLICATION_INITIALIZED = "application.initialized"
APPLICATION_STARTED = "application.started"
APPLICATION_STOPPING = "application.stopping"
APPLICATION_STOPPED = "application.stopped"
APPLICATION_STATE_CHANGED = "application.state.changed"
HEALTH_CHECK_FAILED = "application.health_check.failed"
HEALTH_CHECK_PASSED = "application.health_check.passed"
COMPONENT_STOP_ERROR = "component.stop.error"

_token_ids = itertools.count(1)


@dataclass(frozen=True)
class Subscription:
    """Token returned by :meth:`EventBus.subscribe`; removes exactly its listener."""
    event_name: str
    listener: EventListener = field(compare=False)
    id: int = field(default_factory=lambda: next(_token_ids))


class EventBus:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Subscription]] = {}
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, event_name: str, listener: EventListener) -> Subscription:
        """
        Register a listener for an event.

        :param event_name: Event to listen for.
        :param listener: Callable ``(event_name, event_data)``, sync or async.
        :return: A token accepted by :meth:`unsubscribe`.
        """
        subscription = Subscription(event_name, listener)
        with self._lock:
            self._listeners.setdefault(event_name, []).append(subscription)
        logger.debug("Subscribed listener to %s", event_name)
        return subscription

    def unsubscribe(self, event_name: str, listener: Union[Subscription, EventListener]) -> bool:
        """
        Remove one listener.

        A :class:`Subscription` removes exactly the subscription it was
        returned for; a bare callable removes its first registration,
        matched by identity.

        :return: Whether a listener was removed.
        """
        with self._lock:
            subscriptions = self._listeners.get(event_name)
            if not subscriptions:
                return False
            for index, subscription in enumerate(subscriptions):
                if isinstance(listener, Subscription):
                    matched = subscription.id == listener.id
                else:
                    matched = subscription.listener is listener
                if matched:
                    del subscriptions[index]
                    if not subscriptions:
                        del self._listeners[event_name]
                    logger.debug("Unsubscribed listener from %s", event_name)
                    return True
        return False

    def has_listeners(self, event_name: str) -> bool:
        with self._lock:
            return bool(self._listeners.get(event_name))

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()
        logger.debug("Cleared all event listeners")

    def _snapshot(self, event_name: str) -> list[EventListener]:
        with self._lock:
            return [s.listener for s in self._listeners.get(event_name, ())]

    def publish(self, event_name: str, event_data: Any = None) -> None:
        """
        Deliver an event to every listener without waiting for them.

        With a running event loop each listener runs in its own task; otherwise
        each runs in its own daemon thread.
        """
        listeners = self._snapshot(event_name)
        if not listeners:
            return

        logger.debug("Publishing %s to %d listeners", event_name, len(listeners))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for listener in listeners:
            if loop is not None:
                task = loop.create_task(self._deliver(listener, event_name, event_data))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
            else:
                threading.Thread(
                    target=asyncio.run,
                    args=(self._deliver(listener, event_name, event_data),),
                    name=f"event-{event_name}",
                    daemon=True
                ).start()

    async def publish_sync(self, event_name: str, event_data: Any = None) -> None:
        """Deliver an event to every listener in order, awaiting each."""
        for listener in self._snapshot(event_name):
            await self._deliver(listener, event_name, event_data)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for asynchronous deliveries started on this loop to finish."""
        pending = list(self._pending)
        if pending:
            await asyncio.wait(pending, timeout=timeout)

    @staticmethod
    async def _deliver(listener: EventListener, event_name: str, event_data: Any) -> None:
        try:
            result = listener(event_name, event_data)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception("Error in event listener for %s: %s", event_name, e)
