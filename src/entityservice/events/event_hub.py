"""
Event Hub - Lifecycle Event Pub/Sub

🚀 Fire-and-Forget Publishing:
The entity service announces committed mutations through an event hub.
Emission never blocks or fails the surrounding write: delivery runs in
the background and subscriber errors are isolated, counted and logged by
the hub.

Key Features:
- Abstract hub interface for pluggability
- In-process implementation for single-process deployments
- Subscriptions filtered by event name
- Sync and async handlers
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

from .lifecycle import LifecycleEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[LifecycleEvent], Union[None, Awaitable[None]]]


class EventHubError(Exception):
    """Base exception for event hub errors"""
    pass


class EventHubMetrics:
    """Counters for emitted events and failing handlers"""

    def __init__(self):
        self.events_emitted = 0
        self.events_delivered = 0
        self.handler_errors = 0
        self.start_time = datetime.now()

    def get_summary(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "events_emitted": self.events_emitted,
            "events_delivered": self.events_delivered,
            "handler_errors": self.handler_errors,
        }


class Subscription:
    """Represents a subscription to lifecycle events"""

    def __init__(self, subscription_id: str, handler: EventHandler,
                 event_names: Optional[Iterable[str]] = None):
        self.subscription_id = subscription_id
        self.handler = handler
        self.event_names = set(event_names) if event_names else None
        self.created_at = datetime.now()
        self.events_handled = 0
        self.errors = 0

    def should_handle(self, event: LifecycleEvent) -> bool:
        return self.event_names is None or event.name in self.event_names

    async def handle_event(self, event: LifecycleEvent):
        try:
            result = self.handler(event)
            if asyncio.iscoroutine(result):
                await result
            self.events_handled += 1
        except Exception:
            self.errors += 1
            raise


class EventHub(ABC):
    """
    Abstract event hub interface.

    Implementations may deliver in-process or forward to an external
    broker; the entity service relies on nothing but ``emit``.
    """

    @abstractmethod
    async def emit(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Emit an event to all interested subscribers.

        Must not wait for subscribers nor raise because of a failing one.

        Args:
            event_name: Event name, e.g. ``entry.create``
            payload: Event payload
        """
        pass

    @abstractmethod
    async def subscribe(self, handler: EventHandler,
                        event_names: Optional[Iterable[str]] = None) -> str:
        """
        Subscribe a handler.

        Args:
            handler: Sync or async callable receiving a ``LifecycleEvent``
            event_names: Only deliver these events (all events when None)

        Returns:
            Subscription id for ``unsubscribe``
        """
        pass

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        pass


class InProcessEventHub(EventHub):
    """
    In-process event hub.

    ``emit`` schedules delivery as a task on the caller's event loop and
    returns without waiting for subscribers. Handlers of one event run
    concurrently; one failing handler never prevents delivery to the
    others. ``drain`` waits for every delivery still in flight.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.metrics = EventHubMetrics()
        self._subscriptions: Dict[str, Subscription] = {}
        self._pending: Set[asyncio.Task] = set()

    async def emit(self, event_name: str, payload: Dict[str, Any]) -> None:
        if not self.enabled:
            logger.debug(f"Event hub disabled, dropping {event_name}")
            return

        event = LifecycleEvent(name=event_name, payload=payload)
        self.metrics.events_emitted += 1

        subscriptions = [s for s in self._subscriptions.values() if s.should_handle(event)]
        if not subscriptions:
            return

        task = asyncio.create_task(self._deliver(event, subscriptions))
        self._pending.add(task)
        task.add_done_callback(self._delivery_done)

    async def _deliver(self, event: LifecycleEvent, subscriptions: List[Subscription]):
        results = await asyncio.gather(
            *(subscription.handle_event(event) for subscription in subscriptions),
            return_exceptions=True,
        )
        for subscription, result in zip(subscriptions, results):
            if isinstance(result, Exception):
                self.metrics.handler_errors += 1
                logger.error(
                    f"Handler {subscription.subscription_id} failed on {event.name}: {result}",
                    exc_info=result,
                )
            else:
                self.metrics.events_delivered += 1

    def _delivery_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Event delivery failed: {task.exception()}", exc_info=task.exception())

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight deliveries.

        Args:
            timeout: Seconds to wait; no limit when None

        Returns:
            True if every delivery finished, False on timeout
        """
        if not self._pending:
            return True
        _, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        return not pending

    @property
    def pending_deliveries(self) -> int:
        return len(self._pending)

    async def subscribe(self, handler: EventHandler,
                        event_names: Optional[Iterable[str]] = None) -> str:
        subscription_id = str(uuid.uuid4())
        self._subscriptions[subscription_id] = Subscription(subscription_id, handler, event_names)
        logger.debug(f"Added subscription {subscription_id} for {event_names or 'all events'}")
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def get_metrics(self) -> Dict[str, Any]:
        metrics = self.metrics.get_summary()
        metrics["active_subscriptions"] = len(self._subscriptions)
        metrics["pending_deliveries"] = len(self._pending)
        return metrics


def create_event_hub(hub_type: str = "InProcessEventHub", **config) -> EventHub:
    """Factory function for creating event hubs"""
    if hub_type == "InProcessEventHub":
        return InProcessEventHub(enabled=config.get("enabled", True))
    raise ValueError(f"Unknown event hub type: {hub_type}")
