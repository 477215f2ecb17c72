"""
Synchronous event emitter for queue and transfer notifications.

Listeners are registered per event name (wildcards allowed) and are called
in priority order, on the caller's stack, as soon as an event is emitted.
"""

import asyncio
import fnmatch
import time
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ..domain.events import Event, EventPriority


class EventSubscription:
    """Represents an event subscription."""

    def __init__(self, subscription_id: str, event_pattern: str,
                 handler: Callable[[Event], Any], priority: EventPriority):
        self.subscription_id = subscription_id
        self.event_pattern = event_pattern
        self.handler = handler
        self.priority = priority
        self.created_at = time.time()
        self.call_count = 0
        self.last_called: Optional[float] = None
        self.error_count = 0


class EventEmitter:
    """
    Per-kind listener registry.

    A listener that raises is logged and counted; the remaining listeners
    still run and the emitter's caller is never interrupted. Coroutine
    listeners are scheduled on the running loop.
    """

    def __init__(self, source: Any = None):
        self._source = source
        self._subscriptions: Dict[str, List[EventSubscription]] = defaultdict(list)
        self._wildcard_subscriptions: List[EventSubscription] = []
        self._background_tasks: set = set()

        # Metrics
        self._metrics: Dict[str, Any] = {
            'events_emitted': 0,
            'handlers_called': 0,
            'handlers_failed': 0,
        }

    def subscribe(self, event_name: str, handler: Callable[[Event], Any],
                  priority: EventPriority = EventPriority.NORMAL) -> str:
        """Subscribe to events with the given name pattern."""
        event_name = str(getattr(event_name, 'value', event_name))
        subscription_id = str(uuid.uuid4())
        subscription = EventSubscription(
            subscription_id=subscription_id,
            event_pattern=event_name,
            handler=handler,
            priority=priority
        )

        if '*' in event_name or '?' in event_name:
            self._wildcard_subscriptions.append(subscription)
            self._wildcard_subscriptions.sort(key=lambda s: s.priority.value, reverse=True)
        else:
            self._subscriptions[event_name].append(subscription)
            self._subscriptions[event_name].sort(key=lambda s: s.priority.value, reverse=True)

        logger.debug(f"Added subscription for '{event_name}' (ID: {subscription_id})")
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Unsubscribe using subscription ID."""
        for event_name, subscriptions in self._subscriptions.items():
            for i, subscription in enumerate(subscriptions):
                if subscription.subscription_id == subscription_id:
                    subscriptions.pop(i)
                    logger.debug(f"Removed subscription {subscription_id} for '{event_name}'")
                    return True

        for i, subscription in enumerate(self._wildcard_subscriptions):
            if subscription.subscription_id == subscription_id:
                self._wildcard_subscriptions.pop(i)
                logger.debug(f"Removed wildcard subscription {subscription_id}")
                return True

        return False

    def emit(self, event_name: str, data: Any = None) -> Event:
        """
        Deliver an event to every matching listener.

        Args:
            event_name: Event name
            data: Event payload

        Returns:
            The delivered event
        """
        event = Event(
            name=str(getattr(event_name, 'value', event_name)),
            data=data,
            source=self._source
        )
        self._metrics['events_emitted'] += 1

        matching = list(self._subscriptions.get(event.name, ()))
        for subscription in self._wildcard_subscriptions:
            if fnmatch.fnmatch(event.name, subscription.event_pattern):
                matching.append(subscription)
        matching.sort(key=lambda s: s.priority.value, reverse=True)

        for subscription in matching:
            self._call(subscription, event)

        return event

    def listener_count(self) -> int:
        """Count registered listeners."""
        return (sum(len(subs) for subs in self._subscriptions.values())
                + len(self._wildcard_subscriptions))

    def get_metrics(self) -> Dict[str, Any]:
        return {
            **self._metrics,
            'subscriptions_count': self.listener_count(),
            'pending_tasks': len(self._background_tasks)
        }

    def _call(self, subscription: EventSubscription, event: Event) -> None:
        try:
            result = subscription.handler(event)
            if asyncio.iscoroutine(result):
                self._schedule(result, subscription, event)

            subscription.call_count += 1
            subscription.last_called = time.time()
            self._metrics['handlers_called'] += 1

        except Exception as e:
            subscription.error_count += 1
            self._metrics['handlers_failed'] += 1
            logger.error(f"Handler error for event {event.name}: {e}")

    def _schedule(self, coro: Any, subscription: EventSubscription, event: Event) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            raise RuntimeError("Coroutine listeners require a running event loop")

        task = loop.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(lambda t: self._on_listener_done(t, subscription, event))

    def _on_listener_done(self, task: 'asyncio.Task[Any]', subscription: EventSubscription,
                          event: Event) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            subscription.error_count += 1
            self._metrics['handlers_failed'] += 1
            logger.error(f"Async handler error for event {event.name}: {error}")
