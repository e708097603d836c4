"""Lifecycle events and the hub they are emitted through."""

from .event_hub import EventHandler, EventHub, EventHubError, InProcessEventHub, create_event_hub
from .lifecycle import EventType, LifecycleEvent

__all__ = [
    "EventHandler",
    "EventHub",
    "EventHubError",
    "InProcessEventHub",
    "create_event_hub",
    "EventType",
    "LifecycleEvent",
]
