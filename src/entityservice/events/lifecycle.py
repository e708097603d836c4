"""
Lifecycle Events

Records of committed entity mutations. One event is emitted per
successful create, update or delete, after the store acknowledged the
write.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Names of the lifecycle events emitted by the entity service"""
    ENTRY_CREATE = "entry.create"
    ENTRY_UPDATE = "entry.update"
    ENTRY_DELETE = "entry.delete"


@dataclass(frozen=True)
class LifecycleEvent:
    """
    One emitted event as delivered to subscribers.

    ``payload`` carries ``uid`` (content type), ``model`` (model name) and
    ``entry`` (the resulting entity, private attributes removed).
    """
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def uid(self) -> Optional[str]:
        return self.payload.get("uid")

    @property
    def entry(self) -> Optional[Dict[str, Any]]:
        return self.payload.get("entry")

    @classmethod
    def for_entry(cls, event_type: EventType, uid: str, entry: Dict[str, Any],
                  model_name: Optional[str] = None) -> 'LifecycleEvent':
        return cls(
            name=event_type.value,
            payload={"uid": uid, "model": model_name or uid, "entry": entry},
        )
