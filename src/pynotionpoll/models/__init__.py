"""Pydantic models for pynotionpoll."""

from pynotionpoll.models.changes import ChangeSet
from pynotionpoll.models.events import EventType, NotificationEvent
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.models.state import PersistedState, RecordSnapshot, VersionMarkerMap

__all__ = [
    "ChangeSet",
    "EventType",
    "InvocationResult",
    "NotificationEvent",
    "PersistedState",
    "RecordSnapshot",
    "VersionMarkerMap",
]
