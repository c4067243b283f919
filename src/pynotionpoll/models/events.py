"""Notification events published for each detected change.

Wire format::

    {"eventType": "page-created", "payload": {...full page...}}
    {"eventType": "page-updated", "payload": {...full page...}}
    {"eventType": "page-deleted", "payload": {"id": "<page id>"}}

Every variant uses the same ``eventType`` field name.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventType(StrEnum):
    CREATED = "page-created"
    UPDATED = "page-updated"
    DELETED = "page-deleted"


class NotificationEvent(BaseModel):
    """A single change notification."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: EventType = Field(..., alias="eventType")
    payload: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _require_id(self) -> NotificationEvent:
        item_id = self.payload.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise ValueError("payload must carry a non-empty string 'id'")
        return self

    @classmethod
    def created(cls, record: dict[str, Any]) -> NotificationEvent:
        return cls(event_type=EventType.CREATED, payload=record)

    @classmethod
    def updated(cls, record: dict[str, Any]) -> NotificationEvent:
        return cls(event_type=EventType.UPDATED, payload=record)

    @classmethod
    def deleted(cls, item_id: str) -> NotificationEvent:
        # The record only existed in the previous observation, so the id is all we have.
        return cls(event_type=EventType.DELETED, payload={"id": item_id})

    @property
    def item_id(self) -> str:
        return str(self.payload["id"])

    def to_message(self) -> bytes:
        """Compact JSON encoding sent over the bus."""
        return self.model_dump_json(by_alias=True).encode("utf-8")
