"""Turn a change set into notification events and publish them."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pynotionpoll.bus import MessageBus
from pynotionpoll.exceptions import DispatchError, PublishFailure
from pynotionpoll.models.changes import ChangeSet
from pynotionpoll.models.events import NotificationEvent

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchReport:
    """Acknowledgements for a fully published batch."""

    published: int
    acks: tuple[str, ...] = ()


def build_events(changes: ChangeSet, records: Mapping[str, dict[str, Any]]) -> list[NotificationEvent]:
    """Build one event per changed id.

    Raises
    ------
    DispatchError
        If a created or updated id has no record in *records*. Nothing has
        been published at that point.
    """
    missing = [item_id for item_id in (*changes.created, *changes.updated) if item_id not in records]
    if missing:
        raise DispatchError(f"No record fetched for changed ids: {', '.join(missing)}")

    events: list[NotificationEvent] = []
    events.extend(NotificationEvent.created(records[item_id]) for item_id in changes.created)
    events.extend(NotificationEvent.updated(records[item_id]) for item_id in changes.updated)
    events.extend(NotificationEvent.deleted(item_id) for item_id in changes.deleted)
    return events


class NotificationDispatcher:
    """Publish change events concurrently to one topic."""

    def __init__(self, bus: MessageBus, topic: str) -> None:
        self._bus = bus
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    async def _publish(self, event: NotificationEvent) -> str:
        ack = await self._bus.publish(self._topic, event.to_message())
        _logger.debug("Published message: %s %s (ack=%s)", event.event_type, event.item_id, ack)
        return ack

    async def dispatch(self, changes: ChangeSet, records: Mapping[str, dict[str, Any]]) -> DispatchReport:
        """Publish every event for *changes* and wait for all of them.

        No ordering is guaranteed between events. Every publish is awaited
        even when some fail; failures are then raised together.

        Raises
        ------
        DispatchError
            If a record is missing or at least one publish failed.
        """
        events = build_events(changes, records)
        if not events:
            _logger.info("No changes to publish")
            return DispatchReport(published=0)

        _logger.info("Publishing %d events to %s", len(events), self._topic)
        results = await asyncio.gather(*(self._publish(event) for event in events), return_exceptions=True)

        acks: list[str] = []
        failures: list[PublishFailure] = []
        for event, result in zip(events, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(PublishFailure(event_type=str(event.event_type), item_id=event.item_id, error=result))
            else:
                acks.append(result)

        if failures:
            first = failures[0]
            raise DispatchError(
                f"{len(failures)} of {len(events)} events failed to publish to {self._topic} "
                f"(first: {first.event_type} {first.item_id}: {first.error})",
                failures=tuple(failures),
                published=len(acks),
            )

        _logger.info("Published %d events to %s", len(acks), self._topic)
        return DispatchReport(published=len(acks), acks=tuple(acks))
