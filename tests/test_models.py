from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from pynotionpoll.models import ChangeSet, EventType, InvocationResult, NotificationEvent, PersistedState


def test_event_wire_format_uses_event_type_for_every_variant() -> None:
    record = {"id": "p1", "last_edited_time": "t1", "url": "https://www.notion.so/p1"}

    created = json.loads(NotificationEvent.created(record).to_message())
    updated = json.loads(NotificationEvent.updated(record).to_message())
    deleted = json.loads(NotificationEvent.deleted("p2").to_message())

    assert created == {"eventType": "page-created", "payload": record}
    assert updated == {"eventType": "page-updated", "payload": record}
    assert deleted == {"eventType": "page-deleted", "payload": {"id": "p2"}}


def test_event_parses_from_wire_alias() -> None:
    event = NotificationEvent.model_validate({"eventType": "page-deleted", "payload": {"id": "x"}})

    assert event.event_type is EventType.DELETED
    assert event.item_id == "x"


@pytest.mark.parametrize("payload", [{}, {"id": ""}, {"id": 7}])
def test_event_requires_string_id(payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        NotificationEvent(event_type=EventType.CREATED, payload=payload)


def test_unknown_event_type_rejected() -> None:
    with pytest.raises(ValidationError):
        NotificationEvent.model_validate({"eventTYpe": "page-updated", "payload": {"id": "x"}})


def test_persisted_state_is_strict() -> None:
    assert PersistedState.model_validate({"a": "t1"}).markers() == {"a": "t1"}
    with pytest.raises(ValidationError):
        PersistedState.model_validate({"a": 1})


def test_change_set_counts() -> None:
    changes = ChangeSet(created=("a", "b"), updated=("c",))

    assert changes.counts() == {"created": 2, "updated": 1, "deleted": 0}
    assert changes.total == 3
    assert not changes.is_empty


def test_invocation_result_failure_body() -> None:
    result = InvocationResult.failure(ValueError("Invalid state URI: nope"))

    assert result.ok is False
    assert result.status_code == 500
    assert result.to_body() == {"error": "Invalid state URI: nope"}


def test_invocation_result_failure_without_message_uses_type_name() -> None:
    assert InvocationResult.failure(TimeoutError()).error == "TimeoutError"
