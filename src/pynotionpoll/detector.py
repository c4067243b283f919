"""Version-marker comparison.

Pure and deterministic: no I/O, inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping

from pynotionpoll.models.changes import ChangeSet


def detect_changes(previous: Mapping[str, str], current: Mapping[str, str]) -> ChangeSet:
    """Compare two version-marker maps.

    - id only in *current*: created
    - id in both with a different marker (exact ``!=``, no coercion): updated
    - id only in *previous*: deleted

    Created and updated ids follow *current*'s iteration order, deleted ids
    follow *previous*'s; callers must not rely on either.
    """
    created: list[str] = []
    updated: list[str] = []

    for item_id, marker in current.items():
        if item_id not in previous:
            created.append(item_id)
        elif previous[item_id] != marker:
            updated.append(item_id)

    deleted = [item_id for item_id in previous if item_id not in current]

    return ChangeSet(created=tuple(created), updated=tuple(updated), deleted=tuple(deleted))
