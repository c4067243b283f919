"""Version-marker map and record snapshot types."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, RootModel, StrictStr

VersionMarkerMap = dict[str, str]
"""Item id -> opaque version marker (Notion: ``last_edited_time``)."""

RecordSnapshot = dict[str, dict[str, Any]]
"""Item id -> full record, for ids seen in the current fetch only."""


class PersistedState(RootModel[dict[StrictStr, StrictStr]]):
    """Schema of the persisted state blob: a flat string -> string object.

    Strict strings keep a numeric or nested marker from being coerced into
    something that would silently compare unequal on the next run.
    """

    model_config = ConfigDict(frozen=True)

    def markers(self) -> VersionMarkerMap:
        return dict(self.root)
