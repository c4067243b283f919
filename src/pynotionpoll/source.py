"""Remote collection sources.

A source yields every record of one collection snapshot. Exhaustive
pagination is the source's job; a listing that cannot be completed raises
:class:`SourceFetchError` rather than returning a partial snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pynotionpoll._constants import MAX_PAGE_SIZE
from pynotionpoll._transport import Transport
from pynotionpoll.exceptions import SourceFetchError
from pynotionpoll.models.state import RecordSnapshot, VersionMarkerMap

_logger = logging.getLogger(__name__)


class SourceRecord(BaseModel):
    """One item of the collection with its version marker."""

    model_config = ConfigDict(frozen=True)

    id: str
    version_marker: str
    record: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", "version_marker")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must be non-empty")
        return value


class CollectionSource(Protocol):
    """Lazy, finite listing; each call to ``iter_records`` restarts it."""

    def iter_records(self) -> AsyncIterator[SourceRecord]:
        ...


class NotionDatabaseSource:
    """Pages of one Notion database, keyed by page id.

    The version marker is the page's ``last_edited_time``.
    """

    def __init__(self, transport: Transport, database_id: str, *, page_size: int = MAX_PAGE_SIZE) -> None:
        self._transport = transport
        self._database_id = database_id
        self._page_size = page_size

    @property
    def endpoint(self) -> str:
        return f"/v1/databases/{self._database_id}/query"

    def _to_record(self, page: Any) -> SourceRecord:
        if not isinstance(page, dict):
            raise SourceFetchError(f"Non-object result in {self.endpoint}", endpoint=self.endpoint)
        try:
            return SourceRecord(id=page.get("id"), version_marker=page.get("last_edited_time"), record=page)
        except ValidationError as exc:
            raise SourceFetchError(
                f"Malformed page in {self.endpoint}: {exc.errors()[0]['loc']} {exc.errors()[0]['msg']}",
                endpoint=self.endpoint,
            ) from exc

    async def iter_records(self) -> AsyncIterator[SourceRecord]:
        cursor: str | None = None
        pages = 0
        while True:
            body: dict[str, Any] = {"page_size": self._page_size}
            if cursor is not None:
                body["start_cursor"] = cursor
            response = await self._transport.post_json(self.endpoint, body)
            pages += 1

            results = response.get("results")
            if not isinstance(results, list):
                raise SourceFetchError(f"Missing 'results' list from {self.endpoint}", endpoint=self.endpoint)
            for page in results:
                yield self._to_record(page)

            if not response.get("has_more"):
                _logger.debug("Listing %s finished after %d pages", self.endpoint, pages)
                return

            next_cursor = response.get("next_cursor")
            if not isinstance(next_cursor, str) or not next_cursor:
                raise SourceFetchError(
                    f"Listing {self.endpoint} truncated: has_more without next_cursor after {pages} pages",
                    endpoint=self.endpoint,
                )
            cursor = next_cursor


async def fetch_snapshot(source: CollectionSource) -> tuple[VersionMarkerMap, RecordSnapshot]:
    """Drain *source* into a version-marker map and a record snapshot."""
    _logger.info("Fetching current state from source...")
    markers: VersionMarkerMap = {}
    records: RecordSnapshot = {}
    async for item in source.iter_records():
        if item.id in markers:
            _logger.debug("Item %s listed more than once; keeping the later entry", item.id)
        markers[item.id] = item.version_marker
        records[item.id] = item.record
    _logger.info("Fetched %d items", len(markers))
    return markers, records
