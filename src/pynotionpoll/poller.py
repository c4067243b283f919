"""Poll orchestration: fetch, compare, notify, persist."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pynotionpoll.detector import detect_changes
from pynotionpoll.dispatch import DispatchReport, NotificationDispatcher
from pynotionpoll.exceptions import PollerError, SourceFetchError
from pynotionpoll.models.changes import ChangeSet
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.models.state import RecordSnapshot, VersionMarkerMap
from pynotionpoll.source import CollectionSource, fetch_snapshot
from pynotionpoll.state.store import StateStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollOutcome:
    """Everything one successful poll observed and did."""

    changes: ChangeSet
    current: VersionMarkerMap
    report: DispatchReport


def _first_error(results: list[object]) -> BaseException | None:
    errors = [r for r in results if isinstance(r, BaseException)]
    for error in errors:
        if not isinstance(error, Exception):
            raise error
    if len(errors) > 1:
        for extra in errors[1:]:
            _logger.error("Additional failure in the same phase: %s", extra)
    return errors[0] if errors else None


class Poller:
    """Run one poll of a collection against the persisted state.

    The source, state store and dispatcher are injected; the poller holds
    no other state and may be invoked repeatedly. It assumes at most one
    invocation mutates the state at a time.
    """

    def __init__(
        self,
        source: CollectionSource,
        state: StateStore,
        dispatcher: NotificationDispatcher,
        *,
        persist_after_dispatch: bool = False,
    ) -> None:
        self._source = source
        self._state = state
        self._dispatcher = dispatcher
        self._persist_after_dispatch = persist_after_dispatch

    async def _fetch(self) -> tuple[VersionMarkerMap, RecordSnapshot]:
        try:
            return await fetch_snapshot(self._source)
        except PollerError:
            raise
        except Exception as exc:
            raise SourceFetchError(f"Fetching current state failed: {exc}") from exc

    async def run(self) -> PollOutcome:
        """Poll once, raising the first failure.

        Fetch and load run concurrently, as do dispatch and persist. Both
        tasks of a phase are always awaited before a failure is raised.
        """
        fetched, loaded = await asyncio.gather(self._fetch(), self._state.load_previous(), return_exceptions=True)
        error = _first_error([fetched, loaded])
        if error is not None:
            raise error
        assert isinstance(fetched, tuple)  # noqa: S101
        assert isinstance(loaded, dict)  # noqa: S101
        current, records = fetched

        changes = detect_changes(loaded, current)
        _logger.info("Detected changes: %s", changes.counts())

        if self._persist_after_dispatch:
            report = await self._dispatcher.dispatch(changes, records)
            await self._state.save_persisted(current)
        else:
            dispatched, saved = await asyncio.gather(
                self._dispatcher.dispatch(changes, records),
                self._state.save_persisted(current),
                return_exceptions=True,
            )
            error = _first_error([dispatched, saved])
            if error is not None:
                raise error
            assert isinstance(dispatched, DispatchReport)  # noqa: S101
            report = dispatched

        return PollOutcome(changes=changes, current=current, report=report)

    async def invoke(self) -> InvocationResult:
        """Poll once and report the outcome instead of raising."""
        try:
            outcome = await self.run()
        except Exception as exc:
            _logger.exception("Error in poll invocation")
            return InvocationResult.failure(exc)
        return InvocationResult.success(outcome.changes)
