"""Custom exception hierarchy for pynotionpoll."""

from __future__ import annotations

from dataclasses import dataclass


class PollerError(Exception):
    """Base exception for all pynotionpoll errors."""


class ConfigError(PollerError):
    """Invalid or missing configuration."""


class StateValidationError(PollerError):
    """Persisted state exists but is not a flat id -> version marker mapping.

    Never treated as "no previous state": a corrupt baseline would
    re-announce every item as created.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class StateLoadError(PollerError):
    """Reading the state blob failed at the storage layer."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class SourceFetchError(PollerError):
    """Listing the remote collection failed or ended mid-pagination."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class PublishError(PollerError):
    """The message bus rejected or never acknowledged a message."""


@dataclass(frozen=True)
class PublishFailure:
    """A single event that could not be handed to the message bus."""

    event_type: str
    item_id: str
    error: BaseException


class DispatchError(PollerError):
    """One or more event publishes failed.

    ``published`` counts the events the bus did acknowledge, so the caller
    can tell a partial batch from a total failure.
    """

    def __init__(
        self,
        message: str,
        *,
        failures: tuple[PublishFailure, ...] = (),
        published: int = 0,
    ) -> None:
        self.failures = failures
        self.published = published
        super().__init__(message)


class PersistError(PollerError):
    """Writing the new state blob failed."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
