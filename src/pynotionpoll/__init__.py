"""pynotionpoll - Async poller that turns Notion database edits into change events."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pynotionpoll")
except PackageNotFoundError:
    __version__ = "0+local"
from pynotionpoll.bus import MemoryBus, MessageBus, MqttBus
from pynotionpoll.config import PollerConfig
from pynotionpoll.detector import detect_changes
from pynotionpoll.dispatch import DispatchReport, NotificationDispatcher
from pynotionpoll.exceptions import (
    ConfigError,
    DispatchError,
    PersistError,
    PollerError,
    PublishError,
    PublishFailure,
    SourceFetchError,
    StateLoadError,
    StateValidationError,
)
from pynotionpoll.models import (
    ChangeSet,
    EventType,
    InvocationResult,
    NotificationEvent,
    PersistedState,
    RecordSnapshot,
    VersionMarkerMap,
)
from pynotionpoll.poller import PollOutcome, Poller
from pynotionpoll.runtime import PollerRuntime
from pynotionpoll.source import CollectionSource, NotionDatabaseSource, SourceRecord, fetch_snapshot
from pynotionpoll.state.blobs import (
    BlobStore,
    DryRunBlobStore,
    FileBlobStore,
    MemoryBlobStore,
    S3BlobStore,
    parse_state_uri,
)
from pynotionpoll.state.store import StateStore

__all__ = [
    "__version__",
    "BlobStore",
    "ChangeSet",
    "CollectionSource",
    "ConfigError",
    "DispatchError",
    "DispatchReport",
    "DryRunBlobStore",
    "EventType",
    "FileBlobStore",
    "InvocationResult",
    "MemoryBlobStore",
    "MemoryBus",
    "MessageBus",
    "MqttBus",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotionDatabaseSource",
    "PersistError",
    "PersistedState",
    "PollOutcome",
    "Poller",
    "PollerConfig",
    "PollerError",
    "PollerRuntime",
    "PublishError",
    "PublishFailure",
    "RecordSnapshot",
    "S3BlobStore",
    "SourceFetchError",
    "SourceRecord",
    "StateLoadError",
    "StateStore",
    "StateValidationError",
    "VersionMarkerMap",
    "detect_changes",
    "fetch_snapshot",
    "parse_state_uri",
]
