"""Persisted version-marker state.

This is the only component that reads or writes the state blob. It owns
the serialization format; the blob store only moves bytes.
"""

from __future__ import annotations

import gzip
import json
import logging
import zlib
from collections.abc import Mapping

from pydantic import ValidationError

from pynotionpoll._constants import GZIP_ENCODING, GZIP_MAGIC, STATE_CONTENT_TYPE
from pynotionpoll.exceptions import PersistError, StateLoadError, StateValidationError
from pynotionpoll.models.state import PersistedState, VersionMarkerMap
from pynotionpoll.state.blobs import BlobStore

_logger = logging.getLogger(__name__)


def encode_state(state: Mapping[str, str], *, compress: bool) -> bytes:
    """Serialize *state* as compact UTF-8 JSON, optionally gzipped."""
    raw = json.dumps(dict(state), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if compress:
        return gzip.compress(raw)
    return raw


def decode_state(data: bytes, *, key: str = "") -> VersionMarkerMap:
    """Parse a state blob, accepting both gzipped and plain JSON.

    Raises
    ------
    StateValidationError
        If the blob cannot be decompressed, is not JSON, or is not a flat
        string -> string object.
    """
    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise StateValidationError(f"State blob {key!r} is not valid gzip: {exc}", key=key) from exc

    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StateValidationError(f"State blob {key!r} is not JSON: {exc}", key=key) from exc

    try:
        return PersistedState.model_validate(parsed).markers()
    except ValidationError as exc:
        raise StateValidationError(
            f"State blob {key!r} is not a mapping of string ids to string markers: {exc}",
            key=key,
        ) from exc


class StateStore:
    """Load and persist the id -> version marker map in a single blob slot."""

    def __init__(self, blobs: BlobStore, key: str, *, compress: bool = True) -> None:
        if not key:
            raise ValueError("state key must be non-empty")
        self._blobs = blobs
        self._key = key
        self._compress = compress

    @property
    def key(self) -> str:
        return self._key

    async def load_previous(self) -> VersionMarkerMap:
        """Return the persisted map, or ``{}`` if nothing was stored yet."""
        try:
            data = await self._blobs.load(self._key)
        except Exception as exc:
            raise StateLoadError(f"Failed to load state {self._key!r}: {exc}", key=self._key) from exc

        if data is None:
            _logger.info("No previous state at %s; treating as first run", self._key)
            return {}

        _logger.info("Loading previous state from %s (%d bytes)", self._key, len(data))
        state = decode_state(data, key=self._key)
        _logger.debug("Previous state holds %d items", len(state))
        return state

    async def save_persisted(self, state: Mapping[str, str]) -> None:
        """Overwrite the stored map with *state* (last writer wins)."""
        data = encode_state(state, compress=self._compress)
        _logger.info("Saving state with %d items to %s", len(state), self._key)
        try:
            await self._blobs.save(
                self._key,
                data,
                content_type=STATE_CONTENT_TYPE,
                content_encoding=GZIP_ENCODING if self._compress else None,
            )
        except Exception as exc:
            raise PersistError(f"Failed to save state {self._key!r}: {exc}", key=self._key) from exc
        _logger.info("State saved to %s", self._key)
