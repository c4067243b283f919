"""Single-slot blob stores holding the serialized state.

Every store is last-writer-wins: ``save`` overwrites unconditionally and
there is no compare-and-swap. A missing blob loads as ``None``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import ClientError

from pynotionpoll.exceptions import ConfigError

_logger = logging.getLogger(__name__)

_S3_URI = re.compile(r"^s3://([^/]+)/(.+)$")
_FILE_URI = re.compile(r"^file://(.+)$")
_MEMORY_URI = re.compile(r"^memory://(.+)$")

_S3_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class BlobStore(Protocol):
    """Structural blob store interface used by :class:`StateStore`."""

    async def load(self, key: str) -> bytes | None:
        ...

    async def save(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        content_encoding: str | None = None,
    ) -> None:
        ...


@dataclass(frozen=True)
class StoredBlob:
    data: bytes
    content_type: str | None = None
    content_encoding: str | None = None


@dataclass
class MemoryBlobStore:
    """In-process store; useful for tests and dry runs."""

    blobs: dict[str, StoredBlob] = field(default_factory=dict)

    async def load(self, key: str) -> bytes | None:
        blob = self.blobs.get(key)
        return None if blob is None else blob.data

    async def save(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        content_encoding: str | None = None,
    ) -> None:
        self.blobs[key] = StoredBlob(data=bytes(data), content_type=content_type, content_encoding=content_encoding)


@dataclass
class DryRunBlobStore:
    """Reads through to *backing*; saves are kept in memory only.

    A blob saved during the dry run shadows the backing one for later
    loads, so repeated dry runs still see their own output.
    """

    backing: BlobStore
    writes: MemoryBlobStore = field(default_factory=MemoryBlobStore)

    async def load(self, key: str) -> bytes | None:
        if key in self.writes.blobs:
            return await self.writes.load(key)
        return await self.backing.load(key)

    async def save(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        content_encoding: str | None = None,
    ) -> None:
        await self.writes.save(key, data, content_type=content_type, content_encoding=content_encoding)
        _logger.info("Dry run: state %s (%d bytes) kept in memory, not persisted", key, len(data))


class FileBlobStore:
    """Blobs stored as files below a base directory.

    Writes go to a temporary file in the same directory that is then
    renamed over the target, so readers never see a half-written blob.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self._base_dir / key

    def _read(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def load(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read, key)

    async def save(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        content_encoding: str | None = None,
    ) -> None:
        # Plain files have no metadata slot; compression is detected from the bytes.
        await asyncio.to_thread(self._write, key, data)
        _logger.debug("Wrote %d bytes to %s", len(data), self._path(key))


class S3BlobStore:
    """Blobs stored as objects in one S3 (or S3-compatible) bucket."""

    def __init__(self, bucket: str, *, client: Any | None = None, endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        self._client = client if client is not None else boto3.client("s3", endpoint_url=endpoint_url)

    def _get(self, key: str) -> bytes | None:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _S3_MISSING_CODES:
                return None
            raise
        body = response["Body"]
        try:
            return bytes(body.read())
        finally:
            body.close()

    def _put(self, key: str, data: bytes, content_type: str | None, content_encoding: str | None) -> None:
        kwargs: dict[str, Any] = {"Bucket": self._bucket, "Key": key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        if content_encoding:
            kwargs["ContentEncoding"] = content_encoding
        self._client.put_object(**kwargs)

    async def load(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get, key)

    async def save(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
        content_encoding: str | None = None,
    ) -> None:
        await asyncio.to_thread(self._put, key, data, content_type, content_encoding)
        _logger.debug("Uploaded %d bytes to s3://%s/%s", len(data), self._bucket, key)


@dataclass(frozen=True)
class StateLocation:
    """Parsed state URI."""

    scheme: str
    key: str
    bucket: str = ""

    @property
    def store_key(self) -> str:
        """Key of the state blob inside the store this location opens."""
        if self.scheme == "file":
            return Path(self.key).name
        return self.key


def parse_state_uri(uri: str) -> StateLocation:
    """Split a state URI into scheme, bucket and key.

    Supported forms: ``s3://bucket/key``, ``file://path`` and
    ``memory://key``.

    Raises
    ------
    ConfigError
        If the URI matches none of the supported forms.
    """
    value = uri.strip()
    match = _S3_URI.match(value)
    if match:
        return StateLocation(scheme="s3", bucket=match.group(1), key=match.group(2))
    match = _FILE_URI.match(value)
    if match:
        return StateLocation(scheme="file", key=match.group(1))
    match = _MEMORY_URI.match(value)
    if match:
        return StateLocation(scheme="memory", key=match.group(1))
    raise ConfigError(f"Invalid state URI: {uri}")


def open_blob_store(uri: str) -> tuple[BlobStore, str]:
    """Build the blob store for *uri* and return it with the state key."""
    location = parse_state_uri(uri)
    if location.scheme == "s3":
        return S3BlobStore(location.bucket), location.store_key
    if location.scheme == "file":
        return FileBlobStore(Path(location.key).parent), location.store_key
    return MemoryBlobStore(), location.store_key
