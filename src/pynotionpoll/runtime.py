"""Composition of the production poller from a :class:`PollerConfig`."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pynotionpoll._transport import NotionTransport
from pynotionpoll.bus import MemoryBus, MessageBus, MqttBus
from pynotionpoll.config import PollerConfig
from pynotionpoll.dispatch import NotificationDispatcher
from pynotionpoll.exceptions import PollerError
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.poller import Poller
from pynotionpoll.source import NotionDatabaseSource
from pynotionpoll.state.blobs import BlobStore, DryRunBlobStore, open_blob_store, parse_state_uri
from pynotionpoll.state.store import StateStore

_logger = logging.getLogger(__name__)


class PollerRuntime:
    """Owns the HTTP session and bus connection a poller needs.

    Usage::

        async with PollerRuntime(PollerConfig.from_env()) as runtime:
            result = await runtime.invoke()

    Collaborators passed in are used as-is and never closed here.
    """

    def __init__(
        self,
        config: PollerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        bus: MessageBus | None = None,
        blobs: BlobStore | None = None,
        dry_run: bool = False,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._external_bus = bus is not None or dry_run
        self._bus: MessageBus | None = MemoryBus() if dry_run and bus is None else bus
        self._blobs = blobs
        self._dry_run = dry_run
        self._poller: Poller | None = None

    @property
    def bus(self) -> MessageBus | None:
        return self._bus

    async def __aenter__(self) -> PollerRuntime:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        try:
            if self._bus is None:
                mqtt_bus = MqttBus.from_config(self._config)
                await mqtt_bus.start()
                self._bus = mqtt_bus
            self._poller = self._build_poller(self._http_session, self._bus)
        except BaseException:
            await self.__aexit__()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._poller = None
        if not self._external_bus and isinstance(self._bus, MqttBus):
            await self._bus.aclose()
            self._bus = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _build_poller(self, http_session: aiohttp.ClientSession, bus: MessageBus) -> Poller:
        config = self._config
        blobs: BlobStore
        if self._blobs is not None:
            blobs, key = self._blobs, parse_state_uri(config.state_uri).store_key
        else:
            blobs, key = open_blob_store(config.state_uri)
        if self._dry_run:
            # Reads the real previous state; the new one never leaves memory.
            blobs = DryRunBlobStore(blobs)
        _logger.debug("State location %s (key %s)", config.state_uri, key)

        transport = NotionTransport(config, http_session)
        return Poller(
            NotionDatabaseSource(transport, config.database_id, page_size=config.page_size),
            StateStore(blobs, key, compress=config.compress_state),
            NotificationDispatcher(bus, config.topic),
            persist_after_dispatch=config.persist_after_dispatch,
        )

    def _require_poller(self) -> Poller:
        if self._poller is None:
            raise PollerError("Runtime not initialized. Use 'async with PollerRuntime(...) as runtime:'")
        return self._poller

    async def invoke(self) -> InvocationResult:
        return await self._require_poller().invoke()
