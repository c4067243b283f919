"""Message bus publishers.

The dispatcher only needs ``publish(topic, data) -> ack``. Delivery is
at-least-once and unordered; consumers must tolerate duplicates.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from pynotionpoll.config import PollerConfig
from pynotionpoll.exceptions import ConfigError, PublishError

_logger = logging.getLogger(__name__)


class MessageBus(Protocol):
    """Structural bus interface used by :class:`NotificationDispatcher`."""

    async def publish(self, topic: str, data: bytes) -> str:
        ...


@dataclass(frozen=True)
class PublishedMessage:
    topic: str
    data: bytes
    ack: str


@dataclass
class MemoryBus:
    """Bus that keeps every message in memory (dry runs, tests)."""

    messages: list[PublishedMessage] = field(default_factory=list)
    _counter: itertools.count[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    async def publish(self, topic: str, data: bytes) -> str:
        ack = str(next(self._counter))
        self.messages.append(PublishedMessage(topic=topic, data=bytes(data), ack=ack))
        return ack


class MqttBus:
    """Threaded paho-mqtt publisher driven from asyncio.

    Messages are published with QoS 1 so the broker acknowledges each one
    (PUBACK); ``publish`` resolves only once that acknowledgement arrived.

    Usage::

        async with MqttBus(host="broker.local") as bus:
            await bus.publish("notion-events", b"{...}")
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 1883,
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
        keepalive: int = 60,
        client_id: str | None = None,
        qos: int = 1,
        connect_timeout: float = 30.0,
        publish_timeout: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._tls = tls
        self._keepalive = keepalive
        self._client_id = client_id or f"pynotionpoll_{secrets.token_hex(6)}"
        self._qos = qos
        self._connect_timeout = connect_timeout
        self._publish_timeout = publish_timeout
        self._logger = logger or _logger
        self._client: mqtt.Client | None = None

    @classmethod
    def from_config(cls, config: PollerConfig) -> MqttBus:
        if not config.mqtt_host:
            raise ConfigError("NOTION_POLL_MQTT_HOST is not set")
        return cls(
            host=config.mqtt_host,
            port=config.mqtt_port,
            username=config.mqtt_username,
            password=config.mqtt_password,
            tls=config.mqtt_tls,
            keepalive=config.mqtt_keepalive,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected()

    async def __aenter__(self) -> MqttBus:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Connect to the broker and wait for CONNACK."""
        await self.aclose()
        loop = asyncio.get_running_loop()
        connected: asyncio.Future[None] = loop.create_future()

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if self._username:
            client.username_pw_set(self._username, self._password)
        if self._tls:
            client.tls_set()

        def _resolve(reason_code: Any) -> None:
            if connected.done():
                return
            if reason_code.value != 0:
                connected.set_exception(PublishError(f"MQTT connect to {self._host} failed: {reason_code}"))
            else:
                connected.set_result(None)

        def on_connect(
            _c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            loop.call_soon_threadsafe(_resolve, reason_code)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect

        self._logger.debug("MQTT connecting host=%s port=%s client_id=%s", self._host, self._port, self._client_id)
        try:
            await asyncio.to_thread(client.connect, self._host, self._port, self._keepalive)
        except OSError as exc:
            raise PublishError(f"MQTT connect to {self._host}:{self._port} failed: {exc}") from exc
        client.loop_start()
        self._client = client

        try:
            await asyncio.wait_for(connected, self._connect_timeout)
        except TimeoutError as exc:
            await self.aclose()
            raise PublishError(f"MQTT connect to {self._host}:{self._port} timed out") from exc
        except PublishError:
            await self.aclose()
            raise
        self._logger.debug("MQTT connected")

    def stop(self) -> None:
        """Disconnect and stop the network loop if running."""
        client = self._client
        self._client = None
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    async def aclose(self) -> None:
        """:meth:`stop` on a worker thread; ``loop_stop`` joins paho's network thread."""
        if self._client is not None:
            await asyncio.to_thread(self.stop)

    def _wait_published(self, info: mqtt.MQTTMessageInfo) -> None:
        info.wait_for_publish(self._publish_timeout)
        if not info.is_published():
            raise PublishError(f"MQTT publish mid={info.mid} not acknowledged within {self._publish_timeout}s")

    async def publish(self, topic: str, data: bytes) -> str:
        client = self._client
        if client is None:
            raise PublishError("MQTT bus not started. Use 'async with MqttBus(...) as bus:'")

        info = client.publish(topic, payload=data, qos=self._qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"MQTT publish to {topic} failed: {mqtt.error_string(info.rc)}")
        try:
            await asyncio.to_thread(self._wait_published, info)
        except (RuntimeError, ValueError) as exc:
            raise PublishError(f"MQTT publish to {topic} failed: {exc}") from exc
        return str(info.mid)
