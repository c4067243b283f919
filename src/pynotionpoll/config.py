"""Poller configuration for pynotionpoll."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pynotionpoll._constants import (
    DEFAULT_NOTION_BASE_URL,
    DEFAULT_NOTION_VERSION,
    DEFAULT_STATE_URI,
    DEFAULT_TOPIC,
    MAX_PAGE_SIZE,
)
from pynotionpoll.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env: Any, key: str) -> int | None:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class PollerConfig:
    """Poller configuration.

    Parameters
    ----------
    database_id : str
        Notion database whose pages are polled.
    notion_api_key : str or None
        Integration token sent as a bearer token to the Notion API.
    state_uri : str
        Where the version-marker map is persisted. See
        :func:`pynotionpoll.state.blobs.parse_state_uri`.
    topic : str
        Message bus topic events are published to.
    notion_base_url : str
        Notion API base URL.
    notion_version : str
        Value of the ``Notion-Version`` header.
    page_size : int
        Page size requested per query call (1-100).
    compress_state : bool
        Gzip the persisted state blob.
    persist_after_dispatch : bool
        Save state only once every event was published, instead of
        concurrently with publishing.
    mqtt_host : str or None
        MQTT broker host. ``None`` means no broker is configured.
    mqtt_port : int
        MQTT broker port.
    mqtt_username : str or None
        MQTT username.
    mqtt_password : str or None
        MQTT password.
    mqtt_tls : bool
        Connect to the broker over TLS.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    server_host : str
        Bind address for ``pynotionpoll serve``.
    server_port : int
        Bind port for ``pynotionpoll serve``.
    """

    database_id: str
    notion_api_key: str | None = dataclasses.field(default=None, repr=False)
    state_uri: str = DEFAULT_STATE_URI
    topic: str = DEFAULT_TOPIC
    notion_base_url: str = DEFAULT_NOTION_BASE_URL
    notion_version: str = DEFAULT_NOTION_VERSION
    page_size: int = MAX_PAGE_SIZE
    compress_state: bool = True
    persist_after_dispatch: bool = False
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = dataclasses.field(default=None, repr=False)
    mqtt_tls: bool = False
    mqtt_keepalive: int = 60
    server_host: str = "0.0.0.0"  # noqa: S104
    server_port: int = 8080

    def __post_init__(self) -> None:
        if not self.database_id or not self.database_id.strip():
            raise ConfigError("database_id must be non-empty")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")
        if not self.topic:
            raise ConfigError("topic must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> PollerConfig:
        """Create configuration from environment variables.

        Reads ``NOTION_API_KEY``, ``NOTION_DATABASE_ID`` and optional
        ``NOTION_POLL_*`` variables. ``DATABASE_ID`` and ``PUBSUB_TOPIC``
        are honoured as fallbacks for older deployments. Explicit keyword
        arguments override environment values.

        Raises
        ------
        ConfigError
            If the database id is missing or a numeric variable is malformed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "NOTION_API_KEY": "notion_api_key",
            "NOTION_BASE_URL": "notion_base_url",
            "NOTION_VERSION": "notion_version",
            "NOTION_POLL_STATE_URI": "state_uri",
            "NOTION_POLL_MQTT_HOST": "mqtt_host",
            "NOTION_POLL_MQTT_USERNAME": "mqtt_username",
            "NOTION_POLL_MQTT_PASSWORD": "mqtt_password",
            "NOTION_POLL_HOST": "server_host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        database_id = env.get("NOTION_DATABASE_ID") or env.get("DATABASE_ID")
        if database_id is not None:
            config_kwargs["database_id"] = database_id

        topic = env.get("NOTION_POLL_TOPIC") or env.get("PUBSUB_TOPIC")
        if topic is not None:
            config_kwargs["topic"] = topic

        _ENV_INT_MAP = {
            "NOTION_POLL_PAGE_SIZE": "page_size",
            "NOTION_POLL_MQTT_PORT": "mqtt_port",
            "NOTION_POLL_MQTT_KEEPALIVE": "mqtt_keepalive",
            "NOTION_POLL_PORT": "server_port",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            if field_name in overrides:
                continue
            number = _env_int(env, env_key)
            if number is not None:
                config_kwargs[field_name] = number

        if "compress_state" not in overrides:
            config_kwargs["compress_state"] = _env_bool(env.get("NOTION_POLL_COMPRESS_STATE"), True)
        if "persist_after_dispatch" not in overrides:
            config_kwargs["persist_after_dispatch"] = _env_bool(
                env.get("NOTION_POLL_PERSIST_AFTER_DISPATCH"),
                False,
            )
        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("NOTION_POLL_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        if "database_id" not in config_kwargs:
            raise ConfigError("NOTION_DATABASE_ID is not set")

        return cls(**config_kwargs)
