from __future__ import annotations

import pytest

from pynotionpoll.config import PollerConfig
from pynotionpoll.exceptions import ConfigError

_ENV_VARS = (
    "NOTION_API_KEY",
    "NOTION_DATABASE_ID",
    "DATABASE_ID",
    "NOTION_POLL_TOPIC",
    "PUBSUB_TOPIC",
    "NOTION_POLL_STATE_URI",
    "NOTION_POLL_PAGE_SIZE",
    "NOTION_POLL_COMPRESS_STATE",
    "NOTION_POLL_PERSIST_AFTER_DISPATCH",
    "NOTION_POLL_MQTT_HOST",
    "NOTION_POLL_MQTT_PORT",
    "NOTION_POLL_MQTT_TLS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTION_API_KEY", "secret_abc")
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-1")
    monkeypatch.setenv("NOTION_POLL_STATE_URI", "s3://bucket/state.json")
    monkeypatch.setenv("NOTION_POLL_PAGE_SIZE", "50")
    monkeypatch.setenv("NOTION_POLL_COMPRESS_STATE", "off")
    monkeypatch.setenv("NOTION_POLL_MQTT_HOST", "broker.local")
    monkeypatch.setenv("NOTION_POLL_MQTT_PORT", "8883")
    monkeypatch.setenv("NOTION_POLL_MQTT_TLS", "yes")

    config = PollerConfig.from_env()

    assert config.notion_api_key == "secret_abc"
    assert config.database_id == "db-1"
    assert config.state_uri == "s3://bucket/state.json"
    assert config.page_size == 50
    assert config.compress_state is False
    assert config.persist_after_dispatch is False
    assert config.mqtt_host == "broker.local"
    assert config.mqtt_port == 8883
    assert config.mqtt_tls is True
    assert config.topic == "notion-events"


def test_legacy_variable_names_are_fallbacks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_ID", "legacy-db")
    monkeypatch.setenv("PUBSUB_TOPIC", "legacy-topic")

    config = PollerConfig.from_env()

    assert config.database_id == "legacy-db"
    assert config.topic == "legacy-topic"


def test_overrides_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-1")
    monkeypatch.setenv("NOTION_POLL_TOPIC", "from-env")
    monkeypatch.setenv("NOTION_POLL_PAGE_SIZE", "not-a-number")

    config = PollerConfig.from_env(topic="explicit", page_size=10, persist_after_dispatch=True)

    assert config.topic == "explicit"
    assert config.page_size == 10
    assert config.persist_after_dispatch is True


def test_missing_database_id_is_config_error() -> None:
    with pytest.raises(ConfigError, match="NOTION_DATABASE_ID"):
        PollerConfig.from_env()


def test_malformed_integer_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-1")
    monkeypatch.setenv("NOTION_POLL_MQTT_PORT", "eighteen")

    with pytest.raises(ConfigError, match="NOTION_POLL_MQTT_PORT"):
        PollerConfig.from_env()


@pytest.mark.parametrize("page_size", [0, 101])
def test_page_size_bounds(page_size: int) -> None:
    with pytest.raises(ConfigError, match="page_size"):
        PollerConfig(database_id="db-1", page_size=page_size)


def test_secrets_hidden_from_repr() -> None:
    config = PollerConfig(database_id="db-1", notion_api_key="secret_abc", mqtt_password="hunter2")

    assert "secret_abc" not in repr(config)
    assert "hunter2" not in repr(config)
