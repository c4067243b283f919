"""JSON-over-HTTP transport for the Notion API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pynotionpoll._constants import USER_AGENT
from pynotionpoll.config import PollerConfig
from pynotionpoll.exceptions import ConfigError, SourceFetchError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the collection source.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`NotionTransport`) concrete.
    """

    async def post_json(self, endpoint: str, body: Mapping[str, Any]) -> dict[str, Any]:
        ...


class NotionTransport:
    """HTTP transport that adds Notion auth/version headers and maps errors."""

    def __init__(self, config: PollerConfig, http_session: aiohttp.ClientSession) -> None:
        if not config.notion_api_key:
            raise ConfigError("NOTION_API_KEY is not set")
        self._base_url = config.notion_base_url.rstrip("/")
        self._http = http_session
        self._headers: dict[str, str] = {
            "authorization": f"Bearer {config.notion_api_key}",
            "notion-version": config.notion_version,
            "content-type": "application/json",
            "user-agent": USER_AGENT,
        }

    async def post_json(self, endpoint: str, body: Mapping[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{endpoint}"
        _logger.debug("POST %s", url)

        try:
            async with self._http.post(url, data=json.dumps(body), headers=self._headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise SourceFetchError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except SourceFetchError:
            raise
        except aiohttp.ClientError as exc:
            raise SourceFetchError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SourceFetchError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(result, dict):
            raise SourceFetchError(f"Response from {endpoint} is not a JSON object", endpoint=endpoint)
        return result
