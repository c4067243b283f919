from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pynotionpoll._transport import NotionTransport
from pynotionpoll.config import PollerConfig
from pynotionpoll.exceptions import ConfigError, SourceFetchError


def _config(server: TestServer, **overrides: Any) -> PollerConfig:
    kwargs: dict[str, Any] = {
        "database_id": "db-1",
        "notion_api_key": "secret_token",
        "notion_base_url": str(server.make_url("/")),
    }
    kwargs.update(overrides)
    return PollerConfig(**kwargs)


def _app(status: int, text: str, seen: list[dict[str, Any]]) -> web.Application:
    async def handler(request: web.Request) -> web.Response:
        seen.append({"headers": request.headers.copy(), "body": await request.json()})
        return web.Response(status=status, text=text, content_type="application/json")

    app = web.Application()
    app.router.add_post("/v1/databases/db-1/query", handler)
    return app


@pytest.mark.asyncio
async def test_post_json_sends_notion_headers() -> None:
    seen: list[dict[str, Any]] = []
    async with TestServer(_app(200, json.dumps({"results": []}), seen)) as server, aiohttp.ClientSession() as http:
        transport = NotionTransport(_config(server), http)

        result = await transport.post_json("/v1/databases/db-1/query", {"page_size": 10})

    assert result == {"results": []}
    assert seen[0]["body"] == {"page_size": 10}
    assert seen[0]["headers"]["Authorization"] == "Bearer secret_token"
    assert seen[0]["headers"]["Notion-Version"] == "2022-06-28"


@pytest.mark.asyncio
async def test_non_200_raises_source_fetch_error() -> None:
    seen: list[dict[str, Any]] = []
    async with TestServer(_app(429, '{"code":"rate_limited"}', seen)) as server, aiohttp.ClientSession() as http:
        transport = NotionTransport(_config(server), http)

        with pytest.raises(SourceFetchError) as excinfo:
            await transport.post_json("/v1/databases/db-1/query", {})

    assert excinfo.value.status_code == 429
    assert excinfo.value.endpoint == "/v1/databases/db-1/query"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["<html>oops</html>", "[1, 2]"])
async def test_unusable_body_raises_source_fetch_error(text: str) -> None:
    seen: list[dict[str, Any]] = []
    async with TestServer(_app(200, text, seen)) as server, aiohttp.ClientSession() as http:
        transport = NotionTransport(_config(server), http)

        with pytest.raises(SourceFetchError):
            await transport.post_json("/v1/databases/db-1/query", {})


@pytest.mark.asyncio
async def test_connection_error_raises_source_fetch_error() -> None:
    config = PollerConfig(database_id="db-1", notion_api_key="k", notion_base_url="http://127.0.0.1:9")
    async with aiohttp.ClientSession() as http:
        transport = NotionTransport(config, http)

        with pytest.raises(SourceFetchError, match="failed"):
            await transport.post_json("/v1/databases/db-1/query", {})


@pytest.mark.asyncio
async def test_api_key_required() -> None:
    async with aiohttp.ClientSession() as http:
        with pytest.raises(ConfigError, match="NOTION_API_KEY"):
            NotionTransport(PollerConfig(database_id="db-1"), http)
