"""HTTP trigger: one poll invocation per request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from aiohttp import web

from pynotionpoll.config import PollerConfig
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.runtime import PollerRuntime

_logger = logging.getLogger(__name__)


class Invoker(Protocol):
    async def invoke(self) -> InvocationResult:
        ...


INVOKER_KEY: web.AppKey[Invoker] = web.AppKey("invoker")
LOCK_KEY: web.AppKey[asyncio.Lock] = web.AppKey("invocation_lock")


async def handle_poll(request: web.Request) -> web.Response:
    # Serialized so at most one invocation in this process mutates the state.
    async with request.app[LOCK_KEY]:
        result = await request.app[INVOKER_KEY].invoke()
    return web.json_response(result.to_body(), status=result.status_code)


async def handle_health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(invoker: Invoker) -> web.Application:
    app = web.Application()
    app[INVOKER_KEY] = invoker
    app[LOCK_KEY] = asyncio.Lock()
    app.router.add_post("/", handle_poll)
    app.router.add_get("/healthz", handle_health)
    return app


def build_app(config: PollerConfig, *, dry_run: bool = False) -> web.Application:
    """Web application whose poller runtime lives as long as the app."""
    runtime = PollerRuntime(config, dry_run=dry_run)
    app = create_app(runtime)

    async def _runtime_ctx(_app: web.Application) -> AsyncIterator[None]:
        async with runtime:
            _logger.info("Poller ready for database %s, topic %s", config.database_id, config.topic)
            yield

    app.cleanup_ctx.append(_runtime_ctx)
    return app


def serve(config: PollerConfig, *, dry_run: bool = False) -> None:
    web.run_app(build_app(config, dry_run=dry_run), host=config.server_host, port=config.server_port)
