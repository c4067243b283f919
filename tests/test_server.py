from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest
from aiohttp.test_utils import TestClient, TestServer

from pynotionpoll.models.changes import ChangeSet
from pynotionpoll.models.result import InvocationResult
from pynotionpoll.server import create_app


@dataclass
class FakeInvoker:
    result: InvocationResult
    calls: int = 0
    running: int = 0
    max_running: int = 0

    async def invoke(self) -> InvocationResult:
        self.calls += 1
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await asyncio.sleep(0.01)
            return self.result
        finally:
            self.running -= 1


@pytest.mark.asyncio
async def test_post_returns_counts() -> None:
    invoker = FakeInvoker(InvocationResult.success(ChangeSet(created=("a", "b"), deleted=("c",))))

    async with TestClient(TestServer(create_app(invoker))) as client:
        resp = await client.post("/")
        body = await resp.json()

    assert resp.status == 200
    assert body == {"message": "Polling complete", "createdCount": 2, "updatedCount": 0, "deletedCount": 1}


@pytest.mark.asyncio
async def test_failed_invocation_returns_500_with_error() -> None:
    invoker = FakeInvoker(InvocationResult.failure(RuntimeError("HTTP 502 from /v1/databases/x/query")))

    async with TestClient(TestServer(create_app(invoker))) as client:
        resp = await client.post("/")
        body = await resp.json()

    assert resp.status == 500
    assert body == {"error": "HTTP 502 from /v1/databases/x/query"}


@pytest.mark.asyncio
async def test_concurrent_requests_are_serialized() -> None:
    invoker = FakeInvoker(InvocationResult.success(ChangeSet()))

    async with TestClient(TestServer(create_app(invoker))) as client:
        responses = await asyncio.gather(*(client.post("/") for _ in range(3)))

    assert [r.status for r in responses] == [200, 200, 200]
    assert invoker.calls == 3
    assert invoker.max_running == 1


@pytest.mark.asyncio
async def test_healthz() -> None:
    async with TestClient(TestServer(create_app(FakeInvoker(InvocationResult.success(ChangeSet()))))) as client:
        resp = await client.get("/healthz")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}
