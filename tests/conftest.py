"""
Shared fixtures: a recording upstream stub, an upstream that drops
connections, and a test client for the dev server app.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from devserver_test_utils import UPSTREAM_PATH, UpstreamStub, make_config, start_client


@pytest.fixture
def upstream_stub() -> UpstreamStub:
    return UpstreamStub()


@pytest_asyncio.fixture
async def upstream_url(upstream_stub: UpstreamStub) -> AsyncGenerator[str, None]:
    app = web.Application()
    app.router.add_post(UPSTREAM_PATH, upstream_stub.handle)
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url(UPSTREAM_PATH))
    finally:
        await server.close()


@pytest_asyncio.fixture
async def dropping_upstream() -> AsyncGenerator[tuple[list[Any], str], None]:
    """Upstream that accepts the connection and closes it without answering."""
    connections: list[Any] = []

    async def on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        connections.append(writer.get_extra_info("peername"))
        writer.close()

    server = await asyncio.start_server(on_connect, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield connections, f"http://127.0.0.1:{port}{UPSTREAM_PATH}"
    finally:
        server.close()
        await server.wait_closed()


@pytest_asyncio.fixture
async def proxy_client(tmp_path: Path, upstream_url: str) -> AsyncGenerator[TestClient, None]:
    client = await start_client(make_config(tmp_path, **{"proxy.target_url": upstream_url}))
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture
async def static_client(tmp_path: Path) -> AsyncGenerator[TestClient, None]:
    client = await start_client(make_config(tmp_path))
    try:
        yield client
    finally:
        await client.close()
