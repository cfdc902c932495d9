#!/usr/bin/env python3
"""Test the aiohttp transport against a local HTTP server."""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from tubestream.errors import ResourceUnavailable
from tubestream.models import ClientConfig
from tubestream.transport import AiohttpTransport, range_header

PAYLOAD = bytes(range(256)) * 4
MANIFEST = "<MPD/>"


async def _media(request: web.Request) -> web.Response:
    header = request.headers.get("Range")
    if not header:
        return web.Response(body=PAYLOAD, content_type="audio/webm")
    start, _, end = header.removeprefix("bytes=").partition("-")
    last = int(end) if end else len(PAYLOAD) - 1
    return web.Response(body=PAYLOAD[int(start):last + 1], status=206, content_type="audio/webm")


async def _no_content(request: web.Request) -> web.Response:
    return web.Response(status=204)


async def _manifest(request: web.Request) -> web.Response:
    return web.Response(text=MANIFEST, content_type="application/dash+xml")


def _app() -> web.Application:
    app = web.Application()
    app.router.add_get("/media", _media)
    app.router.add_get("/generate_204", _no_content)
    app.router.add_get("/manifest", _manifest)
    return app


async def _with_transport(scenario):
    server = test_utils.TestServer(_app())
    await server.start_server()
    try:
        async with AiohttpTransport(config=ClientConfig(chunk_size=100)) as transport:
            return await scenario(transport, lambda path: str(server.make_url(path)))
    finally:
        await server.close()


def test_range_header_format():
    assert range_header(0, 99) == "bytes=0-99"
    assert range_header(500) == "bytes=500-"


def test_probe_reports_reachability():
    async def scenario(transport, url):
        return await transport.probe(url("/generate_204")), await transport.probe(url("/missing"))

    assert asyncio.run(_with_transport(scenario)) == (True, False)


def test_iter_range_streams_requested_bytes():
    async def scenario(transport, url):
        return [chunk async for chunk in transport.iter_range(url("/media"), 10, 509)]

    chunks = asyncio.run(_with_transport(scenario))

    assert b"".join(chunks) == PAYLOAD[10:510]
    assert all(len(chunk) <= 100 for chunk in chunks)


def test_fetch_and_fetch_text():
    async def scenario(transport, url):
        return (
            await transport.fetch(url("/media"), 0, 9),
            await transport.fetch(url("/media")),
            await transport.fetch_text(url("/manifest")),
        )

    head, whole, text = asyncio.run(_with_transport(scenario))

    assert head == PAYLOAD[:10]
    assert whole == PAYLOAD
    assert text == MANIFEST


def test_content_length_uses_head_request():
    async def scenario(transport, url):
        return await transport.content_length(url("/media"))

    assert asyncio.run(_with_transport(scenario)) == len(PAYLOAD)


def test_content_length_failure_is_resource_unavailable():
    async def scenario(transport, url):
        return await transport.content_length(url("/missing"))

    with pytest.raises(ResourceUnavailable):
        asyncio.run(_with_transport(scenario))


def test_transport_requires_session():
    with pytest.raises(RuntimeError):
        asyncio.run(AiohttpTransport().fetch("http://localhost/"))
