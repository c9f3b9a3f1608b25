from __future__ import annotations

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from racefeed._transport import HttpGeometrySource
from racefeed.config import FeedConfig
from racefeed.exceptions import GeometryFetchError, GeometryParseError

_MONACO = {"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[7.42, 43.73], [7.43, 43.74]]}}]}


async def _start_geometry_server() -> TestServer:
    async def monaco(_request: web.Request) -> web.Response:
        return web.json_response(_MONACO)

    async def broken(_request: web.Request) -> web.Response:
        return web.Response(text="<html>oops</html>")

    async def garbled(_request: web.Request) -> web.Response:
        return web.Response(body=b"\xff\xfe\xfa{", content_type="application/json", charset="utf-8")

    app = web.Application()
    app.router.add_get("/circuits/mc-1929.geojson", monaco)
    app.router.add_get("/circuits/broken.geojson", broken)
    app.router.add_get("/circuits/garbled.geojson", garbled)
    server = TestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_fetch_resolves_alias_and_decodes_json() -> None:
    server = await _start_geometry_server()
    try:
        config = FeedConfig(geometry_base_url=str(server.make_url("/circuits")))
        async with aiohttp.ClientSession() as session:
            source = HttpGeometrySource(config, session)
            assert source.url_for("Monte-Carlo").endswith("/circuits/mc-1929.geojson")
            document = await source.fetch("monaco")
    finally:
        await server.close()

    assert document == _MONACO


@pytest.mark.asyncio
async def test_fetch_non_200_raises_with_status() -> None:
    server = await _start_geometry_server()
    try:
        config = FeedConfig(geometry_base_url=str(server.make_url("/circuits")))
        async with aiohttp.ClientSession() as session:
            with pytest.raises(GeometryFetchError) as excinfo:
                await HttpGeometrySource(config, session).fetch("atlantis")
    finally:
        await server.close()

    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "Failed to fetch GeoJSON: 404"
    assert excinfo.value.url.endswith("/circuits/atlantis.geojson")


@pytest.mark.asyncio
async def test_fetch_invalid_json_raises_parse_error() -> None:
    server = await _start_geometry_server()
    try:
        config = FeedConfig(geometry_base_url=str(server.make_url("/circuits")))
        async with aiohttp.ClientSession() as session:
            with pytest.raises(GeometryParseError):
                await HttpGeometrySource(config, session).fetch("broken")
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_fetch_non_utf8_body_raises_parse_error() -> None:
    server = await _start_geometry_server()
    try:
        config = FeedConfig(geometry_base_url=str(server.make_url("/circuits")))
        async with aiohttp.ClientSession() as session:
            with pytest.raises(GeometryParseError):
                await HttpGeometrySource(config, session).fetch("garbled")
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_fetch_network_failure_raises_fetch_error() -> None:
    config = FeedConfig(geometry_base_url="http://127.0.0.1:1/circuits")
    async with aiohttp.ClientSession() as session:
        with pytest.raises(GeometryFetchError) as excinfo:
            await HttpGeometrySource(config, session).fetch("monaco")

    assert excinfo.value.status_code is None
