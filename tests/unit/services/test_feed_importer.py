"""Unit tests for fetching and parsing feeds over HTTP."""

import asyncio

import aiohttp
import pytest
from aiohttp import test_utils, web

from feedhub.models import FeedResult, FeedType
from feedhub.parsers.errors import FeedParseError
from feedhub.services.feed_importer import FeedFetchError, FeedImporter
from feedhub.services.import_service import is_retryable_fetch_error

FEEDS = {
    "/feed.json": '{"products": [{"id": 1, "tags": ["a", "b"]}]}',
    "/feed.csv": "id;title\n1;Hat\n",
    "/feed.xml": "<r><item><id>1</id></item><item><id>2</id></item></r>",
    "/broken.json": "<html>not a feed</html>",
}


def _make_app() -> web.Application:
    async def feed(request: web.Request) -> web.Response:
        body = FEEDS.get(request.path)
        if body is None:
            raise web.HTTPNotFound()
        return web.Response(text=body)

    app = web.Application()
    app.router.add_get("/{name}", feed)
    return app


async def _import(path: str, feed_type: FeedType) -> FeedResult:
    async with test_utils.TestServer(_make_app()) as server:
        importer = FeedImporter()
        try:
            return await importer.import_feed(str(server.make_url(path)), feed_type)
        finally:
            await importer.close()


def test_import_feed_parses_json() -> None:
    """JSON body should be parsed and flattened."""
    result = asyncio.run(_import("/feed.json", FeedType.JSON))

    assert result.path == "products"
    assert result.records == [{"id": 1, "tags": "a, b"}]


def test_import_feed_parses_csv_and_xml() -> None:
    """Feed type should select the parser."""
    csv_result = asyncio.run(_import("/feed.csv", FeedType.CSV))
    xml_result = asyncio.run(_import("/feed.xml", FeedType.XML))

    assert csv_result.records == [{"id": "1", "title": "Hat"}]
    assert xml_result.path == "item"
    assert len(xml_result.records) == 2


def test_import_feed_raises_fetch_error_with_status() -> None:
    """Non-2xx response should raise with the status code."""
    with pytest.raises(FeedFetchError, match="404") as exc_info:
        asyncio.run(_import("/missing.json", FeedType.JSON))

    assert exc_info.value.status == 404


def test_import_feed_raises_parse_error_for_unparseable_json() -> None:
    """Body without JSON should raise a parse error."""
    with pytest.raises(FeedParseError):
        asyncio.run(_import("/broken.json", FeedType.JSON))


def test_import_feed_wraps_connection_errors() -> None:
    """Transport failure should become a fetch error without status."""

    async def fetch_closed_port() -> None:
        async with test_utils.TestServer(_make_app()) as server:
            url = str(server.make_url("/feed.json"))
        importer = FeedImporter()
        try:
            await importer.import_feed(url)
        finally:
            await importer.close()

    with pytest.raises(FeedFetchError) as exc_info:
        asyncio.run(fetch_closed_port())

    assert exc_info.value.status is None


def test_import_feed_wraps_timeouts() -> None:
    """Session timeout should become a fetch error without status."""

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(1)
        return web.Response(text=FEEDS["/feed.json"])

    async def fetch_slow_feed() -> None:
        app = web.Application()
        app.router.add_get("/slow.json", slow)
        async with test_utils.TestServer(app) as server:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=0.2)
            )
            importer = FeedImporter(session=session)
            try:
                await importer.import_feed(str(server.make_url("/slow.json")))
            finally:
                await session.close()

    with pytest.raises(FeedFetchError) as exc_info:
        asyncio.run(fetch_slow_feed())

    assert exc_info.value.status is None
    assert is_retryable_fetch_error(exc_info.value)
