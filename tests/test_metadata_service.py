import asyncio
import time
from datetime import datetime, timezone
from unittest.mock import patch

import httpx
import pytest

from second_brain.exceptions import UpstreamError
from second_brain.services.metadata_service import MetadataService, parse_metadata

ARTICLE_HTML = """
<html>
<head>
  <title>
    Attention Is All You Need
  </title>
  <meta name="description" content="The paper that introduced the Transformer.">
  <meta property="og:title" content="OG Title">
  <meta property="og:description" content="OG description">
  <meta property="og:image" content="https://papers.test/cover.png">
  <meta name="author" content="Vaswani et al.">
  <meta property="article:published_time" content="2017-06-12T00:00:00Z">
</head>
<body><title>Not the page title</title></body>
</html>
"""

VIDEO_HTML = """
<html><head>
  <meta property="og:title" content="Lecture 1">
  <meta property="og:description" content="Intro lecture">
  <meta property="og:video:duration" content="3600">
</head></html>
"""

RealAsyncClient = httpx.AsyncClient


def client_with(handler):
    transport = httpx.MockTransport(handler)
    return patch(
        "second_brain.services.metadata_service.httpx.AsyncClient",
        side_effect=lambda **kwargs: RealAsyncClient(transport=transport, **kwargs),
    )


def test_parse_metadata_prefers_title_tag_and_named_description():
    metadata = parse_metadata(ARTICLE_HTML)

    assert metadata.title == "Attention Is All You Need"
    assert metadata.description == "The paper that introduced the Transformer."
    assert metadata.thumbnail == "https://papers.test/cover.png"
    assert metadata.author == "Vaswani et al."
    assert metadata.published_at == datetime(2017, 6, 12, tzinfo=timezone.utc)
    assert metadata.duration is None


def test_parse_metadata_falls_back_to_open_graph():
    metadata = parse_metadata(VIDEO_HTML)

    assert metadata.title == "Lecture 1"
    assert metadata.description == "Intro lecture"
    assert metadata.duration == 3600.0


def test_parse_metadata_tolerates_garbage():
    metadata = parse_metadata("<html><head><meta property='article:published_time' content='yesterday'>")
    assert metadata.model_dump() == {
        "title": None,
        "description": None,
        "thumbnail": None,
        "author": None,
        "published_at": None,
        "duration": None,
    }


@pytest.mark.asyncio
async def test_extract_metadata_follows_redirects():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://papers.test/new"})
        assert request.headers["User-Agent"] == "TestAgent/1.0"
        return httpx.Response(200, html=ARTICLE_HTML)

    with client_with(handler):
        metadata = await MetadataService(timeout=5, user_agent="TestAgent/1.0").extract_metadata(
            "https://papers.test/old"
        )

    assert metadata.title == "Attention Is All You Need"


@pytest.mark.asyncio
async def test_extract_metadata_raises_upstream_error_on_http_error():
    with client_with(lambda request: httpx.Response(404, text="missing")):
        with pytest.raises(UpstreamError):
            await MetadataService(timeout=5).extract_metadata("https://papers.test/missing")


@pytest.mark.asyncio
async def test_extract_metadata_raises_upstream_error_on_timeout():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with client_with(handler):
        with pytest.raises(UpstreamError):
            await MetadataService(timeout=5).extract_metadata("https://slow.test")


@pytest.mark.asyncio
async def test_extract_metadata_rejects_unsupported_urls():
    with pytest.raises(UpstreamError):
        await MetadataService(timeout=5).extract_metadata("not a url")


@pytest.mark.asyncio
async def test_extract_metadata_enforces_one_deadline_for_slow_bodies():
    async def drip():
        yield b"<html><head>"
        for _ in range(10):
            await asyncio.sleep(0.3)
            yield b"<!-- still sending -->"

    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "text/html"}, content=drip())

    started = time.monotonic()
    with client_with(handler):
        with pytest.raises(UpstreamError):
            await MetadataService(timeout=0.5).extract_metadata("https://drip.test")

    assert time.monotonic() - started < 1.5


@pytest.mark.asyncio
async def test_extract_metadata_stops_reading_at_byte_cap():
    served = []

    async def endless():
        yield b"<html><head><title>Huge</title>"
        for _ in range(1000):
            served.append(1024)
            yield b"x" * 1024

    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "text/html"}, content=endless())

    with client_with(handler):
        metadata = await MetadataService(timeout=5, max_bytes=4096).extract_metadata("https://huge.test")

    assert metadata.title == "Huge"
    assert sum(served) <= 4096


@pytest.mark.asyncio
async def test_extract_metadata_does_not_read_past_head():
    head, _, _ = ARTICLE_HTML.partition("<body>")

    async def page():
        yield head[:40].encode()
        yield head[40:].encode()
        raise AssertionError("body was read")

    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "text/html; charset=utf-8"}, content=page())

    with client_with(handler):
        metadata = await MetadataService(timeout=5).extract_metadata("https://papers.test/abs")

    assert metadata.author == "Vaswani et al."


@pytest.mark.asyncio
async def test_extract_metadata_skips_non_html_content():
    def handler(request):
        return httpx.Response(200, headers={"Content-Type": "video/mp4"}, content=b"\x00\x00\x00\x18ftypmp42")

    with client_with(handler):
        with pytest.raises(UpstreamError):
            await MetadataService(timeout=5).extract_metadata("https://cdn.test/lecture.mp4")
