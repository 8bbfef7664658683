"""
# Metadata Service

Best-effort extraction of page metadata for URL-bearing items.

The page is streamed with `httpx.AsyncClient` (redirects followed, one overall
deadline of `METADATA_FETCH_TIMEOUT`). Reading stops at `</head>` or after
`METADATA_MAX_BYTES`, and non-HTML responses are skipped. The head is scanned
for the usual meta tags:

| Field | Source |
|---|---|
| `title` | `<title>` text, else `og:title` |
| `description` | `meta[name=description]`, else `og:description` |
| `thumbnail` | `og:image` |
| `author` | `meta[name=author]` |
| `published_at` | `article:published_time` (ISO-8601) |
| `duration` | `og:video:duration` or `video:duration` (seconds) |

Every failure (deadline, transport, HTTP status, content type) raises `UpstreamError`.
Callers are expected to recover from it; metadata never blocks item creation.
"""

import asyncio
from datetime import datetime
from html.parser import HTMLParser
from typing import Dict, List, Optional

import httpx

from second_brain.config import settings
from second_brain.exceptions import UpstreamError
from second_brain.managers.logging_manager import get_logger
from second_brain.models.item_models import ItemMetadata

logger = get_logger(prefix="[Metadata Service]")

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
HEAD_END = b"</head>"


class _MetaTagParser(HTMLParser):
    """Collects `<title>` text and `<meta>` name/property -> content pairs."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.title_parts = []
        self.meta: Dict[str, str] = {}
        self._in_title = False
        self._title_done = False

    def handle_starttag(self, tag, attrs):
        if tag == "title" and not self._title_done:
            self._in_title = True
        elif tag == "meta":
            attributes = {k.lower(): (v or "") for k, v in attrs}
            key = attributes.get("property") or attributes.get("name") or attributes.get("itemprop")
            content = attributes.get("content", "").strip()
            # First occurrence wins, as browsers and crawlers do.
            if key and content and key.lower() not in self.meta:
                self.meta[key.lower()] = content

    def handle_endtag(self, tag):
        if tag == "title" and self._in_title:
            self._in_title = False
            self._title_done = True

    def handle_data(self, data):
        if self._in_title:
            self.title_parts.append(data)

    @property
    def title(self) -> Optional[str]:
        text = " ".join("".join(self.title_parts).split())
        return text or None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable published time: %s", value)
        return None


def _parse_duration(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.debug("Ignoring non-numeric duration: %s", value)
        return None


def parse_metadata(html: str) -> ItemMetadata:
    """Extract an `ItemMetadata` block from an HTML document."""
    parser = _MetaTagParser()
    parser.feed(html)
    parser.close()
    meta = parser.meta

    return ItemMetadata(
        title=parser.title or meta.get("og:title"),
        description=meta.get("description") or meta.get("og:description"),
        thumbnail=meta.get("og:image"),
        author=meta.get("author"),
        published_at=_parse_datetime(meta.get("article:published_time")),
        duration=_parse_duration(meta.get("og:video:duration") or meta.get("video:duration")),
    )


class MetadataService:
    """Fetches a URL and turns its meta tags into an `ItemMetadata` block."""

    def __init__(
        self, timeout: Optional[float] = None, user_agent: Optional[str] = None, max_bytes: Optional[int] = None
    ):
        self.timeout = timeout if timeout is not None else settings.METADATA_FETCH_TIMEOUT
        self.user_agent = user_agent or settings.METADATA_USER_AGENT
        self.max_bytes = max_bytes if max_bytes is not None else settings.METADATA_MAX_BYTES

    async def _read_head(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()

                content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
                if content_type and content_type not in HTML_CONTENT_TYPES:
                    raise UpstreamError(f"Metadata fetch skipped non-HTML content ({content_type})")

                chunks: List[bytes] = []
                received = 0
                tail = b""
                async for chunk in response.aiter_bytes():
                    chunks.append(chunk)
                    received += len(chunk)
                    window = (tail + chunk).lower()
                    if received >= self.max_bytes or HEAD_END in window:
                        break
                    tail = window[-len(HEAD_END) :]

                body = b"".join(chunks)[: self.max_bytes]
                charset = response.charset_encoding or "utf-8"

        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    async def fetch_html(self, url: str) -> str:
        """
        Return the start of the document at `url`, up to `</head>` or `max_bytes`.

        The whole exchange (redirects, headers and body) shares one deadline of
        `timeout` seconds.

        Raises:
            UpstreamError: On timeout, transport failure, HTTP error status or a
                non-HTML content type.
        """
        try:
            return await asyncio.wait_for(self._read_head(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise UpstreamError(f"Metadata fetch exceeded {self.timeout}s")
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"Metadata fetch returned HTTP {e.response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamError(f"Metadata fetch failed: {e.__class__.__name__}")

    async def extract_metadata(self, url: str) -> ItemMetadata:
        """
        Fetch `url` and extract its metadata.

        Raises:
            UpstreamError: If the page cannot be fetched or parsed.
        """
        html = await self.fetch_html(url)
        try:
            metadata = parse_metadata(html)
        except Exception as e:
            raise UpstreamError(f"Metadata parse failed: {e}")
        logger.debug("Extracted metadata from %s: title=%r", url, metadata.title)
        return metadata
