"""Shared pytest fixtures for the catalog service test suite."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import parse_qs

import httpx
import pytest

from dharmaseed_player.providers.cache.memory_cache import ExpiringMemoryCache
from dharmaseed_player.providers.upstream.dharmaseed_client import DharmaSeedClient

Handler = Callable[[httpx.Request], httpx.Response]

# ---------------------------------------------------------------------------
# Sample upstream documents
# ---------------------------------------------------------------------------

LISTING_HTML = """
<html><body>
<div class="header"><a href="/talks/">All talks</a></div>
<table width='100%'>
  <tr><td>
    <a class="talkteacher" href="/talks/123">Sam &amp; Lee</a>
    2024-03-01
    <i>1:30:00</i>
    <a class='talkteacher' href="/teacher/9">Teacher &quot;A&quot;</a>
    <a href="/talks/123/20240301-Teacher_A-talk-123.mp3">Download</a>
    <a href="/retreats/42/"><i>Spring&nbsp;Retreat</i></a>
  </td></tr>
</table>
<table width='100%'>
  <tr><td>
    <a class="talkteacher" href="/talks/124">Don&#39;t Know Mind</a>
    2024-02-11
    <i>48:43</i>
    <a class='talkteacher' href="/teacher/10">Ajahn B</a>
    <a href="/talks/124/20240211-Ajahn_B-dont_know-124.mp3">Download</a>
  </td></tr>
</table>
<a class="next">next</a>
</body></html>
"""

FEED_XML = """<?xml version="1.0"?>
<rss version="2.0">
<channel>
<title>Weekend Retreat (Dharma Seed: Retreat talks)</title>
<link>https://dharmaseed.org/feeds/retreat/77/</link>
<item>
  <link>https://dharmaseed.org/talks/900/</link>
  <title>Jane Doe: First Talk</title>
  <itunes:author>Jane Doe</itunes:author>
  <itunes:duration>0:45:00</itunes:duration>
  <pubDate>Tue, 14 Jan 2025 12:00:00 GMT</pubDate>
  <enclosure url="https://dharmaseed.org//talks/900/file.mp3?rss=" />
</item>
<item>
  <link>https://dharmaseed.org/talks/900/</link>
  <title>Jane Doe: Duplicate Talk</title>
  <itunes:author>Jane Doe</itunes:author>
  <itunes:duration>0:45:00</itunes:duration>
  <pubDate>Tue, 14 Jan 2025 12:00:00 GMT</pubDate>
  <enclosure url="https://dharmaseed.org//talks/900/file.mp3?rss=" />
</item>
<item>
  <link>https://dharmaseed.org/talks/901/</link>
  <title>Jane Doe, John Roe: Guided Metta</title>
  <itunes:author>John Roe</itunes:author>
  <itunes:duration>48:43</itunes:duration>
  <pubDate>Wed, 15 Jan 2025 23:30:00 -0800</pubDate>
  <enclosure length="1" type="audio/mpeg" url="https://dharmaseed.org//talks/901/other.mp3?rss="></enclosure>
</item>
</channel>
</rss>
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def form_fields(request: httpx.Request) -> dict[str, str]:
    """Decode a form-encoded request body into a flat dict."""
    parsed = parse_qs(request.content.decode())
    return {key: values[0] for key, values in parsed.items()}


def make_client(handler: Handler) -> DharmaSeedClient:
    """Build a DharmaSeedClient whose HTTP traffic goes to *handler*."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DharmaSeedClient(http_client=http_client)


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def listing_html() -> str:
    return LISTING_HTML


@pytest.fixture
def feed_xml() -> str:
    return FEED_XML


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ExpiringMemoryCache:
    return ExpiringMemoryCache(clock=clock)
