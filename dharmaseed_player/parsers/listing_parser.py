"""Parser for Dharma Seed HTML talk listings.

Handles both ``/talks/?search=`` result pages and ``/teacher/<id>/`` pages.
The site renders each talk as its own ``<table width='100%'>`` block, so the
raw document is split on that opening tag first and every segment is then
parsed on its own with BeautifulSoup.  Splitting before parsing keeps one
malformed talk from bleeding into its neighbours, and a segment that does not
carry a ``/talks/<id>`` title anchor (page header, sidebar, footer) is simply
not a talk.

Every field other than the id/title anchor is optional; a missing token
becomes ``""`` or ``0`` and parsing continues.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from dharmaseed_player.models.catalog import SearchResult, TalkSummary
from dharmaseed_player.utils.logging import get_logger
from dharmaseed_player.utils.text_normalizer import absolute_url, normalize_text, parse_duration

DEFAULT_BASE_URL = "https://www.dharmaseed.org"

_BLOCK_DELIMITER_RE = re.compile(r"<table\s+width=['\"]100%['\"]\s*>", re.IGNORECASE)
_NEXT_PAGE_RE = re.compile(r"class=['\"]next['\"]\s*>\s*next", re.IGNORECASE)

_TALK_HREF_RE = re.compile(r"^/talks/(\d+)/?$")
_TEACHER_HREF_RE = re.compile(r"^/teacher/\d+/?$")
_AUDIO_HREF_RE = re.compile(r"^/talks/\d+/[^\"]*\.mp3$", re.IGNORECASE)
_RETREAT_HREF_RE = re.compile(r"^/retreats/(\d+)/?$")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_DURATION_RE = re.compile(r"^\d+:\d{2}(?::\d{2})?$")

_logger = get_logger(__name__)


def _has_class(tag: Tag, name: str) -> bool:
    return name in (tag.get("class") or [])


def _text(tag: Tag) -> str:
    return normalize_text(tag.get_text(" ", strip=True))


def _find_title_anchor(block: BeautifulSoup) -> tuple[int, str] | None:
    for anchor in block.find_all("a", href=_TALK_HREF_RE):
        if not _has_class(anchor, "talkteacher"):
            continue
        match = _TALK_HREF_RE.match(anchor["href"])
        return int(match.group(1)), _text(anchor)
    return None


def _find_date(block: BeautifulSoup) -> str:
    match = _DATE_RE.search(block.get_text(" "))
    return match.group(0) if match else ""


def _find_duration(block: BeautifulSoup) -> int:
    for italic in block.find_all("i"):
        token = italic.get_text(strip=True)
        if _DURATION_RE.match(token):
            return parse_duration(token)
    return 0


def _find_teacher(block: BeautifulSoup) -> str:
    anchor = block.find("a", href=_TEACHER_HREF_RE)
    return _text(anchor) if anchor else ""


def _find_audio_url(block: BeautifulSoup, base_url: str) -> str:
    anchor = block.find("a", href=_AUDIO_HREF_RE)
    return absolute_url(base_url, anchor["href"]) if anchor else ""


def _find_retreat(block: BeautifulSoup) -> tuple[int | None, str | None]:
    for anchor in block.find_all("a", href=_RETREAT_HREF_RE):
        italic = anchor.find("i")
        if italic is None:
            continue
        match = _RETREAT_HREF_RE.match(anchor["href"])
        return int(match.group(1)), _text(italic)
    return None, None


def _parse_block(segment: str, base_url: str) -> TalkSummary | None:
    block = BeautifulSoup(segment, "html.parser")

    title_anchor = _find_title_anchor(block)
    if title_anchor is None:
        return None
    talk_id, title = title_anchor
    retreat_id, retreat_title = _find_retreat(block)

    return TalkSummary(
        id=talk_id,
        title=title,
        teacher=_find_teacher(block),
        duration_minutes=_find_duration(block),
        date=_find_date(block),
        audio_url=_find_audio_url(block, base_url),
        retreat_id=retreat_id,
        retreat_title=retreat_title,
    )


def has_next_page(document: str) -> bool:
    """Return ``True`` when the page carries the site's "next" pager link.

    The site never exposes a total count, so continuation is decided by the
    presence of the marker alone.
    """
    return _NEXT_PAGE_RE.search(document) is not None


def parse_listing(document: str, page: int, base_url: str = DEFAULT_BASE_URL) -> SearchResult:
    """Parse an HTML listing page into a :class:`SearchResult`.

    Parameters
    ----------
    document:
        Raw HTML of a search or teacher listing page.
    page:
        The page number that was requested; echoed back unchanged.
    base_url:
        Origin used to absolutize relative ``.mp3`` links.
    """
    talks: list[TalkSummary] = []
    for segment in _BLOCK_DELIMITER_RE.split(document):
        talk = _parse_block(segment, base_url)
        if talk is not None:
            talks.append(talk)

    result = SearchResult(talks=talks, page=page, has_more=has_next_page(document))
    _logger.debug("listing_parsed", page=page, talk_count=len(talks), has_more=result.has_more)
    return result
