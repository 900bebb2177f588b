"""Parser for Dharma Seed retreat RSS feeds.

The retreat feeds are podcast-style RSS with ``itunes:`` elements, but they
are not reliably well-formed XML (undeclared namespace prefixes, stray
markup inside titles), so a strict XML parser rejects real documents.  The
parser therefore works on tag-scoped text: the document is split on
``<item>`` boundaries and each field is pulled out of its own element.

Known feed quirks handled here:

* the channel title ends with a ``(Dharma Seed: Retreat talks)`` branding
  suffix;
* the same talk can appear more than once -- only the first occurrence is
  kept;
* item titles are prefixed with ``"<teacher>: "``;
* enclosure URLs contain a doubled slash before ``talks/`` and a trailing
  ``?rss=`` tracking parameter.
"""

from __future__ import annotations

import datetime
import re

from dateutil import parser as dateutil_parser

from dharmaseed_player.models.catalog import RetreatTalks, TalkSummary
from dharmaseed_player.utils.logging import get_logger
from dharmaseed_player.utils.text_normalizer import decode_entities, parse_duration

_CHANNEL_TITLE_RE = re.compile(r"<channel[^>]*>.*?<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_BRANDING_SUFFIX_RE = re.compile(r"\s*\(Dharma Seed:.*?\)\s*$")
_ITEM_SPLIT_RE = re.compile(r"<item(?:\s[^>]*)?>", re.IGNORECASE)
_TALK_ID_RE = re.compile(r"/talks/(\d+)")
_CDATA_RE = re.compile(r"^<!\[CDATA\[(.*?)\]\]>$", re.DOTALL)
_TRACKING_SUFFIX_RE = re.compile(r"\?rss=$")

_logger = get_logger(__name__)


def _unwrap(raw: str) -> str:
    raw = raw.strip()
    match = _CDATA_RE.match(raw)
    if match:
        return match.group(1).strip()
    return raw


def element_text(fragment: str, tag: str) -> str:
    """Return the decoded text of the first ``<tag>`` element in *fragment*."""
    pattern = re.compile(rf"<{re.escape(tag)}(?:\s[^>]*)?>(.*?)</{re.escape(tag)}>", re.IGNORECASE | re.DOTALL)
    match = pattern.search(fragment)
    return decode_entities(_unwrap(match.group(1))) if match else ""


def element_attr(fragment: str, tag: str, attr: str) -> str:
    """Return the decoded value of *attr* on the first ``<tag>`` element."""
    pattern = re.compile(
        rf"<{re.escape(tag)}\b[^>]*?\s{re.escape(attr)}=[\"']([^\"']*)[\"']",
        re.IGNORECASE,
    )
    match = pattern.search(fragment)
    return decode_entities(match.group(1)) if match else ""


def retreat_title_from_channel(document: str) -> str | None:
    """Extract the channel title without the site-branding suffix."""
    match = _CHANNEL_TITLE_RE.search(document)
    if not match:
        return None
    title = _BRANDING_SUFFIX_RE.sub("", decode_entities(_unwrap(match.group(1)))).strip()
    return title or None


def strip_teacher_prefix(title: str, teacher: str) -> str:
    """Drop a leading ``"<teacher>: "`` from an item title.

    The prefix may list several co-teachers (``"A, B: Title"``); it is
    stripped when the requested teacher appears in it.  Titles whose prefix
    does not mention the teacher are returned unchanged.
    """
    separator = title.find(": ")
    if separator > 0 and teacher and teacher in title[:separator]:
        return title[separator + 2 :]
    return title


def feed_date(value: str) -> str:
    """Reduce an RFC-2822 ``pubDate`` to a UTC ``YYYY-MM-DD`` date."""
    if not value:
        return ""
    try:
        parsed = dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc)
    return parsed.date().isoformat()


def repair_audio_url(url: str) -> str:
    """Fix the doubled ``//talks/`` segment and drop the ``?rss=`` suffix."""
    return _TRACKING_SUFFIX_RE.sub("", url.replace("//talks/", "/talks/"))


def _parse_item(fragment: str, retreat_id: int, retreat_title: str | None) -> TalkSummary | None:
    match = _TALK_ID_RE.search(element_text(fragment, "link"))
    if not match:
        return None

    teacher = element_text(fragment, "itunes:author")
    duration = element_text(fragment, "itunes:duration")

    return TalkSummary(
        id=int(match.group(1)),
        title=strip_teacher_prefix(element_text(fragment, "title"), teacher),
        teacher=teacher,
        duration_minutes=parse_duration(duration) if duration else 0,
        date=feed_date(element_text(fragment, "pubDate")),
        audio_url=repair_audio_url(element_attr(fragment, "enclosure", "url")),
        retreat_id=retreat_id,
        retreat_title=retreat_title,
    )


def parse_feed(document: str, retreat_id: int) -> RetreatTalks:
    """Parse a retreat RSS feed into a single, complete page of talks.

    Items are deduplicated by talk id in first-seen order; later repeats are
    dropped even if their fields differ.  Feeds are fetched whole, so the
    result is always page 1 with no continuation.
    """
    retreat_title = retreat_title_from_channel(document)

    # Everything before the first <item> is channel metadata.
    fragments = _ITEM_SPLIT_RE.split(document)[1:]

    seen: set[int] = set()
    talks: list[TalkSummary] = []
    duplicates = 0
    for fragment in fragments:
        talk = _parse_item(fragment, retreat_id, retreat_title)
        if talk is None:
            continue
        if talk.id in seen:
            duplicates += 1
            continue
        seen.add(talk.id)
        talks.append(talk)

    _logger.debug(
        "feed_parsed",
        retreat_id=retreat_id,
        talk_count=len(talks),
        duplicates_dropped=duplicates,
    )
    return RetreatTalks(talks=talks, page=1, has_more=False, retreat_title=retreat_title)
