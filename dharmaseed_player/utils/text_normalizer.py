"""Text helpers shared by the listing and feed parsers.

Covers the small, format-agnostic pieces both document parsers need:

1. **Entity decoding** -- upstream titles and names arrive HTML-escaped
   (``&amp;``, ``&#39;``, ``&nbsp;`` ...).  Everything surfaced to clients is
   plain text with non-breaking spaces folded to ordinary spaces.

2. **Duration parsing** -- ``H:MM:SS`` / ``MM:SS`` tokens become whole
   minutes.  Rounding is half-up so ``12.5`` minutes reads as 13, matching
   what the upstream site itself displays.

3. **URL repair** -- relative upstream paths are made absolute.
"""

from __future__ import annotations

import html
import math
import re

_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_DATE_RE = re.compile(r"\s*(\d{4}-\d{2}-\d{2})(?![0-9])")


def normalize_text(text: str) -> str:
    """Fold non-breaking spaces and collapse runs of whitespace."""
    return _WHITESPACE_RE.sub(" ", text.replace("\xa0", " ")).strip()


def decode_entities(text: str) -> str:
    """Decode named and numeric HTML entities and normalize whitespace.

    >>> decode_entities("Sam &amp; Lee&nbsp;&#x27;Q&#39;")
    "Sam & Lee 'Q'"
    """
    return normalize_text(html.unescape(text))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))


def parse_duration(token: str) -> int:
    """Convert ``H:MM:SS`` or ``MM:SS`` to whole minutes.

    Malformed tokens yield 0 rather than raising.

    >>> parse_duration("1:30:00"), parse_duration("48:43")
    (90, 49)
    """
    try:
        parts = [int(part) for part in token.strip().split(":")]
    except ValueError:
        return 0

    if len(parts) == 3:
        hours, minutes, seconds = parts
        return round_half_up(hours * 60 + minutes + seconds / 60)
    if len(parts) == 2:
        minutes, seconds = parts
        return round_half_up(minutes + seconds / 60)
    return 0


def absolute_url(base_url: str, path: str) -> str:
    """Return *path* unchanged when already absolute, else join to *base_url*."""
    if not path:
        return ""
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def calendar_date(value: str) -> str:
    """Reduce a ``YYYY-MM-DD[ HH:MM:SS]`` timestamp to its date part, else ``""``."""
    match = _LEADING_DATE_RE.match(value or "")
    return match.group(1) if match else ""
