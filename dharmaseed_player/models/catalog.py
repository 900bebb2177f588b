"""Normalized catalog models for talks, teachers, and search pages.

All models are Pydantic v2 with frozen config: a summary built by a parser
is never mutated afterwards, and derived copies (e.g. a teacher-name
backfill) go through ``model_copy(update=...)``.

Field names are snake_case in Python and camelCase on the wire
(``durationMinutes``, ``audioUrl``, ``hasMore``) because the browser client
consumes the JSON shape directly.  ``populate_by_name`` lets callers use
either spelling when constructing or re-validating (cached JSON is dumped
by alias and read back through ``model_validate_json``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CATALOG_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class TalkSummary(BaseModel):
    """One talk as it appears in a listing page or retreat feed.

    ``teacher`` is empty when the source document did not name the teacher
    and no backfill was possible.  ``date`` is ``YYYY-MM-DD`` or empty.
    """

    model_config = _CATALOG_CONFIG

    id: int
    title: str = ""
    teacher: str = ""
    duration_minutes: int = 0
    date: str = ""
    audio_url: str = ""
    retreat_id: int | None = None
    retreat_title: str | None = None


class TalkDetail(TalkSummary):
    """A single talk resolved through the JSON API, including its description."""

    description: str = ""


class Teacher(BaseModel):
    """A teacher directory entry."""

    model_config = _CATALOG_CONFIG

    id: int
    name: str = Field(min_length=1)


class SearchResult(BaseModel):
    """One positional page of talks.

    There is no cursor: ``page`` is the number that was requested and
    ``has_more`` reflects whether the upstream page advertised a next page.
    """

    model_config = _CATALOG_CONFIG

    talks: list[TalkSummary] = Field(default_factory=list)
    page: int = 1
    has_more: bool = False


class RetreatTalks(SearchResult):
    """All talks of one retreat plus the retreat's display title."""

    retreat_title: str | None = None


class TeacherSearchResult(BaseModel):
    """Ranked teacher matches for a name query."""

    model_config = _CATALOG_CONFIG

    teachers: list[Teacher] = Field(default_factory=list)
