"""Domain models for the catalog service."""

from dharmaseed_player.models.catalog import (
    RetreatTalks,
    SearchResult,
    TalkDetail,
    TalkSummary,
    Teacher,
    TeacherSearchResult,
)

__all__ = [
    "RetreatTalks",
    "SearchResult",
    "TalkDetail",
    "TalkSummary",
    "Teacher",
    "TeacherSearchResult",
]
