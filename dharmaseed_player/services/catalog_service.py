"""Catalog facade over the Dharma Seed site.

Composes the upstream transport, the document parsers, the expiring cache
and the teacher directory into the five operations the HTTP layer serves:

    search_talks       HTML search page   -> listing parser
    search_teachers    JSON API           -> teacher directory
    get_teacher_talks  HTML teacher page  -> listing parser + name backfill
    get_retreat_talks  RSS retreat feed   -> feed parser
    get_talk_detail    JSON API           -> cache-first detail resolver

Transport failures propagate as :class:`UpstreamError`.  A talk id missing
from the detail payload is reported as ``None``, and is not cached.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from dharmaseed_player.interfaces.cache_provider import ICacheProvider
from dharmaseed_player.models.catalog import (
    RetreatTalks,
    SearchResult,
    TalkDetail,
    TeacherSearchResult,
)
from dharmaseed_player.parsers.feed_parser import parse_feed
from dharmaseed_player.parsers.listing_parser import parse_listing
from dharmaseed_player.providers.upstream.dharmaseed_client import DharmaSeedClient
from dharmaseed_player.services.teacher_directory import TeacherDirectory
from dharmaseed_player.utils.errors import UpstreamError
from dharmaseed_player.utils.logging import get_logger
from dharmaseed_player.utils.text_normalizer import absolute_url, calendar_date, round_half_up

DETAIL_TTL_SECONDS = 24 * 60 * 60
DEFAULT_PAGE_ITEMS = 25


def talk_cache_key(talk_id: int) -> str:
    return f"talk:{talk_id}"


def teacher_cache_key(teacher_id: int) -> str:
    return f"teacher:{teacher_id}"


class CatalogService:
    """Upstream content adapter for talks, teachers and retreats.

    The cache and the directory are process-wide objects owned by the
    application and injected here, so tests can hand in fresh instances.
    """

    def __init__(
        self,
        client: DharmaSeedClient,
        cache: ICacheProvider,
        directory: TeacherDirectory,
        page_items: int = DEFAULT_PAGE_ITEMS,
        detail_ttl: float = DETAIL_TTL_SECONDS,
    ) -> None:
        self._client = client
        self._cache = cache
        self._directory = directory
        self._page_items = page_items
        self._detail_ttl = detail_ttl
        self._logger = get_logger(__name__)

    @property
    def directory(self) -> TeacherDirectory:
        return self._directory

    def _listing_params(self, page: int, query: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {"sort": "-rec_date", "page": page, "page_items": self._page_items}
        if query:
            params["search"] = query
        return params

    # -- Listings --------------------------------------------------------------

    async def search_talks(self, query: str, page: int) -> SearchResult:
        """Run a site-wide talk search and parse the requested results page."""
        document = await self._client.fetch_page(
            "/talks/",
            params=self._listing_params(page, query),
            provider_name="talk_search",
        )
        result = parse_listing(document, page, base_url=self._client.base_url)
        self._logger.info(
            "talk_search_complete",
            query=query,
            page=page,
            talk_count=len(result.talks),
            has_more=result.has_more,
        )
        return result

    async def get_teacher_talks(self, teacher_id: int, page: int, query: str | None = None) -> SearchResult:
        """List one teacher's talks, newest first.

        Teacher pages do not repeat the teacher's name on each talk, so empty
        names are filled from the single-id teacher lookup.
        """
        document = await self._client.fetch_page(
            f"/teacher/{teacher_id}/",
            params=self._listing_params(page, query),
            provider_name="teacher_listing",
        )
        result = parse_listing(document, page, base_url=self._client.base_url)

        teacher_name = await self.resolve_teacher_name(teacher_id)
        if teacher_name:
            talks = [
                talk if talk.teacher else talk.model_copy(update={"teacher": teacher_name})
                for talk in result.talks
            ]
            result = result.model_copy(update={"talks": talks})

        self._logger.info(
            "teacher_talks_complete",
            teacher_id=teacher_id,
            page=page,
            talk_count=len(result.talks),
        )
        return result

    async def get_retreat_talks(self, retreat_id: int, page: int = 1) -> RetreatTalks:
        """Return every talk of a retreat from its RSS feed.

        Feeds are complete documents; *page* is accepted for interface
        symmetry and the result is always page 1 without continuation.
        """
        document = await self._client.fetch_feed(f"/feeds/retreat/{retreat_id}/", provider_name="retreat_feed")
        result = parse_feed(document, retreat_id)
        self._logger.info(
            "retreat_talks_complete",
            retreat_id=retreat_id,
            requested_page=page,
            talk_count=len(result.talks),
        )
        return result

    # -- Teachers --------------------------------------------------------------

    async def search_teachers(self, query: str) -> TeacherSearchResult:
        """Search the teacher directory, bootstrapping it on first use."""
        teachers = await self._directory.search(query)
        return TeacherSearchResult(teachers=teachers)

    async def resolve_teacher_name(self, teacher_id: int | None) -> str:
        """Resolve one teacher id to a display name via ``teacher:<id>``.

        This is a single-id lookup, independent of the directory snapshot.
        Unknown ids and failed lookups resolve to ``""``; only non-empty
        names are cached.
        """
        if not teacher_id:
            return ""

        key = teacher_cache_key(teacher_id)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        try:
            payload = await self._client.post_api("teachers", {"detail": "1", "items": str(teacher_id)})
        except UpstreamError as exc:
            self._logger.warning("teacher_name_lookup_failed", teacher_id=teacher_id, error=str(exc))
            return ""

        items = payload.get("items")
        data = items.get(str(teacher_id)) if isinstance(items, dict) else None
        name = str(data.get("name") or "") if isinstance(data, dict) else ""
        if name:
            await self._cache.set(key, name, ttl=self._detail_ttl)
        return name

    # -- Talk detail -----------------------------------------------------------

    async def _cached_detail(self, key: str) -> TalkDetail | None:
        raw = await self._cache.get(key)
        if raw is None:
            return None
        try:
            return TalkDetail.model_validate_json(raw)
        except ValidationError:
            self._logger.warning("talk_cache_entry_invalid", key=key)
            await self._cache.delete(key)
            return None

    async def get_talk_detail(self, talk_id: int) -> TalkDetail | None:
        """Return the full record for one talk, or ``None`` if upstream lacks it.

        Cache-first on ``talk:<id>``; a hit never touches the upstream.  On a
        miss the assembled detail is cached for ``detail_ttl`` seconds.
        """
        key = talk_cache_key(talk_id)
        cached = await self._cached_detail(key)
        if cached is not None:
            return cached

        payload = await self._client.post_api("talks", {"detail": "1", "items": str(talk_id)})
        items = payload.get("items")
        raw = items.get(str(talk_id)) if isinstance(items, dict) else None
        if not isinstance(raw, dict):
            self._logger.info("talk_not_found", talk_id=talk_id)
            return None

        detail = await self._assemble_detail(talk_id, raw)
        await self._cache.set(key, detail.model_dump_json(by_alias=True), ttl=self._detail_ttl)
        self._logger.info("talk_detail_cached", talk_id=talk_id)
        return detail

    async def _assemble_detail(self, talk_id: int, raw: dict[str, Any]) -> TalkDetail:
        teacher_id = _as_int(raw.get("teacher_id"))
        duration = raw.get("duration_in_minutes")
        try:
            duration_minutes = round_half_up(float(duration)) if duration else 0
        except (TypeError, ValueError):
            duration_minutes = 0

        return TalkDetail(
            id=talk_id,
            title=str(raw.get("title") or ""),
            teacher=await self.resolve_teacher_name(teacher_id),
            description=str(raw.get("description") or ""),
            audio_url=absolute_url(self._client.base_url, str(raw.get("audio_url") or "")),
            duration_minutes=duration_minutes,
            date=calendar_date(str(raw.get("rec_date") or "")),
            retreat_id=_as_int(raw.get("retreat_id")),
            retreat_title=str(raw["retreat_title"]) if raw.get("retreat_title") else None,
        )


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None
