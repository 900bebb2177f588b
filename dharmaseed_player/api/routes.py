"""FastAPI routes for the talk/teacher catalog.

# Endpoint                          Method  Description
# ──────────────────────────────────────────────────────────────────────
# /api/talks?q=&page=               GET     Site-wide talk search
# /api/talks/{id}                   GET     Single talk detail
# /api/teachers?q=                  GET     Teacher name search
# /api/teachers/{id}/talks?page=&q= GET     One teacher's talks
# /api/retreats/{id}/talks?page=    GET     One retreat's talks
# /api/health                       GET     Liveness + directory state

Error bodies are ``{"error": "<message>"}``.  Ids are validated here (400
on anything but 1-18 digits); query-string ``page`` values that are missing or
not a positive integer fall back to 1.  Teacher search never fails: any
error degrades to an empty result.
"""

from __future__ import annotations

import re
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from dharmaseed_player import __version__
from dharmaseed_player.api.schemas import ErrorResponse, HealthResponse
from dharmaseed_player.models.catalog import (
    RetreatTalks,
    SearchResult,
    TalkDetail,
    TeacherSearchResult,
)
from dharmaseed_player.services.catalog_service import CatalogService
from dharmaseed_player.utils.errors import CatalogError
from dharmaseed_player.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

# 18 digits always fits a signed 64-bit id.
_ID_RE = re.compile(r"[0-9]{1,18}")


def _get_catalog(request: Request) -> CatalogService:
    """Return the catalog service from application state."""
    return request.app.state.catalog


CatalogDep = Annotated[CatalogService, Depends(_get_catalog)]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _parse_id(raw: str) -> int | None:
    return int(raw) if _ID_RE.fullmatch(raw) else None


def _parse_page(raw: str | None) -> int:
    if raw and _ID_RE.fullmatch(raw.strip()):
        return max(int(raw), 1)
    return 1


# ---------------------------------------------------------------------------
# Talks
# ---------------------------------------------------------------------------


@router.get(
    "/talks",
    response_model=SearchResult,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
    summary="Search talks",
)
async def search_talks(
    catalog: CatalogDep,
    q: Annotated[str, Query()] = "",
    page: Annotated[str | None, Query()] = None,
):
    """Search the whole site; an empty query returns an empty first page."""
    query = q.strip()
    if not query:
        return SearchResult(talks=[], page=1, has_more=False)

    try:
        return await catalog.search_talks(query, _parse_page(page))
    except CatalogError as exc:
        _logger.error("talk_search_failed", query=query, error=str(exc))
        return _error(500, "Search failed")


@router.get(
    "/talks/{talk_id}",
    response_model=TalkDetail,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Get one talk",
)
async def get_talk(talk_id: str, catalog: CatalogDep):
    """Return the full talk record, served from cache when possible."""
    parsed_id = _parse_id(talk_id)
    if parsed_id is None:
        return _error(400, "Invalid talk ID")

    try:
        detail = await catalog.get_talk_detail(parsed_id)
    except CatalogError as exc:
        _logger.error("talk_detail_failed", talk_id=parsed_id, error=str(exc))
        return _error(500, "Failed to fetch talk detail")

    if detail is None:
        return _error(404, "Talk not found")
    return detail


# ---------------------------------------------------------------------------
# Teachers
# ---------------------------------------------------------------------------


@router.get(
    "/teachers",
    response_model=TeacherSearchResult,
    summary="Search teachers by name",
)
async def search_teachers(
    catalog: CatalogDep,
    q: Annotated[str, Query()] = "",
) -> TeacherSearchResult:
    """Match teacher names; failures degrade to an empty list."""
    query = q.strip()
    if not query:
        return TeacherSearchResult(teachers=[])

    try:
        return await catalog.search_teachers(query)
    except Exception as exc:
        _logger.warning("teacher_search_failed", query=query, error=str(exc))
        return TeacherSearchResult(teachers=[])


@router.get(
    "/teachers/{teacher_id}/talks",
    response_model=SearchResult,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List one teacher's talks",
)
async def get_teacher_talks(
    teacher_id: str,
    catalog: CatalogDep,
    page: Annotated[str | None, Query()] = None,
    q: Annotated[str, Query()] = "",
):
    """Newest-first talks by one teacher, optionally filtered by *q*."""
    parsed_id = _parse_id(teacher_id)
    if parsed_id is None:
        return _error(400, "Invalid teacher ID")

    try:
        return await catalog.get_teacher_talks(parsed_id, _parse_page(page), q.strip() or None)
    except CatalogError as exc:
        _logger.error("teacher_talks_failed", teacher_id=parsed_id, error=str(exc))
        return _error(500, "Failed to fetch teacher talks")


# ---------------------------------------------------------------------------
# Retreats
# ---------------------------------------------------------------------------


@router.get(
    "/retreats/{retreat_id}/talks",
    response_model=RetreatTalks,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List one retreat's talks",
)
async def get_retreat_talks(
    retreat_id: str,
    catalog: CatalogDep,
    page: Annotated[str | None, Query()] = None,
):
    """All talks from a retreat, with its display title when known."""
    parsed_id = _parse_id(retreat_id)
    if parsed_id is None:
        return _error(400, "Invalid retreat ID")

    try:
        return await catalog.get_retreat_talks(parsed_id, _parse_page(page))
    except CatalogError as exc:
        _logger.error("retreat_talks_failed", retreat_id=parsed_id, error=str(exc))
        return _error(500, "Failed to fetch retreat talks")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health(catalog: CatalogDep) -> HealthResponse:
    """Report liveness and whether the teacher directory is loaded."""
    return HealthResponse(version=__version__, teacher_directory=catalog.directory.state.value)
