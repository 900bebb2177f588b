"""Process-wide teacher directory with single-flight bootstrap.

The upstream JSON API can list every teacher id, and resolve ids to names in
batches.  The directory fetches the whole table once, keeps it for the life
of the process, and answers name searches from memory.

State machine::

    EMPTY --search()--> LOADING --all batches ok--> READY
                           |
                           +--any failure--> EMPTY   (next search retries)

While LOADING, every caller awaits the same ``asyncio.Task``; no second
bootstrap is started.  The snapshot is only published once every batch has
succeeded, so a failure halfway through leaves nothing behind and the next
attempt starts again from the first batch.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from dharmaseed_player.models.catalog import Teacher
from dharmaseed_player.providers.upstream.dharmaseed_client import DharmaSeedClient
from dharmaseed_player.utils.errors import DirectoryBootstrapError, UpstreamError
from dharmaseed_player.utils.logging import get_logger

DEFAULT_BATCH_SIZE = 500
DEFAULT_SEARCH_LIMIT = 20

_logger = get_logger(__name__)


class DirectoryState(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    """Lifecycle of the directory snapshot."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


def rank_teachers(teachers: tuple[Teacher, ...], query: str, limit: int) -> list[Teacher]:
    """Case-insensitive substring search with prefix matches ranked first.

    Within each group, names sort lexicographically; the result is cut to
    *limit* entries.
    """
    needle = query.lower()
    matches = [teacher for teacher in teachers if needle in teacher.name.lower()]
    matches.sort(key=lambda t: (not t.name.lower().startswith(needle), t.name))
    return matches[:limit]


class TeacherDirectory:
    """Lazily bootstrapped, immutable teacher id/name snapshot.

    Parameters
    ----------
    client:
        Upstream transport used for the ``teachers`` JSON API.
    batch_size:
        Number of ids resolved per detail request.
    search_limit:
        Maximum number of matches returned by :meth:`search`.
    """

    def __init__(
        self,
        client: DharmaSeedClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self._client = client
        self._batch_size = batch_size
        self._search_limit = search_limit
        self._snapshot: tuple[Teacher, ...] | None = None
        self._loading: asyncio.Task[tuple[Teacher, ...]] | None = None

    @property
    def state(self) -> DirectoryState:
        if self._snapshot is not None:
            return DirectoryState.READY
        if self._loading is not None:
            return DirectoryState.LOADING
        return DirectoryState.EMPTY

    async def teachers(self) -> tuple[Teacher, ...]:
        """Return the snapshot, bootstrapping it on first use.

        Raises
        ------
        DirectoryBootstrapError
            When this caller's (shared) bootstrap attempt failed.
        """
        if self._snapshot is not None:
            return self._snapshot
        if self._loading is None:
            self._loading = asyncio.create_task(self._bootstrap())
        # shield: a cancelled waiter must not cancel the bootstrap others await.
        return await asyncio.shield(self._loading)

    async def search(self, query: str) -> list[Teacher]:
        """Return up to ``search_limit`` teachers whose name contains *query*."""
        teachers = await self.teachers()
        return rank_teachers(teachers, query.strip(), self._search_limit)

    # -- Bootstrap -------------------------------------------------------------

    async def _bootstrap(self) -> tuple[Teacher, ...]:
        try:
            ids = await self._fetch_ids()
            names: dict[int, str] = {}
            for start in range(0, len(ids), self._batch_size):
                batch = ids[start : start + self._batch_size]
                for teacher_id, name in (await self._fetch_batch(batch, start)).items():
                    names.setdefault(teacher_id, name)

            snapshot = tuple(Teacher(id=teacher_id, name=name) for teacher_id, name in names.items())
            self._snapshot = snapshot
            _logger.info("teacher_directory_ready", teacher_count=len(snapshot))
            return snapshot
        finally:
            self._loading = None

    async def _fetch_ids(self) -> list[int]:
        try:
            payload = await self._client.post_api("teachers", {"detail": "0"})
        except UpstreamError as exc:
            _logger.warning("teacher_directory_bootstrap_failed", stage="ids", error=str(exc))
            raise DirectoryBootstrapError(
                f"Teacher id list failed: {exc.message}",
                provider_name=exc.provider_name,
                status_code=exc.status_code,
            ) from exc

        ids: list[int] = []
        for raw in payload.get("items") or []:
            try:
                ids.append(int(raw))
            except (TypeError, ValueError):
                continue
        return list(dict.fromkeys(ids))

    async def _fetch_batch(self, batch: list[int], offset: int) -> dict[int, str]:
        form = {"detail": "1", "items": ",".join(str(teacher_id) for teacher_id in batch)}
        try:
            payload = await self._client.post_api("teachers", form)
        except UpstreamError as exc:
            _logger.warning(
                "teacher_directory_bootstrap_failed",
                stage="batch",
                offset=offset,
                batch_size=len(batch),
                error=str(exc),
            )
            raise DirectoryBootstrapError(
                f"Teacher detail batch at offset {offset} failed: {exc.message}",
                provider_name=exc.provider_name,
                status_code=exc.status_code,
            ) from exc

        items = payload.get("items")
        if not isinstance(items, dict):
            return {}

        names: dict[int, str] = {}
        for raw_id, data in items.items():
            name = data.get("name") if isinstance(data, dict) else None
            if not name:
                continue
            try:
                names[int(raw_id)] = str(name)
            except (TypeError, ValueError):
                continue
        return names
