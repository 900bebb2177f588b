"""Unit tests for the single-flight teacher directory."""

from __future__ import annotations

import asyncio
import gc

import httpx
import pytest

from dharmaseed_player.models.catalog import Teacher
from dharmaseed_player.services.teacher_directory import DirectoryState, TeacherDirectory, rank_teachers
from dharmaseed_player.utils.errors import DirectoryBootstrapError
from tests.conftest import form_fields, make_client


class FakeTeacherApi:
    """Stand-in for ``/api/1/teachers/`` that counts calls and can fail on demand."""

    def __init__(self, names: dict[int, str]) -> None:
        self.names = names
        self.list_calls = 0
        self.batch_calls: list[list[int]] = []
        self.fail_list = False
        self.fail_batch_containing: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        fields = form_fields(request)
        if fields["detail"] == "0":
            self.list_calls += 1
            if self.fail_list:
                return httpx.Response(500)
            return httpx.Response(200, json={"items": list(self.names)})

        ids = [int(part) for part in fields["items"].split(",")]
        self.batch_calls.append(ids)
        if self.fail_batch_containing in ids:
            return httpx.Response(502)
        items = {str(i): {"name": self.names[i]} for i in ids if i in self.names}
        return httpx.Response(200, json={"items": items})


def _directory(api: FakeTeacherApi, **kwargs) -> TeacherDirectory:
    return TeacherDirectory(make_client(api), **kwargs)


class TestRankTeachers:
    def test_prefix_matches_rank_first(self) -> None:
        teachers = (
            Teacher(id=1, name="Brad Adams"),
            Teacher(id=2, name="Ada Lovelace"),
            Teacher(id=3, name="Nadia Ada"),
        )
        ranked = rank_teachers(teachers, "ada", 20)
        assert [t.name for t in ranked] == ["Ada Lovelace", "Brad Adams", "Nadia Ada"]

    def test_case_insensitive_and_limited(self) -> None:
        teachers = tuple(Teacher(id=i, name=f"Teacher {i:02d}") for i in range(30))
        ranked = rank_teachers(teachers, "TEACHER", 20)
        assert len(ranked) == 20
        assert ranked[0].name == "Teacher 00"

    def test_no_match(self) -> None:
        assert rank_teachers((Teacher(id=1, name="Ajahn Chah"),), "zzz", 20) == []


class TestTeacherDirectory:
    @pytest.mark.asyncio
    async def test_bootstrap_then_search_from_memory(self) -> None:
        api = FakeTeacherApi({1: "Ada Lovelace", 2: "Brad Adams", 3: "Carol"})
        directory = _directory(api)
        assert directory.state is DirectoryState.EMPTY

        result = await directory.search("  ada ")
        assert [t.name for t in result] == ["Ada Lovelace", "Brad Adams"]
        assert directory.state is DirectoryState.READY

        await directory.search("carol")
        assert api.list_calls == 1
        assert len(api.batch_calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_searches_share_one_bootstrap(self) -> None:
        api = FakeTeacherApi({1: "Ada", 2: "Bea"})
        directory = _directory(api)

        first, second, third = await asyncio.gather(
            directory.search("ada"),
            directory.search("bea"),
            directory.search("a"),
        )

        assert api.list_calls == 1
        assert [t.name for t in first] == ["Ada"]
        assert [t.name for t in second] == ["Bea"]
        assert len(third) == 2

    @pytest.mark.asyncio
    async def test_state_is_loading_while_bootstrap_runs(self) -> None:
        api = FakeTeacherApi({1: "Ada"})
        directory = _directory(api)

        task = asyncio.ensure_future(directory.teachers())
        await asyncio.sleep(0)
        assert directory.state is DirectoryState.LOADING
        await task
        assert directory.state is DirectoryState.READY

    @pytest.mark.asyncio
    async def test_failed_bootstrap_is_retried_on_next_call(self) -> None:
        api = FakeTeacherApi({1: "Ada"})
        api.fail_list = True
        directory = _directory(api)

        with pytest.raises(DirectoryBootstrapError):
            await directory.search("ada")
        assert directory.state is DirectoryState.EMPTY

        api.fail_list = False
        result = await directory.search("ada")
        assert [t.name for t in result] == ["Ada"]
        assert api.list_calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_waiters_all_see_the_failure(self) -> None:
        api = FakeTeacherApi({1: "Ada"})
        api.fail_list = True
        directory = _directory(api)

        results = await asyncio.gather(
            directory.search("a"),
            directory.search("b"),
            return_exceptions=True,
        )

        assert all(isinstance(r, DirectoryBootstrapError) for r in results)
        assert api.list_calls == 1

    @pytest.mark.asyncio
    async def test_partial_batch_failure_publishes_nothing_and_restarts(self) -> None:
        names = {i: f"Teacher {i:03d}" for i in range(1, 502)}
        api = FakeTeacherApi(names)
        api.fail_batch_containing = 501
        directory = _directory(api, batch_size=500)

        with pytest.raises(DirectoryBootstrapError) as exc_info:
            await directory.search("teacher")
        assert exc_info.value.status_code == 502
        assert directory.state is DirectoryState.EMPTY
        assert [len(batch) for batch in api.batch_calls] == [500, 1]

        api.fail_batch_containing = None
        teachers = await directory.teachers()

        assert api.list_calls == 2
        # Retry starts again from the first batch.
        assert [len(batch) for batch in api.batch_calls] == [500, 1, 500, 1]
        assert len(teachers) == 501
        assert len({t.id for t in teachers}) == 501

    @pytest.mark.asyncio
    async def test_entries_without_names_are_skipped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if form_fields(request)["detail"] == "0":
                return httpx.Response(200, json={"items": [1, 2, "2", "x"]})
            return httpx.Response(200, json={"items": {"1": {"name": "Ada"}, "2": {"name": ""}}})

        directory = TeacherDirectory(make_client(handler))
        teachers = await directory.teachers()
        assert teachers == (Teacher(id=1, name="Ada"),)

    @pytest.mark.asyncio
    async def test_search_truncates_to_limit(self) -> None:
        api = FakeTeacherApi({i: f"Name {i:02d}" for i in range(1, 31)})
        directory = _directory(api)

        result = await directory.search("name")
        assert len(result) == 20
        assert result[0].name == "Name 01"

    @pytest.mark.asyncio
    async def test_failure_after_all_waiters_cancelled_is_not_reported_unretrieved(self) -> None:
        loop = asyncio.get_running_loop()
        reports: list[dict] = []
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: reports.append(context))

        api = FakeTeacherApi({1: "Ada"})
        api.fail_list = True
        directory = _directory(api)
        try:
            waiter = asyncio.ensure_future(directory.teachers())
            await asyncio.sleep(0)
            bootstrap = directory._loading
            assert bootstrap is not None

            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            await asyncio.wait({bootstrap})

            assert bootstrap.done() and not bootstrap.cancelled()
            del bootstrap, waiter
            gc.collect()
        finally:
            loop.set_exception_handler(previous_handler)

        assert reports == []
        assert directory.state is DirectoryState.EMPTY
        assert api.list_calls == 1
