"""Unit tests for coursecontext.syllabi."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from coursecontext.cache import RemoteDocumentCache
from coursecontext.errors import ConfigurationError, ErrorCode, UpstreamFetchError
from coursecontext.syllabi import SyllabusIndexService, parse_index

if TYPE_CHECKING:
    from coursecontext.models.index import CourseIndex
    from tests.conftest import FakeClock, FakeFetcher

INDEX_URL = "https://tim.example.org/syllabi/index.json"


# ---------------------------------------------------------------------------
# parse_index
# ---------------------------------------------------------------------------


class TestParseIndex:
    def test_preserves_document_order(self, course_index: CourseIndex) -> None:
        assert course_index.names() == [
            "Innovation Management",
            "Technology Strategy",
            "Digital Entrepreneurship",
        ]

    def test_relative_syllabus_url_resolved(self, course_index: CourseIndex) -> None:
        meta = course_index.get("Innovation Management")
        assert meta is not None
        assert meta.syllabus_url == "https://tim.example.org/syllabi/innovation-management.txt"

    def test_absolute_syllabus_url_kept(self, course_index: CourseIndex) -> None:
        meta = course_index.get("Technology Strategy")
        assert meta is not None
        assert meta.syllabus_url == "https://tim.example.org/syllabi/technology-strategy.txt"

    def test_missing_syllabus_url(self, course_index: CourseIndex) -> None:
        meta = course_index.get("Digital Entrepreneurship")
        assert meta is not None
        assert meta.syllabus_url is None

    def test_array_form(self) -> None:
        index = parse_index(
            [
                {"name": "B Course", "aliases": ["bc"], "url": "https://x.example/b.txt"},
                {"name": "A Course", "syllabusUrl": "https://x.example/a.txt"},
            ]
        )
        assert index.names() == ["B Course", "A Course"]
        assert index.courses["B Course"].aliases == ["bc"]
        assert index.courses["A Course"].syllabus_url == "https://x.example/a.txt"

    def test_null_metadata_allowed(self) -> None:
        index = parse_index({"Solo": None})
        assert index.courses["Solo"].aliases == []

    def test_aliases_deduplicated_and_trimmed(self) -> None:
        index = parse_index({"X": {"aliases": [" x1 ", "x1", "", "x2"]}})
        assert index.courses["X"].aliases == ["x1", "x2"]

    @pytest.mark.parametrize("raw", ["a string", 42, None])
    def test_rejects_non_container(self, raw: object) -> None:
        with pytest.raises(ValueError):
            parse_index(raw)

    def test_rejects_array_entry_without_name(self) -> None:
        with pytest.raises(ValueError):
            parse_index([{"aliases": ["x"]}])

    def test_rejects_bad_aliases(self) -> None:
        with pytest.raises(ValueError):
            parse_index({"X": {"aliases": "not-a-list"}})

    def test_rejects_duplicate_names(self) -> None:
        with pytest.raises(ValueError):
            parse_index([{"name": "X"}, {"name": "X "}])


# ---------------------------------------------------------------------------
# SyllabusIndexService
# ---------------------------------------------------------------------------


class TestGetIndex:
    async def test_loads_index(self, syllabi: SyllabusIndexService) -> None:
        index = await syllabi.get_index()
        assert len(index) == 3

    async def test_cached_within_ttl(
        self,
        syllabi: SyllabusIndexService,
        fake_fetcher: FakeFetcher,
        clock: FakeClock,
    ) -> None:
        await syllabi.get_index()
        clock.advance(899)
        await syllabi.get_index()
        assert fake_fetcher.calls == [INDEX_URL]

    async def test_refetched_after_ttl(
        self,
        syllabi: SyllabusIndexService,
        fake_fetcher: FakeFetcher,
        clock: FakeClock,
    ) -> None:
        await syllabi.get_index()
        clock.advance(900)
        await syllabi.get_index()
        assert fake_fetcher.calls == [INDEX_URL, INDEX_URL]

    async def test_missing_url_raises_configuration_error(
        self, fake_fetcher: FakeFetcher
    ) -> None:
        service = SyllabusIndexService(
            fake_fetcher, RemoteDocumentCache(), index_url=None, ttl_seconds=900
        )
        with pytest.raises(ConfigurationError) as exc_info:
            await service.get_index()
        assert exc_info.value.code == ErrorCode.CONFIGURATION_ERROR
        assert fake_fetcher.calls == []

    async def test_fetch_failure_raises(
        self, syllabi: SyllabusIndexService, fake_fetcher: FakeFetcher
    ) -> None:
        fake_fetcher.documents[INDEX_URL] = UpstreamFetchError("HTTP 502", recoverable=True)
        with pytest.raises(UpstreamFetchError):
            await syllabi.get_index()

    async def test_invalid_document_raises_fetch_error(
        self, syllabi: SyllabusIndexService, fake_fetcher: FakeFetcher
    ) -> None:
        fake_fetcher.documents[INDEX_URL] = ["no", "names"]
        with pytest.raises(UpstreamFetchError) as exc_info:
            await syllabi.get_index()
        assert "Invalid syllabus index" in exc_info.value.message

    async def test_stale_index_survives_failed_refresh(
        self,
        syllabi: SyllabusIndexService,
        fake_fetcher: FakeFetcher,
        clock: FakeClock,
    ) -> None:
        first = await syllabi.get_index()
        clock.advance(1000)
        fake_fetcher.documents[INDEX_URL] = UpstreamFetchError("HTTP 500")
        with pytest.raises(UpstreamFetchError):
            await syllabi.get_index()

        fake_fetcher.documents[INDEX_URL] = {"Only": {}}
        assert (await syllabi.get_index()).names() == ["Only"]
        assert first.names() != ["Only"]


class TestGetSyllabusText:
    async def test_returns_raw_text(self, syllabi: SyllabusIndexService) -> None:
        text = await syllabi.get_syllabus_text(
            "https://tim.example.org/syllabi/technology-strategy.txt"
        )
        assert text.startswith("Technology Strategy")

    async def test_per_url_caching(
        self,
        syllabi: SyllabusIndexService,
        fake_fetcher: FakeFetcher,
        clock: FakeClock,
    ) -> None:
        url_ts = "https://tim.example.org/syllabi/technology-strategy.txt"
        url_im = "https://tim.example.org/syllabi/innovation-management.txt"
        await syllabi.get_syllabus_text(url_ts)
        clock.advance(500)
        await syllabi.get_syllabus_text(url_im)
        clock.advance(500)
        await syllabi.get_syllabus_text(url_ts)  # 1000s old: refetched
        await syllabi.get_syllabus_text(url_im)  # 500s old: cached
        assert fake_fetcher.calls == [url_ts, url_im, url_ts]

    async def test_missing_document_raises(self, syllabi: SyllabusIndexService) -> None:
        with pytest.raises(UpstreamFetchError):
            await syllabi.get_syllabus_text("https://tim.example.org/syllabi/missing.txt")
