"""Shared test fixtures for the coursecontext test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from coursecontext.cache import RemoteDocumentCache
from coursecontext.errors import UpstreamFetchError
from coursecontext.syllabi import SyllabusIndexService, parse_index

if TYPE_CHECKING:
    from collections.abc import Sequence

    from coursecontext.models.chat import Message
    from coursecontext.models.index import CourseIndex

INDEX_URL = "https://tim.example.org/syllabi/index.json"


class FakeClock:
    """Monotonic clock under test control."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """In-memory FetcherProtocol. Unknown URLs raise UpstreamFetchError."""

    def __init__(self) -> None:
        self.documents: dict[str, Any] = {}
        self.calls: list[str] = []

    async def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        document = self.documents.get(url)
        if isinstance(document, Exception):
            raise document
        if not isinstance(document, str):
            raise UpstreamFetchError(f"HTTP 404 fetching {url}")
        return document

    async def fetch_json(self, url: str) -> Any:
        self.calls.append(url)
        document = self.documents.get(url)
        if isinstance(document, Exception):
            raise document
        if document is None:
            raise UpstreamFetchError(f"HTTP 404 fetching {url}")
        return document


class FakeLLM:
    """In-memory LLMClientProtocol recording every outbound sequence."""

    def __init__(self, reply: str = "Die Prüfung findet am 30. Jänner statt.") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[list[Message]] = []

    async def send(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def index_document() -> dict:
    """Minimal index document in source order."""
    return {
        "Innovation Management": {
            "aliases": ["IM", "Innovationsmanagement"],
            "syllabus_url": "innovation-management.txt",
        },
        "Technology Strategy": {
            "aliases": ["TS", "Technologiestrategie"],
            "syllabus_url": "https://tim.example.org/syllabi/technology-strategy.txt",
        },
        "Digital Entrepreneurship": {
            "aliases": ["DE Seminar"],
        },
    }


@pytest.fixture()
def course_index(index_document: dict) -> CourseIndex:
    return parse_index(index_document, base_url=INDEX_URL)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_fetcher(index_document: dict) -> FakeFetcher:
    fetcher = FakeFetcher()
    fetcher.documents[INDEX_URL] = index_document
    fetcher.documents["https://tim.example.org/syllabi/innovation-management.txt"] = (
        "Innovation Management SS 2026\nFinal exam: 30 June 2026, HS 3\n"
    )
    fetcher.documents["https://tim.example.org/syllabi/technology-strategy.txt"] = (
        "Technology Strategy\nRegistration via u:space until 5 March.\n"
    )
    return fetcher


@pytest.fixture()
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture()
def syllabi(fake_fetcher: FakeFetcher, clock: FakeClock) -> SyllabusIndexService:
    return SyllabusIndexService(
        fake_fetcher,
        RemoteDocumentCache(clock=clock),
        index_url=INDEX_URL,
        ttl_seconds=900.0,
    )
