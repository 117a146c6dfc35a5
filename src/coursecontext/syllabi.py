"""Course index and syllabus documents, served through the document cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import structlog
from pydantic import ValidationError

from coursecontext.errors import ConfigurationError, UpstreamFetchError
from coursecontext.models.index import CourseIndex, CourseMeta

if TYPE_CHECKING:
    from coursecontext.cache import RemoteDocumentCache
    from coursecontext.protocols import FetcherProtocol

log = structlog.get_logger()


def parse_index(raw: Any, *, base_url: str | None = None) -> CourseIndex:
    """Build a CourseIndex from a decoded index document.

    Accepts either an object mapping course name → metadata, or an array of
    metadata objects carrying a ``name`` field. Document order is preserved.
    Relative syllabus locations are resolved against ``base_url``.
    """
    if isinstance(raw, dict):
        items = list(raw.items())
    elif isinstance(raw, list):
        items = []
        for obj in raw:
            if not isinstance(obj, dict) or not isinstance(obj.get("name"), str):
                raise ValueError("index array entries must be objects with a string 'name'")
            items.append((obj["name"], obj))
    else:
        raise ValueError(f"index document must be an object or array, got {type(raw).__name__}")

    courses: dict[str, CourseMeta] = {}
    for name, body in items:
        name = name.strip()
        if not name:
            raise ValueError("course name must not be empty")
        if name in courses:
            raise ValueError(f"duplicate course name: {name!r}")
        meta = CourseMeta.model_validate(body if body is not None else {})
        if meta.syllabus_url and base_url:
            meta = meta.model_copy(update={"syllabus_url": urljoin(base_url, meta.syllabus_url)})
        courses[name] = meta
    return CourseIndex(courses=courses)


class SyllabusIndexService:
    """Loads the course index and syllabus texts with per-URL TTL caching."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        cache: RemoteDocumentCache,
        *,
        index_url: str | None,
        ttl_seconds: float,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._index_url = index_url
        self._ttl_seconds = ttl_seconds

    @property
    def index_url(self) -> str | None:
        return self._index_url

    async def get_index(self) -> CourseIndex:
        """Return the course index, fetching it when the cached copy is stale.

        Raises ConfigurationError when no index location is configured and
        UpstreamFetchError when the fetch or decoding fails.
        """
        if not self._index_url:
            raise ConfigurationError("No syllabus index URL configured (syllabi.index_url)")
        return await self._cache.get_or_fetch(
            self._index_url, self._ttl_seconds, self._load_index
        )

    async def get_syllabus_text(self, url: str) -> str:
        """Return the raw text of the syllabus document at ``url``."""
        return await self._cache.get_or_fetch(url, self._ttl_seconds, self._fetcher.fetch_text)

    async def _load_index(self, url: str) -> CourseIndex:
        raw = await self._fetcher.fetch_json(url)
        try:
            index = parse_index(raw, base_url=url)
        except (ValueError, ValidationError) as exc:
            raise UpstreamFetchError(f"Invalid syllabus index at {url}: {exc}") from exc
        log.info("index_loaded", url=url, courses=len(index))
        return index
