"""Protocol interfaces for swappable components.

The orchestrator and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory fakes with no network dependency
- Another model provider or document source to be swapped in without
  changing the request pipeline
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from coursecontext.models.chat import Message
    from coursecontext.models.index import CourseIndex


class FetcherProtocol(Protocol):
    """Interface for the plain HTTP GET primitive."""

    async def fetch_text(self, url: str) -> str: ...

    async def fetch_json(self, url: str) -> Any: ...


class SyllabusSourceProtocol(Protocol):
    """Interface for the course index and syllabus documents."""

    async def get_index(self) -> CourseIndex: ...

    async def get_syllabus_text(self, url: str) -> str: ...


class LLMClientProtocol(Protocol):
    """Narrow capability over the chat-completion API."""

    async def send(self, messages: Sequence[Message]) -> str: ...
