"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan
context manager) and read by every request handler from ``app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from coursecontext.cache import RemoteDocumentCache
    from coursecontext.config import Settings
    from coursecontext.orchestrator import ChatOrchestrator
    from coursecontext.protocols import LLMClientProtocol, SyllabusSourceProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    syllabi: SyllabusSourceProtocol
    llm: LLMClientProtocol
    orchestrator: ChatOrchestrator
    cache: RemoteDocumentCache | None = None
    http_client: httpx.AsyncClient | None = None
