"""Integration test fixtures.

Provides the Starlette app wired with a real cache, SyllabusIndexService and
ChatOrchestrator over an in-memory fetcher and model client, driven through
httpx's ASGI transport so no server is started. Document fixtures come from
tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from coursecontext.config import Settings
from coursecontext.orchestrator import ChatOrchestrator
from coursecontext.server import create_app
from coursecontext.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette

    from coursecontext.syllabi import SyllabusIndexService
    from tests.conftest import FakeLLM


@pytest.fixture()
def app_state(syllabi: SyllabusIndexService, fake_llm: FakeLLM) -> AppState:
    settings = Settings(syllabi={"index_url": syllabi.index_url})
    return AppState(
        settings=settings,
        syllabi=syllabi,
        llm=fake_llm,
        orchestrator=ChatOrchestrator(syllabi, fake_llm, timezone=settings.timezone),
    )


@pytest.fixture()
def app(app_state: AppState) -> Starlette:
    return create_app(state=app_state)


@pytest.fixture()
async def client(app: Starlette) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    ) as client:
        yield client
