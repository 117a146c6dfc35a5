"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the Starlette lifespan context manager
- Register routes and CORS
- Map errors to HTTP responses at the request boundary
- Start uvicorn
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from coursecontext import __version__
from coursecontext.cache import RemoteDocumentCache
from coursecontext.config import Settings
from coursecontext.errors import CourseContextError, InvalidRequest, UnsupportedProviderError
from coursecontext.fetcher import Fetcher, build_http_client
from coursecontext.llm import OpenAIChatClient, check_provider
from coursecontext.orchestrator import ChatOrchestrator
from coursecontext.runtime import LocalTime, iso_utc, utc_now
from coursecontext.state import AppState
from coursecontext.syllabi import SyllabusIndexService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx
    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

INDEX_PREFETCH_TIMEOUT_SECONDS = 5.0


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire cache, fetcher, syllabus service, model client and orchestrator."""
    cache = RemoteDocumentCache(single_flight=settings.cache.single_flight)
    syllabi = SyllabusIndexService(
        Fetcher(http_client),
        cache,
        index_url=settings.syllabi.index_url,
        ttl_seconds=settings.cache.ttl_seconds,
    )
    llm = OpenAIChatClient(http_client, settings.llm)
    orchestrator = ChatOrchestrator(syllabi, llm, timezone=settings.timezone)
    return AppState(
        settings=settings,
        syllabi=syllabi,
        llm=llm,
        orchestrator=orchestrator,
        cache=cache,
        http_client=http_client,
    )


async def _prefetch_index(state: AppState) -> bool:
    """Warm the index cache once before serving.

    Returns True if the index was loaded. Never raises: the service runs
    without syllabus grounding until a later request succeeds.
    """
    if not state.settings.syllabi.index_url:
        log.warning("index_url_not_configured")
        return False
    try:
        index = await asyncio.wait_for(
            state.syllabi.get_index(),
            timeout=INDEX_PREFETCH_TIMEOUT_SECONDS,
        )
    except TimeoutError:
        log.warning("index_prefetch_timeout", timeout=INDEX_PREFETCH_TIMEOUT_SECONDS)
    except Exception:
        log.warning("index_prefetch_error", exc_info=True)
    else:
        log.info("index_prefetch_success", courses=len(index))
        return True
    return False


def _log_startup_checks(settings: Settings) -> None:
    try:
        check_provider(settings.llm.provider)
    except UnsupportedProviderError as exc:
        # Not fatal at startup: every chat request will fail with a 500
        log.error("llm_provider_unsupported", provider=settings.llm.provider, reason=exc.message)
    if settings.llm.api_key is None:
        log.warning("llm_api_key_missing")


@asynccontextmanager
async def _managed_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    _setup_logging(settings)
    log.info(
        "server_starting",
        version=__version__,
        port=settings.server.port,
        provider=settings.llm.provider,
        index_url=settings.syllabi.index_url,
        cache_ttl_ms=settings.cache.ttl_ms,
    )
    _log_startup_checks(settings)

    http_client = build_http_client(settings.fetcher)
    state = build_state(settings, http_client)
    prefetched = await _prefetch_index(state)
    log.info("server_started", version=__version__, index_prefetched=prefetched)

    try:
        yield state
    finally:
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _state(request: Request) -> AppState:
    return request.app.state.app_state


async def health(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


async def debug_time(request: Request) -> JSONResponse:
    now = utc_now()
    local = LocalTime.at(now, _state(request).settings.timezone)
    return JSONResponse(
        {
            "isoNow": iso_utc(now),
            "viennaDate": local.date,
            "viennaTime": local.time,
        }
    )


async def debug_syllabi_index(request: Request) -> JSONResponse:
    try:
        index = await _state(request).syllabi.get_index()
    except CourseContextError as exc:
        log.warning("debug_index_error", **exc.to_dict())
        return JSONResponse({"ok": False, "error": exc.message})
    except Exception:
        log.error("debug_index_unexpected_error", exc_info=True)
        return JSONResponse({"ok": False, "error": "Server error"})
    return JSONResponse({"ok": True, "courses": index.names()})


async def chat(request: Request) -> JSONResponse:
    state = _state(request)
    with structlog.contextvars.bound_contextvars(request_id=secrets.token_hex(4)):
        try:
            body = await request.json()
        except ValueError:
            body = None
        messages = body.get("messages") if isinstance(body, dict) else None

        try:
            result = await state.orchestrator.handle(messages)
        except InvalidRequest as exc:
            log.info("chat_invalid_request", message=exc.message)
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        except CourseContextError as exc:
            log.error("request_failed", **exc.to_dict(), exc_info=True)
            return JSONResponse({"error": "Server error"}, status_code=500)
        except Exception:
            log.error("request_unexpected_error", exc_info=True)
            return JSONResponse({"error": "Server error"}, status_code=500)

        return JSONResponse({"reply": result.reply})


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> Starlette:
    """Build the Starlette application.

    When ``state`` is given it is used as-is and the lifespan creates nothing;
    tests use this to inject fakes.
    """
    if state is not None:
        settings = state.settings
    elif settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if state is not None:
            yield
            return
        async with _managed_state(settings) as built:
            app.state.app_state = built
            yield

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/debug/time", debug_time, methods=["GET"]),
            Route("/debug/syllabi-index", debug_syllabi_index, methods=["GET"]),
            Route("/api/chat", chat, methods=["POST"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=settings.server.cors_origins,
                allow_methods=["*"],
                allow_headers=["*"],
            ),
        ],
        lifespan=lifespan,
    )
    if state is not None:
        app.state.app_state = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
