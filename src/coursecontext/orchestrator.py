"""Request-level chat pipeline.

RECEIVED → DETECTING → either CLARIFY (answered locally, no model call) or
ASSEMBLING → CALLING_MODEL → RESPONDED.

Index and syllabus failures degrade to "no syllabus context" and never fail
the request. Model failures are fatal for the request.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from coursecontext.assembler import assemble_conversation, last_user_text
from coursecontext.detector import detect_course, needs_course_context
from coursecontext.errors import (
    ConfigurationError,
    CourseContextError,
    InvalidRequest,
    UpstreamFetchError,
    UpstreamLLMError,
)
from coursecontext.models.chat import ChatReply, conversation_adapter
from coursecontext.models.index import CourseIndex
from coursecontext.runtime import DEFAULT_TIMEZONE, LocalTime, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from coursecontext.models.chat import Message
    from coursecontext.protocols import LLMClientProtocol, SyllabusSourceProtocol

log = structlog.get_logger()


class ChatStage(StrEnum):
    RECEIVED = "received"
    DETECTING = "detecting"
    CLARIFY = "clarify"
    ASSEMBLING = "assembling"
    CALLING_MODEL = "calling_model"
    RESPONDED = "responded"


def parse_conversation(raw: object) -> list[Message]:
    """Validate a decoded request payload into an ordered list of Messages."""
    if not isinstance(raw, list):
        raise InvalidRequest("messages must be an array")
    try:
        return conversation_adapter.validate_python(raw)
    except ValidationError as exc:
        raise InvalidRequest(
            "each message needs a role (system, user, assistant) and string content"
        ) from exc


def clarification_reply(index: CourseIndex) -> str:
    return f"Für welchen TIM-Kurs meinst du das? ({' / '.join(index.names())})"


class ChatOrchestrator:
    """Decides between clarification and a grounded model call for one request."""

    def __init__(
        self,
        syllabi: SyllabusSourceProtocol,
        llm: LLMClientProtocol,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._syllabi = syllabi
        self._llm = llm
        self._timezone = timezone
        self._clock = clock

    async def handle(self, raw_messages: object) -> ChatReply:
        conversation = parse_conversation(raw_messages)
        request_log = log.bind(message_count=len(conversation))
        request_log.debug("chat_stage", stage=ChatStage.RECEIVED)

        request_log.debug("chat_stage", stage=ChatStage.DETECTING)
        text = last_user_text(conversation)
        index = await self._load_index()
        course = detect_course(index, text)
        gated = needs_course_context(text)
        request_log = request_log.bind(course=course, needs_course_context=gated)

        if course is None and gated and len(index) > 1:
            request_log.info("chat_clarification", stage=ChatStage.CLARIFY, courses=len(index))
            return ChatReply(reply=clarification_reply(index), clarification=True)

        request_log.debug("chat_stage", stage=ChatStage.ASSEMBLING)
        syllabus_text = await self._load_syllabus(index, course) if course is not None else None
        outbound = assemble_conversation(
            LocalTime.at(self._clock(), self._timezone),
            conversation,
            course,
            syllabus_text,
        )

        request_log.debug(
            "chat_stage",
            stage=ChatStage.CALLING_MODEL,
            outbound_messages=len(outbound),
            syllabus_grounded=syllabus_text is not None,
        )
        try:
            reply = await self._llm.send(outbound)
        except CourseContextError:
            raise
        except Exception as exc:
            raise UpstreamLLMError(f"Model call failed: {exc}") from exc

        request_log.info("chat_stage", stage=ChatStage.RESPONDED, reply_length=len(reply))
        return ChatReply(reply=reply, course=course)

    async def _load_index(self) -> CourseIndex:
        try:
            return await self._syllabi.get_index()
        except ConfigurationError as exc:
            log.debug("index_not_configured", reason=exc.message)
        except UpstreamFetchError as exc:
            log.warning("index_unavailable", reason=exc.message, exc_info=True)
        except Exception:
            log.error("index_unexpected_error", exc_info=True)
        return CourseIndex()

    async def _load_syllabus(self, index: CourseIndex, course: str) -> str | None:
        meta = index.get(course)
        if meta is None or not meta.syllabus_url:
            log.info("syllabus_location_missing", course=course)
            return None
        try:
            return await self._syllabi.get_syllabus_text(meta.syllabus_url)
        except UpstreamFetchError as exc:
            log.warning(
                "syllabus_unavailable",
                course=course,
                url=meta.syllabus_url,
                reason=exc.message,
                exc_info=True,
            )
        except Exception:
            log.error("syllabus_unexpected_error", course=course, exc_info=True)
        return None
