"""Synthetic system messages that precede the user's conversation.

The outbound sequence is always::

    [runtime, persona, syllabus?] + conversation

where the syllabus message is present only when a course was detected and its
syllabus text could be retrieved. The conversation is appended unmodified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from coursecontext.models.chat import Message, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from coursecontext.runtime import LocalTime


PERSONA_PROMPT = (
    "You are the official student assistant for the Chair of Technology and "
    "Innovation Management (TIM).\n\n"
    "Institutional context:\n"
    "- Chair: Technology and Innovation Management (TIM)\n"
    "- Institute: Institut für Rechnungswesen, Innovation und Strategie\n"
    "- Faculty: Faculty of Business, Economics and Statistics\n"
    "- University: University of Vienna\n"
    "- TIM offers multiple courses as part of one specialization within Business "
    "Administration, International Business, and related curricula.\n\n"
    "Scope and authority:\n"
    "- You support students taking ANY TIM course.\n"
    "- You answer organizational and content-related questions reliably and confidently.\n"
    "- Organizational information must be grounded in the official syllabus first.\n"
    "- If information is not in the syllabus, it may be confirmed via official "
    "University of Vienna websites.\n"
    "- Never invent dates, rules, or requirements.\n\n"
    "Course disambiguation rule:\n"
    "- If a question depends on a specific TIM course and the course is not clearly "
    "specified, ask ONE short clarifying question naming the relevant course options.\n"
    "- Do not guess which course the student means.\n\n"
    "Answer policy:\n"
    "- If a question can be answered with available information, answer it immediately.\n"
    "- Do NOT ask follow-up questions unless essential information is missing.\n"
    "- For organizational questions, respond in 1–2 short sentences.\n"
    "- For content-related questions, respond concisely but completely.\n"
    "- Avoid greetings, small talk, or closing questions.\n"
    "- Avoid hedging language (e.g., 'voraussichtlich', 'meistens') unless "
    "uncertainty is real and unavoidable.\n\n"
    "Language and clarity:\n"
    "- Always reply in the language of the user's last message.\n"
    "- Use clear, student-friendly wording.\n"
    "- State facts directly and precisely.\n\n"
    "Fallback behavior:\n"
    "- If information is not available or cannot be verified, say so explicitly and "
    "indicate where the student should check next (e.g., syllabus, official website, "
    "course coordinator).\n"
    "- Do not speculate.\n\n"
    "Stop after the answer."
)


def runtime_message(local: LocalTime, last_user_text: str) -> Message:
    """Anchor "now" for relative-date resolution."""
    return Message.system(
        "Runtime context (authoritative):\n"
        f"- Timezone: {local.timezone}\n"
        f"- Today: {local.weekday}, {local.date}\n"
        f"- Current time: {local.time}\n"
        f"- Current semester: {local.semester}\n"
        "Rules:\n"
        "- If ANY prior message (including assistant messages) conflicts with the "
        "runtime context, correct it.\n"
        '- Interpret "today/tomorrow/next week" using the runtime date.\n'
        "- Reply in the same language as the user's last message.\n"
        f"User last message:\n{last_user_text}\n"
    )


def persona_message() -> Message:
    return Message.system(PERSONA_PROMPT)


def syllabus_message(course: str, syllabus_text: str) -> Message:
    return Message.system(
        f'Syllabus context for the TIM course "{course}" (authoritative):\n'
        "Rules:\n"
        "- Answer organizational questions (exams, deadlines, registration, grading, "
        "attendance, rooms, dates) ONLY from the syllabus text below.\n"
        "- If the answer is not in the syllabus text, say that the information is not "
        "available and point the student to an official source (the course page on "
        "u:find, Moodle, or the course coordinator).\n"
        "--- BEGIN SYLLABUS ---\n"
        f"{syllabus_text.strip()}\n"
        "--- END SYLLABUS ---\n"
    )


def build_context(
    local: LocalTime,
    last_user_text: str,
    course: str | None,
    syllabus_text: str | None,
) -> list[Message]:
    """Return the synthetic messages in their fixed order."""
    messages = [runtime_message(local, last_user_text), persona_message()]
    if course is not None and syllabus_text is not None:
        messages.append(syllabus_message(course, syllabus_text))
    return messages


def assemble_conversation(
    local: LocalTime,
    conversation: Sequence[Message],
    course: str | None,
    syllabus_text: str | None,
) -> list[Message]:
    """Prepend the synthetic context to ``conversation``."""
    return [
        *build_context(local, last_user_text(conversation), course, syllabus_text),
        *conversation,
    ]


def last_user_text(conversation: Sequence[Message]) -> str:
    for message in reversed(conversation):
        if message.role == Role.USER:
            return message.content
    return ""
