from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, TypeAdapter


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """Single conversation turn as exchanged with the chat-completion API."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)


conversation_adapter: TypeAdapter[list[Message]] = TypeAdapter(list[Message])


class ChatReply(BaseModel):
    """Outcome of one chat request."""

    reply: str
    clarification: bool = False  # True when answered without calling the model
    course: str | None = None
