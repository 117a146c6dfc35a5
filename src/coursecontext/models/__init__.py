from __future__ import annotations

from coursecontext.models.cache import CachedEntry
from coursecontext.models.chat import ChatReply, Message, Role
from coursecontext.models.index import CourseIndex, CourseMeta

__all__ = [
    # cache
    "CachedEntry",
    # index
    "CourseMeta",
    "CourseIndex",
    # chat
    "Role",
    "Message",
    "ChatReply",
]
