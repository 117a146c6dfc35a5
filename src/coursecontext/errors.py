from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_REQUEST = "INVALID_REQUEST"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UPSTREAM_FETCH_FAILED = "UPSTREAM_FETCH_FAILED"
    UPSTREAM_LLM_FAILED = "UPSTREAM_LLM_FAILED"
    UNSUPPORTED_PROVIDER = "UNSUPPORTED_PROVIDER"


class CourseContextError(Exception):
    """Base class for all expected failure conditions.

    Raised by business logic and converted into an HTTP response only in
    server.py. Subclasses fix the error code and the status it maps to.
    """

    code: ErrorCode
    status_code: int = 500

    def __init__(self, message: str, *, recoverable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
        }


class InvalidRequest(CourseContextError):
    """Malformed request body. Reported to the caller, not an incident."""

    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class ConfigurationError(CourseContextError):
    code = ErrorCode.CONFIGURATION_ERROR


class UpstreamFetchError(CourseContextError):
    """Index or syllabus document could not be fetched or decoded."""

    code = ErrorCode.UPSTREAM_FETCH_FAILED


class UpstreamLLMError(CourseContextError):
    code = ErrorCode.UPSTREAM_LLM_FAILED


class UnsupportedProviderError(CourseContextError):
    code = ErrorCode.UNSUPPORTED_PROVIDER
