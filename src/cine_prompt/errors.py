"""Typed error taxonomy, upstream classification, and the tool error model.

Failures from the Gemini call are classified exactly once, inside
:func:`classify_upstream_error`, which the client wrapper applies at the
call boundary. Everything downstream (MCP tools, the HTTP gateway)
dispatches on the exception type rather than on message text.
"""

from __future__ import annotations

from enum import Enum

from google.genai import errors as genai_errors
from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    CONFIGURATION = "CONFIGURATION"
    VALIDATION = "VALIDATION"
    ENCODING = "ENCODING"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_AUTH = "UPSTREAM_AUTH"
    UPSTREAM_QUOTA = "UPSTREAM_QUOTA"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    GENERATION_IN_PROGRESS = "GENERATION_IN_PROGRESS"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    UNKNOWN = "UNKNOWN"


class CinePromptError(Exception):
    """Base class for every error this package raises on purpose."""

    category: ErrorCategory = ErrorCategory.UNKNOWN
    status_code: int = 500
    hint: str = "Unexpected failure — try again"


class ConfigurationError(CinePromptError):
    category = ErrorCategory.CONFIGURATION
    status_code = 500
    hint = "Server is misconfigured — set GEMINI_API_KEY"


class MissingCredentialError(ConfigurationError):
    """No Gemini API key configured; generation is never attempted."""


class ValidationError(CinePromptError, ValueError):
    """Malformed or oversized input, rejected before any model call."""

    category = ErrorCategory.VALIDATION
    status_code = 400
    hint = "Check the request parameters"


class EncodingError(CinePromptError):
    """The supplied image could not be read or decoded."""

    category = ErrorCategory.ENCODING
    status_code = 400
    hint = "Image could not be read — check the path or base64 payload"


class UpstreamError(CinePromptError):
    """Failure raised by the external model call."""


class UpstreamTimeoutError(UpstreamError):
    category = ErrorCategory.UPSTREAM_TIMEOUT
    status_code = 504
    hint = "Request to AI service timed out — try again"


class UpstreamAuthError(UpstreamError):
    category = ErrorCategory.UPSTREAM_AUTH
    status_code = 401
    hint = "Invalid API key configuration"


class UpstreamQuotaError(UpstreamError):
    category = ErrorCategory.UPSTREAM_QUOTA
    status_code = 429
    hint = "API quota exceeded, please try again later"


class UnknownUpstreamError(UpstreamError):
    category = ErrorCategory.UNKNOWN
    status_code = 500
    hint = "Failed to generate content"


class EmptyResponseError(CinePromptError):
    category = ErrorCategory.EMPTY_RESPONSE
    status_code = 502
    hint = "No response from AI — regenerate"


class SchemaViolationError(CinePromptError):
    category = ErrorCategory.SCHEMA_VIOLATION
    status_code = 502
    hint = "AI response did not match the expected structure — regenerate"


class GenerationInProgressError(CinePromptError):
    category = ErrorCategory.GENERATION_IN_PROGRESS
    status_code = 409
    hint = "A generation is already running for this session — wait for it to settle"


class SessionNotFoundError(CinePromptError, KeyError):
    category = ErrorCategory.SESSION_NOT_FOUND
    status_code = 404
    hint = "Unknown or expired session — generate a new storyboard first"

    def __str__(self) -> str:
        return Exception.__str__(self)


_AUTH_CODES = {401, 403}
_TIMEOUT_CODES = {408, 504}


def classify_upstream_error(exc: BaseException) -> UpstreamError:
    """Map a raw failure from the Gemini SDK to a typed ``UpstreamError``.

    HTTP status codes carried by ``google.genai.errors.APIError`` decide
    the class. Message text is only consulted for errors without a code
    (e.g. the SDK refusing to build a request without a key).
    """
    if isinstance(exc, UpstreamError):
        return exc
    if isinstance(exc, TimeoutError):
        return UpstreamTimeoutError("Request timeout")

    message = str(exc)
    if isinstance(exc, genai_errors.APIError):
        code = exc.code
        status = (exc.status or "").upper()
        if code in _AUTH_CODES or status in ("UNAUTHENTICATED", "PERMISSION_DENIED"):
            return UpstreamAuthError(message)
        if code == 429 or status == "RESOURCE_EXHAUSTED":
            return UpstreamQuotaError(message)
        if code in _TIMEOUT_CODES or status == "DEADLINE_EXCEEDED":
            return UpstreamTimeoutError(message)
        return UnknownUpstreamError(message)

    lowered = message.lower()
    if "api key" in lowered:
        return UpstreamAuthError(message)
    if "quota" in lowered:
        return UpstreamQuotaError(message)
    if "timeout" in lowered or "timed out" in lowered:
        return UpstreamTimeoutError(message)
    return UnknownUpstreamError(message)


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, CinePromptError):
        return error.category, error.hint
    if isinstance(error, FileNotFoundError):
        return ErrorCategory.ENCODING, "Image file not found — check the path"
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION, "Bad request — check input format"
    return ErrorCategory.UNKNOWN, str(error)


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.UPSTREAM_TIMEOUT,
        ErrorCategory.UPSTREAM_QUOTA,
        ErrorCategory.EMPTY_RESPONSE,
        ErrorCategory.SCHEMA_VIOLATION,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
    ).model_dump(mode="json")
