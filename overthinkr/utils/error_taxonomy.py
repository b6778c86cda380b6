from __future__ import annotations

import json
import socket
from dataclasses import dataclass
from typing import Any, Literal

ErrorCode = Literal[
    "EMPTY_INPUT",
    "OCR_FAILURE",
    "TRANSPORT_FAILURE",
    "MALFORMED_ENVELOPE",
    "NOT_JSON",
    "SCHEMA_MISMATCH",
    "UNKNOWN_ERROR",
]

ERROR_FRIENDLY_MESSAGES: dict[ErrorCode, str] = {
    "EMPTY_INPUT": "Paste some text or upload a screenshot first.",
    "OCR_FAILURE": "Failed to read image. Try pasting text manually.",
    "TRANSPORT_FAILURE": (
        "The analysis service could not be reached. Check your API key or connection."
    ),
    "MALFORMED_ENVELOPE": "The analysis service returned an unexpected response.",
    "NOT_JSON": "The model reply was not valid JSON.",
    "SCHEMA_MISMATCH": "The model reply was missing or had invalid fields.",
    "UNKNOWN_ERROR": "Unexpected error occurred during analysis.",
}


class AnalysisError(Exception):
    """Base class for every classified failure of the analysis pipeline."""

    code: ErrorCode = "UNKNOWN_ERROR"


class EmptyInputError(AnalysisError, ValueError):
    """Raised when the input is empty after trimming. Blocks submission."""

    code: ErrorCode = "EMPTY_INPUT"


class OcrFailure(AnalysisError):
    """Raised when an image could not be turned into usable text."""

    code: ErrorCode = "OCR_FAILURE"


class UnsupportedFileTypeError(ValueError):
    """Raised when OCR input file type is unsupported."""


class OCRParseError(ValueError):
    """Raised when OCR provider response cannot be parsed."""


class TransportFailure(AnalysisError):
    """Raised when the LLM endpoint answered with a non-success status."""

    code: ErrorCode = "TRANSPORT_FAILURE"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedEnvelopeError(AnalysisError):
    """Raised when a 2xx response does not carry the documented envelope."""

    code: ErrorCode = "MALFORMED_ENVELOPE"


class NotJsonError(AnalysisError):
    """Raised when the inner model payload is not valid JSON."""

    code: ErrorCode = "NOT_JSON"


class SchemaMismatchError(AnalysisError):
    """Raised when the inner payload parsed but violates the result contract."""

    code: ErrorCode = "SCHEMA_MISMATCH"

    def __init__(self, message: str, *, field: str, errors: list[str] | None = None):
        super().__init__(message)
        self.field = field
        self.errors = errors or []


@dataclass(frozen=True, slots=True)
class AnalysisFailure:
    code: ErrorCode
    message: str
    details: str
    status_code: int | None = None
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code,
            "field": self.field,
        }


def classify_error(error: Exception) -> ErrorCode:
    if isinstance(error, AnalysisError):
        return error.code
    if isinstance(error, UnsupportedFileTypeError | OCRParseError):
        return "OCR_FAILURE"
    if isinstance(error, json.JSONDecodeError):
        return "NOT_JSON"
    if extract_http_status_code(error) is not None:
        return "TRANSPORT_FAILURE"
    if isinstance(error, (ConnectionError, TimeoutError, socket.timeout)):
        return "TRANSPORT_FAILURE"
    return "UNKNOWN_ERROR"


def to_failure(error: Exception) -> AnalysisFailure:
    code = classify_error(error)
    message = ERROR_FRIENDLY_MESSAGES[code]

    field = getattr(error, "field", None)
    if code == "SCHEMA_MISMATCH" and isinstance(field, str):
        message = f"{message} (field: {field})"

    status_code = extract_http_status_code(error)
    if code == "TRANSPORT_FAILURE" and status_code is not None:
        message = f"{message} (HTTP {status_code})"

    return AnalysisFailure(
        code=code,
        message=message,
        details=build_error_details(error),
        status_code=status_code,
        field=field if isinstance(field, str) else None,
    )


def extract_http_status_code(error: Exception) -> int | None:
    for field_name in ("status_code", "status", "http_status"):
        value = getattr(error, field_name, None)
        parsed = _to_int_or_none(value)
        if parsed is not None:
            return parsed

    response = getattr(error, "response", None)
    if response is not None:
        parsed = _to_int_or_none(getattr(response, "status_code", None))
        if parsed is not None:
            return parsed

    return None


def build_error_details(error: Exception) -> str:
    details: list[str] = [f"{error.__class__.__name__}: {error}"]
    status_code = extract_http_status_code(error)
    if status_code is not None:
        details.append(f"status_code={status_code}")

    for field_name in ("field", "errors"):
        value = getattr(error, field_name, None)
        if not value:
            continue
        details.append(f"{field_name}={value}")

    cause = error.__cause__
    if cause is not None:
        details.append(f"caused_by={cause.__class__.__name__}: {cause}")
    return "\n".join(details)


def _to_int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
