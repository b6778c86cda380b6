from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator

from overthinkr.pipeline.models import AnalysisResult, ReplyOption
from overthinkr.utils.error_taxonomy import NotJsonError, SchemaMismatchError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("tone", "score", "explanation", "confidence", "replies")
ROOT_FIELD = "<root>"
EXPECTED_REPLY_COUNT = 3


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    schema_errors: list[str]
    invalid_fields: list[str]
    warnings: list[str]

    @property
    def errors(self) -> list[str]:
        return self.schema_errors

    @property
    def first_invalid_field(self) -> str | None:
        return self.invalid_fields[0] if self.invalid_fields else None


def parse_analysis_payload(raw_text: str, schema: dict[str, Any]) -> AnalysisResult:
    """Turn the model's inner text into an ``AnalysisResult``.

    Raises ``NotJsonError`` when the text is not strict JSON and
    ``SchemaMismatchError`` naming the first offending field when the decoded
    value breaks the contract. Out-of-range numbers are rejected, not clamped.
    """

    try:
        parsed_json = json.loads(raw_text, parse_constant=_reject_constant)
    except json.JSONDecodeError as error:
        raise NotJsonError(f"Model payload is not valid JSON: {error.msg}") from error
    except ValueError as error:
        raise NotJsonError(f"Model payload is not valid JSON: {error}") from error

    validation = validate_output(parsed_json=parsed_json, schema=schema)
    if not validation.valid:
        field = validation.first_invalid_field or ROOT_FIELD
        raise SchemaMismatchError(
            f"Model payload failed validation at field '{field}'",
            field=field,
            errors=validation.errors,
        )

    for warning in validation.warnings:
        logger.warning("Model payload accepted with warning: %s", warning)

    return _to_result(parsed_json)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard constant {name}")


def validate_output(*, parsed_json: Any, schema: dict[str, Any]) -> ValidationResult:
    schema_errors, invalid_fields = _validate_schema(
        parsed_json=parsed_json, schema=schema
    )
    warnings = (
        _reply_warnings(parsed_json=parsed_json, schema=schema)
        if not schema_errors
        else []
    )

    return ValidationResult(
        valid=not schema_errors,
        schema_errors=schema_errors,
        invalid_fields=invalid_fields,
        warnings=warnings,
    )


def _validate_schema(
    *, parsed_json: Any, schema: dict[str, Any]
) -> tuple[list[str], list[str]]:
    validator = Draft202012Validator(schema)
    errors = sorted(
        validator.iter_errors(parsed_json),
        key=lambda item: [str(part) for part in item.absolute_path],
    )

    messages: list[str] = []
    fields: set[str] = set()
    for error in errors:
        path = "/".join(str(item) for item in error.absolute_path)
        if path:
            messages.append(f"{path}: {error.message}")
        else:
            messages.append(error.message)
        fields.update(_fields_for_error(error))

    return messages, sorted(fields, key=_field_order)


def _fields_for_error(error: Any) -> list[str]:
    path = list(error.absolute_path)
    if path:
        return [str(path[0])]

    if error.validator == "required" and isinstance(error.instance, dict):
        return [
            str(name)
            for name in error.validator_value
            if name not in error.instance
        ]

    return [ROOT_FIELD]


def _field_order(field: str) -> int:
    if field == ROOT_FIELD:
        return -1
    if field in REQUIRED_FIELDS:
        return REQUIRED_FIELDS.index(field)
    return len(REQUIRED_FIELDS)


def _reply_warnings(
    *, parsed_json: dict[str, Any], schema: dict[str, Any]
) -> list[str]:
    warnings: list[str] = []
    replies = parsed_json["replies"]

    if len(replies) != EXPECTED_REPLY_COUNT:
        warnings.append(
            f"replies should contain {EXPECTED_REPLY_COUNT} items, got {len(replies)}"
        )

    known_types = _known_reply_types_from_schema(schema)
    if known_types:
        unknown = sorted(
            {reply["type"] for reply in replies if reply["type"] not in known_types}
        )
        if unknown:
            warnings.append(f"unknown reply types: {', '.join(unknown)}")

    return warnings


def _known_reply_types_from_schema(schema: dict[str, Any]) -> set[str]:
    defs = schema.get("$defs", {})
    if not isinstance(defs, dict):
        return set()

    known = defs.get("known_reply_types", {})
    if not isinstance(known, dict):
        return set()

    values = known.get("enum")
    if not isinstance(values, list):
        return set()

    return {str(value) for value in values}


def _to_result(parsed_json: dict[str, Any]) -> AnalysisResult:
    return AnalysisResult(
        tone=parsed_json["tone"],
        score=int(parsed_json["score"]),
        explanation=parsed_json["explanation"],
        confidence=int(parsed_json["confidence"]),
        replies=tuple(
            ReplyOption(type=reply["type"], msg=reply["msg"])
            for reply in parsed_json["replies"]
        ),
    )
