"""
Validation of raw scoring responses.

``parse_scoring_response`` turns model text into a ``ScoringResult`` or raises
``OracleResponseError`` tagged with the ``ResponseIssue`` that caused the
rejection.
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError as PydanticValidationError

from indexpilot.core.exceptions import OracleResponseError, ResponseIssue
from indexpilot.core.logging import get_logger
from indexpilot.services.oracle.schemas import ScoringResult

logger = get_logger("oracle.validation")


FENCE_LINE_PATTERN = re.compile(r"^```(?:json)?\s*$", flags=re.MULTILINE | re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences and stray surrounding backticks."""
    cleaned = FENCE_LINE_PATTERN.sub("", text.strip())
    return cleaned.strip().strip("`").strip()


def format_errors(error: PydanticValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        messages.append(f"{location}: {err['msg']}")
    return messages


def parse_scoring_response(raw: str | None) -> ScoringResult:
    """
    Validate model output against the scoring schema.

    Raises:
        OracleResponseError: empty text, text that is not a JSON object, or
            an object that violates the schema.
    """
    if raw is None or not raw.strip():
        raise OracleResponseError(ResponseIssue.EMPTY_RESPONSE)

    cleaned = strip_code_fences(raw)
    if not cleaned:
        raise OracleResponseError(ResponseIssue.EMPTY_RESPONSE)

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OracleResponseError(ResponseIssue.MALFORMED_JSON, [str(e)]) from e

    if not isinstance(payload, dict):
        raise OracleResponseError(
            ResponseIssue.MALFORMED_JSON,
            [f"expected a JSON object, got {type(payload).__name__}"],
        )

    try:
        return ScoringResult.model_validate_json(cleaned)
    except PydanticValidationError as e:
        errors = format_errors(e)
        logger.debug(f"Scoring response failed validation: {errors}")
        raise OracleResponseError(ResponseIssue.SCHEMA_VIOLATION, errors) from e
