"""Application exception hierarchy with structured error payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class AppException(Exception):
    """Base application exception with structured error response."""

    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a problem+json style payload."""
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class NotFoundError(AppException):
    """Resource not found."""

    error_code = "NOT_FOUND"
    message = "Resource not found"


class ValidationError(AppException):
    """Validation failed."""

    error_code = "VALIDATION_ERROR"
    message = "Validation failed"


class ConflictError(AppException):
    """Resource is not in a state that allows the operation."""

    error_code = "CONFLICT"
    message = "Resource conflict"


class ExternalServiceError(AppException):
    """External service error."""

    error_code = "EXTERNAL_SERVICE_ERROR"
    message = "External service unavailable"


# =============================================================================
# DOMAIN ERRORS
# =============================================================================


class InputDataError(ValidationError):
    """Enriched input could not be canonicalised."""

    error_code = "INPUT_DATA_ERROR"
    message = "Malformed enrichment input"


class UnknownScoreError(ValidationError):
    """Approval action referenced a constituent score that does not exist."""

    error_code = "UNKNOWN_SCORE"
    message = "Constituent score not found"

    def __init__(self, score_id: Any):
        super().__init__(
            message=f"Constituent score {score_id} not found",
            details={"score_id": str(score_id)},
        )
        self.score_id = score_id


class ResponseIssue(str, Enum):
    """Why a scoring response was rejected."""

    EMPTY_RESPONSE = "empty_response"
    MALFORMED_JSON = "malformed_json"
    SCHEMA_VIOLATION = "schema_violation"


class OracleResponseError(ValidationError):
    """Scoring model returned text that is not a valid ScoringResult."""

    error_code = "ORACLE_RESPONSE_INVALID"
    message = "Scoring response failed validation"

    def __init__(self, issue: ResponseIssue, errors: Optional[list[str]] = None):
        self.issue = issue
        self.errors = errors or []
        detail = "; ".join(self.errors) if self.errors else issue.value
        super().__init__(
            message=f"Scoring response rejected ({issue.value}): {detail}",
            details={"issue": issue.value, "errors": self.errors},
        )


class InvalidTransitionError(ConflictError):
    """State machine transition not allowed."""

    error_code = "INVALID_TRANSITION"
    message = "Invalid state transition"

    def __init__(self, entity: str, current: Any, target: Any):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            message=f"{entity} cannot move from {current_value} to {target_value}",
            details={"entity": entity, "from": current_value, "to": target_value},
        )
        self.current = current
        self.target = target


class TransientUpstreamError(ExternalServiceError):
    """Upstream call failed in a way worth retrying."""

    error_code = "UPSTREAM_UNAVAILABLE"


class ScoringFailedError(ExternalServiceError):
    """Scoring oracle did not produce a valid result within the retry budget."""

    error_code = "SCORING_FAILED"
    message = "Scoring failed after all retries"

    def __init__(self, attempts: int, last_error: Optional[Exception]):
        super().__init__(
            message=f"Scoring failed after {attempts} attempts: {last_error}",
            details={"attempts": attempts, "last_error": str(last_error)},
        )
        self.attempts = attempts
        self.last_error = last_error
