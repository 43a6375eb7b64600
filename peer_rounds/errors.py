"""Domain exception hierarchy for the round engine."""
from __future__ import annotations


class RoundEngineError(Exception):
    """Base class for domain errors with structured metadata."""

    status_code: int = 400
    code: str = "round_engine_error"
    message: str = "Round engine error"

    def __init__(self, message: str | None = None, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class NotFoundError(RoundEngineError):
    """Raised when an organization, user, round or assessment is missing."""

    status_code = 404
    code = "not_found"
    message = "Resource not found"


class ValidationError(RoundEngineError):
    """Raised when input values fail validation."""

    status_code = 422
    code = "validation_error"
    message = "Invalid input"


class InvalidCycleError(RoundEngineError):
    """Raised for an unrecognized compensation period."""

    status_code = 422
    code = "invalid_cycle"
    message = "Invalid compensation cycle"


class InvalidStateError(RoundEngineError):
    """Raised when an operation is not allowed in the current round state."""

    status_code = 400
    code = "invalid_state"
    message = "Operation not allowed in the current state"


class NoActiveRoundError(InvalidStateError):
    code = "no_active_round"
    message = "There is no active round for this organization"


class DuplicateAssessmentError(InvalidStateError):
    status_code = 409
    code = "duplicate_assessment"
    message = "An assessment for this contributor already exists in the current round"


class CrossOrgAssessmentError(InvalidStateError):
    status_code = 403
    code = "cross_org_assessment"
    message = "Contributors can only assess members of their own organization"


class RoundNotActiveError(InvalidStateError):
    code = "round_not_active"
    message = "The round is not currently active"


class RoundCompletedError(InvalidStateError):
    code = "round_completed"
    message = "The round is already completed"


class RoundNotCompletedError(InvalidStateError):
    code = "round_not_completed"
    message = "The round is not completed yet"


class PersistenceError(RoundEngineError):
    """Raised when the repository fails to read or write."""

    status_code = 500
    code = "persistence_error"
    message = "Persistence failure"
