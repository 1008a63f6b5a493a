"""
Custom exceptions for the CodeFlex Coach.

Every failure that ends a plan attempt derives from CoachError. The
conversation controller turns these into plain assistant messages; none of
them is fatal to the process.
"""

from typing import Any, Dict, List, Optional


class CoachError(Exception):
    """
    Base exception for all CodeFlex Coach errors.

    Attributes:
        message: Human-readable error message (safe to show to the user)
        details: Optional dictionary with additional error details
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"error": {"type": self.__class__.__name__, "message": self.message}}
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


# ============================================================================
# Plan request validation (user-correctable)
# ============================================================================

class PlanRequestError(CoachError):
    """Raised when a profile is not acceptable for plan generation."""
    pass


class MissingFieldsError(PlanRequestError):
    """Raised when required profile fields are still unset."""

    def __init__(self, missing: List[str], message: Optional[str] = None) -> None:
        self.missing = list(missing)
        super().__init__(
            message or f"Missing required information: {', '.join(self.missing)}",
            details={"missing": self.missing},
        )


class OutOfRangeError(PlanRequestError):
    """Raised when a numeric profile field is outside its valid range."""

    def __init__(self, field: str, value: Any, low: int, high: int) -> None:
        self.field = field
        self.value = value
        self.low = low
        self.high = high
        super().__init__(
            f"{field} must be between {low} and {high} (got {value})",
            details={"field": field, "value": value, "range": [low, high]},
        )


# ============================================================================
# Upstream generation
# ============================================================================

class PlanGenerationError(CoachError):
    """Raised when the plan generation service is unavailable or fails."""
    pass


class UpstreamParseError(PlanGenerationError):
    """Raised when the generation service response is not a JSON object."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        self.raw_response = raw_response
        super().__init__(message, details={"raw_response": raw_response[:500]})


# ============================================================================
# Persistence / state
# ============================================================================

class PersistenceError(CoachError):
    """Raised when a plan could not be written to the store."""
    pass


class InvalidStateError(CoachError):
    """Raised on an illegal conversation state transition."""

    def __init__(self, current: str, action: str) -> None:
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} while conversation is {current}")
