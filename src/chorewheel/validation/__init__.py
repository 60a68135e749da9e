"""Validation module for event definitions and schedule plans."""

from chorewheel.validation.validator import (
    EventValidator,
    PlanValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "EventValidator",
    "PlanValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
