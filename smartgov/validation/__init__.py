"""Input validation for feedback intake."""

from smartgov.validation.feedback import (
    ValidationResult,
    normalize_feedback_input,
    sanitize_feedback_text,
    validate_confidence,
    validate_feedback_category,
    validate_feedback_input,
    validate_feedback_text,
    validate_sentiment,
)

__all__ = [
    "ValidationResult",
    "normalize_feedback_input",
    "sanitize_feedback_text",
    "validate_confidence",
    "validate_feedback_category",
    "validate_feedback_input",
    "validate_feedback_text",
    "validate_sentiment",
]
