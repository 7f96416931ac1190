"""Validation and sanitization for feedback intake payloads.

Validators never raise: every check appends human-readable messages to a
:class:`ValidationResult`, so the HTTP layer can return all problems in one
400 response.  ``isValid`` is the serialized field name the frontend reads.

Absent optional fields (``category``, ``sentiment``, ``confidence``) are
valid; defaults are applied by :func:`normalize_feedback_input`, not here.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from smartgov.models.feedback import FeedbackCategory

MIN_TEXT_LENGTH = 10
MAX_TEXT_LENGTH = 5000

_VALID_CATEGORIES = tuple(c.value for c in FeedbackCategory)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


class ValidationResult(BaseModel):
    """Outcome of a validation pass."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_valid: bool = Field(serialization_alias="isValid")
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(is_valid=not errors, errors=errors)


def _is_number(value: Any) -> bool:
    # bool is an int subclass, but True is not a score.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_feedback_text(text: Any) -> ValidationResult:
    """Check that *text* is a string of 10 to 5000 characters once trimmed.

    Args:
        text: The raw feedback body.

    Returns:
        A ValidationResult with at most one error.
    """
    errors: list[str] = []
    if not text or not isinstance(text, str):
        errors.append("Feedback text is required and must be a string")
    else:
        length = len(text.strip())
        if length == 0:
            errors.append("Feedback text cannot be empty")
        elif length < MIN_TEXT_LENGTH:
            errors.append(f"Feedback text must be at least {MIN_TEXT_LENGTH} characters long")
        elif length > MAX_TEXT_LENGTH:
            errors.append(f"Feedback text cannot exceed {MAX_TEXT_LENGTH} characters")
    return ValidationResult.from_errors(errors)


def validate_feedback_category(category: Any = None) -> ValidationResult:
    errors: list[str] = []
    if category is not None:
        if isinstance(category, FeedbackCategory):
            category = category.value
        if not isinstance(category, str):
            errors.append("Category must be a string")
        elif category not in _VALID_CATEGORIES:
            errors.append(f"Category must be one of: {', '.join(_VALID_CATEGORIES)}")
    return ValidationResult.from_errors(errors)


def _validate_score(value: Any, label: str, low: float, high: float) -> ValidationResult:
    errors: list[str] = []
    if value is not None:
        if not _is_number(value):
            errors.append(f"{label} must be a number")
        elif math.isnan(value):
            errors.append(f"{label} cannot be NaN")
        elif value < low or value > high:
            errors.append(f"{label} must be between {low:g} and {high:g}")
    return ValidationResult.from_errors(errors)


def validate_sentiment(sentiment: Any = None) -> ValidationResult:
    return _validate_score(sentiment, "Sentiment", -1.0, 1.0)


def validate_confidence(confidence: Any = None) -> ValidationResult:
    return _validate_score(confidence, "Confidence", 0.0, 1.0)


def validate_feedback_input(data: Mapping[str, Any]) -> ValidationResult:
    """Validate a whole intake payload and collect every error.

    Args:
        data: Mapping with ``text`` and optionally ``category``,
            ``sentiment`` and ``confidence``.

    Returns:
        A ValidationResult listing the errors in field order
        (text, category, sentiment, confidence).
    """
    errors: list[str] = []
    for result in (
        validate_feedback_text(data.get("text")),
        validate_feedback_category(data.get("category")),
        validate_sentiment(data.get("sentiment")),
        validate_confidence(data.get("confidence")),
    ):
        errors.extend(result.errors)
    return ValidationResult.from_errors(errors)


def sanitize_feedback_text(text: Any) -> str:
    """Strip markup and null bytes, trim, and collapse runs of whitespace.

    Non-string input sanitizes to the empty string.
    """
    if not isinstance(text, str):
        return ""
    cleaned = _TAG_RE.sub("", text)
    cleaned = cleaned.replace("\0", "").strip()
    return _WHITESPACE_RE.sub(" ", cleaned)


def normalize_feedback_input(
    data: Mapping[str, Any],
) -> tuple[dict[str, Any], ValidationResult]:
    """Sanitize *data*, fill in defaults, then validate the result.

    Missing or falsy ``category``/``sentiment``/``confidence`` fall back to
    ``"other"``/``0``/``0``.

    Returns:
        ``(normalized, validation)``.  ``normalized`` is suitable for
        ``FeedbackCreate(**normalized)`` when ``validation.is_valid``.
    """
    normalized = {
        "text": sanitize_feedback_text(data.get("text")),
        "category": data.get("category") or FeedbackCategory.OTHER.value,
        "sentiment": data.get("sentiment") or 0,
        "confidence": data.get("confidence") or 0,
    }
    return normalized, validate_feedback_input(normalized)
