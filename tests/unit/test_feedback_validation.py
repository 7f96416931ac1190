"""Unit tests for feedback intake validation and sanitization."""

from __future__ import annotations

import pytest

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

VALID_TEXT = "The streetlight on Elm Street has been out for a week."


# ======================================================================
# Text
# ======================================================================


class TestValidateFeedbackText:
    def test_valid_text(self) -> None:
        result = validate_feedback_text(VALID_TEXT)
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("text", ["", None, 123])
    def test_missing_or_non_string_text(self, text) -> None:
        result = validate_feedback_text(text)
        assert not result.is_valid
        assert "must be a string" in result.errors[0]

    def test_whitespace_only_text(self) -> None:
        result = validate_feedback_text("    ")
        assert not result.is_valid
        assert result.errors == ["Feedback text cannot be empty"]

    def test_too_short(self) -> None:
        result = validate_feedback_text("short")
        assert "at least 10 characters" in result.errors[0]

    def test_too_long(self) -> None:
        result = validate_feedback_text("a" * 5001)
        assert "cannot exceed 5000 characters" in result.errors[0]

    def test_boundary_lengths_are_accepted(self) -> None:
        assert validate_feedback_text("a" * 10).is_valid
        assert validate_feedback_text("a" * 5000).is_valid

    def test_length_is_measured_after_trimming(self) -> None:
        assert not validate_feedback_text("   short   ").is_valid


# ======================================================================
# Category / scores
# ======================================================================


class TestValidateCategory:
    @pytest.mark.parametrize("category", ["health", "infrastructure", "safety", "other"])
    def test_valid_categories(self, category: str) -> None:
        assert validate_feedback_category(category).is_valid

    def test_absent_category_is_valid(self) -> None:
        assert validate_feedback_category(None).is_valid

    def test_unknown_category(self) -> None:
        result = validate_feedback_category("parks")
        assert "must be one of" in result.errors[0]

    def test_non_string_category(self) -> None:
        assert validate_feedback_category(7).errors == ["Category must be a string"]


class TestValidateScores:
    @pytest.mark.parametrize("value", [-1, -0.5, 0, 0.99, 1])
    def test_sentiment_in_range(self, value: float) -> None:
        assert validate_sentiment(value).is_valid

    @pytest.mark.parametrize("value", [-1.01, 1.5])
    def test_sentiment_out_of_range(self, value: float) -> None:
        assert validate_sentiment(value).errors == ["Sentiment must be between -1 and 1"]

    def test_sentiment_nan(self) -> None:
        assert validate_sentiment(float("nan")).errors == ["Sentiment cannot be NaN"]

    @pytest.mark.parametrize("value", ["0.5", True])
    def test_sentiment_must_be_numeric(self, value) -> None:
        assert validate_sentiment(value).errors == ["Sentiment must be a number"]

    def test_confidence_bounds(self) -> None:
        assert validate_confidence(0).is_valid
        assert validate_confidence(1).is_valid
        assert validate_confidence(-0.1).errors == ["Confidence must be between 0 and 1"]

    def test_confidence_nan(self) -> None:
        assert validate_confidence(float("nan")).errors == ["Confidence cannot be NaN"]

    def test_absent_scores_are_valid(self) -> None:
        assert validate_sentiment(None).is_valid
        assert validate_confidence(None).is_valid


# ======================================================================
# Whole payload
# ======================================================================


class TestValidateFeedbackInput:
    def test_valid_payload(self) -> None:
        result = validate_feedback_input(
            {"text": VALID_TEXT, "category": "infrastructure", "sentiment": -0.4, "confidence": 0.8}
        )
        assert result.is_valid

    def test_collects_every_error_in_field_order(self) -> None:
        result = validate_feedback_input(
            {"text": "", "category": "bogus", "sentiment": 2, "confidence": float("nan")}
        )
        assert not result.is_valid
        assert len(result.errors) == 4
        assert "Feedback text" in result.errors[0]
        assert "Category" in result.errors[1]
        assert "Sentiment" in result.errors[2]
        assert "Confidence" in result.errors[3]

    def test_never_raises_on_garbage(self) -> None:
        result = validate_feedback_input({"text": ["not", "text"], "sentiment": object()})
        assert not result.is_valid

    def test_serializes_is_valid_in_camel_case(self) -> None:
        dumped = ValidationResult(is_valid=True).model_dump(by_alias=True)
        assert dumped == {"isValid": True, "errors": []}


class TestSanitizeAndNormalize:
    def test_strips_tags_null_bytes_and_whitespace(self) -> None:
        raw = "  <script>alert(1)</script>Pothole\0 on   Main\n\tStreet  "
        assert sanitize_feedback_text(raw) == "alert(1)Pothole on Main Street"

    def test_non_string_sanitizes_to_empty(self) -> None:
        assert sanitize_feedback_text(None) == ""

    def test_normalize_applies_defaults(self) -> None:
        normalized, validation = normalize_feedback_input({"text": f"  {VALID_TEXT}  "})
        assert normalized == {
            "text": VALID_TEXT,
            "category": "other",
            "sentiment": 0,
            "confidence": 0,
        }
        assert validation.is_valid

    def test_normalize_reports_errors_after_sanitizing(self) -> None:
        _, validation = normalize_feedback_input({"text": "<b>hi</b>"})
        assert not validation.is_valid
        assert "at least 10 characters" in validation.errors[0]
