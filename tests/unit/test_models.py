"""Unit tests for the pydantic domain models and the agent status rules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from smartgov.models.agent_log import (
    AgentLog,
    AgentStatus,
    AgentType,
    check_status_fields,
    is_legal_transition,
)
from smartgov.models.feedback import Feedback, FeedbackCategory, FeedbackCreate, FeedbackPage
from smartgov.models.summary import CategorySummary, SummaryCacheEntry

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# ======================================================================
# Feedback
# ======================================================================


class TestFeedback:
    def _feedback(self, **overrides) -> Feedback:
        data = {
            "id": "fb-1",
            "text": "Bus shelter glass is broken.",
            "timestamp": NOW,
            "created_at": NOW,
            "updated_at": NOW,
        }
        data.update(overrides)
        return Feedback(**data)

    def test_defaults(self) -> None:
        fb = self._feedback()
        assert fb.category is FeedbackCategory.OTHER
        assert fb.sentiment == 0.0
        assert fb.confidence == 0.0
        assert fb.processed is False

    @pytest.mark.parametrize("sentiment", [-1.01, 1.01])
    def test_sentiment_range(self, sentiment: float) -> None:
        with pytest.raises(ValidationError):
            self._feedback(sentiment=sentiment)

    def test_confidence_range(self) -> None:
        with pytest.raises(ValidationError):
            self._feedback(confidence=1.2)

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            self._feedback(category="parks")

    def test_frozen(self) -> None:
        fb = self._feedback()
        with pytest.raises(ValidationError):
            fb.text = "changed"

    def test_create_payload_requires_text(self) -> None:
        with pytest.raises(ValidationError):
            FeedbackCreate(text="")

    def test_page_serializes_items_as_feedback(self) -> None:
        page = FeedbackPage(items=[self._feedback()], total=1, page=1, limit=50)
        dumped = page.model_dump(by_alias=True)
        assert "feedback" in dumped
        assert dumped["feedback"][0]["id"] == "fb-1"
        assert dumped["total"] == 1


# ======================================================================
# Summary cache
# ======================================================================


class TestSummaryCacheEntry:
    def test_expiry_must_follow_creation(self) -> None:
        with pytest.raises(ValidationError):
            SummaryCacheEntry(
                id="c1",
                cache_key="k",
                summary_data={},
                created_at=NOW,
                updated_at=NOW,
                expires_at=NOW,
            )

    def test_is_live_is_strict(self) -> None:
        entry = SummaryCacheEntry(
            id="c1",
            cache_key="k",
            summary_data={"a": 1},
            created_at=NOW,
            updated_at=NOW,
            expires_at=NOW + timedelta(hours=1),
        )
        assert entry.is_live(NOW + timedelta(minutes=59))
        assert not entry.is_live(NOW + timedelta(hours=1))

    def test_category_summary_uses_camel_case(self) -> None:
        summary = CategorySummary(
            category="health",
            count=3,
            average_sentiment=-0.2,
            key_issues=["clinic hours"],
        )
        dumped = summary.model_dump(by_alias=True)
        assert dumped["averageSentiment"] == -0.2
        assert dumped["keyIssues"] == ["clinic hours"]
        assert CategorySummary.model_validate(dumped) == summary


# ======================================================================
# Agent log
# ======================================================================


class TestAgentStatusRules:
    @pytest.mark.parametrize(
        ("current", "new", "legal"),
        [
            ("pending", "processing", True),
            ("processing", "completed", True),
            ("processing", "failed", True),
            ("pending", "completed", False),
            ("completed", "processing", False),
            ("failed", "pending", False),
        ],
    )
    def test_is_legal_transition(self, current: str, new: str, legal: bool) -> None:
        assert is_legal_transition(current, new) is legal

    def test_terminal_statuses(self) -> None:
        assert AgentStatus.COMPLETED.is_terminal
        assert AgentStatus.FAILED.is_terminal
        assert not AgentStatus.PROCESSING.is_terminal

    def test_valid_pairings_have_no_problems(self) -> None:
        assert check_status_fields("pending", None, None) == []
        assert check_status_fields("processing", None, None) == []
        assert check_status_fields("completed", None, 120) == []
        assert check_status_fields("failed", "timeout", None) == []
        assert check_status_fields("failed", "timeout", 3000) == []

    def test_error_message_only_with_failed(self) -> None:
        problems = check_status_fields("completed", "oops", 10)
        assert any("error_message" in p for p in problems)

    def test_failed_requires_error_message(self) -> None:
        assert check_status_fields("failed", None, None) == [
            "status 'failed' requires an error_message"
        ]

    def test_duration_only_with_terminal_status(self) -> None:
        problems = check_status_fields("processing", None, 50)
        assert any("processing_time_ms" in p for p in problems)

    def test_completed_requires_duration(self) -> None:
        assert check_status_fields("completed", None, None) == [
            "status 'completed' requires processing_time_ms"
        ]

    def test_model_rejects_message_on_non_failed_row(self) -> None:
        with pytest.raises(ValidationError):
            AgentLog(
                id="a1",
                agent_type=AgentType.CATEGORIZER,
                status=AgentStatus.PROCESSING,
                error_message="boom",
                created_at=NOW,
                updated_at=NOW,
            )
