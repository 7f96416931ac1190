"""SmartGov domain models - re-exports all public model classes.

    - agent_log.py  - agent processing audit records and their status machine
    - feedback.py   - feedback rows, intake payload, listing and stats shapes
    - migration.py  - migration catalog entries and ledger records
    - summary.py    - summary cache rows and the category summary payload
"""

from __future__ import annotations

from smartgov.models.agent_log import (
    AgentLog,
    AgentStatus,
    AgentType,
    ProcessingStats,
    ProcessingTimeStats,
    check_status_fields,
    is_legal_transition,
)
from smartgov.models.feedback import (
    CategoryStats,
    Feedback,
    FeedbackCategory,
    FeedbackCreate,
    FeedbackPage,
    SentimentStats,
)
from smartgov.models.migration import Migration, MigrationRecord
from smartgov.models.summary import CacheStats, CategorySummary, SummaryCacheEntry

__all__ = [
    "AgentLog",
    "AgentStatus",
    "AgentType",
    "CacheStats",
    "CategoryStats",
    "CategorySummary",
    "Feedback",
    "FeedbackCategory",
    "FeedbackCreate",
    "FeedbackPage",
    "Migration",
    "MigrationRecord",
    "ProcessingStats",
    "ProcessingTimeStats",
    "SentimentStats",
    "SummaryCacheEntry",
    "check_status_fields",
    "is_legal_transition",
]
