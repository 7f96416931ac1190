"""Repositories - table-scoped data access on top of the query executor.

    - base.py                     - generic CRUD + transaction primitives
    - feedback_repository.py      - feedback intake, listing and stats
    - summary_cache_repository.py - TTL cache of summarizer output
    - agent_log_repository.py     - agent processing audit log
"""

from smartgov.repositories.agent_log_repository import AgentLogRepository
from smartgov.repositories.base import BaseRepository
from smartgov.repositories.feedback_repository import FeedbackRepository
from smartgov.repositories.summary_cache_repository import SummaryCacheRepository

__all__ = [
    "AgentLogRepository",
    "BaseRepository",
    "FeedbackRepository",
    "SummaryCacheRepository",
]
