"""Agent processing log models.

An agent log row follows a small state machine::

    pending ──> processing ──> completed
                          └──> failed

``completed`` and ``failed`` are terminal.  The repository only guarantees
that ``error_message`` and ``processing_time_ms`` are written together with
a status that allows them; whether a transition is legal is the calling
agent's decision, with :func:`is_legal_transition` available as a check.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AgentType(str, Enum):
    CATEGORIZER = "categorizer"
    SUMMARIZER = "summarizer"


class AgentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AgentStatus.COMPLETED, AgentStatus.FAILED)


_TRANSITIONS: dict[AgentStatus, frozenset[AgentStatus]] = {
    AgentStatus.PENDING: frozenset({AgentStatus.PROCESSING}),
    AgentStatus.PROCESSING: frozenset({AgentStatus.COMPLETED, AgentStatus.FAILED}),
    AgentStatus.COMPLETED: frozenset(),
    AgentStatus.FAILED: frozenset(),
}


def is_legal_transition(current: AgentStatus | str, new: AgentStatus | str) -> bool:
    """Return True if *current* -> *new* is an edge of the status machine."""
    return AgentStatus(new) in _TRANSITIONS[AgentStatus(current)]


def check_status_fields(
    status: AgentStatus | str,
    error_message: str | None,
    processing_time_ms: int | None,
) -> list[str]:
    """Return the violations of the status/field pairing rules.

    - ``error_message`` only with ``failed``; ``failed`` requires one.
    - ``processing_time_ms`` only with ``completed`` or ``failed``;
      ``completed`` requires one.
    """
    status = AgentStatus(status)
    problems: list[str] = []
    if error_message is not None and status is not AgentStatus.FAILED:
        problems.append(f"error_message is only allowed with status 'failed', not {status.value!r}")
    if status is AgentStatus.FAILED and not error_message:
        problems.append("status 'failed' requires an error_message")
    if processing_time_ms is not None and not status.is_terminal:
        problems.append(
            f"processing_time_ms is only allowed with a terminal status, not {status.value!r}"
        )
    if status is AgentStatus.COMPLETED and processing_time_ms is None:
        problems.append("status 'completed' requires processing_time_ms")
    if processing_time_ms is not None and processing_time_ms < 0:
        problems.append("processing_time_ms must be non-negative")
    return problems


class AgentLog(BaseModel):
    """One agent invocation's audit record."""

    model_config = ConfigDict(frozen=True)

    id: str
    agent_type: AgentType
    feedback_id: str | None = None
    status: AgentStatus = AgentStatus.PENDING
    error_message: str | None = None
    processing_time_ms: int | None = Field(default=None, ge=0)
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _fields_match_status(self) -> AgentLog:
        # Read side: "only with" rules.  The "requires" rules apply to writes.
        if self.error_message is not None and self.status is not AgentStatus.FAILED:
            msg = "error_message present on a non-failed log"
            raise ValueError(msg)
        if self.processing_time_ms is not None and not self.status.is_terminal:
            msg = "processing_time_ms present on a non-terminal log"
            raise ValueError(msg)
        return self


class ProcessingStats(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    average_processing_time: float = 0.0


class ProcessingTimeStats(BaseModel):
    min: int = 0
    max: int = 0
    avg: float = 0.0
    count: int = 0
