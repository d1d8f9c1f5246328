"""
Change event definitions using Pydantic for validation.

A ChangeEvent describes one notification occurrence. Events are produced
and consumed within a single notification pass and never persisted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ChangeEventKind(str, Enum):
    """Closed set of event kinds a project can emit."""
    EVALUATION_ADDED = "evaluation-added"
    STATUS_CHANGED = "status-changed"
    SUPERVISOR_ASSIGNED = "supervisor-assigned"
    BUDGET_UPDATED = "budget-updated"
    STUDENT_ADDED = "student-added"
    CLOSED = "closed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeEvent(BaseModel):
    """One notification: kind, payload snapshot, and when it happened."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeEventKind
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def project_id(self) -> Any:
        return self.payload.get("project_id")
