"""
Append-only audit trail for gateway operations.

Every read and every write intent through the access gateway is recorded
here before the operation runs. Entries are frozen once created.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from src.kernel.events.event_types import utcnow


class AuditAction(str, Enum):
    """All action kinds recorded in the audit trail."""

    READ_PROJECT = "project.read"
    LIST_PROJECTS = "project.list"
    REGISTER_PROJECT = "project.register"
    REPLACE_PROJECT = "project.replace"
    ADD_EVALUATION = "evaluation.add"
    ASSIGN_SUPERVISOR = "supervisor.assign"
    ADD_STUDENT = "roster.add"
    UPDATE_BUDGET = "budget.update"
    MANAGE_CAPABILITY = "capability.manage"
    READ_AUDIT = "audit.read"
    ACCESS_DENIED = "access.denied"


class AuditLogEntry(BaseModel):
    """One immutable audit record."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)
    action: AuditAction
    caller_id: str
    project_id: Optional[str] = None
    detail: Dict[str, Any] = Field(default_factory=dict)


class AuditTrail:
    """In-memory append-only log of AuditLogEntry records."""

    def __init__(self):
        self._entries: List[AuditLogEntry] = []

    def record(
        self,
        action: AuditAction,
        caller_id: str,
        project_id: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            action=action,
            caller_id=caller_id,
            project_id=project_id,
            detail=detail or {},
        )
        self._entries.append(entry)
        return entry

    def entries(
        self,
        action: Optional[AuditAction] = None,
        caller_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> Tuple[AuditLogEntry, ...]:
        """Entries in append order, optionally filtered."""
        result = self._entries
        if action is not None:
            result = [e for e in result if e.action == action]
        if caller_id is not None:
            result = [e for e in result if e.caller_id == caller_id]
        if project_id is not None:
            result = [e for e in result if e.project_id == project_id]
        return tuple(result)

    def __len__(self) -> int:
        return len(self._entries)
