"""
Stable Kernel Layer

Foundational components everything else builds on:
- Project entity (roster, append-only evaluations, one-way status)
- Change notification (typed events, isolated listener delivery)
- Permission core (role derivation, fixed authorization table)
- Access gateway (cached reads, authorized writes, audit trail)

Architectural invariants:
- A closed project never reopens
- Every gateway operation is audited before it runs
- Every gateway write invalidates the cached entry for its project
"""

from src.kernel.models import (
    AuditAction,
    AuditLogEntry,
    Evaluation,
    Project,
    ProjectStatus,
    ProjectView,
)

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "Evaluation",
    "Project",
    "ProjectStatus",
    "ProjectView",
]
