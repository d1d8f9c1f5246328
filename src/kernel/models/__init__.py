"""
Kernel Data Models

In-memory domain records: the research project entity, its evaluations
and snapshot view, and the gateway audit trail.
"""

from src.kernel.models.audit import AuditAction, AuditLogEntry, AuditTrail
from src.kernel.models.project import (
    Evaluation,
    Project,
    ProjectCapability,
    ProjectPayload,
    ProjectStatus,
    ProjectView,
)

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "AuditTrail",
    "Evaluation",
    "Project",
    "ProjectCapability",
    "ProjectPayload",
    "ProjectStatus",
    "ProjectView",
]
