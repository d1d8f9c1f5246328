"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import ErrorResponse, HealthResponse
from src.schemas.project import (
    BudgetUpdate,
    BudgetUpdateResponse,
    CapabilityApply,
    CertificationRequest,
    ChangeEventResponse,
    EvaluationCreate,
    EvaluationResponse,
    GradeRequest,
    MetricCreate,
    PartnerImportRequest,
    ProjectCreate,
    ProjectListResponse,
    QualityAuditRequest,
    StudentAdd,
    StudentAddResponse,
    SupervisorAssign,
)

__all__ = [
    "BudgetUpdate",
    "BudgetUpdateResponse",
    "CapabilityApply",
    "CertificationRequest",
    "ChangeEventResponse",
    "ErrorResponse",
    "EvaluationCreate",
    "EvaluationResponse",
    "GradeRequest",
    "HealthResponse",
    "MetricCreate",
    "PartnerImportRequest",
    "ProjectCreate",
    "ProjectListResponse",
    "QualityAuditRequest",
    "StudentAdd",
    "StudentAddResponse",
    "SupervisorAssign",
]
