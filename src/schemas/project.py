"""
Project schemas.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.engines.grading import Infraction, Merit
from src.engines.portfolio import CollectionStats
from src.integrations.partner_adapter import PartnerProjectRecord
from src.kernel.models.project import ProjectView
from src.plugins.capabilities import MetricKind


class ProjectCreate(BaseModel):
    """Project registration request."""

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    faculty: str = Field(..., min_length=1)
    budget: float = Field(0, ge=0)
    start_date: date


class PartnerImportRequest(BaseModel):
    """Batch of partner records to import into one faculty."""

    faculty: str = Field(..., min_length=1)
    records: List[PartnerProjectRecord] = Field(..., min_length=1)


class ProjectListResponse(BaseModel):
    items: List[ProjectView]
    total: int
    stats: CollectionStats


class EvaluationCreate(BaseModel):
    """Evaluation request. The score range is enforced by the gateway."""

    student_id: str = Field(..., min_length=1)
    score: float
    comment: Optional[str] = None


class EvaluationResponse(BaseModel):
    student_id: str
    score: float
    timestamp: datetime
    comment: Optional[str] = None
    evaluator: Optional[str] = None
    passed: bool
    project_status: str


class StudentAdd(BaseModel):
    student_id: str = Field(..., min_length=1)


class StudentAddResponse(BaseModel):
    added: bool
    student_count: int


class SupervisorAssign(BaseModel):
    supervisor_id: str = Field(..., min_length=1)


class BudgetUpdate(BaseModel):
    """Negative amounts are rejected by the gateway."""

    amount: float


class BudgetUpdateResponse(BaseModel):
    previous_budget: float
    budget: float


class CapabilityApply(BaseModel):
    capability: str = Field(..., description="Capability namespace, e.g. 'quality'")


class CertificationRequest(BaseModel):
    kind: str = Field(..., min_length=1)
    issuer: str = Field(..., min_length=1)


class QualityAuditRequest(BaseModel):
    auditor: str = Field(..., min_length=1)
    result: str = Field(..., min_length=1)
    observations: str = ""


class MetricCreate(BaseModel):
    kind: MetricKind
    value: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1)


class GradeRequest(BaseModel):
    """Penalties apply to strict grading, merits to flexible grading."""

    strategy: str = "strict"
    infractions: List[Infraction] = Field(default_factory=list)
    merits: List[Merit] = Field(default_factory=list)


class ChangeEventResponse(BaseModel):
    kind: str
    payload: Dict[str, Any]
    timestamp: datetime
