"""
Project endpoints.

Every route resolves the caller from headers and goes through the registry
service, so caching, authorization and auditing are applied exactly as for
in-process callers. Domain errors are mapped to responses by the handlers
registered in ``src.main``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from src.api.deps import CurrentCaller, Registry
from src.engines.grading import GradeReport
from src.integrations.partner_adapter import PartnerProjectRecord
from src.kernel.models.project import ProjectPayload, ProjectStatus, ProjectView, evaluations_as_dicts
from src.logging_config import get_logger
from src.plugins.capabilities import ReportPeriod
from src.plugins.capabilities.environmental_tracking import EnvironmentalMetric, SustainabilityReport
from src.plugins.capabilities.quality_certification import Certification, QualityAudit, StandardsCheck
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

router = APIRouter()
logger = get_logger(__name__)


class BudgetOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    registry: Registry,
    caller: CurrentCaller,
    status_filter: Optional[ProjectStatus] = Query(None, alias="status", description="Filter by status"),
    faculty: Optional[str] = Query(None, description="Filter by faculty"),
    low_scoring: bool = Query(False, description="Only projects with half or more scores failing"),
    budget_order: Optional[BudgetOrder] = Query(None, description="Order by budget"),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """List project snapshots."""
    collection = registry.list_projects(caller, status=status_filter, faculty=faculty)
    if low_scoring:
        collection = collection.low_scoring()
    if budget_order is not None:
        collection = collection.order_by_budget(ascending=budget_order == BudgetOrder.ASC)

    return ProjectListResponse(
        items=collection.slice(offset, offset + limit).snapshots(),
        total=len(collection),
        stats=collection.stats(),
    )


@router.post("", response_model=ProjectView, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, registry: Registry, caller: CurrentCaller):
    """Register a new project (admin only)."""
    project = registry.create_project(ProjectPayload(**data.model_dump()), caller)
    return project.snapshot()


@router.post("/import", response_model=List[ProjectView], status_code=status.HTTP_201_CREATED)
async def import_partner_projects(data: PartnerImportRequest, registry: Registry, caller: CurrentCaller):
    """Convert and register partner-system records (admin only)."""
    projects = registry.import_partner_batch(data.records, data.faculty, caller)
    return [p.snapshot() for p in projects]


@router.get("/{project_id}", response_model=ProjectView)
async def get_project(project_id: str, registry: Registry, caller: CurrentCaller):
    return registry.gateway.get(project_id, caller).snapshot()


@router.get("/{project_id}/evaluations", response_model=List[Dict[str, Any]])
async def list_evaluations(project_id: str, registry: Registry, caller: CurrentCaller):
    project = registry.gateway.get(project_id, caller)
    return evaluations_as_dicts(project.evaluations, project.passing_score)


@router.post(
    "/{project_id}/evaluations",
    response_model=EvaluationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_evaluation(
    project_id: str,
    data: EvaluationCreate,
    registry: Registry,
    caller: CurrentCaller,
):
    """Record an evaluation. May close the project as a side effect."""
    evaluation = registry.gateway.add_evaluation(
        project_id,
        caller,
        student_id=data.student_id,
        score=data.score,
        comment=data.comment,
    )
    project = registry.gateway.get(project_id, caller)
    return EvaluationResponse(
        **evaluation.model_dump(),
        passed=evaluation.passed(project.passing_score),
        project_status=project.status.value,
    )


@router.post("/{project_id}/students", response_model=StudentAddResponse)
async def add_student(project_id: str, data: StudentAdd, registry: Registry, caller: CurrentCaller):
    added = registry.gateway.add_student(project_id, caller, data.student_id)
    project = registry.gateway.get(project_id, caller)
    return StudentAddResponse(added=added, student_count=len(project.students))


@router.put("/{project_id}/supervisor", response_model=ProjectView)
async def assign_supervisor(project_id: str, data: SupervisorAssign, registry: Registry, caller: CurrentCaller):
    project = registry.gateway.assign_supervisor(project_id, caller, data.supervisor_id)
    return project.snapshot()


@router.put("/{project_id}/budget", response_model=BudgetUpdateResponse)
async def update_budget(project_id: str, data: BudgetUpdate, registry: Registry, caller: CurrentCaller):
    previous = registry.gateway.update_budget(project_id, caller, data.amount)
    return BudgetUpdateResponse(previous_budget=previous, budget=data.amount)


# Capabilities

@router.post("/{project_id}/capabilities", response_model=ProjectView)
async def apply_capability(project_id: str, data: CapabilityApply, registry: Registry, caller: CurrentCaller):
    """Wrap the project with a capability (admin only)."""
    decorated = registry.decorate(project_id, data.capability, caller)
    return decorated.snapshot()


@router.get("/{project_id}/quality/standards", response_model=StandardsCheck)
async def check_quality_standards(project_id: str, registry: Registry, caller: CurrentCaller):
    return registry.capability(project_id, "quality", caller).check_standards()


@router.post(
    "/{project_id}/quality/certifications",
    response_model=Certification,
    status_code=status.HTTP_201_CREATED,
)
async def grant_certification(
    project_id: str,
    data: CertificationRequest,
    registry: Registry,
    caller: CurrentCaller,
):
    return registry.grant_certification(project_id, caller, data.kind, data.issuer)


@router.post(
    "/{project_id}/quality/audits",
    response_model=QualityAudit,
    status_code=status.HTTP_201_CREATED,
)
async def record_quality_audit(
    project_id: str,
    data: QualityAuditRequest,
    registry: Registry,
    caller: CurrentCaller,
):
    return registry.record_quality_audit(project_id, caller, data.auditor, data.result, data.observations)


@router.post(
    "/{project_id}/environmental/metrics",
    response_model=EnvironmentalMetric,
    status_code=status.HTTP_201_CREATED,
)
async def record_metric(project_id: str, data: MetricCreate, registry: Registry, caller: CurrentCaller):
    return registry.record_metric(project_id, caller, data.kind.value, data.value, data.unit)


@router.post("/{project_id}/environmental/reports", response_model=SustainabilityReport)
async def sustainability_report(
    project_id: str,
    registry: Registry,
    caller: CurrentCaller,
    period: ReportPeriod = Query(ReportPeriod.ALL),
):
    layer = registry.managed_capability(project_id, "environmental", caller, "sustainability_report")
    return layer.sustainability_report(period)


# Grading, events and partner view

@router.post("/{project_id}/grade", response_model=GradeReport)
async def grade_project(project_id: str, data: GradeRequest, registry: Registry, caller: CurrentCaller):
    try:
        return registry.grade_project(
            project_id,
            data.strategy,
            caller,
            infractions=data.infractions,
            merits=data.merits,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/{project_id}/events", response_model=List[ChangeEventResponse])
async def list_events(project_id: str, registry: Registry, caller: CurrentCaller):
    registry.gateway.get(project_id, caller)
    return [
        ChangeEventResponse(kind=e.kind.value, payload=e.payload, timestamp=e.timestamp)
        for e in registry.events(project_id)
    ]


@router.get("/{project_id}/partner-record", response_model=PartnerProjectRecord)
async def partner_record(project_id: str, registry: Registry, caller: CurrentCaller):
    """The project in the partner system's format."""
    project = registry.gateway.get(project_id, caller)
    return registry.adapter.to_partner_record(project.snapshot(), getattr(project, "source", None))
