"""
Registry Service - composes the store, gateway, notification subject and
listeners behind one object.

The service is the entry point for the presentation layer:
- creates and imports projects (administrative)
- applies capability decorators to stored projects in place
- grades projects with a chosen strategy
- lists projects through the collection utility
- exposes the events delivered for each project
"""

from typing import Any, Iterable, List, Optional

from src.engines.grading import EvaluationInput, GradeReport, Infraction, Merit, get_strategy
from src.engines.portfolio import ProjectCollection
from src.integrations.partner_adapter import PartnerAdapter, PartnerProjectRecord
from src.kernel.access import AccessGateway, ProjectStore, as_caller
from src.kernel.access.gateway import CallerLike
from src.kernel.errors import CapabilityConflict
from src.kernel.events import (
    ChangeEvent,
    ChangeEventKind,
    EventRecorder,
    LoggingListener,
    Subject,
)
from src.kernel.models.audit import AuditAction
from src.kernel.models.project import Project, ProjectCapability, ProjectPayload, ProjectStatus
from src.kernel.permissions.policy import Operation
from src.logging_config import get_logger
from src.plugins.capabilities import CAPABILITIES, ProjectDecorator
from src.plugins.capabilities.environmental_tracking import EnvironmentalMetric
from src.plugins.capabilities.quality_certification import Certification, QualityAudit

logger = get_logger(__name__)


class RegistryService:
    """
    Project registry facade.

    Usage:
        registry = RegistryService(seed=[project])
        registry.create_project(payload, "ADM-1")
        registry.gateway.add_evaluation("P1", "PROF-7", student_id="EST-1", score=88)
        registry.events("P1")
    """

    def __init__(
        self,
        seed: Iterable[Project] = (),
        ttl_seconds: Optional[float] = None,
        adapter: Optional[PartnerAdapter] = None,
    ):
        self.subject = Subject("projects")
        self.recorder = EventRecorder()
        self.subject.attach(self.recorder)
        self.subject.attach(LoggingListener())
        self.adapter = adapter if adapter is not None else PartnerAdapter()

        seed = list(seed)
        self.gateway = AccessGateway(
            store_factory=lambda: ProjectStore(self._bind(p) for p in seed),
            ttl_seconds=ttl_seconds,
        )

    def _bind(self, project: Project) -> Project:
        project.bind_subject(self.subject)
        return project

    # Creation

    def create_project(self, payload: ProjectPayload, caller: CallerLike) -> ProjectCapability:
        project = self._bind(Project.from_payload(payload))
        return self.gateway.register_project(project, caller)

    def import_partner_project(
        self,
        record: PartnerProjectRecord,
        faculty: str,
        caller: CallerLike,
    ) -> ProjectCapability:
        """Convert a partner record and register it as a new project."""
        payload = self.adapter.to_core_payload(record, faculty)
        project = self.create_project(payload, caller)
        logger.info(
            "Partner project imported",
            extra={"project_id": project.id, "partner_id": record.id_proyecto},
        )
        return project

    def import_partner_batch(
        self,
        records: Iterable[PartnerProjectRecord],
        faculty: str,
        caller: CallerLike,
    ) -> List[ProjectCapability]:
        return [self.import_partner_project(record, faculty, caller) for record in records]

    # Capabilities

    def decorate(
        self,
        project_id: str,
        capability: str,
        caller: CallerLike,
        **options: Any,
    ) -> ProjectDecorator:
        """
        Wrap the stored project with a capability and store the wrapper.

        Raises:
            CapabilityConflict: unknown capability, or already applied
            Unauthorized: caller may not replace project records
        """
        caller = as_caller(caller)
        decorator_cls = CAPABILITIES.get(capability)
        if decorator_cls is None:
            raise CapabilityConflict(
                project_id,
                capability,
                f"Unknown capability '{capability}'; expected one of {sorted(CAPABILITIES)}",
            )

        project = self.gateway.get(project_id, caller)
        if capability in self.layers(project):
            raise CapabilityConflict(
                project_id,
                capability,
                f"Project {project_id} already has the '{capability}' capability",
            )

        decorated = decorator_cls(project, **options)
        self.gateway.replace_project(decorated, caller)
        logger.info("Capability applied", extra={"project_id": project_id, "capability": capability})
        return decorated

    def capability(self, project_id: str, namespace: str, caller: CallerLike) -> ProjectDecorator:
        """The decorator layer publishing ``namespace`` on ``project_id``."""
        current: Any = self.gateway.get(project_id, caller)
        while isinstance(current, ProjectDecorator):
            if current.namespace == namespace:
                return current
            current = current.inner
        raise CapabilityConflict(
            project_id,
            namespace,
            f"Project {project_id} does not have the '{namespace}' capability",
        )

    def managed_capability(
        self,
        project_id: str,
        namespace: str,
        caller: CallerLike,
        action: str,
    ) -> ProjectDecorator:
        """
        Audit and authorize a capability-level write, then return the layer.

        Capability state lives on the decorator, so the cached project
        reference stays valid; the entry is still dropped like any write.
        """
        caller = as_caller(caller)
        self.gateway.audit.record(
            AuditAction.MANAGE_CAPABILITY,
            caller.id,
            project_id,
            {"capability": namespace, "action": action},
        )
        layer = self.capability(project_id, namespace, caller)
        self.gateway.authorize(caller, Operation.MANAGE_CAPABILITIES, project_id, layer)
        self.gateway.invalidate(project_id)
        return layer

    def grant_certification(self, project_id: str, caller: CallerLike, kind: str, issuer: str) -> Certification:
        layer = self.managed_capability(project_id, "quality", caller, "grant_certification")
        return layer.grant_certification(kind, issuer)

    def record_quality_audit(
        self,
        project_id: str,
        caller: CallerLike,
        auditor: str,
        result: str,
        observations: str = "",
    ) -> QualityAudit:
        layer = self.managed_capability(project_id, "quality", caller, "record_audit")
        return layer.record_audit(auditor, result, observations)

    def record_metric(
        self,
        project_id: str,
        caller: CallerLike,
        kind: str,
        value: float,
        unit: str,
    ) -> EnvironmentalMetric:
        layer = self.managed_capability(project_id, "environmental", caller, "record_metric")
        return layer.record_metric(kind, value, unit)

    @staticmethod
    def layers(project: ProjectCapability) -> List[str]:
        if isinstance(project, ProjectDecorator):
            return project.layers()
        return []

    # Queries

    def grade_project(
        self,
        project_id: str,
        strategy: str,
        caller: CallerLike,
        infractions: Iterable[Infraction] = (),
        merits: Iterable[Merit] = (),
    ) -> GradeReport:
        """
        Grade the evaluation history and review it against the strategy.

        Raises ValueError for an unknown strategy.
        """
        grader = get_strategy(strategy)
        project = self.gateway.get(project_id, caller)
        history = project.evaluations
        report = grader.grade(
            [e.score for e in history],
            infractions,
            merits,
            evaluations=[
                EvaluationInput(score=e.score, evaluator=e.evaluator, comment=e.comment)
                for e in history
            ],
        )
        logger.info(
            "Project graded",
            extra={"project_id": project_id, "strategy": grader.name, "grade": report.final_grade},
        )
        return report

    def list_projects(
        self,
        caller: CallerLike,
        status: Optional[ProjectStatus] = None,
        faculty: Optional[str] = None,
    ) -> ProjectCollection:
        collection = ProjectCollection(self.gateway.list_projects(caller))
        if status is not None:
            collection = collection.by_status(status)
        if faculty is not None:
            collection = collection.by_faculty(faculty)
        return collection

    def events(
        self,
        project_id: Optional[str] = None,
        kind: Optional[ChangeEventKind] = None,
    ) -> List[ChangeEvent]:
        return self.recorder.events(project_id=project_id, kind=kind)
