"""
Access gateway - the caching, authorizing front for project records.

Reads are served from a TTL cache or fetched from the backing store.
Writes follow a fixed sequence:

    1. audit the intent
    2. fetch the project through the read path
    3. authorize against the fetched project
    4. on denial, audit the denial and raise Unauthorized (no mutation)
    5. validate the input
    6. delegate to the (possibly decorated) project
    7. invalidate the cache entry, even if the mutation raised or cascaded

The backing store is built on first use and kept for the gateway's lifetime.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel

from src.config import get_settings
from src.kernel.access.store import ProjectStore
from src.kernel.errors import InvalidAmount, InvalidScore, NotEnrolled, SupervisorBusy, Unauthorized
from src.kernel.models.audit import AuditAction, AuditLogEntry, AuditTrail
from src.kernel.models.project import Evaluation, ProjectCapability
from src.kernel.permissions.policy import Caller, Operation, is_allowed
from src.logging_config import get_logger

logger = get_logger(__name__)

CallerLike = Union[str, Caller]


@dataclass(frozen=True)
class CacheEntry:
    project: ProjectCapability
    inserted_at: float


class GatewayStats(BaseModel):
    """Cache and audit counters."""

    cached_projects: int
    audit_entries: int
    cache_hits: int
    cache_misses: int
    store_fetches: int
    store_initialized: bool


def as_caller(caller: CallerLike) -> Caller:
    return caller if isinstance(caller, Caller) else Caller(id=caller)


class AccessGateway:
    """
    Caching, authorizing proxy in front of a ProjectStore.

    Usage:
        gateway = AccessGateway(lambda: ProjectStore(seed_projects))
        project = gateway.get("P1", "EST-1")
        gateway.add_evaluation("P1", "PROF-7", student_id="EST-1", score=88)
    """

    def __init__(
        self,
        store_factory: Callable[[], ProjectStore] = ProjectStore,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        audit: Optional[AuditTrail] = None,
    ):
        self._store_factory = store_factory
        self._store: Optional[ProjectStore] = None
        self._cache: Dict[str, CacheEntry] = {}
        self._clock = clock
        self.ttl_seconds = get_settings().cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.audit = audit if audit is not None else AuditTrail()
        self.cache_hits = 0
        self.cache_misses = 0

    # Backing store

    @property
    def store(self) -> ProjectStore:
        if self._store is None:
            logger.info("Building backing store on first use")
            self._store = self._store_factory()
        return self._store

    @property
    def store_initialized(self) -> bool:
        return self._store is not None

    # Cache

    def _expired(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.inserted_at) > self.ttl_seconds

    def _read(self, project_id: str) -> ProjectCapability:
        entry = self._cache.get(project_id)
        if entry is not None and not self._expired(entry):
            self.cache_hits += 1
            logger.debug("Cache hit", extra={"project_id": project_id})
            return entry.project

        self.cache_misses += 1
        # an expired entry is dropped and replaced, never refreshed in place
        self._cache.pop(project_id, None)
        project = self.store.fetch(project_id)
        self._cache[project_id] = CacheEntry(project=project, inserted_at=self._clock())
        logger.debug("Cache miss, project cached", extra={"project_id": project_id})
        return project

    def invalidate(self, project_id: str) -> bool:
        """Drop the cache entry for ``project_id``. Returns True if one existed."""
        return self._cache.pop(project_id, None) is not None

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Gateway cache cleared")

    def is_cached(self, project_id: str) -> bool:
        return project_id in self._cache

    @contextmanager
    def _mutating(self, project_id: str) -> Iterator[None]:
        try:
            yield
        finally:
            self.invalidate(project_id)

    # Authorization

    def authorize(
        self,
        caller: Caller,
        operation: Operation,
        project_id: Optional[str] = None,
        project: Optional[ProjectCapability] = None,
    ) -> None:
        supervisor_id = project.supervisor_id if project is not None else None
        if is_allowed(caller, operation, supervisor_id=supervisor_id):
            return
        self.audit.record(
            AuditAction.ACCESS_DENIED,
            caller.id,
            project_id,
            {"operation": operation.value, "role": caller.role.value},
        )
        logger.warning(
            "Denied %s to %s",
            operation.value,
            caller.id,
            extra={"project_id": project_id},
        )
        raise Unauthorized(caller.id, operation.value, project_id)

    # Reads

    def get(self, project_id: str, caller: CallerLike) -> ProjectCapability:
        """Return the project for ``project_id``. Reads are never restricted."""
        caller = as_caller(caller)
        self.audit.record(AuditAction.READ_PROJECT, caller.id, project_id)
        self.authorize(caller, Operation.READ_PROJECT, project_id)
        return self._read(project_id)

    def list_projects(self, caller: CallerLike) -> List[ProjectCapability]:
        """Every stored project, straight from the store (not cached)."""
        caller = as_caller(caller)
        self.audit.record(AuditAction.LIST_PROJECTS, caller.id)
        self.authorize(caller, Operation.READ_PROJECT)
        return self.store.all()

    def audit_log(self, caller: CallerLike) -> Tuple[AuditLogEntry, ...]:
        caller = as_caller(caller)
        self.audit.record(AuditAction.READ_AUDIT, caller.id)
        self.authorize(caller, Operation.READ_AUDIT)
        return self.audit.entries()

    def stats(self) -> GatewayStats:
        return GatewayStats(
            cached_projects=len(self._cache),
            audit_entries=len(self.audit),
            cache_hits=self.cache_hits,
            cache_misses=self.cache_misses,
            store_fetches=self._store.fetch_count if self._store is not None else 0,
            store_initialized=self.store_initialized,
        )

    # Writes

    def register_project(self, project: ProjectCapability, caller: CallerLike) -> ProjectCapability:
        """Administrative creation of a new project record."""
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.REGISTER_PROJECT,
            caller.id,
            project.id,
            {"title": project.snapshot().title},
        )
        self.authorize(caller, Operation.REGISTER_PROJECT, project.id)
        with self._mutating(project.id):
            self.store.add(project)
        logger.info("Project registered", extra={"project_id": project.id})
        return project

    def replace_project(self, project: ProjectCapability, caller: CallerLike) -> ProjectCapability:
        """Swap the stored object for a re-wrapped one with the same id."""
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.REPLACE_PROJECT,
            caller.id,
            project.id,
            {"wrapper": type(project).__name__},
        )
        self.authorize(caller, Operation.REGISTER_PROJECT, project.id)
        with self._mutating(project.id):
            self.store.replace(project)
        return project

    def add_evaluation(
        self,
        project_id: str,
        caller: CallerLike,
        student_id: str,
        score: float,
        comment: Optional[str] = None,
    ) -> Evaluation:
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.ADD_EVALUATION,
            caller.id,
            project_id,
            {"student_id": student_id, "score": score},
        )
        project = self.get(project_id, caller)
        self.authorize(caller, Operation.ADD_EVALUATION, project_id, project)

        if not 0 <= score <= 100:
            raise InvalidScore(score)
        if student_id not in project.students:
            raise NotEnrolled(project_id, student_id)

        with self._mutating(project_id):
            evaluation = project.add_evaluation(student_id, score, comment, evaluator=caller.id)
        logger.info(
            "Evaluation recorded",
            extra={"project_id": project_id, "student_id": student_id, "score": score},
        )
        return evaluation

    def assign_supervisor(self, project_id: str, caller: CallerLike, supervisor_id: str) -> ProjectCapability:
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.ASSIGN_SUPERVISOR,
            caller.id,
            project_id,
            {"supervisor_id": supervisor_id},
        )
        project = self.get(project_id, caller)
        self.authorize(caller, Operation.ASSIGN_SUPERVISOR, project_id, project)

        # a supervisor leads at most one project
        for other in self.store.all():
            if other.id != project_id and other.supervisor_id == supervisor_id:
                raise SupervisorBusy(supervisor_id, other.id)

        with self._mutating(project_id):
            project.assign_supervisor(supervisor_id)
        return project

    def add_student(self, project_id: str, caller: CallerLike, student_id: str) -> bool:
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.ADD_STUDENT,
            caller.id,
            project_id,
            {"student_id": student_id},
        )
        project = self.get(project_id, caller)
        self.authorize(caller, Operation.ADD_STUDENT, project_id, project)
        with self._mutating(project_id):
            return project.add_student(student_id)

    def update_budget(self, project_id: str, caller: CallerLike, amount: float) -> float:
        caller = as_caller(caller)
        self.audit.record(
            AuditAction.UPDATE_BUDGET,
            caller.id,
            project_id,
            {"amount": amount},
        )
        project = self.get(project_id, caller)
        self.authorize(caller, Operation.UPDATE_BUDGET, project_id, project)
        if amount < 0:
            raise InvalidAmount(amount)
        with self._mutating(project_id):
            return project.update_budget(amount)

