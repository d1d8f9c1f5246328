"""
Domain error taxonomy.

Every failure the core raises derives from RegistryError and carries a
stable ``code`` the presentation layer maps onto a response. ListenerFault
is the only one that is never propagated: the notification subject records
it and keeps delivering.
"""

from typing import Optional


class RegistryError(Exception):
    """Base class for registry failures."""

    code = "registry_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(RegistryError, LookupError):
    """Raised when a project id is unknown to the backing store."""

    code = "not_found"

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class AlreadyAssigned(RegistryError):
    """Raised when a supervisor is assigned to a project that already has one."""

    code = "already_assigned"

    def __init__(self, project_id: str, supervisor_id: str):
        super().__init__(
            f"Project {project_id} already has supervisor {supervisor_id} assigned"
        )
        self.project_id = project_id
        self.supervisor_id = supervisor_id


class SupervisorBusy(RegistryError):
    """Raised when a supervisor already supervises another project."""

    code = "supervisor_busy"

    def __init__(self, supervisor_id: str, project_id: str):
        super().__init__(f"Supervisor {supervisor_id} already supervises project {project_id}")
        self.supervisor_id = supervisor_id
        self.project_id = project_id


class Unauthorized(RegistryError, PermissionError):
    """Raised when the authorization policy denies an operation."""

    code = "unauthorized"

    def __init__(self, caller_id: str, operation: str, project_id: Optional[str] = None):
        target = f" on project {project_id}" if project_id else ""
        super().__init__(f"Caller {caller_id} may not {operation}{target}")
        self.caller_id = caller_id
        self.operation = operation
        self.project_id = project_id


class InvalidScore(RegistryError, ValueError):
    """Raised by the validating caller layer for scores outside 0-100."""

    code = "invalid_score"

    def __init__(self, score: float):
        super().__init__(f"Score must be between 0 and 100, got {score}")
        self.score = score


class NotEnrolled(RegistryError, ValueError):
    """Raised when an evaluation names a student outside the project roster."""

    code = "not_enrolled"

    def __init__(self, project_id: str, student_id: str):
        super().__init__(f"Student {student_id} is not enrolled in project {project_id}")
        self.project_id = project_id
        self.student_id = student_id


class InvalidAmount(RegistryError, ValueError):
    """Raised by the validating caller layer for negative budgets."""

    code = "invalid_amount"

    def __init__(self, amount: float):
        super().__init__(f"Budget must not be negative, got {amount}")
        self.amount = amount


class DuplicateProject(RegistryError):
    """Raised when registering a project id that is already stored."""

    code = "duplicate_project"

    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} already exists")
        self.project_id = project_id


class CertificationRefused(RegistryError):
    """Raised when a project does not meet the standards for certification."""

    code = "certification_refused"


class CapabilityConflict(RegistryError):
    """Raised when a capability is applied twice or looked up on a project without it."""

    code = "capability_conflict"

    def __init__(self, project_id: str, namespace: str, message: str):
        super().__init__(message)
        self.project_id = project_id
        self.namespace = namespace


class ListenerFault(RegistryError):
    """A listener raised while handling an event. Captured, never propagated."""

    code = "listener_fault"

    def __init__(self, listener: object, event_kind: str, cause: BaseException):
        super().__init__(
            f"Listener {type(listener).__name__} failed on {event_kind}: {cause!r}"
        )
        self.listener = listener
        self.event_kind = event_kind
        self.cause = cause
