"""
Role-based authorization policy for project operations.

The policy is a fixed table: operation -> roles that may always perform it,
plus one entity-specific rule (the assigned supervisor may record
evaluations on their own project). Anything not in the table, and any
caller whose role cannot be resolved, is denied.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel

from src.logging_config import get_logger

logger = get_logger(__name__)


class CallerRole(str, Enum):
    """Caller roles in the system."""
    ADMIN = "admin"
    COORDINATOR = "coordinator"
    SUPERVISOR = "supervisor"
    STUDENT = "student"
    UNKNOWN = "unknown"


class Operation(str, Enum):
    """Gateway operations subject to authorization."""
    READ_PROJECT = "read_project"
    REGISTER_PROJECT = "register_project"
    ADD_EVALUATION = "add_evaluation"
    ASSIGN_SUPERVISOR = "assign_supervisor"
    ADD_STUDENT = "add_student"
    UPDATE_BUDGET = "update_budget"
    MANAGE_CAPABILITIES = "manage_capabilities"
    READ_AUDIT = "read_audit"


# Caller-id prefix convention, used when no explicit role claim is given
ROLE_PREFIXES: Dict[str, CallerRole] = {
    "ADM-": CallerRole.ADMIN,
    "COORD-": CallerRole.COORDINATOR,
    "PROF-": CallerRole.SUPERVISOR,
    "EST-": CallerRole.STUDENT,
}

_EVERYONE: FrozenSet[CallerRole] = frozenset(
    role for role in CallerRole if role != CallerRole.UNKNOWN
)

# Roles granted each operation unconditionally
_GRANTS: Dict[Operation, FrozenSet[CallerRole]] = {
    Operation.READ_PROJECT: _EVERYONE | {CallerRole.UNKNOWN},
    Operation.REGISTER_PROJECT: frozenset({CallerRole.ADMIN}),
    Operation.ADD_EVALUATION: frozenset({CallerRole.ADMIN}),
    Operation.ASSIGN_SUPERVISOR: frozenset({CallerRole.ADMIN, CallerRole.COORDINATOR}),
    Operation.ADD_STUDENT: frozenset({CallerRole.ADMIN, CallerRole.COORDINATOR}),
    Operation.UPDATE_BUDGET: frozenset({CallerRole.ADMIN}),
    Operation.MANAGE_CAPABILITIES: frozenset({CallerRole.ADMIN, CallerRole.COORDINATOR}),
    Operation.READ_AUDIT: frozenset({CallerRole.ADMIN}),
}


class Caller(BaseModel):
    """Opaque caller identity plus an optional explicit role claim."""

    id: str
    role_claim: Optional[CallerRole] = None

    @property
    def role(self) -> CallerRole:
        return resolve_role(self.id, self.role_claim)


def resolve_role(caller_id: str, role_claim: Optional[CallerRole] = None) -> CallerRole:
    """An explicit claim wins; otherwise fall back to the id prefix."""
    if role_claim is not None:
        return role_claim
    for prefix, role in ROLE_PREFIXES.items():
        if caller_id.startswith(prefix):
            return role
    return CallerRole.UNKNOWN


def is_allowed(
    caller: Caller,
    operation: Operation,
    supervisor_id: Optional[str] = None,
) -> bool:
    """
    Check whether ``caller`` may perform ``operation``.

    Args:
        caller: The caller identity
        operation: Operation being attempted
        supervisor_id: Supervisor currently assigned to the target project

    Returns:
        True if the policy grants the operation
    """
    role = caller.role
    if role in _GRANTS.get(operation, frozenset()):
        return True

    if (
        operation == Operation.ADD_EVALUATION
        and role == CallerRole.SUPERVISOR
        and supervisor_id is not None
        and caller.id == supervisor_id
    ):
        return True

    logger.info(
        "Authorization denied",
        extra={"operation": operation.value, "role": role.value},
    )
    return False


def allowed_roles(operation: Operation) -> FrozenSet[CallerRole]:
    """Roles granted ``operation`` unconditionally."""
    return _GRANTS.get(operation, frozenset())
