"""
Permission Core - role-based access control.
"""

from src.kernel.permissions.policy import (
    Caller,
    CallerRole,
    Operation,
    allowed_roles,
    is_allowed,
    resolve_role,
)

__all__ = [
    "Caller",
    "CallerRole",
    "Operation",
    "allowed_roles",
    "is_allowed",
    "resolve_role",
]
