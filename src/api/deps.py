"""
FastAPI dependencies for caller identity and the project registry.

Caller identity is asserted, not authenticated: `X-Caller-Id` and
`X-Caller-Role` are trusted as sent, so any client can claim the admin
role. Deploy behind a gateway that authenticates callers and sets these
headers.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from src.config import get_settings
from src.kernel.permissions.policy import Caller, CallerRole
from src.services.registry_service import RegistryService
from src.services.seed import demo_projects

CALLER_ID_HEADER = "X-Caller-Id"
CALLER_ROLE_HEADER = "X-Caller-Role"


@lru_cache
def get_registry() -> RegistryService:
    """Process-wide registry. Tests override this dependency."""
    settings = get_settings()
    return RegistryService(seed=demo_projects() if settings.seed_demo_data else ())


Registry = Annotated[RegistryService, Depends(get_registry)]


async def get_current_caller(
    caller_id: Annotated[str, Header(alias=CALLER_ID_HEADER, min_length=1)],
    role: Annotated[Optional[CallerRole], Header(alias=CALLER_ROLE_HEADER)] = None,
) -> Caller:
    """Caller identity from headers. An explicit role header wins over the id prefix."""
    return Caller(id=caller_id, role_claim=role)


CurrentCaller = Annotated[Caller, Depends(get_current_caller)]

