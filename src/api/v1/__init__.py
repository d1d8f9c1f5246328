"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import admin, projects
from src.schemas.common import ErrorResponse

# Domain errors are rendered by the handlers in src.main
ERROR_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Caller not authorized"},
    404: {"model": ErrorResponse, "description": "Project not found"},
    409: {"model": ErrorResponse, "description": "Conflicting project state"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}

router = APIRouter()

router.include_router(projects.router, prefix="/projects", tags=["Projects"], responses=ERROR_RESPONSES)
router.include_router(admin.router, prefix="/admin", tags=["Administration"], responses=ERROR_RESPONSES)
