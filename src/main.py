"""
Research Project Registry

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.deps import Registry
from src.api.middleware.request_id import RequestIdMiddleware
from src.api.v1 import router as api_v1_router
from src.config import get_settings
from src.kernel.errors import (
    AlreadyAssigned,
    CapabilityConflict,
    CertificationRefused,
    DuplicateProject,
    InvalidAmount,
    InvalidScore,
    NotEnrolled,
    NotFound,
    RegistryError,
    SupervisorBusy,
    Unauthorized,
)
from src.logging_config import configure_logging, get_logger
from src.schemas.common import ErrorResponse, HealthResponse

settings = get_settings()
logger = get_logger(__name__)

# Most specific class first; RegistryError is the fallback
ERROR_STATUS = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (AlreadyAssigned, status.HTTP_409_CONFLICT),
    (SupervisorBusy, status.HTTP_409_CONFLICT),
    (DuplicateProject, status.HTTP_409_CONFLICT),
    (CertificationRefused, status.HTTP_409_CONFLICT),
    (CapabilityConflict, status.HTTP_409_CONFLICT),
    (InvalidScore, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotEnrolled, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidAmount, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_for(exc: RegistryError) -> int:
    for error_cls, status_code in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    logger.info("Starting %s v%s", settings.project_name, settings.version)

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.project_name,
    description="""
    Research Project Registry

    Tracks research projects, their rosters and evaluations.

    ## Features

    - **Projects**: Registration, partner-system import, rosters and supervisors
    - **Evaluations**: Scores with automatic closure on majority failure
    - **Capabilities**: Quality certification and environmental tracking
    - **Grading**: Strict and flexible grading strategies
    - **Audit**: Every gateway operation recorded, admin-readable

    Callers identify themselves with `X-Caller-Id` and may claim a role
    with `X-Caller-Role`.
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# add_middleware stacks innermost-first: CORS added last is outermost
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


@app.exception_handler(RegistryError)
async def registry_exception_handler(request: Request, exc: RegistryError):
    """Map domain errors onto status codes."""
    status_code = status_for(exc)
    if status_code == status.HTTP_403_FORBIDDEN:
        logger.warning("Forbidden: %s", exc.message)
    content = ErrorResponse(detail=exc.message, code=exc.code).model_dump(exclude_none=True)
    req_id = _request_id(request)
    headers = {"X-Request-ID": req_id} if req_id else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    req_id = _request_id(request)
    content = {"detail": exc.detail}
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    headers = dict(exc.headers or {})
    if req_id:
        headers["X-Request-ID"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    content = ErrorResponse(
        detail="Validation error",
        errors=errors,
        request_id=_request_id(request),
    ).model_dump(exclude_none=True)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=content,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = _request_id(request)
    if settings.debug:
        content = {
            "detail": str(exc),
            "type": type(exc).__name__,
            "request_id": req_id,
        }
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(registry: Registry):
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        environment=settings.environment,
        store_initialized=registry.gateway.store_initialized,
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
