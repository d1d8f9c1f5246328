"""
Pytest fixtures for registry tests.
"""

from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.kernel.access import AccessGateway, ProjectStore
from src.kernel.events import EventRecorder, Subject
from src.kernel.models.project import Project

STUDENTS = ["EST-1", "EST-2", "EST-3", "EST-4", "EST-5"]


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Wall clock for capability timestamps."""

    def __init__(self, start: datetime = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_project(project_id: str = "P1", students: List[str] = STUDENTS, **overrides) -> Project:
    fields = {
        "title": "Amazon Biodiversity Survey",
        "faculty": "Environmental Sciences",
        "budget": 50_000_000,
        "start_date": date(2024, 1, 15),
        "description": "Survey of endemic species",
    }
    fields.update(overrides)
    project = Project(id=project_id, **fields)
    for student_id in students:
        project.add_student(student_id)
    return project


@pytest.fixture
def project() -> Project:
    """An active project with five enrolled students and no evaluations."""
    return make_project()


@pytest.fixture
def subject() -> Subject:
    return Subject()


@pytest.fixture
def recorder(subject: Subject) -> EventRecorder:
    recorder = EventRecorder()
    subject.attach(recorder)
    return recorder


@pytest.fixture
def bound_project(project: Project, subject: Subject, recorder: EventRecorder) -> Project:
    project.bind_subject(subject)
    return project


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def store(bound_project: Project) -> ProjectStore:
    return ProjectStore([bound_project])


@pytest.fixture
def gateway(store: ProjectStore, clock: FakeClock) -> AccessGateway:
    """Gateway over a one-project store, 300 s TTL, hand-driven clock."""
    return AccessGateway(lambda: store, ttl_seconds=300, clock=clock)


@pytest.fixture
def supervised_gateway(gateway: AccessGateway) -> AccessGateway:
    """Gateway whose project P1 has PROF-7 as supervisor."""
    gateway.assign_supervisor("P1", "ADM-1", "PROF-7")
    return gateway


@pytest.fixture
def project_factory():
    """Build extra projects: project_factory("P2", students=[], budget=10)."""
    return make_project


# HTTP

@pytest.fixture
def registry():
    from src.services.registry_service import RegistryService

    return RegistryService(seed=[make_project()])


@pytest_asyncio.fixture
async def client(registry) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app with an isolated registry."""
    from src.api.deps import get_registry
    from src.main import app

    app.dependency_overrides[get_registry] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
