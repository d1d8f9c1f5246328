"""
Backing store for project records.

Holds whatever object it was given per id (a bare Project or a stack of
capability decorators) and counts fetches so callers can see how often the
gateway cache had to fall through.
"""

from typing import Dict, Iterable, List

from src.kernel.errors import DuplicateProject, NotFound
from src.kernel.models.project import ProjectCapability
from src.logging_config import get_logger

logger = get_logger(__name__)


class ProjectStore:
    """In-memory project store keyed by project id."""

    def __init__(self, projects: Iterable[ProjectCapability] = ()):
        self._projects: Dict[str, ProjectCapability] = {}
        self.fetch_count = 0
        self.load(projects)
        logger.info("Project store initialized", extra={"projects": len(self._projects)})

    def load(self, projects: Iterable[ProjectCapability]) -> int:
        """Add several projects. Returns how many were added."""
        added = 0
        for project in projects:
            self.add(project)
            added += 1
        return added

    def add(self, project: ProjectCapability) -> None:
        if project.id in self._projects:
            raise DuplicateProject(project.id)
        self._projects[project.id] = project

    def replace(self, project: ProjectCapability) -> ProjectCapability:
        """Swap the stored object for ``project`` (same id). Returns the old one."""
        previous = self._projects.get(project.id)
        if previous is None:
            raise NotFound(project.id)
        self._projects[project.id] = project
        return previous

    def fetch(self, project_id: str) -> ProjectCapability:
        self.fetch_count += 1
        project = self._projects.get(project_id)
        if project is None:
            raise NotFound(project_id)
        logger.debug("Fetched project from store", extra={"project_id": project_id})
        return project

    def all(self) -> List[ProjectCapability]:
        return list(self._projects.values())

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._projects

    def __len__(self) -> int:
        return len(self._projects)
