"""
Project collection - filtering, ordering and statistics over projects.

Collections are immutable: every filter or ordering returns a new
collection and leaves the source untouched. Iterating a collection
yields project snapshots in collection order.
"""

from collections import Counter
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from pydantic import BaseModel

from src.config import get_settings
from src.kernel.models.project import ProjectCapability, ProjectStatus, ProjectView


class CollectionStats(BaseModel):
    total: int
    average_budget: float
    active: int
    closed: int
    percent_active: float


class ProjectCollection:
    """Ordered, read-only view over a set of projects."""

    LOW_SCORING_RATIO = 0.5

    def __init__(self, projects: Iterable[ProjectCapability] = ()):
        self._projects: List[ProjectCapability] = list(projects)

    def __iter__(self) -> Iterator[ProjectView]:
        for project in self._projects:
            yield project.snapshot()

    def __len__(self) -> int:
        return len(self._projects)

    def __getitem__(self, index: int) -> ProjectCapability:
        return self._projects[index]

    @property
    def projects(self) -> Sequence[ProjectCapability]:
        return tuple(self._projects)

    def snapshots(self) -> List[ProjectView]:
        return list(self)

    def ids(self) -> List[str]:
        return [p.id for p in self._projects]

    def by_status(self, status: ProjectStatus) -> "ProjectCollection":
        status = ProjectStatus(status)
        return ProjectCollection(p for p in self._projects if p.status == status)

    def by_faculty(self, faculty: str) -> "ProjectCollection":
        return ProjectCollection(p for p in self._projects if p.snapshot().faculty == faculty)

    def low_scoring(self, passing_score: Optional[float] = None) -> "ProjectCollection":
        """Projects where at least half of the evaluations are below the passing score."""
        passing = get_settings().passing_score if passing_score is None else passing_score

        def is_low(project: ProjectCapability) -> bool:
            evaluations = project.evaluations
            if not evaluations:
                return False
            below = sum(1 for e in evaluations if e.score < passing)
            return below >= len(evaluations) * self.LOW_SCORING_RATIO

        return ProjectCollection(p for p in self._projects if is_low(p))

    def order_by_budget(self, ascending: bool = True) -> "ProjectCollection":
        return ProjectCollection(
            sorted(self._projects, key=lambda p: p.snapshot().budget, reverse=not ascending)
        )

    def slice(self, start: int, end: Optional[int] = None) -> "ProjectCollection":
        return ProjectCollection(self._projects[start:end])

    def count_by_faculty(self) -> Dict[str, int]:
        return dict(Counter(view.faculty for view in self))

    def stats(self) -> CollectionStats:
        views = self.snapshots()
        if not views:
            return CollectionStats(total=0, average_budget=0.0, active=0, closed=0, percent_active=0.0)

        active = sum(1 for v in views if v.status == ProjectStatus.ACTIVE)
        return CollectionStats(
            total=len(views),
            average_budget=sum(v.budget for v in views) / len(views),
            active=active,
            closed=len(views) - active,
            percent_active=active / len(views) * 100,
        )
