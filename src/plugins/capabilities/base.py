"""
Base Capability Decorator - wraps a project to add orthogonal behaviour.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from src.kernel.models.project import Evaluation, ProjectCapability, ProjectStatus, ProjectView


class ProjectDecorator(ABC):
    """
    Abstract base class for capability decorators.

    A decorator holds exactly one inner object with the project capability
    set (a Project or another decorator) and forwards every operation to
    it. Concrete decorators:
    - publish their derived data under ``namespace`` in the snapshot
    - keep private state the wrapped object never sees
    - can be stacked in any order; forwarding reaches the innermost project

    Attributes not defined on the decorator (including extra operations of
    inner decorators) resolve against the wrapped object.
    """

    def __init__(self, inner: ProjectCapability):
        if inner is None:
            raise ValueError("A project is required to decorate")
        self._inner = inner

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Snapshot key this decorator's data is published under."""
        pass

    @abstractmethod
    def extension_data(self) -> Dict[str, Any]:
        """Derived fields merged into the snapshot under ``namespace``."""
        pass

    # Forwarded capability set

    @property
    def inner(self) -> ProjectCapability:
        return self._inner

    @property
    def id(self) -> str:
        return self._inner.id

    @property
    def status(self) -> ProjectStatus:
        return self._inner.status

    @property
    def supervisor_id(self) -> Optional[str]:
        return self._inner.supervisor_id

    @property
    def students(self) -> Tuple[str, ...]:
        return self._inner.students

    @property
    def evaluations(self) -> Tuple[Evaluation, ...]:
        return self._inner.evaluations

    def add_evaluation(
        self,
        student_id: str,
        score: float,
        comment: Optional[str] = None,
        evaluator: Optional[str] = None,
    ) -> Evaluation:
        return self._inner.add_evaluation(student_id, score, comment, evaluator)

    def add_student(self, student_id: str) -> bool:
        return self._inner.add_student(student_id)

    def assign_supervisor(self, supervisor_id: str) -> None:
        return self._inner.assign_supervisor(supervisor_id)

    def update_budget(self, amount: float) -> float:
        return self._inner.update_budget(amount)

    def compute_average(self) -> float:
        return self._inner.compute_average()

    def snapshot(self) -> ProjectView:
        return self._inner.snapshot().with_extension(self.namespace, self.extension_data())

    def __getattr__(self, name: str) -> Any:
        # only reached for names the decorator itself does not define
        inner = self.__dict__.get("_inner")
        if inner is None:
            raise AttributeError(name)
        return getattr(inner, name)

    # Stack introspection

    def unwrap(self) -> ProjectCapability:
        """The innermost, undecorated project."""
        current: Any = self
        while isinstance(current, ProjectDecorator):
            current = current.inner
        return current

    def layers(self) -> List[str]:
        """Decorator namespaces from outermost to innermost."""
        names = []
        current: Any = self
        while isinstance(current, ProjectDecorator):
            names.append(current.namespace)
            current = current.inner
        return names

    def __repr__(self) -> str:
        return f"<{type(self).__name__} wrapping {self._inner!r}>"
