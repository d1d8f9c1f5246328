"""
Stock listeners for project change events.
"""

from collections import deque
from typing import Deque, Dict, List, Optional

from src.config import get_settings
from src.kernel.events.event_types import ChangeEvent, ChangeEventKind
from src.kernel.events.subject import Subject
from src.logging_config import get_logger

logger = get_logger(__name__)


class EventRecorder:
    """Keeps the most recent ``max_events`` delivered events in arrival order."""

    def __init__(self, max_events: Optional[int] = None):
        if max_events is None:
            max_events = get_settings().event_history_limit
        self._events: Deque[ChangeEvent] = deque(maxlen=max_events)

    def on_event(self, subject: Subject, event: ChangeEvent) -> None:
        self._events.append(event)

    def events(
        self,
        project_id: Optional[str] = None,
        kind: Optional[ChangeEventKind] = None,
    ) -> List[ChangeEvent]:
        """Recorded events, optionally narrowed to one project and/or kind."""
        events = self._events
        if project_id is not None:
            events = [e for e in events if e.project_id == project_id]
        if kind is not None:
            events = [e for e in events if e.kind == kind]
        return list(events)

    def count_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for event in self._events:
            counts[event.kind.value] = counts.get(event.kind.value, 0) + 1
        return counts

    def clear(self) -> None:
        self._events.clear()


class LoggingListener:
    """Writes each event to the application log."""

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = get_logger(logger_name) if logger_name else logger

    def on_event(self, subject: Subject, event: ChangeEvent) -> None:
        self._logger.info(
            "Project event %s",
            event.kind.value,
            extra={"project_id": event.project_id, "subject": subject.name},
        )
