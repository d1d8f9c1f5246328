"""
Notification subject: listener registry with isolated, ordered delivery.
"""

from collections import deque
from typing import Deque, List, Optional, Protocol, runtime_checkable

from src.config import get_settings
from src.kernel.errors import ListenerFault
from src.kernel.events.event_types import ChangeEvent
from src.logging_config import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Listener(Protocol):
    """Anything exposing on_event(subject, event) may attach."""

    def on_event(self, subject: "Subject", event: ChangeEvent) -> None:
        ...


class Subject:
    """
    Delivers change events to attached listeners.

    Usage:
        subject = Subject()
        subject.attach(recorder)
        project.bind_subject(subject)

    Delivery is synchronous and follows attachment order. Each listener
    call runs in its own failure boundary: an exception is wrapped in a
    ListenerFault, logged and kept in ``faults`` (most recent
    ``fault_limit`` only), and delivery moves on.
    """

    def __init__(self, name: str = "projects", fault_limit: Optional[int] = None):
        self.name = name
        self._listeners: List[Listener] = []
        if fault_limit is None:
            fault_limit = get_settings().listener_fault_limit
        self.faults: Deque[ListenerFault] = deque(maxlen=fault_limit)

    def attach(self, listener: Listener) -> None:
        """Attach a listener. Attaching the same object twice is a no-op."""
        if not isinstance(listener, Listener):
            raise TypeError(f"{type(listener).__name__} does not implement on_event")
        if self._index(listener) is not None:
            return
        self._listeners.append(listener)
        logger.debug("Listener attached", extra={"subject": self.name, "listeners": len(self._listeners)})

    def detach(self, listener: Listener) -> None:
        """Detach a listener if present."""
        index = self._index(listener)
        if index is None:
            return
        del self._listeners[index]
        logger.debug("Listener detached", extra={"subject": self.name, "listeners": len(self._listeners)})

    def notify(self, event: ChangeEvent) -> None:
        """Deliver ``event`` to every listener attached when the call started."""
        # attach/detach from inside a listener only affects later passes
        listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener.on_event(self, event)
            except Exception as exc:
                fault = ListenerFault(listener, event.kind.value, exc)
                self.faults.append(fault)
                logger.exception(
                    "Listener failed",
                    extra={"subject": self.name, "event_kind": event.kind.value},
                )

    @property
    def listeners(self) -> List[Listener]:
        return list(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def _index(self, listener: Listener):
        # by identity, not equality
        for i, attached in enumerate(self._listeners):
            if attached is listener:
                return i
        return None
