"""
Change notification infrastructure.

Provides typed change events, the notification subject, and stock listeners.
"""

from src.kernel.events.event_types import ChangeEvent, ChangeEventKind
from src.kernel.events.listeners import EventRecorder, LoggingListener
from src.kernel.events.subject import Listener, Subject

__all__ = [
    "ChangeEvent",
    "ChangeEventKind",
    "EventRecorder",
    "Listener",
    "LoggingListener",
    "Subject",
]
