"""Unit tests for the notification subject and stock listeners."""

import logging

import pytest

from src.kernel.errors import ListenerFault
from src.kernel.events import ChangeEvent, ChangeEventKind, EventRecorder, LoggingListener, Subject


def make_event(kind: ChangeEventKind = ChangeEventKind.STUDENT_ADDED, project_id: str = "P1") -> ChangeEvent:
    return ChangeEvent(kind=kind, payload={"project_id": project_id})


class CallLog:
    """Listener that appends its name to a shared list."""

    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    def on_event(self, subject, event):
        self.calls.append(self.name)


class Exploding:
    def on_event(self, subject, event):
        raise RuntimeError("listener broke")


class TestAttachDetach:
    def test_attach_is_idempotent_by_identity(self, subject):
        recorder = EventRecorder()
        subject.attach(recorder)
        subject.attach(recorder)
        assert len(subject) == 1

    def test_detach_absent_listener_is_a_no_op(self, subject):
        subject.detach(EventRecorder())
        assert len(subject) == 0

    def test_attach_rejects_objects_without_on_event(self, subject):
        with pytest.raises(TypeError):
            subject.attach(object())


class TestNotify:
    """Delivery order, isolation and snapshot semantics."""

    def test_delivers_in_attachment_order(self, subject):
        calls = []
        for name in ["a", "b", "c"]:
            subject.attach(CallLog(name, calls))

        subject.notify(make_event())
        assert calls == ["a", "b", "c"]

    def test_failing_listener_is_isolated(self, subject, caplog):
        calls = []
        subject.attach(CallLog("first", calls))
        subject.attach(Exploding())
        subject.attach(CallLog("last", calls))

        with caplog.at_level(logging.ERROR):
            subject.notify(make_event())

        assert calls == ["first", "last"]
        assert len(subject.faults) == 1
        fault = subject.faults[0]
        assert isinstance(fault, ListenerFault)
        assert isinstance(fault.cause, RuntimeError)
        assert fault.event_kind == "student-added"
        assert "Listener failed" in caplog.text

    def test_fault_log_keeps_most_recent(self):
        subject = Subject(fault_limit=2)
        subject.attach(Exploding())
        for kind in [ChangeEventKind.STUDENT_ADDED, ChangeEventKind.BUDGET_UPDATED, ChangeEventKind.CLOSED]:
            subject.notify(make_event(kind))

        assert [f.event_kind for f in subject.faults] == ["budget-updated", "closed"]

    def test_fault_limit_defaults_to_settings(self):
        assert Subject().faults.maxlen == 1000

    def test_attach_during_notify_applies_to_next_pass(self, subject):
        late = EventRecorder()

        class Attacher:
            def on_event(self, s, event):
                s.attach(late)

        subject.attach(Attacher())
        subject.notify(make_event())
        assert late.events() == []

        subject.notify(make_event())
        assert len(late.events()) == 1

    def test_detach_during_notify_still_delivers_current_pass(self, subject):
        recorder = EventRecorder()

        class Detacher:
            def on_event(self, s, event):
                s.detach(recorder)

        subject.attach(Detacher())
        subject.attach(recorder)
        subject.notify(make_event())
        assert len(recorder.events()) == 1

        subject.notify(make_event())
        assert len(recorder.events()) == 1


class TestListeners:
    def test_recorder_filters(self):
        recorder = EventRecorder()
        subject = Subject()
        recorder.on_event(subject, make_event(ChangeEventKind.STUDENT_ADDED, "P1"))
        recorder.on_event(subject, make_event(ChangeEventKind.CLOSED, "P1"))
        recorder.on_event(subject, make_event(ChangeEventKind.CLOSED, "P2"))

        assert len(recorder.events(project_id="P1")) == 2
        assert len(recorder.events(kind=ChangeEventKind.CLOSED)) == 2
        assert len(recorder.events(project_id="P2", kind=ChangeEventKind.CLOSED)) == 1
        assert recorder.count_by_kind() == {"student-added": 1, "closed": 2}

    def test_recorder_keeps_most_recent(self):
        recorder = EventRecorder(max_events=2)
        subject = Subject()
        for project_id in ["P1", "P2", "P3"]:
            recorder.on_event(subject, make_event(project_id=project_id))

        assert [e.project_id for e in recorder.events()] == ["P2", "P3"]
        assert EventRecorder().events() == []

    def test_logging_listener_logs_event_kind(self, caplog):
        listener = LoggingListener()
        with caplog.at_level(logging.INFO):
            listener.on_event(Subject(), make_event(ChangeEventKind.CLOSED))
        assert "closed" in caplog.text
