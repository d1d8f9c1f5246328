"""Unit tests for the access gateway: caching, authorization, validation and auditing."""

import pytest

from src.kernel.access import AccessGateway, ProjectStore
from src.kernel.errors import (
    AlreadyAssigned,
    DuplicateProject,
    InvalidAmount,
    InvalidScore,
    NotEnrolled,
    NotFound,
    SupervisorBusy,
    Unauthorized,
)
from src.kernel.models.audit import AuditAction
from src.kernel.models.project import ProjectStatus
from src.kernel.permissions.policy import Caller, CallerRole


class TestReadPath:
    """Tests for get() and the TTL cache."""

    def test_store_is_built_lazily(self, gateway):
        assert gateway.store_initialized is False
        gateway.get("P1", "EST-1")
        assert gateway.store_initialized is True

    def test_store_factory_called_once(self, bound_project):
        calls = []

        def factory():
            calls.append(1)
            return ProjectStore([bound_project])

        gateway = AccessGateway(factory)
        gateway.get("P1", "EST-1")
        gateway.get("P1", "EST-2")
        gateway.list_projects("EST-1")
        assert len(calls) == 1

    def test_repeated_reads_return_same_object(self, gateway, store):
        first = gateway.get("P1", "EST-1")
        second = gateway.get("P1", "EST-2")

        assert first is second
        assert store.fetch_count == 1
        assert gateway.cache_hits == 1
        assert gateway.cache_misses == 1

    def test_expired_entry_is_refetched(self, gateway, store, clock):
        gateway.get("P1", "EST-1")
        clock.advance(301)
        gateway.get("P1", "EST-1")
        assert store.fetch_count == 2

    def test_entry_within_ttl_is_served_from_cache(self, gateway, store, clock):
        gateway.get("P1", "EST-1")
        clock.advance(299)
        gateway.get("P1", "EST-1")
        assert store.fetch_count == 1

    def test_unknown_project_raises_not_found(self, gateway):
        with pytest.raises(NotFound):
            gateway.get("NOPE", "ADM-1")
        assert not gateway.is_cached("NOPE")

    def test_reads_are_audited(self, gateway):
        gateway.get("P1", "EST-1")
        entries = gateway.audit.entries(action=AuditAction.READ_PROJECT)
        assert len(entries) == 1
        assert entries[0].caller_id == "EST-1"
        assert entries[0].project_id == "P1"

    def test_unknown_callers_may_read(self, gateway):
        assert gateway.get("P1", "anonymous").id == "P1"


class TestWritePath:
    """Tests for the write sequence: audit, fetch, authorize, validate, delegate, invalidate."""

    def test_get_get_add_get_fetches_twice(self, supervised_gateway, store):
        # supervisor assignment already fetched once and invalidated
        baseline = store.fetch_count

        supervised_gateway.get("P1", "EST-1")
        supervised_gateway.get("P1", "EST-1")
        supervised_gateway.add_evaluation("P1", "PROF-7", student_id="EST-1", score=88)
        supervised_gateway.get("P1", "EST-1")

        assert store.fetch_count - baseline == 2

    def test_write_invalidates_cache(self, gateway):
        gateway.get("P1", "ADM-1")
        assert gateway.is_cached("P1")
        gateway.add_student("P1", "ADM-1", "EST-9")
        assert not gateway.is_cached("P1")

    def test_admin_may_evaluate(self, gateway):
        evaluation = gateway.add_evaluation("P1", "ADM-1", student_id="EST-2", score=75)
        assert evaluation.score == 75

    def test_assigned_supervisor_may_evaluate(self, supervised_gateway):
        supervised_gateway.add_evaluation("P1", "PROF-7", student_id="EST-1", score=91)
        assert len(supervised_gateway.get("P1", "PROF-7").evaluations) == 1

    def test_other_supervisor_is_denied(self, supervised_gateway):
        with pytest.raises(Unauthorized):
            supervised_gateway.add_evaluation("P1", "PROF-8", student_id="EST-1", score=91)
        assert supervised_gateway.get("P1", "ADM-1").evaluations == ()

    def test_student_is_denied_and_denial_audited(self, gateway):
        with pytest.raises(Unauthorized) as exc_info:
            gateway.add_evaluation("P1", "EST-1", student_id="EST-1", score=100)

        assert exc_info.value.operation == "add_evaluation"
        denials = gateway.audit.entries(action=AuditAction.ACCESS_DENIED)
        assert len(denials) == 1
        assert denials[0].detail["role"] == "student"

    def test_intent_is_audited_before_denial(self, gateway):
        with pytest.raises(Unauthorized):
            gateway.update_budget("P1", "COORD-1", 10)
        actions = [e.action for e in gateway.audit.entries()]
        assert actions == [
            AuditAction.UPDATE_BUDGET,
            AuditAction.READ_PROJECT,
            AuditAction.ACCESS_DENIED,
        ]

    def test_denial_is_independent_of_cache_state(self, gateway):
        with pytest.raises(Unauthorized):
            gateway.add_student("P1", "EST-1", "EST-9")
        gateway.get("P1", "ADM-1")
        with pytest.raises(Unauthorized):
            gateway.add_student("P1", "EST-1", "EST-9")

    def test_role_claim_overrides_prefix(self, gateway):
        caller = Caller(id="EST-1", role_claim=CallerRole.ADMIN)
        assert gateway.update_budget("P1", caller, 1) == 50_000_000

    @pytest.mark.parametrize("score", [-1, 100.5, 250])
    def test_out_of_range_score_rejected(self, gateway, score):
        with pytest.raises(InvalidScore):
            gateway.add_evaluation("P1", "ADM-1", student_id="EST-1", score=score)
        assert gateway.get("P1", "ADM-1").evaluations == ()

    def test_unenrolled_student_rejected(self, gateway):
        with pytest.raises(NotEnrolled):
            gateway.add_evaluation("P1", "ADM-1", student_id="EST-404", score=90)

    def test_negative_budget_rejected(self, gateway):
        with pytest.raises(InvalidAmount):
            gateway.update_budget("P1", "ADM-1", -5)

    def test_failed_delegation_still_invalidates(self, gateway):
        gateway.assign_supervisor("P1", "COORD-1", "PROF-1")
        gateway.get("P1", "ADM-1")
        with pytest.raises(AlreadyAssigned):
            gateway.assign_supervisor("P1", "COORD-1", "PROF-2")
        assert not gateway.is_cached("P1")

    def test_caller_is_recorded_as_evaluator(self, supervised_gateway):
        evaluation = supervised_gateway.add_evaluation("P1", "PROF-7", student_id="EST-1", score=88)
        assert evaluation.evaluator == "PROF-7"

    def test_supervisor_leads_one_project(self, gateway, project_factory):
        gateway.register_project(project_factory("P2"), "ADM-1")
        gateway.assign_supervisor("P1", "ADM-1", "PROF-1")

        with pytest.raises(SupervisorBusy) as exc_info:
            gateway.assign_supervisor("P2", "ADM-1", "PROF-1")

        assert exc_info.value.project_id == "P1"
        assert gateway.get("P2", "ADM-1").supervisor_id is None

    def test_other_supervisor_may_take_second_project(self, gateway, project_factory):
        gateway.register_project(project_factory("P2"), "ADM-1")
        gateway.assign_supervisor("P1", "ADM-1", "PROF-1")
        gateway.assign_supervisor("P2", "ADM-1", "PROF-2")
        assert gateway.get("P2", "ADM-1").supervisor_id == "PROF-2"

    def test_closure_through_gateway(self, gateway):
        for student_id, score in [("EST-1", 85), ("EST-2", 45), ("EST-3", 90)]:
            gateway.add_evaluation("P1", "ADM-1", student_id=student_id, score=score)
        assert gateway.get("P1", "ADM-1").status == ProjectStatus.ACTIVE

        for student_id, score in [("EST-4", 50), ("EST-5", 55)]:
            gateway.add_evaluation("P1", "ADM-1", student_id=student_id, score=score)

        project = gateway.get("P1", "ADM-1")
        assert project.status == ProjectStatus.CLOSED
        assert "60.0%" in project.closure_reason


class TestAdministration:
    def test_register_project_requires_admin(self, gateway, project_factory):
        with pytest.raises(Unauthorized):
            gateway.register_project(project_factory("P2"), "COORD-1")
        gateway.register_project(project_factory("P2"), "ADM-1")
        assert gateway.get("P2", "EST-1").id == "P2"

    def test_register_duplicate_raises(self, gateway, project_factory):
        with pytest.raises(DuplicateProject):
            gateway.register_project(project_factory("P1"), "ADM-1")

    def test_audit_log_is_admin_only(self, gateway):
        with pytest.raises(Unauthorized):
            gateway.audit_log("COORD-1")
        entries = gateway.audit_log("ADM-1")
        assert entries[-1].action == AuditAction.READ_AUDIT

    def test_clear_cache_and_stats(self, gateway):
        gateway.get("P1", "EST-1")
        gateway.get("P1", "EST-1")
        gateway.clear_cache()
        stats = gateway.stats()

        assert stats.cached_projects == 0
        assert stats.cache_hits == 1
        assert stats.cache_misses == 1
        assert stats.store_fetches == 1
        assert stats.audit_entries == 2
        assert stats.store_initialized is True
