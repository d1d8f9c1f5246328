"""Unit tests for the capability decorators: transparency, stacking, quality and environmental."""

from datetime import timedelta

import pytest

from src.kernel.errors import CertificationRefused
from src.kernel.events import ChangeEventKind
from src.kernel.models.project import ProjectStatus
from src.plugins.capabilities import (
    EnvironmentalTrackingDecorator,
    MetricKind,
    QualityCertificationDecorator,
    QualityStandard,
    ReportPeriod,
)
from src.plugins.capabilities.environmental_tracking import ImpactSeverity


@pytest.fixture
def quality(bound_project, wall_clock):
    return QualityCertificationDecorator(bound_project, clock=wall_clock)


@pytest.fixture
def environmental(bound_project, wall_clock):
    return EnvironmentalTrackingDecorator(bound_project, clock=wall_clock)


class TestTransparency:
    """Decorated projects behave like the project they wrap."""

    def test_decorator_requires_inner(self):
        with pytest.raises(ValueError):
            QualityCertificationDecorator(None)

    def test_forwards_identity_and_state(self, quality, bound_project):
        assert quality.id == bound_project.id
        assert quality.students == bound_project.students
        assert quality.status == ProjectStatus.ACTIVE

    def test_writes_reach_inner_project(self, quality, bound_project, recorder):
        quality.add_evaluation("EST-1", 10)
        quality.add_evaluation("EST-2", 20)

        assert len(bound_project.evaluations) == 2
        assert bound_project.status == ProjectStatus.CLOSED
        assert quality.status == ProjectStatus.CLOSED
        assert len(recorder.events(kind=ChangeEventKind.CLOSED)) == 1

    def test_snapshot_keeps_base_fields(self, quality, bound_project):
        bound_project.add_evaluation("EST-1", 80)
        decorated = quality.snapshot()

        assert decorated.base_fields() == bound_project.snapshot().base_fields()
        assert "quality" in decorated.extensions

    def test_unknown_attributes_forward(self, quality, bound_project):
        assert quality.faculty == bound_project.faculty
        assert quality.compute_average() == 0.0

    def test_stacking_in_either_order(self, bound_project, wall_clock):
        stacked = EnvironmentalTrackingDecorator(
            QualityCertificationDecorator(bound_project, clock=wall_clock),
            clock=wall_clock,
        )
        view = stacked.snapshot()

        assert set(view.extensions) == {"quality", "environmental"}
        assert stacked.layers() == ["environmental", "quality"]
        assert stacked.unwrap() is bound_project
        # inner capability operations stay reachable through the outer layer
        assert stacked.check_standards().total_standards == 4


class TestQualityCertification:
    def _meet_three_standards(self, project):
        project.assign_supervisor("PROF-1")
        for student_id, score in zip(project.students, [90, 85, 80]):
            project.add_evaluation(student_id, score)

    def test_standards_on_fresh_project(self, quality):
        check = quality.check_standards()
        # five students and no failures, but no supervisor and a zero average
        assert set(check.met) == {QualityStandard.MIN_STUDENTS, QualityStandard.LOW_FAILURE_RATE}
        assert check.certifiable is False

    def test_grant_refused_below_three_standards(self, quality):
        with pytest.raises(CertificationRefused):
            quality.grant_certification("ISO-9001", "Quality Office")
        assert quality.is_certified() is False

    def test_grant_certification(self, quality, bound_project, wall_clock):
        self._meet_three_standards(bound_project)
        certification = quality.grant_certification("ISO-9001", "Quality Office")

        assert certification.valid_until - certification.granted_at == timedelta(days=365)
        assert certification.granted_at == wall_clock.now
        assert len(certification.standards_met) == 4
        assert quality.is_certified() is True
        assert quality.snapshot().extensions["quality"]["certifications"] == 1

    def test_record_audit(self, quality):
        audit = quality.record_audit("Dr. Ruiz", "compliant", "All records present")
        assert audit.auditor == "Dr. Ruiz"
        assert quality.audits == (audit,)

    def test_failure_rate_uses_unrounded_percentage(self, project):
        # 300 of 1001 failing is 29.97%, which the snapshot rounds to 30.0
        for _ in range(701):
            project.add_evaluation("EST-1", 90)
        for _ in range(300):
            project.add_evaluation("EST-2", 10)
        quality = QualityCertificationDecorator(project)

        assert project.snapshot().percent_below_threshold == 30.0
        assert quality.failure_percent() < 30
        assert QualityStandard.LOW_FAILURE_RATE in quality.check_standards().met

    def test_state_is_invisible_to_inner(self, quality, bound_project):
        quality.record_audit("Dr. Ruiz", "compliant")
        assert not hasattr(bound_project, "audits")
        assert bound_project.snapshot().extensions == {}


class TestEnvironmentalTracking:
    def test_metric_over_limit_flags_medium(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 1500, "kg")
        impact = environmental.impacts[0]
        assert impact.severity == ImpactSeverity.MEDIUM
        assert impact.limit == 1000

    def test_metric_over_twice_limit_flags_high(self, environmental):
        environmental.record_metric("waste_generated", 1200, "kg")
        assert environmental.impacts[0].severity == ImpactSeverity.HIGH

    def test_metric_within_limit_is_not_flagged(self, environmental):
        environmental.record_metric(MetricKind.WATER_CONSUMED, 10000, "l")
        assert environmental.impacts == ()

    def test_score_is_zero_without_recent_metrics(self, environmental, wall_clock):
        assert environmental.ecological_score() == 0
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 10, "kg")
        wall_clock.advance(days=31)
        assert environmental.ecological_score() == 0

    def test_low_carbon_scores_full_marks(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 40, "kg")
        assert environmental.ecological_score() == 100
        assert environmental.is_sustainable() is True

    def test_impacts_reduce_score(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 2500, "kg")  # high: -20
        environmental.record_metric(MetricKind.WATER_CONSUMED, 12000, "l")  # medium: -10
        environmental.record_metric(MetricKind.WASTE_GENERATED, 1100, "kg")  # high: -20
        assert environmental.ecological_score() == 50
        assert environmental.is_sustainable() is False

    def test_report_totals_and_recommendations(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 600, "kg")
        environmental.record_metric(MetricKind.WATER_CONSUMED, 6000, "l")
        report = environmental.sustainability_report(ReportPeriod.ALL)

        assert report.totals["carbon_footprint"] == 600
        assert report.totals["water_consumed"] == 6000
        assert len(report.recommendations) == 2
        assert environmental.reports == (report,)

    def test_excellent_recommendation(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 20, "kg")
        report = environmental.sustainability_report("monthly")
        assert report.recommendations == ["Excellent environmental performance"]

    def test_quarterly_report_excludes_older_metrics(self, environmental, wall_clock):
        environmental.record_metric(
            MetricKind.CARBON_FOOTPRINT, 700, "kg", recorded_at=wall_clock.now - timedelta(days=120)
        )
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 50, "kg")
        report = environmental.sustainability_report(ReportPeriod.QUARTERLY)
        assert report.totals["carbon_footprint"] == 50

    def test_snapshot_extension(self, environmental):
        environmental.record_metric(MetricKind.CARBON_FOOTPRINT, 40, "kg")
        data = environmental.snapshot().extensions["environmental"]
        assert data["ecological_score"] == 100
        assert data["metrics"] == 1
        assert data["last_report_at"] is None
