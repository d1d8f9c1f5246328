"""
Environmental Tracking Capability - impact monitoring for field projects.

Tracks environmental metrics recorded against a project, flags metrics
over their limits, and derives sustainability reports and an ecological
score from the samples.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from src.kernel.events.event_types import utcnow
from src.kernel.models.project import ProjectCapability
from src.logging_config import get_logger
from src.plugins.capabilities.base import ProjectDecorator

logger = get_logger(__name__)


class MetricKind(str, Enum):
    """Metric kinds with known limits."""
    CARBON_FOOTPRINT = "carbon_footprint"  # kg CO2
    WATER_CONSUMED = "water_consumed"      # litres
    WASTE_GENERATED = "waste_generated"    # kg


METRIC_LIMITS: Dict[str, float] = {
    MetricKind.CARBON_FOOTPRINT.value: 1000.0,
    MetricKind.WATER_CONSUMED.value: 10000.0,
    MetricKind.WASTE_GENERATED.value: 500.0,
}


class ImpactSeverity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"  # more than twice the limit


class ReportPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ALL = "all"


class EnvironmentalMetric(BaseModel):
    """One metric sample."""

    kind: str
    value: float
    unit: str
    recorded_at: datetime
    project_id: str


class EnvironmentalImpact(BaseModel):
    """A metric sample that exceeded its limit."""

    metric: str
    value: float
    limit: float
    recorded_at: datetime
    severity: ImpactSeverity


class SustainabilityReport(BaseModel):
    """Totals, recent impacts and recommendations for one period."""

    period: ReportPeriod
    generated_at: datetime
    totals: Dict[str, float] = Field(default_factory=dict)
    impacts: List[EnvironmentalImpact] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class EnvironmentalTrackingDecorator(ProjectDecorator):
    """Adds environmental metrics, impact alerts and sustainability reports."""

    RECENT_WINDOW = timedelta(days=30)
    QUARTER_WINDOW = timedelta(days=90)
    SUSTAINABLE_SCORE = 70

    def __init__(self, inner: ProjectCapability, clock: Callable[[], datetime] = utcnow):
        super().__init__(inner)
        self._clock = clock
        self._metrics: List[EnvironmentalMetric] = []
        self._impacts: List[EnvironmentalImpact] = []
        self._reports: List[SustainabilityReport] = []

    @property
    def namespace(self) -> str:
        return "environmental"

    def record_metric(
        self,
        kind: str,
        value: float,
        unit: str,
        recorded_at: Optional[datetime] = None,
    ) -> EnvironmentalMetric:
        """Record a metric sample and flag it when it exceeds its limit."""
        kind = kind.value if isinstance(kind, MetricKind) else kind
        metric = EnvironmentalMetric(
            kind=kind,
            value=value,
            unit=unit,
            recorded_at=recorded_at or self._clock(),
            project_id=self.id,
        )
        self._metrics.append(metric)
        self.check_limit(metric)
        return metric

    def check_limit(self, metric: EnvironmentalMetric) -> Optional[EnvironmentalImpact]:
        limit = METRIC_LIMITS.get(metric.kind)
        if limit is None or metric.value <= limit:
            return None
        impact = EnvironmentalImpact(
            metric=metric.kind,
            value=metric.value,
            limit=limit,
            recorded_at=metric.recorded_at,
            severity=ImpactSeverity.HIGH if metric.value > limit * 2 else ImpactSeverity.MEDIUM,
        )
        self._impacts.append(impact)
        logger.warning(
            "Environmental limit exceeded: %s %.1f > %.1f",
            metric.kind,
            metric.value,
            limit,
            extra={"project_id": self.id},
        )
        return impact

    def _in_period(self, moment: datetime, period: ReportPeriod, now: datetime) -> bool:
        if period == ReportPeriod.MONTHLY:
            return (moment.year, moment.month) == (now.year, now.month)
        if period == ReportPeriod.QUARTERLY:
            return moment >= now - self.QUARTER_WINDOW
        if period == ReportPeriod.YEARLY:
            return moment.year == now.year
        return True

    def _totals(self, metrics: List[EnvironmentalMetric]) -> Dict[str, float]:
        totals = {kind.value: 0.0 for kind in MetricKind}
        for metric in metrics:
            if metric.kind in totals:
                totals[metric.kind] += metric.value
        return totals

    def sustainability_report(self, period: ReportPeriod = ReportPeriod.ALL) -> SustainabilityReport:
        now = self._clock()
        period = ReportPeriod(period)
        metrics = [m for m in self._metrics if self._in_period(m.recorded_at, period, now)]
        totals = self._totals(metrics)
        report = SustainabilityReport(
            period=period,
            generated_at=now,
            totals=totals,
            impacts=[i for i in self._impacts if i.recorded_at >= now - self.RECENT_WINDOW],
            recommendations=self.recommendations(
                totals[MetricKind.CARBON_FOOTPRINT.value],
                totals[MetricKind.WATER_CONSUMED.value],
                totals[MetricKind.WASTE_GENERATED.value],
            ),
        )
        self._reports.append(report)
        return report

    @staticmethod
    def recommendations(carbon: float, water: float, waste: float) -> List[str]:
        recommendations = []
        if carbon > 500:
            recommendations.append("Consider renewable energy sources to reduce the carbon footprint")
        if water > 5000:
            recommendations.append("Install a rainwater harvesting system")
        if waste > 250:
            recommendations.append("Set up a recycling and composting programme")
        if carbon < 100 and water < 1000 and waste < 50:
            recommendations.append("Excellent environmental performance")
        return recommendations

    def ecological_score(self) -> int:
        """0-100 score over the last 30 days; 0 when nothing was recorded."""
        since = self._clock() - self.RECENT_WINDOW
        recent = [m for m in self._metrics if m.recorded_at >= since]
        if not recent:
            return 0

        score = 100
        for impact in self._impacts:
            if impact.recorded_at >= since:
                score -= 20 if impact.severity == ImpactSeverity.HIGH else 10

        carbon = self._totals(recent)[MetricKind.CARBON_FOOTPRINT.value]
        if carbon < 100:
            score += 10
        if carbon < 50:
            score += 5

        return max(0, min(100, score))

    def is_sustainable(self) -> bool:
        return self.ecological_score() >= self.SUSTAINABLE_SCORE

    @property
    def metrics(self) -> Tuple[EnvironmentalMetric, ...]:
        return tuple(self._metrics)

    @property
    def impacts(self) -> Tuple[EnvironmentalImpact, ...]:
        return tuple(self._impacts)

    @property
    def reports(self) -> Tuple[SustainabilityReport, ...]:
        return tuple(self._reports)

    def extension_data(self) -> Dict[str, Any]:
        return {
            "ecological_score": self.ecological_score(),
            "metrics": len(self._metrics),
            "impacts": len(self._impacts),
            "reports": len(self._reports),
            "last_report_at": self._reports[-1].generated_at.isoformat() if self._reports else None,
        }
