"""
Capability Decorators - optional, stackable project augmentations.

Each capability:
- Wraps one project (or another capability) and forwards every operation
- Publishes its data under its own snapshot namespace
- Keeps private state the wrapped project never sees
"""

from typing import Dict, Type

from src.plugins.capabilities.base import ProjectDecorator
from src.plugins.capabilities.environmental_tracking import (
    EnvironmentalTrackingDecorator,
    MetricKind,
    ReportPeriod,
)
from src.plugins.capabilities.quality_certification import (
    QualityCertificationDecorator,
    QualityStandard,
)

CAPABILITIES: Dict[str, Type[ProjectDecorator]] = {
    "quality": QualityCertificationDecorator,
    "environmental": EnvironmentalTrackingDecorator,
}

__all__ = [
    "CAPABILITIES",
    "EnvironmentalTrackingDecorator",
    "MetricKind",
    "ProjectDecorator",
    "QualityCertificationDecorator",
    "QualityStandard",
    "ReportPeriod",
]
