"""Domain models for chore events and their schedules."""

from chorewheel.domain.models import (
    Alert,
    DayAssignment,
    EventDefinition,
    FairnessMetrics,
    Job,
    SchedulePlan,
    Teammate,
)

__all__ = [
    "Alert",
    "DayAssignment",
    "EventDefinition",
    "FairnessMetrics",
    "Job",
    "SchedulePlan",
    "Teammate",
]
