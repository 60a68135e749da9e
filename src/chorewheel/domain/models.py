"""Domain models for the chore scheduling system.

This module contains the core data structures shared by the validator, the
schedulers and the output generators: event definitions (teammates, jobs,
pools, date range) and the resolved day-by-day plan.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Optional

from chorewheel.errors import PayloadError

# Teammates are opaque identifiers, unique within an event.
Teammate = str

# Solver names a stored plan may record.
ROUND_ROBIN_SOLVER = "round_robin"
CPSAT_SOLVER = "cpsat"
PLAN_SOLVERS = (ROUND_ROBIN_SOLVER, CPSAT_SOLVER)


class Alert(Enum):
    """Calendar reminder lead time attached to every generated entry."""

    NONE = "none"
    AT_TIME = "at_time"
    FIVE_MINUTES = "5_min"
    TEN_MINUTES = "10_min"
    FIFTEEN_MINUTES = "15_min"
    THIRTY_MINUTES = "30_min"
    ONE_HOUR = "1_hour"
    TWO_HOURS = "2_hours"
    ONE_DAY = "1_day"
    TWO_DAYS = "2_days"

    @property
    def minutes_before(self) -> Optional[int]:
        """Reminder offset in minutes, or None when no reminder is wanted."""
        return _ALERT_MINUTES[self]

    @property
    def label(self) -> str:
        """Human-readable label."""
        return _ALERT_LABELS[self]


_ALERT_MINUTES = {
    Alert.NONE: None,
    Alert.AT_TIME: 0,
    Alert.FIVE_MINUTES: 5,
    Alert.TEN_MINUTES: 10,
    Alert.FIFTEEN_MINUTES: 15,
    Alert.THIRTY_MINUTES: 30,
    Alert.ONE_HOUR: 60,
    Alert.TWO_HOURS: 120,
    Alert.ONE_DAY: 1440,
    Alert.TWO_DAYS: 2880,
}

_ALERT_LABELS = {
    Alert.NONE: "None",
    Alert.AT_TIME: "At time of event",
    Alert.FIVE_MINUTES: "5 minutes before",
    Alert.TEN_MINUTES: "10 minutes before",
    Alert.FIFTEEN_MINUTES: "15 minutes before",
    Alert.THIRTY_MINUTES: "30 minutes before",
    Alert.ONE_HOUR: "1 hour before",
    Alert.TWO_HOURS: "2 hours before",
    Alert.ONE_DAY: "1 day before",
    Alert.TWO_DAYS: "2 days before",
}


def _parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise PayloadError(f"{field_name} must be an ISO date string, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise PayloadError(f"{field_name} is not a valid ISO date: {value!r}") from exc


def _require(payload: dict, key: str, context: str) -> Any:
    if key not in payload:
        raise PayloadError(f"{context} is missing required field '{key}'")
    return payload[key]


def _optional_str(payload: dict, key: str, context: str) -> str:
    value = payload.get(key, "")
    if not isinstance(value, str):
        raise PayloadError(f"{context} {key} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class Job:
    """A recurring chore.

    Attributes:
        name: Job name, unique within an event.
        daily_capacity: Number of assignees needed each day.
        pool: Teammates eligible for this job, in input order.
    """

    name: str
    daily_capacity: int
    pool: tuple[Teammate, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "pool", tuple(self.pool))

    @property
    def pool_size(self) -> int:
        """Number of eligible teammates."""
        return len(self.pool)

    @property
    def slots_per_day(self) -> int:
        """Assignees actually scheduled per day: capacity capped by pool size."""
        return min(self.daily_capacity, len(self.pool))

    @classmethod
    def from_dict(cls, payload: dict) -> "Job":
        """Build a job from its JSON payload."""
        if not isinstance(payload, dict):
            raise PayloadError(f"job entry must be an object, got {payload!r}")
        name = _require(payload, "name", "job")
        pool = payload.get("pool", [])
        if isinstance(pool, str) or not isinstance(pool, (list, tuple)):
            raise PayloadError(f"job '{name}' pool must be a list of teammates")
        return cls(
            name=name,
            daily_capacity=_require(payload, "daily_capacity", f"job '{name}'"),
            pool=tuple(pool),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "daily_capacity": self.daily_capacity,
            "pool": list(self.pool),
        }


@dataclass(frozen=True)
class EventDefinition:
    """Caller-owned, read-only description of a chore event.

    Attributes:
        name: Event name.
        teammates: Everyone taking part in the event.
        jobs: Jobs in display order; names must be unique.
        start_date: First scheduled date.
        end_date: Last scheduled date (inclusive).
        alert: Reminder lead time for calendar entries.
        custom_description: Free text appended to the generated description.
    """

    name: str
    teammates: tuple[Teammate, ...]
    jobs: tuple[Job, ...]
    start_date: date
    end_date: date
    alert: Alert = Alert.NONE
    custom_description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "teammates", tuple(self.teammates))
        object.__setattr__(self, "jobs", tuple(self.jobs))

    @property
    def schedule_dates(self) -> list[date]:
        """List of all dates in the event range, ascending."""
        dates = []
        current = self.start_date
        while current <= self.end_date:
            dates.append(current)
            current += timedelta(days=1)
        return dates

    @property
    def num_days(self) -> int:
        """Number of days in the event range."""
        return (self.end_date - self.start_date).days + 1

    @property
    def job_names(self) -> list[str]:
        return [job.name for job in self.jobs]

    def get_job(self, name: str) -> Optional[Job]:
        """Look up a job by exact name."""
        for job in self.jobs:
            if job.name == name:
                return job
        return None

    def with_teammate_in_all_jobs(self, teammate: Teammate) -> "EventDefinition":
        """Return a copy with the teammate added to every job's pool.

        The teammate is also added to the event if missing.
        """
        teammates = self.teammates
        if teammate not in teammates:
            teammates = teammates + (teammate,)
        jobs = tuple(
            job if teammate in job.pool
            else Job(job.name, job.daily_capacity, job.pool + (teammate,))
            for job in self.jobs
        )
        return EventDefinition(
            name=self.name,
            teammates=teammates,
            jobs=jobs,
            start_date=self.start_date,
            end_date=self.end_date,
            alert=self.alert,
            custom_description=self.custom_description,
        )

    @classmethod
    def from_dict(cls, payload: dict) -> "EventDefinition":
        """Build an event from the JSON payload handed over by the form layer.

        Only structure is checked here; semantic rules belong to
        EventValidator.

        Raises:
            PayloadError: If required fields are missing or malformed.
        """
        if not isinstance(payload, dict):
            raise PayloadError("event payload must be an object")
        teammates = _require(payload, "teammates", "event")
        jobs = _require(payload, "jobs", "event")
        if isinstance(teammates, str) or not isinstance(teammates, (list, tuple)):
            raise PayloadError("event teammates must be a list")
        if not isinstance(jobs, (list, tuple)):
            raise PayloadError("event jobs must be a list")

        alert_value = payload.get("alert", Alert.NONE.value)
        try:
            alert = Alert(alert_value)
        except ValueError as exc:
            raise PayloadError(f"unknown alert option: {alert_value!r}") from exc

        return cls(
            name=_optional_str(payload, "name", "event"),
            teammates=tuple(teammates),
            jobs=tuple(Job.from_dict(j) for j in jobs),
            start_date=_parse_date(_require(payload, "start_date", "event"), "start_date"),
            end_date=_parse_date(_require(payload, "end_date", "event"), "end_date"),
            alert=alert,
            custom_description=_optional_str(payload, "custom_description", "event"),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "teammates": list(self.teammates),
            "jobs": [job.to_dict() for job in self.jobs],
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "alert": self.alert.value,
            "custom_description": self.custom_description,
        }


@dataclass(frozen=True)
class DayAssignment:
    """Resolved assignees for every job on a single date.

    Attributes:
        date: The calendar date.
        job_assignments: Dict mapping job name to the set of assigned teammates.
    """

    date: date
    job_assignments: dict[str, frozenset[Teammate]] = field(
        default_factory=dict, hash=False
    )

    def get_assignees(self, job_name: str) -> frozenset[Teammate]:
        """Teammates assigned to a job on this date (empty if unknown job)."""
        return self.job_assignments.get(job_name, frozenset())

    def jobs_for(self, teammate: Teammate) -> list[str]:
        """Names of jobs the teammate holds on this date."""
        return [
            job_name
            for job_name, assignees in self.job_assignments.items()
            if teammate in assignees
        ]

    @classmethod
    def from_dict(cls, payload: dict) -> "DayAssignment":
        if not isinstance(payload, dict):
            raise PayloadError(f"day entry must be an object, got {payload!r}")
        jobs = _require(payload, "jobs", "day")
        if not isinstance(jobs, dict):
            raise PayloadError("day jobs must be an object of job name to teammates")
        for job_name, assignees in jobs.items():
            if not isinstance(assignees, list) or not all(
                isinstance(t, str) for t in assignees
            ):
                raise PayloadError(
                    f"assignees of job '{job_name}' must be a list of teammate names"
                )
        return cls(
            date=_parse_date(_require(payload, "date", "day"), "date"),
            job_assignments={
                job_name: frozenset(assignees) for job_name, assignees in jobs.items()
            },
        )

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "jobs": {
                job_name: sorted(assignees)
                for job_name, assignees in self.job_assignments.items()
            },
        }


@dataclass(frozen=True)
class SchedulePlan:
    """Complete day-by-day plan for an event.

    Attributes:
        event_name: Name of the event the plan was generated for.
        days: One DayAssignment per date in the range, ascending.
        seed: Seed used for tie-breaking.
        solver: Name of the solver that produced the plan, one of
            PLAN_SOLVERS.
    """

    event_name: str
    days: tuple[DayAssignment, ...]
    seed: int = 0
    solver: str = ROUND_ROBIN_SOLVER

    def __post_init__(self):
        object.__setattr__(self, "days", tuple(self.days))

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self):
        return iter(self.days)

    @property
    def dates(self) -> list[date]:
        return [day.date for day in self.days]

    @property
    def start_date(self) -> Optional[date]:
        return self.days[0].date if self.days else None

    @property
    def end_date(self) -> Optional[date]:
        return self.days[-1].date if self.days else None

    def get_day(self, d: date) -> Optional[DayAssignment]:
        """Get the assignment for a specific date."""
        for day in self.days:
            if day.date == d:
                return day
        return None

    def get_counts(
        self,
        job_name: str,
        pool: Optional[tuple[Teammate, ...]] = None,
    ) -> dict[Teammate, int]:
        """Count assignments per teammate for one job.

        Args:
            job_name: Job to count.
            pool: If given, every pool member appears in the result,
                including those never assigned.
        """
        counts: dict[Teammate, int] = {t: 0 for t in (pool or ())}
        for day in self.days:
            for teammate in day.get_assignees(job_name):
                counts[teammate] = counts.get(teammate, 0) + 1
        return counts

    def assignments_for(self, teammate: Teammate) -> list[tuple[date, str]]:
        """All (date, job name) pairs assigned to a teammate, in date order."""
        result = []
        for day in self.days:
            for job_name in day.jobs_for(teammate):
                result.append((day.date, job_name))
        return result

    def fairness_metrics(self, event: EventDefinition) -> "FairnessMetrics":
        return FairnessMetrics.calculate(event, self)

    @classmethod
    def from_dict(cls, payload: dict) -> "SchedulePlan":
        """Rebuild a stored plan, e.g. to verify it against a regeneration."""
        if not isinstance(payload, dict):
            raise PayloadError("plan payload must be an object")
        days = _require(payload, "days", "plan")
        if not isinstance(days, list):
            raise PayloadError("plan days must be a list")
        seed = payload.get("seed", 0)
        if not isinstance(seed, int) or isinstance(seed, bool):
            raise PayloadError(f"plan seed must be an integer, got {seed!r}")
        solver = payload.get("solver", ROUND_ROBIN_SOLVER)
        if solver not in PLAN_SOLVERS:
            raise PayloadError(
                f"plan solver must be one of {', '.join(PLAN_SOLVERS)}, got {solver!r}"
            )
        return cls(
            event_name=_optional_str(payload, "event", "plan"),
            days=tuple(DayAssignment.from_dict(d) for d in days),
            seed=seed,
            solver=solver,
        )

    def to_dict(self) -> dict:
        return {
            "event": self.event_name,
            "seed": self.seed,
            "solver": self.solver,
            "days": [day.to_dict() for day in self.days],
        }


@dataclass
class FairnessMetrics:
    """Metrics for evaluating how evenly a plan spreads the work.

    Attributes:
        counts_per_job: Job name -> teammate -> number of days assigned.
        spread_per_job: Job name -> max count minus min count over its pool.
        totals_per_teammate: Teammate -> assignments summed over all jobs.
        cross_job_spread: Max total minus min total over teammates who sit
            in at least one pool.
    """

    counts_per_job: dict[str, dict[Teammate, int]] = field(default_factory=dict)
    spread_per_job: dict[str, int] = field(default_factory=dict)
    totals_per_teammate: dict[Teammate, int] = field(default_factory=dict)
    cross_job_spread: int = 0

    @property
    def max_job_spread(self) -> int:
        """Largest per-job spread; 0 for an empty plan."""
        return max(self.spread_per_job.values(), default=0)

    @property
    def is_balanced(self) -> bool:
        """True when every job's counts differ by at most one."""
        return self.max_job_spread <= 1

    @classmethod
    def calculate(cls, event: EventDefinition, plan: SchedulePlan) -> "FairnessMetrics":
        """Calculate fairness metrics for a plan of the given event."""
        counts_per_job = {}
        spread_per_job = {}
        totals: dict[Teammate, int] = {}

        for job in event.jobs:
            counts = plan.get_counts(job.name, job.pool)
            counts_per_job[job.name] = counts
            spread_per_job[job.name] = (
                max(counts.values()) - min(counts.values()) if counts else 0
            )
            for teammate, count in counts.items():
                totals[teammate] = totals.get(teammate, 0) + count

        cross_spread = max(totals.values()) - min(totals.values()) if totals else 0

        return cls(
            counts_per_job=counts_per_job,
            spread_per_job=spread_per_job,
            totals_per_teammate=totals,
            cross_job_spread=cross_spread,
        )
