"""Validation of event definitions and generated plans.

EventValidator is the gate in front of the schedulers: it collects every
problem with an event definition in one pass, and on success hands back a
normalized copy. PlanValidator checks a plan against the plan invariants and
is used both as the schedulers' post-check and to verify stored plans.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chorewheel.domain.models import (
    EventDefinition,
    Job,
    SchedulePlan,
    Teammate,
)
from chorewheel.errors import EventValidationError


class ValidationErrorType(Enum):
    """Types of validation errors."""

    # Event definition rules
    EMPTY_TEAMMATES = "empty_teammates"
    EMPTY_JOBS = "empty_jobs"
    DUPLICATE_JOB_NAME = "duplicate_job_name"
    NON_POSITIVE_CAPACITY = "non_positive_capacity"
    EMPTY_POOL = "empty_pool"
    UNKNOWN_POOL_MEMBER = "unknown_pool_member"
    INVERTED_DATE_RANGE = "inverted_date_range"
    INVALID_IDENTIFIER = "invalid_identifier"

    # Plan invariants
    PLAN_LENGTH_MISMATCH = "plan_length_mismatch"
    PLAN_DATE_MISMATCH = "plan_date_mismatch"
    UNKNOWN_JOB = "unknown_job"
    MISSING_JOB = "missing_job"
    WRONG_ASSIGNEE_COUNT = "wrong_assignee_count"
    ASSIGNEE_NOT_IN_POOL = "assignee_not_in_pool"
    UNFAIR_DISTRIBUTION = "unfair_distribution"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    job_name: Optional[str] = None
    field_name: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.job_name is not None:
            parts.append(f"Job '{self.job_name}':")
        elif self.field_name is not None:
            parts.append(f"{self.field_name}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating an event or a plan.

    Attributes:
        is_valid: True when no errors were found.
        errors: Every error found.
        warnings: Non-fatal notes, including normalizations applied.
        event: The normalized event definition; None unless valid.
    """

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    event: Optional[EventDefinition] = None

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def error_types(self) -> list[ValidationErrorType]:
        return [e.error_type for e in self.errors]


def _dedupe(items: tuple) -> tuple:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return tuple(result)


def _split_identifiers(items: tuple) -> tuple[tuple, list]:
    """Separate string identifiers from values of any other type."""
    valid = tuple(item for item in items if isinstance(item, str))
    invalid = [item for item in items if not isinstance(item, str)]
    return valid, invalid


def _invalid_identifier_error(
    invalid: list,
    field_name: str,
    job_name: Optional[str] = None,
) -> ValidationError:
    return ValidationError(
        error_type=ValidationErrorType.INVALID_IDENTIFIER,
        message=(
            f"Identifiers must be strings, got "
            f"{', '.join(repr(item) for item in invalid)}"
        ),
        job_name=job_name,
        field_name=field_name,
        details={"invalid": invalid},
    )


def _is_valid_capacity(capacity) -> bool:
    # bool is an int subclass but True is not a capacity
    return isinstance(capacity, int) and not isinstance(capacity, bool) and capacity >= 1


class EventValidator:
    """Validates event definitions before scheduling.

    Every rule is checked; nothing short-circuits, so callers can report all
    problems at once. Validation is all-or-nothing: a normalized event is
    returned only when there are no errors.

    Example:
        >>> validator = EventValidator()
        >>> result = validator.validate(event)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(self, event: EventDefinition) -> ValidationResult:
        """Validate an event definition.

        Args:
            event: The event to validate.

        Returns:
            ValidationResult; on success its ``event`` holds the normalized
            definition (deduplicated teammates and pools, capacities clamped
            to pool size).
        """
        result = ValidationResult(is_valid=True)

        if not str(event.name).strip():
            result.add_warning("Event name is blank")

        named, invalid = _split_identifiers(event.teammates)
        if invalid:
            result.add_error(_invalid_identifier_error(invalid, "teammates"))

        teammates = _dedupe(named)
        if len(teammates) != len(named):
            result.add_warning("Duplicate teammates were removed")

        if not event.teammates:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPTY_TEAMMATES,
                    message="Event has no teammates",
                    field_name="teammates",
                )
            )

        if not event.jobs:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPTY_JOBS,
                    message="Event has no jobs",
                    field_name="jobs",
                )
            )

        self._validate_job_names(event, result)

        normalized_jobs = []
        teammate_set = set(teammates)
        for job in event.jobs:
            normalized = self._validate_job(job, teammate_set, result)
            normalized_jobs.append(normalized)

        if event.start_date > event.end_date:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVERTED_DATE_RANGE,
                    message=(
                        f"Start date {event.start_date.isoformat()} is after "
                        f"end date {event.end_date.isoformat()}"
                    ),
                    field_name="start_date",
                    details={
                        "start_date": event.start_date,
                        "end_date": event.end_date,
                    },
                )
            )

        if result.is_valid:
            result.event = EventDefinition(
                name=event.name,
                teammates=teammates,
                jobs=tuple(normalized_jobs),
                start_date=event.start_date,
                end_date=event.end_date,
                alert=event.alert,
                custom_description=event.custom_description,
            )

        return result

    def validate_or_raise(self, event: EventDefinition) -> EventDefinition:
        """Validate and return the normalized event.

        Raises:
            EventValidationError: With every error found, if any.
        """
        result = self.validate(event)
        if not result.is_valid:
            raise EventValidationError(result.errors)
        return result.event

    def _validate_job_names(
        self,
        event: EventDefinition,
        result: ValidationResult,
    ) -> None:
        """Report each repeated job name once."""
        seen: set[str] = set()
        reported: set[str] = set()
        for job in event.jobs:
            if not isinstance(job.name, str):
                continue
            if job.name in seen and job.name not in reported:
                reported.add(job.name)
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_JOB_NAME,
                        message="Job name is used more than once",
                        job_name=job.name,
                        field_name="name",
                    )
                )
            seen.add(job.name)

    def _validate_job(
        self,
        job: Job,
        teammate_set: set[Teammate],
        result: ValidationResult,
    ) -> Job:
        """Validate a single job and return its normalized form."""
        label = job.name if isinstance(job.name, str) else repr(job.name)
        if not isinstance(job.name, str):
            result.add_error(_invalid_identifier_error([job.name], "name", label))

        capacity_ok = _is_valid_capacity(job.daily_capacity)
        if not capacity_ok:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NON_POSITIVE_CAPACITY,
                    message=(
                        f"Daily capacity must be a positive integer, "
                        f"got {job.daily_capacity!r}"
                    ),
                    job_name=label,
                    field_name="daily_capacity",
                    details={"daily_capacity": job.daily_capacity},
                )
            )

        named, invalid = _split_identifiers(job.pool)
        if invalid:
            result.add_error(_invalid_identifier_error(invalid, "pool", label))

        pool = _dedupe(named)
        if len(pool) != len(named):
            result.add_warning(f"Job '{label}': duplicate pool members were removed")

        if not job.pool:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPTY_POOL,
                    message="Assignee pool is empty; the job cannot be filled",
                    job_name=label,
                    field_name="pool",
                )
            )

        unknown = [t for t in pool if t not in teammate_set]
        if unknown:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNKNOWN_POOL_MEMBER,
                    message=(
                        f"Pool members are not event teammates: "
                        f"{', '.join(str(t) for t in unknown)}"
                    ),
                    job_name=label,
                    field_name="pool",
                    details={"unknown": unknown},
                )
            )

        capacity = job.daily_capacity
        if capacity_ok and pool and capacity > len(pool):
            result.add_warning(
                f"Job '{label}': daily capacity {capacity} exceeds pool size "
                f"{len(pool)}; clamped to {len(pool)}"
            )
            capacity = len(pool)

        return Job(name=job.name, daily_capacity=capacity, pool=pool)


class PlanValidator:
    """Checks a plan against the invariants every generated plan must hold.

    Example:
        >>> result = PlanValidator().validate(event, plan)
        >>> assert result.is_valid
    """

    def __init__(self, max_spread: int = 1):
        """Initialize the validator.

        Args:
            max_spread: Largest allowed difference between the most and the
                least assigned pool member of any job.
        """
        self.max_spread = max_spread

    def validate(self, event: EventDefinition, plan: SchedulePlan) -> ValidationResult:
        """Validate a plan for a (validated) event.

        Args:
            event: The validated event the plan belongs to.
            plan: The plan to check.

        Returns:
            ValidationResult with any invariant violations.
        """
        result = ValidationResult(is_valid=True)

        if len(plan) != event.num_days:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.PLAN_LENGTH_MISMATCH,
                    message=f"Plan has {len(plan)} days, expected {event.num_days}",
                    details={"actual": len(plan), "expected": event.num_days},
                )
            )

        expected_dates = event.schedule_dates
        if plan.dates != expected_dates:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.PLAN_DATE_MISMATCH,
                    message="Plan dates do not match the event range in ascending order",
                )
            )

        jobs_by_name = {job.name: job for job in event.jobs}
        for day in plan:
            self._validate_day(day, jobs_by_name, result)

        self._validate_fairness(event, plan, result)

        if result.is_valid:
            result.event = event
        return result

    def _validate_day(self, day, jobs_by_name: dict[str, Job], result: ValidationResult) -> None:
        for job_name in day.job_assignments:
            if job_name not in jobs_by_name:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNKNOWN_JOB,
                        message=f"Unknown job on {day.date.isoformat()}",
                        job_name=job_name,
                    )
                )

        for job_name, job in jobs_by_name.items():
            if job_name not in day.job_assignments:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MISSING_JOB,
                        message=f"No assignment on {day.date.isoformat()}",
                        job_name=job_name,
                    )
                )
                continue

            assignees = day.job_assignments[job_name]
            expected = job.slots_per_day
            if len(assignees) != expected:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WRONG_ASSIGNEE_COUNT,
                        message=(
                            f"{len(assignees)} assignees on {day.date.isoformat()}, "
                            f"expected {expected}"
                        ),
                        job_name=job_name,
                        details={"actual": len(assignees), "expected": expected},
                    )
                )

            outsiders = sorted(t for t in assignees if t not in job.pool)
            if outsiders:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.ASSIGNEE_NOT_IN_POOL,
                        message=(
                            f"Assignees outside the pool on {day.date.isoformat()}: "
                            f"{', '.join(outsiders)}"
                        ),
                        job_name=job_name,
                        details={"outsiders": outsiders},
                    )
                )

    def _validate_fairness(
        self,
        event: EventDefinition,
        plan: SchedulePlan,
        result: ValidationResult,
    ) -> None:
        metrics = plan.fairness_metrics(event)
        for job_name, spread in metrics.spread_per_job.items():
            if spread > self.max_spread:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNFAIR_DISTRIBUTION,
                        message=(
                            f"Assignment counts differ by {spread}, "
                            f"allowed {self.max_spread}"
                        ),
                        job_name=job_name,
                        details={"counts": metrics.counts_per_job[job_name]},
                    )
                )
