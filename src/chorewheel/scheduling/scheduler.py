"""Main scheduler interface.

This module provides the high-level Scheduler class that dispatches to a
solver, checks the result against the plan invariants, and reports
statistics. ``schedule()`` is the plain-function entry point.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chorewheel.domain.models import EventDefinition, SchedulePlan
from chorewheel.errors import SchedulingError
from chorewheel.scheduling.cpsat_solver import CPSATSolver, SolverConfig
from chorewheel.scheduling.round_robin import DeficitRoundRobinSolver
from chorewheel.validation.validator import PlanValidator

logger = logging.getLogger(__name__)


class SolverType(Enum):
    """Type of solver to use."""

    ROUND_ROBIN = "round_robin"  # Per-job deficit round-robin
    CPSAT = "cpsat"  # OR-Tools CP-SAT, also balances totals across jobs
    HYBRID = "hybrid"  # Try CP-SAT, fall back to round-robin


@dataclass
class SchedulerConfig:
    """Configuration for plan generation.

    Attributes:
        seed: Default tie-break seed when none is passed per call.
        solver_type: Which solver to use.
        solver_config: Configuration for the CP-SAT solver.
        check_invariants: Validate every generated plan before returning it.
    """

    seed: int = 0
    solver_type: SolverType = SolverType.ROUND_ROBIN
    solver_config: SolverConfig = field(default_factory=SolverConfig)
    check_invariants: bool = True


class Scheduler:
    """High-level scheduler for generating chore plans.

    The scheduler assumes validated input; run EventValidator first.

    Example:
        >>> scheduler = Scheduler()
        >>> event = EventValidator().validate_or_raise(raw_event)
        >>> plan = scheduler.generate_plan(event, seed=7)
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        self.config = config or SchedulerConfig()
        self.round_robin = DeficitRoundRobinSolver()
        self.cpsat_solver = CPSATSolver(self.config.solver_config)
        self.plan_validator = PlanValidator()

    def generate_plan(
        self,
        event: EventDefinition,
        seed: Optional[int] = None,
    ) -> SchedulePlan:
        """Generate a plan for a validated event.

        Args:
            event: Validated event definition.
            seed: Tie-break seed; defaults to the configured seed.

        Returns:
            SchedulePlan covering every date of the event.

        Raises:
            SchedulingError: If the plan breaks an invariant, or CP-SAT
                finds no solution in CPSAT mode.
        """
        seed = self.config.seed if seed is None else seed
        return self._generate(event, seed, self.config.solver_type)

    def _generate(
        self,
        event: EventDefinition,
        seed: int,
        solver_type: SolverType,
    ) -> SchedulePlan:
        if solver_type == SolverType.ROUND_ROBIN:
            plan = self.round_robin.solve(event, seed)
        else:
            hint = self.round_robin.solve(event, seed)
            result = self.cpsat_solver.solve(event, seed, hint=hint)
            if result.is_feasible and result.plan is not None:
                plan = result.plan
            elif solver_type == SolverType.HYBRID:
                logger.warning(
                    "CP-SAT returned %s for event %r; using round-robin plan",
                    result.status,
                    event.name,
                )
                plan = hint
            else:
                raise SchedulingError(
                    f"CP-SAT found no plan for event {event.name!r} "
                    f"(status {result.status})"
                )

        if self.config.check_invariants:
            self._check(event, plan)

        logger.info(
            "Generated %d-day plan for event %r with %s (seed %d)",
            len(plan),
            event.name,
            solver_type.value,
            seed,
        )
        return plan

    def generate_plan_with_stats(
        self,
        event: EventDefinition,
        seed: Optional[int] = None,
    ) -> tuple[SchedulePlan, dict]:
        """Generate a plan and return statistics.

        Args:
            event: Validated event definition.
            seed: Tie-break seed.

        Returns:
            Tuple of (plan, stats_dict).
        """
        plan = self.generate_plan(event, seed)
        stats = self._calculate_stats(event, plan)
        return plan, stats

    def verify_plan(self, event: EventDefinition, plan: SchedulePlan) -> bool:
        """Check a stored plan against a fresh regeneration.

        The plan is regenerated with its recorded seed and by the solver it
        records, whatever solver this scheduler is configured with. A HYBRID
        run records the solver that actually produced its plan.
        """
        solver_type = SolverType(plan.solver)
        return self._generate(event, plan.seed, solver_type) == plan

    def _check(self, event: EventDefinition, plan: SchedulePlan) -> None:
        result = self.plan_validator.validate(event, plan)
        if not result.is_valid:
            for error in result.errors:
                logger.error("Plan invariant violated: %s", error)
            raise SchedulingError(
                f"Generated plan for event {event.name!r} broke "
                f"{len(result.errors)} invariant(s): {result.errors[0]}"
            )

    def _calculate_stats(self, event: EventDefinition, plan: SchedulePlan) -> dict:
        """Calculate plan statistics."""
        metrics = plan.fairness_metrics(event)
        total_slots = sum(
            len(assignees)
            for day in plan
            for assignees in day.job_assignments.values()
        )
        return {
            "total_days": len(plan),
            "total_jobs": len(event.jobs),
            "total_teammates": len(event.teammates),
            "total_assignments": total_slots,
            "max_job_spread": metrics.max_job_spread,
            "cross_job_spread": metrics.cross_job_spread,
            "fairness_metrics": metrics,
        }


def schedule(event: EventDefinition, seed: int = 0) -> SchedulePlan:
    """Generate the deficit round-robin plan for a validated event."""
    return Scheduler().generate_plan(event, seed)
