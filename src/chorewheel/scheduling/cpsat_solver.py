"""OR-Tools CP-SAT solver for cross-job balanced plans.

The round-robin solver balances each job on its own. This solver keeps the
same per-job guarantee as hard constraints (after every prefix of d days each
pool member holds between floor(d*k/n) and ceil(d*k/n) assignments) and then
minimizes the difference between the busiest and the least busy teammate
summed over all jobs.

The search runs on a single worker with a fixed random seed and a
deterministic time budget, so the same event and seed give the same plan.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ortools.sat.python import cp_model

from chorewheel.domain.models import (
    CPSAT_SOLVER,
    DayAssignment,
    EventDefinition,
    SchedulePlan,
    Teammate,
)

logger = logging.getLogger(__name__)

# CP-SAT accepts a non-negative 31-bit random seed.
_SEED_MODULUS = 2**31


@dataclass
class SolverConfig:
    """Configuration for the CP-SAT solver.

    Attributes:
        deterministic_time_limit: Search budget in CP-SAT deterministic time
            units. Unlike wall-clock limits this keeps results reproducible.
        max_time_in_seconds: Optional wall-clock cap. Setting it trades
            reproducibility for a hard latency bound.
        balance_across_jobs: Minimize the spread of per-teammate totals over
            all jobs. If False, any plan meeting the per-job bounds is accepted.
        use_round_robin_hint: Seed the search with the round-robin plan.
    """

    deterministic_time_limit: float = 10.0
    max_time_in_seconds: Optional[float] = None
    balance_across_jobs: bool = True
    use_round_robin_hint: bool = True


@dataclass
class SolverResult:
    """Result from the CP-SAT solver.

    Attributes:
        plan: The generated plan, or None if no solution was found.
        status: Solver status (OPTIMAL, FEASIBLE, etc.).
        objective_value: Final cross-job spread (0 when not optimizing).
        solve_time_seconds: Wall time taken to solve.
        num_branches: Number of branches explored.
        num_conflicts: Number of conflicts encountered.
    """

    plan: Optional[SchedulePlan]
    status: str
    objective_value: int = 0
    solve_time_seconds: float = 0.0
    num_branches: int = 0
    num_conflicts: int = 0

    @property
    def is_optimal(self) -> bool:
        return self.status == "OPTIMAL"

    @property
    def is_feasible(self) -> bool:
        return self.status in ("OPTIMAL", "FEASIBLE")


class CPSATSolver:
    """Constraint programming solver using OR-Tools CP-SAT."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def solve(
        self,
        event: EventDefinition,
        seed: int = 0,
        hint: Optional[SchedulePlan] = None,
    ) -> SolverResult:
        """Solve a validated event.

        Args:
            event: Validated event definition.
            seed: Random seed for the search.
            hint: Optional plan used as a solution hint.

        Returns:
            SolverResult with plan and solver statistics.
        """
        model = cp_model.CpModel()
        dates = event.schedule_dates
        num_days = len(dates)

        # x[(job, day, teammate)] = 1 if teammate holds job on that day
        x: dict[tuple[str, int, Teammate], cp_model.IntVar] = {}
        for job in event.jobs:
            for day in range(num_days):
                for teammate in job.pool:
                    x[(job.name, day, teammate)] = model.NewBoolVar(
                        f"x_{job.name}_{day}_{teammate}"
                    )

        # Exactly k assignees per job per day
        for job in event.jobs:
            for day in range(num_days):
                model.Add(
                    sum(x[(job.name, day, t)] for t in job.pool) == job.slots_per_day
                )

        # Running counts stay within the round-robin bounds on every prefix
        final_counts: dict[Teammate, list[cp_model.IntVar]] = {}
        for job in event.jobs:
            k = job.slots_per_day
            n = job.pool_size
            for teammate in job.pool:
                previous = None
                for day in range(num_days):
                    assigned = (day + 1) * k
                    low, high = assigned // n, -(-assigned // n)
                    running = model.NewIntVar(
                        low, high, f"c_{job.name}_{teammate}_{day}"
                    )
                    if previous is None:
                        model.Add(running == x[(job.name, day, teammate)])
                    else:
                        model.Add(running == previous + x[(job.name, day, teammate)])
                    previous = running
                final_counts.setdefault(teammate, []).append(previous)

        if self.config.balance_across_jobs and final_counts:
            upper = num_days * len(event.jobs)
            totals = []
            for teammate, counts in final_counts.items():
                total = model.NewIntVar(0, upper, f"total_{teammate}")
                model.Add(total == sum(counts))
                totals.append(total)
            busiest = model.NewIntVar(0, upper, "busiest")
            idlest = model.NewIntVar(0, upper, "idlest")
            model.AddMaxEquality(busiest, totals)
            model.AddMinEquality(idlest, totals)
            model.Minimize(busiest - idlest)

        if hint is not None and self.config.use_round_robin_hint:
            for index, day_assignment in enumerate(hint.days):
                for job in event.jobs:
                    assignees = day_assignment.get_assignees(job.name)
                    for teammate in job.pool:
                        model.AddHint(
                            x[(job.name, index, teammate)], teammate in assignees
                        )

        # Solve
        solver = cp_model.CpSolver()
        solver.parameters.num_workers = 1
        solver.parameters.random_seed = seed % _SEED_MODULUS
        solver.parameters.max_deterministic_time = self.config.deterministic_time_limit
        if self.config.max_time_in_seconds is not None:
            solver.parameters.max_time_in_seconds = self.config.max_time_in_seconds

        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")
        logger.debug(
            "CP-SAT finished with %s in %.3fs for event %r",
            status_str,
            solver.WallTime(),
            event.name,
        )

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return SolverResult(
                plan=None,
                status=status_str,
                solve_time_seconds=solver.WallTime(),
            )

        plan = self._extract_solution(solver, x, event, seed)
        objective = 0
        if self.config.balance_across_jobs and final_counts:
            objective = int(solver.ObjectiveValue())

        return SolverResult(
            plan=plan,
            status=status_str,
            objective_value=objective,
            solve_time_seconds=solver.WallTime(),
            num_branches=solver.NumBranches(),
            num_conflicts=solver.NumConflicts(),
        )

    def _extract_solution(
        self,
        solver: cp_model.CpSolver,
        x: dict[tuple[str, int, Teammate], cp_model.IntVar],
        event: EventDefinition,
        seed: int,
    ) -> SchedulePlan:
        """Convert solver values into a SchedulePlan."""
        days = []
        for index, d in enumerate(event.schedule_dates):
            assignments = {}
            for job in event.jobs:
                assignments[job.name] = frozenset(
                    t for t in job.pool if solver.BooleanValue(x[(job.name, index, t)])
                )
            days.append(DayAssignment(date=d, job_assignments=assignments))
        return SchedulePlan(
            event_name=event.name,
            days=tuple(days),
            seed=seed,
            solver=CPSAT_SOLVER,
        )
