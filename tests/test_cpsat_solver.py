"""Tests for the CP-SAT backend and solver selection."""

from datetime import date, timedelta

import pytest

from chorewheel.domain.models import EventDefinition, Job
from chorewheel.errors import SchedulingError
from chorewheel.scheduling.cpsat_solver import CPSATSolver, SolverConfig, SolverResult
from chorewheel.scheduling.round_robin import DeficitRoundRobinSolver
from chorewheel.scheduling.scheduler import (
    Scheduler,
    SchedulerConfig,
    SolverType,
    schedule,
)
from chorewheel.validation.validator import PlanValidator

START = date(2024, 1, 15)


@pytest.fixture
def overlapping_event():
    """Three jobs sharing teammates, where per-job balance leaves slack."""
    return EventDefinition(
        name="Cabin weekend",
        teammates=("A", "B", "C", "D"),
        jobs=(
            Job("cook", 1, ("A", "B", "C")),
            Job("dishes", 1, ("A", "B", "C", "D")),
            Job("firewood", 1, ("A", "B")),
        ),
        start_date=START,
        end_date=START + timedelta(days=4),
    )


class TestCPSATSolver:
    """Tests for CPSATSolver."""

    def test_plan_meets_invariants(self, overlapping_event):
        result = CPSATSolver().solve(overlapping_event, seed=1)
        assert result.is_feasible
        validation = PlanValidator().validate(overlapping_event, result.plan)
        assert validation.is_valid, f"Errors: {[str(e) for e in validation.errors]}"

    def test_balances_totals_across_jobs(self, overlapping_event):
        result = CPSATSolver().solve(overlapping_event, seed=1)
        assert result.is_optimal

        metrics = result.plan.fairness_metrics(overlapping_event)
        assert metrics.cross_job_spread == result.objective_value

        baseline = DeficitRoundRobinSolver().solve(overlapping_event, seed=1)
        assert metrics.cross_job_spread <= baseline.fairness_metrics(overlapping_event).cross_job_spread

    def test_spreads_jobs_over_different_people(self):
        """Two single-slot jobs on one day go to two different teammates."""
        event = EventDefinition(
            name="One evening",
            teammates=("A", "B", "C"),
            jobs=(Job("cook", 1, ("A", "B", "C")), Job("dishes", 1, ("A", "B", "C"))),
            start_date=START,
            end_date=START,
        )
        for seed in range(5):
            result = CPSATSolver().solve(event, seed=seed)
            day = result.plan.days[0]
            assert day.get_assignees("cook").isdisjoint(day.get_assignees("dishes"))
            assert result.objective_value == 1

    def test_prefix_bounds_hold(self, overlapping_event):
        plan = CPSATSolver().solve(overlapping_event, seed=2).plan
        for job in overlapping_event.jobs:
            counts = {t: 0 for t in job.pool}
            for day in plan:
                for teammate in day.get_assignees(job.name):
                    counts[teammate] += 1
                assert max(counts.values()) - min(counts.values()) <= 1

    def test_reproducible_for_seed(self, overlapping_event):
        solver = CPSATSolver()
        assert solver.solve(overlapping_event, seed=3).plan == solver.solve(overlapping_event, seed=3).plan

    def test_without_cross_job_objective(self, overlapping_event):
        result = CPSATSolver(SolverConfig(balance_across_jobs=False)).solve(overlapping_event, seed=0)
        assert result.is_feasible
        assert result.objective_value == 0
        assert PlanValidator().validate(overlapping_event, result.plan).is_valid

    def test_with_hint(self, overlapping_event):
        hint = DeficitRoundRobinSolver().solve(overlapping_event, seed=4)
        result = CPSATSolver().solve(overlapping_event, seed=4, hint=hint)
        assert result.is_feasible
        assert len(result.plan) == overlapping_event.num_days


class TestSolverSelection:
    """Tests for SolverType handling in Scheduler."""

    def test_cpsat_mode(self, overlapping_event):
        scheduler = Scheduler(SchedulerConfig(solver_type=SolverType.CPSAT))
        plan = scheduler.generate_plan(overlapping_event, seed=1)
        baseline = schedule(overlapping_event, 1)
        assert (
            plan.fairness_metrics(overlapping_event).cross_job_spread
            <= baseline.fairness_metrics(overlapping_event).cross_job_spread
        )

    def test_hybrid_falls_back_to_round_robin(self, overlapping_event, monkeypatch):
        scheduler = Scheduler(SchedulerConfig(solver_type=SolverType.HYBRID))
        monkeypatch.setattr(
            scheduler.cpsat_solver,
            "solve",
            lambda event, seed=0, hint=None: SolverResult(plan=None, status="UNKNOWN"),
        )
        assert scheduler.generate_plan(overlapping_event, seed=6) == schedule(overlapping_event, 6)

    def test_cpsat_mode_without_solution_raises(self, overlapping_event, monkeypatch):
        scheduler = Scheduler(SchedulerConfig(solver_type=SolverType.CPSAT))
        monkeypatch.setattr(
            scheduler.cpsat_solver,
            "solve",
            lambda event, seed=0, hint=None: SolverResult(plan=None, status="INFEASIBLE"),
        )
        with pytest.raises(SchedulingError, match="INFEASIBLE"):
            scheduler.generate_plan(overlapping_event, seed=6)

    def test_result_status_flags(self):
        assert SolverResult(plan=None, status="OPTIMAL").is_optimal
        assert SolverResult(plan=None, status="FEASIBLE").is_feasible
        assert not SolverResult(plan=None, status="UNKNOWN").is_feasible
