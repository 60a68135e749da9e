"""Tests for the deficit round-robin scheduler.

This module covers:
- Plan shape (one entry per day, k assignees per job, pool membership)
- Per-job fairness over the full range and over every prefix
- Determinism for a fixed seed
- Scheduler configuration, post-checks and plan verification
"""

from datetime import date, timedelta

import pytest

from chorewheel.domain.models import DayAssignment, EventDefinition, Job, SchedulePlan
from chorewheel.errors import SchedulingError
from chorewheel.scheduling.round_robin import (
    DeficitRoundRobinSolver,
    FairnessLedger,
    tie_break_key,
)
from chorewheel.scheduling.scheduler import Scheduler, SchedulerConfig, SolverType, schedule
from chorewheel.validation.validator import EventValidator

START = date(2024, 1, 15)


def make_event(jobs, days, teammates=None) -> EventDefinition:
    """Helper to create a validated event."""
    if teammates is None:
        teammates = sorted({t for job in jobs for t in job.pool})
    event = EventDefinition(
        name="Household",
        teammates=tuple(teammates),
        jobs=tuple(jobs),
        start_date=START,
        end_date=START + timedelta(days=days - 1),
    )
    return EventValidator().validate_or_raise(event)


def counts_for(plan: SchedulePlan, job: Job) -> dict:
    return plan.get_counts(job.name, job.pool)


class TestScenarios:
    """Worked examples of expected plans."""

    def test_one_per_day_rotates_evenly(self):
        """dishes, capacity 1, pool {A,B,C}, 6 days: everyone twice."""
        job = Job("dishes", 1, ("A", "B", "C"))
        plan = schedule(make_event([job], days=6), seed=0)

        assert len(plan) == 6
        assert counts_for(plan, job) == {"A": 2, "B": 2, "C": 2}
        for day in plan:
            assert len(day.get_assignees("dishes")) == 1

    def test_two_per_day_over_three_days(self):
        """trash, capacity 2, pool {A,B,C}, 3 days: 6 slots, everyone twice."""
        job = Job("trash", 2, ("A", "B", "C"))
        plan = schedule(make_event([job], days=3), seed=0)

        assert sum(len(day.get_assignees("trash")) for day in plan) == 6
        assert counts_for(plan, job) == {"A": 2, "B": 2, "C": 2}

    @pytest.mark.parametrize("capacity", [1, 3])
    def test_single_member_pool_works_every_day(self, capacity):
        job = Job("groceries", capacity, ("A",))
        event = make_event([job], days=9)
        plan = schedule(event, seed=5)

        assert counts_for(plan, event.jobs[0]) == {"A": 9}
        assert all(day.get_assignees("groceries") == frozenset({"A"}) for day in plan)

    def test_single_day_range(self):
        job = Job("dishes", 1, ("A", "B"))
        plan = schedule(make_event([job], days=1), seed=0)

        assert len(plan) == 1
        assert plan.days[0].date == START

    def test_capacity_equal_to_pool_assigns_everyone(self):
        job = Job("cleanup", 3, ("A", "B", "C"))
        plan = schedule(make_event([job], days=4), seed=2)

        for day in plan:
            assert day.get_assignees("cleanup") == frozenset({"A", "B", "C"})


class TestPlanProperties:
    """Invariants that hold for any validated event."""

    @pytest.fixture
    def event(self):
        return make_event(
            [
                Job("dishes", 1, ("A", "B", "C", "D", "E")),
                Job("trash", 2, ("A", "B", "C")),
                Job("bathroom", 3, ("B", "C", "D", "E")),
                Job("laundry", 4, ("A", "E")),
            ],
            days=23,
        )

    @pytest.mark.parametrize("seed", [0, 1, 42, 2**40])
    def test_plan_shape(self, event, seed):
        plan = schedule(event, seed)

        assert len(plan) == event.num_days
        assert plan.dates == event.schedule_dates
        for day in plan:
            assert list(day.job_assignments) == event.job_names
            for job in event.jobs:
                assignees = day.get_assignees(job.name)
                assert len(assignees) == min(job.daily_capacity, job.pool_size)
                assert assignees <= set(job.pool)

    @pytest.mark.parametrize("seed", [0, 7, 99])
    def test_counts_differ_by_at_most_one(self, event, seed):
        plan = schedule(event, seed)
        for job in event.jobs:
            counts = counts_for(plan, job).values()
            assert max(counts) - min(counts) <= 1

    def test_balanced_on_every_prefix(self, event):
        """Fairness holds over time, not just at the end of the range."""
        plan = schedule(event, seed=3)
        for length in range(1, len(plan) + 1):
            prefix = SchedulePlan(plan.event_name, plan.days[:length], plan.seed)
            for job in event.jobs:
                counts = prefix.get_counts(job.name, job.pool).values()
                assert max(counts) - min(counts) <= 1

    def test_jobs_are_independent(self, event):
        """Adding a job does not change the assignments of the others."""
        plan = schedule(event, seed=11)
        extended = EventDefinition(
            name=event.name,
            teammates=event.teammates,
            jobs=event.jobs + (Job("yard", 1, ("A", "D")),),
            start_date=event.start_date,
            end_date=event.end_date,
        )
        extended_plan = schedule(extended, seed=11)
        for day, extended_day in zip(plan, extended_plan):
            for job in event.jobs:
                assert day.get_assignees(job.name) == extended_day.get_assignees(job.name)


class TestDeterminism:
    """Same definition and seed give the same plan."""

    @pytest.fixture
    def event(self):
        return make_event([Job("dishes", 1, ("A", "B", "C", "D", "E"))], days=10)

    def test_same_seed_same_plan(self, event):
        assert schedule(event, 17) == schedule(event, 17)

    def test_fresh_solver_instances_agree(self, event):
        first = DeficitRoundRobinSolver().solve(event, 4)
        second = DeficitRoundRobinSolver().solve(event, 4)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_seed_changes_tie_break_order(self, event):
        plans = {
            tuple(tuple(sorted(day.get_assignees("dishes"))) for day in schedule(event, seed))
            for seed in range(20)
        }
        assert len(plans) > 1

    def test_seed_is_recorded(self, event):
        assert schedule(event, 123).seed == 123

    def test_tie_break_key(self):
        key = tie_break_key(1, "dishes", START, "A")
        assert len(key) == 32
        assert key == tie_break_key(1, "dishes", START, "A")
        assert key != tie_break_key(2, "dishes", START, "A")
        assert key != tie_break_key(1, "dishes", START + timedelta(days=1), "A")


class TestFairnessLedger:
    """Tests for the per-run counters."""

    def test_open_record_spread(self):
        job = Job("dishes", 1, ("A", "B", "C"))
        ledger = FairnessLedger()
        ledger.open_job(job)
        assert ledger.spread(job) == 0

        ledger.record("dishes", ["A"])
        ledger.record("dishes", ["A", "B"])
        assert ledger.count("dishes", "A") == 2
        assert ledger.count("dishes", "C") == 0
        assert ledger.spread(job) == 2


class TestScheduler:
    """Tests for the Scheduler wrapper."""

    @pytest.fixture
    def event(self):
        return make_event(
            [Job("dishes", 1, ("A", "B", "C")), Job("trash", 2, ("A", "B", "C"))],
            days=6,
        )

    def test_default_seed_from_config(self, event):
        scheduler = Scheduler(SchedulerConfig(seed=9))
        assert scheduler.generate_plan(event) == schedule(event, 9)

    def test_stats(self, event):
        plan, stats = Scheduler().generate_plan_with_stats(event, seed=1)
        assert stats["total_days"] == 6
        assert stats["total_jobs"] == 2
        assert stats["total_assignments"] == 6 * 1 + 6 * 2
        assert stats["max_job_spread"] == 0
        assert stats["fairness_metrics"].totals_per_teammate == {"A": 6, "B": 6, "C": 6}

    def test_verify_plan(self, event):
        scheduler = Scheduler()
        plan = scheduler.generate_plan(event, seed=5)
        assert scheduler.verify_plan(event, plan)

    def test_verify_detects_edited_plan(self, event):
        scheduler = Scheduler()
        plan = scheduler.generate_plan(event, seed=5)
        first = plan.days[0]
        current = next(iter(first.get_assignees("dishes")))
        replacement = next(t for t in ("A", "B", "C") if t != current)
        edited_first = DayAssignment(
            first.date,
            {**first.job_assignments, "dishes": frozenset({replacement})},
        )
        edited = SchedulePlan(plan.event_name, (edited_first,) + plan.days[1:], plan.seed)
        assert not scheduler.verify_plan(event, edited)

    def test_round_robin_plan_records_solver(self, event):
        assert Scheduler().generate_plan(event, seed=5).solver == "round_robin"

    def test_verify_uses_solver_recorded_in_plan(self, event):
        """A round-robin plan verifies under a scheduler configured for CP-SAT."""
        plan = Scheduler().generate_plan(event, seed=5)
        cpsat_scheduler = Scheduler(SchedulerConfig(solver_type=SolverType.CPSAT))
        assert cpsat_scheduler.verify_plan(event, plan)

        relabeled = SchedulePlan(plan.event_name, plan.days, plan.seed, solver="cpsat")
        assert relabeled != plan

    def test_broken_solver_output_raises(self, event, monkeypatch):
        scheduler = Scheduler()

        def broken_solve(evt, seed=0):
            days = [
                DayAssignment(d, {"dishes": frozenset({"A"}), "trash": frozenset({"A"})})
                for d in evt.schedule_dates
            ]
            return SchedulePlan(evt.name, days, seed)

        monkeypatch.setattr(scheduler.round_robin, "solve", broken_solve)
        with pytest.raises(SchedulingError):
            scheduler.generate_plan(event)

    def test_invariant_check_can_be_disabled(self, event, monkeypatch):
        scheduler = Scheduler(SchedulerConfig(check_invariants=False))
        sentinel = SchedulePlan(event.name, (), 0)
        monkeypatch.setattr(scheduler.round_robin, "solve", lambda evt, seed=0: sentinel)
        assert scheduler.generate_plan(event) is sentinel
