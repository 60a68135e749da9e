"""Smoke tests for end-to-end scheduling flow."""

from datetime import date

import pytest

from chorewheel.domain.models import EventDefinition, SchedulePlan
from chorewheel.output.description import describe
from chorewheel.output.pdf_generator import PDFGenerator
from chorewheel.scheduling.scheduler import Scheduler, SchedulerConfig, SolverType
from chorewheel.validation.validator import EventValidator, PlanValidator


class TestSmoke:
    """End-to-end smoke tests for the scheduling system."""

    @pytest.fixture
    def payload(self):
        """An event as it would arrive from the event creation form."""
        return {
            "name": "Summer house",
            "teammates": ["Ana", "Ben", "Cleo", "Dev", "Eli", "Fay"],
            "jobs": [
                {"name": "breakfast", "daily_capacity": 2, "pool": ["Ana", "Ben", "Cleo", "Dev"]},
                {"name": "dishes", "daily_capacity": 1, "pool": ["Ana", "Ben", "Cleo", "Dev", "Eli", "Fay"]},
                {"name": "garden", "daily_capacity": 3, "pool": ["Eli", "Fay"]},
            ],
            "start_date": "2024-07-01",
            "end_date": "2024-07-28",
            "alert": "1_day",
            "custom_description": "Keys are under the mat.",
        }

    def _run(self, payload, solver_type):
        event = EventValidator().validate_or_raise(EventDefinition.from_dict(payload))
        scheduler = Scheduler(SchedulerConfig(seed=21, solver_type=solver_type))
        plan, stats = scheduler.generate_plan_with_stats(event)
        return event, plan, stats

    @pytest.mark.parametrize("solver_type", [SolverType.ROUND_ROBIN, SolverType.HYBRID])
    def test_full_flow(self, payload, solver_type):
        event, plan, stats = self._run(payload, solver_type)

        assert event.get_job("garden").daily_capacity == 2
        assert len(plan) == 28
        assert plan.start_date == date(2024, 7, 1)
        assert plan.end_date == date(2024, 7, 28)
        assert stats["max_job_spread"] <= 1
        assert stats["total_assignments"] == 28 * (2 + 1 + 2)

        result = PlanValidator().validate(event, plan)
        assert result.is_valid, f"Errors: {[str(e) for e in result.errors]}"

        restored = SchedulePlan.from_dict(plan.to_dict())
        assert restored == plan
        assert Scheduler(SchedulerConfig(solver_type=solver_type)).verify_plan(event, restored)

        text = describe(event, plan)
        assert "Reminder: 1 day before" in text
        assert "Keys are under the mat." in text

        pdf = PDFGenerator().generate_to_buffer(event, plan)
        assert pdf.getvalue().startswith(b"%PDF")

    def test_teammate_in_all_jobs(self, payload):
        event = EventValidator().validate_or_raise(EventDefinition.from_dict(payload))
        event = event.with_teammate_in_all_jobs("Gus")
        plan = Scheduler().generate_plan(event, seed=3)

        assert "Gus" in event.teammates
        assert PlanValidator().validate(event, plan).is_valid
        assert any("Gus" in day.get_assignees("garden") for day in plan)
