"""Human-readable text for events and plans.

``describe`` produces the description shown when an event is created: the
policy (who is eligible for what, how many per day), not the resolved days.
``PlanFormatter.format_plan`` renders the resolved plan as a text table.
"""

from datetime import date
from typing import Optional

from chorewheel.domain.models import Alert, EventDefinition, SchedulePlan

CUSTOM_DESCRIPTION_PLACEHOLDER = "[Your custom description will appear here]"


def _format_date(d: date) -> str:
    return f"{d.month}/{d.day}/{d.year}"


class PlanFormatter:
    """Renders events and plans as text.

    Example:
        >>> formatter = PlanFormatter()
        >>> print(formatter.describe(event))
    """

    def describe(
        self,
        event: EventDefinition,
        plan: Optional[SchedulePlan] = None,
    ) -> str:
        """Summarize an event's chore policy.

        The text depends only on the event, so it is identical before and
        after a plan exists; ``plan`` is accepted so callers can pass both.

        Args:
            event: The event to describe.
            plan: Ignored.

        Returns:
            The description text.
        """
        lines = [
            f"Event: {event.name}",
            f"Duration: {_format_date(event.start_date)} to {_format_date(event.end_date)}",
            "",
            "Daily Chore Assignments:",
        ]

        for job in event.jobs:
            lines.append(f"{job.name}:")
            lines.append(f"  - {job.daily_capacity} person(s) per day")
            lines.append(f"  - Assigned pool: {', '.join(job.pool)}")
            lines.append("")

        lines.append(
            "Note: Daily assignments rotate through the assigned pool for each job."
        )
        lines.append("The system will ensure fair distribution over time.")
        lines.append("")

        if event.alert != Alert.NONE:
            lines.append(f"Reminder: {event.alert.label}")
            lines.append("")

        lines.append("Additional Details:")
        lines.append(event.custom_description.strip() or CUSTOM_DESCRIPTION_PLACEHOLDER)
        lines.append("")
        lines.append(
            "This schedule is subject to change. Please check regularly for updates."
        )
        return "\n".join(lines)

    def format_plan(self, event: EventDefinition, plan: SchedulePlan) -> str:
        """Render the resolved plan, one line per day, plus per-teammate totals."""
        lines = [
            "=" * 72,
            f"{event.name} - {len(plan)} day(s), seed {plan.seed}",
            "=" * 72,
        ]

        for day in plan:
            parts = []
            for job in event.jobs:
                assignees = ", ".join(sorted(day.get_assignees(job.name)))
                parts.append(f"{job.name}: {assignees}")
            lines.append(f"{day.date.isoformat()} {day.date.strftime('%a')}  " + " | ".join(parts))

        metrics = plan.fairness_metrics(event)
        lines.append("-" * 72)
        lines.append("Assignments per teammate:")
        for teammate in event.teammates:
            per_job = [
                f"{job_name}={counts[teammate]}"
                for job_name, counts in metrics.counts_per_job.items()
                if teammate in counts
            ]
            total = metrics.totals_per_teammate.get(teammate, 0)
            detail = f" ({', '.join(per_job)})" if per_job else ""
            lines.append(f"  {teammate}: {total}{detail}")
        lines.append(
            f"Max per-job spread: {metrics.max_job_spread}, "
            f"cross-job spread: {metrics.cross_job_spread}"
        )
        return "\n".join(lines)


def describe(event: EventDefinition, plan: Optional[SchedulePlan] = None) -> str:
    """Summarize an event's chore policy as text."""
    return PlanFormatter().describe(event, plan)
