"""Command-line interface for the chorewheel scheduling tool."""

import argparse
import json
import logging
import os
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from chorewheel.domain.models import Alert, EventDefinition, Job, SchedulePlan
from chorewheel.errors import PayloadError, SchedulingError
from chorewheel.logging_config import configure_logging
from chorewheel.output.description import PlanFormatter
from chorewheel.output.pdf_generator import PDFGenerator
from chorewheel.scheduling.cpsat_solver import SolverConfig
from chorewheel.scheduling.scheduler import Scheduler, SchedulerConfig, SolverType
from chorewheel.validation.validator import EventValidator

logger = logging.getLogger(__name__)

SEED_ENV = "CHOREWHEEL_SEED"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def create_sample_event(days: int = 7, start_date: Optional[date] = None) -> EventDefinition:
    """Create a sample household event for demos.

    Args:
        days: Number of days to schedule.
        start_date: First day; defaults to today.
    """
    start_date = start_date or date.today()
    teammates = ("Alice", "Bob", "Carol", "David", "Eve")
    jobs = (
        Job("dishes", 1, ("Alice", "Bob", "Carol")),
        Job("trash", 2, ("Alice", "Bob", "Carol", "David")),
        Job("bathroom", 1, ("Carol", "David", "Eve")),
        Job("groceries", 1, ("Eve",)),
    )
    return EventDefinition(
        name="Apartment 4B chores",
        teammates=teammates,
        jobs=jobs,
        start_date=start_date,
        end_date=start_date + timedelta(days=days - 1),
        alert=Alert.ONE_HOUR,
    )


def _load_json(path: str) -> dict:
    try:
        return json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise PayloadError(f"{path} is not valid JSON: {exc}") from exc


def _default_seed() -> int:
    value = os.getenv(SEED_ENV, "0")
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", SEED_ENV, value)
        return 0


def _validated_event(path: str) -> Optional[EventDefinition]:
    """Load and validate an event file, printing every problem found."""
    event = EventDefinition.from_dict(_load_json(path))
    result = EventValidator().validate(event)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if not result.is_valid:
        print(f"Validation: FAILED ({len(result.errors)} errors)", file=sys.stderr)
        for error in result.errors:
            print(f"    - {error}", file=sys.stderr)
        return None
    return result.event


def _build_scheduler(args: argparse.Namespace) -> Scheduler:
    config = SchedulerConfig(
        seed=args.seed,
        solver_type=SolverType(args.solver),
        solver_config=SolverConfig(deterministic_time_limit=args.time_limit),
    )
    return Scheduler(config)


def _print_plan(event: EventDefinition, plan: SchedulePlan, stats: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(plan.to_dict(), indent=2))
        return
    print(PlanFormatter().format_plan(event, plan))
    print(f"\nTotal assignments: {stats['total_assignments']}")


def run_describe(args: argparse.Namespace) -> int:
    event = _validated_event(args.event)
    if event is None:
        return EXIT_INVALID_INPUT
    print(PlanFormatter().describe(event))
    return EXIT_OK


def run_schedule(args: argparse.Namespace) -> int:
    event = _validated_event(args.event)
    if event is None:
        return EXIT_INVALID_INPUT

    scheduler = _build_scheduler(args)
    plan, stats = scheduler.generate_plan_with_stats(event)
    _print_plan(event, plan, stats, args.json)

    if args.output:
        PDFGenerator().generate(event, plan, args.output)
        print(f"PDF written to {args.output}", file=sys.stderr)
    return EXIT_OK


def run_verify(args: argparse.Namespace) -> int:
    event = _validated_event(args.event)
    if event is None:
        return EXIT_INVALID_INPUT

    plan = SchedulePlan.from_dict(_load_json(args.plan))
    # The plan records its seed and solver; only the CP-SAT budget comes from flags.
    scheduler = Scheduler(
        SchedulerConfig(solver_config=SolverConfig(deterministic_time_limit=args.time_limit))
    )
    summary = f"seed {plan.seed}, solver {plan.solver}"
    if scheduler.verify_plan(event, plan):
        print(f"Plan matches regeneration with {summary}")
        return EXIT_OK
    print(f"Plan differs from regeneration with {summary}")
    return EXIT_FAILURE


def run_demo(args: argparse.Namespace) -> int:
    event = create_sample_event(args.days)
    print(PlanFormatter().describe(event))
    print()

    scheduler = _build_scheduler(args)
    plan, stats = scheduler.generate_plan_with_stats(event)
    _print_plan(event, plan, stats, args.json)

    if args.output:
        PDFGenerator().generate(event, plan, args.output)
        print(f"PDF written to {args.output}", file=sys.stderr)
    return EXIT_OK


def _add_time_limit_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--time-limit", "-t",
        type=float,
        default=10.0,
        help="CP-SAT deterministic time budget (default: 10)",
    )


def _add_solver_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=_default_seed(),
        help=f"Tie-break seed (default: ${SEED_ENV} or 0)",
    )
    parser.add_argument(
        "--solver",
        type=str,
        default=SolverType.ROUND_ROBIN.value,
        choices=[t.value for t in SolverType],
        help="Solver: round_robin (default), cpsat, hybrid",
    )
    _add_time_limit_argument(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chorewheel",
        description="chorewheel - fair recurring chore scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s describe event.json              Print the event description
  %(prog)s schedule event.json --seed 7     Print the day-by-day plan
  %(prog)s schedule event.json --json       Print the plan as JSON
  %(prog)s schedule event.json -o plan.pdf  Also write a PDF calendar
  %(prog)s verify event.json plan.json      Check a stored plan
  %(prog)s demo --days 14                   Run the built-in example
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    describe_parser = subparsers.add_parser("describe", help="Describe an event")
    describe_parser.add_argument("event", help="Event JSON file")

    schedule_parser = subparsers.add_parser("schedule", help="Generate a plan")
    schedule_parser.add_argument("event", help="Event JSON file")
    _add_solver_arguments(schedule_parser)
    schedule_parser.add_argument("--json", action="store_true", help="Print plan as JSON")
    schedule_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")

    verify_parser = subparsers.add_parser(
        "verify", help="Check a stored plan against a regeneration"
    )
    verify_parser.add_argument("event", help="Event JSON file")
    verify_parser.add_argument("plan", help="Plan JSON file (from schedule --json)")
    _add_time_limit_argument(verify_parser)

    demo_parser = subparsers.add_parser("demo", help="Run the built-in example")
    demo_parser.add_argument(
        "--days", "-d",
        type=int,
        default=7,
        help="Number of days to schedule (default: 7)",
    )
    _add_solver_arguments(demo_parser)
    demo_parser.add_argument("--json", action="store_true", help="Print plan as JSON")
    demo_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    commands = {
        "describe": run_describe,
        "schedule": run_schedule,
        "verify": run_verify,
        "demo": run_demo,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return EXIT_FAILURE

    try:
        return command(args)
    except (PayloadError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except SchedulingError as exc:
        logger.exception("Scheduling failed")
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
