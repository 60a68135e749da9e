"""Scheduling engine for generating chore plans."""

from chorewheel.scheduling.cpsat_solver import (
    CPSATSolver,
    SolverConfig,
    SolverResult,
)
from chorewheel.scheduling.round_robin import (
    DeficitRoundRobinSolver,
    FairnessLedger,
    tie_break_key,
)
from chorewheel.scheduling.scheduler import (
    Scheduler,
    SchedulerConfig,
    SolverType,
    schedule,
)

__all__ = [
    # Core scheduler
    "Scheduler",
    "SchedulerConfig",
    "SolverType",
    "schedule",
    # Solvers
    "DeficitRoundRobinSolver",
    "FairnessLedger",
    "tie_break_key",
    "CPSATSolver",
    "SolverConfig",
    "SolverResult",
]
