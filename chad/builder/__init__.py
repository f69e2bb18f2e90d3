# ==============================================================================
# Session Builder Pipeline
# ==============================================================================
"""
The windowed session builder: aggregate writer, per-tick cycle and scheduler.
"""

from chad.builder.cycle import CycleResult, SessionCycle
from chad.builder.scheduler import SchedulerState, TickScheduler
from chad.builder.writer import AggregateWriter

__all__ = [
    "AggregateWriter",
    "CycleResult",
    "SchedulerState",
    "SessionCycle",
    "TickScheduler",
]
