"""Round lifecycle pipelines: cycle calendar, round creation and completion."""

from peer_rounds.pipelines.cycle_calendar import (
    advance_by_period,
    beginning_of_today,
    end_of_today,
    next_compensation_cycle_start,
    round_end_time,
    round_start_time,
)
from peer_rounds.pipelines.round_scheduler import RoundScheduler
from peer_rounds.pipelines.round_completion import RoundCompletionEngine

__all__ = [
    "advance_by_period",
    "beginning_of_today",
    "end_of_today",
    "next_compensation_cycle_start",
    "round_end_time",
    "round_start_time",
    "RoundScheduler",
    "RoundCompletionEngine",
]
