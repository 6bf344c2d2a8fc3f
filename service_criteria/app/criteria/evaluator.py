"""
Strategy evaluator: pairs a strategy with the caller's context entry.
"""

from typing import Optional, Sequence

from .models import ContextEntry, Strategy, StrategyStatus
from .operators import process_operation


def find_entry(strategy: Strategy, entries: Sequence[ContextEntry]) -> Optional[ContextEntry]:
    """Return the first entry supplied for the strategy's type."""
    for entry in entries:
        if entry.strategy == strategy.strategy.value:
            return entry
    return None


def evaluate(strategy: Strategy, entries: Sequence[ContextEntry]) -> StrategyStatus:
    """Evaluate one active strategy against the context entries."""
    entry = find_entry(strategy, entries)
    if entry is None:
        return StrategyStatus.NO_INPUT

    if process_operation(strategy.strategy, strategy.operation, entry.input, strategy.values):
        return StrategyStatus.PASS
    return StrategyStatus.FAIL
