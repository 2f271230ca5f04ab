"""Consumption budget tracking for query executions."""

from queryguard.budget.tracker import BudgetRegistry, BudgetTracker, gb_to_bytes

__all__ = [
    "BudgetTracker",
    "BudgetRegistry",
    "gb_to_bytes",
]
