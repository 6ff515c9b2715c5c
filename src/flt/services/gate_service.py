"""
Category-level completion for the Fund Launch Tracker.

The gating category unlocks every other category once all of its tasks
are completed. The counters here also feed the score displays, which must
handle an empty category (0 of 0) without dividing by zero.
"""

from collections.abc import Iterable

from flt.models import Task


def is_category_complete(tasks: Iterable[Task]) -> bool:
    """True if every task is completed. An empty category is complete."""
    return all(task.completed for task in tasks)


def completed_count(tasks: Iterable[Task]) -> int:
    return sum(1 for task in tasks if task.completed)


def total_count(tasks: Iterable[Task]) -> int:
    return sum(1 for _ in tasks)


def completion_percent(tasks: Iterable[Task]) -> int:
    """
    Completed share as a whole percentage, rounded down.

    Returns 0 for an empty category rather than failing on 0/0.
    """
    tasks = list(tasks)
    total = total_count(tasks)
    if total == 0:
        return 0
    return completed_count(tasks) * 100 // total
