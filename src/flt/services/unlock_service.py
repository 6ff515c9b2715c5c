"""
Unlock rules for the Fund Launch Tracker.

Decides whether a task is actionable, and answers the blocking and
"what should I do next?" questions built on that rule.

Two tiers, evaluated in order:
1. Category gate: outside the gating category nothing is unlocked until
   the gating category is fully complete.
2. Dependencies: every dependency id must resolve to a completed task.
   Ids that cannot be resolved count as not completed.

Everything here is a pure function over a snapshot of tasks.
"""

from collections.abc import Iterable

from flt.models import Task, TreeNode

TaskRef = Task | TreeNode | int


def _index(scope: Iterable[Task]) -> dict[int, Task]:
    return {task.id: task for task in scope}


def resolve_task(ref: TaskRef, scope: Iterable[Task]) -> Task | None:
    """
    Resolve a task reference against a scope.

    A Task is returned as-is; a TreeNode or bare id is looked up by id.

    Returns:
        The task, or None if the id is not in scope
    """
    if isinstance(ref, Task):
        return ref
    task_id = ref.task_id if isinstance(ref, TreeNode) else ref
    for task in scope:
        if task.id == task_id:
            return task
    return None


# ============================================================================
# Unlock Evaluation
# ============================================================================


def is_unlocked(
    task: TaskRef,
    scope: Iterable[Task],
    *,
    gating_category: str | None = None,
    gate_complete: bool = True,
) -> bool:
    """
    Check whether a task is currently actionable.

    Args:
        task: Task, tree node, or task id
        scope: Tasks used to resolve the reference and its dependencies
        gating_category: Name of the gating category, if gating applies
        gate_complete: Whether the gating category is fully complete

    Returns:
        True if the gate allows the task and all dependencies are completed
    """
    scope = list(scope)
    resolved = resolve_task(task, scope)
    if resolved is None:
        return False

    if (
        gating_category is not None
        and resolved.category != gating_category
        and not gate_complete
    ):
        return False

    if not resolved.dependencies:
        return True

    by_id = _index(scope)
    return all(
        dep_id in by_id and by_id[dep_id].completed for dep_id in resolved.dependencies
    )


def get_blocking_tasks(task: TaskRef, scope: Iterable[Task]) -> list[Task]:
    """
    Get dependencies that are still blocking a task.

    Only dependencies present in scope are returned; a missing dependency
    still blocks (see is_unlocked) but has no task to report.

    Args:
        task: Task, tree node, or task id
        scope: Tasks used to resolve the reference and its dependencies

    Returns:
        Incomplete dependency tasks, in dependency order
    """
    scope = list(scope)
    resolved = resolve_task(task, scope)
    if resolved is None:
        return []

    by_id = _index(scope)
    return [
        by_id[dep_id]
        for dep_id in resolved.dependencies
        if dep_id in by_id and not by_id[dep_id].completed
    ]


# ============================================================================
# Ready Work Detection
# ============================================================================


def get_ready_tasks(
    scope: Iterable[Task],
    *,
    gating_category: str | None = None,
    gate_complete: bool = True,
    limit: int | None = None,
) -> list[Task]:
    """
    Get tasks that are unlocked and not yet completed.

    Ordering: urgency descending; ties keep scope order.

    Args:
        scope: Tasks to consider (also used to resolve dependencies)
        gating_category: Name of the gating category, if gating applies
        gate_complete: Whether the gating category is fully complete
        limit: Maximum results (None = all)

    Returns:
        Ready tasks
    """
    scope = list(scope)
    ready = [
        task
        for task in scope
        if not task.completed
        and is_unlocked(
            task, scope, gating_category=gating_category, gate_complete=gate_complete
        )
    ]
    ready.sort(key=lambda t: t.urgency, reverse=True)
    return ready if limit is None else ready[:limit]
