"""
Display hierarchy for the skill tree.

The tree follows parent_id, which is single-valued and exists for layout
only. It is a different relation from a task's dependencies and must not
be used to decide unlock state.
"""

from collections.abc import Iterable, Iterator, Sequence

from flt.models import Task, TreeNode


def build_tree(tasks: Sequence[Task], parent_id: int | None = None) -> list[TreeNode]:
    """
    Build the display tree under a parent.

    Siblings are ordered by descending urgency. The sort is stable, so
    siblings with equal urgency keep their input order.

    Args:
        tasks: Flat snapshot of tasks
        parent_id: Parent to collect children of (None = roots)

    Returns:
        Ordered list of tree nodes with nested children
    """
    siblings = sorted(
        (task for task in tasks if task.parent_id == parent_id),
        key=lambda t: t.urgency,
        reverse=True,
    )
    return [TreeNode(task_id=task.id, children=build_tree(tasks, task.id)) for task in siblings]


def iter_tree(nodes: Iterable[TreeNode], depth: int = 0) -> Iterator[tuple[int, TreeNode]]:
    """Yield (depth, node) pairs depth-first, parents before children."""
    for node in nodes:
        yield depth, node
        yield from iter_tree(node.children, depth + 1)
