"""
Tests for the unlock rules.
"""

from flt.models import TreeNode
from flt.services.unlock_service import (
    get_blocking_tasks,
    get_ready_tasks,
    is_unlocked,
    resolve_task,
)

# ============================================================================
# Dependency satisfaction
# ============================================================================


def test_root_task_is_unlocked(make_task):
    """A task without dependencies is always unlocked by its own rules."""
    root = make_task(1)
    assert is_unlocked(root, [root])


def test_unlocked_when_all_dependencies_completed(make_task):
    a = make_task(1, completed=True)
    b = make_task(2, completed=True)
    c = make_task(3, [1, 2])

    assert is_unlocked(c, [a, b, c])


def test_locked_when_any_dependency_incomplete(make_task):
    a = make_task(1, completed=True)
    b = make_task(2)
    c = make_task(3, [1, 2])

    assert not is_unlocked(c, [a, b, c])


def test_missing_dependency_fails_closed(make_task):
    """A dependency id that is not in scope counts as not completed."""
    a = make_task(1, completed=True)
    c = make_task(3, [1, 999])

    assert not is_unlocked(c, [a, c])


def test_own_completion_does_not_matter(make_task):
    """Unlock state depends on dependencies only, not the task's own flag."""
    a = make_task(1)
    b = make_task(2, [1], completed=True)

    assert not is_unlocked(b, [a, b])


# ============================================================================
# References
# ============================================================================


def test_tree_node_and_id_references_resolve(make_task):
    a = make_task(1, completed=True)
    b = make_task(2, [1])
    scope = [a, b]

    assert is_unlocked(TreeNode(task_id=2), scope)
    assert is_unlocked(2, scope)


def test_unresolvable_reference_is_locked(make_task):
    scope = [make_task(1)]

    assert not is_unlocked(42, scope)
    assert not is_unlocked(TreeNode(task_id=42), scope)
    assert resolve_task(42, scope) is None


def test_accepts_generator_scope(make_task):
    """Scope may be any iterable, consumed once."""
    a = make_task(1, completed=True)
    b = make_task(2, [1])

    assert is_unlocked(b, (t for t in [a, b]))


# ============================================================================
# Category gate
# ============================================================================


def test_gate_blocks_tasks_outside_gating_category(make_task):
    """An incomplete gate locks other categories regardless of dependencies."""
    gate_task = make_task(1, category="gate")
    root = make_task(101, category="main")

    assert not is_unlocked(root, [gate_task, root], gating_category="gate", gate_complete=False)


def test_gate_does_not_block_its_own_tasks(make_task):
    gate_root = make_task(1, category="gate")
    gate_next = make_task(2, [1], category="gate")
    scope = [gate_root, gate_next]

    assert is_unlocked(gate_root, scope, gating_category="gate", gate_complete=False)
    assert not is_unlocked(gate_next, scope, gating_category="gate", gate_complete=False)


def test_gate_checked_before_dependencies(make_task):
    """A task whose dependencies are all done is still locked behind the gate."""
    dep = make_task(101, completed=True, category="main")
    task = make_task(102, [101], category="main")

    assert not is_unlocked(task, [dep, task], gating_category="gate", gate_complete=False)
    assert is_unlocked(task, [dep, task], gating_category="gate", gate_complete=True)


def test_satisfied_gate_falls_through_to_dependencies(make_task):
    dep = make_task(101, category="main")
    task = make_task(102, [101], category="main")

    assert not is_unlocked(task, [dep, task], gating_category="gate", gate_complete=True)


# ============================================================================
# Blocking and ready work
# ============================================================================


def test_get_blocking_tasks(make_task):
    a = make_task(1, completed=True)
    b = make_task(2)
    c = make_task(3, [1, 2, 999])

    blockers = get_blocking_tasks(c, [a, b, c])

    assert [t.id for t in blockers] == [2]


def test_get_blocking_tasks_unknown_reference(make_task):
    assert get_blocking_tasks(5, [make_task(1)]) == []


def test_get_ready_tasks_orders_by_urgency(make_task):
    tasks = [
        make_task(1, urgency=1),
        make_task(2, urgency=3),
        make_task(3, urgency=3),
        make_task(4, [1], urgency=9),
        make_task(5, urgency=2, completed=True),
    ]

    ready = get_ready_tasks(tasks)

    # 4 is locked, 5 is done; 2 and 3 tie and keep their order
    assert [t.id for t in ready] == [2, 3, 1]


def test_get_ready_tasks_respects_gate_and_limit(make_task):
    tasks = [
        make_task(1, category="gate", urgency=1),
        make_task(2, category="gate", urgency=2),
        make_task(101, category="main", urgency=5),
    ]

    ready = get_ready_tasks(tasks, gating_category="gate", gate_complete=False)
    assert [t.id for t in ready] == [2, 1]

    limited = get_ready_tasks(tasks, gating_category="gate", gate_complete=True, limit=1)
    assert [t.id for t in limited] == [101]
