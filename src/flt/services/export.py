"""
Export service for writing progression state to JSON/JSONL.

JSON nests each category as its display tree; JSONL flattens to one task
per line.
"""

import json

from flt.models import ProgressionState, Task, TreeNode
from flt.services.gate_service import completed_count, total_count
from flt.services.tree_service import build_tree


def export_state(state: ProgressionState, format: str = "json") -> str:
    """
    Export progression state to JSON or JSONL.

    Args:
        state: State to export
        format: Output format (json or jsonl)

    Returns:
        Serialized state as string

    Raises:
        ValueError: If format is unknown
    """
    if format == "json":
        data = {
            "track": state.track.value if state.track else None,
            "categories": [
                export_category(name, tasks) for name, tasks in state.categories.items()
            ],
        }
        return json.dumps(data, indent=2)
    elif format == "jsonl":
        lines = []
        for task in state.iter_tasks():
            lines.append(json.dumps({"type": "task", **task.model_dump(mode="json")}))
        return "\n".join(lines)
    else:
        raise ValueError(f"Unknown format: {format}. Use 'json' or 'jsonl'")


def export_category(name: str, tasks: list[Task]) -> dict:
    """
    Export one category with its tasks nested by display parent.

    Returns:
        Nested dict structure
    """
    by_id = {task.id: task for task in tasks}
    return {
        "name": name,
        "completed": completed_count(tasks),
        "total": total_count(tasks),
        "tasks": [export_node(node, by_id) for node in build_tree(tasks)],
    }


def export_node(node: TreeNode, by_id: dict[int, Task]) -> dict:
    """Export a tree node and its children recursively."""
    task = by_id[node.task_id]
    data = {
        "id": task.id,
        "title": task.name,
        "description": task.description,
        "points": task.points,
        "urgency": task.urgency,
        "completed": task.completed,
    }

    # Dependencies are exported as titles for readability. Ids outside this
    # category are kept as ids.
    if task.dependencies:
        data["dependencies"] = [
            by_id[dep].name if dep in by_id else dep for dep in task.dependencies
        ]

    if node.children:
        data["subtasks"] = [export_node(child, by_id) for child in node.children]

    return data
