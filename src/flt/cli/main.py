"""
Main CLI entry point for the Fund Launch Tracker admin interface.

Usage:
    flt init --track sfr
    flt show sfr
    flt task complete 2
    flt status
"""

import logging
from pathlib import Path

import typer

from flt.exceptions import UnknownTrackError
from flt.models import Task, Track
from flt.services.generator import TaskGenerator, load_catalog
from flt.services.persistence import MemoryKeyValueStore, ProgressPersistence, SqlKeyValueStore
from flt.services.progression_store import ProgressionStore
from flt.settings import get_settings

# Main app
app = typer.Typer(name="flt", help="Fund Launch Tracker Admin CLI")


@app.callback()
def main():
    """Configure logging from FLT_LOG_LEVEL."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Store Helpers
# ============================================================================


def get_persistence() -> ProgressPersistence:
    """Build persistence from settings, creating tables on first use."""
    settings = get_settings()

    if settings.persistence_enabled:
        from flt.db import get_session_factory, init_db

        init_db()
        kv_store = SqlKeyValueStore(get_session_factory())
    else:
        kv_store = MemoryKeyValueStore()

    return ProgressPersistence(
        kv_store, state_key=settings.state_key, onboarding_key=settings.onboarding_key
    )


def get_store() -> ProgressionStore:
    """Build and start a store from settings."""
    settings = get_settings()
    catalog = load_catalog(settings.catalog_path or None)
    return ProgressionStore(TaskGenerator(catalog), get_persistence()).start()


def parse_track(value: str | None) -> Track | None:
    try:
        return Track.parse(value)
    except UnknownTrackError as e:
        choices = ", ".join(t.value for t in Track)
        typer.echo(f"{e}. Choose one of: {choices}")
        raise typer.Exit(1) from e


def marker(task: Task, unlocked: bool) -> str:
    if task.completed:
        return "[x]"
    return "[ ]" if unlocked else "[-]"


# ============================================================================
# Progression Commands
# ============================================================================


@app.command("init")
def init(
    track: str = typer.Option(None, "--track", "-t", help="sfr, commercial or specialty"),
):
    """Generate fresh progress for a track, replacing saved progress."""
    chosen = parse_track(track) or get_settings().default_track
    store = get_store()
    store.initialize(chosen)

    typer.echo(f"Initialized track: {chosen.value if chosen else '(none)'}")
    for category in store.categories():
        typer.echo(f"  {category}: {len(store.get_tasks_for(category))} tasks")


@app.command("reset")
def reset(
    category: str = typer.Argument(None, help="Category to reset (default: everything)"),
):
    """Regenerate one category, or all progress."""
    store = get_store()

    if category is not None and category not in store.categories():
        typer.echo(f"No category named {category!r}; nothing reset.")
        return

    store.reset_category(category)
    typer.echo(f"Reset {category or 'all categories'}")


@app.command("show")
def show(
    category: str = typer.Argument(None, help="Category to show (default: all)"),
):
    """Show the skill tree with lock and completion markers."""
    from flt.services.tree_service import iter_tree

    store = get_store()
    categories = [category] if category else store.categories()

    for name in categories:
        tasks = {task.id: task for task in store.get_tasks_for(name)}
        if not tasks:
            typer.echo(f"{name}: no tasks")
            continue

        typer.echo(f"{name}:")
        for depth, node in iter_tree(store.build_tree(name)):
            task = tasks[node.task_id]
            prefix = "  " * (depth + 1)
            typer.echo(
                f"{prefix}{marker(task, store.is_unlocked(task))} {task.id}: {task.name}"
                f" (urgency {task.urgency}, {task.points} pts)"
            )


@app.command("status")
def status():
    """Show completed/total per category."""
    from flt.services.gate_service import completed_count, completion_percent, total_count

    store = get_store()
    typer.echo(f"Track: {store.track.value if store.track else '(none)'}")

    for name in store.categories():
        tasks = store.get_tasks_for(name)
        gate = " (gate)" if name == store.gating_category else ""
        typer.echo(
            f"  {name}{gate}: {completed_count(tasks)}/{total_count(tasks)}"
            f" ({completion_percent(tasks)}%)"
        )

    if not store.is_gate_complete():
        typer.echo(f"Complete {store.gating_category} to unlock the other categories.")


@app.command("next")
def next_tasks(
    category: str = typer.Option(None, "--category", "-c", help="Restrict to a category"),
    limit: int = typer.Option(5, "--limit", "-n", help="Maximum tasks to show"),
):
    """List tasks that can be completed right now."""
    store = get_store()
    ready = store.get_ready_tasks(category=category, limit=limit)

    if not ready:
        typer.echo("No tasks ready.")
        return

    for task in ready:
        typer.echo(f"○ {task.id}: {task.name} [{task.category}]")


@app.command("export")
def export(
    output: Path = typer.Option(None, "--output", "-o", help="Output file (default: stdout)"),
    format: str = typer.Option("json", "--format", "-f", help="Format: json, jsonl"),
):
    """Export progress to JSON or JSONL."""
    from flt.services.export import export_state

    store = get_store()
    try:
        data = export_state(store.state, format=format)
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e

    if output is None:
        typer.echo(data)
        return

    with open(output, "w") as f:
        f.write(data)

    typer.echo(f"Exported to {output}")


# ============================================================================
# Task Commands
# ============================================================================

task_app = typer.Typer(help="Task management")
app.add_typer(task_app, name="task")


@task_app.command("complete")
def task_complete(task_id: int = typer.Argument(..., help="Task ID")):
    """Mark a task completed."""
    store = get_store()
    task = store.get_task(task_id)

    if task is None:
        typer.echo(f"No task {task_id}; nothing changed.")
        return

    if not store.is_unlocked(task):
        blockers = ", ".join(str(t.id) for t in store.get_blocking_tasks(task))
        detail = f" (blocked by {blockers})" if blockers else f" ({store.gating_category} first)"
        typer.echo(f"Warning: task {task_id} is locked{detail}")

    store.complete_task(task_id)
    typer.echo(f"Completed: {task_id} {task.name}")

    if task.category == store.gating_category and store.is_gate_complete():
        typer.echo(f"{store.gating_category} complete: all categories unlocked.")


@task_app.command("show")
def task_show(task_id: int = typer.Argument(..., help="Task ID")):
    """Show task details."""
    store = get_store()
    task = store.get_task(task_id)

    if task is None:
        typer.echo(f"No task {task_id}.")
        raise typer.Exit(1)

    typer.echo(f"Task: {task.id}")
    typer.echo(f"  Name: {task.name}")
    typer.echo(f"  Category: {task.category}")
    typer.echo(f"  Description: {task.description or '(none)'}")
    typer.echo(f"  Points: {task.points}  Urgency: {task.urgency}")
    typer.echo(f"  Dependencies: {', '.join(map(str, task.dependencies)) or '(none)'}")
    typer.echo(f"  Completed: {'yes' if task.completed else 'no'}")
    typer.echo(f"  Unlocked: {'yes' if store.is_unlocked(task) else 'no'}")
    typer.echo(f"  Action: {task.action_type.value}")
    if task.route:
        typer.echo(f"  Route: {task.route}")


# ============================================================================
# Onboarding Commands
# ============================================================================

onboarding_app = typer.Typer(help="First-visit onboarding flag")
app.add_typer(onboarding_app, name="onboarding")


@onboarding_app.command("status")
def onboarding_status():
    """Show whether onboarding has been completed."""
    persistence = get_persistence()
    done = persistence.has_completed_onboarding()
    typer.echo(f"Onboarding completed: {'yes' if done else 'no'}")


@onboarding_app.command("done")
def onboarding_done():
    """Record that onboarding has been completed."""
    get_persistence().mark_onboarding_complete()
    typer.echo("Onboarding marked complete")


# ============================================================================
# Database Commands
# ============================================================================

db_app = typer.Typer(help="Database operations")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init():
    """Create the database tables."""
    from flt.db import init_db

    typer.echo("Creating tables...")
    init_db()
    typer.echo("Database initialized successfully")


if __name__ == "__main__":
    app()
