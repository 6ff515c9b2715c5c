"""
Task content generation for the Fund Launch Tracker.

Turns the static catalog of category templates into concrete tasks:
sequential ids from a per-category base, a default chain of dependencies
(each entry depends on the previous one unless the template overrides
it), urgency by position, and points with a small random bonus.

The random source is injectable so tests can pin the bonus. Points are
informational only and never reach the unlock rules.
"""

import json
import logging
import random
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from flt.exceptions import TemplateError
from flt.models import Category, ProgressionState, Task, TaskTemplate, Track

logger = logging.getLogger(__name__)

BASE_POINTS = 10
POINTS_PER_POSITION = 5
MAX_POINTS_BONUS = 5

DEFAULT_CATALOG = "fund_launch.json"


# ============================================================================
# Catalog Models
# ============================================================================


class CategoryTemplate(BaseModel):
    """Ordered template of one category, with its id range."""

    name: str = Field(..., min_length=1)
    base_id: int = Field(..., ge=1)
    entries: list[TaskTemplate] = Field(default_factory=list)
    seed_first_completed: bool = False

    @property
    def id_range(self) -> range:
        return range(self.base_id, self.base_id + len(self.entries))


class Catalog(BaseModel):
    """
    Every category the generator can produce.

    The gating category and the fixed categories are always generated;
    exactly one entry of ``tracks`` is added when a track is chosen.
    """

    gating: CategoryTemplate
    fixed: list[CategoryTemplate] = Field(default_factory=list)
    tracks: dict[Track, list[CategoryTemplate]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_ranges(self) -> "Catalog":
        templates = self.all_templates()

        names = [t.name for t in [self.gating, *self.fixed]]
        for track_templates in self.tracks.values():
            track_names = [t.name for t in track_templates]
            if len(set(track_names)) != len(track_names):
                raise ValueError(f"Duplicate category name in track: {track_names}")
            clash = set(track_names) & set(names)
            if clash:
                raise ValueError(f"Track categories clash with fixed categories: {sorted(clash)}")

        # Tracks are exclusive, but id ranges are checked across all of them
        # so a persisted id never changes meaning when the track changes.
        spans = sorted(
            ((t.id_range, t.name) for t in templates if t.entries),
            key=lambda span: span[0].start,
        )
        reach: tuple[range, str] | None = None
        for span, name in spans:
            if reach is not None and span.start < reach[0].stop:
                raise ValueError(
                    f"Id range of {name!r} ({span.start}-{span.stop - 1}) overlaps "
                    f"{reach[1]!r} ({reach[0].start}-{reach[0].stop - 1})"
                )
            if reach is None or span.stop > reach[0].stop:
                reach = (span, name)
        return self

    def all_templates(self) -> list[CategoryTemplate]:
        templates = [self.gating, *self.fixed]
        for track_templates in self.tracks.values():
            templates.extend(track_templates)
        return templates

    def templates_for(self, track: Track | None) -> list[CategoryTemplate]:
        """Templates generated for a track, in state order."""
        templates = [self.gating, *self.fixed]
        if track is not None:
            templates.extend(self.tracks.get(track, []))
        return templates

    def category_names(self) -> set[str]:
        return {t.name for t in self.all_templates()}

    @property
    def gating_category(self) -> str:
        return self.gating.name


def load_catalog(path: Path | str | None = None) -> Catalog:
    """
    Load a catalog from a JSON file.

    Args:
        path: Catalog file; None loads the bundled fund launch catalog

    Returns:
        Validated catalog

    Raises:
        TemplateError: If the file is not a valid catalog
        FileNotFoundError: If the file doesn't exist
    """
    if path is None:
        raw = resources.files("flt").joinpath("data", DEFAULT_CATALOG).read_text(encoding="utf-8")
    else:
        with open(path, encoding="utf-8") as f:
            raw = f.read()

    try:
        catalog = Catalog.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise TemplateError(f"Invalid catalog {path or DEFAULT_CATALOG}: {e}") from e

    if path is None:
        check_builtin_categories(catalog)
    return catalog


def check_builtin_categories(catalog: Catalog) -> None:
    """
    Check that a catalog uses the built-in category names.

    The gating category must be ``initial-tasks`` and every category must be
    a ``Category`` member.

    Raises:
        TemplateError: If a name is not a built-in category
    """
    if catalog.gating_category != Category.INITIAL_TASKS:
        raise TemplateError(
            f"Gating category must be {Category.INITIAL_TASKS.value!r}, "
            f"got {catalog.gating_category!r}"
        )
    unknown = catalog.category_names() - {c.value for c in Category}
    if unknown:
        raise TemplateError(f"Unknown built-in categories: {sorted(unknown)}")


# ============================================================================
# Generator
# ============================================================================


class TaskGenerator:
    """Produces fresh progression state from a catalog."""

    def __init__(self, catalog: Catalog | None = None, rng: random.Random | None = None):
        self.catalog = catalog if catalog is not None else load_catalog()
        self.rng = rng if rng is not None else random.Random()

    @property
    def gating_category(self) -> str:
        return self.catalog.gating_category

    def generate(self, track: Track | None = None) -> ProgressionState:
        """
        Generate the full progression state for a track.

        Args:
            track: Chosen track, or None for the gating and fixed categories only

        Returns:
            Fresh progression state

        Raises:
            TemplateError: If a template references a task id outside the universe
        """
        categories = {
            template.name: self._build(template) for template in self.catalog.templates_for(track)
        }
        known_ids = {task.id for tasks in categories.values() for task in tasks}
        for tasks in categories.values():
            self._check_dependencies(tasks, known_ids)

        logger.debug("Generated %d categories for track %s", len(categories), track)
        return ProgressionState(track=track, categories=categories)

    def generate_category(self, category: str, track: Track | None = None) -> list[Task] | None:
        """
        Generate a single category as it would appear under a track.

        Returns:
            Fresh tasks, or None if the category is not generated for that track
        """
        for template in self.catalog.templates_for(track):
            if template.name == category:
                return self._build(template)
        return None

    def _build(self, template: CategoryTemplate) -> list[Task]:
        tasks = []
        for index, entry in enumerate(template.entries):
            task_id = template.base_id + index
            previous = task_id - 1 if index > 0 else None

            if entry.dependencies is not None:
                dependencies = list(entry.dependencies)
            else:
                dependencies = [previous] if previous is not None else []

            tasks.append(
                Task(
                    id=task_id,
                    name=entry.name,
                    description=entry.description,
                    points=self._points(index),
                    urgency=index + 1,
                    dependencies=dependencies,
                    parent_id=previous,
                    completed=template.seed_first_completed and index == 0,
                    category=template.name,
                    action_type=entry.action_type,
                    dialog_config=entry.dialog_config,
                    route=entry.route,
                    tooltip=entry.tooltip,
                )
            )
        return tasks

    def _points(self, index: int) -> int:
        base = BASE_POINTS + POINTS_PER_POSITION * index
        return base + self.rng.randint(0, MAX_POINTS_BONUS)

    @staticmethod
    def _check_dependencies(tasks: list[Task], known_ids: set[int]) -> None:
        for task in tasks:
            missing = [dep for dep in task.dependencies if dep not in known_ids]
            if missing:
                raise TemplateError(
                    f"Task {task.id} ({task.name!r}) depends on unknown task ids {missing}"
                )
