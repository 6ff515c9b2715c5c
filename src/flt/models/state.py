"""
Progression state models for the Fund Launch Tracker.

ProgressionState is the root state object: the selected track plus the
ordered mapping of category name to that category's tasks. Category order
is meaningful; it is the search order used when completing a task by id.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from flt.exceptions import UnknownTrackError

from .task import Task


class Category(str, Enum):
    """Built-in category names."""

    INITIAL_TASKS = "initial-tasks"
    SFR = "sfr"
    COMMERCIAL = "commercial"
    SPECIALTY = "specialty"


class Track(str, Enum):
    """Mutually exclusive fund types a user picks during onboarding."""

    SFR = "sfr"
    COMMERCIAL = "commercial"
    SPECIALTY = "specialty"

    @classmethod
    def parse(cls, value: "str | Track | None") -> "Track | None":
        """
        Parse a track from user input.

        Args:
            value: Track, track value (case-insensitive), or None/empty

        Returns:
            Track, or None when no track was given

        Raises:
            UnknownTrackError: If the value names no track
        """
        if value is None or isinstance(value, Track):
            return value
        normalized = value.strip().lower()
        if not normalized:
            return None
        try:
            return cls(normalized)
        except ValueError as e:
            raise UnknownTrackError(value) from e


class ProgressionState(BaseModel):
    """All tasks across all categories, keyed by category name."""

    track: Track | None = None
    categories: dict[str, list[Task]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ProgressionState":
        seen: set[int] = set()
        for name, tasks in self.categories.items():
            for task in tasks:
                if task.category != name:
                    raise ValueError(
                        f"Task {task.id} is filed under {name!r} but belongs to {task.category!r}"
                    )
                if task.id in seen:
                    raise ValueError(f"Duplicate task id {task.id}")
                seen.add(task.id)
        return self

    def iter_tasks(self) -> Iterator[Task]:
        """Iterate every task in category order."""
        for tasks in self.categories.values():
            yield from tasks

    def all_tasks(self) -> list[Task]:
        return list(self.iter_tasks())

    def locate(self, task_id: int) -> tuple[str, int] | None:
        """
        Find a task by id.

        Returns:
            (category name, index within the category), or None if absent
        """
        for name, tasks in self.categories.items():
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    return name, index
        return None
