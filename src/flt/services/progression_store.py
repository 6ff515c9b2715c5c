"""
Progression store for the Fund Launch Tracker.

Owns the authoritative progression state and is its only writer. Callers
mutate state through complete_task / reset_category / initialize and read
deep copies through the accessors, so nothing outside the store ever holds
a reference to live tasks.

State machine:
    Uninitialized --start()/initialize()--> Ready --initialize()--> Ready

Until the store is Ready, mutations are no-ops and reads return empty
results. No operation raises for an unknown task id or category name;
those are ignored.

Mutations run under a lock and swap whole category lists, so a reader never
observes a partially updated category.
"""

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from flt.models import ProgressionState, Task, Track, TreeNode
from flt.services import gate_service, tree_service, unlock_service
from flt.services.generator import TaskGenerator
from flt.services.persistence import ProgressPersistence
from flt.services.unlock_service import TaskRef

logger = logging.getLogger(__name__)


class ProgressionStore:
    """Mutable progression state with optional persistence."""

    def __init__(
        self,
        generator: TaskGenerator,
        persistence: ProgressPersistence | None = None,
    ):
        self.generator = generator
        self.persistence = persistence
        self._state: ProgressionState | None = None
        self._lock = threading.RLock()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def is_ready(self) -> bool:
        return self._state is not None

    @property
    def gating_category(self) -> str:
        return self.generator.gating_category

    @property
    def track(self) -> Track | None:
        with self._lock:
            return self._state.track if self._state is not None else None

    def start(self) -> "ProgressionStore":
        """
        Rehydrate saved progress, or generate fresh state if there is none.

        Saved state is ignored when it cannot be read or differs
        from what the catalog generates for its track (missing or extra
        categories, ids outside a category's range). It is then regenerated
        for the saved track.

        Returns:
            self, for chaining
        """
        with self._lock:
            restored = self._load()
            if restored is not None and self._fits_catalog(restored):
                self._state = restored
                logger.info(
                    "Restored progress: %d tasks, track=%s",
                    sum(len(t) for t in restored.categories.values()),
                    restored.track,
                )
                return self

            if restored is not None:
                logger.warning("Saved progress does not match the catalog; regenerating")
            self.initialize(restored.track if restored is not None else None)
            return self

    def initialize(self, track: Track | str | None = None) -> None:
        """
        Regenerate the whole state for a track, replacing whatever was there.

        Args:
            track: Track to generate, or None for the gating and fixed categories

        Raises:
            UnknownTrackError: If a track name matches no track
        """
        track = Track.parse(track)
        state = self.generator.generate(track)
        with self._lock:
            self._state = state
            self._persist()
        logger.info("Initialized progression for track=%s", track)

    # ========================================================================
    # Mutations
    # ========================================================================

    def complete_task(self, task_id: int) -> None:
        """
        Mark a task completed.

        Categories are searched in state order and the first match wins.
        Completing never cascades to other tasks. Unknown ids and tasks that
        are already completed leave the state untouched.
        """
        with self._lock:
            if self._state is None:
                logger.debug("complete_task(%s) ignored: store not initialized", task_id)
                return

            found = self._state.locate(task_id)
            if found is None:
                logger.debug("complete_task(%s) ignored: no such task", task_id)
                return

            category, index = found
            tasks = self._state.categories[category]
            if tasks[index].completed:
                return

            updated = list(tasks)
            updated[index] = tasks[index].model_copy(update={"completed": True})
            self._state.categories[category] = updated
            self._persist()
            logger.debug("Completed task %s in %s", task_id, category)

    def reset_category(self, category: str | None = None) -> None:
        """
        Regenerate one category, or everything.

        Args:
            category: Category to regenerate with the current track; None
                regenerates the whole state. Unknown names are ignored.
        """
        with self._lock:
            if self._state is None:
                logger.debug("reset_category(%s) ignored: store not initialized", category)
                return

            track = self._state.track
            if category is None:
                self._state = self.generator.generate(track)
                self._persist()
                logger.info("Reset all categories for track=%s", track)
                return

            if category not in self._state.categories:
                logger.debug("reset_category(%s) ignored: no such category", category)
                return

            fresh = self.generator.generate_category(category, track)
            if fresh is None:
                return
            self._state.categories[category] = fresh
            self._persist()
            logger.info("Reset category %s", category)

    # ========================================================================
    # Read Accessors
    # ========================================================================

    @property
    def state(self) -> ProgressionState | None:
        """Deep copy of the current state (None until initialized)."""
        with self._lock:
            return self._state.model_copy(deep=True) if self._state is not None else None

    def categories(self) -> list[str]:
        with self._lock:
            return list(self._state.categories) if self._state is not None else []

    def get_tasks_for(self, category: str) -> list[Task]:
        """Tasks of one category; empty for unknown categories."""
        with self._lock:
            if self._state is None:
                return []
            return [t.model_copy(deep=True) for t in self._state.categories.get(category, [])]

    def get_all_tasks(self) -> list[Task]:
        with self._lock:
            if self._state is None:
                return []
            return [t.model_copy(deep=True) for t in self._state.iter_tasks()]

    def get_task(self, task_id: int) -> Task | None:
        with self._lock:
            if self._state is None:
                return None
            found = self._state.locate(task_id)
            if found is None:
                return None
            category, index = found
            return self._state.categories[category][index].model_copy(deep=True)

    def is_gate_complete(self) -> bool:
        return gate_service.is_category_complete(self.get_tasks_for(self.gating_category))

    def is_category_complete(self, category: str) -> bool:
        return gate_service.is_category_complete(self.get_tasks_for(category))

    def is_unlocked(self, task: TaskRef) -> bool:
        """Apply the gate and dependency rules against the whole state."""
        with self._lock:
            scope = self.get_all_tasks()
            gate_complete = self.is_gate_complete()
        return unlock_service.is_unlocked(
            task,
            scope,
            gating_category=self.gating_category,
            gate_complete=gate_complete,
        )

    def get_blocking_tasks(self, task: TaskRef) -> list[Task]:
        """Incomplete dependencies of a task, resolved against the whole state."""
        return unlock_service.get_blocking_tasks(task, self.get_all_tasks())

    def get_ready_tasks(self, category: str | None = None, limit: int | None = None) -> list[Task]:
        """
        Tasks that can be completed right now.

        Args:
            category: Restrict results to one category (dependencies are still
                resolved against the whole state)
            limit: Maximum results
        """
        with self._lock:
            scope = self.get_all_tasks()
            gate_complete = self.is_gate_complete()
        ready = unlock_service.get_ready_tasks(
            scope, gating_category=self.gating_category, gate_complete=gate_complete
        )
        if category is not None:
            ready = [t for t in ready if t.category == category]
        return ready if limit is None else ready[:limit]

    def build_tree(self, category: str) -> list[TreeNode]:
        return tree_service.build_tree(self.get_tasks_for(category))

    # ========================================================================
    # Internals
    # ========================================================================

    def _fits_catalog(self, state: ProgressionState) -> bool:
        """Saved state must have exactly the categories and ids its track generates."""
        templates = self.generator.catalog.templates_for(state.track)
        if list(state.categories) != [t.name for t in templates]:
            return False
        return all(
            [task.id for task in state.categories[template.name]] == list(template.id_range)
            for template in templates
        )

    def _load(self) -> ProgressionState | None:
        if self.persistence is None:
            return None
        try:
            return self.persistence.load()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Could not read saved progress: %s", e)
            return None

    def _persist(self) -> None:
        """Save the current state. A failed write is logged and the in-memory state kept."""
        if self.persistence is None or self._state is None:
            return
        try:
            self.persistence.save(self._state)
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Could not save progress: %s", e)
