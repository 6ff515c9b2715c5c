"""
Pytest configuration and fixtures for the Fund Launch Tracker tests.
"""

import random
from collections.abc import Callable, Iterator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from flt.db import close_engine, create_db_engine, init_db
from flt.models import Task, TaskTemplate, Track
from flt.services.generator import Catalog, CategoryTemplate, TaskGenerator, load_catalog
from flt.services.persistence import MemoryKeyValueStore, ProgressPersistence
from flt.services.progression_store import ProgressionStore
from flt.settings import clear_settings_cache


def entries(*names: str) -> list[TaskTemplate]:
    return [TaskTemplate(name=name, description=f"{name} description") for name in names]


@pytest.fixture
def rng() -> random.Random:
    """Random source pinned so point bonuses are repeatable."""
    return random.Random(1234)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for hand-built tasks."""

    def _make(
        task_id: int,
        dependencies: list[int] | None = None,
        *,
        parent_id: int | None = None,
        urgency: int = 1,
        completed: bool = False,
        category: str = "main",
    ) -> Task:
        return Task(
            id=task_id,
            name=f"Task {task_id}",
            dependencies=dependencies or [],
            parent_id=parent_id,
            urgency=urgency,
            completed=completed,
            category=category,
        )

    return _make


# ============================================================================
# Catalogs
# ============================================================================


@pytest.fixture
def chain_catalog() -> Catalog:
    """One ungated category: a linear chain 101 -> 102 -> 103."""
    return Catalog(
        gating=CategoryTemplate(name="chain", base_id=101, entries=entries("A", "B", "C"))
    )


@pytest.fixture
def gated_catalog() -> Catalog:
    """Gate (2 tasks, first seeded completed) in front of a one-task main category."""
    return Catalog(
        gating=CategoryTemplate(
            name="gate", base_id=1, entries=entries("Welcome", "Profile"), seed_first_completed=True
        ),
        fixed=[CategoryTemplate(name="main", base_id=101, entries=entries("Start"))],
    )


@pytest.fixture
def track_catalog() -> Catalog:
    """Gate plus two mutually exclusive tracks."""
    return Catalog(
        gating=CategoryTemplate(
            name="gate", base_id=1, entries=entries("Pick", "Confirm"), seed_first_completed=True
        ),
        tracks={
            Track.SFR: [
                CategoryTemplate(name="sfr", base_id=101, entries=entries("S1", "S2", "S3"))
            ],
            Track.COMMERCIAL: [
                CategoryTemplate(name="commercial", base_id=201, entries=entries("C1", "C2"))
            ],
        },
    )


@pytest.fixture
def fund_catalog() -> Catalog:
    """The bundled fund launch catalog."""
    return load_catalog()


# ============================================================================
# Stores
# ============================================================================


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def persistence(kv_store) -> ProgressPersistence:
    return ProgressPersistence(kv_store)


@pytest.fixture
def store_factory(rng, persistence) -> Callable[[Catalog], ProgressionStore]:
    """Build a started store over a catalog, sharing one persistence slot."""

    def _make(catalog: Catalog) -> ProgressionStore:
        return ProgressionStore(TaskGenerator(catalog, rng=rng), persistence).start()

    return _make


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'flt.db'}"


@pytest.fixture
def session_factory(database_url) -> Iterator[sessionmaker[Session]]:
    """Session factory over a fresh file-backed SQLite database."""
    engine = create_db_engine(database_url)
    init_db(engine)
    yield sessionmaker(engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def cli_env(monkeypatch, database_url) -> Iterator[str]:
    """Point the CLI at a throwaway database."""
    monkeypatch.setenv("FLT_DATABASE_URL", database_url)
    monkeypatch.setenv("FLT_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("FLT_DEFAULT_TRACK", raising=False)
    clear_settings_cache()
    close_engine()
    yield database_url
    close_engine()
    clear_settings_cache()
