"""
Tests for progress persistence and the key-value backends.
"""

import json

import pytest

from flt.db import get_session
from flt.models import ActionType, DialogConfig, KeyValueSlotModel, ProgressionState, Task, Track
from flt.services.generator import TaskGenerator
from flt.services.persistence import (
    MemoryKeyValueStore,
    ProgressPersistence,
    SqlKeyValueStore,
    deserialize_state,
    serialize_state,
)


@pytest.fixture
def sample_state(track_catalog, rng) -> ProgressionState:
    return TaskGenerator(track_catalog, rng=rng).generate(Track.SFR)


# ============================================================================
# Serialization
# ============================================================================


def test_serialized_state_is_object_of_task_arrays(sample_state):
    payload = json.loads(serialize_state(sample_state))

    assert payload["track"] == "sfr"
    assert list(payload["categories"]) == ["gate", "sfr"]
    first = payload["categories"]["gate"][0]
    assert first["id"] == 1
    assert first["completed"] is True
    assert first["category"] == "gate"


def test_round_trip_preserves_state(sample_state):
    assert deserialize_state(serialize_state(sample_state)) == sample_state


def test_round_trip_preserves_dialog_config():
    task = Task(
        id=1,
        name="Basics",
        category="gate",
        action_type=ActionType.DIALOG,
        dialog_config=DialogConfig(title="Basics", submit_label="Save"),
    )
    state = ProgressionState(categories={"gate": [task]})

    restored = deserialize_state(serialize_state(state))

    assert restored.categories["gate"][0].dialog_config.submit_label == "Save"


def test_accepts_camel_case_records():
    raw = json.dumps(
        {
            "track": None,
            "categories": {
                "gate": [
                    {"id": 1, "label": "Welcome", "category": "gate"},
                    {"id": 2, "label": "Next", "parentId": 1, "category": "gate"},
                ]
            },
        }
    )

    state = deserialize_state(raw)

    assert state.categories["gate"][1].parent_id == 1
    assert state.categories["gate"][1].name == "Next"


# ============================================================================
# ProgressPersistence
# ============================================================================


def test_load_empty_slot_returns_none(persistence):
    assert persistence.load() is None


def test_save_then_load(persistence, kv_store, sample_state):
    persistence.save(sample_state)

    assert "tasks" in kv_store.data
    assert persistence.load() == sample_state


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        '{"categories": {"gate": [{"id": "x"}]}}',
        '{"categories": {"gate": [{"id": 1, "name": "A", "category": "other"}]}}',
        '{"track": "hedge", "categories": {}}',
    ],
)
def test_corrupt_payload_is_discarded(kv_store, payload):
    kv_store.set("tasks", payload)

    assert ProgressPersistence(kv_store).load() is None


def test_clear_keeps_onboarding_flag(persistence, kv_store, sample_state):
    persistence.save(sample_state)
    persistence.mark_onboarding_complete()

    persistence.clear()

    assert persistence.load() is None
    assert persistence.has_completed_onboarding()


def test_onboarding_flag(persistence, kv_store):
    assert not persistence.has_completed_onboarding()

    persistence.mark_onboarding_complete()

    assert persistence.has_completed_onboarding()
    assert kv_store.get("hasCompletedOnboarding") == "true"


def test_onboarding_flag_only_true_for_literal_true():
    store = MemoryKeyValueStore({"hasCompletedOnboarding": "yes"})

    assert not ProgressPersistence(store).has_completed_onboarding()


def test_custom_keys(kv_store, sample_state):
    persistence = ProgressPersistence(kv_store, state_key="progress", onboarding_key="seen")

    persistence.save(sample_state)
    persistence.mark_onboarding_complete()

    assert set(kv_store.data) == {"progress", "seen"}


# ============================================================================
# SqlKeyValueStore
# ============================================================================


def test_sql_store_get_set_delete(session_factory):
    store = SqlKeyValueStore(session_factory)

    assert store.get("tasks") is None

    store.set("tasks", "one")
    assert store.get("tasks") == "one"

    store.set("tasks", "two")
    assert store.get("tasks") == "two"

    store.delete("tasks")
    assert store.get("tasks") is None


def test_sql_store_delete_missing_key(session_factory):
    SqlKeyValueStore(session_factory).delete("missing")


def test_sql_store_persists_across_instances(session_factory, sample_state):
    ProgressPersistence(SqlKeyValueStore(session_factory)).save(sample_state)

    restored = ProgressPersistence(SqlKeyValueStore(session_factory)).load()

    assert restored == sample_state


def test_sql_store_records_timestamps(session_factory):
    SqlKeyValueStore(session_factory).set("tasks", "one")

    with get_session(session_factory) as session:
        slot = session.get(KeyValueSlotModel, "tasks")
        assert slot.created_at is not None
        assert slot.updated_at is not None


def test_session_scope_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        with get_session(session_factory) as session:
            session.add(KeyValueSlotModel(key="tasks", value="partial"))
            session.flush()
            raise RuntimeError("boom")

    assert SqlKeyValueStore(session_factory).get("tasks") is None


def test_session_scope_commits(session_factory):
    with get_session(session_factory) as session:
        session.add(KeyValueSlotModel(key="seen", value="true"))

    assert SqlKeyValueStore(session_factory).get("seen") == "true"
