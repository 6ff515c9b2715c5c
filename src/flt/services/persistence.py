"""
Persistence for the Fund Launch Tracker.

Progress is stored as a JSON payload in a durable key-value slot, next to
a separate first-visit onboarding flag. Stored data that cannot be parsed
is discarded (the store regenerates fresh state) rather than surfaced as
an error.
"""

import logging
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from flt.db import get_session
from flt.models import KeyValueSlotModel, ProgressionState

logger = logging.getLogger(__name__)

TRUE_FLAG = "true"


# ============================================================================
# Key-Value Backends
# ============================================================================


class KeyValueStore(Protocol):
    """Durable string slots."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local slots, used when persistence is disabled and in tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Slots backed by the kv_slots table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(self, key: str) -> str | None:
        with get_session(self.session_factory) as session:
            return session.execute(
                select(KeyValueSlotModel.value).where(KeyValueSlotModel.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with get_session(self.session_factory) as session:
            slot = session.get(KeyValueSlotModel, key)
            if slot is None:
                session.add(KeyValueSlotModel(key=key, value=value))
            else:
                slot.value = value

    def delete(self, key: str) -> None:
        with get_session(self.session_factory) as session:
            slot = session.get(KeyValueSlotModel, key)
            if slot is not None:
                session.delete(slot)


# ============================================================================
# Progress Persistence
# ============================================================================


class ProgressPersistence:
    """Saves and restores progression state and the onboarding flag."""

    def __init__(
        self,
        store: KeyValueStore,
        state_key: str = "tasks",
        onboarding_key: str = "hasCompletedOnboarding",
    ):
        self.store = store
        self.state_key = state_key
        self.onboarding_key = onboarding_key

    def save(self, state: ProgressionState) -> None:
        self.store.set(self.state_key, serialize_state(state))

    def load(self) -> ProgressionState | None:
        """
        Restore the saved state.

        Returns:
            The saved state, or None when nothing is stored or the payload
            is corrupt
        """
        raw = self.store.get(self.state_key)
        if raw is None:
            return None
        try:
            return deserialize_state(raw)
        except ValidationError as e:
            logger.warning(
                "Discarding unreadable progress in slot %r (%d errors)",
                self.state_key,
                e.error_count(),
            )
            return None

    def clear(self) -> None:
        """Drop the saved state. The onboarding flag is kept."""
        self.store.delete(self.state_key)

    def has_completed_onboarding(self) -> bool:
        return self.store.get(self.onboarding_key) == TRUE_FLAG

    def mark_onboarding_complete(self) -> None:
        self.store.set(self.onboarding_key, TRUE_FLAG)


def serialize_state(state: ProgressionState) -> str:
    """Encode state as a JSON object of arrays of task records."""
    return state.model_dump_json()


def deserialize_state(raw: str) -> ProgressionState:
    """
    Decode state produced by serialize_state.

    Raises:
        ValidationError: If the payload is not valid JSON or not a valid state
    """
    return ProgressionState.model_validate_json(raw)
