"""
Fund Launch Tracker Models.

Exports all Pydantic and SQLAlchemy models for easy importing.
"""

# Storage
from .kv_slot import Base, KeyValueSlotModel, TimestampMixin

# Progression state
from .state import Category, ProgressionState, Track

# Task
from .task import (
    ActionType,
    DialogConfig,
    FieldType,
    FormField,
    Task,
    TaskTemplate,
    TreeNode,
)

__all__ = [
    "ActionType",
    "Base",
    "Category",
    "DialogConfig",
    "FieldType",
    "FormField",
    "KeyValueSlotModel",
    "ProgressionState",
    "Task",
    "TaskTemplate",
    "TimestampMixin",
    "Track",
    "TreeNode",
]
