"""
Task models for the Fund Launch Tracker.

Task is the unit of progression: a node in the prerequisite graph carrying
its completion flag. The interactive metadata (action type, dialog form,
route, tooltip) is passed through for the UI layer and never consulted by
the unlock rules.
"""

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    """How the UI lets the user complete a task."""

    DIALOG = "dialog"
    NAVIGATION = "navigation"
    EXTERNAL = "external"
    DEFAULT = "default"


class FieldType(str, Enum):
    """Input widget kind for a dialog form field."""

    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    SELECT = "select"
    TEXTAREA = "textarea"


# ============================================================================
# Interactive metadata
# ============================================================================


class FormField(BaseModel):
    """One field of a dialog form."""

    name: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = True
    options: list[str] | None = None


class DialogConfig(BaseModel):
    """Form schema shown when a dialog task is opened."""

    title: str
    fields: list[FormField] = Field(default_factory=list)
    submit_label: str = Field(
        default="Submit", validation_alias=AliasChoices("submit_label", "submitLabel")
    )


# ============================================================================
# Templates and tasks
# ============================================================================


class TaskTemplate(BaseModel):
    """
    Static template entry a category's tasks are generated from.

    ``dependencies`` overrides the default single link to the previous
    entry; it holds absolute task ids from the generated universe.
    """

    name: str = Field(..., min_length=1)
    description: str = ""
    dependencies: list[int] | None = None
    action_type: ActionType = ActionType.DEFAULT
    dialog_config: DialogConfig | None = None
    route: str | None = None
    tooltip: str | None = None


class Task(BaseModel):
    """A generated task with its current completion state."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = Field(..., validation_alias=AliasChoices("name", "label"))
    description: str = ""
    points: int = Field(default=0, ge=0)
    urgency: int = 0
    dependencies: list[int] = Field(default_factory=list)
    parent_id: int | None = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parentId")
    )
    completed: bool = False
    category: str

    action_type: ActionType = Field(
        default=ActionType.DEFAULT, validation_alias=AliasChoices("action_type", "actionType")
    )
    dialog_config: DialogConfig | None = Field(
        default=None, validation_alias=AliasChoices("dialog_config", "dialogConfig")
    )
    route: str | None = None
    tooltip: str | None = None

    @property
    def label(self) -> str:
        """Display title; same attribute as ``name``."""
        return self.name

    @property
    def is_root(self) -> bool:
        return not self.dependencies


class TreeNode(BaseModel):
    """Display hierarchy node wrapping a task id."""

    task_id: int
    children: list["TreeNode"] = Field(default_factory=list)
