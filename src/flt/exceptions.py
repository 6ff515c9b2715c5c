"""
Exception types for the Fund Launch Tracker.

None of these cross the ProgressionStore boundary during normal operation:
lookup misses are resolved to safe defaults and corrupt persisted state is
regenerated. They are raised for configuration mistakes only.
"""


class FltError(Exception):
    """Base exception for the Fund Launch Tracker."""


class TemplateError(FltError):
    """A catalog or task template is structurally invalid."""


class UnknownTrackError(FltError, ValueError):
    """A track name does not match any known track."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown track: {value!r}")
