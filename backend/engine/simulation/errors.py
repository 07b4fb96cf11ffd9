"""Exceptions raised by the grid simulation engine."""

from __future__ import annotations


class GridTycoonError(Exception):
    """Base class for hard engine failures."""


class InvalidTransitionError(GridTycoonError, RuntimeError):
    """A lifecycle operation was requested from a state that forbids it."""


class ScenarioValidationError(GridTycoonError, ValueError):
    """A scenario is missing required fields.

    Attributes
    ----------
    missing : list[str]
        Missing-field identifiers, e.g. ``["meta.seed", "zones[3]"]``.
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Scenario validation failed: {', '.join(self.missing)}")
