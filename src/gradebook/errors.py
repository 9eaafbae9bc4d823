"""Structured exception hierarchy for the gradebook.

Design:
  - GradebookError is the common base (subclass of RuntimeError for ergonomics).
  - ImportDataError signals a backup file that cannot be imported; the message
    is meant to be shown to the user as is.
  - ValidationError is raised for user input problems (blank names, weight
    text, scheme YAML).
  - NotFoundError also inherits from ``KeyError`` so lookups by id can be
    handled like any missing mapping key.

Non-numeric scores are deliberately absent from this list: they degrade to 0
instead of raising (see ``gradebook.grading.parse_score_or_zero``).
"""

from __future__ import annotations

__all__ = [
    "GradebookError",
    "ImportDataError",
    "NotFoundError",
    "ValidationError",
]


class GradebookError(RuntimeError):
    """Base class for all structured gradebook errors."""


class ImportDataError(GradebookError):
    """Raised when a backup file is unreadable or does not hold a course array."""


class ValidationError(GradebookError):
    """Raised for user / content validation issues (names, weights, YAML)."""


class NotFoundError(KeyError, GradebookError):
    """Raised when a course, evaluation, section, sub-item or student id is unknown."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
