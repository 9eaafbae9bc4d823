"""Gradebook.

Weighted gradebook: course → evaluations → sections → sub-items, with
legacy schema migration and a local JSON store.
"""

from __future__ import annotations

from .errors import (
    GradebookError,
    ImportDataError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "__version__",
    "GradebookError",
    "ImportDataError",
    "NotFoundError",
    "ValidationError",
]

__version__ = "0.1.0"
