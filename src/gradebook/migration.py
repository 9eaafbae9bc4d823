"""Normalization of persisted course records.

Older versions stored sections directly on the course. Those records are
wrapped into a single evaluation weighted 100 so that the rest of the package
only ever sees the current ``course → evaluations → sections`` shape.

The functions here work on raw JSON mappings, before model validation, and
never mutate their input.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from gradebook.logging import get_logger
from gradebook.models.scheme import new_id

LEGACY_EVALUATION_NAME = "Evaluación Principal"

log = get_logger("migration")


def _is_legacy_with_sections(record: Mapping[str, Any]) -> bool:
    return not record.get("evaluations") and bool(record.get("sections"))


def needs_migration(record: Mapping[str, Any]) -> bool:
    """Whether ``migrate`` would rewrite the record."""
    return _is_legacy_with_sections(record) or record.get("evaluations") is None


def migrate(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``record`` in the current schema.

    - evaluations missing or empty, sections present and non-empty: the
      sections move into one evaluation "Evaluación Principal" (weight 100).
    - evaluations missing or null otherwise: an empty evaluation list is set.
    - anything else is already current and comes back as an equal copy.
    """
    if _is_legacy_with_sections(record):
        log.info("Migrating course: %s", record.get("name", ""))
        out = {k: v for k, v in record.items() if k != "sections"}
        out["evaluations"] = [
            {
                "id": new_id(),
                "name": LEGACY_EVALUATION_NAME,
                "weight": 100,
                "sections": list(record["sections"]),
            }
        ]
        return out
    if record.get("evaluations") is None:
        out = {k: v for k, v in record.items() if k != "sections"}
        out["evaluations"] = []
        return out
    return dict(record)


def migrate_all(records: Iterable[Mapping[str, Any]]) -> tuple[list[dict[str, Any]], bool]:
    """Normalize a whole collection.

    Returns the normalized records and whether any of them changed, so callers
    can persist the collection once instead of once per course.
    """
    changed = False
    out: list[dict[str, Any]] = []
    for record in records:
        if needs_migration(record):
            changed = True
        out.append(migrate(record))
    return out, changed
