from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import pydantic

from gradebook.errors import ImportDataError
from gradebook.logging import get_logger
from gradebook.models.course import Course
from gradebook.settings import get_settings
from gradebook.store import GradebookStore, courses_from_records

log = get_logger("backup")


def export_courses(path: Path | str, courses: Sequence[Course]) -> Path:
    """
    Write the course collection as a JSON array, in the same shape as the
    persisted state. Returns the written path; a directory target gets the
    configured ``export_filename``.

    Records are written in the current schema: sub-items under ``subItems``
    (not the older ``subsections`` key) and unknown keys dropped, so a backup
    made by an older version does not round-trip byte for byte.
    """
    out = Path(path)
    if out.is_dir():
        out = out / get_settings().export_filename
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(
        json.dumps([c.to_record() for c in courses], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    log.info("Exported %d course(s) to %s", len(courses), out)
    return out


def load_backup(path: Path | str) -> list[Any]:
    """Read a backup file, raising ImportDataError unless it holds a JSON array."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as ex:
        raise ImportDataError(f"Cannot read JSON file '{path}': {ex}") from ex
    if not isinstance(data, list):
        raise ImportDataError(f"Invalid backup '{path}': expected a JSON array of courses")
    return data


def import_courses(store: GradebookStore, path: Path | str) -> list[Course]:
    """
    Replace the whole collection of ``store`` with the courses in ``path``.

    No merge takes place; records the store had set aside as invalid are
    dropped too. On any error the store is left untouched.
    """
    records = load_backup(path)
    try:
        courses = courses_from_records(records)
    except (TypeError, pydantic.ValidationError) as ex:
        raise ImportDataError(f"Invalid course data in '{path}': {ex}") from ex
    store.replace_all(courses, discard_rejected=True)
    log.info("Imported %d course(s) from %s", len(courses), path)
    return courses
