"""Local persistence of the gradebook state.

Two independent JSON blobs live under the data directory, one per key:

  gradebook_courses.json   the full array of course records
  gradebook_theme.json     the dark-mode flag

The store owns the in-memory copy. Every mutation rewrites the whole
collection. Read and write failures are logged and never raised: a broken
blob falls back to the initial value after a copy of it is set aside as
``<key>.json.corrupt``. Single course records that fail validation are kept
verbatim and written back after the valid ones, so they are never lost.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Callable, Sequence

import pydantic

from gradebook.editing import find_course, replace_course
from gradebook.logging import get_logger
from gradebook.migration import migrate, migrate_all, needs_migration
from gradebook.models.course import Course

COURSES_KEY = "gradebook_courses"
THEME_KEY = "gradebook_theme"

log = get_logger("store")


def courses_from_records(records: Sequence[Any]) -> list[Course]:
    """Migrate raw records and validate them into models.

    Raises ``pydantic.ValidationError`` (or ``TypeError`` for non-mapping
    entries); callers decide how to report it.
    """
    for record in records:
        if not isinstance(record, dict):
            raise TypeError(f"Course record must be an object, got {type(record).__name__}")
    migrated, _ = migrate_all(records)
    return [Course.model_validate(r) for r in migrated]


class GradebookStore:
    """In-memory course collection and theme flag backed by JSON files."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir).expanduser()
        self._courses: list[Course] = []
        self._rejected: list[Any] = []
        self._dark_mode = False

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"GradebookStore(data_dir={str(self.data_dir)!r}, courses={len(self._courses)})"

    # ── blobs ───────────────────────────────────────────────────────────────

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read_blob(self, key: str, default: Any) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except OSError as ex:
            log.error("Cannot read %s: %s", path, ex)
            return default
        except ValueError as ex:
            log.error("Cannot parse %s: %s", path, ex)
            self._set_aside(path)
            return default

    def _set_aside(self, path: Path) -> None:
        backup = path.with_name(path.name + ".corrupt")
        try:
            shutil.copyfile(path, backup)
            log.warning("Copied unreadable %s to %s", path, backup)
        except OSError as ex:
            log.error("Cannot copy %s aside: %s", path, ex)

    def _write_blob(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(value, indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, TypeError, ValueError) as ex:
            log.error("Cannot write %s: %s", path, ex)

    # ── lifecycle ───────────────────────────────────────────────────────────

    def load(self) -> "GradebookStore":
        """Read both blobs, migrating legacy course records.

        When migration rewrote any record the normalized collection is saved
        back at once.
        """
        raw = self._read_blob(COURSES_KEY, [])
        if not isinstance(raw, list):
            log.error("Ignoring %s: expected a JSON array", self._path(COURSES_KEY))
            self._set_aside(self._path(COURSES_KEY))
            raw = []
        self._courses, self._rejected = [], []
        changed = False
        for index, record in enumerate(raw):
            try:
                if not isinstance(record, dict):
                    raise TypeError(f"expected an object, got {type(record).__name__}")
                course = Course.model_validate(migrate(record))
            except (TypeError, pydantic.ValidationError) as ex:
                log.error("Keeping invalid course record #%d as is: %s", index, ex)
                self._rejected.append(record)
                continue
            changed = changed or needs_migration(record)
            self._courses.append(course)
        dark = self._read_blob(THEME_KEY, False)
        self._dark_mode = dark if isinstance(dark, bool) else False
        log.debug("Loaded %d course(s) from %s", len(self._courses), self.data_dir)
        if changed:
            self.save()
        return self

    def save(self) -> None:
        records = [c.to_record() for c in self._courses]
        self._write_blob(COURSES_KEY, records + self._rejected)

    # ── state ───────────────────────────────────────────────────────────────

    @property
    def courses(self) -> list[Course]:
        return list(self._courses)

    @property
    def rejected_records(self) -> list[Any]:
        """Raw records that failed validation on load; saved back untouched."""
        return list(self._rejected)

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    def get_course(self, course_id: str) -> Course:
        return find_course(self._courses, course_id)

    def replace_all(self, courses: Sequence[Course], *, discard_rejected: bool = False) -> None:
        self._courses = list(courses)
        if discard_rejected:
            self._rejected = []
        self.save()

    def apply(self, fn: Callable[[list[Course]], list[Course]]) -> list[Course]:
        """Apply a pure editing function to the collection and persist the result."""
        self.replace_all(fn(self.courses))
        return self.courses

    def update_course(self, course: Course) -> None:
        self.apply(lambda courses: replace_course(courses, course))

    def toggle_theme(self) -> bool:
        self._dark_mode = not self._dark_mode
        self._write_blob(THEME_KEY, self._dark_mode)
        return self._dark_mode
