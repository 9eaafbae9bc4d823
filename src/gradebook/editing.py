"""Pure editing operations on the course collection.

Every function returns new model instances and leaves its inputs untouched.
Updates replace the entity with the matching id inside its parent; siblings
are shared as they are. Updating an unknown id leaves the collection
unchanged, while ``find_*`` lookups raise ``NotFoundError``.

Deleting a section or sub-item does not purge student grades: entries for
sub-items that no longer exist are simply never read again.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Sequence, TypeVar

from gradebook.errors import NotFoundError, ValidationError
from gradebook.grading import parse_score_or_zero
from gradebook.models.course import Course, GradeValue, Student
from gradebook.models.scheme import UNSET, Evaluation, Section, SubItem, Weight
from gradebook.utils import default_scheme

T = TypeVar("T", Course, Evaluation, Section, SubItem, Student)

_KEEP: Any = object()
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")

DEFAULT_SECTION_NAME = "Nueva Sección"
DEFAULT_EVALUATION_NAME = "Nueva Evaluación"


# ─────────────────────────────────────────────────────────────────────────────
# Input normalization
# ─────────────────────────────────────────────────────────────────────────────


def parse_weight(value: Any) -> Weight:
    """Turn user input into a weight.

    ``None`` and blank text mean "unset"; numbers and numeric text are
    truncated to whole percentages (``"33.5"`` → 33).
    """
    if value is None or value == UNSET:
        return UNSET
    if isinstance(value, bool):
        raise ValidationError(f"Invalid weight: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError) as ex:
            raise ValidationError(f"Invalid weight: {value!r}") from ex
    text = str(value)
    if not text.strip():
        return UNSET
    m = _LEADING_INT.match(text)
    if not m:
        raise ValidationError(f"Invalid weight: {value!r}")
    return int(m.group(0))


def normalize_score_input(value: Any) -> GradeValue:
    """Score entry rule: blank clears the grade, anything else becomes a number >= 0.

    There is no upper bound; scores above the warning threshold are kept and
    only flagged by ``gradebook.grading.score_warning``.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return UNSET
    return max(0.0, parse_score_or_zero(value))


def _require_name(name: str, what: str) -> str:
    if not name or not name.strip():
        raise ValidationError(f"{what} name must not be blank")
    return name


# ─────────────────────────────────────────────────────────────────────────────
# Generic helpers
# ─────────────────────────────────────────────────────────────────────────────


def _find(items: Sequence[T], item_id: str, what: str) -> T:
    for item in items:
        if item.id == item_id:
            return item
    raise NotFoundError(f"Unknown {what} id: {item_id!r}")


def _replace(items: Sequence[T], item_id: str, fn: Callable[[T], T]) -> list[T]:
    return [fn(item) if item.id == item_id else item for item in items]


def _without(items: Sequence[T], item_id: str) -> list[T]:
    return [item for item in items if item.id != item_id]


def find_course(courses: Sequence[Course], course_id: str) -> Course:
    return _find(courses, course_id, "course")


def find_evaluation(course: Course, evaluation_id: str) -> Evaluation:
    return _find(course.evaluations, evaluation_id, "evaluation")


def find_section(evaluation: Evaluation, section_id: str) -> Section:
    return _find(evaluation.sections, section_id, "section")


def find_student(course: Course, student_id: str) -> Student:
    return _find(course.students, student_id, "student")


def locate_sub_item(course: Course, sub_item_id: str) -> tuple[Evaluation, Section, SubItem]:
    """Find the evaluation and section holding a sub-item."""
    for evaluation in course.evaluations:
        for section in evaluation.sections:
            for sub in section.sub_items:
                if sub.id == sub_item_id:
                    return evaluation, section, sub
    raise NotFoundError(f"Unknown sub-item id: {sub_item_id!r}")


# ─────────────────────────────────────────────────────────────────────────────
# Courses
# ─────────────────────────────────────────────────────────────────────────────


def create_course(name: str, evaluations: list[Evaluation] | None = None) -> Course:
    """New course; without an explicit scheme it gets the built-in default one."""
    _require_name(name, "Course")
    return Course(
        name=name,
        evaluations=default_scheme() if evaluations is None else list(evaluations),
    )


def add_course(courses: Sequence[Course], course: Course) -> list[Course]:
    return [*courses, course]


def replace_course(courses: Sequence[Course], course: Course) -> list[Course]:
    return _replace(courses, course.id, lambda _: course)


def rename_course(courses: Sequence[Course], course_id: str, name: str) -> list[Course]:
    _require_name(name, "Course")
    return _replace(courses, course_id, lambda c: c.model_copy(update={"name": name}))


def delete_course(courses: Sequence[Course], course_id: str) -> list[Course]:
    return _without(courses, course_id)


# ─────────────────────────────────────────────────────────────────────────────
# Evaluations
# ─────────────────────────────────────────────────────────────────────────────


def new_evaluation(name: str = DEFAULT_EVALUATION_NAME) -> Evaluation:
    return Evaluation(
        name=name,
        weight=0,
        sections=[Section(name="Exámenes", weight=100, sub_items=[SubItem(name="Examen 1")])],
    )


def add_evaluation(course: Course, evaluation: Evaluation | None = None) -> Course:
    evaluation = evaluation or new_evaluation()
    return course.model_copy(update={"evaluations": [*course.evaluations, evaluation]})


def update_evaluation(
    course: Course, evaluation_id: str, *, name: str | None = None, weight: Any = _KEEP
) -> Course:
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if weight is not _KEEP:
        changes["weight"] = parse_weight(weight)
    evaluations = _replace(
        course.evaluations, evaluation_id, lambda e: e.model_copy(update=changes)
    )
    return course.model_copy(update={"evaluations": evaluations})


def replace_evaluation(course: Course, evaluation: Evaluation) -> Course:
    evaluations = _replace(course.evaluations, evaluation.id, lambda _: evaluation)
    return course.model_copy(update={"evaluations": evaluations})


def delete_evaluation(course: Course, evaluation_id: str) -> Course:
    return course.model_copy(update={"evaluations": _without(course.evaluations, evaluation_id)})


# ─────────────────────────────────────────────────────────────────────────────
# Sections and sub-items (edited inside their evaluation)
# ─────────────────────────────────────────────────────────────────────────────


def add_section(evaluation: Evaluation, name: str = DEFAULT_SECTION_NAME) -> Evaluation:
    section = Section(name=name, weight=0, sub_items=[SubItem(name="Item 1")])
    return evaluation.model_copy(update={"sections": [*evaluation.sections, section]})


def update_section(
    evaluation: Evaluation, section_id: str, *, name: str | None = None, weight: Any = _KEEP
) -> Evaluation:
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if weight is not _KEEP:
        changes["weight"] = parse_weight(weight)
    sections = _replace(evaluation.sections, section_id, lambda s: s.model_copy(update=changes))
    return evaluation.model_copy(update={"sections": sections})


def delete_section(evaluation: Evaluation, section_id: str) -> Evaluation:
    return evaluation.model_copy(update={"sections": _without(evaluation.sections, section_id)})


def add_sub_item(evaluation: Evaluation, section_id: str, name: str | None = None) -> Evaluation:
    def _add(section: Section) -> Section:
        label = name or f"Item {len(section.sub_items) + 1}"
        return section.model_copy(update={"sub_items": [*section.sub_items, SubItem(name=label)]})

    return evaluation.model_copy(update={"sections": _replace(evaluation.sections, section_id, _add)})


def rename_sub_item(
    evaluation: Evaluation, section_id: str, sub_item_id: str, name: str
) -> Evaluation:
    def _rename(section: Section) -> Section:
        subs = _replace(section.sub_items, sub_item_id, lambda s: s.model_copy(update={"name": name}))
        return section.model_copy(update={"sub_items": subs})

    return evaluation.model_copy(
        update={"sections": _replace(evaluation.sections, section_id, _rename)}
    )


def delete_sub_item(evaluation: Evaluation, section_id: str, sub_item_id: str) -> Evaluation:
    def _drop(section: Section) -> Section:
        return section.model_copy(update={"sub_items": _without(section.sub_items, sub_item_id)})

    return evaluation.model_copy(update={"sections": _replace(evaluation.sections, section_id, _drop)})


# ─────────────────────────────────────────────────────────────────────────────
# Students and grades
# ─────────────────────────────────────────────────────────────────────────────


def add_student(course: Course, name: str) -> Course:
    _require_name(name, "Student")
    return course.model_copy(update={"students": [*course.students, Student(name=name)]})


def rename_student(course: Course, student_id: str, name: str) -> Course:
    _require_name(name, "Student")
    students = _replace(course.students, student_id, lambda s: s.model_copy(update={"name": name}))
    return course.model_copy(update={"students": students})


def delete_student(course: Course, student_id: str) -> Course:
    return course.model_copy(update={"students": _without(course.students, student_id)})


def set_grade(course: Course, student_id: str, sub_item_id: str, value: Any) -> Course:
    """Record a score typed by the user (see ``normalize_score_input``)."""
    score = normalize_score_input(value)

    def _set(student: Student) -> Student:
        return student.model_copy(update={"grades": {**student.grades, sub_item_id: score}})

    return course.model_copy(update={"students": _replace(course.students, student_id, _set)})


def clear_grade(course: Course, student_id: str, sub_item_id: str) -> Course:
    return set_grade(course, student_id, sub_item_id, UNSET)
