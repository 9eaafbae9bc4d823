"""Weighted grade computation.

Three levels of aggregation, all pure and total:

  sub-item scores → section average
  section averages × section weight/100 → evaluation grade
  evaluation grades × evaluation weight/100 → course grade

Weights are summed as entered; a scheme whose weights do not add up to 100
yields a proportionally smaller or larger grade. ``weight_validity`` only
reports the sum for user feedback.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, Protocol

from gradebook.models.course import Course, Student
from gradebook.models.scheme import Evaluation, Section, Weight, effective_weight
from gradebook.models.stats import (
    CourseStats,
    EvaluationBreakdown,
    GradeBand,
    SectionAverage,
    WeightReport,
)

PASS_MARK = 5.0
GOOD_MARK = 7.0
WARNING_THRESHOLD = 10.0

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class Weighted(Protocol):
    weight: Weight


def parse_score_or_zero(value: Any) -> float:
    """Interpret a raw score, falling back to 0.

    Total function: never raises and never returns NaN or infinity. Numbers
    pass through, text is read up to the first non-numeric character
    (``"7.5 pts"`` → 7.5) and anything else (``None``, ``""``, booleans,
    unparseable text) is 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, str):
        m = _LEADING_NUMBER.match(value)
        if not m:
            return 0.0
        value = m.group(0)
    elif not isinstance(value, (int, float)):
        return 0.0
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def section_average(section: Section, student: Student) -> float:
    """Mean of the student's scores over every sub-item of the section.

    Ungraded sub-items count as 0; a section without sub-items averages 0.
    """
    if not section.sub_items:
        return 0.0
    total = sum(parse_score_or_zero(student.grades.get(sub.id)) for sub in section.sub_items)
    return total / len(section.sub_items)


def evaluation_grade(evaluation: Evaluation, student: Student) -> float:
    return sum(
        section_average(section, student) * (effective_weight(section.weight) / 100)
        for section in evaluation.sections
    )


def course_grade(course: Course, student: Student) -> float:
    return sum(
        evaluation_grade(evaluation, student) * (effective_weight(evaluation.weight) / 100)
        for evaluation in course.evaluations
    )


def weight_validity(items: Iterable[Weighted]) -> WeightReport:
    """Sum sibling weights (unset → 0) and flag whether they reach exactly 100."""
    total = sum(effective_weight(item.weight) for item in items)
    return WeightReport(total=total, is_valid=total == 100)


def score_warning(
    student: Student, section: Section, threshold: float = WARNING_THRESHOLD
) -> bool:
    """True when a recorded score of the section is above ``threshold``.

    Advisory only: the average is computed with the score as entered.
    """
    for sub in section.sub_items:
        if sub.id in student.grades and parse_score_or_zero(student.grades[sub.id]) > threshold:
            return True
    return False


def evaluation_breakdown(
    evaluation: Evaluation, student: Student, threshold: float = WARNING_THRESHOLD
) -> EvaluationBreakdown:
    """Section averages, evaluation grade and warning flag for one student."""
    averages: list[SectionAverage] = []
    grade = 0.0
    warning = False
    for section in evaluation.sections:
        avg = section_average(section, student)
        averages.append(SectionAverage(section_id=section.id, average=avg))
        grade += avg * (effective_weight(section.weight) / 100)
        warning = warning or score_warning(student, section, threshold)
    return EvaluationBreakdown(
        evaluation_id=evaluation.id, sections=averages, grade=grade, has_warning=warning
    )


def course_stats(course: Course, pass_mark: float = PASS_MARK) -> CourseStats:
    """Pass/fail shares and mean course grade over the enrolled students."""
    total = len(course.students)
    if total == 0:
        return CourseStats(students=0, approved_pct=0.0, failed_pct=0.0, mean=0.0)
    grades = [course_grade(course, s) for s in course.students]
    approved = sum(1 for g in grades if g >= pass_mark)
    return CourseStats(
        students=total,
        approved_pct=approved / total * 100,
        failed_pct=(total - approved) / total * 100,
        mean=sum(grades) / total,
    )


def grade_band(grade: float, pass_mark: float = PASS_MARK, good_mark: float = GOOD_MARK) -> GradeBand:
    if grade < pass_mark:
        return GradeBand.failing
    if grade < good_mark:
        return GradeBand.borderline
    return GradeBand.good
