"""Tests for gradebook.grading module."""

import math

import pytest

from gradebook.editing import delete_section
from gradebook.grading import (
    course_grade,
    course_stats,
    evaluation_breakdown,
    evaluation_grade,
    grade_band,
    parse_score_or_zero,
    score_warning,
    section_average,
    weight_validity,
)
from gradebook.models.course import Course, Student
from gradebook.models.scheme import Evaluation, Section, SubItem
from gradebook.models.stats import GradeBand


def _section(section_id: str, weight: object, *sub_ids: str) -> Section:
    return Section(
        id=section_id,
        name=section_id,
        weight=weight,
        sub_items=[SubItem(id=s, name=s) for s in sub_ids],
    )


def _single_score_evaluation(eval_id: str, weight: object) -> Evaluation:
    """Evaluation whose grade equals the score of its only sub-item."""
    return Evaluation(
        id=eval_id, name=eval_id, weight=weight, sections=[_section(f"{eval_id}-s", 100, f"{eval_id}-x")]
    )


class TestParseScoreOrZero:
    """Test the total score parsing helper."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (8, 8.0),
            (7.5, 7.5),
            ("7.5", 7.5),
            ("  3", 3.0),
            ("7.5 pts", 7.5),
            ("7,5", 7.0),
            (".5", 0.5),
            ("-2", -2.0),
            ("1e1", 10.0),
            ("", 0.0),
            ("abc", 0.0),
            (None, 0.0),
            (True, 0.0),
            ([1], 0.0),
        ],
    )
    def test_values(self, value: object, expected: float) -> None:
        assert parse_score_or_zero(value) == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "1e999", "inf", 10**400])
    def test_never_non_finite(self, value: object) -> None:
        result = parse_score_or_zero(value)
        assert math.isfinite(result)
        assert result == 0.0


class TestSectionAverage:
    """Test section_average."""

    def test_empty_section_is_zero(self) -> None:
        student = Student(id="s1", name="Ana", grades={"x": 9})
        assert section_average(_section("sec", 100), student) == 0.0

    def test_mean_of_scores(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 8, "b": 6})
        assert section_average(_section("sec", 100, "a", "b"), student) == 7.0

    def test_missing_grade_counts_as_zero(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 8})
        assert section_average(_section("sec", 100, "a", "b"), student) == 4.0

    def test_empty_and_text_scores(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": "", "b": "abc", "c": "9"})
        assert section_average(_section("sec", 100, "a", "b", "c"), student) == 3.0

    def test_only_own_sub_items_are_read(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 10, "other": 0})
        assert section_average(_section("sec", 100, "a"), student) == 10.0


class TestEvaluationAndCourseGrade:
    """Test the weighted sums one and two levels up."""

    def test_evaluation_weighted_sum(self) -> None:
        evaluation = Evaluation(
            id="e1",
            name="T1",
            weight=100,
            sections=[_section("exams", 60, "a"), _section("homework", 40, "b")],
        )
        student = Student(id="s1", name="Ana", grades={"a": 8, "b": 5})
        # 8 * 0.6 + 5 * 0.4
        assert evaluation_grade(evaluation, student) == pytest.approx(6.8)

    def test_unset_weight_counts_as_zero(self) -> None:
        evaluation = Evaluation(
            id="e1", name="T1", weight=100, sections=[_section("a", "", "x"), _section("b", 100, "y")]
        )
        student = Student(id="s1", name="Ana", grades={"x": 10, "y": 6})
        assert evaluation_grade(evaluation, student) == pytest.approx(6.0)

    def test_no_renormalization(self) -> None:
        evaluation = Evaluation(id="e1", name="T1", weight=100, sections=[_section("a", 50, "x")])
        student = Student(id="s1", name="Ana", grades={"x": 8})
        assert evaluation_grade(evaluation, student) == pytest.approx(4.0)

    def test_course_grade_composes(self) -> None:
        course = Course(
            id="c1",
            name="Maths",
            evaluations=[
                _single_score_evaluation("t1", 33),
                _single_score_evaluation("t2", 33),
                _single_score_evaluation("t3", 34),
            ],
        )
        student = Student(id="s1", name="Ana", grades={"t1-x": 6, "t2-x": 7, "t3-x": 8})
        assert course_grade(course, student) == pytest.approx(7.01)

    def test_course_without_evaluations(self) -> None:
        course = Course(id="c1", name="Empty")
        assert course_grade(course, Student(id="s1", name="Ana")) == 0.0

    def test_deleted_section_grades_are_inert(self) -> None:
        evaluation = Evaluation(
            id="e1", name="T1", weight=100, sections=[_section("a", 50, "x"), _section("b", 50, "y")]
        )
        student = Student(id="s1", name="Ana", grades={"x": 10, "y": 6})
        trimmed = delete_section(evaluation, "a")
        course = Course(id="c1", name="Maths", evaluations=[trimmed], students=[student])

        assert "x" in student.grades
        assert course_grade(course, student) == pytest.approx(3.0)


class TestWeightValidity:
    """Test weight_validity."""

    def test_valid_sum(self) -> None:
        report = weight_validity([_section("a", 50), _section("b", 50)])
        assert report.total == 100
        assert report.is_valid is True

    def test_invalid_sum(self) -> None:
        report = weight_validity([_section("a", 50), _section("b", 40)])
        assert report.total == 90
        assert report.is_valid is False

    def test_unset_weights(self) -> None:
        report = weight_validity([_section("a", ""), _section("b", 100)])
        assert report.total == 100
        assert report.is_valid is True

    def test_empty_collection(self) -> None:
        report = weight_validity([])
        assert report.total == 0
        assert report.is_valid is False

    def test_evaluations(self) -> None:
        evaluations = [_single_score_evaluation(e, w) for e, w in (("a", 33), ("b", 33), ("c", 34))]
        assert weight_validity(evaluations).is_valid is True


class TestScoreWarning:
    """Test score_warning."""

    def test_above_ten(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 11})
        assert score_warning(student, _section("sec", 100, "a", "b")) is True

    def test_exactly_ten(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 10})
        assert score_warning(student, _section("sec", 100, "a")) is False

    def test_text_score(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": "12"})
        assert score_warning(student, _section("sec", 100, "a")) is True

    def test_other_section_ignored(self) -> None:
        student = Student(id="s1", name="Ana", grades={"z": 50})
        assert score_warning(student, _section("sec", 100, "a")) is False

    def test_custom_threshold(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 60})
        assert score_warning(student, _section("sec", 100, "a"), threshold=100) is False

    def test_does_not_change_average(self) -> None:
        student = Student(id="s1", name="Ana", grades={"a": 12, "b": 8})
        assert section_average(_section("sec", 100, "a", "b"), student) == 10.0


class TestEvaluationBreakdown:
    """Test evaluation_breakdown."""

    def test_breakdown(self) -> None:
        evaluation = Evaluation(
            id="e1",
            name="T1",
            weight=100,
            sections=[_section("exams", 60, "a"), _section("homework", 40, "b", "c")],
        )
        student = Student(id="s1", name="Ana", grades={"a": 8, "b": 12, "c": 0})
        bd = evaluation_breakdown(evaluation, student)

        assert bd.evaluation_id == "e1"
        assert [s.section_id for s in bd.sections] == ["exams", "homework"]
        assert bd.average_for("homework") == 6.0
        assert bd.average_for("unknown") == 0.0
        assert bd.grade == pytest.approx(evaluation_grade(evaluation, student))
        assert bd.has_warning is True


class TestCourseStats:
    """Test course_stats and grade_band."""

    def _course(self, *scores: float) -> Course:
        students = [
            Student(id=f"s{i}", name=f"Student {i}", grades={"t1-x": score})
            for i, score in enumerate(scores)
        ]
        return Course(
            id="c1", name="Maths", evaluations=[_single_score_evaluation("t1", 100)], students=students
        )

    def test_no_students(self) -> None:
        st = course_stats(Course(id="c1", name="Empty"))
        assert st.students == 0
        assert st.approved_pct == 0.0
        assert st.failed_pct == 0.0
        assert st.mean == 0.0

    def test_shares_and_mean(self) -> None:
        st = course_stats(self._course(4, 5, 9, 2))
        assert st.students == 4
        assert st.approved_pct == 50.0
        assert st.failed_pct == 50.0
        assert st.mean == pytest.approx(5.0)

    def test_custom_pass_mark(self) -> None:
        st = course_stats(self._course(4, 5), pass_mark=4)
        assert st.approved_pct == 100.0

    @pytest.mark.parametrize(
        "grade, band",
        [
            (0, GradeBand.failing),
            (4.99, GradeBand.failing),
            (5, GradeBand.borderline),
            (6.99, GradeBand.borderline),
            (7, GradeBand.good),
            (12, GradeBand.good),
        ],
    )
    def test_grade_band(self, grade: float, band: GradeBand) -> None:
        assert grade_band(grade) is band
