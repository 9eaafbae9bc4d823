# src/gradebook/cli.py

from pathlib import Path
from typing import NoReturn

import typer

from gradebook import editing
from gradebook.errors import GradebookError, ImportDataError
from gradebook.grading import (
    course_grade,
    course_stats,
    evaluation_breakdown,
    evaluation_grade,
    grade_band,
    score_warning,
)
from gradebook.io.backup import export_courses, import_courses
from gradebook.logging import configure_logging
from gradebook.models.course import Course
from gradebook.models.scheme import Evaluation, Section
from gradebook.settings import get_settings
from gradebook.store import GradebookStore
from gradebook.utils import filter_students, load_scheme_yaml, scheme_to_markdown

app = typer.Typer(help="Gradebook: weighted grades per course, evaluation and section.")

_BAND_MARK = {"failing": "✗", "borderline": "~", "good": "✓"}


def _store(ctx: typer.Context) -> GradebookStore:
    return ctx.obj


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _course(store: GradebookStore, course_id: str) -> Course:
    try:
        return store.get_course(course_id)
    except GradebookError as e:
        _fail(str(e))


def _mark(grade: float) -> str:
    s = get_settings()
    return _BAND_MARK[grade_band(grade, pass_mark=s.pass_mark).value]


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path = typer.Option(
        None, "--data-dir", "-d", help="Directory holding the gradebook data (default from settings)."
    ),
) -> None:
    """
    Load the gradebook state (migrating legacy course records) for the command.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    ctx.obj = GradebookStore(data_dir or settings.data_path()).load()


@app.command("courses")
def list_courses(ctx: typer.Context) -> None:
    """List courses with pass rate and mean grade."""
    store = _store(ctx)
    if not store.courses:
        typer.echo("No courses yet.")
        return
    pass_mark = get_settings().pass_mark
    for c in store.courses:
        st = course_stats(c, pass_mark=pass_mark)
        typer.echo(
            f"{c.id}  {c.name}  students={st.students}  "
            f"approved={st.approved_pct:.0f}%  failed={st.failed_pct:.0f}%  mean={st.mean:.1f}"
        )


@app.command("new-course")
def new_course(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Course name."),
    scheme: Path = typer.Option(
        None, "--scheme", "-s", exists=True, dir_okay=False, help="YAML grading scheme."
    ),
) -> None:
    """Create a course (default three-term scheme unless --scheme is given)."""
    store = _store(ctx)
    try:
        evaluations = load_scheme_yaml(scheme) if scheme else None
        course = editing.create_course(name, evaluations)
    except GradebookError as e:
        _fail(str(e))
    store.apply(lambda courses: editing.add_course(courses, course))
    typer.echo(f"Created course {course.id}: {course.name}")


@app.command("rename-course")
def rename_course(ctx: typer.Context, course_id: str, name: str) -> None:
    """Give a course a new (non-blank) name."""
    store = _store(ctx)
    _course(store, course_id)
    try:
        store.apply(lambda courses: editing.rename_course(courses, course_id, name))
    except GradebookError as e:
        _fail(str(e))
    typer.echo(f"Renamed course {course_id}")


@app.command("delete-course")
def delete_course(
    ctx: typer.Context,
    course_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete a course and all of its grades."""
    store = _store(ctx)
    course = _course(store, course_id)
    if not yes and not typer.confirm(f"Delete course '{course.name}' and all its grades?"):
        raise typer.Exit(code=1)
    store.apply(lambda courses: editing.delete_course(courses, course_id))
    typer.echo(f"Deleted course {course_id}")


@app.command("add-student")
def add_student(ctx: typer.Context, course_id: str, name: str) -> None:
    """Enrol a student; prints the new student id."""
    store = _store(ctx)
    course = _course(store, course_id)
    try:
        updated = editing.add_student(course, name)
    except GradebookError as e:
        _fail(str(e))
    store.update_course(updated)
    typer.echo(f"Added student {updated.students[-1].id}: {name}")


@app.command("rename-student")
def rename_student(ctx: typer.Context, course_id: str, student_id: str, name: str) -> None:
    """Give a student a new (non-blank) name."""
    store = _store(ctx)
    course = _course(store, course_id)
    try:
        editing.find_student(course, student_id)
        updated = editing.rename_student(course, student_id, name)
    except GradebookError as e:
        _fail(str(e))
    store.update_course(updated)
    typer.echo(f"Renamed student {student_id}")


@app.command("delete-student")
def delete_student(ctx: typer.Context, course_id: str, student_id: str) -> None:
    """Remove a student together with their grades."""
    store = _store(ctx)
    course = _course(store, course_id)
    try:
        editing.find_student(course, student_id)
    except GradebookError as e:
        _fail(str(e))
    store.update_course(editing.delete_student(course, student_id))
    typer.echo(f"Deleted student {student_id}")


@app.command("grade")
def grade(
    ctx: typer.Context,
    course_id: str,
    student_id: str,
    sub_item_id: str,
    value: str = typer.Argument(..., help="Score; an empty string clears it."),
) -> None:
    """Record one score. Non-numeric input is stored as 0."""
    store = _store(ctx)
    course = _course(store, course_id)
    try:
        editing.find_student(course, student_id)
        _, section, _ = editing.locate_sub_item(course, sub_item_id)
    except GradebookError as e:
        _fail(str(e))
    updated = editing.set_grade(course, student_id, sub_item_id, value)
    store.update_course(updated)
    student = editing.find_student(updated, student_id)
    typer.echo(f"{student.name}: {sub_item_id} = {student.grades[sub_item_id]!r}")
    if score_warning(student, section, get_settings().warning_threshold):
        typer.echo(
            f"Warning: a score in '{section.name}' is above "
            f"{get_settings().warning_threshold:g}.",
            err=True,
        )


@app.command("clear-grade")
def clear_grade(ctx: typer.Context, course_id: str, student_id: str, sub_item_id: str) -> None:
    """Mark one score as ungraded (it counts as 0)."""
    store = _store(ctx)
    course = _course(store, course_id)
    try:
        editing.find_student(course, student_id)
        editing.locate_sub_item(course, sub_item_id)
    except GradebookError as e:
        _fail(str(e))
    store.update_course(editing.clear_grade(course, student_id, sub_item_id))
    typer.echo(f"Cleared {sub_item_id} for {student_id}")


@app.command("report")
def report(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str = typer.Option(
        None, "--evaluation", "-e", help="Show section averages for one evaluation."
    ),
    search: str = typer.Option("", "--search", help="Only students whose name contains this."),
) -> None:
    """Print computed grades for every student of a course."""
    store = _store(ctx)
    course = _course(store, course_id)
    students = filter_students(course, search)
    threshold = get_settings().warning_threshold

    if evaluation_id:
        try:
            evaluation = editing.find_evaluation(course, evaluation_id)
        except GradebookError as e:
            _fail(str(e))
        typer.echo(f"# {course.name} / {evaluation.name} ({evaluation.weight or 0}%)")
        for s in students:
            bd = evaluation_breakdown(evaluation, s, threshold)
            cols = "  ".join(
                f"{sec.name}={bd.average_for(sec.id):.2f}" for sec in evaluation.sections
            )
            warn = "  (!) score above threshold" if bd.has_warning else ""
            typer.echo(f"{s.name}: {cols}  grade={bd.grade:.2f} {_mark(bd.grade)}{warn}")
        return

    typer.echo(f"# {course.name}")
    for s in students:
        cols = "  ".join(
            f"{ev.name}={evaluation_grade(ev, s):.2f}" for ev in course.evaluations
        )
        final = course_grade(course, s)
        typer.echo(f"{s.name}: {cols}  final={final:.2f} {_mark(final)}")
    st = course_stats(course, pass_mark=get_settings().pass_mark)
    typer.echo(
        f"\nApproved {st.approved_pct:.1f}%  Failed {st.failed_pct:.1f}%  Mean {st.mean:.2f}"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Grading scheme
# ─────────────────────────────────────────────────────────────────────────────

scheme_app = typer.Typer(help="Show and edit the grading scheme of a course.")
app.add_typer(scheme_app, name="scheme")

_WEIGHT_HELP = "Weight in percent; an empty string leaves it unset."


def _evaluation(course: Course, evaluation_id: str) -> Evaluation:
    try:
        return editing.find_evaluation(course, evaluation_id)
    except GradebookError as e:
        _fail(str(e))


def _section(evaluation: Evaluation, section_id: str) -> Section:
    try:
        return editing.find_section(evaluation, section_id)
    except GradebookError as e:
        _fail(str(e))


def _save_evaluation(store: GradebookStore, course: Course, evaluation: Evaluation) -> None:
    store.update_course(editing.replace_evaluation(course, evaluation))


@scheme_app.command("show")
def show_scheme(ctx: typer.Context, course_id: str) -> None:
    """Show the grading scheme of a course with weight sums."""
    course = _course(_store(ctx), course_id)
    typer.echo(scheme_to_markdown(course.evaluations), nl=False)


@scheme_app.command("add-evaluation")
def add_evaluation(
    ctx: typer.Context,
    course_id: str,
    name: str = typer.Option(None, "--name", "-n", help="Evaluation name."),
) -> None:
    """Append an evaluation (weight 0, one exam section)."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = editing.new_evaluation(name) if name else editing.new_evaluation()
    store.update_course(editing.add_evaluation(course, evaluation))
    typer.echo(f"Added evaluation {evaluation.id}: {evaluation.name}")


@scheme_app.command("update-evaluation")
def update_evaluation(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str,
    name: str = typer.Option(None, "--name", "-n", help="New name."),
    weight: str = typer.Option(None, "--weight", "-w", help=_WEIGHT_HELP),
) -> None:
    """Rename or re-weight an evaluation."""
    store = _store(ctx)
    course = _course(store, course_id)
    _evaluation(course, evaluation_id)
    changes = {"name": name}
    if weight is not None:
        changes["weight"] = weight
    try:
        updated = editing.update_evaluation(course, evaluation_id, **changes)
    except GradebookError as e:
        _fail(str(e))
    store.update_course(updated)
    typer.echo(f"Updated evaluation {evaluation_id}")


@scheme_app.command("delete-evaluation")
def delete_evaluation(ctx: typer.Context, course_id: str, evaluation_id: str) -> None:
    """Remove an evaluation; recorded grades are kept but no longer count."""
    store = _store(ctx)
    course = _course(store, course_id)
    _evaluation(course, evaluation_id)
    store.update_course(editing.delete_evaluation(course, evaluation_id))
    typer.echo(f"Deleted evaluation {evaluation_id}")


@scheme_app.command("add-section")
def add_section(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str,
    name: str = typer.Option(None, "--name", "-n", help="Section name."),
) -> None:
    """Append a section (weight 0, one item) to an evaluation."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    updated = editing.add_section(evaluation, name) if name else editing.add_section(evaluation)
    _save_evaluation(store, course, updated)
    section = updated.sections[-1]
    typer.echo(f"Added section {section.id}: {section.name}")


@scheme_app.command("update-section")
def update_section(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str,
    section_id: str,
    name: str = typer.Option(None, "--name", "-n", help="New name."),
    weight: str = typer.Option(None, "--weight", "-w", help=_WEIGHT_HELP),
) -> None:
    """Rename or re-weight a section."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    _section(evaluation, section_id)
    changes = {"name": name}
    if weight is not None:
        changes["weight"] = weight
    try:
        updated = editing.update_section(evaluation, section_id, **changes)
    except GradebookError as e:
        _fail(str(e))
    _save_evaluation(store, course, updated)
    typer.echo(f"Updated section {section_id}")


@scheme_app.command("delete-section")
def delete_section(
    ctx: typer.Context, course_id: str, evaluation_id: str, section_id: str
) -> None:
    """Remove a section; its items stop counting towards the evaluation."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    _section(evaluation, section_id)
    _save_evaluation(store, course, editing.delete_section(evaluation, section_id))
    typer.echo(f"Deleted section {section_id}")


@scheme_app.command("add-item")
def add_item(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str,
    section_id: str,
    name: str = typer.Option(None, "--name", "-n", help="Item name (default 'Item N')."),
) -> None:
    """Append a gradable item to a section."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    _section(evaluation, section_id)
    updated = editing.add_sub_item(evaluation, section_id, name)
    _save_evaluation(store, course, updated)
    item = editing.find_section(updated, section_id).sub_items[-1]
    typer.echo(f"Added item {item.id}: {item.name}")


@scheme_app.command("rename-item")
def rename_item(
    ctx: typer.Context,
    course_id: str,
    evaluation_id: str,
    section_id: str,
    item_id: str,
    name: str,
) -> None:
    """Rename a gradable item."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    section = _section(evaluation, section_id)
    if not any(s.id == item_id for s in section.sub_items):
        _fail(f"Unknown sub-item id: {item_id!r}")
    _save_evaluation(store, course, editing.rename_sub_item(evaluation, section_id, item_id, name))
    typer.echo(f"Renamed item {item_id}")


@scheme_app.command("delete-item")
def delete_item(
    ctx: typer.Context, course_id: str, evaluation_id: str, section_id: str, item_id: str
) -> None:
    """Remove an item; scores already recorded for it are ignored."""
    store = _store(ctx)
    course = _course(store, course_id)
    evaluation = _evaluation(course, evaluation_id)
    section = _section(evaluation, section_id)
    if not any(s.id == item_id for s in section.sub_items):
        _fail(f"Unknown sub-item id: {item_id!r}")
    _save_evaluation(store, course, editing.delete_sub_item(evaluation, section_id, item_id))
    typer.echo(f"Deleted item {item_id}")


# ─────────────────────────────────────────────────────────────────────────────
# Backup and preferences
# ─────────────────────────────────────────────────────────────────────────────


@app.command("export")
def export(
    ctx: typer.Context,
    path: Path = typer.Argument(None, help="Output file (default from settings)."),
) -> None:
    """Write every course to a JSON backup file."""
    out = export_courses(path or Path(get_settings().export_filename), _store(ctx).courses)
    typer.echo(f"Exported to {out}")


@app.command("import")
def import_(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON backup holding an array of courses."),
) -> None:
    """Replace all courses with those of a backup file."""
    try:
        courses = import_courses(_store(ctx), path)
    except ImportDataError as e:
        _fail(f"Error reading JSON file: {e}")
    typer.echo(f"Data imported successfully ({len(courses)} course(s)).")


@app.command("theme")
def theme(ctx: typer.Context) -> None:
    """Toggle the dark-mode flag."""
    dark = _store(ctx).toggle_theme()
    typer.echo(f"Dark mode {'on' if dark else 'off'}")
