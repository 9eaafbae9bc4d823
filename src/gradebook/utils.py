from pathlib import Path
from typing import Any

import yaml

from gradebook.errors import ValidationError
from gradebook.grading import weight_validity
from gradebook.models.course import Course, Student
from gradebook.models.scheme import Evaluation, Section, SubItem, effective_weight


def default_scheme() -> list[Evaluation]:
    """Built-in scheme for new courses: three terms weighted 33/33/34."""
    return [
        Evaluation(
            name="1ª Evaluación",
            weight=33,
            sections=[Section(name="Exámenes", weight=60, sub_items=[SubItem(name="Parcial 1")])],
        ),
        Evaluation(name="2ª Evaluación", weight=33, sections=[]),
        Evaluation(name="3ª Evaluación", weight=34, sections=[]),
    ]


def _expand_sub_items(evaluations: list[Any]) -> list[Any]:
    # Sub-items may be written as bare names in YAML.
    for ev in evaluations:
        if not isinstance(ev, dict):
            continue
        for section in ev.get("sections") or []:
            if not isinstance(section, dict):
                continue
            for key in ("sub_items", "subItems", "subsections"):
                if key in section:
                    section[key] = [
                        {"name": s} if isinstance(s, str) else s for s in section[key] or []
                    ]
    return evaluations


def load_scheme_yaml(path: str | Path) -> list[Evaluation]:
    """Load a YAML grading scheme, raising ValidationError on schema issues.

    The document is either a list of evaluations or a mapping with an
    ``evaluations`` key. Ids are optional and generated when missing.
    """
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as ex:
        raise ValidationError(f"Cannot read scheme '{path}': {ex}") from ex
    if isinstance(data, dict):
        data = data.get("evaluations")
    if not isinstance(data, list):
        raise ValidationError(f"Invalid scheme '{path}': expected a list of evaluations")
    try:
        return [Evaluation.model_validate(ev) for ev in _expand_sub_items(data)]
    except Exception as ex:  # pydantic.ValidationError or other
        raise ValidationError(f"Invalid scheme '{path}': {ex}") from ex


def filter_students(course: Course, term: str) -> list[Student]:
    """Students whose name contains ``term`` (case-insensitive)."""
    low = term.lower()
    return [s for s in course.students if low in s.name.lower()]


def _fmt_weight(weight: Any) -> str:
    return "unset" if weight == "" else f"{effective_weight(weight):g}%"


def scheme_to_markdown(evaluations: list[Evaluation]) -> str:
    """Render a scheme as a concise markdown outline with weights and sums."""
    lines: list[str] = []
    report = weight_validity(evaluations)
    mark = "ok" if report.is_valid else "does not sum to 100"
    lines.append(f"Evaluations total: {report.total:g}% ({mark})")
    for ev in evaluations:
        lines.append(f"- **{ev.name}** [{ev.id}] ({_fmt_weight(ev.weight)})")
        sub_report = weight_validity(ev.sections)
        if ev.sections and not sub_report.is_valid:
            lines.append(f"  - sections total {sub_report.total:g}% (does not sum to 100)")
        for section in ev.sections:
            lines.append(f"  - {section.name} [{section.id}] ({_fmt_weight(section.weight)})")
            for sub in section.sub_items:
                lines.append(f"    - {sub.name} [{sub.id}]")
    return "\n".join(lines) + "\n"
