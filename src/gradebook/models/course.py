from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from gradebook.models.scheme import Evaluation, new_id

# Raw score as stored: a number, "" when cleared, or legacy text.
GradeValue = Union[int, float, str]


class Student(BaseModel):
    """
    A student and their raw scores keyed by sub-item id.

    A missing key means "ungraded"; it is kept distinct from a stored 0.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""
    grades: dict[str, GradeValue] = Field(default_factory=dict)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Student(id={self.id!r}, name={self.name!r}, graded={len(self.grades)})"


class Course(BaseModel):
    """
    A course in the current (three-level) schema.

    Legacy records holding ``sections`` at the top level are normalized by
    ``gradebook.migration.migrate`` before reaching this model.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""
    evaluations: list[Evaluation] = Field(default_factory=list)
    students: list[Student] = Field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        """Persisted JSON shape of the course."""
        return self.model_dump(mode="json", by_alias=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"Course(name={self.name}, evaluations={len(self.evaluations)}, "
            f"students={len(self.students)})"
        )
