from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class WeightReport(BaseModel):
    """Sum of sibling weights; only used for user feedback, never enforced."""

    model_config = ConfigDict(extra="forbid")

    total: float
    is_valid: bool


class GradeBand(str, Enum):
    failing = "failing"
    borderline = "borderline"
    good = "good"


class SectionAverage(BaseModel):
    model_config = ConfigDict(extra="forbid")

    section_id: str
    average: float


class EvaluationBreakdown(BaseModel):
    """Per-section averages and the resulting evaluation grade for one student."""

    model_config = ConfigDict(extra="forbid")

    evaluation_id: str
    sections: list[SectionAverage] = Field(default_factory=list)
    grade: float
    has_warning: bool = Field(
        default=False, description="Some recorded score exceeds the warning threshold."
    )

    def average_for(self, section_id: str) -> float:
        for item in self.sections:
            if item.section_id == section_id:
                return item.average
        return 0.0


class CourseStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    students: int
    approved_pct: float = Field(description="Share of students at or above the pass mark (0-100).")
    failed_pct: float
    mean: float = Field(description="Mean course grade over all students.")
