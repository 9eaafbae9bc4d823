# scheme.py

import random
import string
from typing import Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# ─────────────────────────────────────────────────────────────────────────────
# Identifiers and weights
# ─────────────────────────────────────────────────────────────────────────────

_ID_ALPHABET = string.ascii_lowercase + string.digits

UNSET: Literal[""] = ""

# A weight is a percentage, or the empty string while the user has not set it.
Weight = Union[int, float, Literal[""]]


def new_id() -> str:
    """Fresh random 9-character id (lowercase letters and digits)."""
    return "".join(random.choices(_ID_ALPHABET, k=9))


def effective_weight(weight: Weight | None) -> float:
    """Weight used for computation: unset counts as 0."""
    if weight is None or weight == UNSET:
        return 0.0
    return float(weight)


# ─────────────────────────────────────────────────────────────────────────────
# Grading scheme: evaluations → sections → sub-items
# ─────────────────────────────────────────────────────────────────────────────


class SubItem(BaseModel):
    """Smallest gradable unit (e.g. one exam)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""


class Section(BaseModel):
    """Weighted category inside an evaluation (e.g. "Exams")."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""
    weight: Weight = 0
    sub_items: list[SubItem] = Field(
        default_factory=list,
        alias="subItems",
        validation_alias=AliasChoices("subItems", "subsections", "sub_items"),
    )


class Evaluation(BaseModel):
    """Top-level grading period of a course (e.g. a term)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""
    weight: Weight = 0
    sections: list[Section] = Field(default_factory=list)
