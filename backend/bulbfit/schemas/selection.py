"""
Pydantic schemas for selection session requests and responses.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class StageName(str, Enum):
    YEAR = "year"
    BRAND = "brand"
    MODEL = "model"
    MODIFICATION = "modification"
    POSITION = "position"


class Option(BaseModel):
    """One selectable dropdown entry."""

    value: str
    label: str


class SetStageRequest(BaseModel):
    """New value for a stage; null or "" unsets it (and everything after it)."""

    value: int | str | None = None


class SelectionState(BaseModel):
    year: int | None = None
    brand: str | None = None
    model: str | None = None
    model_type: str | None = None
    body_type: str | None = None
    position_category: str | None = None
    position: str | None = None
    modification_value: str | None = None  # "<modelType>__<bodyType>"
    position_value: str | None = None  # "<positionCategory>__<position>"


class BulbChoiceOut(BaseModel):
    part_number: str
    link_url: str | None = None
    link_missing: bool = False  # no product page registered yet


class SupportContact(BaseModel):
    phone: str
    tel: str


class DecisionOut(BaseModel):
    """Result shown once a position is chosen and bulbs have loaded."""

    mode: Literal[
        "empty",
        "single",
        "binary_color_choice",
        "escalate_same_family",
        "escalate_ambiguous",
    ]
    single: BulbChoiceOut | None = None
    halogen: BulbChoiceOut | None = None  # yellow light
    xenon: BulbChoiceOut | None = None  # white light
    candidates: list[str] = Field(default_factory=list)
    reason: str | None = None
    support: SupportContact | None = None


class SessionSnapshot(BaseModel):
    """Everything the UI needs to render a selection session."""

    session_id: str
    selection: SelectionState = Field(default_factory=SelectionState)
    options: dict[str, list[Option]] = Field(default_factory=dict)
    loading: dict[str, bool] = Field(default_factory=dict)
    ready: dict[str, bool] = Field(default_factory=dict)
    decision: DecisionOut | None = None


class BulbLinkResponse(BaseModel):
    part_number: str
    link_url: str | None = None
    link_missing: bool = False
