from __future__ import annotations

from datetime import date as dt_date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SimpleStatusResponse(BaseModel):
    status: str


class BlockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    index: int
    name: str
    start_date: dt_date
    end_date: dt_date
    duration_weeks: int
    training_days: int = 0


class WeekOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    block_index: int
    week_index: int
    title: str
    start_date: dt_date
    end_date: dt_date


class DayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    block_index: int
    week_index: int
    day_of_week: int
    name: str
    date: dt_date
    is_rest: bool
    in_block: bool


class BuilderSessionOut(BaseModel):
    session_id: str
    athlete_id: Optional[str] = None
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None
    routine_types: list[str]
    training_split: Optional[str] = None
    suggested_build_type: Optional[str] = None
    days_off: list[int] = []
    blocks: list[BlockOut]


class EffectiveValueOut(BaseModel):
    routine: str
    field: str
    block_index: int
    week_index: Optional[int] = None
    day_index: Optional[int] = None
    value: Optional[str] = None


class OverrideBadgeOut(BaseModel):
    routine: str
    field: str
    block_index: int
    level: str
    week_index: Optional[int] = None
    has_overrides: bool


class ChangeOut(BaseModel):
    status: str
    routine: str
    field: str
    value: str
    block_index: int
    level: str = "block"
    week_index: Optional[int] = None
    day_index: Optional[int] = None
    token: Optional[str] = None
    affected_count: int = 0
    cleared_overrides: int = 0


class IssueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    severity: str
    category: str
    description: str
    affected: str
    action: Optional[str] = None
    block_indices: list[int] = []


class IssueReportOut(BaseModel):
    blocking: list[IssueOut]
    warnings: list[IssueOut]
    total: int
    can_advance: bool


class AutoFixOut(BaseModel):
    moved: list[int]
    blocks: list[BlockOut]


class SuggestedStartOut(BaseModel):
    athlete_id: str
    start_date: dt_date
    end_date: dt_date
    suggested_build_type: Optional[str] = None


class DaysOffOut(BaseModel):
    days_off: list[int]
    blocks: list[BlockOut]
