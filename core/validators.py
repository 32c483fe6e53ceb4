"""Pydantic validation models for all user-facing data entry points."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.models import ROUTINE_FIELDS, Routine, RoutineType, SettingsLevel, TrainingSplit


class ProgramSetupInput(BaseModel):
    athlete_id: Optional[str] = None
    start_date: Optional[date] = None
    program_weeks: Optional[int] = Field(default=None, ge=1, le=16)
    block_count: Optional[int] = Field(default=None, ge=1, le=16)
    block_weeks: Optional[int] = Field(default=None, ge=1, le=16)
    routine_types: Optional[list[str]] = None
    training_split: Optional[TrainingSplit] = None

    @field_validator("routine_types")
    @classmethod
    def valid_routine_types(cls, v):
        if v is None:
            return v
        allowed = {r.value for r in RoutineType}
        unknown = [item for item in v if item not in allowed]
        if unknown:
            raise ValueError(f"routine_types must be drawn from {sorted(allowed)}")
        return v


class BlockEditInput(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_weeks: Optional[int] = Field(default=None, ge=0, le=52)

    @model_validator(mode="after")
    def one_kind_of_edit(self):
        if self.duration_weeks is not None and self.end_date is not None:
            raise ValueError("give either end_date or duration_weeks, not both")
        if self.start_date is None and self.end_date is None and self.duration_weeks is None:
            raise ValueError("nothing to edit")
        return self


class SettingChangeInput(BaseModel):
    routine: Routine
    field: str = Field(min_length=1, max_length=40)
    value: str = Field(max_length=200)
    block_index: int = Field(ge=0)
    week_index: Optional[int] = Field(default=None, ge=0)
    day_index: Optional[int] = Field(default=None, ge=0, le=6)
    level: SettingsLevel = SettingsLevel.BLOCK

    @model_validator(mode="after")
    def known_field_and_level_indices(self):
        if self.field not in ROUTINE_FIELDS[self.routine]:
            raise ValueError(f"{self.routine.value} has no field {self.field!r}")
        if self.level is not SettingsLevel.BLOCK and self.week_index is None:
            raise ValueError(f"{self.level.value}-level changes need week_index")
        if self.level is SettingsLevel.DAY and self.day_index is None:
            raise ValueError("day-level changes need day_index")
        return self


class DayOffToggleInput(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
