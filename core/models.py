from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from core.errors import UnknownSettingError


class Routine(str, Enum):
    THROWING = "throwing"
    MOVEMENT = "movement"
    LIFTING = "lifting"
    NUTRITION = "nutrition"
    TRAINING_SPLIT = "training-split"
    XROLE = "xrole"
    CONDITIONING = "conditioning"


ROUTINE_FIELDS: dict[Routine, frozenset[str]] = {
    Routine.THROWING: frozenset({"phase", "focus", "intensity", "exclusions"}),
    Routine.MOVEMENT: frozenset({"focus", "type", "intensity", "volume"}),
    Routine.LIFTING: frozenset({"focus_upper", "focus_lower", "core_emphasis", "variability", "scheme", "exclusions"}),
    Routine.NUTRITION: frozenset({"focus", "rate", "macros_high", "macros_rest"}),
    Routine.TRAINING_SPLIT: frozenset({"type"}),
    Routine.XROLE: frozenset({"pitcher"}),
    Routine.CONDITIONING: frozenset({"core_emphasis", "adaptation", "method"}),
}


class SettingsLevel(str, Enum):
    BLOCK = "block"
    WEEK = "week"
    DAY = "day"


class TrainingSplit(str, Enum):
    FOUR_DAY = "4"
    THREE_DAY = "3"
    TWO_DAY = "2"


class AthleteStatus(str, Enum):
    CLEARED = "cleared"
    NOT_CLEARED = "not cleared"
    INJURED = "injured"
    REHABBING = "rehabbing"
    LINGERING_ISSUES = "lingering-issues"


class BuildType(str, Enum):
    STANDARD = "standard"
    INTERVENTION = "intervention"


class RoutineType(str, Enum):
    MOVEMENT = "movement"
    THROWING = "throwing"
    LIFTING = "lifting"
    STRENGTH_CONDITIONING = "strength-conditioning"
    NUTRITION = "nutrition"


DEFAULT_ROUTINE_TYPES: tuple[RoutineType, ...] = (
    RoutineType.MOVEMENT,
    RoutineType.THROWING,
    RoutineType.LIFTING,
    RoutineType.STRENGTH_CONDITIONING,
)

# 0=Sunday .. 6=Saturday, the encoding used for day indices throughout.
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def normalize_setting(routine: Routine | str, field_name: str) -> tuple[Routine, str]:
    """Validate a routine/field pair and return the routine as an enum member."""
    try:
        routine_key = Routine(routine)
    except ValueError as exc:
        raise UnknownSettingError(f"unknown routine {routine!r}") from exc
    if field_name not in ROUTINE_FIELDS[routine_key]:
        raise UnknownSettingError(f"{routine_key.value} has no field {field_name!r}")
    return routine_key, field_name


def day_of_week(day: date) -> int:
    """Sunday-based day index for a calendar date."""
    return (day.weekday() + 1) % 7


@dataclass
class Block:
    """One training phase segment; ``end_date`` is inclusive.

    ``duration_weeks`` is always the whole weeks between ``start_date`` and
    ``end_date``, the measure the issue detector checks.
    """

    index: int
    start_date: date
    end_date: date
    duration_weeks: int

    @property
    def name(self) -> str:
        return f"Block {self.index + 1}"


@dataclass(frozen=True)
class Week:
    block_index: int
    week_index: int
    start_date: date
    end_date: date

    @property
    def title(self) -> str:
        return f"Week {self.week_index + 1}"

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Day:
    block_index: int
    week_index: int
    day_of_week: int
    date: date
    is_rest: bool
    in_block: bool

    @property
    def name(self) -> str:
        return DAY_NAMES[self.day_of_week]


@dataclass(frozen=True)
class SettingsOverride:
    """A week- or day-level exception to a block's setting."""

    block_index: int
    week_index: int
    day_index: Optional[int]
    level: SettingsLevel
    routine: Routine
    field: str
    value: str

    @property
    def key(self) -> tuple[int, int, Optional[int], Routine, str]:
        return (self.block_index, self.week_index, self.day_index, self.routine, self.field)


@dataclass
class AthleteRecord:
    id: str
    name: str
    status: Optional[AthleteStatus] = None
    phase_end_date: Optional[date] = None
    position: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AthleteRecord":
        status = data.get("status")
        phase_end = data.get("phase_end_date")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            status=AthleteStatus(status) if status else None,
            phase_end_date=date.fromisoformat(phase_end) if isinstance(phase_end, str) else phase_end,
            position=str(data.get("position") or ""),
        )


@dataclass
class ProgramRecord:
    id: str
    athlete_id: str
    start_date: date
    end_date: date
    routine_types: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgramRecord":
        start = data["start_date"]
        end = data["end_date"]
        return cls(
            id=str(data["id"]),
            athlete_id=str(data["athlete_id"]),
            start_date=date.fromisoformat(start) if isinstance(start, str) else start,
            end_date=date.fromisoformat(end) if isinstance(end, str) else end,
            routine_types=list(data.get("routine_types") or []),
        )
