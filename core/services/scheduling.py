from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from core.config import get_settings
from core.models import AthleteStatus, BuildType, ProgramRecord
from core.services.calendar import program_end_date


def active_programs(programs: Iterable[ProgramRecord], today: date) -> list[ProgramRecord]:
    """Programs that have not ended yet, sorted by start date."""
    return sorted((p for p in programs if p.end_date >= today), key=lambda p: p.start_date)


def find_program_covering(day: date, programs: Iterable[ProgramRecord], today: date) -> Optional[ProgramRecord]:
    """The active program whose range contains ``day``, if any."""
    for program in active_programs(programs, today):
        if program.start_date <= day <= program.end_date:
            return program
    return None


def is_date_in_past(day: date, today: date) -> bool:
    return day < today


def default_start_date(programs: Iterable[ProgramRecord], today: date) -> date:
    """First day without existing programming, starting from today.

    Today if it is free; otherwise the first day of a gap between active
    programs; otherwise the day after the last one ends.
    """
    ordered = active_programs(programs, today)
    if not ordered:
        return today
    if not any(p.start_date <= today <= p.end_date for p in ordered):
        return today

    for idx, program in enumerate(ordered):
        next_day = program.end_date + timedelta(days=1)
        if idx < len(ordered) - 1:
            if next_day < ordered[idx + 1].start_date:
                return next_day
        else:
            return next_day
    return max(p.end_date for p in ordered) + timedelta(days=1)


def default_program_window(start: date, weeks: Optional[int] = None) -> tuple[date, date]:
    if weeks is None:
        weeks = get_settings().default_program_weeks
    return start, program_end_date(start, weeks)


def suggested_build_type(status: Optional[AthleteStatus]) -> Optional[BuildType]:
    if status in (AthleteStatus.INJURED, AthleteStatus.NOT_CLEARED):
        return BuildType.INTERVENTION
    if status is AthleteStatus.CLEARED:
        return BuildType.STANDARD
    return None
