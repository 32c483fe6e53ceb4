"""The editable program aggregate and its block date edits.

Date edits are optimistic: nothing is rejected here, invalid ranges are left
for the issue detector to report. After each edit the block's overrides are
pruned so none refers to a week or day that no longer exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from core.config import get_settings
from core.logging_config import get_logger, log_context
from core.models import DEFAULT_ROUTINE_TYPES, AthleteRecord, Block, TrainingSplit, Week
from core.services.calendar import (
    block_duration_weeks,
    days_for_week,
    make_block,
    partition_program,
    program_end_date,
    rest_days,
    weeks_for_block,
)
from core.services.calendar import toggle_day_off as _toggle
from core.services.overrides import OverrideStore

logger = get_logger(__name__)


@dataclass
class ProgramEditState:
    blocks: list[Block]
    settings: OverrideStore = field(default_factory=OverrideStore)
    athlete: Optional[AthleteRecord] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    routine_types: list[str] = field(default_factory=lambda: [r.value for r in DEFAULT_ROUTINE_TYPES])
    training_split: Optional[TrainingSplit] = None
    days_off: Optional[frozenset[int]] = None

    def block(self, index: int) -> Block:
        if not 0 <= index < len(self.blocks):
            raise IndexError(f"block {index} does not exist")
        return self.blocks[index]

    def weeks(self, block_index: int) -> list[Week]:
        return weeks_for_block(self.block(block_index))

    def in_block_days(self, block_index: int) -> dict[int, list[int]]:
        """Week index -> day indices that fall inside the block."""
        return {
            week.week_index: [d.day_of_week for d in days_for_week(week, in_block_only=True)]
            for week in self.weeks(block_index)
        }


def new_program_state(
    start_date: date,
    athlete: Optional[AthleteRecord] = None,
    block_count: Optional[int] = None,
    block_weeks: Optional[int] = None,
    program_weeks: Optional[int] = None,
    routine_types: Optional[list[str]] = None,
    training_split: Optional[TrainingSplit] = None,
) -> ProgramEditState:
    """Fresh program: default blocks back to back from ``start_date``."""
    settings = get_settings()
    block_count = settings.default_block_count if block_count is None else block_count
    block_weeks = settings.default_block_weeks if block_weeks is None else block_weeks
    program_weeks = settings.default_program_weeks if program_weeks is None else program_weeks

    state = ProgramEditState(
        blocks=partition_program(start_date, block_count, block_weeks),
        athlete=athlete,
        start_date=start_date,
        end_date=program_end_date(start_date, program_weeks),
        training_split=training_split,
    )
    if routine_types is not None:
        state.routine_types = list(routine_types)
    logger.debug(
        "program_state_created",
        extra=log_context(start=start_date, blocks=block_count, block_weeks=block_weeks, program_weeks=program_weeks),
    )
    return state


def _reindex_and_prune(state: ProgramEditState, index: int) -> None:
    block = state.blocks[index]
    block.duration_weeks = block_duration_weeks(block)
    state.settings.prune(index, state.in_block_days(index))


def set_block_dates(
    state: ProgramEditState,
    index: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Block:
    block = state.block(index)
    if start_date is not None:
        block.start_date = start_date
    if end_date is not None:
        block.end_date = end_date
    _reindex_and_prune(state, index)
    logger.info(
        "block_dates_edited",
        extra=log_context(block=index, start=block.start_date, end=block.end_date, weeks=block.duration_weeks),
    )
    return block


def set_block_duration(state: ProgramEditState, index: int, weeks: int) -> Block:
    """Resize a block from its start date so it measures exactly ``weeks``; the end moves."""
    block = state.block(index)
    return set_block_dates(state, index, end_date=block.start_date + timedelta(weeks=weeks))


def append_block(state: ProgramEditState, start_date: Optional[date] = None, weeks: Optional[int] = None) -> Block:
    """Add a block after the last one, by default starting the day after it ends.

    ``weeks`` is the calendar length, as in ``partition_program``.
    """
    if weeks is None:
        weeks = get_settings().default_block_weeks
    if start_date is None:
        start_date = state.blocks[-1].end_date + timedelta(days=1) if state.blocks else (state.start_date or date.today())
    block = make_block(len(state.blocks), start_date, program_end_date(start_date, weeks))
    state.blocks.append(block)
    logger.info("block_appended", extra=log_context(block=block.index, start=block.start_date, weeks=weeks))
    return block


def auto_fix_overlaps(state: ProgramEditState) -> list[int]:
    """Shift overlapping blocks forward so each starts the day after its predecessor.

    Block lengths are preserved and the shift cascades. Returns the indices of
    the blocks that moved.
    """
    moved: list[int] = []
    for idx in range(1, len(state.blocks)):
        prev = state.blocks[idx - 1]
        block = state.blocks[idx]
        if prev.end_date < block.start_date:
            continue
        span = block.end_date - block.start_date
        new_start = prev.end_date + timedelta(days=1)
        set_block_dates(state, idx, start_date=new_start, end_date=new_start + span)
        moved.append(idx)
    if moved:
        logger.info("block_overlaps_fixed", extra=log_context(moved=moved))
    return moved


def current_days_off(state: ProgramEditState) -> frozenset[int]:
    return rest_days(state.training_split, state.days_off)


def toggle_day_off(state: ProgramEditState, dow: int) -> frozenset[int]:
    """Mark a day of the week off for the whole program, or restore it.

    The first toggle seeds the explicit set from the training split; from then
    on the explicit set is the only source of rest days.
    """
    state.days_off = _toggle(current_days_off(state), dow)
    logger.info("day_off_toggled", extra=log_context(day=dow, days_off=sorted(state.days_off)))
    return state.days_off
