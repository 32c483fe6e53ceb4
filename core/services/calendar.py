"""Calendar partitioning: program -> blocks -> weeks -> days.

Weeks are Monday-aligned and clipped to their block. Day indices use the
Sunday-based encoding (0=Sunday .. 6=Saturday) but are listed Monday-first.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from core.config import get_settings
from core.models import Block, Day, TrainingSplit, Week, day_of_week

SPLIT_TRAINING_DAYS: dict[TrainingSplit, tuple[int, ...]] = {
    TrainingSplit.FOUR_DAY: (1, 2, 4, 5),  # Mon, Tue, Thu, Fri
    TrainingSplit.THREE_DAY: (1, 3, 5),  # Mon, Wed, Fri
    TrainingSplit.TWO_DAY: (1, 4),  # Mon, Thu
}
SUNDAY = 0


def difference_in_weeks(later: date, earlier: date) -> int:
    """Whole weeks between two dates, truncated toward zero."""
    days = (later - earlier).days
    return int(days / 7)


def start_of_week(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def end_of_week(day: date) -> date:
    """Sunday on or after ``day``."""
    return start_of_week(day) + timedelta(days=6)


def program_end_date(start: date, weeks: int) -> date:
    return start + timedelta(weeks=weeks) - timedelta(days=1)


def program_duration_weeks(start: date, end: date) -> int:
    return difference_in_weeks(end, start) + 1


def block_duration_weeks(block: Block) -> int:
    return difference_in_weeks(block.end_date, block.start_date)


def make_block(index: int, start_date: date, end_date: date) -> Block:
    """Block whose ``duration_weeks`` is measured from its dates."""
    return Block(
        index=index,
        start_date=start_date,
        end_date=end_date,
        duration_weeks=difference_in_weeks(end_date, start_date),
    )


def partition_program(start_date: date, block_count: int, block_duration_weeks: int) -> list[Block]:
    """Contiguous back-to-back blocks of equal calendar length starting at ``start_date``.

    Each block covers ``block_duration_weeks * 7`` days, so its measured
    ``duration_weeks`` is one less than the calendar length (a 4-week block
    runs Monday to the fourth Sunday and measures 3).
    """
    blocks: list[Block] = []
    for idx in range(block_count):
        block_start = start_date + timedelta(weeks=idx * block_duration_weeks)
        blocks.append(make_block(idx, block_start, program_end_date(block_start, block_duration_weeks)))
    return blocks


def weeks_for_block(block: Block, max_weeks: Optional[int] = None) -> list[Week]:
    """Monday-aligned weeks covering ``block``, first and last clipped to its bounds.

    A block whose end precedes its start yields no weeks. Iteration stops after
    ``max_weeks`` entries (default: the program cap plus one partial week).
    """
    if max_weeks is None:
        max_weeks = get_settings().max_program_weeks + 1

    weeks: list[Week] = []
    cursor = block.start_date
    while cursor <= block.end_date and len(weeks) < max_weeks:
        week_start = cursor
        week_end = min(end_of_week(cursor), block.end_date)
        weeks.append(Week(block_index=block.index, week_index=len(weeks), start_date=week_start, end_date=week_end))
        cursor = week_end + timedelta(days=1)
    return weeks


def training_days(split: TrainingSplit | str | None) -> tuple[int, ...]:
    """Active day indices for a split; unknown splits fall back to the 4-day pattern."""
    if split is None:
        return SPLIT_TRAINING_DAYS[TrainingSplit.FOUR_DAY]
    try:
        return SPLIT_TRAINING_DAYS[TrainingSplit(split)]
    except ValueError:
        return SPLIT_TRAINING_DAYS[TrainingSplit.FOUR_DAY]


def rest_days(split: TrainingSplit | str | None = None, days_off: Optional[Iterable[int]] = None) -> frozenset[int]:
    """Resolve the set of non-training days.

    An explicit ``days_off`` set is the source of truth. Without one, a split
    seeds it (Sunday plus every day the split does not train). With neither,
    only Sunday is off.
    """
    if days_off is not None:
        return frozenset(days_off)
    if split is None:
        return frozenset({SUNDAY})
    active = training_days(split)
    return frozenset({SUNDAY} | {d for d in range(1, 7) if d not in active})


def is_day_off(dow: int, split: TrainingSplit | str | None = None, days_off: Optional[Iterable[int]] = None) -> bool:
    return dow in rest_days(split, days_off)


def toggle_day_off(days_off: Iterable[int], dow: int) -> frozenset[int]:
    """Mark ``dow`` off, or restore it if it is already off."""
    if not 0 <= dow <= 6:
        raise ValueError(f"day of week must be 0..6, got {dow}")
    current = set(days_off)
    if dow in current:
        current.discard(dow)
    else:
        current.add(dow)
    return frozenset(current)


def days_for_week(
    week: Week,
    split: TrainingSplit | str | None = None,
    days_off: Optional[Iterable[int]] = None,
    in_block_only: bool = False,
) -> list[Day]:
    """Seven days from the Monday of ``week``, each tagged rest/in-block.

    With ``in_block_only`` the partial first/last week of a block is reduced to
    the days that fall inside it.
    """
    off = rest_days(split, days_off)
    monday = start_of_week(week.start_date)
    days: list[Day] = []
    for offset in range(7):
        current = monday + timedelta(days=offset)
        dow = day_of_week(current)
        in_block = week.contains(current)
        if in_block_only and not in_block:
            continue
        days.append(
            Day(
                block_index=week.block_index,
                week_index=week.week_index,
                day_of_week=dow,
                date=current,
                is_rest=dow in off,
                in_block=in_block,
            )
        )
    return days


def training_day_count(
    block: Block,
    split: TrainingSplit | str | None = None,
    days_off: Optional[Iterable[int]] = None,
) -> int:
    """Number of non-rest days inside the block's date range."""
    if block.end_date < block.start_date:
        return 0
    off = rest_days(split, days_off)
    total = (block.end_date - block.start_date).days + 1
    return sum(
        1 for offset in range(total) if day_of_week(block.start_date + timedelta(days=offset)) not in off
    )
