"""Hierarchical settings: block defaults with week/day exceptions.

Block-level values live in a per-block map. Week and day values are
``SettingsOverride`` records indexed by (block, week, day, routine, field), so
writing the same key twice replaces the earlier record.

Resolution is most-specific-wins: day override, then week override, then the
block value. ``None`` means nothing is set and the caller applies its default.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Iterable, Optional

from core.logging_config import get_logger, log_context
from core.models import Routine, SettingsLevel, SettingsOverride, normalize_setting

logger = get_logger(__name__)

OverrideKey = tuple[int, int, Optional[int], Routine, str]


class OverrideStore:
    """Block settings map plus the week/day override index."""

    def __init__(self) -> None:
        self._block_settings: dict[int, dict[tuple[Routine, str], str]] = {}
        self._overrides: dict[OverrideKey, SettingsOverride] = {}

    @property
    def overrides(self) -> list[SettingsOverride]:
        return list(self._overrides.values())

    def block_settings(self, block_index: int) -> dict[str, dict[str, str]]:
        """Block-level values for one block, grouped by routine."""
        grouped: dict[str, dict[str, str]] = {}
        for (routine, field), value in self._block_settings.get(block_index, {}).items():
            grouped.setdefault(routine.value, {})[field] = value
        return grouped

    def block_value(self, block_index: int, routine: Routine, field: str) -> Optional[str]:
        return self._block_settings.get(block_index, {}).get((routine, field))

    def set_block_value(self, block_index: int, routine: Routine, field: str, value: str) -> None:
        self._block_settings.setdefault(block_index, {})[(routine, field)] = value

    def get_override(
        self,
        block_index: int,
        week_index: int,
        day_index: Optional[int],
        routine: Routine,
        field: str,
    ) -> Optional[SettingsOverride]:
        return self._overrides.get((block_index, week_index, day_index, routine, field))

    def upsert_override(self, override: SettingsOverride) -> bool:
        """Insert or replace the record at ``override.key``; True when it replaced one."""
        replaced = override.key in self._overrides
        # Replacement moves the record to the end, matching append-after-filter ordering.
        self._overrides.pop(override.key, None)
        self._overrides[override.key] = override
        return replaced

    def overrides_for(
        self,
        block_index: int,
        routine: Routine,
        field: str,
        week_index: Optional[int] = None,
    ) -> list[SettingsOverride]:
        return [
            o
            for o in self._overrides.values()
            if o.block_index == block_index
            and o.routine == routine
            and o.field == field
            and (week_index is None or o.week_index == week_index)
        ]

    def clear_overrides(self, block_index: int, routine: Routine, field: str) -> int:
        """Drop every week/day record for (block, routine, field); returns how many."""
        doomed = [o.key for o in self.overrides_for(block_index, routine, field)]
        for key in doomed:
            del self._overrides[key]
        return len(doomed)

    def prune(self, block_index: int, valid_days: dict[int, Iterable[int]]) -> int:
        """Remove overrides of ``block_index`` that no longer address an existing week/day.

        ``valid_days`` maps each existing week index to the day indices inside it.
        """
        allowed = {week: set(days) for week, days in valid_days.items()}
        doomed = [
            key
            for key, o in self._overrides.items()
            if o.block_index == block_index
            and (
                o.week_index not in allowed
                or (o.day_index is not None and o.day_index not in allowed[o.week_index])
            )
        ]
        for key in doomed:
            del self._overrides[key]
        if doomed:
            logger.info("overrides_pruned", extra=log_context(block=block_index, removed=len(doomed)))
        return len(doomed)

    def snapshot(self) -> tuple[dict, dict]:
        """Deep copy of both maps, for comparing state before and after an edit."""
        return deepcopy(self._block_settings), deepcopy(self._overrides)


def get_effective_value(
    store: OverrideStore,
    routine: Routine | str,
    field: str,
    block_index: int,
    week_index: Optional[int] = None,
    day_index: Optional[int] = None,
) -> Optional[str]:
    routine_key, field = normalize_setting(routine, field)

    if week_index is not None and day_index is not None:
        day_override = store.get_override(block_index, week_index, day_index, routine_key, field)
        if day_override is not None:
            return day_override.value

    if week_index is not None:
        week_override = store.get_override(block_index, week_index, None, routine_key, field)
        if week_override is not None:
            return week_override.value

    return store.block_value(block_index, routine_key, field)


def has_overrides_beneath(
    store: OverrideStore,
    routine: Routine | str,
    field: str,
    block_index: int,
    level: SettingsLevel | str,
    week_index: Optional[int] = None,
) -> bool:
    """Whether a cell has more specific values under it (badge indicator only).

    At block level any week or day record counts; at week level only day
    records of that week do. Days have nothing beneath them.
    """
    routine_key, field = normalize_setting(routine, field)
    level = SettingsLevel(level)

    if level is SettingsLevel.BLOCK:
        return bool(store.overrides_for(block_index, routine_key, field))
    if level is SettingsLevel.WEEK and week_index is not None:
        return any(o.day_index is not None for o in store.overrides_for(block_index, routine_key, field, week_index))
    return False
