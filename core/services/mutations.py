"""Single write path for routine settings.

Week and day edits apply at once. A block edit that would supersede existing
week/day exceptions is staged as a ``PendingChange`` instead; confirming it
writes the block value and clears every exception for that routine/field in
the block, discarding it leaves the state untouched.

At most one proposal per (block, routine, field) is pending. Staging a newer
one, or applying a block value for that target, retires the older token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import uuid4

from core.errors import InvalidOverrideTargetError, PendingChangeError
from core.logging_config import get_logger, log_context
from core.models import Routine, SettingsLevel, SettingsOverride, normalize_setting
from core.services.program_state import ProgramEditState

logger = get_logger(__name__)


class ChangeStatus(str, Enum):
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    APPLIED = "applied"
    DISCARDED = "discarded"
    SUPERSEDED = "superseded"


@dataclass
class AppliedChange:
    routine: Routine
    field: str
    value: str
    level: SettingsLevel
    block_index: int
    week_index: Optional[int] = None
    day_index: Optional[int] = None
    cleared_overrides: int = 0
    replaced: bool = False


@dataclass
class PendingChange:
    """A block-level edit waiting for the user to accept losing overrides."""

    token: str
    routine: Routine
    field: str
    value: str
    block_index: int
    affected_count: int
    status: ChangeStatus = ChangeStatus.AWAITING_CONFIRMATION


ChangeResult = Union[AppliedChange, PendingChange]


class MutationGateway:
    def __init__(self, state: ProgramEditState):
        self.state = state
        self._pending: dict[str, PendingChange] = {}

    @property
    def pending(self) -> list[PendingChange]:
        return list(self._pending.values())

    def get_pending(self, token: str) -> PendingChange:
        change = self._pending.get(token)
        if change is None:
            raise PendingChangeError(f"no pending change {token!r}")
        return change

    def set_value(
        self,
        routine: Routine | str,
        field: str,
        value: str,
        block_index: int,
        week_index: Optional[int] = None,
        day_index: Optional[int] = None,
        level: SettingsLevel | str = SettingsLevel.BLOCK,
    ) -> ChangeResult:
        routine_key, field = normalize_setting(routine, field)
        level = SettingsLevel(level)
        self._check_target(level, block_index, week_index, day_index)

        if level is SettingsLevel.BLOCK:
            affected = len(self.state.settings.overrides_for(block_index, routine_key, field))
            if affected > 0:
                self._supersede(block_index, routine_key, field)
                change = PendingChange(
                    token=uuid4().hex,
                    routine=routine_key,
                    field=field,
                    value=value,
                    block_index=block_index,
                    affected_count=affected,
                )
                self._pending[change.token] = change
                logger.info(
                    "block_change_staged",
                    extra=log_context(
                        token=change.token, block=block_index, routine=routine_key.value, field=field, affected=affected
                    ),
                )
                return change
            return self._apply_block(routine_key, field, value, block_index)

        override = SettingsOverride(
            block_index=block_index,
            week_index=week_index,
            day_index=day_index if level is SettingsLevel.DAY else None,
            level=level,
            routine=routine_key,
            field=field,
            value=value,
        )
        replaced = self.state.settings.upsert_override(override)
        logger.debug(
            "override_upserted",
            extra=log_context(
                level=level.value,
                block=block_index,
                week=week_index,
                day=override.day_index,
                routine=routine_key.value,
                field=field,
                replaced=replaced,
            ),
        )
        return AppliedChange(
            routine=routine_key,
            field=field,
            value=value,
            level=level,
            block_index=block_index,
            week_index=week_index,
            day_index=override.day_index,
            replaced=replaced,
        )

    def confirm(self, change: PendingChange | str) -> AppliedChange:
        pending = self._resolve(change)
        pending.status = ChangeStatus.APPLIED
        return self._apply_block(pending.routine, pending.field, pending.value, pending.block_index)

    def discard(self, change: PendingChange | str) -> PendingChange:
        pending = self._resolve(change)
        pending.status = ChangeStatus.DISCARDED
        logger.info("block_change_discarded", extra=log_context(token=pending.token, block=pending.block_index))
        return pending

    def _resolve(self, change: PendingChange | str) -> PendingChange:
        token = change.token if isinstance(change, PendingChange) else change
        pending = self._pending.pop(token, None)
        if pending is None:
            raise PendingChangeError(f"no pending change {token!r}")
        return pending

    def _apply_block(self, routine: Routine, field: str, value: str, block_index: int) -> AppliedChange:
        self._supersede(block_index, routine, field)
        store = self.state.settings
        store.set_block_value(block_index, routine, field, value)
        cleared = store.clear_overrides(block_index, routine, field)
        logger.info(
            "block_setting_applied",
            extra=log_context(block=block_index, routine=routine.value, field=field, cleared=cleared),
        )
        return AppliedChange(
            routine=routine,
            field=field,
            value=value,
            level=SettingsLevel.BLOCK,
            block_index=block_index,
            cleared_overrides=cleared,
        )

    def _check_target(
        self,
        level: SettingsLevel,
        block_index: int,
        week_index: Optional[int],
        day_index: Optional[int],
    ) -> None:
        if not 0 <= block_index < len(self.state.blocks):
            raise InvalidOverrideTargetError(f"block {block_index} does not exist")
        if level is SettingsLevel.BLOCK:
            return
        if week_index is None:
            raise InvalidOverrideTargetError(f"{level.value}-level values need a week index")
        if level is SettingsLevel.DAY and day_index is None:
            raise InvalidOverrideTargetError("day-level values need a day index")

        days_by_week = self.state.in_block_days(block_index)
        if week_index not in days_by_week:
            raise InvalidOverrideTargetError(f"block {block_index} has no week {week_index}")
        if level is SettingsLevel.DAY and day_index not in days_by_week[week_index]:
            raise InvalidOverrideTargetError(f"week {week_index} of block {block_index} has no day {day_index}")

    def _supersede(self, block_index: int, routine: Routine, field: str) -> None:
        stale = [
            token
            for token, change in self._pending.items()
            if change.block_index == block_index and change.routine == routine and change.field == field
        ]
        for token in stale:
            self._pending.pop(token).status = ChangeStatus.SUPERSEDED
        if stale:
            logger.info("block_change_superseded", extra=log_context(tokens=stale, block=block_index, field=field))
