"""Issue detection over the whole program before moving to the next step.

Every rule runs on every call and all findings are returned; nothing is
cached. Blocking issues stop progression, warnings are informational.

Rule order (display only): athlete selection, athlete status, blocks by
index (duration, dates, overlap with the next block), program duration,
phase boundary, routine types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from core.config import get_settings
from core.logging_config import get_logger, log_context
from core.models import AthleteStatus
from core.services.calendar import block_duration_weeks, program_duration_weeks
from core.services.program_state import ProgramEditState

logger = get_logger(__name__)


@dataclass
class Issue:
    severity: str  # "blocking" or "warning"
    category: str
    description: str
    affected: str
    action: Optional[str] = None
    block_indices: list[int] = field(default_factory=list)


@dataclass
class IssueReport:
    blocking: list[Issue]
    warnings: list[Issue]

    @property
    def total(self) -> int:
        return len(self.blocking) + len(self.warnings)

    @property
    def can_advance(self) -> bool:
        return not self.blocking


def _fmt(day) -> str:
    return f"{day:%b} {day.day}"


def _fmt_long(day) -> str:
    return f"{day:%b} {day.day}, {day.year}"


def detect_issues(state: ProgramEditState) -> IssueReport:
    settings = get_settings()
    blocking: list[Issue] = []
    warnings: list[Issue] = []
    athlete = state.athlete

    if athlete is None:
        blocking.append(Issue(
            severity="blocking",
            category="Athlete Selection",
            description="Please select an athlete before proceeding",
            affected="Athlete Selection",
            action="Select Athlete",
        ))
    elif athlete.status is AthleteStatus.NOT_CLEARED:
        blocking.append(Issue(
            severity="blocking",
            category="Athlete Status",
            description=f'{athlete.name} has status "Not Cleared" and cannot receive programming',
            affected="Athlete Selection",
            action="Change Athlete",
        ))

    for idx, block in enumerate(state.blocks):
        label = f"Block {idx + 1}"
        duration = block_duration_weeks(block)
        if duration < settings.min_block_weeks:
            blocking.append(Issue(
                severity="blocking",
                category="Block Duration",
                description=f"{label} has duration of {duration} weeks (minimum {settings.min_block_weeks} week required)",
                affected=label,
                action="Extend Block",
                block_indices=[idx],
            ))
        if block.end_date < block.start_date:
            blocking.append(Issue(
                severity="blocking",
                category="Block Date",
                description=f"{label} end date is before start date",
                affected=label,
                action="Edit Block",
                block_indices=[idx],
            ))
        if idx < len(state.blocks) - 1:
            next_start = state.blocks[idx + 1].start_date
            if block.end_date >= next_start:
                blocking.append(Issue(
                    severity="blocking",
                    category="Block Overlap",
                    description=(
                        f"{label} end date ({_fmt(block.end_date)}) overlaps with "
                        f"Block {idx + 2} start date ({_fmt(next_start)})"
                    ),
                    affected=f"Blocks {idx + 1} and {idx + 2}",
                    action="Auto-fix Dates",
                    block_indices=[idx, idx + 1],
                ))

    if state.start_date is not None and state.end_date is not None:
        weeks = program_duration_weeks(state.start_date, state.end_date)
        if weeks > settings.max_program_weeks:
            blocking.append(Issue(
                severity="blocking",
                category="Program Duration",
                description=f"Program duration is {weeks} weeks (maximum {settings.max_program_weeks} weeks allowed)",
                affected="Program Duration",
                action="Reduce Duration",
            ))

    if athlete is not None and athlete.phase_end_date is not None and state.end_date is not None:
        if state.end_date > athlete.phase_end_date:
            warnings.append(Issue(
                severity="warning",
                category="Phase Boundary",
                description=(
                    f"Program ends {_fmt_long(state.end_date)} but current phase ends "
                    f"{_fmt_long(athlete.phase_end_date)}"
                ),
                affected="Program Duration",
                action="Adjust to Phase End",
            ))

    if not state.routine_types:
        blocking.append(Issue(
            severity="blocking",
            category="Routine Type",
            description="At least one routine type must be selected",
            affected="Routine Type Selection",
            action="Select Routine Type",
        ))

    logger.debug("issues_detected", extra=log_context(blocking=len(blocking), warnings=len(warnings)))
    return IssueReport(blocking=blocking, warnings=warnings)


def can_advance(state: ProgramEditState) -> bool:
    """Step gate: only blocking issues stop progression."""
    return detect_issues(state).can_advance
