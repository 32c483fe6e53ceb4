from __future__ import annotations

import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.deps import BuilderRegistry, BuilderSession, get_data_source, get_registry, get_session
from api.schemas import (
    AutoFixOut,
    BlockOut,
    BuilderSessionOut,
    ChangeOut,
    DayOut,
    DaysOffOut,
    EffectiveValueOut,
    IssueOut,
    IssueReportOut,
    OverrideBadgeOut,
    SimpleStatusResponse,
    SuggestedStartOut,
    WeekOut,
)
from core.errors import InvalidOverrideTargetError, PendingChangeError, UnknownSettingError
from core.models import Block, Routine, SettingsLevel
from core.services.calendar import days_for_week, training_day_count
from core.services.issues import detect_issues
from core.services.mutations import AppliedChange, PendingChange
from core.services.overrides import get_effective_value, has_overrides_beneath
from core.services.program_state import (
    ProgramEditState,
    auto_fix_overlaps,
    current_days_off,
    new_program_state,
    set_block_dates,
    set_block_duration,
    toggle_day_off,
)
from core.services.scheduling import default_program_window, default_start_date, suggested_build_type
from core.storage import ProgramDataSource
from core.validators import BlockEditInput, DayOffToggleInput, ProgramSetupInput, SettingChangeInput

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

Session = Annotated[BuilderSession, Depends(get_session)]


def _block_out(state: ProgramEditState, block: Block) -> BlockOut:
    return BlockOut(
        index=block.index,
        name=block.name,
        start_date=block.start_date,
        end_date=block.end_date,
        duration_weeks=block.duration_weeks,
        training_days=training_day_count(block, state.training_split, state.days_off),
    )


def _change_out(result: AppliedChange | PendingChange) -> ChangeOut:
    if isinstance(result, PendingChange):
        return ChangeOut(
            status=result.status.value,
            routine=result.routine.value,
            field=result.field,
            value=result.value,
            block_index=result.block_index,
            token=result.token,
            affected_count=result.affected_count,
        )
    return ChangeOut(
        status="applied",
        routine=result.routine.value,
        field=result.field,
        value=result.value,
        block_index=result.block_index,
        level=result.level.value,
        week_index=result.week_index,
        day_index=result.day_index,
        cleared_overrides=result.cleared_overrides,
    )


def _require_block(state: ProgramEditState, block_index: int) -> Block:
    try:
        return state.block(block_index)
    except IndexError:
        raise HTTPException(status_code=404, detail="Block not found")


@router.get("/health", response_model=SimpleStatusResponse, tags=["health"])
def health():
    return SimpleStatusResponse(status="ok")


@router.get("/athletes/{athlete_id}/suggested-start", response_model=SuggestedStartOut, tags=["athletes"])
def suggested_start(
    athlete_id: str,
    data_source: Annotated[ProgramDataSource, Depends(get_data_source)],
    today: Optional[date] = Query(None),
):
    athlete = data_source.get_athlete(athlete_id)
    if athlete is None:
        raise HTTPException(status_code=404, detail="Athlete not found")
    start = default_start_date(data_source.list_programs(athlete_id), today or date.today())
    start, end = default_program_window(start)
    build = suggested_build_type(athlete.status)
    return SuggestedStartOut(
        athlete_id=athlete.id,
        start_date=start,
        end_date=end,
        suggested_build_type=build.value if build else None,
    )


@router.post("/builder", response_model=BuilderSessionOut, status_code=201, tags=["builder"])
def open_builder(
    body: ProgramSetupInput,
    registry: Annotated[BuilderRegistry, Depends(get_registry)],
    data_source: Annotated[ProgramDataSource, Depends(get_data_source)],
):
    athlete = None
    if body.athlete_id is not None:
        athlete = data_source.get_athlete(body.athlete_id)
        if athlete is None:
            raise HTTPException(status_code=404, detail="Athlete not found")

    start = body.start_date
    if start is None:
        programs = data_source.list_programs(athlete.id) if athlete else []
        start = default_start_date(programs, date.today())

    state = new_program_state(
        start,
        athlete=athlete,
        block_count=body.block_count,
        block_weeks=body.block_weeks,
        program_weeks=body.program_weeks,
        routine_types=body.routine_types,
        training_split=body.training_split,
    )
    session = registry.open(state)
    build = suggested_build_type(athlete.status) if athlete else None
    logger.info("builder_opened", extra={"ctx_session": session.id, "ctx_athlete": body.athlete_id})
    return BuilderSessionOut(
        session_id=session.id,
        athlete_id=athlete.id if athlete else None,
        start_date=state.start_date,
        end_date=state.end_date,
        routine_types=state.routine_types,
        training_split=state.training_split.value if state.training_split else None,
        suggested_build_type=build.value if build else None,
        days_off=sorted(current_days_off(state)),
        blocks=[_block_out(state, b) for b in state.blocks],
    )


@router.delete("/builder/{session_id}", response_model=SimpleStatusResponse, tags=["builder"])
def close_builder(session_id: str, registry: Annotated[BuilderRegistry, Depends(get_registry)]):
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail="Builder session not found")
    return SimpleStatusResponse(status="closed")


@router.get("/builder/{session_id}/blocks", response_model=list[BlockOut], tags=["builder"])
def list_blocks(session: Session):
    return [_block_out(session.state, b) for b in session.state.blocks]


@router.patch("/builder/{session_id}/blocks/{block_index}", response_model=BlockOut, tags=["builder"])
def edit_block(block_index: int, body: BlockEditInput, session: Session):
    state = session.state
    _require_block(state, block_index)
    if body.start_date is not None or body.end_date is not None:
        set_block_dates(state, block_index, start_date=body.start_date, end_date=body.end_date)
    if body.duration_weeks is not None:
        set_block_duration(state, block_index, body.duration_weeks)
    return _block_out(state, state.blocks[block_index])


@router.post("/builder/{session_id}/blocks/auto-fix", response_model=AutoFixOut, tags=["builder"])
def auto_fix_blocks(session: Session):
    moved = auto_fix_overlaps(session.state)
    return AutoFixOut(moved=moved, blocks=[_block_out(session.state, b) for b in session.state.blocks])


@router.get("/builder/{session_id}/blocks/{block_index}/weeks", response_model=list[WeekOut], tags=["builder"])
def list_weeks(block_index: int, session: Session):
    _require_block(session.state, block_index)
    return [WeekOut.model_validate(w) for w in session.state.weeks(block_index)]


@router.patch("/builder/{session_id}/days-off", response_model=DaysOffOut, tags=["builder"])
def change_day_off(body: DayOffToggleInput, session: Session):
    state = session.state
    days_off = toggle_day_off(state, body.day_of_week)
    return DaysOffOut(days_off=sorted(days_off), blocks=[_block_out(state, b) for b in state.blocks])


@router.get(
    "/builder/{session_id}/blocks/{block_index}/weeks/{week_index}/days",
    response_model=list[DayOut],
    tags=["builder"],
)
def list_days(block_index: int, week_index: int, session: Session, in_block_only: bool = Query(True)):
    state = session.state
    _require_block(state, block_index)
    weeks = state.weeks(block_index)
    if not 0 <= week_index < len(weeks):
        raise HTTPException(status_code=404, detail="Week not found")
    days = days_for_week(weeks[week_index], state.training_split, state.days_off, in_block_only=in_block_only)
    return [DayOut.model_validate(d) for d in days]


@router.get("/builder/{session_id}/settings", response_model=EffectiveValueOut, tags=["settings"])
def effective_value(
    session: Session,
    routine: Routine,
    field: str,
    block_index: int = Query(ge=0),
    week_index: Optional[int] = Query(None, ge=0),
    day_index: Optional[int] = Query(None, ge=0, le=6),
):
    try:
        value = get_effective_value(session.state.settings, routine, field, block_index, week_index, day_index)
    except UnknownSettingError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return EffectiveValueOut(
        routine=routine.value,
        field=field,
        block_index=block_index,
        week_index=week_index,
        day_index=day_index,
        value=value,
    )


@router.put("/builder/{session_id}/settings", response_model=ChangeOut, tags=["settings"])
def change_setting(body: SettingChangeInput, session: Session):
    try:
        result = session.gateway.set_value(
            body.routine,
            body.field,
            body.value,
            body.block_index,
            week_index=body.week_index,
            day_index=body.day_index,
            level=body.level,
        )
    except InvalidOverrideTargetError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _change_out(result)


@router.get("/builder/{session_id}/pending/{token}", response_model=ChangeOut, tags=["settings"])
def pending_change(token: str, session: Session):
    try:
        result = session.gateway.get_pending(token)
    except PendingChangeError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return _change_out(result)


@router.post("/builder/{session_id}/pending/{token}/confirm", response_model=ChangeOut, tags=["settings"])
def confirm_change(token: str, session: Session):
    try:
        result = session.gateway.confirm(token)
    except PendingChangeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _change_out(result)


@router.post("/builder/{session_id}/pending/{token}/discard", response_model=ChangeOut, tags=["settings"])
def discard_change(token: str, session: Session):
    try:
        result = session.gateway.discard(token)
    except PendingChangeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _change_out(result)


@router.get("/builder/{session_id}/overrides/badge", response_model=OverrideBadgeOut, tags=["settings"])
def override_badge(
    session: Session,
    routine: Routine,
    field: str,
    block_index: int = Query(ge=0),
    level: SettingsLevel = Query(SettingsLevel.BLOCK),
    week_index: Optional[int] = Query(None, ge=0),
):
    try:
        flag = has_overrides_beneath(session.state.settings, routine, field, block_index, level, week_index)
    except UnknownSettingError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return OverrideBadgeOut(
        routine=routine.value,
        field=field,
        block_index=block_index,
        level=level.value,
        week_index=week_index,
        has_overrides=flag,
    )


@router.get("/builder/{session_id}/issues", response_model=IssueReportOut, tags=["builder"])
def issues(session: Session):
    report = detect_issues(session.state)
    return IssueReportOut(
        blocking=[IssueOut.model_validate(i) for i in report.blocking],
        warnings=[IssueOut.model_validate(i) for i in report.warnings],
        total=report.total,
        can_advance=report.can_advance,
    )
