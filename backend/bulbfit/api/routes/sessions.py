"""
Selection session API routes.

A session walks year -> brand -> model -> modification -> position. Each
PUT sets one stage, resets everything after it and kicks off the fetch of
the next option list. With wait=true (default) the response is returned
after that fetch settles; with wait=false it returns immediately and the
loading flags show what is still pending.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from bulbfit.config import settings
from bulbfit.schemas.selection import (
    BulbChoiceOut,
    DecisionOut,
    Option,
    SelectionState,
    SessionSnapshot,
    SetStageRequest,
    StageName,
    SupportContact,
)
from bulbfit.services.bulb_decision import BulbChoice, BulbDecision
from bulbfit.services.selection import CATEGORY_ORDER, SelectionError, Stage
from bulbfit.services.sessions import SelectionSession, session_store
from bulbfit.utils.options import format_options, modification_value, parse_modification, parse_position, position_value

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])

STAGES: dict[str, Stage] = {
    "year": Stage.YEAR,
    "brand": Stage.BRAND,
    "model": Stage.MODEL,
    "modification": Stage.MODIFICATION,
    "position": Stage.POSITION,
}


# ── Snapshot helpers ────────────────────────────────────────────────


def _choice_out(choice: BulbChoice | None) -> BulbChoiceOut | None:
    if choice is None:
        return None
    return BulbChoiceOut(part_number=choice.part_number, link_url=choice.link_url, link_missing=choice.link_missing)


def _decision_out(decision: BulbDecision | None) -> DecisionOut | None:
    if decision is None:
        return None
    support = None
    if decision.needs_support:
        support = SupportContact(phone=settings.support_phone, tel=settings.support_phone_tel)
    return DecisionOut(
        mode=decision.mode.value,
        single=_choice_out(decision.single),
        halogen=_choice_out(decision.halogen),
        xenon=_choice_out(decision.xenon),
        candidates=decision.candidates,
        reason=decision.reason,
        support=support,
    )


def build_snapshot(session: SelectionSession) -> SessionSnapshot:
    controller = session.controller
    sel = controller.selection
    mod = sel.modification
    pos = sel.position
    state = SelectionState(
        year=sel.year,
        brand=sel.brand,
        model=sel.model,
        model_type=mod.model_type if mod else None,
        body_type=mod.body_type if mod else None,
        position_category=pos.position_category if pos else None,
        position=pos.position if pos else None,
        modification_value=modification_value(mod) if mod else None,
        position_value=position_value(pos) if pos else None,
    )
    options = {
        category.value: [Option(**o) for o in format_options(category.value, controller.options(category))]
        for category in CATEGORY_ORDER
    }
    ready = {name: controller.is_ready_for_stage(stage) for name, stage in STAGES.items()}
    return SessionSnapshot(
        session_id=session.session_id,
        selection=state,
        options=options,
        loading=controller.loading,
        ready=ready,
        decision=_decision_out(controller.decision()),
    )


def _get_session(session_id: str) -> SelectionSession:
    session = session_store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _stage_value(stage: Stage, raw):
    """Translate a request value into what the controller expects for the stage."""
    if stage == Stage.MODIFICATION:
        return parse_modification(None if raw is None else str(raw))
    if stage == Stage.POSITION:
        return parse_position(None if raw is None else str(raw))
    return raw


# ── Routes ──────────────────────────────────────────────────────────


@router.post("", response_model=SessionSnapshot)
async def create_session(wait: bool = Query(True, description="Wait for the year list to load")):
    """Start a new selection session and load the available years."""
    session = session_store.create()
    task = session.controller.start()
    if wait and task is not None:
        await task
    return build_snapshot(session)


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str):
    """Current selection, option lists, loading flags and decision."""
    return build_snapshot(_get_session(session_id))


@router.put("/{session_id}/stages/{stage}", response_model=SessionSnapshot)
async def set_stage(
    session_id: str,
    stage: StageName,
    req: SetStageRequest,
    wait: bool = Query(True, description="Wait for the next option list to load"),
):
    """Set one stage; every later stage is reset."""
    session = _get_session(session_id)
    stage_enum = STAGES[stage.value]
    try:
        task = session.controller.set_field(stage_enum, _stage_value(stage_enum, req.value))
    except SelectionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if wait and task is not None:
        await task
    return build_snapshot(session)


@router.post("/{session_id}/clear", response_model=SessionSnapshot)
async def clear_session(session_id: str):
    """Reset the whole selection (the session's fetch cache is kept)."""
    session = _get_session(session_id)
    task = session.controller.clear_all()
    if task is not None:
        await task
    return build_snapshot(session)


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    """Close a session and cancel its pending fetches."""
    if not session_store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session closed"}
