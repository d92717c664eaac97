"""
Schedule API Routes
Generate, list, read, edit and delete saved round-robin schedules.
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chessclub.database import get_session
from chessclub.models.schedule import Schedule
from chessclub.services.schedule_builder import (
    InvalidMatchUpdateError,
    MatchUpdate,
    apply_match_updates,
    build_and_save_schedule,
    delete_schedule,
    serialize_schedule,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ScheduleGenerateRequest(BaseModel):
    start_date: Optional[date] = None  # first round is the Thursday after this (default: today)


class ScheduleUpdateRequest(BaseModel):
    matches: List[MatchUpdate]


class ScheduleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: date


class MatchResponse(BaseModel):
    match_key: str
    date: str  # YYYY-MM-DD
    round_number: int
    level: int
    player1: Optional[str] = None
    player2: Optional[str] = None
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    is_bye: bool
    status: str
    result: Optional[str] = None
    notes: str


class ScheduleResponse(BaseModel):
    id: int
    created_at: str
    matches: List[MatchResponse]


def _get_schedule_or_404(session: Session, schedule_id: int) -> Schedule:
    schedule = session.get(Schedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


# ============================================================================
# Schedule Endpoints
# ============================================================================


@router.post("/schedules", response_model=ScheduleResponse, status_code=201)
def generate_schedule(request: Optional[ScheduleGenerateRequest] = None, session: Session = Depends(get_session)):
    """
    Generate and save a new schedule from the current player list.

    One round robin per level; round 1 falls on the Thursday after
    start_date and each later round one week after the previous one.
    """
    start_date = request.start_date if request else None
    try:
        schedule = build_and_save_schedule(session, start_date=start_date)
    except SQLAlchemyError:
        logger.exception("POST /schedules failed")
        raise HTTPException(status_code=500, detail="Server error")
    return serialize_schedule(session, schedule)


@router.get("/schedules", response_model=List[ScheduleSummary])
def list_schedules(session: Session = Depends(get_session)):
    return session.exec(select(Schedule).order_by(Schedule.id)).all()


@router.get("/schedules/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: int, session: Session = Depends(get_session)):
    schedule = _get_schedule_or_404(session, schedule_id)
    return serialize_schedule(session, schedule)


@router.put("/schedules/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(schedule_id: int, request: ScheduleUpdateRequest, session: Session = Depends(get_session)):
    """
    Edit matches of a saved schedule.

    Matches are addressed by match_key; unknown keys are skipped.
    Null fields keep their stored value, except result which is always set.
    """
    schedule = _get_schedule_or_404(session, schedule_id)
    try:
        apply_match_updates(session, schedule, request.matches)
    except InvalidMatchUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError:
        logger.exception("PUT /schedules/%d failed", schedule_id)
        raise HTTPException(status_code=500, detail="Server error")
    return serialize_schedule(session, schedule)


@router.delete("/schedules/{schedule_id}", status_code=204)
def remove_schedule(schedule_id: int, session: Session = Depends(get_session)):
    """Delete a schedule together with its matches."""
    schedule = _get_schedule_or_404(session, schedule_id)
    try:
        delete_schedule(session, schedule)
    except SQLAlchemyError:
        logger.exception("DELETE /schedules/%d failed", schedule_id)
        raise HTTPException(status_code=500, detail="Server error")
    return None
