"""
Player Management API Routes
CRUD for club members. Level drives which round robin a player joins.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chessclub.database import get_session
from chessclub.models.player import Player
from chessclub.services.schedule_builder import PlayerInUseError, delete_player, save_player

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if not v.strip():
        raise ValueError("name is required")
    return v.strip()


def _check_level(v: Optional[int]) -> Optional[int]:
    if v is not None and v < 1:
        raise ValueError("level must be >= 1")
    return v


class PlayerCreateRequest(BaseModel):
    name: str
    level: int

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        return _check_level(v)


class PlayerUpdateRequest(BaseModel):
    name: Optional[str] = None
    level: Optional[int] = None
    score: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        return _check_level(v)


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    level: int
    score: float
    created_at: datetime


# ============================================================================
# Player CRUD Endpoints
# ============================================================================


@router.get("/players", response_model=List[PlayerResponse])
def get_players(session: Session = Depends(get_session)):
    """Get all players ordered by id."""
    return session.exec(select(Player).order_by(Player.id)).all()


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(request: PlayerCreateRequest, session: Session = Depends(get_session)):
    """Create a player. Score starts at 0."""
    player = Player(name=request.name, level=request.level, score=0)
    try:
        return save_player(session, player)
    except SQLAlchemyError:
        logger.exception("POST /players failed")
        raise HTTPException(status_code=500, detail="Server error")


@router.put("/players/{player_id}", response_model=PlayerResponse)
def update_player(player_id: int, request: PlayerUpdateRequest, session: Session = Depends(get_session)):
    """
    Update a player's name, level, or score.

    Saved schedules keep their pairings; a level change only affects
    schedules generated afterwards.
    """
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    if request.name is not None:
        player.name = request.name
    if request.level is not None:
        player.level = request.level
    if request.score is not None:
        player.score = request.score

    try:
        return save_player(session, player)
    except SQLAlchemyError:
        logger.exception("PUT /players/%d failed", player_id)
        raise HTTPException(status_code=500, detail="Server error")


@router.delete("/players/{player_id}", status_code=204)
def remove_player(player_id: int, session: Session = Depends(get_session)):
    """
    Delete a player.

    Rejected with 409 while any saved match still references the player.
    """
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    try:
        delete_player(session, player)
    except PlayerInUseError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError:
        logger.exception("DELETE /players/%d failed", player_id)
        raise HTTPException(status_code=500, detail="Server error")

    return None
