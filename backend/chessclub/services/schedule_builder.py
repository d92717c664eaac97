"""
Schedule Builder Service

Persists round-robin schedules produced by the round_robin engine:
1. Load every player (level, name, id order)
2. Build one round robin per level, anchored on the next Thursday
3. Save a Schedule row plus one Match per scheduled pairing

Match keys are "<schedule_id>-<index>" in generation order, so edits made
later through the API can address a match without knowing its row id.
"""

import logging
from datetime import date as DateType
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from chessclub.models import Match, Player, Schedule
from chessclub.services.round_robin import BYE_NAME, build_club_schedule
from chessclub.utils.sql import scalar_int

logger = logging.getLogger(__name__)


class PlayerInUseError(Exception):
    """Raised when a player referenced by a saved match is deleted"""

    pass


class InvalidMatchUpdateError(Exception):
    """Raised when a match edit points at something that does not exist"""

    pass


class MatchUpdate(BaseModel):
    """One entry of a schedule edit; None keeps the stored value (except result)."""

    match_key: Optional[str] = None
    date: Optional[DateType] = None
    status: Optional[str] = None
    result: Optional[str] = None
    notes: Optional[str] = None
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None


# ============================================================================
# Players
# ============================================================================


def count_player_matches(session: Session, player_id: int) -> int:
    query = select(func.count()).select_from(Match).where(
        or_(Match.player1_id == player_id, Match.player2_id == player_id)
    )
    return scalar_int(session.exec(query).one())


def save_player(session: Session, player: Player) -> Player:
    """
    Insert or update a player.

    Raises:
        SQLAlchemyError: If the write fails (the transaction is rolled back)
    """
    try:
        session.add(player)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(player)
    return player


def delete_player(session: Session, player: Player) -> None:
    """
    Delete a player that no saved match refers to.

    Raises:
        PlayerInUseError: if the player appears in any saved schedule
        SQLAlchemyError: If the delete fails (the transaction is rolled back)
    """
    used = count_player_matches(session, player.id)
    if used > 0:
        raise PlayerInUseError(
            "Cannot delete player: they are assigned to one or more saved matches. "
            "Remove them from schedules (or delete those schedules) first."
        )
    try:
        session.delete(player)
        session.commit()
    except Exception:
        session.rollback()
        raise


# ============================================================================
# Schedules
# ============================================================================


def build_and_save_schedule(session: Session, start_date: Optional[DateType] = None) -> Schedule:
    """
    Generate a club-wide schedule and persist it in a single transaction.

    Args:
        session: Database session
        start_date: Reference date for the first Thursday (defaults to today)

    Returns:
        The saved Schedule (matches reachable via schedule.matches)

    Raises:
        SQLAlchemyError: If the insert fails (the transaction is rolled back)
    """
    reference = start_date or DateType.today()
    players = session.exec(select(Player).order_by(Player.level, Player.name, Player.id)).all()
    scheduled = build_club_schedule(players, reference)

    try:
        schedule = Schedule(created_at=DateType.today())
        session.add(schedule)
        session.flush()  # assigns schedule.id for match keys

        for idx, m in enumerate(scheduled):
            session.add(
                Match(
                    schedule_id=schedule.id,
                    match_key=f"{schedule.id}-{idx}",
                    match_date=m.date,
                    round_number=m.round_number,
                    level=m.level,
                    player1_id=m.player1_id,
                    player2_id=m.player2_id,
                    is_bye=m.is_bye,
                )
            )

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(schedule)
    logger.info(
        "Saved schedule %d: %d players, %d matches, first round %s",
        schedule.id,
        len(players),
        len(scheduled),
        scheduled[0].date.isoformat() if scheduled else "n/a",
    )
    return schedule


def delete_schedule(session: Session, schedule: Schedule) -> None:
    """Delete a schedule; its matches go with it (cascade)."""
    schedule_id = schedule.id
    try:
        session.delete(schedule)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Deleted schedule %d", schedule_id)


def get_schedule_matches(session: Session, schedule_id: int) -> List[Match]:
    """Matches of a schedule ordered by date, level, then generation order."""
    query = (
        select(Match)
        .where(Match.schedule_id == schedule_id)
        .order_by(col(Match.match_date), col(Match.level), col(Match.id))
    )
    return list(session.exec(query).all())


def serialize_match(match: Match) -> Dict[str, Any]:
    return {
        "match_key": match.match_key,
        "date": match.match_date.isoformat(),
        "round_number": match.round_number,
        "level": match.level,
        "player1": match.player1.name if match.player1 else None,
        "player2": BYE_NAME if match.is_bye else (match.player2.name if match.player2 else None),
        "player1_id": match.player1_id,
        "player2_id": match.player2_id,
        "is_bye": match.is_bye,
        "status": match.status,
        "result": match.result,
        "notes": match.notes,
    }


def serialize_schedule(session: Session, schedule: Schedule) -> Dict[str, Any]:
    return {
        "id": schedule.id,
        "created_at": schedule.created_at.isoformat(),
        "matches": [serialize_match(m) for m in get_schedule_matches(session, schedule.id)],
    }


def apply_match_updates(session: Session, schedule: Schedule, updates: List[MatchUpdate]) -> int:
    """
    Apply edits to matches of one schedule, addressed by match_key.

    Entries without a match_key, or with a key not in this schedule, are
    skipped. Null fields keep the stored value; result is always overwritten.

    Returns:
        Number of matches updated

    Raises:
        InvalidMatchUpdateError: if a referenced player does not exist
    """
    by_key = {m.match_key: m for m in session.exec(select(Match).where(Match.schedule_id == schedule.id)).all()}

    updated = 0
    try:
        for update in updates:
            if not update.match_key:
                continue
            match = by_key.get(update.match_key)
            if match is None:
                logger.warning("Schedule %d has no match %s; skipping", schedule.id, update.match_key)
                continue

            for player_id in (update.player1_id, update.player2_id):
                if player_id is not None and session.get(Player, player_id) is None:
                    raise InvalidMatchUpdateError(f"Player {player_id} not found")

            if update.date is not None:
                match.match_date = update.date
            if update.status is not None:
                match.status = update.status
            match.result = update.result
            if update.notes is not None:
                match.notes = update.notes
            if update.player1_id is not None:
                match.player1_id = update.player1_id
            if update.player2_id is not None:
                match.player2_id = update.player2_id
                match.is_bye = False

            session.add(match)
            updated += 1

        session.commit()
    except Exception:
        session.rollback()
        raise

    return updated
