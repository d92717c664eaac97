from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from chessclub.models.player import Player
    from chessclub.models.schedule import Schedule


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("schedule_id", "match_key", name="uq_schedule_match_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    schedule_id: int = Field(foreign_key="schedule.id", index=True)
    match_key: str  # "<schedule_id>-<index>", stable across edits
    match_date: date
    round_number: int
    level: int

    # player2_id is null for bye matches
    player1_id: int = Field(foreign_key="player.id")
    player2_id: Optional[int] = Field(default=None, foreign_key="player.id")
    is_bye: bool = Field(default=False)

    status: str = Field(default="scheduled")  # "scheduled" | "played" | "postponed" | "cancelled"
    result: Optional[str] = Field(default=None)  # e.g. "1-0", "0-1", "1/2-1/2"
    notes: str = Field(default="")

    # Relationships
    schedule: "Schedule" = Relationship(back_populates="matches")
    player1: "Player" = Relationship(
        back_populates="matches_as_player1", sa_relationship_kwargs={"foreign_keys": "Match.player1_id"}
    )
    player2: Optional["Player"] = Relationship(
        back_populates="matches_as_player2", sa_relationship_kwargs={"foreign_keys": "Match.player2_id"}
    )
