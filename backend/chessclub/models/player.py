from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from chessclub.models.match import Match


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    level: int = Field(index=True)  # Skill tier; round robins are built per level
    score: float = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    # Relationships
    matches_as_player1: List["Match"] = Relationship(
        back_populates="player1", sa_relationship_kwargs={"foreign_keys": "Match.player1_id"}
    )
    matches_as_player2: List["Match"] = Relationship(
        back_populates="player2", sa_relationship_kwargs={"foreign_keys": "Match.player2_id"}
    )
