from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from chessclub.models.match import Match


class Schedule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: date = Field(default_factory=date.today)

    # Relationships
    matches: List["Match"] = Relationship(
        back_populates="schedule", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
