from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from worldcup.models.match import Match
    from worldcup.models.worldcup import WorldCup


class Tournament(SQLModel, table=True):
    """One playthrough of a world cup's item pool."""

    id: Optional[int] = Field(default=None, primary_key=True)
    worldcup_id: int = Field(foreign_key="worldcup.id", index=True)
    user_id: Optional[str] = Field(default=None, index=True)  # null for anonymous play

    bracket_size: int  # padded participant count (power of two)
    total_rounds: int  # log2(bracket_size); fixed at seed time
    current_round: int = Field(default=1)  # only ever incremented by the round advancer

    winner_item_id: Optional[int] = Field(default=None, foreign_key="worldcupitem.id")
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(default=None)

    # Relationships
    worldcup: "WorldCup" = Relationship(back_populates="tournaments")
    matches: List["Match"] = Relationship(back_populates="tournament")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
