from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from worldcup.models.item import WorldCupItem
    from worldcup.models.tournament import Tournament


class Match(SQLModel, table=True):
    __table_args__ = (
        # One match per bracket position; a second advance of the same round cannot insert duplicates
        SAUniqueConstraint("tournament_id", "round", "match_number", name="uq_match_bracket_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round: int  # 1-based
    match_number: int  # 1-based within the round; winners of 2k-1 and 2k meet in match k of the next round

    item1_id: int = Field(foreign_key="worldcupitem.id")
    item2_id: int = Field(foreign_key="worldcupitem.id")

    # Set exactly once, by the resolver or by bye auto-resolution
    winner_id: Optional[int] = Field(default=None, foreign_key="worldcupitem.id")
    auto_resolved: bool = Field(default=False)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
    item1: "WorldCupItem" = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.item1_id"})
    item2: "WorldCupItem" = Relationship(sa_relationship_kwargs={"foreign_keys": "Match.item2_id"})

    @property
    def is_resolved(self) -> bool:
        return self.winner_id is not None

    @property
    def loser_id(self) -> Optional[int]:
        if self.winner_id is None:
            return None
        return self.item2_id if self.winner_id == self.item1_id else self.item1_id
