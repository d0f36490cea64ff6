from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from worldcup.models.item import WorldCupItem
    from worldcup.models.tournament import Tournament


class WorldCup(SQLModel, table=True):
    """An item pool that tournaments are played over."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    # Number of completed plays; incremented by the stats sink
    participants: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    items: List["WorldCupItem"] = Relationship(back_populates="worldcup")
    tournaments: List["Tournament"] = Relationship(back_populates="worldcup")
