from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from worldcup.models.worldcup import WorldCup

BYE_TITLE = "BYE"


class WorldCupItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    worldcup_id: int = Field(foreign_key="worldcup.id", index=True)
    title: str
    description: Optional[str] = None
    media_url: Optional[str] = None  # image or video reference, opaque to the engine
    order_num: int = Field(default=0)

    # Bye sentinel: padding opponent, never shown as a choosable option
    is_bye: bool = Field(default=False, index=True)

    # Aggregate counter owned by the stats sink
    championship_wins: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    worldcup: "WorldCup" = Relationship(back_populates="items")
