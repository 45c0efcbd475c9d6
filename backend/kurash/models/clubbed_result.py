from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kurash.models.player import Player


class ClubbedResult(SQLModel, table=True):
    __tablename__ = "sub_event_clubbed_result"

    id: Optional[int] = Field(default=None, primary_key=True)
    sub_event_id: int = Field(foreign_key="subevent.id", index=True)
    player_id: int = Field(foreign_key="player.id")
    rank: str  # "1st" | "2nd" | "3rd" | free text for manual entries
    remarks: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    player: Optional["Player"] = Relationship()
