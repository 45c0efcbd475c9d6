from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kurash.models.player import Player
    from kurash.models.sub_event import SubEvent


class SubEventParticipant(SQLModel, table=True):
    __tablename__ = "sub_event_participant"
    __table_args__ = (SAUniqueConstraint("sub_event_id", "player_id", name="uq_sub_event_participant"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    sub_event_id: int = Field(foreign_key="subevent.id", index=True)
    player_id: int = Field(foreign_key="player.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    sub_event: "SubEvent" = Relationship(back_populates="participants")
    player: "Player" = Relationship(back_populates="entries")
