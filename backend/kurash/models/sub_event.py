from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kurash.models.event import Event
    from kurash.models.sub_event_participant import SubEventParticipant


def time_derived_seed() -> int:
    """Default pool shuffle seed: microseconds since epoch at creation time."""
    return int(datetime.utcnow().timestamp() * 1_000_000)


class SubEvent(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    title: str
    min_weight: float = Field(default=0)
    max_weight: float = Field(default=0)
    dob_start: Optional[date] = Field(default=None)
    dob_end: Optional[date] = Field(default=None)

    # Seed for the pool shuffle; replaced by an explicit re-draw
    bracket_seed: int = Field(default_factory=time_derived_seed)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: "Event" = Relationship(back_populates="sub_events")
    participants: List["SubEventParticipant"] = Relationship(back_populates="sub_event")
