from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kurash.models.sub_event_participant import SubEventParticipant


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = Field(default="")
    registered_association: Optional[str] = Field(default=None, index=True)
    weight: float = Field(default=0)
    birth_date: Optional[date] = Field(default=None)
    gender: Optional[str] = Field(default=None)  # "male" | "female"
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    entries: List["SubEventParticipant"] = Relationship(back_populates="player")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
