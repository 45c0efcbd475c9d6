from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kurash.models.player import Player


class ResultType(str, Enum):
    pool = "pool"
    final = "final"


class Position(str, Enum):
    winner = "winner"
    runner_up = "runner_up"
    bronze = "bronze"
    semi_finalist = "semi_finalist"
    participant = "participant"


class SummaryResult(SQLModel, table=True):
    __tablename__ = "sub_event_summary_result"

    id: Optional[int] = Field(default=None, primary_key=True)
    sub_event_id: int = Field(foreign_key="subevent.id", index=True)
    group_name: str
    player_id: int = Field(foreign_key="player.id")
    result_type: ResultType = Field(sa_column=Column(String))
    position: Position = Field(sa_column=Column(String))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    player: Optional["Player"] = Relationship()
