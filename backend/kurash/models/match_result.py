from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class MatchResult(SQLModel, table=True):
    __tablename__ = "sub_event_match_result"
    __table_args__ = (SAUniqueConstraint("sub_event_id", "stage_id", name="uq_match_result_stage"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    sub_event_id: int = Field(foreign_key="subevent.id", index=True)
    stage_id: str  # rendered StageKey, e.g. "Pool A-1.1", "knockout-1.2-match3", "final"

    # Structured stage key columns (see kurash.utils.stage_keys)
    stage_kind: str  # "group" | "knockout" | "final" | "third_place"
    pool_number: Optional[int] = Field(default=None)
    round_index: Optional[int] = Field(default=None)
    match_index: Optional[int] = Field(default=None)

    player1_id: int = Field(foreign_key="player.id")
    player2_id: Optional[int] = Field(default=None, foreign_key="player.id")
    winner_id: int = Field(foreign_key="player.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})
