"""
Player registry API Routes
Minimal create/list; eligibility rules live outside this service.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from kurash.database import get_session
from kurash.models.player import Player

router = APIRouter()


class PlayerCreate(BaseModel):
    first_name: str
    last_name: str = ""
    registered_association: Optional[str] = None
    weight: float = 0
    birth_date: Optional[date] = None
    gender: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v):
        if not v or not v.strip():
            raise ValueError("first_name cannot be empty")
        return v.strip()

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v):
        if v < 0:
            raise ValueError("weight must be >= 0")
        return v


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    registered_association: Optional[str] = None
    weight: float
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    created_at: datetime


@router.get("/players", response_model=List[PlayerResponse])
def list_players(
    association: Optional[str] = Query(None, description="Filter by registered association"),
    session: Session = Depends(get_session),
):
    """List players ordered by id"""
    query = select(Player).order_by(Player.id)
    if association:
        query = query.where(Player.registered_association == association)
    return session.exec(query).all()


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(player_data: PlayerCreate, session: Session = Depends(get_session)):
    """Register a player"""
    player = Player(**player_data.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.get("/players/{player_id}", response_model=PlayerResponse)
def get_player(player_id: int, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player
