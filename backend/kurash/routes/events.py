from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from kurash.database import get_session
from kurash.models.event import Event
from kurash.models.sub_event import SubEvent
from kurash.routes.http_errors import to_http_exception
from kurash.services.errors import BracketError
from kurash.services.pool_assignment import Participant
from kurash.services.roster import add_participant, get_sub_event, load_roster

router = APIRouter()


class EventCreate(BaseModel):
    title: str
    gender: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    gender: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None


class SubEventCreate(BaseModel):
    title: str
    min_weight: float
    max_weight: float
    dob_start: Optional[date] = None
    dob_end: Optional[date] = None
    bracket_seed: Optional[int] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_weights(self):
        if self.max_weight < self.min_weight:
            raise ValueError("max_weight must be >= min_weight")
        return self


class SubEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    title: str
    min_weight: float
    max_weight: float
    dob_start: Optional[date] = None
    dob_end: Optional[date] = None
    bracket_seed: int
    created_at: datetime


class ParticipantCreate(BaseModel):
    player_id: int


class ParticipantResponse(BaseModel):
    id: int
    name: str
    association: str
    weight: float
    birth_date: Optional[date] = None


def participant_response(p: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        id=p.id, name=p.name, association=p.association, weight=p.weight, birth_date=p.birth_date
    )


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(event_data: EventCreate, session: Session = Depends(get_session)):
    """Create an event"""
    event = Event(**event_data.model_dump())
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: int, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/events/{event_id}/sub-events", response_model=List[SubEventResponse])
def get_event_sub_events(event_id: int, session: Session = Depends(get_session)):
    """Get all sub-events of an event, lightest weight category first"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    return session.exec(
        select(SubEvent).where(SubEvent.event_id == event_id).order_by(SubEvent.min_weight, SubEvent.id)
    ).all()


@router.post("/events/{event_id}/sub-events", response_model=SubEventResponse, status_code=201)
def create_sub_event(event_id: int, data: SubEventCreate, session: Session = Depends(get_session)):
    """Create a weight-category sub-event. bracket_seed defaults to a time-derived value."""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    values = data.model_dump(exclude_none=True)
    sub_event = SubEvent(event_id=event_id, **values)
    session.add(sub_event)
    session.commit()
    session.refresh(sub_event)
    return sub_event


@router.get("/sub-events/{sub_event_id}", response_model=SubEventResponse)
def read_sub_event(sub_event_id: int, session: Session = Depends(get_session)):
    try:
        return get_sub_event(session, sub_event_id)
    except BracketError as e:
        raise to_http_exception(e)


@router.get("/sub-events/{sub_event_id}/participants", response_model=List[ParticipantResponse])
def get_participants(sub_event_id: int, session: Session = Depends(get_session)):
    """Roster of a sub-event in the order players were added"""
    try:
        get_sub_event(session, sub_event_id)
        roster = load_roster(session, sub_event_id)
    except BracketError as e:
        raise to_http_exception(e)
    return [participant_response(p) for p in roster]


@router.post("/sub-events/{sub_event_id}/participants", response_model=List[ParticipantResponse], status_code=201)
def post_participant(sub_event_id: int, data: ParticipantCreate, session: Session = Depends(get_session)):
    """
    Add a player to the roster and return the refreshed roster.

    No eligibility checks are made here. Adding a player changes the pool draw,
    so previously recorded results may show up as drift on the bracket.
    """
    try:
        add_participant(session, sub_event_id, data.player_id)
        roster = load_roster(session, sub_event_id)
    except BracketError as e:
        raise to_http_exception(e)
    return [participant_response(p) for p in roster]
