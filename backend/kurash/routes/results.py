"""
Summary and clubbed results API Routes.

Rows are mostly emitted by winner recording; these endpoints list them and let
an operator add or delete rows by hand.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from kurash.database import get_session
from kurash.models.clubbed_result import ClubbedResult
from kurash.models.summary_result import Position, ResultType, SummaryResult
from kurash.routes.http_errors import to_http_exception
from kurash.services import bracket_service
from kurash.services.errors import BracketError
from kurash.services.roster import UNKNOWN_ASSOCIATION

router = APIRouter()


class ResultPlayer(BaseModel):
    id: int
    name: str
    association: str


class SummaryResultCreate(BaseModel):
    group_name: str = ""
    player_id: Optional[int] = None
    result_type: Optional[ResultType] = None
    position: Optional[Position] = None


class SummaryResultResponse(BaseModel):
    id: int
    sub_event_id: int
    group_name: str
    player_id: int
    result_type: ResultType
    position: Position
    created_at: datetime
    player: Optional[ResultPlayer] = None


class ClubbedResultCreate(BaseModel):
    player_id: Optional[int] = None
    rank: str = ""
    remarks: str = ""


class ClubbedResultResponse(BaseModel):
    id: int
    sub_event_id: int
    player_id: int
    rank: str
    remarks: str
    created_at: datetime
    player: Optional[ResultPlayer] = None


def _result_player(player) -> Optional[ResultPlayer]:
    if player is None:
        return None
    return ResultPlayer(
        id=player.id,
        name=player.full_name,
        association=player.registered_association or UNKNOWN_ASSOCIATION,
    )


def _summary_response(row: SummaryResult) -> SummaryResultResponse:
    return SummaryResultResponse(
        id=row.id,
        sub_event_id=row.sub_event_id,
        group_name=row.group_name,
        player_id=row.player_id,
        result_type=row.result_type,
        position=row.position,
        created_at=row.created_at,
        player=_result_player(row.player),
    )


def _clubbed_response(row: ClubbedResult) -> ClubbedResultResponse:
    return ClubbedResultResponse(
        id=row.id,
        sub_event_id=row.sub_event_id,
        player_id=row.player_id,
        rank=row.rank,
        remarks=row.remarks,
        created_at=row.created_at,
        player=_result_player(row.player),
    )


@router.get("/sub-events/{sub_event_id}/summary-results", response_model=List[SummaryResultResponse])
def get_summary_results(sub_event_id: int, session: Session = Depends(get_session)):
    try:
        rows = bracket_service.list_summary_results(session, sub_event_id)
    except BracketError as e:
        raise to_http_exception(e)
    return [_summary_response(r) for r in rows]


@router.post("/sub-events/{sub_event_id}/summary-results", response_model=SummaryResultResponse, status_code=201)
def post_summary_result(sub_event_id: int, data: SummaryResultCreate, session: Session = Depends(get_session)):
    """Add a summary row by hand; all fields are required."""
    try:
        row = bracket_service.add_summary_result(
            session, sub_event_id, data.group_name, data.player_id, data.result_type, data.position
        )
    except BracketError as e:
        raise to_http_exception(e)
    return _summary_response(row)


@router.delete("/summary-results/{result_id}", status_code=204)
def remove_summary_result(result_id: int, session: Session = Depends(get_session)):
    """Delete one summary row; every other row is left untouched."""
    try:
        bracket_service.delete_summary_result(session, result_id)
    except BracketError as e:
        raise to_http_exception(e)
    return None


@router.get("/sub-events/{sub_event_id}/clubbed-results", response_model=List[ClubbedResultResponse])
def get_clubbed_results(sub_event_id: int, session: Session = Depends(get_session)):
    try:
        rows = bracket_service.list_clubbed_results(session, sub_event_id)
    except BracketError as e:
        raise to_http_exception(e)
    return [_clubbed_response(r) for r in rows]


@router.post("/sub-events/{sub_event_id}/clubbed-results", response_model=ClubbedResultResponse, status_code=201)
def post_clubbed_result(sub_event_id: int, data: ClubbedResultCreate, session: Session = Depends(get_session)):
    """Add a clubbed ranking row by hand; player and rank are required."""
    try:
        row = bracket_service.add_clubbed_result(session, sub_event_id, data.player_id, data.rank, data.remarks)
    except BracketError as e:
        raise to_http_exception(e)
    return _clubbed_response(row)


@router.delete("/clubbed-results/{result_id}", status_code=204)
def remove_clubbed_result(result_id: int, session: Session = Depends(get_session)):
    try:
        bracket_service.delete_clubbed_result(session, result_id)
    except BracketError as e:
        raise to_http_exception(e)
    return None
