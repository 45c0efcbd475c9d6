"""
Bracket API Routes - pools, knockout rounds, championship and winner recording
for one sub-event.

Every response is the bracket re-derived from the current roster and result log.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from kurash.database import get_session
from kurash.routes.events import ParticipantResponse, participant_response
from kurash.routes.http_errors import to_http_exception
from kurash.services import bracket_service
from kurash.services.bracket_builder import BracketMatch
from kurash.services.bracket_service import BracketState
from kurash.services.errors import BracketError
from kurash.services.finalist_resolution import PoolResolution
from kurash.utils.stage_keys import group_stage

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class GroupResponse(BaseModel):
    name: str
    stage_id: str
    players: List[ParticipantResponse]
    is_bye: bool
    winner_id: Optional[int] = None


class MatchResponse(BaseModel):
    stage_id: str
    label: str
    round_index: int
    match_index: int
    player1: ParticipantResponse
    player2: Optional[ParticipantResponse] = None
    winner_id: Optional[int] = None


class PoolResponse(BaseModel):
    name: str
    number: int
    groups: List[GroupResponse]
    groups_complete: bool
    knockout_matches: List[MatchResponse]
    finalist: Optional[ParticipantResponse] = None
    third_place: Optional[ParticipantResponse] = None
    third_place_candidates: List[ParticipantResponse]


class DriftResponse(BaseModel):
    stage_id: str
    reason: str


class BracketResponse(BaseModel):
    sub_event_id: int
    seed: int
    participant_count: int
    pools: List[PoolResponse]
    final_match: Optional[MatchResponse] = None
    champion: Optional[ParticipantResponse] = None
    drift: List[DriftResponse]
    placements_added: int = 0


class GroupWinnerRequest(BaseModel):
    pool: str
    group: str
    winner_id: Optional[int] = None


class KnockoutWinnerRequest(BaseModel):
    stage_id: str
    winner_id: Optional[int] = None
    player1_id: int
    player2_id: int


class FinalWinnerRequest(BaseModel):
    winner_id: Optional[int] = None


class ThirdPlaceRequest(BaseModel):
    pool: str
    player_id: Optional[int] = None


class RedrawRequest(BaseModel):
    seed: Optional[int] = None


# ============================================================================
# Serialisation
# ============================================================================


def _optional_participant(p) -> Optional[ParticipantResponse]:
    return participant_response(p) if p is not None else None


def _match_response(m: BracketMatch) -> MatchResponse:
    return MatchResponse(
        stage_id=m.stage_id,
        label=m.label,
        round_index=m.round_index,
        match_index=m.match_index,
        player1=participant_response(m.player1),
        player2=_optional_participant(m.player2),
        winner_id=m.winner_id,
    )


def _pool_response(sub_event_id: int, r: PoolResolution) -> PoolResponse:
    groups = []
    for g in r.pool.groups:
        winner = r.group_winners.get(g.name)
        groups.append(
            GroupResponse(
                name=g.name,
                stage_id=group_stage(sub_event_id, r.pool.number, g.index).stage_id,
                players=[participant_response(p) for p in g.members],
                is_bye=g.is_bye,
                winner_id=winner.id if winner else None,
            )
        )

    return PoolResponse(
        name=r.pool.name,
        number=r.pool.number,
        groups=groups,
        groups_complete=r.groups_complete,
        knockout_matches=[_match_response(m) for m in r.knockout_matches],
        finalist=_optional_participant(r.finalist),
        third_place=_optional_participant(r.third_place),
        third_place_candidates=[participant_response(p) for p in r.third_place_candidates],
    )


def bracket_response(state: BracketState) -> BracketResponse:
    return BracketResponse(
        sub_event_id=state.sub_event_id,
        seed=state.seed,
        participant_count=len(state.roster),
        pools=[_pool_response(state.sub_event_id, r) for r in state.resolutions],
        final_match=_match_response(state.final_match) if state.final_match else None,
        champion=_optional_participant(state.champion),
        drift=[DriftResponse(stage_id=d.stage_id, reason=d.reason) for d in state.drift],
        placements_added=state.emissions.count,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/sub-events/{sub_event_id}/bracket", response_model=BracketResponse)
def get_bracket(
    sub_event_id: int,
    seed: Optional[int] = Query(None, description="Preview the draw with this seed instead of the stored one"),
    session: Session = Depends(get_session),
):
    """
    Derive pools, groups, knockout rounds and the championship match.

    Recorded results that no longer fit the current roster shape are listed
    under drift instead of being silently dropped.
    """
    try:
        state = bracket_service.derive_bracket_state(session, sub_event_id, seed=seed)
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)


@router.post("/sub-events/{sub_event_id}/bracket/redraw", response_model=BracketResponse)
def redraw_bracket(sub_event_id: int, payload: RedrawRequest, session: Session = Depends(get_session)):
    """Store a new pool shuffle seed (time-derived when omitted)."""
    try:
        state = bracket_service.redraw_pools(session, sub_event_id, seed=payload.seed)
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)


@router.post("/sub-events/{sub_event_id}/bracket/groups/winner", response_model=BracketResponse)
def post_group_winner(sub_event_id: int, payload: GroupWinnerRequest, session: Session = Depends(get_session)):
    try:
        state = bracket_service.record_group_winner(
            session, sub_event_id, payload.pool, payload.group, payload.winner_id
        )
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)


@router.post("/sub-events/{sub_event_id}/bracket/knockout/winner", response_model=BracketResponse)
def post_knockout_winner(
    sub_event_id: int, payload: KnockoutWinnerRequest, session: Session = Depends(get_session)
):
    """Record a knockout winner. 409 if the stage no longer exists in the current bracket."""
    try:
        state = bracket_service.record_knockout_winner(
            session,
            sub_event_id,
            payload.stage_id,
            payload.winner_id,
            payload.player1_id,
            payload.player2_id,
        )
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)


@router.post("/sub-events/{sub_event_id}/bracket/final/winner", response_model=BracketResponse)
def post_final_winner(sub_event_id: int, payload: FinalWinnerRequest, session: Session = Depends(get_session)):
    try:
        state = bracket_service.record_final_winner(session, sub_event_id, payload.winner_id)
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)


@router.post("/sub-events/{sub_event_id}/bracket/third-place", response_model=BracketResponse)
def post_third_place(sub_event_id: int, payload: ThirdPlaceRequest, session: Session = Depends(get_session)):
    try:
        state = bracket_service.record_third_place(session, sub_event_id, payload.pool, payload.player_id)
    except BracketError as e:
        raise to_http_exception(e)
    return bracket_response(state)
