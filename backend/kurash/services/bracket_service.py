"""
Bracket Service - the operations the API exposes for a sub-event bracket.

Nothing here is cached: every call loads the roster and the result log and
re-derives pools, brackets and the championship match from scratch. Record
operations validate against that fresh derivation before any write, upsert the
match result, emit placements and return the re-derived state.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from sqlmodel import Session

from kurash.models.clubbed_result import ClubbedResult
from kurash.models.summary_result import Position, ResultType, SummaryResult
from kurash.models.sub_event import time_derived_seed
from kurash.services.bracket_builder import BracketMatch, DriftIssue, compute_bracket, index_results
from kurash.services.errors import BracketDriftError, BracketValidationError
from kurash.services.finalist_resolution import PoolResolution, compute_final_match, resolve_pool
from kurash.services.placement_service import (
    PlacementEmissions,
    emit_final_winner,
    emit_group_winner,
    emit_knockout_winner,
    emit_third_place,
)
from kurash.services.pool_assignment import Participant, Pool, compute_pools, find_group
from kurash.services.result_store import ResultStore
from kurash.services.roster import get_sub_event, load_roster
from kurash.utils.stage_keys import (
    StageKind,
    group_stage,
    parse_stage_id,
    pool_number_for,
    third_place_stage,
)

logger = logging.getLogger(__name__)

__all__ = [
    "BracketState",
    "compute_pools",
    "compute_bracket",
    "compute_final_match",
    "derive_bracket_state",
    "record_group_winner",
    "record_knockout_winner",
    "record_final_winner",
    "record_third_place",
    "redraw_pools",
    "add_summary_result",
    "add_clubbed_result",
    "delete_summary_result",
    "delete_clubbed_result",
]


@dataclass
class BracketState:
    sub_event_id: int
    seed: int
    roster: List[Participant]
    pools: List[Pool]
    resolutions: List[PoolResolution]
    final_match: Optional[BracketMatch] = None
    drift: List[DriftIssue] = field(default_factory=list)
    emissions: PlacementEmissions = field(default_factory=PlacementEmissions)

    def resolution(self, pool_name: str) -> PoolResolution:
        number = pool_number_for(pool_name)
        return next(r for r in self.resolutions if r.pool.number == number)

    def find_match(self, stage_id: str) -> Optional[BracketMatch]:
        for resolution in self.resolutions:
            for match in resolution.knockout_matches:
                if match.stage_id == stage_id:
                    return match
        if self.final_match is not None and self.final_match.stage_id == stage_id:
            return self.final_match
        return None

    @property
    def champion(self) -> Optional[Participant]:
        return self.final_match.winner if self.final_match else None


def _derived_stage_ids(state: BracketState) -> set:
    stage_ids = set()
    for resolution in state.resolutions:
        pool = resolution.pool
        for group in pool.groups:
            stage_ids.add(group_stage(state.sub_event_id, pool.number, group.index).stage_id)
        for match in resolution.knockout_matches:
            stage_ids.add(match.stage_id)
        if resolution.bracket is not None:
            stage_ids.add(third_place_stage(state.sub_event_id, pool.number).stage_id)
    if state.final_match is not None:
        stage_ids.add(state.final_match.stage_id)
    return stage_ids


def derive_bracket_state(session: Session, sub_event_id: int, seed: Optional[int] = None) -> BracketState:
    """
    Re-derive the whole bracket of a sub-event from its roster and result log.

    Args:
        session: Database session
        sub_event_id: Sub-event ID
        seed: Pool shuffle seed; defaults to the sub-event's stored bracket_seed

    Returns:
        BracketState, with any recorded results that no longer fit the derived
        bracket listed in drift
    """
    sub_event = get_sub_event(session, sub_event_id)
    roster = load_roster(session, sub_event_id)
    store = ResultStore(session)
    results = store.list_match_results(sub_event_id)
    result_log = index_results(results)

    effective_seed = seed if seed is not None else sub_event.bracket_seed
    pools = compute_pools(roster, effective_seed)
    resolutions = [resolve_pool(sub_event_id, pool, result_log) for pool in pools]

    drift: List[DriftIssue] = []
    for resolution in resolutions:
        drift.extend(resolution.drift)
    final_match = compute_final_match(sub_event_id, resolutions, result_log, drift)

    state = BracketState(
        sub_event_id=sub_event_id,
        seed=effective_seed,
        roster=roster,
        pools=pools,
        resolutions=resolutions,
        final_match=final_match,
        drift=drift,
    )

    derived = _derived_stage_ids(state)
    flagged = {issue.stage_id for issue in drift}
    for result in results:
        if result.stage_id not in derived and result.stage_id not in flagged:
            drift.append(DriftIssue(stage_id=result.stage_id, reason="stage is not part of the current bracket"))

    if drift:
        logger.warning(
            "Sub-event %d: %d recorded result(s) do not match the current bracket: %s",
            sub_event_id,
            len(drift),
            ", ".join(issue.stage_id for issue in drift),
        )
    return state


def _require_winner(winner_id: Optional[int]) -> int:
    if winner_id is None:
        raise BracketValidationError("No winner selected")
    return winner_id


def record_group_winner(
    session: Session,
    sub_event_id: int,
    pool_name: str,
    group_name: str,
    winner_id: Optional[int],
) -> BracketState:
    """
    Record the winner of a two-member first-round group.

    Raises:
        BracketValidationError: no winner, bye group, or winner not in the group
        BracketNotFoundError: unknown sub-event or group
    """
    winner_id = _require_winner(winner_id)
    pool_number = pool_number_for(pool_name)
    state = derive_bracket_state(session, sub_event_id)
    group = find_group(state.pools, pool_name, group_name)

    if group.is_bye:
        raise BracketValidationError(f"Group {group_name} is a bye; its member advances without a match")
    if group.member(winner_id) is None:
        raise BracketValidationError(f"Player {winner_id} is not in group {group_name}")

    key = group_stage(sub_event_id, pool_number, group.index)
    store = ResultStore(session)
    store.upsert_match_result(key, group.members[0].id, group.members[1].id, winner_id)
    emissions = emit_group_winner(store, key, winner_id)

    logger.info("Sub-event %d: %s won by player %d", sub_event_id, key.stage_id, winner_id)
    refreshed = derive_bracket_state(session, sub_event_id)
    refreshed.emissions = emissions
    return refreshed


def record_knockout_winner(
    session: Session,
    sub_event_id: int,
    stage_id: str,
    winner_id: Optional[int],
    player1_id: int,
    player2_id: int,
) -> BracketState:
    """
    Record the winner of a knockout match inside a pool.

    Raises:
        BracketValidationError: bad stage id, no winner, winner not one of the two players
        BracketDriftError: the stage or its pairing is not part of the current bracket
    """
    winner_id = _require_winner(winner_id)
    key = parse_stage_id(sub_event_id, stage_id)
    if key.stage_kind != StageKind.knockout:
        raise BracketValidationError(f"Stage '{stage_id}' is not a knockout match")
    if winner_id not in (player1_id, player2_id):
        raise BracketValidationError(f"Winner {winner_id} is not one of the match participants")

    state = derive_bracket_state(session, sub_event_id)
    match = state.find_match(key.stage_id)
    if match is None:
        raise BracketDriftError(stage_id, f"Stage '{stage_id}' is not part of the current bracket")
    if {player1_id, player2_id} != set(match.player_ids):
        raise BracketDriftError(
            stage_id,
            f"Stage '{stage_id}' is now {match.player_ids}, not [{player1_id}, {player2_id}]",
        )

    store = ResultStore(session)
    store.upsert_match_result(key, match.player1.id, match.player2.id, winner_id)
    emissions = emit_knockout_winner(store, replace(match, winner_id=winner_id))

    logger.info("Sub-event %d: %s (%s) won by player %d", sub_event_id, stage_id, match.label, winner_id)
    refreshed = derive_bracket_state(session, sub_event_id)
    refreshed.emissions = emissions
    return refreshed


def record_final_winner(session: Session, sub_event_id: int, winner_id: Optional[int]) -> BracketState:
    """
    Record the championship winner; the other finalist is runner-up.

    Raises:
        BracketValidationError: no winner, championship not ready, winner not a finalist
    """
    winner_id = _require_winner(winner_id)
    sub_event = get_sub_event(session, sub_event_id)
    state = derive_bracket_state(session, sub_event_id)

    final_match = state.final_match
    if final_match is None:
        raise BracketValidationError("Championship match is not ready: both pools need a finalist")
    if winner_id not in final_match.player_ids:
        raise BracketValidationError(f"Player {winner_id} is not a finalist")

    store = ResultStore(session)
    store.upsert_match_result(final_match.key, final_match.player1.id, final_match.player2.id, winner_id)
    emissions = emit_final_winner(store, replace(final_match, winner_id=winner_id), sub_event.title)

    refreshed = derive_bracket_state(session, sub_event_id)
    refreshed.emissions = emissions
    return refreshed


def record_third_place(
    session: Session, sub_event_id: int, pool_name: str, player_id: Optional[int]
) -> BracketState:
    """
    Manual third-place selection for a pool.

    Any knockout participant of the pool other than its finalist may be chosen;
    no consolation matches are derived.
    """
    if player_id is None:
        raise BracketValidationError("No third-place player selected")
    pool_number = pool_number_for(pool_name)
    state = derive_bracket_state(session, sub_event_id)
    resolution = state.resolution(pool_name)

    if player_id not in {p.id for p in resolution.third_place_candidates}:
        raise BracketValidationError(f"Player {player_id} is not a third-place candidate in {pool_name}")

    key = third_place_stage(sub_event_id, pool_number)
    store = ResultStore(session)
    store.upsert_match_result(key, player_id, player_id, player_id)
    emissions = emit_third_place(store, key, player_id)

    logger.info("Sub-event %d: third place in %s is player %d", sub_event_id, pool_name, player_id)
    refreshed = derive_bracket_state(session, sub_event_id)
    refreshed.emissions = emissions
    return refreshed


def redraw_pools(session: Session, sub_event_id: int, seed: Optional[int] = None) -> BracketState:
    """
    Store a new pool shuffle seed (explicit, or time-derived when omitted).

    Recorded results are left alone; any that no longer fit show up as drift.
    """
    sub_event = get_sub_event(session, sub_event_id)
    store = ResultStore(session)
    recorded = store.list_match_results(sub_event_id)

    sub_event.bracket_seed = seed if seed is not None else time_derived_seed()
    session.add(sub_event)
    session.commit()

    if recorded:
        logger.warning(
            "Sub-event %d re-drawn with %d recorded result(s); they may no longer match the new pools",
            sub_event_id,
            len(recorded),
        )
    return derive_bracket_state(session, sub_event_id)


# ============================================================================
# Manual results
# ============================================================================


def _require_roster_player(session: Session, sub_event_id: int, player_id: Optional[int]) -> None:
    if player_id is None:
        raise BracketValidationError("player_id is required")
    if player_id not in {p.id for p in load_roster(session, sub_event_id)}:
        raise BracketValidationError(f"Player {player_id} is not in sub-event {sub_event_id}")


def list_summary_results(session: Session, sub_event_id: int) -> List[SummaryResult]:
    get_sub_event(session, sub_event_id)
    return ResultStore(session).list_summary_results(sub_event_id)


def list_clubbed_results(session: Session, sub_event_id: int) -> List[ClubbedResult]:
    get_sub_event(session, sub_event_id)
    return ResultStore(session).list_clubbed_results(sub_event_id)


def add_summary_result(
    session: Session,
    sub_event_id: int,
    group_name: str,
    player_id: Optional[int],
    result_type: Optional[ResultType],
    position: Optional[Position],
) -> SummaryResult:
    """Operator-entered summary row; every field is required."""
    get_sub_event(session, sub_event_id)
    if not group_name or not group_name.strip() or result_type is None or position is None:
        raise BracketValidationError("group_name, player_id, result_type and position are all required")
    _require_roster_player(session, sub_event_id, player_id)
    return ResultStore(session).add_summary_result(
        sub_event_id, group_name.strip(), player_id, result_type, position
    )


def add_clubbed_result(
    session: Session, sub_event_id: int, player_id: Optional[int], rank: str, remarks: str = ""
) -> ClubbedResult:
    """Operator-entered clubbed ranking row; player and rank are required."""
    get_sub_event(session, sub_event_id)
    if not rank or not rank.strip():
        raise BracketValidationError("rank is required")
    _require_roster_player(session, sub_event_id, player_id)
    return ResultStore(session).add_clubbed_result(sub_event_id, player_id, rank.strip(), remarks or "")


def delete_summary_result(session: Session, result_id: int) -> None:
    ResultStore(session).delete_summary_result(result_id)


def delete_clubbed_result(session: Session, result_id: int) -> None:
    ResultStore(session).delete_clubbed_result(result_id)
