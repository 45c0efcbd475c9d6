"""
Placement / Clubbed Resolver.

Side effects of recording a winner: summary placements for reporting and the
flat clubbed ranking used for medals and certificates.

Each derived summary row owns a (group_name, position) slot: a group's winner,
a semifinal's loser, a pool's bronze, the Final's winner and runner-up.
Repeating an operation adds nothing; correcting a result hands the slot and the
matching medal rank over to the new player. Two editors recording at the same
moment can still both insert.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from kurash.models.summary_result import Position, ResultType
from kurash.services.bracket_builder import BracketMatch
from kurash.services.result_store import ResultStore
from kurash.utils.stage_keys import StageKey

logger = logging.getLogger(__name__)

SEMIFINAL_ROUND_INDEX = 2
FINAL_GROUP_NAME = "Final"

RANK_CHAMPION = "1st"
RANK_RUNNER_UP = "2nd"
RANK_BRONZE = "3rd"


@dataclass
class PlacementEmissions:
    summary_ids: List[int] = field(default_factory=list)
    clubbed_ids: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.summary_ids) + len(self.clubbed_ids)


def _summary_slot(
    store: ResultStore,
    emissions: PlacementEmissions,
    sub_event_id: int,
    group_name: str,
    player_id: int,
    result_type: ResultType,
    position: Position,
) -> Optional[int]:
    """Upsert one summary slot; returns its previous holder."""
    row, previous = store.upsert_summary_slot(sub_event_id, group_name, player_id, result_type, position)
    if previous != player_id:
        emissions.summary_ids.append(row.id)
    return previous


def _clubbed_rank(
    store: ResultStore,
    emissions: PlacementEmissions,
    sub_event_id: int,
    player_id: int,
    rank: str,
    remarks: str,
    holder_id: Optional[int],
) -> None:
    row, changed = store.upsert_clubbed_rank(sub_event_id, player_id, rank, remarks, holder_id=holder_id)
    if changed:
        emissions.clubbed_ids.append(row.id)


def emit_group_winner(store: ResultStore, key: StageKey, winner_id: int) -> PlacementEmissions:
    emissions = PlacementEmissions()
    _summary_slot(store, emissions, key.sub_event_id, key.stage_id, winner_id, ResultType.pool, Position.winner)
    return emissions


def emit_knockout_winner(store: ResultStore, match: BracketMatch) -> PlacementEmissions:
    """Losers of the semifinal round (round index 2) are recorded as semi-finalists."""
    emissions = PlacementEmissions()
    if match.round_index != SEMIFINAL_ROUND_INDEX:
        return emissions

    loser = match.loser
    if loser is None:
        return emissions

    _summary_slot(
        store, emissions, match.key.sub_event_id, match.stage_id, loser.id, ResultType.pool, Position.semi_finalist
    )
    return emissions


def emit_final_winner(store: ResultStore, final_match: BracketMatch, sub_event_title: str) -> PlacementEmissions:
    emissions = PlacementEmissions()
    winner, runner_up = final_match.winner, final_match.loser
    if winner is None or runner_up is None:
        return emissions

    sub_event_id = final_match.key.sub_event_id
    title = sub_event_title or "Sub Event"

    previous_winner = _summary_slot(
        store, emissions, sub_event_id, FINAL_GROUP_NAME, winner.id, ResultType.final, Position.winner
    )
    previous_runner_up = _summary_slot(
        store, emissions, sub_event_id, FINAL_GROUP_NAME, runner_up.id, ResultType.final, Position.runner_up
    )

    _clubbed_rank(
        store, emissions, sub_event_id, winner.id, RANK_CHAMPION, f"Champion - {title}", previous_winner
    )
    _clubbed_rank(
        store, emissions, sub_event_id, runner_up.id, RANK_RUNNER_UP, f"Runner-up - {title}", previous_runner_up
    )

    if previous_winner not in (None, winner.id):
        logger.info("Sub-event %d champion corrected from %d to %d", sub_event_id, previous_winner, winner.id)
    logger.info(
        "Sub-event %d champion %d, runner-up %d (%d placement rows changed)",
        sub_event_id,
        winner.id,
        runner_up.id,
        emissions.count,
    )
    return emissions


def emit_third_place(store: ResultStore, key: StageKey, player_id: int) -> PlacementEmissions:
    """Bronze summary plus the 3rd clubbed rank, moved over when the selection changes."""
    emissions = PlacementEmissions()
    previous = _summary_slot(
        store, emissions, key.sub_event_id, key.pool_name, player_id, ResultType.pool, Position.bronze
    )
    if previous == player_id:
        return emissions

    _clubbed_rank(
        store, emissions, key.sub_event_id, player_id, RANK_BRONZE, f"Bronze medal - {key.pool_name}", previous
    )
    return emissions
