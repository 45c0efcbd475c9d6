"""
Winner / Finalist Resolution.

Reads the recorded result log to decide group winners, each pool's finalist and
the championship pairing. The finalist is the champion of the pool's knockout
bracket as tracked by its round counter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from kurash.services.bracket_builder import (
    BracketMatch,
    DriftIssue,
    PoolBracket,
    ResultLog,
    compute_bracket,
    recorded_winner,
)
from kurash.services.pool_assignment import Group, Participant, Pool
from kurash.utils.stage_keys import final_stage, group_stage, third_place_stage


@dataclass
class PoolResolution:
    pool: Pool
    group_winners: Dict[str, Optional[Participant]] = field(default_factory=dict)
    bracket: Optional[PoolBracket] = None
    finalist: Optional[Participant] = None
    third_place: Optional[Participant] = None
    drift: List[DriftIssue] = field(default_factory=list)

    @property
    def advancing(self) -> List[Participant]:
        return [w for w in self.group_winners.values() if w is not None]

    @property
    def groups_complete(self) -> bool:
        return bool(self.group_winners) and all(w is not None for w in self.group_winners.values())

    @property
    def knockout_matches(self) -> List[BracketMatch]:
        return self.bracket.matches if self.bracket else []

    @property
    def third_place_candidates(self) -> List[Participant]:
        """Knockout participants of this pool other than its finalist."""
        if not self.bracket:
            return []
        finalist_id = self.finalist.id if self.finalist else None
        return [p for p in self.bracket.participants if p.id != finalist_id]


def resolve_group_winner(
    sub_event_id: int,
    pool: Pool,
    group: Group,
    result_log: ResultLog,
    drift: List[DriftIssue],
) -> Optional[Participant]:
    """
    Recorded winner of a group, else the lone member of a bye group, else None.
    """
    key = group_stage(sub_event_id, pool.number, group.index)
    player2 = group.members[1] if len(group.members) > 1 else None
    winner = recorded_winner(result_log.get(key.stage_id), group.members[0], player2, drift)
    if winner is not None:
        return winner
    if group.is_bye:
        return group.members[0]
    return None


def resolve_pool(sub_event_id: int, pool: Pool, result_log: ResultLog) -> PoolResolution:
    """
    Resolve group winners, the knockout bracket and the finalist of one pool.

    The knockout bracket is built from the groups resolved so far. The pool
    only gets a finalist once every group has a winner.
    """
    resolution = PoolResolution(pool=pool)

    for group in pool.groups:
        resolution.group_winners[group.name] = resolve_group_winner(
            sub_event_id, pool, group, result_log, resolution.drift
        )

    resolution.bracket = compute_bracket(sub_event_id, pool.number, resolution.advancing, result_log)
    resolution.drift.extend(resolution.bracket.drift)
    if resolution.groups_complete:
        resolution.finalist = resolution.bracket.champion

    third = result_log.get(third_place_stage(sub_event_id, pool.number).stage_id)
    if third is not None:
        candidates = {p.id: p for p in resolution.third_place_candidates}
        resolution.third_place = candidates.get(third.winner_id)
        if resolution.third_place is None:
            resolution.drift.append(
                DriftIssue(stage_id=third.stage_id, reason=f"player {third.winner_id} is not a third-place candidate")
            )

    return resolution


def compute_final_match(
    sub_event_id: int,
    resolutions: Sequence[PoolResolution],
    result_log: ResultLog,
    drift: Optional[List[DriftIssue]] = None,
) -> Optional[BracketMatch]:
    """
    Championship pairing of the two pool finalists.

    Returns None until both pools have a finalist; never half-populated.
    """
    finalists = [r.finalist for r in resolutions]
    if len(finalists) != 2 or any(f is None for f in finalists):
        return None

    player1, player2 = finalists
    key = final_stage(sub_event_id)
    winner = recorded_winner(
        result_log.get(key.stage_id), player1, player2, drift if drift is not None else []
    )

    return BracketMatch(
        key=key,
        player1=player1,
        player2=player2,
        winner_id=winner.id if winner else None,
    )
