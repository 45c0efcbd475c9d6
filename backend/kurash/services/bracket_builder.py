"""
Knockout Bracket Builder - successive elimination rounds inside one pool.

Rounds are built in an explicit loop over round indices:

- one participant left → pool champion, no match produced
- odd count → the first participant takes a bye into the next round
- the rest are paired in order (1st v 2nd, 3rd v 4th, ...)
- next round = [bye] + recorded winners, in pair order

Winners carry forward as soon as they are recorded, so a later round can be
built while earlier pairs are still open. The loop stops once fewer than two
participants advance. A lone survivor is only crowned once no pair anywhere in
the bracket is still open. Given the same advancing order and the same result
log the same stage ids are reproduced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from kurash.models.match_result import MatchResult
from kurash.services.pool_assignment import Participant
from kurash.utils.stage_keys import StageKey, StageKind, knockout_stage

ResultLog = Dict[str, MatchResult]


@dataclass
class DriftIssue:
    """A recorded result that no longer fits the bracket derived from the current roster."""
    stage_id: str
    reason: str


@dataclass
class BracketMatch:
    key: StageKey
    player1: Participant
    player2: Optional[Participant] = None
    winner_id: Optional[int] = None
    round_index: int = 1
    match_index: int = 0

    @property
    def stage_id(self) -> str:
        return self.key.stage_id

    @property
    def label(self) -> str:
        if self.key.stage_kind == StageKind.final:
            return "Championship Final"
        return f"Round {self.round_index} Match {self.match_index + 1}"

    @property
    def player_ids(self) -> List[int]:
        ids = [self.player1.id]
        if self.player2 is not None:
            ids.append(self.player2.id)
        return ids

    @property
    def winner(self) -> Optional[Participant]:
        if self.winner_id is None:
            return None
        if self.player1.id == self.winner_id:
            return self.player1
        if self.player2 is not None and self.player2.id == self.winner_id:
            return self.player2
        return None

    @property
    def loser(self) -> Optional[Participant]:
        if self.winner_id is None or self.player2 is None:
            return None
        return self.player2 if self.winner_id == self.player1.id else self.player1


@dataclass
class PoolBracket:
    pool_number: int
    matches: List[BracketMatch] = field(default_factory=list)
    champion: Optional[Participant] = None
    rounds: int = 0
    drift: List[DriftIssue] = field(default_factory=list)

    @property
    def participants(self) -> List[Participant]:
        """Everyone who appears in a knockout match, in first-appearance order."""
        seen: Dict[int, Participant] = {}
        for m in self.matches:
            for p in (m.player1, m.player2):
                if p is not None and p.id not in seen:
                    seen[p.id] = p
        return list(seen.values())


def index_results(results: Iterable[MatchResult]) -> ResultLog:
    """Key a result list by stage_id. Later rows replace earlier ones."""
    log: ResultLog = {}
    for r in results:
        log[r.stage_id] = r
    return log


def recorded_winner(
    result: Optional[MatchResult],
    player1: Participant,
    player2: Optional[Participant],
    drift: List[DriftIssue],
) -> Optional[Participant]:
    """
    Winner of a recorded result if it still belongs to this pairing.

    A result whose participants or winner no longer match the pair is reported
    as drift and ignored.
    """
    if result is None:
        return None

    expected = {player1.id} | ({player2.id} if player2 is not None else set())
    recorded = {result.player1_id} | ({result.player2_id} if result.player2_id is not None else set())
    if recorded != expected:
        drift.append(
            DriftIssue(
                stage_id=result.stage_id,
                reason=f"recorded for players {sorted(recorded)}, bracket now has {sorted(expected)}",
            )
        )
        return None

    if result.winner_id == player1.id:
        return player1
    if player2 is not None and result.winner_id == player2.id:
        return player2

    drift.append(
        DriftIssue(stage_id=result.stage_id, reason=f"winner {result.winner_id} is not a participant")
    )
    return None


def compute_bracket(
    sub_event_id: int,
    pool_number: int,
    advancing: Sequence[Participant],
    result_log: ResultLog,
) -> PoolBracket:
    """
    Build the knockout rounds of one pool from its advancing participants.

    Args:
        sub_event_id: Sub-event the stage keys belong to
        pool_number: 1 (Pool A) or 2 (Pool B)
        advancing: Group winners and byes, in group order
        result_log: Recorded results keyed by stage_id

    Returns:
        PoolBracket with all matches built so far and the champion once the
        pool is decided
    """
    bracket = PoolBracket(pool_number=pool_number)
    current = list(advancing)
    round_index = 1
    open_pairs = 0

    while len(current) > 1:
        queue = list(current)
        next_round: List[Participant] = []

        if len(queue) % 2 != 0:
            next_round.append(queue.pop(0))

        for player1, player2 in zip(queue[0::2], queue[1::2]):
            key = knockout_stage(sub_event_id, pool_number, round_index, len(bracket.matches))
            winner = recorded_winner(result_log.get(key.stage_id), player1, player2, bracket.drift)

            bracket.matches.append(
                BracketMatch(
                    key=key,
                    player1=player1,
                    player2=player2,
                    winner_id=winner.id if winner else None,
                    round_index=round_index,
                    match_index=key.match_index,
                )
            )

            if winner is not None:
                next_round.append(winner)
            else:
                open_pairs += 1

        bracket.rounds = round_index
        current = next_round
        round_index += 1

    if len(current) == 1 and open_pairs == 0:
        bracket.champion = current[0]
    return bracket
