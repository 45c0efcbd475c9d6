"""
Knockout bracket builder tests.

Tests must prove:
1. One participant → champion, zero matches
2. k participants → k // 2 first-round matches, first participant takes the bye when k is odd
3. Recorded winners advance round by round until one champion remains
4. Rebuilding from the same inputs reproduces the same stage ids
5. Recorded winners advance while their round is still open; no champion until every pair is decided
6. Results recorded for a different pairing are reported as drift and ignored
"""

import pytest

from kurash.models.match_result import MatchResult
from kurash.services.bracket_builder import compute_bracket, index_results
from kurash.services.pool_assignment import Participant

SUB_EVENT_ID = 1


def players(count):
    return [Participant(id=i, name=f"P{i}", association=f"Club {i}") for i in range(1, count + 1)]


def result(stage_id, player1_id, player2_id, winner_id):
    return MatchResult(
        sub_event_id=SUB_EVENT_ID,
        stage_id=stage_id,
        stage_kind="knockout",
        player1_id=player1_id,
        player2_id=player2_id,
        winner_id=winner_id,
    )


def test_single_participant_is_champion():
    (only,) = players(1)
    bracket = compute_bracket(SUB_EVENT_ID, 1, [only], {})

    assert bracket.matches == []
    assert bracket.champion == only


def test_no_participants():
    bracket = compute_bracket(SUB_EVENT_ID, 1, [], {})
    assert bracket.matches == []
    assert bracket.champion is None


def test_even_first_round():
    roster = players(4)
    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, {})

    assert [m.stage_id for m in bracket.matches] == ["knockout-1.1-match0", "knockout-1.1-match1"]
    assert [(m.player1.id, m.player2.id) for m in bracket.matches] == [(1, 2), (3, 4)]
    assert bracket.champion is None
    assert bracket.rounds == 1


def test_odd_first_round_gives_first_participant_a_bye():
    roster = players(5)
    bracket = compute_bracket(SUB_EVENT_ID, 2, roster, {})

    assert [(m.player1.id, m.player2.id) for m in bracket.matches] == [(2, 3), (4, 5)]
    assert [m.stage_id for m in bracket.matches] == ["knockout-2.1-match0", "knockout-2.1-match1"]
    assert all(1 not in m.player_ids for m in bracket.matches)


def test_rounds_advance_with_byes_to_a_champion():
    roster = players(5)
    log = index_results(
        [
            result("knockout-1.1-match0", 2, 3, 3),
            result("knockout-1.1-match1", 4, 5, 4),
            # round 2: [1 (bye), 3, 4] → 1 takes the bye again, 3 v 4
            result("knockout-1.2-match2", 3, 4, 4),
            # round 3: [1, 4]
            result("knockout-1.3-match3", 1, 4, 1),
        ]
    )

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert [m.stage_id for m in bracket.matches] == [
        "knockout-1.1-match0",
        "knockout-1.1-match1",
        "knockout-1.2-match2",
        "knockout-1.3-match3",
    ]
    assert [m.round_index for m in bracket.matches] == [1, 1, 2, 3]
    assert bracket.matches[2].label == "Round 2 Match 3"
    assert bracket.champion.id == 1
    assert bracket.rounds == 3


def test_recorded_winners_advance_while_round_is_open():
    roster = players(6)
    log = index_results(
        [
            result("knockout-1.1-match0", 1, 2, 1),
            result("knockout-1.1-match1", 3, 4, 3),
        ]
    )

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert [(m.stage_id, m.player_ids) for m in bracket.matches] == [
        ("knockout-1.1-match0", [1, 2]),
        ("knockout-1.1-match1", [3, 4]),
        ("knockout-1.1-match2", [5, 6]),
        ("knockout-1.2-match3", [1, 3]),
    ]
    assert bracket.rounds == 2
    assert bracket.champion is None


def test_no_champion_while_an_earlier_pair_is_open():
    roster = players(6)
    log = index_results(
        [
            result("knockout-1.1-match0", 1, 2, 1),
            result("knockout-1.1-match1", 3, 4, 3),
            result("knockout-1.2-match3", 1, 3, 1),
        ]
    )

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert bracket.matches[-1].winner_id == 1
    assert len(bracket.matches) == 4
    assert bracket.champion is None


def test_lone_recorded_winner_waits_for_open_pair():
    roster = players(4)
    log = index_results([result("knockout-1.1-match0", 1, 2, 1)])

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert len(bracket.matches) == 2
    assert bracket.matches[0].winner_id == 1
    assert bracket.matches[1].winner_id is None
    assert bracket.champion is None


def test_bye_alone_is_not_champion():
    roster = players(3)

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, {})

    assert [m.player_ids for m in bracket.matches] == [[2, 3]]
    assert bracket.champion is None


def test_rebuild_is_idempotent():
    roster = players(7)
    log = index_results([result("knockout-1.1-match0", 2, 3, 2)])

    first = compute_bracket(SUB_EVENT_ID, 1, roster, log)
    second = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert [(m.stage_id, m.player_ids, m.winner_id) for m in first.matches] == [
        (m.stage_id, m.player_ids, m.winner_id) for m in second.matches
    ]


@pytest.mark.parametrize("k", range(2, 17))
def test_converges_to_single_champion(k):
    roster = players(k)
    results = []

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, {})
    first_round = [m for m in bracket.matches if m.round_index == 1]
    assert len(first_round) == k // 2

    # Player 1 of every open match wins until the bracket is decided
    for _ in range(k):
        if bracket.champion is not None:
            break
        for m in bracket.matches:
            if m.winner_id is None:
                results.append(result(m.stage_id, m.player1.id, m.player2.id, m.player1.id))
        bracket = compute_bracket(SUB_EVENT_ID, 1, roster, index_results(results))

    assert bracket.champion is not None
    assert len(bracket.matches) == k - 1
    assert len({m.stage_id for m in bracket.matches}) == len(bracket.matches)


def test_result_for_other_pairing_is_drift():
    roster = players(4)
    log = index_results([result("knockout-1.1-match0", 1, 3, 1)])

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert bracket.matches[0].winner_id is None
    assert [d.stage_id for d in bracket.drift] == ["knockout-1.1-match0"]


def test_winner_outside_pair_is_drift():
    roster = players(2)
    log = index_results([result("knockout-1.1-match0", 1, 2, 9)])

    bracket = compute_bracket(SUB_EVENT_ID, 1, roster, log)

    assert bracket.champion is None
    assert len(bracket.drift) == 1


def test_loser_and_winner_properties():
    roster = players(2)
    log = index_results([result("knockout-1.1-match0", 1, 2, 2)])

    match = compute_bracket(SUB_EVENT_ID, 1, roster, log).matches[0]

    assert match.winner.id == 2
    assert match.loser.id == 1
