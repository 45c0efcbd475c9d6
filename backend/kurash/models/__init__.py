from kurash.models.clubbed_result import ClubbedResult
from kurash.models.event import Event
from kurash.models.match_result import MatchResult
from kurash.models.player import Player
from kurash.models.sub_event import SubEvent
from kurash.models.sub_event_participant import SubEventParticipant
from kurash.models.summary_result import Position, ResultType, SummaryResult

__all__ = [
    "Player",
    "Event",
    "SubEvent",
    "SubEventParticipant",
    "MatchResult",
    "SummaryResult",
    "ResultType",
    "Position",
    "ClubbedResult",
]
