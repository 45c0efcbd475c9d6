# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from kurash.models.clubbed_result import ClubbedResult  # noqa: F401
from kurash.models.event import Event  # noqa: F401
from kurash.models.match_result import MatchResult  # noqa: F401
from kurash.models.player import Player  # noqa: F401
from kurash.models.sub_event import SubEvent  # noqa: F401
from kurash.models.sub_event_participant import SubEventParticipant  # noqa: F401
from kurash.models.summary_result import SummaryResult  # noqa: F401
