"""
Roster collaborator - the ordered participant snapshot of a sub-event.

Eligibility and application acceptance are decided elsewhere; this module only
reads whoever is on the sub_event_participant table, in insertion order.
"""

import logging
from typing import List

from sqlmodel import Session, select

from kurash.models.player import Player
from kurash.models.sub_event import SubEvent
from kurash.models.sub_event_participant import SubEventParticipant
from kurash.services.errors import BracketNotFoundError, BracketValidationError
from kurash.services.pool_assignment import Participant
from kurash.services.result_store import store_guard

logger = logging.getLogger(__name__)

UNKNOWN_ASSOCIATION = "Unknown"


def to_participant(player: Player) -> Participant:
    return Participant(
        id=player.id,
        name=player.full_name,
        association=player.registered_association or UNKNOWN_ASSOCIATION,
        weight=player.weight or 0,
        birth_date=player.birth_date,
    )


def get_sub_event(session: Session, sub_event_id: int) -> SubEvent:
    with store_guard(session, f"load sub-event {sub_event_id}"):
        sub_event = session.get(SubEvent, sub_event_id)
    if sub_event is None:
        raise BracketNotFoundError(f"Sub-event {sub_event_id} not found")
    return sub_event


def load_roster(session: Session, sub_event_id: int) -> List[Participant]:
    """Participants of a sub-event in the order they were added."""
    with store_guard(session, f"load roster of sub-event {sub_event_id}"):
        rows = session.exec(
            select(SubEventParticipant, Player)
            .join(Player, Player.id == SubEventParticipant.player_id)
            .where(SubEventParticipant.sub_event_id == sub_event_id)
            .order_by(SubEventParticipant.id)
        ).all()
    return [to_participant(player) for _, player in rows]


def add_participant(session: Session, sub_event_id: int, player_id: int) -> SubEventParticipant:
    """
    Put a player on a sub-event roster.

    Raises:
        BracketNotFoundError: unknown sub-event or player
        BracketValidationError: player already on the roster
    """
    get_sub_event(session, sub_event_id)

    with store_guard(session, f"add participant {player_id} to sub-event {sub_event_id}"):
        if session.get(Player, player_id) is None:
            raise BracketNotFoundError(f"Player {player_id} not found")

        existing = session.exec(
            select(SubEventParticipant).where(
                SubEventParticipant.sub_event_id == sub_event_id,
                SubEventParticipant.player_id == player_id,
            )
        ).first()
        if existing is not None:
            raise BracketValidationError(f"Player {player_id} is already in sub-event {sub_event_id}")

        entry = SubEventParticipant(sub_event_id=sub_event_id, player_id=player_id)
        session.add(entry)
        session.commit()
        session.refresh(entry)

    logger.info("Added player %d to sub-event %d; pools will be re-drawn from the new roster", player_id, sub_event_id)
    return entry
