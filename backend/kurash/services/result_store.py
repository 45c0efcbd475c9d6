"""
Result Store - persistence contract for match results, summary placements and
clubbed rankings of a sub-event.

Every query failure is logged, the session rolled back and a ResultStoreError
raised. Nothing is retried; the caller decides whether to try again.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from kurash.models.clubbed_result import ClubbedResult
from kurash.models.match_result import MatchResult
from kurash.models.summary_result import Position, ResultType, SummaryResult
from kurash.services.errors import BracketNotFoundError, ResultStoreError
from kurash.utils.stage_keys import StageKey

logger = logging.getLogger(__name__)


@contextmanager
def store_guard(session: Session, action: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into ResultStoreError after rolling back."""
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Result store failure during %s", action)
        raise ResultStoreError(f"{action} failed: {exc}") from exc


class ResultStore:
    """Reads and writes the durable bracket state of sub-events."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # match results
    # ------------------------------------------------------------------

    def list_match_results(self, sub_event_id: int) -> List[MatchResult]:
        with store_guard(self.session, "list match results"):
            return list(
                self.session.exec(
                    select(MatchResult).where(MatchResult.sub_event_id == sub_event_id).order_by(MatchResult.id)
                ).all()
            )

    def get_match_result(self, sub_event_id: int, stage_id: str) -> Optional[MatchResult]:
        with store_guard(self.session, "get match result"):
            return self.session.exec(
                select(MatchResult).where(
                    MatchResult.sub_event_id == sub_event_id,
                    MatchResult.stage_id == stage_id,
                )
            ).first()

    def upsert_match_result(
        self,
        key: StageKey,
        player1_id: int,
        player2_id: Optional[int],
        winner_id: int,
    ) -> MatchResult:
        """
        Insert or replace the result for a stage. Last write wins; there is no
        version check against concurrent editors.
        """
        with store_guard(self.session, f"upsert match result {key.stage_id}"):
            result = self.session.exec(
                select(MatchResult).where(
                    MatchResult.sub_event_id == key.sub_event_id,
                    MatchResult.stage_id == key.stage_id,
                )
            ).first()

            if result is None:
                result = MatchResult(
                    sub_event_id=key.sub_event_id,
                    stage_id=key.stage_id,
                    stage_kind=key.stage_kind.value,
                    pool_number=key.pool_number,
                    round_index=key.round_index,
                    match_index=key.match_index,
                    player1_id=player1_id,
                    player2_id=player2_id,
                    winner_id=winner_id,
                )
            else:
                result.player1_id = player1_id
                result.player2_id = player2_id
                result.winner_id = winner_id
                result.updated_at = datetime.utcnow()

            self.session.add(result)
            self.session.commit()
            self.session.refresh(result)
            return result

    # ------------------------------------------------------------------
    # summary results
    # ------------------------------------------------------------------

    def list_summary_results(self, sub_event_id: int) -> List[SummaryResult]:
        with store_guard(self.session, "list summary results"):
            return list(
                self.session.exec(
                    select(SummaryResult)
                    .where(SummaryResult.sub_event_id == sub_event_id)
                    .options(selectinload(SummaryResult.player))
                    .order_by(SummaryResult.id)
                ).all()
            )

    def add_summary_result(
        self,
        sub_event_id: int,
        group_name: str,
        player_id: int,
        result_type: ResultType,
        position: Position,
    ) -> SummaryResult:
        with store_guard(self.session, "insert summary result"):
            row = SummaryResult(
                sub_event_id=sub_event_id,
                group_name=group_name,
                player_id=player_id,
                result_type=result_type,
                position=position,
            )
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
            return row

    def upsert_summary_slot(
        self,
        sub_event_id: int,
        group_name: str,
        player_id: int,
        result_type: ResultType,
        position: Position,
    ) -> Tuple[SummaryResult, Optional[int]]:
        """
        Keep one derived summary row per (group_name, position) slot.

        An existing row held by another player is handed over to player_id, so a
        corrected result replaces the placement instead of adding a second one.

        Returns:
            (row, previous holder id, or None when the row is new)
        """
        with store_guard(self.session, f"upsert summary result {group_name}/{position.value}"):
            row = self.session.exec(
                select(SummaryResult).where(
                    SummaryResult.sub_event_id == sub_event_id,
                    SummaryResult.group_name == group_name,
                    SummaryResult.position == position.value,
                )
            ).first()

            previous = row.player_id if row is not None else None
            if previous == player_id:
                return row, previous

            if row is None:
                row = SummaryResult(
                    sub_event_id=sub_event_id,
                    group_name=group_name,
                    player_id=player_id,
                    result_type=result_type,
                    position=position,
                )
            else:
                row.player_id = player_id
                row.result_type = result_type

            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
            return row, previous

    def delete_summary_result(self, result_id: int) -> None:
        with store_guard(self.session, f"delete summary result {result_id}"):
            row = self.session.get(SummaryResult, result_id)
            if row is None:
                raise BracketNotFoundError(f"Summary result {result_id} not found")
            self.session.delete(row)
            self.session.commit()

    # ------------------------------------------------------------------
    # clubbed results
    # ------------------------------------------------------------------

    def list_clubbed_results(self, sub_event_id: int) -> List[ClubbedResult]:
        with store_guard(self.session, "list clubbed results"):
            return list(
                self.session.exec(
                    select(ClubbedResult)
                    .where(ClubbedResult.sub_event_id == sub_event_id)
                    .options(selectinload(ClubbedResult.player))
                    .order_by(ClubbedResult.id)
                ).all()
            )

    def add_clubbed_result(self, sub_event_id: int, player_id: int, rank: str, remarks: str = "") -> ClubbedResult:
        with store_guard(self.session, "insert clubbed result"):
            row = ClubbedResult(sub_event_id=sub_event_id, player_id=player_id, rank=rank, remarks=remarks)
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
            return row

    def _clubbed_row(self, sub_event_id: int, player_id: int, rank: str) -> Optional[ClubbedResult]:
        return self.session.exec(
            select(ClubbedResult).where(
                ClubbedResult.sub_event_id == sub_event_id,
                ClubbedResult.player_id == player_id,
                ClubbedResult.rank == rank,
            )
        ).first()

    def upsert_clubbed_rank(
        self,
        sub_event_id: int,
        player_id: int,
        rank: str,
        remarks: str = "",
        holder_id: Optional[int] = None,
    ) -> Tuple[ClubbedResult, bool]:
        """
        Give a medal rank to player_id.

        If the player already holds the rank the row is kept. Otherwise the row
        of the previous holder (holder_id) is handed over, and only when there
        is none is a new row inserted.

        Returns:
            (row, changed)
        """
        with store_guard(self.session, f"upsert clubbed rank {rank}"):
            row = self._clubbed_row(sub_event_id, player_id, rank)
            if row is None and holder_id is not None:
                row = self._clubbed_row(sub_event_id, holder_id, rank)

            if row is not None and row.player_id == player_id and row.remarks == remarks:
                return row, False

            if row is None:
                row = ClubbedResult(sub_event_id=sub_event_id, player_id=player_id, rank=rank, remarks=remarks)
            else:
                row.player_id = player_id
                row.remarks = remarks

            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
            return row, True

    def delete_clubbed_result(self, result_id: int) -> None:
        with store_guard(self.session, f"delete clubbed result {result_id}"):
            row = self.session.get(ClubbedResult, result_id)
            if row is None:
                raise BracketNotFoundError(f"Clubbed result {result_id} not found")
            self.session.delete(row)
            self.session.commit()
