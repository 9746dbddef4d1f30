"""Append-only registry of lottery winners."""

from __future__ import annotations

import logging
from typing import Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..models import LotteryWinner
from .errors import PersistenceError, WinnerConflict

logger = logging.getLogger(__name__)


class WinnerRegistry:
    """Records (meeting date, member, prize) triples, one per member and date."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def record_winner(
        self, meeting_date: str, attendee_id: int, prize_id: int
    ) -> Union[LotteryWinner, WinnerConflict]:
        """Insert a winner record in its own transaction.

        Returns
        -------
        Union[LotteryWinner, WinnerConflict]
            The stored record, or :class:`WinnerConflict` when the member already
            won on ``meeting_date``.

        Raises
        ------
        PersistenceError
            For any other storage failure, including integrity errors that are
            not a duplicate win (e.g. an unknown prize).
        """

        winner = LotteryWinner(
            meeting_date=meeting_date,
            member_id=attendee_id,
            prize_id=prize_id,
        )
        try:
            with self._session_factory.begin() as session:
                session.add(winner)
                session.flush()
                session.expunge(winner)
        except IntegrityError as exc:
            # Dialects report unique violations differently; ask the store
            # whether the duplicate row is really there.
            if self.has_won(meeting_date, attendee_id):
                logger.warning(
                    "Member %s already won on %s", attendee_id, meeting_date
                )
                return WinnerConflict(meeting_date=meeting_date, attendee_id=attendee_id)
            logger.error("Failed to record winner %s on %s: %s", attendee_id, meeting_date, exc)
            raise PersistenceError(
                f"failed to record winner {attendee_id} for {meeting_date}"
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("Failed to record winner %s on %s: %s", attendee_id, meeting_date, exc)
            raise PersistenceError(
                f"failed to record winner {attendee_id} for {meeting_date}"
            ) from exc
        return winner

    def has_won(self, meeting_date: str, attendee_id: int) -> bool:
        """Return ``True`` if ``attendee_id`` holds a win for ``meeting_date``."""

        try:
            with self._session_factory() as session:
                existing = session.scalar(
                    select(LotteryWinner.id).where(
                        LotteryWinner.meeting_date == meeting_date,
                        LotteryWinner.member_id == attendee_id,
                    )
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"failed to look up winner {attendee_id} for {meeting_date}"
            ) from exc
        return existing is not None

    def list_winners(self, meeting_date: str) -> list[LotteryWinner]:
        """Return the winners recorded for ``meeting_date``, newest first."""

        try:
            with self._session_factory() as session:
                winners = LotteryWinner.for_date(session, meeting_date)
                session.expunge_all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list winners for %s: %s", meeting_date, exc)
            raise PersistenceError(f"failed to list winners for {meeting_date}") from exc
        return winners


__all__ = ["WinnerRegistry"]
