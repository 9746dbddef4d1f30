"""Resolution of the attendees eligible for a meeting-date draw."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..models import Checkin, LotteryWinner, Member
from .errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilitySnapshot:
    """Point-in-time view of who can still win on a meeting date.

    Attributes
    ----------
    meeting_date : str
        Meeting date the snapshot was taken for.
    present_ids : frozenset[int]
        Members checked in as ``present``.
    winner_ids : frozenset[int]
        Members already holding a win for the date.
    """

    meeting_date: str
    present_ids: frozenset[int]
    winner_ids: frozenset[int]

    @property
    def eligible_ids(self) -> frozenset[int]:
        return self.present_ids - self.winner_ids

    @property
    def total_checkins(self) -> int:
        return len(self.present_ids)

    @property
    def total_winners(self) -> int:
        return len(self.winner_ids)


class EligibilityResolver:
    """Computes eligible attendees from check-ins and recorded winners.

    The returned snapshot can go stale as soon as it is returned; the winner
    insert is what finally enforces one win per member and date.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def compute_eligible(self, meeting_date: str) -> EligibilitySnapshot:
        """Return present attendees minus recorded winners for ``meeting_date``."""

        try:
            # Both reads share one transaction so they see the same state.
            with self._session_factory.begin() as session:
                present = Checkin.present_for_date(session, meeting_date)
                winners = LotteryWinner.for_date(session, meeting_date)
                snapshot = EligibilitySnapshot(
                    meeting_date=meeting_date,
                    present_ids=frozenset(c.member_id for c in present),
                    winner_ids=frozenset(w.member_id for w in winners),
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to resolve eligibility for %s: %s", meeting_date, exc)
            raise PersistenceError(
                f"failed to read check-ins for {meeting_date}"
            ) from exc

        logger.debug(
            "Eligibility for %s: %d present, %d winners, %d eligible",
            meeting_date,
            snapshot.total_checkins,
            snapshot.total_winners,
            len(snapshot.eligible_ids),
        )
        return snapshot

    def get_attendee(self, attendee_id: int) -> Optional[Member]:
        """Return the member record of ``attendee_id`` if it exists."""

        try:
            with self._session_factory() as session:
                member = Member.get(session, attendee_id)
                if member is not None:
                    session.expunge(member)
        except SQLAlchemyError as exc:
            logger.error("Failed to load member %s: %s", attendee_id, exc)
            raise PersistenceError(f"failed to load member {attendee_id}") from exc
        return member


__all__ = ["EligibilityResolver", "EligibilitySnapshot"]
