"""Database model for recorded lottery winners."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .member import Member
    from .prize import Prize


class LotteryWinner(Base):
    """Append-only record pairing a meeting date, a member and the prize won."""

    __tablename__ = "lottery_winners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    meeting_date: Mapped[str] = mapped_column(String(10), nullable=False)
    """Meeting date in ``YYYY-MM-DD`` form."""

    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="RESTRICT"), nullable=False
    )
    """Member who won."""

    prize_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("prizes.id", ondelete="RESTRICT"), nullable=False
    )
    """Prize unit consumed by the win."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the win was recorded."""

    member: Mapped["Member"] = relationship("Member", back_populates="wins")
    prize: Mapped["Prize"] = relationship("Prize", back_populates="winners")

    # The unique constraint is the authoritative one-win-per-date guard; the
    # eligibility filter alone is racy.
    __table_args__ = (
        UniqueConstraint("member_id", "meeting_date", name="uq_lottery_winner_member_date"),
        Index("ix_lottery_winners_meeting_date", "meeting_date"),
    )

    @classmethod
    def for_date(cls, session: Session, meeting_date: str) -> list["LotteryWinner"]:
        """Return the winners of ``meeting_date``, newest first."""

        stmt = (
            select(cls)
            .where(cls.meeting_date == meeting_date)
            .order_by(cls.created_at.desc(), cls.id.desc())
        )
        return list(session.scalars(stmt))

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "meeting_date": self.meeting_date,
            "member_id": self.member_id,
            "prize_id": self.prize_id,
            "created_at": dt_iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            "<LotteryWinner(id={id}, meeting_date={date}, member_id={member}, "
            "prize_id={prize})>"
        ).format(
            id=self.id,
            date=self.meeting_date,
            member=self.member_id,
            prize=self.prize_id,
        )


__all__ = ["LotteryWinner"]
