from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .member import Member


CHECKIN_STATUSES = ("present", "early", "late", "early_leave", "absent")
"""Attendance statuses recorded by the check-in desk."""


class Checkin(Base):
    """Attendance record of a member for one meeting date."""

    __tablename__ = "checkins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    meeting_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    """Meeting date in ``YYYY-MM-DD`` form."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="present")
    checkin_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    member: Mapped["Member"] = relationship("Member", back_populates="checkins")

    __table_args__ = (
        UniqueConstraint("member_id", "meeting_date", name="uq_checkin_member_date"),
        CheckConstraint(
            "status IN ('present','early','late','early_leave','absent')",
            name="status_enum",
        ),
    )

    @classmethod
    def present_for_date(cls, session: Session, meeting_date: str) -> list["Checkin"]:
        """Return check-ins marked ``present`` for ``meeting_date``."""

        stmt = (
            select(cls)
            .where(cls.meeting_date == meeting_date, cls.status == "present")
            .order_by(cls.member_id.asc())
        )
        return list(session.scalars(stmt))

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Checkin(id={self.id}, member_id={self.member_id}, "
            f"meeting_date='{self.meeting_date}', status='{self.status}')>"
        )
