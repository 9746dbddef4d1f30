from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .checkin import Checkin
    from .winner import LotteryWinner


class Member(Base):
    """Club member who can check in to meetings and win prizes.

    Members are owned by the member roster; the lottery only reads them.
    """

    __tablename__ = "members"

    # Member numbers are assigned by the roster, not generated here.
    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    profession: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    checkins: Mapped[list["Checkin"]] = relationship(
        "Checkin", back_populates="member", cascade="all, delete-orphan"
    )
    wins: Mapped[list["LotteryWinner"]] = relationship(
        "LotteryWinner", back_populates="member"
    )

    @validates("name")
    def _normalize_name(self, _key: str, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("Member name must not be empty")
        return normalized

    @classmethod
    def get(cls, session: Session, member_id: int) -> Optional["Member"]:
        """Return the member with ``member_id`` or ``None``."""
        return session.get(cls, member_id)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Member(id={self.id}, name='{self.name}')>"
