"""Database model for lottery prizes and their stock."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Integer,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base

if TYPE_CHECKING:
    from .winner import LotteryWinner


class Prize(Base):
    """A prize that can be handed out by the meeting lottery.

    ``remaining_quantity`` is the live stock. During draws it is only changed by
    the conditional decrement in :class:`~meetdraw.lottery.ledger.InventoryLedger`.
    """

    __tablename__ = "prizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key. Also the stable iteration order used by weighted selection."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name of the prize."""

    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    """Optional image shown on the lottery wheel."""

    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Number of units ever made available."""

    remaining_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Units still available to be won."""

    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    """Relative selection weight. Zero on every prize means uniform selection."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    winners: Mapped[list["LotteryWinner"]] = relationship(
        "LotteryWinner", back_populates="prize"
    )

    __table_args__ = (
        CheckConstraint("remaining_quantity >= 0", name="remaining_non_negative"),
        CheckConstraint(
            "remaining_quantity <= total_quantity", name="remaining_within_total"
        ),
        CheckConstraint("weight >= 0", name="weight_non_negative"),
    )

    def __init__(
        self,
        *,
        name: str,
        total_quantity: int = 0,
        remaining_quantity: Optional[int] = None,
        weight: float = 0.0,
        image_url: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.name = name
        self.total_quantity = total_quantity
        # New prizes start fully stocked unless told otherwise.
        self.remaining_quantity = (
            total_quantity if remaining_quantity is None else remaining_quantity
        )
        self.weight = weight
        self.image_url = image_url
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    @property
    def consumed_quantity(self) -> int:
        """Units already handed out."""
        return self.total_quantity - self.remaining_quantity

    @property
    def in_stock(self) -> bool:
        return self.remaining_quantity > 0

    @classmethod
    def list_in_stock(cls, session: Session) -> list["Prize"]:
        """Return prizes with positive stock ordered by ascending id."""

        stmt = (
            select(cls).where(cls.remaining_quantity > 0).order_by(cls.id.asc())
        )
        return list(session.scalars(stmt))

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "total_quantity": self.total_quantity,
            "remaining_quantity": self.remaining_quantity,
            "weight": self.weight,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            "<Prize("
            f"id={self.id}, name='{self.name}', remaining={self.remaining_quantity}/"
            f"{self.total_quantity}, weight={self.weight}"
            ")>"
        )


__all__ = ["Prize"]
