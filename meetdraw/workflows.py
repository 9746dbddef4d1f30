from typing import Any, Optional
from datetime import datetime, timezone
import math
import random

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from .config import DrawSettings
from .db.utils import dt_iso
from .lottery import (
    DrawCoordinator,
    DrawOutcome,
    ValidationError,
    WeightedSelector,
    normalize_meeting_date,
    today_meeting_date,
)
from .models import LotteryWinner, Member, Prize

MAX_PRIZE_NAME_LENGTH = 100
MAX_PRIZE_WEIGHT = 100.0


def run_lottery_draw(
    session_factory: sessionmaker,
    meeting_date: Optional[str] = None,
    *,
    rng: Optional[random.Random] = None,
    settings: Optional[DrawSettings] = None,
) -> DrawOutcome:
    """Draw one winner and one prize for ``meeting_date``.

    This function essentially wraps :class:`~meetdraw.lottery.DrawCoordinator`.
    Unlike the admin helpers below it takes a session *factory*: the stock
    decrement and the winner insert must each commit on their own.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory bound to the lottery database.
    meeting_date : Optional[str], default: None
        Meeting date in ``YYYY-MM-DD`` form. Today's date (UTC) when omitted.
    rng : Optional[random.Random], default: None
        Random generator used for both selections.
    settings : Optional[DrawSettings], default: None
        Retry budget and seed; read from the environment when omitted.

    Returns
    -------
    DrawOutcome
        Prize, winner and the counts shown on the lottery screen.

    Raises
    ------
    LotteryError
        One of its subclasses, see :meth:`DrawCoordinator.draw`.
    """

    if meeting_date is None:
        meeting_date = today_meeting_date()
    selector = WeightedSelector(rng) if rng is not None else None
    coordinator = DrawCoordinator(session_factory, selector=selector, settings=settings)
    return coordinator.draw(meeting_date)


def list_winners(session: Session, meeting_date: str) -> list[dict[str, Any]]:
    """Return the winners of ``meeting_date`` with member and prize names.

    Rows are ordered newest first (``created_at`` then ``id`` descending).
    """

    meeting_date = normalize_meeting_date(meeting_date)
    stmt = (
        select(LotteryWinner, Member, Prize)
        .join(Member, Member.id == LotteryWinner.member_id)
        .join(Prize, Prize.id == LotteryWinner.prize_id)
        .where(LotteryWinner.meeting_date == meeting_date)
        .order_by(LotteryWinner.created_at.desc(), LotteryWinner.id.desc())
    )
    return [
        {
            "id": winner.id,
            "meeting_date": winner.meeting_date,
            "created_at": dt_iso(winner.created_at),
            "member_id": member.id,
            "member_name": member.name,
            "prize_id": prize.id,
            "prize_name": prize.name,
            "prize_image_url": prize.image_url,
        }
        for winner, member, prize in session.execute(stmt).all()
    ]


def _validate_prize_name(name: Any) -> str:
    normalized = str(name or "").strip()
    if not normalized:
        raise ValidationError("prize name must not be empty")
    if len(normalized) > MAX_PRIZE_NAME_LENGTH:
        raise ValidationError(
            f"prize name must be at most {MAX_PRIZE_NAME_LENGTH} characters"
        )
    return normalized


def _validate_quantity(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer")
    return value


def _validate_weight(value: Any) -> float:
    try:
        weight = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("weight must be a number") from exc
    if not math.isfinite(weight) or weight < 0.0 or weight > MAX_PRIZE_WEIGHT:
        raise ValidationError(f"weight must be between 0 and {MAX_PRIZE_WEIGHT:g}")
    return weight


def create_prize(
    session: Session,
    *,
    name: str,
    total_quantity: int,
    weight: float = 0.0,
    image_url: Optional[str] = None,
) -> Prize:
    """Persist a new prize with its full stock available."""

    prize = Prize(
        name=_validate_prize_name(name),
        total_quantity=_validate_quantity(total_quantity, "total_quantity"),
        weight=_validate_weight(weight),
        image_url=image_url,
    )
    session.add(prize)
    session.flush()
    return prize


def update_prize(
    session: Session,
    prize_id: int,
    *,
    name: Optional[str] = None,
    total_quantity: Optional[int] = None,
    weight: Optional[float] = None,
    image_url: Optional[str] = None,
) -> Prize:
    """Edit a prize while keeping the number of units already handed out.

    Changing ``total_quantity`` recomputes the stock as
    ``max(0, total_quantity - consumed)`` so past wins are never re-credited by
    an edit and stock never exceeds the total.

    Raises
    ------
    ValueError
        If the prize does not exist or an argument is invalid.
    """

    prize = session.get(Prize, prize_id)
    if prize is None:
        raise ValueError(f"Prize {prize_id} does not exist")

    if name is not None:
        prize.name = _validate_prize_name(name)
    if weight is not None:
        prize.weight = _validate_weight(weight)
    if image_url is not None:
        prize.image_url = image_url
    if total_quantity is not None:
        new_total = _validate_quantity(total_quantity, "total_quantity")
        consumed = prize.consumed_quantity
        prize.total_quantity = new_total
        # Shrinking below the consumed count leaves the prize out of stock.
        prize.remaining_quantity = max(0, new_total - consumed)

    session.flush()
    return prize


def credit_prize_unit(session: Session, prize_id: int) -> Prize:
    """Return one unit to a prize's stock.

    Used to reconcile a :class:`~meetdraw.lottery.PartialFailureError`, where a
    unit was consumed without a winner being recorded. The increment is
    conditional on ``remaining_quantity < total_quantity`` at write time.

    Raises
    ------
    ValueError
        If the prize does not exist or is already fully stocked.
    """

    result = session.execute(
        update(Prize)
        .where(
            Prize.id == prize_id,
            Prize.remaining_quantity < Prize.total_quantity,
        )
        .values(
            remaining_quantity=Prize.remaining_quantity + 1,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    prize = session.get(Prize, prize_id, populate_existing=True)
    if prize is None:
        raise ValueError(f"Prize {prize_id} does not exist")
    if result.rowcount != 1:
        raise ValueError(f"Prize {prize_id} is already fully stocked")
    return prize


def list_prizes(session: Session) -> list[dict[str, Any]]:
    """Return every prize as a JSON row, highest id first."""

    stmt = select(Prize).order_by(Prize.id.desc())
    return [prize.to_json() for prize in session.scalars(stmt)]


def delete_prize(session: Session, prize_id: int) -> None:
    """Delete a prize that has never been won.

    Winner records keep a restricting reference to their prize, so a prize with
    recorded wins stays; set its ``total_quantity`` to the consumed count with
    :func:`update_prize` to retire it instead.

    Raises
    ------
    ValueError
        If the prize does not exist or has recorded winners.
    """

    prize = session.get(Prize, prize_id)
    if prize is None:
        raise ValueError(f"Prize {prize_id} does not exist")
    won = session.scalar(
        select(LotteryWinner.id).where(LotteryWinner.prize_id == prize_id).limit(1)
    )
    if won is not None:
        raise ValueError(f"Prize {prize_id} has recorded winners and cannot be deleted")
    session.delete(prize)
    session.flush()
