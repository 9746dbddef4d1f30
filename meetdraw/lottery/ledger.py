"""Prize stock ledger with a compare-and-swap style decrement."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Union

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..models import Prize
from .errors import InventoryConflict, PersistenceError

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Owns ``Prize.remaining_quantity`` for the draw path.

    Each call runs in its own transaction on a fresh session from
    ``session_factory``, so a successful decrement is durable as soon as the
    method returns. Returned prizes are detached snapshots.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_in_stock(self) -> list[Prize]:
        """Return prizes with positive stock ordered by ascending id."""

        try:
            with self._session_factory() as session:
                prizes = Prize.list_in_stock(session)
                session.expunge_all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list in-stock prizes: %s", exc)
            raise PersistenceError("failed to list in-stock prizes") from exc
        return prizes

    def try_decrement(self, prize_id: int) -> Union[Prize, InventoryConflict]:
        """Consume one unit of ``prize_id`` if stock is still positive.

        The guard runs inside the ``UPDATE`` statement itself, so two requests
        racing for the last unit cannot both succeed.

        Parameters
        ----------
        prize_id : int
            Prize to decrement.

        Returns
        -------
        Union[Prize, InventoryConflict]
            The post-decrement prize, or :class:`InventoryConflict` when the
            stock was already exhausted (or the prize no longer exists).

        Raises
        ------
        PersistenceError
            If the store fails unexpectedly.
        """

        try:
            with self._session_factory.begin() as session:
                result = session.execute(
                    update(Prize)
                    .where(Prize.id == prize_id, Prize.remaining_quantity > 0)
                    .values(
                        remaining_quantity=Prize.remaining_quantity - 1,
                        updated_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    logger.warning("Inventory conflict on prize %s", prize_id)
                    return InventoryConflict(prize_id=prize_id)
                prize = session.get(Prize, prize_id, populate_existing=True)
                session.expunge(prize)
        except SQLAlchemyError as exc:
            logger.error("Failed to decrement prize %s: %s", prize_id, exc)
            raise PersistenceError(f"failed to decrement prize {prize_id}") from exc

        logger.debug(
            "Decremented prize %s, %s remaining", prize_id, prize.remaining_quantity
        )
        return prize


__all__ = ["InventoryLedger"]
