"""Orchestration of a single lottery draw request."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from ..config import DrawSettings
from ..models import LotteryWinner, Member, Prize
from .eligibility import EligibilityResolver
from .errors import (
    ConfigurationError,
    InventoryConflict,
    LotteryError,
    NoAvailablePrizesError,
    NoEligibleMembersError,
    PartialFailureError,
    PersistenceError,
    WinnerConflict,
)
from .ledger import InventoryLedger
from .meeting_date import normalize_meeting_date
from .registry import WinnerRegistry
from .selection import WeightedSelector, shared_selector

logger = logging.getLogger(__name__)


class DrawState(str, enum.Enum):
    """Stages a draw passes through. ``FAILED`` is reachable from any stage."""

    IDLE = "idle"
    RESOLVING_ELIGIBILITY = "resolving_eligibility"
    SELECTING_ATTENDEE = "selecting_attendee"
    SELECTING_PRIZE = "selecting_prize"
    DECREMENTING_INVENTORY = "decrementing_inventory"
    RECORDING_WINNER = "recording_winner"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class DrawOutcome:
    """Value object describing a completed draw.

    Attributes
    ----------
    meeting_date : str
        Meeting date the draw ran for.
    prize : Prize
        Detached snapshot of the prize after its stock was decremented.
    attendee_id : int
        Winning member id.
    attendee : Optional[Member]
        Winning member record, ``None`` if the roster no longer has it.
    winner : LotteryWinner
        The stored winner record.
    total_checkins : int
        Members present on the meeting date.
    total_winners : int
        Winners on the meeting date, including this one.
    eligible_count : int
        Eligible members at the time of the draw, including the winner.
    attempts : int
        Conditional decrement attempts used.
    """

    meeting_date: str
    prize: Prize
    attendee_id: int
    attendee: Optional[Member]
    winner: LotteryWinner
    total_checkins: int
    total_winners: int
    eligible_count: int
    attempts: int

    @property
    def remaining_eligible(self) -> int:
        return self.eligible_count - 1

    @property
    def winner_probability(self) -> float:
        """Chance the winner had at draw time. For display only."""
        return 1.0 / self.eligible_count

    @property
    def winner_probability_display(self) -> str:
        return f"{self.winner_probability * 100:.2f}%"

    def to_json(self) -> dict[str, Any]:
        return {
            "success": True,
            "prize": {
                "id": self.prize.id,
                "name": self.prize.name,
                "image_url": self.prize.image_url,
                "remaining_quantity": self.prize.remaining_quantity,
            },
            "winner": {
                "attendee_id": self.attendee_id,
                "name": self.attendee.name if self.attendee is not None else "",
            },
            "totalCheckins": self.total_checkins,
            "totalWinners": self.total_winners,
            "remainingEligible": self.remaining_eligible,
            "winnerProbability": self.winner_probability_display,
        }


class DrawCoordinator:
    """Runs one draw: eligibility, selection, stock decrement, winner record.

    The two writes are independent transactions. Stock is decremented first;
    if the winner insert then conflicts, the unit stays consumed and
    :class:`PartialFailureError` is raised for manual reconciliation.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        selector: Optional[WeightedSelector] = None,
        resolver: Optional[EligibilityResolver] = None,
        ledger: Optional[InventoryLedger] = None,
        registry: Optional[WinnerRegistry] = None,
        settings: Optional[DrawSettings] = None,
    ) -> None:
        """Create a coordinator bound to a session factory.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing sessions for the store. Every read and write runs
            in its own session.
        selector : Optional[WeightedSelector], default: None
            Selection strategy; pass one with a seeded generator for
            reproducible draws. Defaults to the process-wide selector for the
            seed in ``settings``.
        resolver, ledger, registry : optional
            Component overrides, mainly for tests.
        settings : Optional[DrawSettings], default: None
            Retry budget and seed. Read from the environment when omitted.

        Raises
        ------
        ConfigurationError
            If the environment holds unusable draw settings.
        """

        if settings is None:
            try:
                settings = DrawSettings.from_env()
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        self._settings = settings
        self._selector = selector or shared_selector(self._settings.random_seed)
        self._resolver = resolver or EligibilityResolver(session_factory)
        self._ledger = ledger or InventoryLedger(session_factory)
        self._registry = registry or WinnerRegistry(session_factory)
        self._state = DrawState.IDLE

    @property
    def state(self) -> DrawState:
        """Stage reached by the most recent draw."""
        return self._state

    def _transition(self, state: DrawState) -> None:
        logger.debug("Draw state %s -> %s", self._state.value, state.value)
        self._state = state

    def draw(self, meeting_date: Any) -> DrawOutcome:
        """Run a draw for ``meeting_date`` and return the outcome.

        Raises
        ------
        ValidationError
            If ``meeting_date`` is malformed. Nothing is read.
        NoEligibleMembersError
            If nobody is present, or every present member already won.
        NoAvailablePrizesError
            If no prize has stock, or the decrement retry budget ran out.
        PartialFailureError
            If stock was consumed but the winner record was rejected or could
            not be written.
        PersistenceError
            If the store fails unexpectedly before any stock was consumed.
        """

        self._state = DrawState.IDLE
        try:
            meeting_date = normalize_meeting_date(meeting_date)
            outcome = self._run(meeting_date)
        except LotteryError as exc:
            failed_in = self._state
            self._transition(DrawState.FAILED)
            if isinstance(exc, PartialFailureError):
                logger.error("Draw failed in %s: %s", failed_in.value, exc)
            else:
                logger.info("Draw failed in %s: %s", failed_in.value, exc)
            raise
        return outcome

    def _run(self, meeting_date: str) -> DrawOutcome:
        self._transition(DrawState.RESOLVING_ELIGIBILITY)
        snapshot = self._resolver.compute_eligible(meeting_date)
        if snapshot.total_checkins == 0:
            raise NoEligibleMembersError(f"no members checked in on {meeting_date}")
        eligible = snapshot.eligible_ids
        if not eligible:
            raise NoEligibleMembersError(
                f"every member present on {meeting_date} has already won"
            )
        eligible_count = len(eligible)

        self._transition(DrawState.SELECTING_ATTENDEE)
        attendee_id = self._selector.select_attendee(eligible)
        # Read before any write so a failed lookup cannot strand a recorded win.
        attendee = self._resolver.get_attendee(attendee_id)

        prize, attempts = self._consume_prize_unit()

        self._transition(DrawState.RECORDING_WINNER)
        try:
            recorded = self._registry.record_winner(meeting_date, attendee_id, prize.id)
        except PersistenceError as exc:
            raise PartialFailureError(
                f"prize {prize.id} was decremented but the win of member "
                f"{attendee_id} on {meeting_date} could not be recorded; "
                "credit the unit back manually",
                meeting_date=meeting_date,
                attendee_id=attendee_id,
                prize_id=prize.id,
            ) from exc
        if isinstance(recorded, WinnerConflict):
            raise PartialFailureError(
                f"prize {prize.id} was decremented but member {attendee_id} "
                f"already has a win on {meeting_date}; credit the unit back manually",
                meeting_date=meeting_date,
                attendee_id=attendee_id,
                prize_id=prize.id,
            )

        self._transition(DrawState.COMPLETED)
        logger.info(
            "Member %s won prize %s on %s", attendee_id, prize.id, meeting_date
        )
        return DrawOutcome(
            meeting_date=meeting_date,
            prize=prize,
            attendee_id=attendee_id,
            attendee=attendee,
            winner=recorded,
            total_checkins=snapshot.total_checkins,
            total_winners=snapshot.total_winners + 1,
            eligible_count=eligible_count,
            attempts=attempts,
        )

    def _consume_prize_unit(self) -> tuple[Prize, int]:
        """Select a prize and decrement it, retrying on inventory conflicts."""

        excluded: set[int] = set()
        for attempt in range(1, self._settings.max_attempts + 1):
            self._transition(DrawState.SELECTING_PRIZE)
            candidates = [
                prize for prize in self._ledger.list_in_stock() if prize.id not in excluded
            ]
            if not candidates:
                raise NoAvailablePrizesError("no prize with remaining stock")
            selected = self._selector.select_prize(candidates)

            self._transition(DrawState.DECREMENTING_INVENTORY)
            outcome = self._ledger.try_decrement(selected.id)
            if isinstance(outcome, InventoryConflict):
                excluded.add(outcome.prize_id)
                logger.info(
                    "Prize %s ran out before decrement (attempt %d/%d)",
                    outcome.prize_id,
                    attempt,
                    self._settings.max_attempts,
                )
                continue
            return outcome, attempt

        raise NoAvailablePrizesError(
            f"no prize could be claimed after {self._settings.max_attempts} attempts"
        )


__all__ = ["DrawCoordinator", "DrawOutcome", "DrawState"]
