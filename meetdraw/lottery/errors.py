"""Error taxonomy and conflict values for the lottery draw engine."""

from __future__ import annotations

from dataclasses import dataclass


class LotteryError(Exception):
    """Base class for every failure a draw request can surface to its caller."""

    kind = "lottery_error"


class ValidationError(LotteryError, ValueError):
    """Raised for malformed input, before anything is read from the store."""

    kind = "validation_error"


class AuthorizationError(LotteryError):
    """Raised when the injected credential check rejects a draw request."""

    kind = "authorization_error"


class NoEligibleMembersError(LotteryError):
    """No present attendee without a prior win exists for the meeting date."""

    kind = "no_eligible_members"


class NoAvailablePrizesError(LotteryError):
    """No prize has stock left, initially or after the retry budget ran out."""

    kind = "no_available_prizes"


class PersistenceError(LotteryError):
    """An unexpected storage failure. Fatal for the current request."""

    kind = "persistence_error"


class ConfigurationError(LotteryError):
    """The draw settings in the environment are unusable."""

    kind = "configuration_error"


class PartialFailureError(LotteryError):
    """A prize unit was consumed but the winner could not be recorded.

    The store offers no cross-table transaction, so the decrement is not rolled
    back. Operators reconcile by crediting the unit back with
    :func:`meetdraw.workflows.credit_prize_unit`.

    Attributes
    ----------
    meeting_date : str
        Meeting date the draw ran for.
    attendee_id : int
        Member selected by the draw.
    prize_id : int
        Prize whose stock was decremented.
    """

    kind = "partial_failure"

    def __init__(self, message: str, *, meeting_date: str, attendee_id: int, prize_id: int):
        super().__init__(message)
        self.meeting_date = meeting_date
        self.attendee_id = attendee_id
        self.prize_id = prize_id


@dataclass(frozen=True)
class InventoryConflict:
    """Returned when a conditional decrement found no stock at write time."""

    prize_id: int


@dataclass(frozen=True)
class WinnerConflict:
    """Returned when the member already holds a win for the meeting date."""

    meeting_date: str
    attendee_id: int


__all__ = [
    "ConfigurationError",
    "AuthorizationError",
    "InventoryConflict",
    "LotteryError",
    "NoAvailablePrizesError",
    "NoEligibleMembersError",
    "PartialFailureError",
    "PersistenceError",
    "ValidationError",
    "WinnerConflict",
]
