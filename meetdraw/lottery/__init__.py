"""Lottery draw and eligibility engine."""

from .coordinator import DrawCoordinator, DrawOutcome, DrawState
from .eligibility import EligibilityResolver, EligibilitySnapshot
from .errors import (
    AuthorizationError,
    ConfigurationError,
    InventoryConflict,
    LotteryError,
    NoAvailablePrizesError,
    NoEligibleMembersError,
    PartialFailureError,
    PersistenceError,
    ValidationError,
    WinnerConflict,
)
from .ledger import InventoryLedger
from .meeting_date import normalize_meeting_date, today_meeting_date
from .registry import WinnerRegistry
from .selection import WeightedSelector, effective_weight, shared_selector

__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "DrawCoordinator",
    "DrawOutcome",
    "DrawState",
    "EligibilityResolver",
    "EligibilitySnapshot",
    "InventoryConflict",
    "InventoryLedger",
    "LotteryError",
    "NoAvailablePrizesError",
    "NoEligibleMembersError",
    "PartialFailureError",
    "PersistenceError",
    "ValidationError",
    "WeightedSelector",
    "WinnerConflict",
    "WinnerRegistry",
    "effective_weight",
    "normalize_meeting_date",
    "shared_selector",
    "today_meeting_date",
]
