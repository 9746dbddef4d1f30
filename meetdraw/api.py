"""JSON request handlers for the lottery endpoints.

Handlers are framework agnostic: they take the decoded JSON payload and return
``(status_code, body)`` so any web layer can mount them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .lottery import (
    AuthorizationError,
    ConfigurationError,
    DrawCoordinator,
    LotteryError,
    NoAvailablePrizesError,
    NoEligibleMembersError,
    PartialFailureError,
    PersistenceError,
    ValidationError,
    today_meeting_date,
)
from .workflows import list_winners

logger = logging.getLogger(__name__)

CredentialVerifier = Callable[[Optional[str]], bool]
"""Callable deciding whether the supplied admin credential may run draws."""

STATUS_BY_ERROR: dict[type[LotteryError], int] = {
    ValidationError: 400,
    NoEligibleMembersError: 400,
    NoAvailablePrizesError: 400,
    AuthorizationError: 401,
    PartialFailureError: 409,
    PersistenceError: 500,
    ConfigurationError: 500,
}


def error_response(exc: LotteryError) -> tuple[int, dict[str, Any]]:
    """Map a lottery error to its status code and ``{"error": ...}`` body."""

    status = 500
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            status = code
            break
    body: dict[str, Any] = {"success": False, "error": str(exc), "kind": exc.kind}
    if isinstance(exc, PartialFailureError):
        body["details"] = {
            "meeting_date": exc.meeting_date,
            "attendee_id": exc.attendee_id,
            "prize_id": exc.prize_id,
        }
    return status, body


def handle_draw_request(
    session_factory: sessionmaker,
    payload: Optional[Mapping[str, Any]],
    *,
    credential: Optional[str] = None,
    verify_credentials: Optional[CredentialVerifier] = None,
    coordinator: Optional[DrawCoordinator] = None,
) -> tuple[int, dict[str, Any]]:
    """Handle ``POST /lottery/draw`` with body ``{"date": "YYYY-MM-DD"}``.

    A missing ``date`` means today (UTC). When ``verify_credentials`` is given
    it is called with ``credential`` before anything is read.
    """

    try:
        if verify_credentials is not None and not verify_credentials(credential):
            raise AuthorizationError("admin credential rejected")
        if payload is not None and not isinstance(payload, Mapping):
            raise ValidationError("request body must be a JSON object")
        meeting_date = (payload or {}).get("date") or today_meeting_date()
        coordinator = coordinator or DrawCoordinator(session_factory)
        outcome = coordinator.draw(meeting_date)
    except LotteryError as exc:
        status, body = error_response(exc)
        if status >= 500 or isinstance(exc, PartialFailureError):
            logger.error("Draw request failed (%s): %s", exc.kind, exc)
        return status, body
    return 200, outcome.to_json()


def handle_winners_request(
    session_factory: sessionmaker,
    meeting_date: Optional[str] = None,
) -> tuple[int, dict[str, Any]]:
    """Handle ``GET /lottery/winners?date=YYYY-MM-DD``."""

    try:
        with session_factory() as session:
            winners = list_winners(session, meeting_date or today_meeting_date())
    except LotteryError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        logger.error("Failed to fetch lottery winners: %s", exc)
        return error_response(PersistenceError("failed to fetch lottery winners"))
    return 200, {"winners": winners}


__all__ = [
    "CredentialVerifier",
    "STATUS_BY_ERROR",
    "error_response",
    "handle_draw_request",
    "handle_winners_request",
]
