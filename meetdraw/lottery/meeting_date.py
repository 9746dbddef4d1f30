"""Helpers for validating meeting dates supplied to the lottery."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional

from .errors import ValidationError

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_meeting_date() -> str:
    """Return today's date (UTC) in ``YYYY-MM-DD`` form."""
    return datetime.now(timezone.utc).date().isoformat()


def normalize_meeting_date(value: Optional[object]) -> str:
    """Validate a meeting date and return it in ``YYYY-MM-DD`` form.

    Parameters
    ----------
    value : Optional[object]
        Raw date supplied by the caller. :class:`datetime.date` instances are
        accepted as-is; strings are trimmed and must match ``YYYY-MM-DD`` and
        name a real calendar day.

    Raises
    ------
    ValidationError
        If the value is missing, not a string, or not a valid date.
    """

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        raise ValidationError("meeting date is required")
    if not isinstance(value, str):
        raise ValidationError("meeting date must be a YYYY-MM-DD string")
    text = value.strip()
    if not _DATE_PATTERN.match(text):
        raise ValidationError(f"invalid meeting date {value!r}; expected YYYY-MM-DD")
    try:
        datetime.strptime(text, "%Y-%m-%d")
    except ValueError as exc:
        raise ValidationError(f"invalid meeting date {value!r}: {exc}") from exc
    return text


__all__ = ["normalize_meeting_date", "today_meeting_date"]
