"""Random selection of winners and prizes."""

from __future__ import annotations

import functools
import math
import random
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .errors import NoAvailablePrizesError, NoEligibleMembersError

if TYPE_CHECKING:
    from ..models import Prize


def effective_weight(value: Optional[float]) -> float:
    """Return the weight used for selection: ``max(value, 0)``.

    Missing and non-finite weights count as zero.
    """

    if value is None:
        return 0.0
    weight = float(value)
    if not math.isfinite(weight) or weight < 0.0:
        return 0.0
    return weight


class WeightedSelector:
    """Side-effect free selection of an attendee and a prize.

    Parameters
    ----------
    rng : Optional[random.Random], default: None
        Random source. Tests inject a seeded or mocked generator; production
        uses a fresh :class:`random.Random`. Fairness matters here, secrecy
        does not, so a CSPRNG is not required.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def select_attendee(self, eligible: Iterable[int]) -> int:
        """Pick one attendee id uniformly at random.

        Candidates are sorted first so a seeded generator always yields the
        same pick for the same set.

        Raises
        ------
        NoEligibleMembersError
            If ``eligible`` is empty.
        """

        candidates = sorted(set(eligible))
        if not candidates:
            raise NoEligibleMembersError("no eligible attendee to select from")
        return self._rng.choice(candidates)

    def select_prize(self, prizes: Sequence["Prize"]) -> "Prize":
        """Pick one in-stock prize with probability proportional to its weight.

        Parameters
        ----------
        prizes : Sequence[Prize]
            Candidate prizes. Entries with ``remaining_quantity <= 0`` are
            ignored.

        Returns
        -------
        Prize
            The selected prize.

        Notes
        -----
        Candidates are visited in ascending ``id`` order. A value ``r`` is drawn
        uniformly from ``[0, total_weight)`` and each candidate's weight is
        subtracted in turn; the first candidate that brings ``r`` to ``<= 0`` is
        selected. Zero-weight candidates are skipped so they can never win while
        another prize has a positive weight. When every weight is zero (or
        negative, or unset) all in-stock prizes get weight ``1``.

        Raises
        ------
        NoAvailablePrizesError
            If no candidate has stock left.
        """

        in_stock = sorted(
            (prize for prize in prizes if prize.remaining_quantity > 0),
            key=lambda prize: prize.id,
        )
        if not in_stock:
            raise NoAvailablePrizesError("no prize with remaining stock")

        weights = [effective_weight(prize.weight) for prize in in_stock]
        total_weight = sum(weights)
        if total_weight <= 0.0:
            weights = [1.0] * len(in_stock)
            total_weight = float(len(in_stock))

        # Zero-weight candidates are left out; a positive total keeps at least one.
        weighted = [
            (prize, weight) for prize, weight in zip(in_stock, weights) if weight > 0.0
        ]
        remainder = self._rng.random() * total_weight
        for prize, weight in weighted:
            remainder -= weight
            if remainder <= 0.0:
                return prize
        # Rounding can leave a tiny positive remainder; it belongs to the last
        # positively weighted candidate.
        return weighted[-1][0]


@functools.lru_cache(maxsize=None)
def shared_selector(seed: Optional[int] = None) -> WeightedSelector:
    """Return the process-wide selector for ``seed``.

    Coordinators built per request share this selector, so a configured seed
    makes the sequence of draws reproducible instead of replaying the first
    draw on every request.
    """

    return WeightedSelector(random.Random(seed))


__all__ = ["WeightedSelector", "effective_weight", "shared_selector"]
