"""Runtime settings for the lottery, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class DrawSettings:
    """Tunables for :class:`~meetdraw.lottery.coordinator.DrawCoordinator`.

    Attributes
    ----------
    max_attempts : int
        Number of conditional decrement attempts per draw before giving up with
        :class:`~meetdraw.lottery.errors.NoAvailablePrizesError`.
    random_seed : Optional[int]
        Seed for the production random generator; ``None`` seeds from the OS.
        Meant for demos and rehearsals: one generator per seed is shared by
        the whole process, so a seeded run repeats the same sequence of draws
        after a restart.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    random_seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls) -> "DrawSettings":
        """Build settings from ``DRAW_MAX_ATTEMPTS`` and ``DRAW_RANDOM_SEED``."""

        load_dotenv()
        raw_attempts = os.getenv("DRAW_MAX_ATTEMPTS")
        raw_seed = os.getenv("DRAW_RANDOM_SEED")
        try:
            max_attempts = int(raw_attempts) if raw_attempts else DEFAULT_MAX_ATTEMPTS
            random_seed = int(raw_seed) if raw_seed else None
        except ValueError as exc:
            raise ValueError(
                "DRAW_MAX_ATTEMPTS and DRAW_RANDOM_SEED must be integers"
            ) from exc
        return cls(max_attempts=max_attempts, random_seed=random_seed)


__all__ = ["DEFAULT_MAX_ATTEMPTS", "DrawSettings"]
