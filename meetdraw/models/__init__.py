from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .member import Member  # noqa: F401
from .checkin import CHECKIN_STATUSES, Checkin  # noqa: F401
from .prize import Prize  # noqa: F401
from .winner import LotteryWinner  # noqa: F401

__all__ = [
    "Base",
    "Member",
    "CHECKIN_STATUSES",
    "Checkin",
    "Prize",
    "LotteryWinner",
]
