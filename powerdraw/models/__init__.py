from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .operator import Operator  # noqa: F401
from .package import Package  # noqa: F401
from .round import LotteryRound  # noqa: F401
from .participant import Participant, RoundContribution, Ticket  # noqa: F401
from .winner import WinnerRecord  # noqa: F401
from .transfer import LedgerTransfer  # noqa: F401

__all__ = [
    "Base",
    "Operator",
    "Package",
    "LotteryRound",
    "Participant",
    "RoundContribution",
    "Ticket",
    "WinnerRecord",
    "LedgerTransfer",
]
