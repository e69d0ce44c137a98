"""Draw settlement subsystem."""

from .engine import DrawEngine, DrawSettlement, WinnerPayout
from .matching import (
    DIVISION_TABLE,
    NO_DIVISION,
    DivisionRule,
    TicketMatch,
    classify_division,
    count_matches,
    match_ticket,
)
from .prizes import DIVISION_PERCENTAGES, PoolSplit, compute_pool_split
from .winning_numbers import normalize_winning_numbers

__all__ = [
    "DIVISION_PERCENTAGES",
    "DIVISION_TABLE",
    "NO_DIVISION",
    "DivisionRule",
    "DrawEngine",
    "DrawSettlement",
    "PoolSplit",
    "TicketMatch",
    "WinnerPayout",
    "classify_division",
    "compute_pool_split",
    "count_matches",
    "match_ticket",
    "normalize_winning_numbers",
]
