"""Ticket matching and prize division classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

NO_DIVISION = 0
DIVISION_COUNT = 5


@dataclass(frozen=True)
class DivisionRule:
    """One row of the division table.

    Attributes
    ----------
    division : int
        Prize tier awarded when the rule matches (1 is the highest).
    match_count : int
        Number of main numbers the ticket must share with the draw.
    powerball_match : bool
        Whether the ticket's powerball must equal the winning powerball.
    """

    division: int
    match_count: int
    powerball_match: bool

    def applies(self, match_count: int, powerball_match: bool) -> bool:
        return (
            self.match_count == match_count
            and self.powerball_match == powerball_match
        )


# Evaluated top to bottom, first match wins.
DIVISION_TABLE: tuple[DivisionRule, ...] = (
    DivisionRule(division=1, match_count=5, powerball_match=True),
    DivisionRule(division=2, match_count=5, powerball_match=False),
    DivisionRule(division=3, match_count=4, powerball_match=True),
    DivisionRule(division=4, match_count=4, powerball_match=False),
    DivisionRule(division=5, match_count=3, powerball_match=True),
)


@dataclass(frozen=True)
class TicketMatch:
    """Outcome of comparing one ticket with the winning numbers."""

    match_count: int
    powerball_match: bool
    division: int

    @property
    def is_winner(self) -> bool:
        return self.division != NO_DIVISION


def count_matches(ticket_numbers: Iterable[int], winning_numbers: Iterable[int]) -> int:
    """Return how many distinct values the two selections share.

    Order is irrelevant and a value repeated on either side is counted once.
    """

    return len(set(ticket_numbers) & set(winning_numbers))


def classify_division(
    match_count: int,
    powerball_match: bool,
    table: Optional[Sequence[DivisionRule]] = None,
) -> int:
    """Return the prize division for a match, ``0`` when nothing is won."""

    for rule in table or DIVISION_TABLE:
        if rule.applies(match_count, powerball_match):
            return rule.division
    return NO_DIVISION


def match_ticket(
    ticket_numbers: Sequence[int],
    ticket_powerball: int,
    winning_numbers: Sequence[int],
    winning_powerball: int,
) -> TicketMatch:
    match_count = count_matches(ticket_numbers, winning_numbers)
    powerball_match = ticket_powerball == winning_powerball
    return TicketMatch(
        match_count=match_count,
        powerball_match=powerball_match,
        division=classify_division(match_count, powerball_match),
    )


__all__ = [
    "DIVISION_COUNT",
    "DIVISION_TABLE",
    "DivisionRule",
    "NO_DIVISION",
    "TicketMatch",
    "classify_division",
    "count_matches",
    "match_ticket",
]
