"""Validation of operator-supplied winning numbers."""

from __future__ import annotations

from typing import Sequence

from ..errors import InvalidWinningNumbers
from ..models.participant import MAIN_NUMBER_COUNT


def normalize_winning_numbers(main_numbers: Sequence[int]) -> tuple[int, ...]:
    """Return the winning main numbers as a tuple of ints.

    Parameters
    ----------
    main_numbers : Sequence[int]
        Winning main numbers in draw order.

    Raises
    ------
    InvalidWinningNumbers
        If ``main_numbers`` is missing or does not hold exactly five values.
    """

    if main_numbers is None:
        raise InvalidWinningNumbers("winning numbers must not be None")
    numbers = tuple(int(n) for n in main_numbers)
    if len(numbers) != MAIN_NUMBER_COUNT:
        raise InvalidWinningNumbers(
            f"expected {MAIN_NUMBER_COUNT} winning numbers, got {len(numbers)}"
        )
    return numbers


__all__ = ["normalize_winning_numbers"]
