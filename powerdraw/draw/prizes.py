"""Pool-percentage prize computation."""

from __future__ import annotations

from dataclasses import dataclass

# Share of the pool paid to each winning ticket, divisions 1-5.
DIVISION_PERCENTAGES: tuple[int, ...] = (70, 10, 5, 3, 2)


def percentage_of(amount: int, percentage: int) -> int:
    """Return ``amount * percentage / 100`` truncated toward zero."""

    return amount * percentage // 100


@dataclass(frozen=True)
class PoolSplit:
    """Amounts derived from the pool balance read at draw time.

    Attributes
    ----------
    pool_balance : int
        Pool balance before any payout.
    prize : int
        First-division prize, 70% of the pool.
    management_fee : int
        Amount paid to the operator after the carve-out below.
    next_pool_prize : int
        Amount reserved for the next round. Non-zero only when the
        first-division prize and the management fee use up the whole pool.
    division_prizes : tuple[int, ...]
        Amount paid to every winning ticket, per division.
    """

    pool_balance: int
    prize: int
    management_fee: int
    next_pool_prize: int
    division_prizes: tuple[int, ...]

    def prize_for(self, division: int) -> int:
        if not 1 <= division <= len(self.division_prizes):
            raise ValueError(f"Unknown prize division {division}")
        return self.division_prizes[division - 1]


def compute_pool_split(
    pool_balance: int,
    management_fee_percentage: int,
    next_pool_prize_percentage: int,
) -> PoolSplit:
    """Split ``pool_balance`` into division prizes, fee and next-pool reserve.

    Parameters
    ----------
    pool_balance : int
        Token balance of the pool account before the draw pays anything.
    management_fee_percentage : int
        Operator fee as a percentage of the pool.
    next_pool_prize_percentage : int
        Share of the fee held back for the next round when
        ``pool_balance - prize - management_fee == 0``.

    Returns
    -------
    PoolSplit
        The computed amounts. Division prizes are per winning ticket and are
        not divided among several winners of the same division.
    """

    if pool_balance < 0:
        raise ValueError("pool_balance must be non-negative")

    prize = percentage_of(pool_balance, DIVISION_PERCENTAGES[0])
    management_fee = percentage_of(pool_balance, management_fee_percentage)
    division_prizes = (prize,) + tuple(
        percentage_of(pool_balance, pct) for pct in DIVISION_PERCENTAGES[1:]
    )

    next_pool_prize = 0
    if pool_balance - prize - management_fee == 0:
        next_pool_prize = percentage_of(management_fee, next_pool_prize_percentage)
        management_fee -= next_pool_prize

    return PoolSplit(
        pool_balance=pool_balance,
        prize=prize,
        management_fee=management_fee,
        next_pool_prize=next_pool_prize,
        division_prizes=division_prizes,
    )


__all__ = ["DIVISION_PERCENTAGES", "PoolSplit", "compute_pool_split", "percentage_of"]
