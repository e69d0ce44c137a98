from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_POOL_ACCOUNT = "pool"
DEFAULT_MANAGEMENT_FEE_PERCENTAGE = 10
DEFAULT_NEXT_POOL_PRIZE_PERCENTAGE = 50
DEFAULT_MIN_TIME_BETWEEN_PARTICIPATION = 60


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable '{name}' must be an integer") from exc


@dataclass(frozen=True)
class LotterySettings:
    """Tunable parameters of a lottery instance.

    Attributes
    ----------
    pool_account : str
        Ledger account holding the prize pool. Ticket purchases are debited
        into it and every payout is credited from it.
    management_fee_percentage : int
        Share of the pool balance paid to the operator on each draw.
    next_pool_prize_percentage : int
        Share of the management fee reserved for the next round when the
        first-division prize and the fee exhaust the pool exactly.
    min_time_between_participation : int
        Seconds an address has to wait between two participations.
    """

    pool_account: str = DEFAULT_POOL_ACCOUNT
    management_fee_percentage: int = DEFAULT_MANAGEMENT_FEE_PERCENTAGE
    next_pool_prize_percentage: int = DEFAULT_NEXT_POOL_PRIZE_PERCENTAGE
    min_time_between_participation: int = DEFAULT_MIN_TIME_BETWEEN_PARTICIPATION

    def __post_init__(self) -> None:
        if not self.pool_account:
            raise ValueError("pool_account must not be empty")
        for name in ("management_fee_percentage", "next_pool_prize_percentage"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100")
        if self.min_time_between_participation < 0:
            raise ValueError("min_time_between_participation must be non-negative")

    @staticmethod
    def from_env(pool_account_override: Optional[str] = None) -> "LotterySettings":
        load_dotenv()

        pool_account = (
            pool_account_override
            or os.getenv("POWERDRAW_POOL_ACCOUNT", "").strip()
            or DEFAULT_POOL_ACCOUNT
        )
        return LotterySettings(
            pool_account=pool_account,
            management_fee_percentage=_int_from_env(
                "POWERDRAW_MANAGEMENT_FEE_PERCENTAGE",
                DEFAULT_MANAGEMENT_FEE_PERCENTAGE,
            ),
            next_pool_prize_percentage=_int_from_env(
                "POWERDRAW_NEXT_POOL_PRIZE_PERCENTAGE",
                DEFAULT_NEXT_POOL_PRIZE_PERCENTAGE,
            ),
            min_time_between_participation=_int_from_env(
                "POWERDRAW_MIN_TIME_BETWEEN_PARTICIPATION",
                DEFAULT_MIN_TIME_BETWEEN_PARTICIPATION,
            ),
        )
