from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Tuple

from .base import TokenLedger

logger = logging.getLogger(__name__)


class InMemoryLedger(TokenLedger):
    """Dict-backed ledger with ERC-20 style allowances.

    Every call either applies fully or leaves the balances untouched.
    """

    def __init__(self, account: str = "pool") -> None:
        self.account = account
        self._balances: Dict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)

    def mint(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._balances[account] += amount

    def approve(self, owner: str, amount: int, spender: str | None = None) -> None:
        """Allow ``spender`` (the pool account by default) to pull from ``owner``."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        self._allowances[(owner, spender or self.account)] = amount

    def allowance(self, owner: str, spender: str | None = None) -> int:
        return self._allowances[(owner, spender or self.account)]

    def balance_of(self, account: str) -> int:
        return self._balances[account]

    def _move(self, sender: str, to: str, amount: int) -> bool:
        if amount < 0 or self._balances[sender] < amount:
            logger.debug(
                "Rejected transfer of %d from %s to %s", amount, sender, to
            )
            return False
        self._balances[sender] -= amount
        self._balances[to] += amount
        return True

    def transfer(self, to: str, amount: int) -> bool:
        return self._move(self.account, to, amount)

    def transfer_from(self, sender: str, to: str, amount: int) -> bool:
        key = (sender, self.account)
        if self._allowances[key] < amount:
            logger.debug("Allowance of %s is below %d", sender, amount)
            return False
        if not self._move(sender, to, amount):
            return False
        self._allowances[key] -= amount
        return True
