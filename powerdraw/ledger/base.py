"""Value-transfer interface consumed by the settlement core."""

from __future__ import annotations

from abc import ABC, abstractmethod


class TokenLedger(ABC):
    """Fungible-token ledger acting on behalf of the lottery pool account.

    Implementations report a rejected transfer by returning ``False`` and may
    raise on transport errors; the core treats both as a failed transfer.
    """

    account: str

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Return the token balance held by ``account``."""

    @abstractmethod
    def transfer(self, to: str, amount: int) -> bool:
        """Move ``amount`` from :attr:`account` to ``to``."""

    @abstractmethod
    def transfer_from(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to`` using an allowance granted
        to :attr:`account`."""


__all__ = ["TokenLedger"]
