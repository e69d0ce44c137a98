"""Exception hierarchy raised by the lottery settlement core."""

from __future__ import annotations

from typing import Optional, Sequence


class LotteryError(Exception):
    """Base class for every failure surfaced by :mod:`powerdraw`."""


class InvalidPackage(LotteryError, ValueError):
    """Package id is unknown, inactive, or sells zero combinations."""


class NotFound(LotteryError, LookupError):
    """Catalog entry does not exist or was deactivated."""


class CombinationMismatch(LotteryError, ValueError):
    """Submitted tickets do not line up with the package or ticket shape."""


class InsufficientBalance(LotteryError):
    """Caller's token balance does not cover the package price."""


class RateLimited(LotteryError):
    """Caller participated too recently."""

    def __init__(self, message: str, *, retry_at: Optional[int] = None) -> None:
        super().__init__(message)
        self.retry_at = retry_at


class TransferFailed(LotteryError):
    """The token ledger rejected (or failed to process) a transfer.

    Attributes
    ----------
    completed_transfers : tuple[tuple[str, int], ...]
        ``(recipient, amount)`` pairs that the ledger had already confirmed
        within the same operation before the failing call. The database side
        is rolled back, these are not, so they are kept for reconciliation.
    """

    def __init__(
        self,
        message: str,
        *,
        completed_transfers: Sequence[tuple[str, int]] = (),
    ) -> None:
        super().__init__(message)
        self.completed_transfers = tuple(completed_transfers)


class Unauthorized(LotteryError, PermissionError):
    """Caller is not allowed to run a privileged operation."""


class OutOfRange(LotteryError, IndexError):
    """Index-based query beyond the stored collection."""


class InvalidWinningNumbers(LotteryError, ValueError):
    """Winning numbers do not have the expected shape."""


class ReentrantCall(LotteryError, RuntimeError):
    """A guarded operation was invoked while it is already running."""


__all__ = [
    "LotteryError",
    "InvalidPackage",
    "NotFound",
    "CombinationMismatch",
    "InsufficientBalance",
    "RateLimited",
    "TransferFailed",
    "Unauthorized",
    "OutOfRange",
    "InvalidWinningNumbers",
    "ReentrantCall",
]
