"""Checked ledger calls that record an audit row and raise on rejection."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..errors import LotteryError, TransferFailed
from ..models.transfer import LedgerTransfer
from .base import TokenLedger

logger = logging.getLogger(__name__)


def _fail(
    message: str,
    completed: Optional[List[Tuple[str, int]]],
) -> TransferFailed:
    done = list(completed or [])
    if done:
        # These already left the pool and are not undone by the rollback.
        logger.error(
            "%s after %d confirmed transfer(s): %s", message, len(done), done
        )
    else:
        logger.warning("%s", message)
    return TransferFailed(message, completed_transfers=done)


def checked_transfer(
    session: Session,
    ledger: TokenLedger,
    *,
    kind: str,
    to: str,
    amount: int,
    round_id: Optional[int] = None,
    completed: Optional[List[Tuple[str, int]]] = None,
) -> LedgerTransfer:
    """Pay ``amount`` from the pool account to ``to``.

    Parameters
    ----------
    session : Session
        Session receiving the :class:`LedgerTransfer` audit row.
    ledger : TokenLedger
        Ledger acting on behalf of the pool account.
    kind : str
        ``"payout"`` or ``"fee"``.
    to : str
        Recipient address.
    amount : int
        Amount in token units.
    round_id : Optional[int], default: None
        Round the transfer belongs to.
    completed : Optional[list[tuple[str, int]]], default: None
        Running list of transfers confirmed so far by the enclosing
        operation. The confirmed transfer is appended to it, and it is
        attached to the raised error when this call fails.

    Raises
    ------
    TransferFailed
        If the ledger rejects the transfer or raises while processing it.
    """

    try:
        ok = ledger.transfer(to, amount)
    except LotteryError:
        raise
    except Exception as exc:
        raise _fail(f"Ledger error while paying {amount} to {to}: {exc}", completed) from exc
    if not ok:
        raise _fail(f"Ledger rejected paying {amount} to {to}", completed)

    if completed is not None:
        completed.append((to, amount))
    record = LedgerTransfer(
        kind=kind,
        sender=ledger.account,
        recipient=to,
        amount=amount,
        round_id=round_id,
    )
    session.add(record)
    return record


def checked_transfer_from(
    session: Session,
    ledger: TokenLedger,
    *,
    sender: str,
    to: str,
    amount: int,
    round_id: Optional[int] = None,
) -> LedgerTransfer:
    """Debit ``amount`` from ``sender`` into ``to`` using the pool's allowance.

    Raises
    ------
    TransferFailed
        If the ledger rejects the debit or raises while processing it.
    """

    try:
        ok = ledger.transfer_from(sender, to, amount)
    except LotteryError:
        raise
    except Exception as exc:
        raise _fail(f"Ledger error while debiting {amount} from {sender}: {exc}", None) from exc
    if not ok:
        raise _fail(f"Ledger rejected debiting {amount} from {sender}", None)

    record = LedgerTransfer(
        kind="debit",
        sender=sender,
        recipient=to,
        amount=amount,
        round_id=round_id,
    )
    session.add(record)
    return record


__all__ = ["checked_transfer", "checked_transfer_from"]
