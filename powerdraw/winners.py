"""Append-only ledger of past winners."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import OutOfRange
from .models import WinnerRecord


def record_winner(
    session: Session,
    address: str,
    matching_numbers: Sequence[int],
    *,
    division: int,
    prize: int,
    round_id: Optional[int] = None,
    ticket_id: Optional[int] = None,
) -> WinnerRecord:
    """Append a :class:`WinnerRecord` for ``address``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    address : str
        Ledger address that won.
    matching_numbers : Sequence[int]
        Main numbers of the winning ticket.
    division : int
        Division the ticket was classified into.
    prize : int
        Amount paid for the ticket.
    round_id : Optional[int], default: None
        Round in which the ticket was drawn.
    ticket_id : Optional[int], default: None
        Winning ticket.

    Returns
    -------
    WinnerRecord
        The flushed record.
    """

    record = WinnerRecord(
        winner_address=address,
        matching_numbers=list(matching_numbers),
        division=division,
        prize=prize,
        round_id=round_id,
        ticket_id=ticket_id,
    )
    session.add(record)
    session.flush()
    return record


def get_past_winner(session: Session, index: int) -> WinnerRecord:
    """Return the ``index``-th winner ever recorded (0-based).

    Raises
    ------
    OutOfRange
        If ``index`` is negative or not below :func:`get_past_winners_count`.
    """

    record = WinnerRecord.nth(session, index)
    if record is None:
        raise OutOfRange(
            f"winner index {index} out of range ({WinnerRecord.count(session)} recorded)"
        )
    return record


def get_past_winners_count(session: Session) -> int:
    return WinnerRecord.count(session)


def get_winners_for_round(session: Session, round_id: int) -> list[WinnerRecord]:
    stmt = (
        select(WinnerRecord)
        .where(WinnerRecord.round_id == round_id)
        .order_by(WinnerRecord.id.asc())
    )
    return list(session.scalars(stmt).all())


__all__ = [
    "get_past_winner",
    "get_past_winners_count",
    "get_winners_for_round",
    "record_winner",
]
