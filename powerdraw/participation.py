"""Ticket purchases, rate limiting and per-round accounting."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .config import LotterySettings
from .errors import (
    CombinationMismatch,
    InsufficientBalance,
    InvalidPackage,
    OutOfRange,
    RateLimited,
)
from .ledger.base import TokenLedger
from .ledger.calls import checked_transfer_from
from .models import LotteryRound, Package, Participant, RoundContribution, Ticket
from .models.participant import MAIN_NUMBER_COUNT

logger = logging.getLogger(__name__)


def _purchasable_package(session: Session, package_id: int) -> Package:
    package = Package.get_active(session, package_id)
    if package is None or package.combinations <= 0:
        raise InvalidPackage(f"Package {package_id} cannot be purchased")
    return package


def _normalize_tickets(
    main_numbers_list: Sequence[Sequence[int]],
    powerball_numbers: Sequence[int],
) -> list[tuple[list[int], int]]:
    tickets: list[tuple[list[int], int]] = []
    for position, (numbers, powerball) in enumerate(
        zip(main_numbers_list, powerball_numbers)
    ):
        main_numbers = [int(n) for n in numbers]
        if len(main_numbers) != MAIN_NUMBER_COUNT:
            raise CombinationMismatch(
                f"Ticket {position} has {len(main_numbers)} main numbers, "
                f"expected {MAIN_NUMBER_COUNT}"
            )
        tickets.append((main_numbers, int(powerball)))
    return tickets


def participate(
    session: Session,
    ledger: TokenLedger,
    settings: LotterySettings,
    caller: str,
    package_id: int,
    main_numbers_list: Sequence[Sequence[int]],
    powerball_numbers: Sequence[int],
    *,
    now: int,
) -> list[Ticket]:
    """Buy ``package_id`` for ``caller`` and record one ticket per combination.

    Preconditions are checked in this order and the first failure is raised:

    1. The package is active and sells at least one combination.
    2. ``len(main_numbers_list)`` equals the package's combinations.
    3. ``main_numbers_list`` and ``powerball_numbers`` have the same length.
    4. ``caller`` holds at least the package price on the ledger.
    5. ``now`` is not earlier than the caller's last participation plus
       ``settings.min_time_between_participation``.
    6. Every ticket has exactly five main numbers.

    Nothing is written before all of them hold. The price is then pulled
    from ``caller`` into the pool account once, whatever the number of
    tickets.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. Callers are expected to run this inside a
        transaction so a failure leaves no partial state.
    ledger : TokenLedger
        Ledger acting on behalf of the pool account.
    settings : LotterySettings
        Lottery parameters (pool account, rate limit).
    caller : str
        Ledger address of the buyer.
    package_id : int
        Package to buy.
    main_numbers_list : Sequence[Sequence[int]]
        Main numbers, one sequence of five per ticket.
    powerball_numbers : Sequence[int]
        Powerball per ticket, aligned with ``main_numbers_list``.
    now : int
        Current time in epoch seconds.

    Returns
    -------
    list[Ticket]
        Newly stored tickets in submission order.

    Raises
    ------
    InvalidPackage, CombinationMismatch, InsufficientBalance, RateLimited
        When a precondition does not hold.
    TransferFailed
        If the ledger rejects the debit.
    """

    package = _purchasable_package(session, package_id)
    if len(main_numbers_list) != package.combinations:
        raise CombinationMismatch(
            f"Package {package_id} sells {package.combinations} combination(s), "
            f"got {len(main_numbers_list)}"
        )
    if len(main_numbers_list) != len(powerball_numbers):
        raise CombinationMismatch(
            f"Got {len(main_numbers_list)} main number set(s) but "
            f"{len(powerball_numbers)} powerball number(s)"
        )

    balance = ledger.balance_of(caller)
    if balance < package.price:
        raise InsufficientBalance(
            f"{caller} holds {balance}, package {package_id} costs {package.price}"
        )

    participant = Participant.get_by_address(session, caller)
    if participant is not None and participant.last_participation is not None:
        retry_at = (
            participant.last_participation + settings.min_time_between_participation
        )
        if now < retry_at:
            raise RateLimited(
                f"{caller} must wait until {retry_at} before participating again",
                retry_at=retry_at,
            )

    normalized = _normalize_tickets(main_numbers_list, powerball_numbers)

    round_ = LotteryRound.current(session)
    checked_transfer_from(
        session,
        ledger,
        sender=caller,
        to=settings.pool_account,
        amount=package.price,
        round_id=round_.id,
    )

    if participant is None:
        participant = Participant.get_or_create(session, caller)
    RoundContribution.add(session, round_.id, participant.id, package.price)

    tickets = [
        Ticket(
            main_numbers=main_numbers,
            powerball=powerball,
            participant=participant,
            round=round_,
        )
        for main_numbers, powerball in normalized
    ]
    session.add_all(tickets)
    participant.last_participation = now
    session.flush()

    logger.info(
        "%s bought package %d in round %d (%d ticket(s), %d paid)",
        caller,
        package_id,
        round_.id,
        len(tickets),
        package.price,
    )
    return tickets


def get_participants(session: Session) -> list[Participant]:
    """Return participants with tickets in the open round."""

    round_ = LotteryRound.get_open(session)
    if round_ is None:
        return []
    return Participant.in_round(session, round_.id)


def get_participants_count(session: Session) -> int:
    round_ = LotteryRound.get_open(session)
    if round_ is None:
        return 0
    return Participant.count_in_round(session, round_.id)


def get_contribution(session: Session, address: str) -> int:
    """Return what ``address`` paid into the pool during the open round."""

    round_ = LotteryRound.get_open(session)
    participant = Participant.get_by_address(session, address)
    if round_ is None or participant is None:
        return 0
    return participant.contribution_in_round(session, round_.id)


def get_last_participation(session: Session, address: str) -> Optional[int]:
    participant = Participant.get_by_address(session, address)
    return participant.last_participation if participant is not None else None


def get_user_ticket_count(session: Session, address: str) -> int:
    participant = Participant.get_by_address(session, address)
    if participant is None:
        return 0
    return session.scalar(
        select(func.count(Ticket.id)).where(Ticket.participant_id == participant.id)
    ) or 0


def get_user_ticket(session: Session, address: str, index: int) -> Ticket:
    """Return the ``index``-th ticket ever bought by ``address`` (0-based).

    Tickets from settled rounds stay queryable here.

    Raises
    ------
    OutOfRange
        If ``address`` holds fewer than ``index + 1`` tickets.
    """

    participant = Participant.get_by_address(session, address)
    ticket = None
    if participant is not None and index >= 0:
        ticket = session.scalar(
            select(Ticket)
            .where(Ticket.participant_id == participant.id)
            .order_by(Ticket.id.asc())
            .offset(index)
            .limit(1)
        )
    if ticket is None:
        raise OutOfRange(f"{address} has no ticket at index {index}")
    return ticket


def get_user_tickets(
    session: Session, address: str, round_id: Optional[int] = None
) -> list[Ticket]:
    """Return the tickets of ``address`` in ``round_id`` (the open round by default)."""

    participant = Participant.get_by_address(session, address)
    if participant is None:
        return []
    if round_id is None:
        round_ = LotteryRound.get_open(session)
        if round_ is None:
            return []
        round_id = round_.id
    return participant.tickets_in_round(session, round_id)


__all__ = [
    "get_contribution",
    "get_last_participation",
    "get_participants",
    "get_participants_count",
    "get_user_ticket",
    "get_user_ticket_count",
    "get_user_tickets",
    "participate",
]
