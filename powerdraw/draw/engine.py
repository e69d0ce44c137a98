"""Draw settlement: match, classify, pay and reset the round."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ..config import LotterySettings
from ..ledger.base import TokenLedger
from ..ledger.calls import checked_transfer
from ..models import LotteryRound, Participant
from ..winners import record_winner
from .matching import DIVISION_COUNT, match_ticket
from .prizes import PoolSplit, compute_pool_split
from .winning_numbers import normalize_winning_numbers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WinnerPayout:
    """A winning ticket and what it was paid."""

    address: str
    ticket_id: int
    division: int
    prize: int
    matching_numbers: tuple[int, ...]


@dataclass
class DrawSettlement:
    """Value object describing a completed draw.

    Attributes
    ----------
    round_id : int
        Round that was settled.
    next_round_id : int
        Round opened by the settlement.
    winning_numbers : tuple[int, ...]
        Winning main numbers.
    winning_powerball : int
        Winning powerball.
    split : PoolSplit
        Prize amounts computed from the pool balance read before paying.
    winning_counts : list[int]
        Number of winning tickets per division (divisions 1-5).
    payouts : list[WinnerPayout]
        Winning tickets in payout order.
    fee_recipient : str
        Operator that received the management fee.
    """

    round_id: int
    next_round_id: int
    winning_numbers: tuple[int, ...]
    winning_powerball: int
    split: PoolSplit
    winning_counts: list[int]
    payouts: list[WinnerPayout] = field(default_factory=list)
    fee_recipient: str = ""

    @property
    def division_prizes(self) -> tuple[int, ...]:
        return self.split.division_prizes

    @property
    def total_paid(self) -> int:
        """Prizes plus management fee sent out of the pool."""
        return sum(p.prize for p in self.payouts) + self.split.management_fee


class DrawEngine:
    """Engine that settles the open round against the winning numbers."""

    def __init__(
        self,
        session: Session,
        ledger: TokenLedger,
        settings: LotterySettings,
    ) -> None:
        """Create a draw engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for lookups and persistence. The
            caller owns the transaction and must roll it back when
            :meth:`settle` raises.
        ledger : TokenLedger
            Ledger acting on behalf of the pool account.
        settings : LotterySettings
            Fee percentages and the pool account.
        """

        self._session = session
        self._ledger = ledger
        self._settings = settings

    def settle(
        self,
        operator: str,
        main_numbers: Sequence[int],
        powerball_number: int,
        *,
        settled_at: Optional[datetime] = None,
    ) -> DrawSettlement:
        """Pay every winning ticket of the open round and start the next one.

        Parameters
        ----------
        operator : str
            Operator running the draw; receives the management fee.
        main_numbers : Sequence[int]
            The five winning main numbers.
        powerball_number : int
            Winning powerball.
        settled_at : Optional[datetime], default: None
            Settlement timestamp stored on the round. Defaults to now (UTC).

        Returns
        -------
        DrawSettlement
            Amounts, counts and payouts of the draw.

        Notes
        -----
        The draw proceeds as follows:

        1. Validate the winning numbers.
        2. Read the pool balance and derive the division prizes, the
           management fee and the next-pool reserve from it.
        3. Walk the participants of the open round (in order of their first
           ticket) and each of their tickets (in purchase order); every
           ticket that lands in a division is paid that division's full
           prize at once and appended to the winner ledger.
        4. Pay the management fee to ``operator``.
        5. Store the draw snapshot on the round, settle it, and open the
           next round with the next-pool reserve as its seed.

        Several tickets in one division each receive the full division
        prize, so a crowded division can ask for more than the pool holds.
        The ledger then rejects a payout and the whole draw fails.

        Raises
        ------
        InvalidWinningNumbers
            If ``main_numbers`` does not hold five values.
        TransferFailed
            If the ledger rejects a payout or the fee.
        """

        winning_numbers = normalize_winning_numbers(main_numbers)
        winning_powerball = int(powerball_number)

        round_ = LotteryRound.current(self._session)
        pool_balance = self._ledger.balance_of(self._settings.pool_account)
        split = compute_pool_split(
            pool_balance,
            self._settings.management_fee_percentage,
            self._settings.next_pool_prize_percentage,
        )

        winning_counts = [0] * DIVISION_COUNT
        payouts: list[WinnerPayout] = []
        completed: list[tuple[str, int]] = []

        for participant in Participant.in_round(self._session, round_.id):
            for ticket in participant.tickets_in_round(self._session, round_.id):
                match = match_ticket(
                    ticket.main_numbers,
                    ticket.powerball,
                    winning_numbers,
                    winning_powerball,
                )
                if not match.is_winner:
                    continue

                prize = split.prize_for(match.division)
                self._pay(
                    "payout", participant.address, prize, round_.id, completed
                )
                winning_counts[match.division - 1] += 1
                record_winner(
                    self._session,
                    participant.address,
                    ticket.main_numbers,
                    division=match.division,
                    prize=prize,
                    round_id=round_.id,
                    ticket_id=ticket.id,
                )
                payouts.append(
                    WinnerPayout(
                        address=participant.address,
                        ticket_id=ticket.id,
                        division=match.division,
                        prize=prize,
                        matching_numbers=tuple(ticket.main_numbers),
                    )
                )

        self._pay("fee", operator, split.management_fee, round_.id, completed)

        round_.settle(
            winning_numbers=winning_numbers,
            winning_powerball=winning_powerball,
            pool_balance=pool_balance,
            management_fee=split.management_fee,
            next_pool_prize=split.next_pool_prize,
            winning_counts=winning_counts,
            division_prizes=split.division_prizes,
            settled_by=operator,
            settled_at=settled_at or datetime.now(timezone.utc),
        )
        self._session.flush()

        # The reserve stays in the pool account; the next round only records it.
        next_round = LotteryRound(status="open", seed_amount=split.next_pool_prize)
        self._session.add(next_round)
        self._session.flush()

        logger.info(
            "draw settled: round=%d winning_counts=%s division_prizes=%s",
            round_.id,
            winning_counts,
            list(split.division_prizes),
            extra={
                "event": "draw_settled",
                "round_id": round_.id,
                "winning_counts": list(winning_counts),
                "division_prizes": list(split.division_prizes),
                "management_fee": split.management_fee,
                "next_pool_prize": split.next_pool_prize,
            },
        )

        return DrawSettlement(
            round_id=round_.id,
            next_round_id=next_round.id,
            winning_numbers=winning_numbers,
            winning_powerball=winning_powerball,
            split=split,
            winning_counts=winning_counts,
            payouts=payouts,
            fee_recipient=operator,
        )

    def _pay(
        self,
        kind: str,
        to: str,
        amount: int,
        round_id: int,
        completed: list[tuple[str, int]],
    ) -> None:
        if amount <= 0:
            return
        checked_transfer(
            self._session,
            self._ledger,
            kind=kind,
            to=to,
            amount=amount,
            round_id=round_id,
            completed=completed,
        )


__all__ = ["DrawEngine", "DrawSettlement", "WinnerPayout"]
