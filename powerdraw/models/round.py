"""Versioned lottery round records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import AMOUNT_TYPE

if TYPE_CHECKING:
    from .participant import RoundContribution, Ticket
    from .winner import WinnerRecord


class LotteryRound(Base):
    """One accumulation period between two consecutive draws.

    Tickets and contributions are tagged with the round they belong to, so
    resetting the round state at the end of a draw only needs to settle the
    open round and open the next one.
    """

    __tablename__ = "lottery_rounds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Round number, starting at 1."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    """``"open"`` while accepting tickets, ``"settled"`` once drawn."""

    seed_amount: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Share of the previous draw's management fee reserved for this round."""

    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    winning_numbers: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    winning_powerball: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pool_balance: Mapped[Optional[int]] = mapped_column(AMOUNT_TYPE, nullable=True)
    """Pool balance read at draw time, the base of every prize computation."""

    management_fee: Mapped[Optional[int]] = mapped_column(AMOUNT_TYPE, nullable=True)
    next_pool_prize: Mapped[Optional[int]] = mapped_column(AMOUNT_TYPE, nullable=True)
    winning_counts: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """Winning ticket count per division (divisions 1-5)."""

    division_prizes: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """Amount paid to each winning ticket per division (divisions 1-5)."""

    settled_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    settled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="round", order_by="Ticket.id"
    )
    contributions: Mapped[list["RoundContribution"]] = relationship(
        back_populates="round"
    )
    winners: Mapped[list["WinnerRecord"]] = relationship(
        back_populates="round", order_by="WinnerRecord.id"
    )

    __table_args__ = (
        CheckConstraint("status IN ('open','settled')", name="status_enum"),
        Index("ix_lottery_rounds_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<LotteryRound(id={self.id}, status='{self.status}', "
            f"pool_balance={self.pool_balance}, seed_amount={self.seed_amount})>"
        )

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @classmethod
    def get_open(cls, session: Session) -> Optional["LotteryRound"]:
        """Return the round currently accepting tickets, if any."""

        return session.scalar(
            select(cls).where(cls.status == "open").order_by(cls.id.desc())
        )

    @classmethod
    def current(cls, session: Session) -> "LotteryRound":
        """Return the open round, opening the first one on demand."""

        round_ = cls.get_open(session)
        if round_ is None:
            round_ = cls(status="open", seed_amount=0)
            session.add(round_)
            session.flush()
        return round_

    def settle(
        self,
        *,
        winning_numbers: Sequence[int],
        winning_powerball: int,
        pool_balance: int,
        management_fee: int,
        next_pool_prize: int,
        winning_counts: Sequence[int],
        division_prizes: Sequence[int],
        settled_by: str,
        settled_at: Optional[datetime] = None,
    ) -> None:
        """Store the draw snapshot and close the round."""

        if not self.is_open:
            raise ValueError(f"Round {self.id} is already settled")
        self.winning_numbers = list(winning_numbers)
        self.winning_powerball = winning_powerball
        self.pool_balance = pool_balance
        self.management_fee = management_fee
        self.next_pool_prize = next_pool_prize
        self.winning_counts = list(winning_counts)
        self.division_prizes = list(division_prizes)
        self.settled_by = settled_by
        self.settled_at = settled_at or datetime.now(timezone.utc)
        self.status = "settled"
