"""Append-only history of winning tickets."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE

if TYPE_CHECKING:
    from .participant import Ticket
    from .round import LotteryRound


class WinnerRecord(Base):
    """A winning ticket paid out during a draw. Never updated or removed."""

    __tablename__ = "winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate key; ordering by it gives the append order."""

    winner_address: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    """Ledger address that received the prize."""

    matching_numbers: Mapped[list] = mapped_column(JSON, nullable=False)
    """Main numbers of the winning ticket, as submitted."""

    division: Mapped[int] = mapped_column(Integer, nullable=False)
    prize: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)

    round_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lottery_rounds.id", ondelete="SET NULL"), nullable=True
    )
    ticket_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tickets.id", ondelete="SET NULL"), nullable=True
    )
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    round: Mapped[Optional["LotteryRound"]] = relationship(back_populates="winners")
    ticket: Mapped[Optional["Ticket"]] = relationship()

    __table_args__ = (Index("ix_winners_round_division", "round_id", "division"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<WinnerRecord(id={self.id}, winner_address='{self.winner_address}', "
            f"division={self.division}, prize={self.prize}, round_id={self.round_id})>"
        )

    @classmethod
    def count(cls, session: Session) -> int:
        return session.scalar(select(func.count(cls.id))) or 0

    @classmethod
    def nth(cls, session: Session, index: int) -> Optional["WinnerRecord"]:
        """Return the ``index``-th record in append order, or ``None``."""

        if index < 0:
            return None
        return session.scalar(
            select(cls).order_by(cls.id.asc()).offset(index).limit(1)
        )
