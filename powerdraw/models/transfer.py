from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from .id_type import AMOUNT_TYPE


class LedgerTransfer(Base):
    """Ledger call confirmed by the token ledger on behalf of the core.

    Rows are written in the same transaction as the operation that issued
    the call, so a rolled back operation leaves no audit row behind.
    """

    __tablename__ = "ledger_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    sender: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    round_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lottery_rounds.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("kind IN ('debit','payout','fee')", name="kind_enum"),
        Index("ix_ledger_transfers_round", "round_id"),
        Index("ix_ledger_transfers_kind", "kind"),
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerTransfer(id={self.id}, kind='{self.kind}', sender='{self.sender}', "
            f"recipient='{self.recipient}', amount={self.amount})>"
        )
