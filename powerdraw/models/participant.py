from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from ..errors import CombinationMismatch
from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE

if TYPE_CHECKING:
    from .round import LotteryRound

MAIN_NUMBER_COUNT = 5


class Participant(Base):
    """A ledger address that has bought at least one package."""

    def __init__(self, address: str, last_participation: Optional[int] = None):
        """Create a new :class:`Participant`.

        Parameters
        ----------
        address : str
            Ledger address of the participant.
        last_participation : int, optional
            Epoch seconds of the latest participation.
        """

        self.address = address
        self.last_participation = last_participation

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    last_participation: Mapped[Optional[int]] = mapped_column(AMOUNT_TYPE, nullable=True)
    """Epoch seconds of the latest participation; survives draws."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="participant", order_by="Ticket.id"
    )
    contributions: Mapped[list["RoundContribution"]] = relationship(
        back_populates="participant"
    )

    def __repr__(self) -> str:
        return (
            f"<Participant(id={self.id}, address='{self.address}', "
            f"last_participation={self.last_participation})>"
        )

    @classmethod
    def get_by_address(cls, session: Session, address: str) -> Optional["Participant"]:
        """Retrieve a participant by ledger address."""

        return session.scalar(select(cls).where(cls.address == address))

    @classmethod
    def get_or_create(cls, session: Session, address: str) -> "Participant":
        participant = cls.get_by_address(session, address)
        if participant is None:
            participant = cls(address=address)
            session.add(participant)
            session.flush()
        return participant

    @classmethod
    def in_round(cls, session: Session, round_id: int) -> list["Participant"]:
        """Return participants holding tickets in ``round_id``.

        Ordered by each participant's first ticket in the round.
        """

        stmt = (
            select(cls)
            .join(Ticket, Ticket.participant_id == cls.id)
            .where(Ticket.round_id == round_id)
            .group_by(cls.id)
            .order_by(func.min(Ticket.id).asc())
        )
        return list(session.scalars(stmt).all())

    @classmethod
    def count_in_round(cls, session: Session, round_id: int) -> int:
        stmt = select(func.count(func.distinct(Ticket.participant_id))).where(
            Ticket.round_id == round_id
        )
        return session.scalar(stmt) or 0

    def tickets_in_round(self, session: Session, round_id: int) -> list["Ticket"]:
        stmt = (
            select(Ticket)
            .where(Ticket.participant_id == self.id, Ticket.round_id == round_id)
            .order_by(Ticket.id.asc())
        )
        return list(session.scalars(stmt).all())

    def contribution_in_round(self, session: Session, round_id: int) -> int:
        row = RoundContribution.get(session, round_id, self.id)
        return row.amount if row is not None else 0


class Ticket(Base):
    """Five main numbers plus a powerball, bought in a given round."""

    def __init__(
        self,
        *,
        main_numbers: Sequence[int],
        powerball: int,
        participant: Optional[Participant] = None,
        participant_id: Optional[int] = None,
        round: Optional["LotteryRound"] = None,
        round_id: Optional[int] = None,
    ):
        self.main_numbers = list(main_numbers)
        self.powerball = powerball
        if participant is not None:
            self.participant = participant
        if participant_id is not None:
            self.participant_id = participant_id
        if round is not None:
            self.round = round
        if round_id is not None:
            self.round_id = round_id

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    round_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_rounds.id", ondelete="RESTRICT"), nullable=False
    )
    main_numbers: Mapped[list] = mapped_column(JSON, nullable=False)
    powerball: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    participant: Mapped["Participant"] = relationship(back_populates="tickets")
    round: Mapped["LotteryRound"] = relationship(back_populates="tickets")

    __table_args__ = (
        Index("ix_tickets_round_participant", "round_id", "participant_id"),
    )

    @validates("main_numbers", "powerball")
    def _validate_numbers(self, key: str, value):
        if self.id is not None:
            raise AttributeError("tickets are immutable once stored")
        if key == "powerball":
            return int(value)
        numbers = [int(n) for n in value]
        if len(numbers) != MAIN_NUMBER_COUNT:
            raise CombinationMismatch(
                f"a ticket needs exactly {MAIN_NUMBER_COUNT} main numbers, got {len(numbers)}"
            )
        return numbers

    def __repr__(self) -> str:
        return (
            f"<Ticket(id={self.id}, participant_id={self.participant_id}, "
            f"round_id={self.round_id}, main_numbers={self.main_numbers}, "
            f"powerball={self.powerball})>"
        )


class RoundContribution(Base):
    """Token amount an address paid into the pool during one round."""

    __tablename__ = "round_contributions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_rounds.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)

    round: Mapped["LotteryRound"] = relationship(back_populates="contributions")
    participant: Mapped["Participant"] = relationship(back_populates="contributions")

    __table_args__ = (
        UniqueConstraint("round_id", "participant_id", name="uq_round_contribution"),
    )

    def __repr__(self) -> str:
        return (
            f"<RoundContribution(round_id={self.round_id}, "
            f"participant_id={self.participant_id}, amount={self.amount})>"
        )

    @classmethod
    def get(
        cls, session: Session, round_id: int, participant_id: int
    ) -> Optional["RoundContribution"]:
        return session.scalar(
            select(cls).where(
                cls.round_id == round_id, cls.participant_id == participant_id
            )
        )

    @classmethod
    def add(
        cls, session: Session, round_id: int, participant_id: int, amount: int
    ) -> "RoundContribution":
        """Increase the contribution of ``participant_id`` in ``round_id``."""

        row = cls.get(session, round_id, participant_id)
        if row is None:
            row = cls(round_id=round_id, participant_id=participant_id, amount=0)
            session.add(row)
        row.amount = (row.amount or 0) + amount
        session.flush()
        return row
