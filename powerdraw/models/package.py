from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, func, select, text
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import AMOUNT_TYPE


class Package(Base):
    """A purchasable bundle of tickets sold at a fixed price."""

    def __init__(self, combinations: int, price: int, active: bool = True):
        """Create a new :class:`Package`.

        Parameters
        ----------
        combinations : int
            Number of tickets bought together with this package.
        price : int
            Price of the whole bundle in token units.
        active : bool, default: True
            Whether the package can currently be bought.
        """

        self.combinations = combinations
        self.price = price
        self.active = active

    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    combinations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<Package(id={self.id}, combinations={self.combinations}, "
            f"price={self.price}, active={self.active})>"
        )

    @classmethod
    def count(cls, session: Session) -> int:
        """Return the highest package id ever issued (0 when none)."""
        return session.scalar(select(func.max(cls.id))) or 0

    @classmethod
    def get_active(cls, session: Session, package_id: int) -> Optional["Package"]:
        """Return the package with ``package_id`` if it exists and is active."""
        if package_id < 1:
            return None
        package = session.get(cls, package_id)
        if package is None or not package.active:
            return None
        return package

    @classmethod
    def all_active(cls, session: Session) -> list["Package"]:
        """Return every active package in ascending id order."""
        return list(
            session.scalars(
                select(cls).where(cls.active.is_(True)).order_by(cls.id.asc())
            ).all()
        )
