from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, validates

from .base import Base
from .id_type import ID_TYPE


class Operator(Base):
    """Account allowed to manage packages and trigger draws."""

    __tablename__ = "operators"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, index=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @validates("address")
    def _normalize_address(self, _key: str, value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("operator address must not be empty")
        return normalized

    def __repr__(self) -> str:
        return f"<Operator(id={self.id}, address='{self.address}', name='{self.name}')>"

    @classmethod
    def get_by_address(cls, session: Session, address: str) -> Optional["Operator"]:
        """Get operator by their ledger address."""
        return session.scalar(select(cls).where(cls.address == address))
