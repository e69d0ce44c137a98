"""Operator capability checks."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .errors import Unauthorized
from .models import Operator

logger = logging.getLogger(__name__)


def is_operator(session: Session, caller: str) -> bool:
    """Return ``True`` when ``caller`` is a registered operator."""

    if not caller:
        return False
    return Operator.get_by_address(session, caller) is not None


def require_operator(session: Session, caller: str) -> None:
    """Raise :class:`Unauthorized` unless ``caller`` is an operator."""

    if not is_operator(session, caller):
        logger.warning("Rejected privileged call from %s", caller)
        raise Unauthorized(f"{caller!r} is not an operator")


def add_operator(session: Session, address: str, name: Optional[str] = None) -> Operator:
    """Register ``address`` as an operator, returning the existing row if present."""

    existing = Operator.get_by_address(session, address)
    if existing is not None:
        return existing
    operator = Operator(address=address, name=name)
    session.add(operator)
    session.flush()
    return operator


__all__ = ["add_operator", "is_operator", "require_operator"]
