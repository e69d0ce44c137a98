"""Transactional facade over the settlement core.

Every mutating operation of :class:`Lottery` holds the instance lock and runs
inside one ``Session.begin()`` block, so it either commits all of its rows or
none of them.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence

from sqlalchemy.orm import Session, sessionmaker

from . import access, catalog, participation, winners
from .config import LotterySettings
from .draw.engine import DrawEngine, DrawSettlement
from .errors import ReentrantCall
from .ledger.base import TokenLedger
from .models import LotteryRound, Operator, Package, Ticket, WinnerRecord

logger = logging.getLogger(__name__)


def _epoch_seconds() -> int:
    return int(time.time())


class Lottery:
    """Lottery instance bound to a database, a token ledger and settings."""

    def __init__(
        self,
        session_factory: sessionmaker,
        ledger: TokenLedger,
        settings: Optional[LotterySettings] = None,
        *,
        clock: Callable[[], int] = _epoch_seconds,
    ) -> None:
        """Create a lottery facade.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing sessions on the lottery database. Sessions should
            not expire on commit so returned rows stay readable.
        ledger : TokenLedger
            Ledger acting on behalf of the pool account.
        settings : Optional[LotterySettings], default: None
            Lottery parameters. Read from the environment when omitted.
        clock : Callable[[], int], default: current epoch seconds
            Source of the participation timestamp.
        """

        self._Session = session_factory
        self.ledger = ledger
        self.settings = settings or LotterySettings.from_env()
        self._clock = clock
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[Session]:
        """Serialize ``operation`` and wrap it in a transaction.

        Raises
        ------
        ReentrantCall
            If the calling thread is already running a guarded operation, for
            instance from a ledger callback fired during a draw.
        """

        if self._owner == threading.get_ident():
            raise ReentrantCall(f"{operation} called while another operation is in progress")
        with self._lock:
            self._owner = threading.get_ident()
            try:
                with self._Session.begin() as session:
                    yield session
            except Exception:
                logger.debug("%s rolled back", operation, exc_info=True)
                raise
            finally:
                self._owner = None

    # -------- operators --------
    def add_operator(self, address: str, name: Optional[str] = None) -> Operator:
        """Register an operator. Bootstrap only; no capability check."""
        with self._exclusive("add_operator") as session:
            return access.add_operator(session, address, name)

    def is_operator(self, caller: str) -> bool:
        with self._Session() as session:
            return access.is_operator(session, caller)

    # -------- package catalog --------
    def add_package(self, caller: str, combinations: int, price: int) -> Package:
        with self._exclusive("add_package") as session:
            access.require_operator(session, caller)
            return catalog.add_package(session, combinations, price)

    def update_package(
        self, caller: str, package_id: int, combinations: int, price: int
    ) -> Package:
        with self._exclusive("update_package") as session:
            access.require_operator(session, caller)
            return catalog.update_package(session, package_id, combinations, price)

    def remove_package(self, caller: str, package_id: int) -> Package:
        with self._exclusive("remove_package") as session:
            access.require_operator(session, caller)
            return catalog.remove_package(session, package_id)

    def get_package(self, package_id: int) -> Package:
        with self._Session() as session:
            return catalog.get_package(session, package_id)

    def get_all_active_packages(self) -> list[tuple[int, Package]]:
        with self._Session() as session:
            return catalog.get_all_active_packages(session)

    def package_count(self) -> int:
        with self._Session() as session:
            return catalog.package_count(session)

    # -------- participation --------
    def participate(
        self,
        caller: str,
        package_id: int,
        main_numbers_list: Sequence[Sequence[int]],
        powerball_numbers: Sequence[int],
    ) -> list[Ticket]:
        """Buy a package for ``caller``; see :func:`powerdraw.participation.participate`."""

        with self._exclusive("participate") as session:
            return participation.participate(
                session,
                self.ledger,
                self.settings,
                caller,
                package_id,
                main_numbers_list,
                powerball_numbers,
                now=self._clock(),
            )

    def get_participants(self) -> list[str]:
        with self._Session() as session:
            return [p.address for p in participation.get_participants(session)]

    def get_participants_count(self) -> int:
        with self._Session() as session:
            return participation.get_participants_count(session)

    def get_contribution(self, address: str) -> int:
        with self._Session() as session:
            return participation.get_contribution(session, address)

    def get_last_participation(self, address: str) -> Optional[int]:
        with self._Session() as session:
            return participation.get_last_participation(session, address)

    def get_user_ticket(self, address: str, index: int) -> Ticket:
        with self._Session() as session:
            return participation.get_user_ticket(session, address, index)

    def get_user_ticket_count(self, address: str) -> int:
        with self._Session() as session:
            return participation.get_user_ticket_count(session, address)

    def get_user_tickets(
        self, address: str, round_id: Optional[int] = None
    ) -> list[Ticket]:
        with self._Session() as session:
            return participation.get_user_tickets(session, address, round_id)

    # -------- draw --------
    def select_winner(
        self,
        caller: str,
        main_numbers: Sequence[int],
        powerball_number: int,
    ) -> DrawSettlement:
        """Settle the open round; see :meth:`powerdraw.draw.DrawEngine.settle`.

        Raises
        ------
        Unauthorized
            If ``caller`` is not an operator.
        """

        with self._exclusive("select_winner") as session:
            access.require_operator(session, caller)
            engine = DrawEngine(session, self.ledger, self.settings)
            return engine.settle(caller, main_numbers, powerball_number)

    def current_round(self) -> LotteryRound:
        with self._exclusive("current_round") as session:
            return LotteryRound.current(session)

    def get_round(self, round_id: int) -> Optional[LotteryRound]:
        with self._Session() as session:
            return session.get(LotteryRound, round_id)

    # -------- winners --------
    def get_past_winner(self, index: int) -> WinnerRecord:
        with self._Session() as session:
            return winners.get_past_winner(session, index)

    def get_past_winners_count(self) -> int:
        with self._Session() as session:
            return winners.get_past_winners_count(session)

    def get_winners_for_round(self, round_id: int) -> list[WinnerRecord]:
        with self._Session() as session:
            return winners.get_winners_for_round(session, round_id)


__all__ = ["Lottery"]
