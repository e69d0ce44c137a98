import unittest

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from powerdraw.config import LotterySettings
from powerdraw.errors import (
    CombinationMismatch,
    InsufficientBalance,
    InvalidPackage,
    OutOfRange,
    RateLimited,
    TransferFailed,
)
from powerdraw.ledger import InMemoryLedger
from powerdraw.models import Base, LedgerTransfer, Ticket
from powerdraw.service import Lottery

TICKET = [1, 2, 3, 4, 5]


class ParticipationTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.ledger = InMemoryLedger(account="pool")
        self.now = 1000
        self.lottery = Lottery(
            self.Session,
            self.ledger,
            LotterySettings(pool_account="pool", min_time_between_participation=60),
            clock=lambda: self.now,
        )
        self.lottery.add_operator("op")

    def tearDown(self):
        self.engine.dispose()

    def _fund(self, address: str, amount: int) -> None:
        self.ledger.mint(address, amount)
        self.ledger.approve(address, amount)

    def test_package_is_paid_once_for_all_tickets(self):
        package = self.lottery.add_package("op", 3, 250)
        self._fund("alice", 1000)

        tickets = self.lottery.participate(
            "alice",
            package.id,
            [[1, 2, 3, 4, 5], [6, 7, 8, 9, 10], [11, 12, 13, 14, 15]],
            [1, 2, 3],
        )

        self.assertEqual(len(tickets), 3)
        self.assertEqual(self.ledger.balance_of("alice"), 750)
        self.assertEqual(self.ledger.balance_of("pool"), 250)
        self.assertEqual(self.lottery.get_participants(), ["alice"])
        self.assertEqual(self.lottery.get_participants_count(), 1)
        self.assertEqual(self.lottery.get_contribution("alice"), 250)
        self.assertEqual(self.lottery.get_last_participation("alice"), 1000)
        self.assertEqual(self.lottery.get_user_ticket_count("alice"), 3)
        self.assertEqual(self.lottery.get_user_ticket("alice", 1).main_numbers, [6, 7, 8, 9, 10])
        self.assertEqual(
            [t.powerball for t in self.lottery.get_user_tickets("alice")], [1, 2, 3]
        )

        with self.Session() as session:
            debits = session.scalars(select(LedgerTransfer)).all()
            self.assertEqual([(d.kind, d.amount) for d in debits], [("debit", 250)])

    def test_participants_are_listed_once_in_first_purchase_order(self):
        package = self.lottery.add_package("op", 1, 10)
        for address in ("bob", "alice"):
            self._fund(address, 100)
        self.lottery.participate("bob", package.id, [TICKET], [1])
        self.lottery.participate("alice", package.id, [TICKET], [1])
        self.now += 60
        self.lottery.participate("bob", package.id, [TICKET], [2])

        self.assertEqual(self.lottery.get_participants(), ["bob", "alice"])
        self.assertEqual(self.lottery.get_participants_count(), 2)
        self.assertEqual(self.lottery.get_contribution("bob"), 20)
        self.assertEqual(self.lottery.get_contribution("nobody"), 0)

    def test_rate_limit_window(self):
        package = self.lottery.add_package("op", 1, 10)
        self._fund("alice", 100)
        self.lottery.participate("alice", package.id, [TICKET], [1])

        self.now = 1059
        with self.assertRaises(RateLimited) as ctx:
            self.lottery.participate("alice", package.id, [TICKET], [1])
        self.assertEqual(ctx.exception.retry_at, 1060)

        self.now = 1060
        self.lottery.participate("alice", package.id, [TICKET], [1])
        self.assertEqual(self.lottery.get_last_participation("alice"), 1060)
        self.assertEqual(self.lottery.get_user_ticket_count("alice"), 2)

    def test_unknown_removed_and_empty_packages_are_rejected(self):
        removed = self.lottery.add_package("op", 1, 10)
        self.lottery.remove_package("op", removed.id)
        empty = self.lottery.add_package("op", 0, 10)
        self._fund("alice", 100)

        for package_id in (0, removed.id, empty.id, 99):
            with self.subTest(package_id=package_id):
                with self.assertRaises(InvalidPackage):
                    self.lottery.participate("alice", package_id, [], [])

    def test_invalid_package_is_reported_first(self):
        # Broke caller, wrong counts and short numbers all at once.
        with self.assertRaises(InvalidPackage):
            self.lottery.participate("nobody", 7, [[1, 2]], [])

    def test_count_mismatch_before_balance(self):
        package = self.lottery.add_package("op", 2, 10)
        with self.assertRaises(CombinationMismatch):
            self.lottery.participate("nobody", package.id, [TICKET], [1])
        with self.assertRaises(CombinationMismatch):
            self.lottery.participate("nobody", package.id, [TICKET, TICKET], [1])

    def test_balance_before_rate_limit(self):
        package = self.lottery.add_package("op", 1, 250)
        self._fund("alice", 300)
        self.lottery.participate("alice", package.id, [TICKET], [1])

        self.now = 1010
        with self.assertRaises(InsufficientBalance):
            self.lottery.participate("alice", package.id, [TICKET], [1])

    def test_rate_limit_before_ticket_shape(self):
        package = self.lottery.add_package("op", 1, 10)
        self._fund("alice", 100)
        self.lottery.participate("alice", package.id, [TICKET], [1])

        self.now = 1010
        with self.assertRaises(RateLimited):
            self.lottery.participate("alice", package.id, [[1, 2, 3, 4]], [1])

        self.now = 2000
        with self.assertRaises(CombinationMismatch):
            self.lottery.participate("alice", package.id, [[1, 2, 3, 4]], [1])
        self.assertEqual(self.ledger.balance_of("alice"), 90)

    def test_rejected_debit_leaves_no_trace(self):
        package = self.lottery.add_package("op", 1, 10)
        self.ledger.mint("alice", 100)  # no allowance granted

        with self.assertRaises(TransferFailed):
            self.lottery.participate("alice", package.id, [TICKET], [1])

        self.assertEqual(self.lottery.get_participants_count(), 0)
        self.assertIsNone(self.lottery.get_last_participation("alice"))
        self.assertEqual(self.ledger.balance_of("alice"), 100)
        with self.Session() as session:
            self.assertEqual(session.scalar(select(func.count(LedgerTransfer.id))), 0)
            self.assertEqual(session.scalar(select(func.count(Ticket.id))), 0)

    def test_ticket_index_out_of_range(self):
        package = self.lottery.add_package("op", 1, 10)
        self._fund("alice", 100)
        self.lottery.participate("alice", package.id, [TICKET], [1])

        with self.assertRaises(OutOfRange):
            self.lottery.get_user_ticket("alice", 1)
        with self.assertRaises(OutOfRange):
            self.lottery.get_user_ticket("bob", 0)
        self.assertEqual(self.lottery.get_user_tickets("bob"), [])

    def test_ticket_history_survives_a_draw(self):
        package = self.lottery.add_package("op", 1, 10)
        self._fund("alice", 100)
        self.lottery.participate("alice", package.id, [TICKET], [4])
        first_round = self.lottery.current_round().id

        self.lottery.select_winner("op", [40, 41, 42, 43, 44], 1)

        self.assertEqual(self.lottery.get_user_ticket("alice", 0).powerball, 4)
        self.assertEqual(self.lottery.get_user_ticket_count("alice"), 1)
        self.assertEqual(self.lottery.get_user_tickets("alice"), [])
        self.assertEqual(
            len(self.lottery.get_user_tickets("alice", round_id=first_round)), 1
        )


if __name__ == "__main__":
    unittest.main()
