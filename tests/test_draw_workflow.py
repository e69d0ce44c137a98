import threading
import unittest

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from powerdraw.config import LotterySettings
from powerdraw.errors import (
    InvalidWinningNumbers,
    ReentrantCall,
    TransferFailed,
    Unauthorized,
)
from powerdraw.ledger import InMemoryLedger
from powerdraw.models import Base, LedgerTransfer
from powerdraw.service import Lottery


class DrawTestCase(unittest.TestCase):
    fee_percentage = 10

    def setUp(self):
        self.engine = self.make_engine()
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.ledger = self.make_ledger()
        self.now = 1000
        self.lottery = Lottery(
            self.Session,
            self.ledger,
            LotterySettings(
                pool_account="pool",
                management_fee_percentage=self.fee_percentage,
                next_pool_prize_percentage=50,
            ),
            clock=lambda: self.now,
        )
        self.lottery.add_operator("op")
        self.package = self.lottery.add_package("op", 1, 100)

    def tearDown(self):
        self.engine.dispose()

    def make_engine(self):
        return create_engine("sqlite+pysqlite:///:memory:", future=True)

    def make_ledger(self):
        return InMemoryLedger(account="pool")

    def buy(self, address, numbers, powerball, funds=1000):
        self.ledger.mint(address, funds)
        self.ledger.approve(address, funds)
        return self.lottery.participate(address, self.package.id, [numbers], [powerball])


class SelectWinnerTests(DrawTestCase):
    def test_single_division_three_winner(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)

        settlement = self.lottery.select_winner("op", [1, 2, 3, 4, 99], 7)

        self.assertEqual(settlement.winning_counts, [0, 0, 1, 0, 0])
        self.assertEqual(settlement.division_prizes, (70, 10, 5, 3, 2))
        self.assertEqual(
            [(p.address, p.division, p.prize) for p in settlement.payouts],
            [("alice", 3, 5)],
        )
        self.assertEqual(settlement.split.management_fee, 10)
        self.assertEqual(settlement.total_paid, 15)
        self.assertEqual(self.ledger.balance_of("alice"), 905)
        self.assertEqual(self.ledger.balance_of("op"), 10)
        self.assertEqual(self.ledger.balance_of("pool"), 85)

        winner = self.lottery.get_past_winner(0)
        self.assertEqual(winner.winner_address, "alice")
        self.assertEqual(winner.matching_numbers, [1, 2, 3, 4, 5])
        self.assertEqual(winner.division, 3)
        self.assertEqual(winner.prize, 5)

        settled = self.lottery.get_round(settlement.round_id)
        self.assertEqual(settled.status, "settled")
        self.assertEqual(settled.winning_numbers, [1, 2, 3, 4, 99])
        self.assertEqual(settled.winning_counts, [0, 0, 1, 0, 0])
        self.assertEqual(settled.pool_balance, 100)
        self.assertEqual(settled.settled_by, "op")

    def test_draw_resets_round_state(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        self.lottery.select_winner("op", [1, 2, 3, 4, 99], 7)

        self.assertEqual(self.lottery.get_participants(), [])
        self.assertEqual(self.lottery.get_participants_count(), 0)
        self.assertEqual(self.lottery.get_contribution("alice"), 0)
        self.assertEqual(self.lottery.get_last_participation("alice"), 1000)
        self.assertEqual(self.lottery.get_past_winners_count(), 1)

        # A fresh round accepts the same player once the rate limit passes.
        self.now += 60
        self.lottery.participate("alice", self.package.id, [[1, 2, 3, 4, 5]], [7])
        self.lottery.select_winner("op", [1, 2, 3, 4, 99], 7)
        self.assertEqual(self.lottery.get_past_winners_count(), 2)

    def test_every_winner_in_a_division_gets_the_full_prize(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        self.buy("bob", [5, 4, 3, 2, 1], 7)
        self.ledger.mint("pool", 800)

        settlement = self.lottery.select_winner("op", [1, 2, 3, 4, 99], 7)

        self.assertEqual(settlement.winning_counts, [0, 0, 2, 0, 0])
        self.assertEqual(
            [(p.address, p.prize) for p in settlement.payouts],
            [("alice", 50), ("bob", 50)],
        )
        self.assertEqual(self.ledger.balance_of("pool"), 800)
        self.assertEqual(self.ledger.balance_of("op"), 100)
        self.assertEqual(
            [w.winner_address for w in self.lottery.get_winners_for_round(settlement.round_id)],
            ["alice", "bob"],
        )

    def test_no_participants_pays_only_the_fee(self):
        self.ledger.mint("pool", 500)

        settlement = self.lottery.select_winner("op", [1, 2, 3, 4, 5], 6)

        self.assertEqual(settlement.winning_counts, [0, 0, 0, 0, 0])
        self.assertEqual(settlement.payouts, [])
        self.assertEqual(self.ledger.balance_of("op"), 50)
        self.assertEqual(self.ledger.balance_of("pool"), 450)
        self.assertEqual(self.lottery.get_past_winners_count(), 0)
        self.assertEqual(self.lottery.current_round().id, settlement.next_round_id)

    def test_empty_pool_settles_without_transfers(self):
        settlement = self.lottery.select_winner("op", [1, 2, 3, 4, 5], 6)

        self.assertEqual(settlement.total_paid, 0)
        with self.Session() as session:
            self.assertEqual(session.scalars(select(LedgerTransfer)).all(), [])

    def test_overdrawn_pool_rolls_back_the_draw(self):
        double = self.lottery.add_package("op", 2, 100)
        self.ledger.mint("alice", 1000)
        self.ledger.approve("alice", 1000)
        self.lottery.participate(
            "alice", double.id, [[1, 2, 3, 4, 5], [1, 2, 3, 4, 5]], [7, 7]
        )
        round_id = self.lottery.current_round().id

        with self.assertRaises(TransferFailed) as ctx:
            self.lottery.select_winner("op", [1, 2, 3, 4, 5], 7)

        # The first payout went through on the ledger and is reported back.
        self.assertEqual(ctx.exception.completed_transfers, (("alice", 70),))
        self.assertEqual(self.ledger.balance_of("pool"), 30)
        self.assertEqual(self.lottery.get_past_winners_count(), 0)
        self.assertEqual(self.lottery.get_participants_count(), 1)
        self.assertEqual(self.lottery.current_round().id, round_id)
        self.assertTrue(self.lottery.get_round(round_id).is_open)
        with self.Session() as session:
            kinds = session.scalars(select(LedgerTransfer.kind)).all()
            self.assertEqual(kinds, ["debit"])

    def test_invalid_winning_numbers(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        with self.assertRaises(InvalidWinningNumbers):
            self.lottery.select_winner("op", [1, 2, 3, 4], 7)
        self.assertEqual(self.lottery.get_participants_count(), 1)
        self.assertEqual(self.ledger.balance_of("pool"), 100)

    def test_only_operators_can_draw(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        with self.assertRaises(Unauthorized):
            self.lottery.select_winner("alice", [1, 2, 3, 4, 5], 7)
        self.assertEqual(self.lottery.get_past_winners_count(), 0)

    def test_audit_rows_follow_payout_order(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        settlement = self.lottery.select_winner("op", [1, 2, 3, 4, 5], 7)

        with self.Session() as session:
            rows = session.scalars(select(LedgerTransfer).order_by(LedgerTransfer.id)).all()
            self.assertEqual(
                [(r.kind, r.sender, r.recipient, r.amount) for r in rows],
                [
                    ("debit", "alice", "pool", 100),
                    ("payout", "pool", "alice", 70),
                    ("fee", "pool", "op", 10),
                ],
            )
            self.assertTrue(all(r.round_id == settlement.round_id for r in rows))


class CarveOutTests(DrawTestCase):
    fee_percentage = 30

    def test_exhausted_pool_seeds_next_round(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        self.ledger.mint("pool", 900)

        settlement = self.lottery.select_winner("op", [10, 11, 12, 13, 14], 1)

        self.assertEqual(settlement.split.next_pool_prize, 150)
        self.assertEqual(settlement.split.management_fee, 150)
        self.assertEqual(self.ledger.balance_of("op"), 150)
        self.assertEqual(self.ledger.balance_of("pool"), 850)
        next_round = self.lottery.get_round(settlement.next_round_id)
        self.assertTrue(next_round.is_open)
        self.assertEqual(next_round.seed_amount, 150)


class ReentrantLedger(InMemoryLedger):
    lottery = None

    def transfer(self, to, amount):
        self.lottery.select_winner("op", [1, 2, 3, 4, 5], 7)
        return super().transfer(to, amount)


class ReentrancyTests(DrawTestCase):
    def make_ledger(self):
        return ReentrantLedger(account="pool")

    def test_nested_draw_is_rejected_and_rolled_back(self):
        self.ledger.lottery = self.lottery
        self.buy("alice", [1, 2, 3, 4, 5], 7)

        with self.assertRaises(ReentrantCall):
            self.lottery.select_winner("op", [1, 2, 3, 4, 5], 7)

        self.assertEqual(self.ledger.balance_of("pool"), 100)
        self.assertEqual(self.lottery.get_past_winners_count(), 0)
        self.assertEqual(self.lottery.get_participants_count(), 1)


class BlockingLedger(InMemoryLedger):
    def __init__(self, account):
        super().__init__(account=account)
        self.entered = threading.Event()
        self.release = threading.Event()

    def transfer(self, to, amount):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().transfer(to, amount)


class SerializationTests(DrawTestCase):
    def make_engine(self):
        # One shared connection so both threads see the same in-memory database.
        return create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    def make_ledger(self):
        return BlockingLedger(account="pool")

    def test_participation_waits_for_running_draw(self):
        self.buy("alice", [1, 2, 3, 4, 5], 7)
        self.ledger.mint("bob", 1000)
        self.ledger.approve("bob", 1000)
        results = {}

        def draw():
            results["draw"] = self.lottery.select_winner("op", [1, 2, 3, 4, 5], 7)

        def participate():
            results["tickets"] = self.lottery.participate(
                "bob", self.package.id, [[9, 8, 7, 6, 5]], [1]
            )

        drawer = threading.Thread(target=draw)
        drawer.start()
        self.assertTrue(self.ledger.entered.wait(timeout=5))

        buyer = threading.Thread(target=participate)
        buyer.start()
        buyer.join(timeout=0.2)
        self.assertTrue(buyer.is_alive())
        self.assertNotIn("tickets", results)

        self.ledger.release.set()
        drawer.join(timeout=5)
        buyer.join(timeout=5)

        self.assertEqual(results["draw"].winning_counts, [1, 0, 0, 0, 0])
        self.assertEqual(len(results["tickets"]), 1)
        # bob bought after the draw, so he sits in the next round.
        self.assertEqual(self.lottery.get_participants(), ["bob"])
        self.assertEqual(self.lottery.current_round().id, results["draw"].next_round_id)


if __name__ == "__main__":
    unittest.main()
