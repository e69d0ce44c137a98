import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from powerdraw.config import LotterySettings
from powerdraw.errors import NotFound, Unauthorized
from powerdraw.ledger import InMemoryLedger
from powerdraw.models import Base
from powerdraw.service import Lottery


class PackageCatalogTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.lottery = Lottery(
            self.Session, InMemoryLedger(account="pool"), LotterySettings()
        )
        self.lottery.add_operator("op")

    def tearDown(self):
        self.engine.dispose()

    def test_ids_are_sequential_from_one(self):
        self.assertEqual(self.lottery.package_count(), 0)
        first = self.lottery.add_package("op", 1, 100)
        second = self.lottery.add_package("op", 5, 450)

        self.assertEqual((first.id, second.id), (1, 2))
        self.assertEqual(self.lottery.package_count(), 2)
        stored = self.lottery.get_package(2)
        self.assertEqual((stored.combinations, stored.price, stored.active), (5, 450, True))

    def test_update_keeps_package_active(self):
        package = self.lottery.add_package("op", 1, 100)
        self.lottery.update_package("op", package.id, 3, 270)

        stored = self.lottery.get_package(package.id)
        self.assertEqual((stored.combinations, stored.price), (3, 270))
        self.assertTrue(stored.active)

    def test_removed_package_is_cleared_and_final(self):
        package = self.lottery.add_package("op", 2, 180)
        self.lottery.remove_package("op", package.id)

        stored = self.lottery.get_package(package.id)
        self.assertEqual((stored.combinations, stored.price, stored.active), (0, 0, False))
        self.assertEqual(self.lottery.package_count(), 1)

        with self.assertRaises(NotFound):
            self.lottery.update_package("op", package.id, 1, 10)
        with self.assertRaises(NotFound):
            self.lottery.remove_package("op", package.id)

        # ids are never reused
        self.assertEqual(self.lottery.add_package("op", 1, 10).id, 2)

    def test_unknown_ids(self):
        self.lottery.add_package("op", 1, 100)
        for package_id in (0, -1, 2):
            with self.subTest(package_id=package_id):
                with self.assertRaises(NotFound):
                    self.lottery.get_package(package_id)
        with self.assertRaises(NotFound):
            self.lottery.update_package("op", 5, 1, 1)
        with self.assertRaises(NotFound):
            self.lottery.remove_package("op", 0)

    def test_active_packages_in_ascending_order(self):
        for combinations in (1, 2, 3, 4):
            self.lottery.add_package("op", combinations, combinations * 100)
        self.lottery.remove_package("op", 2)

        active = self.lottery.get_all_active_packages()
        self.assertEqual([package_id for package_id, _ in active], [1, 3, 4])
        self.assertEqual([p.combinations for _, p in active], [1, 3, 4])

    def test_negative_values_rejected(self):
        with self.assertRaises(ValueError):
            self.lottery.add_package("op", -1, 100)
        with self.assertRaises(ValueError):
            self.lottery.add_package("op", 1, -100)
        self.assertEqual(self.lottery.package_count(), 0)

    def test_only_operators_manage_packages(self):
        package = self.lottery.add_package("op", 1, 100)
        self.assertFalse(self.lottery.is_operator("mallory"))

        with self.assertRaises(Unauthorized):
            self.lottery.add_package("mallory", 1, 1)
        with self.assertRaises(Unauthorized):
            self.lottery.update_package("mallory", package.id, 1, 1)
        with self.assertRaises(Unauthorized):
            self.lottery.remove_package("mallory", package.id)

        self.assertEqual(self.lottery.package_count(), 1)
        self.assertEqual(self.lottery.get_package(package.id).price, 100)

    def test_add_operator_is_idempotent(self):
        again = self.lottery.add_operator("op", name="ignored")
        self.assertTrue(self.lottery.is_operator("op"))
        self.assertIsNone(again.name)


if __name__ == "__main__":
    unittest.main()
