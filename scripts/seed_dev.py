from powerdraw.config import LotterySettings
from powerdraw.db.engine import get_sessionmaker, make_engine
from powerdraw.ledger import InMemoryLedger
from powerdraw.models import Base
from powerdraw.service import Lottery


def main() -> None:
    """Seed the development database with sample packages and a settled round."""
    engine = make_engine()

    # Drop and recreate all tables.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    settings = LotterySettings.from_env()
    ledger = InMemoryLedger(account=settings.pool_account)
    clock_value = [1_700_000_000]
    lottery = Lottery(Session, ledger, settings, clock=lambda: clock_value[0])

    # Operator and catalog
    lottery.add_operator("operator-01", name="powerdraw_admin")
    single = lottery.add_package("operator-01", combinations=1, price=100)
    triple = lottery.add_package("operator-01", combinations=3, price=250)
    retired = lottery.add_package("operator-01", combinations=10, price=800)
    lottery.remove_package("operator-01", retired.id)

    # Players
    for address in ("alice", "bob", "carol"):
        ledger.mint(address, 1_000)
        ledger.approve(address, 1_000)

    lottery.participate("alice", single.id, [[1, 2, 3, 4, 5]], [7])
    lottery.participate(
        "bob",
        triple.id,
        [[1, 2, 3, 4, 99], [10, 11, 12, 13, 14], [1, 2, 3, 40, 50]],
        [7, 1, 7],
    )
    lottery.participate("carol", single.id, [[5, 6, 7, 8, 9]], [2])

    settlement = lottery.select_winner("operator-01", [1, 2, 3, 4, 99], 7)
    print(
        f"Settled round {settlement.round_id}: "
        f"winning_counts={settlement.winning_counts} "
        f"division_prizes={list(settlement.division_prizes)}"
    )

    # Leave a few tickets in the open round.
    clock_value[0] += settings.min_time_between_participation
    lottery.participate("alice", single.id, [[8, 16, 23, 42, 4]], [15])

    print(
        f"Seeded {lottery.package_count()} packages, "
        f"{lottery.get_past_winners_count()} winners, "
        f"{lottery.get_participants_count()} open-round participant(s)."
    )


if __name__ == "__main__":
    main()
