from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from powerdraw.config import LotterySettings
from powerdraw.db.engine import get_sessionmaker, make_engine
from powerdraw.errors import LotteryError
from powerdraw.ledger.api import TokenLedgerClient
from powerdraw.service import Lottery


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _parse_numbers(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.replace(",", " ").split()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a list of integers: {raw!r}") from exc


def build_lottery(args: argparse.Namespace) -> Lottery:
    settings = LotterySettings.from_env(pool_account_override=args.pool_account)
    engine = make_engine(args.db_url)
    ledger = TokenLedgerClient(account=settings.pool_account, timeout=args.timeout)
    return Lottery(get_sessionmaker(engine), ledger, settings)


def cmd_draw(args: argparse.Namespace) -> int:
    log = logging.getLogger("draw")
    lottery = build_lottery(args)

    log.info("Participants     : %d", lottery.get_participants_count())
    settlement = lottery.select_winner(args.operator, args.numbers, args.powerball)

    log.info("Round settled    : %d", settlement.round_id)
    log.info("Pool balance     : %d", settlement.split.pool_balance)
    log.info("Management fee   : %d", settlement.split.management_fee)
    log.info("Next pool prize  : %d", settlement.split.next_pool_prize)
    for division, (count, prize) in enumerate(
        zip(settlement.winning_counts, settlement.division_prizes), start=1
    ):
        log.info("Division %d       : %d winner(s) x %d", division, count, prize)

    if args.json:
        print(
            json.dumps(
                {
                    "round_id": settlement.round_id,
                    "winning_numbers": list(settlement.winning_numbers),
                    "winning_powerball": settlement.winning_powerball,
                    "winning_counts": settlement.winning_counts,
                    "division_prizes": list(settlement.division_prizes),
                    "management_fee": settlement.split.management_fee,
                    "next_pool_prize": settlement.split.next_pool_prize,
                    "payouts": [
                        {
                            "address": p.address,
                            "ticket_id": p.ticket_id,
                            "division": p.division,
                            "prize": p.prize,
                        }
                        for p in settlement.payouts
                    ],
                },
                indent=2,
            )
        )
    return 0


def cmd_packages(args: argparse.Namespace) -> int:
    lottery = build_lottery(args)
    for package_id, package in lottery.get_all_active_packages():
        print(f"{package_id}\tcombinations={package.combinations}\tprice={package.price}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Operate a powerdraw lottery.")
    parser.add_argument("--db-url", default=None, help="Override DB_URL.")
    parser.add_argument("--pool-account", default=None, help="Override POWERDRAW_POOL_ACCOUNT.")
    parser.add_argument("--timeout", type=int, default=45, help="Ledger HTTP timeout (s).")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    draw = sub.add_parser("draw", help="Settle the open round.")
    draw.add_argument("--operator", required=True, help="Operator address (receives the fee).")
    draw.add_argument(
        "--numbers", required=True, type=_parse_numbers, help='Five numbers, e.g. "1,2,3,4,5".'
    )
    draw.add_argument("--powerball", required=True, type=int)
    draw.add_argument("--json", action="store_true", help="Print the settlement as JSON.")
    draw.set_defaults(func=cmd_draw)

    packages = sub.add_parser("packages", help="List active packages.")
    packages.set_defaults(func=cmd_packages)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.func(args)
    except LotteryError as exc:
        logging.getLogger("draw").error("%s: %s", type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
