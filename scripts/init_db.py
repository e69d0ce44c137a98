from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from powerdraw.db.engine import make_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return alembic_cfg


def upgrade_db(target_revision: str = "head") -> None:
    """Apply the lottery schema migrations up to ``target_revision``."""
    command.upgrade(_alembic_config(), target_revision)


def print_tables() -> None:
    """Print the lottery tables present in the configured database."""
    engine = make_engine()
    try:
        tables = sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    print("Current tables:", ", ".join(tables) or "(none)")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Create or upgrade the lottery database.")
    parser.add_argument(
        "--revision",
        default="head",
        help="Alembic revision to upgrade to (default: head).",
    )
    args = parser.parse_args(argv)

    upgrade_db(args.revision)
    print_tables()


if __name__ == "__main__":
    main()
