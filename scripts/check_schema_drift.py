"""Compare the lottery ORM models with the live database schema.

Exit codes: 0 when in sync, 1 when differences exist, 2 on error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext

from powerdraw.db.engine import make_engine
from powerdraw.models import Base

logger = logging.getLogger("schema_drift")


def _describe(ops: Iterable, depth: int = 0) -> list[str]:
    lines: list[str] = []
    for op in ops:
        lines.append(f"{'  ' * depth}- {op}")
        lines.extend(_describe(getattr(op, "ops", None) or [], depth + 1))
    return lines


def check(database_url: Optional[str] = None) -> int:
    engine = make_engine(database_url)
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "compare_server_default": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    except Exception:
        logger.exception("Schema drift check could not inspect %s", url_display)
        return 2
    finally:
        engine.dispose()

    if upgrade_ops is None:
        logger.error("Schema drift check produced no upgrade ops for %s", url_display)
        return 2
    if upgrade_ops.is_empty():
        logger.info("Lottery schema matches the models for %s", url_display)
        return 0

    logger.warning(
        "Lottery schema drift for %s:\n%s",
        url_display,
        "\n".join(_describe(upgrade_ops.ops or [])),
    )
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--db-url", default=None, help="Override DB_URL.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    return check(args.db_url)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
