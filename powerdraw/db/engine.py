import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .metadata import metadata_obj  # noqa: F401
from .utils import database_url_from_env

logger = logging.getLogger(__name__)

load_dotenv()
# Repository root; relative SQLite paths in DB_URL are anchored here.
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = database_url_from_env(ROOT_DIR)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Ticket and contribution rows must not outlive their round.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the lottery database engine.

    Parameters
    ----------
    database_url : Optional[str], default: None
        SQLAlchemy URL. Falls back to ``DB_URL`` from the environment, then
        to a SQLite file at the repository root.
    echo : bool, default: False
        Log emitted SQL.
    """
    url = database_url or DEFAULT_SQLITE_URL
    engine = create_engine(url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    logger.debug("Created %s engine", engine.dialect.name)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    # Rows returned by Lottery reads are used after their session closes.
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)
