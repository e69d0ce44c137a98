import os
from pathlib import Path
from typing import Optional

_RELATIVE_SQLITE_PREFIXES = ("sqlite:///./", "sqlite+pysqlite:///./")

DEFAULT_DATABASE_URL = "sqlite:///./powerdraw.db"


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Anchor a relative SQLite file URL at ``project_root``.

    ``sqlite:///./data/lottery.db`` becomes an absolute ``sqlite:///`` URL so
    scripts and Alembic open the same file whatever the working directory.
    In-memory databases and other backends are returned unchanged.
    """
    for prefix in _RELATIVE_SQLITE_PREFIXES:
        if url.startswith(prefix):
            scheme = prefix[: -len("./")]
            return f"{scheme}{(project_root / url[len(prefix):]).resolve()}"
    return url


def database_url_from_env(
    project_root: Path, default: Optional[str] = None
) -> str:
    """Return ``DB_URL`` (or ``default``) resolved against ``project_root``."""
    raw = os.getenv("DB_URL", "").strip() or default or DEFAULT_DATABASE_URL
    return resolve_sqlite_url(raw, project_root)
