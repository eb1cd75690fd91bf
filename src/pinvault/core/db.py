# Core - SQLite Connection Helper
#
# All PinVault tables live in one SQLite file. Stores open a short-lived
# connection per call through `connect()`, which applies:
#
#   - WAL journal mode so the API threadpool can read while one call writes
#   - busy_timeout so concurrent writers wait instead of failing
#   - foreign_keys, so credentials cannot point at a missing user

import sqlite3
from pathlib import Path
from typing import Iterable, Union

BUSY_TIMEOUT_MS = 5000


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and safe PRAGMAs.

    Args:
        db_path: Path to the database file (parent directory is created).
        row_factory: If True, rows come back as sqlite3.Row.
        check_same_thread: Passed to sqlite3.connect().
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


def apply_schema(db_path: Union[str, Path], statements: Iterable[str]) -> None:
    """Run idempotent CREATE statements in a single transaction."""
    conn = connect(db_path)
    try:
        with conn:
            for statement in statements:
                conn.execute(statement)
    finally:
        conn.close()
