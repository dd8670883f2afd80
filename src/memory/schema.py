"""SQLite schema initialization for the FirstDraft key-value store."""

import sqlite3
from pathlib import Path


def prepare_db_path(db_path: str) -> Path:
    """Create parent directories for file-backed SQLite paths."""
    path = Path(db_path)
    if str(path) != ":memory:":
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def init_store_db(db_path: str) -> None:
    """
    Create the key-value table when absent.

    Args:
        db_path: SQLite file path.
    Side effects:
        Creates SQLite file and schema.
    """
    path = prepare_db_path(db_path)
    with sqlite3.connect(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_entries (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
