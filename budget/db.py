import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .errors import StoreError
from .settings import Settings


logger = logging.getLogger(__name__)

_NOW = "(strftime('%Y-%m-%dT%H:%M:%f', 'now'))"


def connect(db_path: str | Path):
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def open_db(db_path: str | Path):
    """Yield a connection scoped to one unit of work.

    Commits on success, rolls back on any exception and always closes.
    sqlite3 failures surface as StoreError; other exceptions pass through.
    """
    try:
        conn = connect(db_path)
    except sqlite3.Error as exc:
        logger.exception("could not open database path=%s", db_path)
        raise StoreError("database unavailable") from exc
    try:
        with conn:
            yield conn
    except sqlite3.Error as exc:
        logger.exception("database operation failed path=%s", db_path)
        raise StoreError("database operation failed") from exc
    finally:
        conn.close()


def init_db(settings: Settings) -> None:
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    with open_db(settings.db_path) as conn:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS transactions (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              owner_id TEXT NOT NULL,
              type TEXT NOT NULL CHECK(type IN ('income','expense')),
              category TEXT NOT NULL CHECK(length(category) BETWEEN 1 AND 30),
              amount_cents INTEGER NOT NULL CHECK(amount_cents > 0),
              date TEXT NOT NULL,
              description TEXT CHECK(description IS NULL OR length(description) <= 200),
              created_at TEXT NOT NULL DEFAULT {_NOW},
              updated_at TEXT NOT NULL DEFAULT {_NOW}
            );
            """
        )
        conn.execute(
            f"""
            CREATE TRIGGER IF NOT EXISTS transactions_updated_at
            AFTER UPDATE ON transactions
            FOR EACH ROW
            BEGIN
              UPDATE transactions SET updated_at = {_NOW} WHERE id = OLD.id;
            END;
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_transactions_owner_date
            ON transactions(owner_id, date DESC, id DESC)
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_transactions_owner_type_category
            ON transactions(owner_id, type, category)
            """
        )
    logger.info("database ready path=%s", settings.db_path)
