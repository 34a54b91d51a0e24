"""SQLite persistence for catalog and ledger state."""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from booklending.catalog import CatalogStore
from booklending.ledger import RequestLedger
from booklending.models.item import Item
from booklending.models.request import BorrowRequest

logger = logging.getLogger(__name__)

NEXT_REQUEST_ID_KEY = "next_request_id"
CANCELLED_IDS_KEY = "cancelled_request_ids"
LAST_CREATED_AT_KEY = "last_created_at"


def get_connection(db_path: str | Path, timeout: float = 5.0) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.
        timeout: Seconds to wait for another writer to release the database.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS items (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                author TEXT DEFAULT '',
                description TEXT DEFAULT '',
                category TEXT NOT NULL,
                cohort TEXT NOT NULL,
                available INTEGER NOT NULL DEFAULT 1,
                image_ref TEXT DEFAULT '',
                position INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS requests (
                id INTEGER PRIMARY KEY,
                item_id INTEGER NOT NULL REFERENCES items(id),
                item_title TEXT NOT NULL,
                requester_id TEXT NOT NULL,
                created_at DATE NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                due_date DATE
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


def _read_state(conn: sqlite3.Connection) -> tuple[CatalogStore, RequestLedger]:
    item_rows = conn.execute("SELECT * FROM items ORDER BY position, id").fetchall()
    request_rows = conn.execute("SELECT * FROM requests ORDER BY id").fetchall()
    settings = {
        row["key"]: row["value"]
        for row in conn.execute("SELECT key, value FROM settings").fetchall()
    }

    items = [
        Item(
            id=row["id"],
            title=row["title"],
            author=row["author"] or "",
            description=row["description"] or "",
            category=row["category"],
            cohort=row["cohort"],
            available=bool(row["available"]),
            image_ref=row["image_ref"] or "",
        )
        for row in item_rows
    ]
    requests = [
        BorrowRequest(
            id=row["id"],
            item_id=row["item_id"],
            item_title=row["item_title"],
            requester_id=row["requester_id"],
            created_at=date.fromisoformat(row["created_at"]),
            status=row["status"],
            due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
        )
        for row in request_rows
    ]

    next_id = int(settings.get(NEXT_REQUEST_ID_KEY, "1"))
    cancelled_ids = json.loads(settings.get(CANCELLED_IDS_KEY, "[]"))
    last_created = settings.get(LAST_CREATED_AT_KEY)

    ledger = RequestLedger(
        requests,
        next_id=next_id,
        cancelled_ids=cancelled_ids,
        last_created=date.fromisoformat(last_created) if last_created else None,
    )
    return CatalogStore(items), ledger


def _write_state(conn: sqlite3.Connection, catalog: CatalogStore, ledger: RequestLedger) -> None:
    # Caller owns the transaction
    items = catalog.list()
    requests = ledger.list()
    last_created = ledger.last_created_at

    conn.execute("DELETE FROM requests")
    conn.execute("DELETE FROM items")
    conn.executemany(
        "INSERT INTO items (id, title, author, description, category, cohort, "
        "available, image_ref, position) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (
                item.id,
                item.title,
                item.author,
                item.description,
                item.category.value,
                item.cohort.value,
                int(item.available),
                item.image_ref,
                position,
            )
            for position, item in enumerate(items)
        ],
    )
    conn.executemany(
        "INSERT INTO requests (id, item_id, item_title, requester_id, created_at, "
        "status, due_date) VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            (
                r.id,
                r.item_id,
                r.item_title,
                r.requester_id,
                r.created_at.isoformat(),
                r.status.value,
                r.due_date.isoformat() if r.due_date else None,
            )
            for r in requests
        ],
    )
    settings = [
        (NEXT_REQUEST_ID_KEY, str(ledger.next_id)),
        (CANCELLED_IDS_KEY, json.dumps(ledger.cancelled_ids)),
    ]
    if last_created is not None:
        settings.append((LAST_CREATED_AT_KEY, last_created.isoformat()))
    conn.executemany(
        "INSERT OR REPLACE INTO settings (key, value, updated_at) "
        "VALUES (?, ?, CURRENT_TIMESTAMP)",
        settings,
    )
    logger.debug("Wrote %d items and %d requests", len(items), len(requests))


def save_state(db_path: str | Path, catalog: CatalogStore, ledger: RequestLedger) -> None:
    """Replace the stored snapshot with the current catalog and ledger.

    The whole snapshot is written in one transaction; on failure the
    previous snapshot is kept. This overwrites whatever is stored, so a
    read-modify-write cycle shared with other processes must go through
    ``locked_state`` instead.

    Args:
        db_path: Path to the SQLite database file.
        catalog: Catalog to persist.
        ledger: Ledger to persist, including its id sequence and
            cancellation history.
    """
    initialize_database(db_path)

    conn = get_connection(db_path)
    try:
        with conn:
            _write_state(conn, catalog, ledger)
    except sqlite3.Error:
        logger.exception("Failed to save lending state to %s", db_path)
        raise
    finally:
        conn.close()


def load_state(db_path: str | Path) -> tuple[CatalogStore, RequestLedger]:
    """Load the stored catalog and ledger snapshot.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A (catalog, ledger) pair. Both are empty if nothing was saved yet.
    """
    initialize_database(db_path)

    conn = get_connection(db_path)
    try:
        return _read_state(conn)
    finally:
        conn.close()


@contextmanager
def locked_state(
    db_path: str | Path,
    seed: Callable[[], Iterable[Item]] | None = None,
    timeout: float = 5.0,
) -> Iterator[tuple[CatalogStore, RequestLedger]]:
    """Load the catalog and ledger while holding the database write lock.

    The write lock is taken before reading and kept until the state has
    been written back, so other processes using ``locked_state`` on the
    same file wait instead of working from a stale snapshot. The state is
    written back when the block exits normally; if it raises, nothing is
    written.

    Args:
        db_path: Path to the SQLite database file.
        seed: Called for the initial items when the stored catalog is empty.
        timeout: Seconds to wait for another writer.

    Yields:
        A (catalog, ledger) pair.

    Raises:
        sqlite3.OperationalError: If the lock is not obtained within timeout.
    """
    initialize_database(db_path)

    conn = get_connection(db_path, timeout=timeout)
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            catalog, ledger = _read_state(conn)
            if not len(catalog) and seed is not None:
                catalog = CatalogStore(seed())
                logger.info("Seeded empty catalog with %d items", len(catalog))

            yield catalog, ledger

            _write_state(conn, catalog, ledger)
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    except sqlite3.Error:
        logger.exception("Lending state transaction failed on %s", db_path)
        raise
    finally:
        conn.close()
