# stores/sqlite.py
import datetime
import os
import sqlite3
from contextlib import contextmanager
from typing import List, Optional, Tuple

import pytz

from core.errors import StoreError
from core.logger import get_logger

from .base import DocumentStore, Fields

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/inventory.sqlite3")


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class SqliteStore(DocumentStore):
    """
    Local document store backed by a single SQLite table per collection.
    Documents are enumerated in key order, like Firestore lists them.
    """

    def __init__(self, db_path: str = DB_PATH, collection: Optional[str] = None):
        self.db_path = db_path
        if collection:
            self.collection = collection
        self._table = "docs_" + "".join(
            ch if ch.isalnum() else "_" for ch in self.collection
        )
        self.ensure_db()

    @contextmanager
    def _connect(self):
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        con = sqlite3.connect(self.db_path)
        try:
            with con:
                yield con
        finally:
            con.close()

    def ensure_db(self):
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self._table} (
                        key TEXT PRIMARY KEY,
                        quantity INTEGER,
                        price REAL,
                        updated_at TEXT
                    )
                """
                )
                con.commit()
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Cannot open SQLite store at {self.db_path}: {e}")

    def get(self, key: str) -> Optional[Fields]:
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    f"SELECT quantity, price FROM {self._table} WHERE key=?",
                    (key,),
                )
                row = cur.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"SQLite read failed: {e}", key=key)

        if row is None:
            return None
        quantity, price = row
        return {"quantity": quantity, "price": price}

    def list_all(self) -> List[Tuple[str, Fields]]:
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    f"SELECT key, quantity, price FROM {self._table} ORDER BY key"
                )
                rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"SQLite list failed: {e}")

        return [(key, {"quantity": q, "price": p}) for key, q, p in rows]

    def set(self, key: str, fields: Fields) -> None:
        try:
            with self._connect() as con:
                cur = con.cursor()
                # Full replace: fields missing from the new document are reset
                cur.execute(
                    f"""
                    INSERT INTO {self._table} (key, quantity, price, updated_at)
                    VALUES (?,?,?,?)
                    ON CONFLICT(key) DO UPDATE SET
                        quantity=excluded.quantity,
                        price=excluded.price,
                        updated_at=excluded.updated_at
                """,
                    (key, fields.get("quantity"), fields.get("price"), now_utc_iso()),
                )
                con.commit()
        except sqlite3.Error as e:
            raise StoreError(f"SQLite write failed: {e}", key=key)
        logger.debug("sqlite set %s=%s", key, fields)

    def delete(self, key: str) -> None:
        try:
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(f"DELETE FROM {self._table} WHERE key=?", (key,))
                con.commit()
        except sqlite3.Error as e:
            raise StoreError(f"SQLite delete failed: {e}", key=key)
        logger.debug("sqlite delete %s", key)
