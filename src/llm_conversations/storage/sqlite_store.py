"""
SQLite record store: one row per conversation, keyed by conversation id.

This is the large-quota backend. Every write replaces the whole collection
inside one transaction, so a failed write leaves the previous rows intact.
Blocking sqlite calls run in the event loop's default executor.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any, Callable

from llm_conversations.errors import CorruptedRecordError, StorageError, TransactionAbortedError
from llm_conversations.storage.base import SAVED, ConversationStore, Record, SaveResult

logger = logging.getLogger(__name__)

DB_FILENAME = "llm-conversations.db"
TABLE_NAME = "conversations"

CREATE_TABLES = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    created TEXT,
    updated TEXT,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_created ON {TABLE_NAME}(created);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_updated ON {TABLE_NAME}(updated);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_title ON {TABLE_NAME}(title);
"""


def _row(record: Record) -> tuple[Any, ...]:
    return (
        record["id"],
        record.get("title") or "",
        record.get("created"),
        record.get("updated"),
        json.dumps(record, ensure_ascii=False, separators=(",", ":")),
    )


class SQLiteStore(ConversationStore):
    name = "sqlite"

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._ready = False

    def is_available(self) -> bool:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("SELECT 1")
            finally:
                conn.close()
        except (OSError, sqlite3.Error):
            return False
        return True

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(CREATE_TABLES)
        logger.info("SQLite store initialized at %s", self.db_path)

    async def init(self) -> None:
        if self._ready:
            return
        await self._run(self._init_db)
        self._ready = True

    def _replace_all(self, records: list[Record]) -> None:
        with self._connect() as conn:
            conn.execute(f"DELETE FROM {TABLE_NAME}")
            conn.executemany(
                f"INSERT INTO {TABLE_NAME} (id, title, created, updated, payload) VALUES (?, ?, ?, ?, ?)",
                [_row(record) for record in records],
            )

    async def save_all(self, records: list[Record]) -> SaveResult:
        try:
            await self.init()
            await self._run(self._replace_all, records)
        except (sqlite3.Error, KeyError, TypeError) as exc:
            error = TransactionAbortedError(f"Transaction aborted: {exc}")
            logger.error("SQLite save of %d record(s) failed: %s", len(records), exc)
            return SaveResult(ok=False, error=error)
        logger.debug("Saved %d record(s) to %s", len(records), self.db_path)
        return SAVED

    def _load_rows(self) -> list[Record]:
        records: list[Record] = []
        corrupted: list[str] = []
        with self._connect() as conn:
            rows = conn.execute(f"SELECT id, payload FROM {TABLE_NAME} ORDER BY rowid").fetchall()
            for row in rows:
                try:
                    payload = json.loads(row["payload"])
                except (json.JSONDecodeError, TypeError):
                    payload = None
                if not isinstance(payload, dict):
                    corrupted.append(row["id"])
                    continue
                records.append(payload)
            if corrupted:
                conn.executemany(
                    f"DELETE FROM {TABLE_NAME} WHERE id = ?", [(row_id,) for row_id in corrupted]
                )
        for row_id in corrupted:
            logger.warning(
                "Erased corrupted row: %s", CorruptedRecordError(f"Unparsable payload for {row_id}")
            )
        return records

    async def load_all(self) -> list[Record]:
        try:
            await self.init()
            return await self._run(self._load_rows)
        except sqlite3.Error as exc:
            logger.error("SQLite load from %s failed: %s", self.db_path, exc)
            raise StorageError(f"Could not read {self.db_path}: {exc}") from exc

    def _clear(self) -> None:
        with self._connect() as conn:
            conn.execute(f"DELETE FROM {TABLE_NAME}")

    async def clear(self) -> None:
        try:
            await self.init()
            await self._run(self._clear)
        except sqlite3.Error as exc:
            logger.error("SQLite clear of %s failed: %s", self.db_path, exc)

    def _size(self) -> int:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT COALESCE(SUM(LENGTH(CAST(payload AS BLOB))), 0) AS size FROM {TABLE_NAME}"
            ).fetchone()
        return int(row["size"])

    async def size_bytes(self) -> int:
        try:
            await self.init()
            return await self._run(self._size)
        except sqlite3.Error as exc:
            logger.error("SQLite size query failed: %s", exc)
            return 0
