"""
Storage backend factory.

Usage:
    from llm_conversations.storage import make_store, select_stores
    store = make_store("sqlite", db_path="./data/llm-conversations.db")
    primary, legacy = select_stores("auto", data_dir)

Backends:
    blob: one JSON blob under one key, small quota
    sqlite: one row per conversation, transactional, large quota

``select_stores`` runs once at startup. With ``auto`` the SQLite store is
primary and the blob store becomes the migration source; when SQLite
cannot be opened the blob store is used alone.
"""

from __future__ import annotations

import logging
from pathlib import Path

from llm_conversations.errors import StorageUnavailableError

from .base import SAVED, ConversationStore, Record, SaveResult
from .blob import DEFAULT_QUOTA_BYTES, STORAGE_KEY, BlobStore
from .sqlite_store import DB_FILENAME, SQLiteStore

logger = logging.getLogger(__name__)

_REGISTRY: dict[str, type[ConversationStore]] = {
    BlobStore.name: BlobStore,
    SQLiteStore.name: SQLiteStore,
}

BACKENDS = ("auto", *_REGISTRY)


def make_store(backend_type: str, **kwargs) -> ConversationStore:
    """
    Instantiate a store by name.

    Raises:
        ValueError: If the backend type is not registered.
    """
    cls = _REGISTRY.get(backend_type)
    if cls is None:
        available = ", ".join(_REGISTRY.keys())
        raise ValueError(f"Unknown storage backend: '{backend_type}'. Available: {available}")
    return cls(**kwargs)


def select_stores(
    backend: str,
    data_dir: str | Path,
    *,
    blob_quota_bytes: int = DEFAULT_QUOTA_BYTES,
) -> tuple[ConversationStore, ConversationStore | None]:
    """Return ``(primary, legacy)`` where ``legacy`` is the migration source, if any."""
    data_dir = Path(data_dir)
    blob = make_store("blob", root=data_dir, quota_bytes=blob_quota_bytes)
    records = make_store("sqlite", db_path=data_dir / DB_FILENAME)

    if backend == "blob":
        candidates: list[tuple[ConversationStore, ConversationStore | None]] = [(blob, None)]
    elif backend == "sqlite":
        candidates = [(records, blob)]
    elif backend == "auto":
        candidates = [(records, blob), (blob, None)]
    else:
        raise ValueError(f"Unknown storage backend: '{backend}'. Available: {', '.join(BACKENDS)}")

    for primary, legacy in candidates:
        if primary.is_available():
            logger.info(
                "Using %s store in %s%s",
                primary.name,
                data_dir,
                f" (migrating from {legacy.name})" if legacy is not None else "",
            )
            return primary, legacy
        logger.warning("%s store unavailable in %s", primary.name, data_dir)
    raise StorageUnavailableError(f"No usable storage backend in {data_dir}")


__all__ = [
    "BACKENDS",
    "DB_FILENAME",
    "DEFAULT_QUOTA_BYTES",
    "SAVED",
    "STORAGE_KEY",
    "BlobStore",
    "ConversationStore",
    "Record",
    "SQLiteStore",
    "SaveResult",
    "make_store",
    "select_stores",
]
