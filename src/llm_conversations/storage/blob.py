"""
Single-blob JSON store with a hard quota.

The whole collection lives as one JSON document under one fixed key
(``<root>/llm-conversations.json``). Every operation runs synchronously
inside the coroutine; there is no suspension point.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from llm_conversations.errors import CorruptedRecordError, QuotaExceededError, StorageError
from llm_conversations.storage.base import SAVED, ConversationStore, Record, SaveResult
from llm_conversations.utils import atomic_write_text

logger = logging.getLogger(__name__)

STORAGE_KEY = "llm-conversations"
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024
_PROBE_KEY = "__storage_test__"


class BlobStore(ConversationStore):
    name = "blob"

    def __init__(
        self,
        root: str | Path,
        *,
        key: str = STORAGE_KEY,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
    ) -> None:
        self.root = Path(root)
        self.key = key
        self.quota_bytes = quota_bytes

    @property
    def path(self) -> Path:
        return self.root / f"{self.key}.json"

    def is_available(self) -> bool:
        probe = self.root / f"{_PROBE_KEY}.json"
        try:
            atomic_write_text(probe, _PROBE_KEY)
            probe.unlink()
        except OSError:
            return False
        return True

    async def init(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def save_all(self, records: list[Record]) -> SaveResult:
        blob = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
        size = len(blob.encode("utf-8"))
        if size > self.quota_bytes:
            error = QuotaExceededError(size, self.quota_bytes)
            logger.warning("Blob store quota exceeded: %s", error)
            return SaveResult(ok=False, error=error)
        try:
            atomic_write_text(self.path, blob)
        except OSError as exc:
            logger.error("Blob store write failed at %s: %s", self.path, exc)
            return SaveResult(ok=False, error=StorageError(str(exc)))
        logger.debug("Saved %d record(s) (%d bytes) to %s", len(records), size, self.path)
        return SAVED

    async def load_all(self) -> list[Record]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._heal(CorruptedRecordError(f"Unparsable blob: {exc}"))
            return []
        except OSError as exc:
            logger.error("Blob store read failed at %s: %s", self.path, exc)
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            self._heal(CorruptedRecordError("Blob is not a list of conversation records"))
            return []
        return data

    def _heal(self, error: CorruptedRecordError) -> None:
        logger.warning("Clearing corrupted data at %s: %s", self.path, error)
        self.path.unlink(missing_ok=True)

    async def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    async def size_bytes(self) -> int:
        try:
            return self.path.stat().st_size
        except FileNotFoundError:
            return 0
