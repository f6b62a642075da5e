"""
ConversationStore: abstract base for persistence backends.

All backends implement the same primitives:
  init: prepare the underlying storage (idempotent)
  save_all: replace the whole stored collection
  load_all: return every stored record
  clear: erase every stored record
  size_bytes: approximate bytes used by the stored collection

Stores move canonical records (JSON-ready dicts). Turning records into
Conversation objects is the repository's job, not the store's.

Storage failures are never raised from save_all; they come back in a
SaveResult so callers have to look at the outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from llm_conversations.errors import StorageError

Record = dict[str, Any]


@dataclass(frozen=True)
class SaveResult:
    ok: bool
    error: StorageError | None = None

    def __bool__(self) -> bool:
        return self.ok


SAVED = SaveResult(ok=True)


class ConversationStore(ABC):
    """Abstract conversation storage backend."""

    name: str = "store"

    @abstractmethod
    def is_available(self) -> bool:
        """Probe whether this backend can be used in the current environment."""
        ...

    @abstractmethod
    async def init(self) -> None:
        ...

    @abstractmethod
    async def save_all(self, records: list[Record]) -> SaveResult:
        """Replace the stored collection with ``records``."""
        ...

    @abstractmethod
    async def load_all(self) -> list[Record]:
        """
        Return all stored records.

        Unparsable stored data is erased and left out of the result instead
        of raising. A store that cannot be read at all raises StorageError,
        so an unreadable store is never mistaken for an empty one.
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    @abstractmethod
    async def size_bytes(self) -> int:
        ...
