"""
ConversationRepository: the one entry point for loading and saving.

Callers hand it Conversation objects and get Conversation objects back; the
records it exchanges with the stores carry ISO-8601 strings instead of
datetimes. Every save rewrites the full collection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from llm_conversations.codec import conversation_from_record, conversation_to_record
from llm_conversations.config import AppConfig
from llm_conversations.errors import ConversationError, CorruptedRecordError, StorageError
from llm_conversations.models import Conversation
from llm_conversations.storage import ConversationStore, Record, select_stores

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    added: int
    ok: bool = True
    persisted: bool = True
    error: StorageError | None = None


@dataclass(frozen=True)
class RepositoryEvent:
    kind: str  # "loaded" | "saved" | "cleared"
    conversations: tuple[Conversation, ...]
    added: int = 0


Listener = Callable[[RepositoryEvent], None]


def merge_conversations(
    existing: Iterable[Conversation], incoming: Iterable[Conversation]
) -> tuple[list[Conversation], list[Conversation]]:
    """Return ``(merged, added)``; ids already present, or repeated in ``incoming``, are dropped."""
    merged = list(existing)
    seen = {conversation.id for conversation in merged}
    added: list[Conversation] = []
    for conversation in incoming:
        if conversation.id in seen:
            continue
        seen.add(conversation.id)
        added.append(conversation)
    return merged + added, added


class ConversationRepository:
    def __init__(self, primary: ConversationStore, legacy: ConversationStore | None = None) -> None:
        self.primary = primary
        self.legacy = legacy
        self._conversations: tuple[Conversation, ...] = ()
        self._listeners: list[Listener] = []
        self._migration_checked = False
        # ids added with persist=False; never written to a store
        self._transient_ids: set[str] = set()
        # set when the last load could not read a store; blocks writes until a clean load
        self._load_error: StorageError | None = None

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self._conversations

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str, added: int = 0) -> None:
        event = RepositoryEvent(kind=kind, conversations=self._conversations, added=added)
        for listener in list(self._listeners):
            listener(event)

    async def _migrate(self) -> list[Record]:
        """Copy legacy records into the primary store once, then erase them from legacy.

        A failed copy leaves the legacy data in place and is retried on the
        next load.
        """
        if self.legacy is None:
            self._migration_checked = True
            return []
        records = await self.legacy.load_all()
        if not records:
            self._migration_checked = True
            return []
        result = await self.primary.save_all(records)
        if not result.ok:
            logger.warning(
                "Migration of %d record(s) from %s to %s failed, keeping %s data: %s",
                len(records), self.legacy.name, self.primary.name, self.legacy.name, result.error,
            )
            return records
        self._migration_checked = True
        await self.legacy.clear()
        logger.info(
            "Migrated %d record(s) from %s to %s", len(records), self.legacy.name, self.primary.name
        )
        return records

    async def _load_records(self) -> list[Record]:
        records = await self.primary.load_all()
        if records:
            self._migration_checked = True
            return records
        if self._migration_checked:
            return []
        return await self._migrate()

    async def load_conversations(self) -> list[Conversation]:
        """Replace the loaded set with the stored collection.

        When a store cannot be read the loaded set is left empty and
        persisted saves are refused until a later load succeeds.
        """
        try:
            records = await self._load_records()
        except StorageError as exc:
            logger.error("Could not load conversations, saving is disabled: %s", exc)
            self._load_error = exc
            records = []
        else:
            self._load_error = None
        loaded: list[Conversation] = []
        for record in records:
            try:
                loaded.append(conversation_from_record(record))
            except ConversationError as exc:
                logger.warning(
                    "Skipping stored record: %s", CorruptedRecordError(str(exc))
                )
        self._transient_ids.clear()
        self._conversations = tuple(loaded)
        self._emit("loaded")
        return loaded

    async def save_conversations(
        self, conversations: Iterable[Conversation], *, persist: bool = True
    ) -> SaveOutcome:
        """Merge ``conversations`` into the loaded set and write the result.

        With ``persist=False`` the new conversations only live in memory: they
        are left out of this and every later write, so a reload drops them.
        """
        merged, added = merge_conversations(self._conversations, conversations)
        self._conversations = tuple(merged)
        outcome = SaveOutcome(added=len(added), persisted=persist)
        if not persist:
            self._transient_ids.update(conversation.id for conversation in added)
        elif self._load_error is not None:
            outcome = SaveOutcome(
                added=len(added), ok=False, persisted=False, error=self._load_error
            )
        else:
            result = await self.primary.save_all(
                [
                    conversation_to_record(conversation)
                    for conversation in merged
                    if conversation.id not in self._transient_ids
                ]
            )
            if not result.ok:
                outcome = SaveOutcome(added=len(added), ok=False, persisted=False, error=result.error)
        logger.debug("Merged %d new conversation(s), %d total", len(added), len(merged))
        self._emit("saved", added=len(added))
        return outcome

    async def clear_conversations(self) -> None:
        await self.primary.clear()
        if self.legacy is not None:
            await self.legacy.clear()
        self._conversations = ()
        self._transient_ids.clear()
        self._load_error = None
        self._emit("cleared")

    async def get_storage_size(self) -> int:
        return await self.primary.size_bytes()


async def open_repository(config: AppConfig) -> ConversationRepository:
    primary, legacy = select_stores(
        config.backend, config.data_dir, blob_quota_bytes=config.blob_quota_bytes
    )
    await primary.init()
    return ConversationRepository(primary, legacy)
