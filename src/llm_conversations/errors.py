from __future__ import annotations


class ConversationError(ValueError):
    """Raised for input that cannot be turned into conversations."""


class UnrecognizedFormatError(ConversationError):
    pass


class EmptyInputError(ConversationError):
    pass


class MalformedConversationError(ConversationError):
    pass


class SourceError(ConversationError):
    """A file, archive or URL could not be read as a JSON payload."""


class StorageError(Exception):
    """Storage conditions. Writes return them in results; unreadable stores raise them."""


class QuotaExceededError(StorageError):
    def __init__(self, size: int, quota: int) -> None:
        super().__init__(f"Payload of {size} bytes exceeds storage quota of {quota} bytes")
        self.size = size
        self.quota = quota


class TransactionAbortedError(StorageError):
    pass


class CorruptedRecordError(StorageError):
    pass


class StorageUnavailableError(StorageError):
    pass
