from __future__ import annotations


class BreezeReaderError(Exception):
    """Base class for errors raised by breeze_reader."""


class InvalidConfiguration(BreezeReaderError, ValueError):
    """Raised when reading settings cannot be applied."""


class InvalidArgument(BreezeReaderError, ValueError):
    """Raised when a pure helper receives an argument outside its domain."""


class LibraryItemNotFound(BreezeReaderError, KeyError):
    """Raised when a library item id does not exist in the repository."""

    def __init__(self, item_id: str) -> None:
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Library item '{self.item_id}' not found."


class LookupFailed(BreezeReaderError):
    """Raised by a definition lookup when the backing service cannot answer."""


class VocabularyEntryNotFound(BreezeReaderError, KeyError):
    """Raised when a vocabulary entry id is not stored on any library item."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(entry_id)
        self.entry_id = entry_id

    def __str__(self) -> str:
        return f"Vocabulary entry '{self.entry_id}' not found."
