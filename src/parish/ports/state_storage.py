"""Persisted state storage interface."""

from typing import Protocol


class StateStorage(Protocol):
    """Interface for durable key/record storage, one record per namespace."""

    def load(self, namespace: str) -> dict | None:
        """Load a record. Returns None if nothing was saved.

        Raises CorruptStateError if a record exists but cannot be decoded.
        """
        ...

    def save(self, namespace: str, data: dict) -> None:
        """Replace a record. Raises StorageError on failure."""
        ...
