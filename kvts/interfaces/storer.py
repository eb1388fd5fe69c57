"""
Storer abstract base class for timestamped key-value backends.
"""

from abc import ABC, abstractmethod

from kvts.models.sequence import Sequence


class Storer(ABC):
    """
    Capability the request layer depends on.

    Any backend that can append a record and resolve (key, timestamp) to a
    value can stand in for another without touching callers.

    Implementations:
    - FileStorer: per-key append-only log files with a read-through cache
    - MemoryStorer: in-process lists, for tests and ephemeral use
    """

    @abstractmethod
    async def save(self, sequence: Sequence) -> None:
        """
        Append a record to the history of its key.

        Args:
            sequence: The record to store.

        Raises:
            OSError: If the backing medium rejects the write.
        """
        pass

    @abstractmethod
    async def get(self, key: str, timestamp: int) -> str:
        """
        Resolve the value of a key at an exact timestamp.

        Args:
            key: The key to look up.
            timestamp: The exact version to resolve.

        Returns:
            The value of the last record written at that timestamp, or an
            empty string if the key has no record there.

        Raises:
            KeyNotFoundError: If the key has never been written.
            CorruptTimestampError: If stored data cannot be parsed.
        """
        pass

    async def close(self) -> None:
        """Release resources held by the backend."""
        pass

    async def __aenter__(self) -> "Storer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
