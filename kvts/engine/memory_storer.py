"""
MemoryStorer - In-process storage backend.
"""

from kvts.interfaces.storer import Storer
from kvts.models.exceptions import KeyNotFoundError
from kvts.models.sequence import Sequence


class MemoryStorer(Storer):
    """
    Keeps every key's history in a list, in write order.

    Same observable behaviour as FileStorer, without touching disk. Nothing
    survives the instance.
    """

    def __init__(self) -> None:
        self._histories: dict[str, list[Sequence]] = {}

    async def save(self, sequence: Sequence) -> None:
        self._histories.setdefault(sequence.key, []).append(sequence)

    async def get(self, key: str, timestamp: int) -> str:
        Sequence.validate_key(key)
        history = self._histories.get(key)
        if history is None:
            raise KeyNotFoundError(key)

        result = ""
        for sequence in history:
            if sequence.timestamp == timestamp:
                result = sequence.value
        return result

    async def close(self) -> None:
        self._histories.clear()
