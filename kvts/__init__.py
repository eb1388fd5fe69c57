"""
Timestamped key-value store.

Each key holds a history of (timestamp, value) versions instead of a single
value:
- save(sequence) - Append a version to the key's log
- get(key, timestamp) - Value of the last version at exactly that timestamp

Histories live in one append-only CSV file per key, with an in-memory cache
in front for repeated lookups.
"""

from kvts.engine import FileStorer, MemoryStorer
from kvts.interfaces import Storer
from kvts.models import Sequence

__all__ = ["FileStorer", "MemoryStorer", "Storer", "Sequence"]
