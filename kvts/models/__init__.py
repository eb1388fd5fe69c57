"""
Data models for the storage engine.
"""

from kvts.models.cache import SequenceCache
from kvts.models.exceptions import (
    CorruptLogError,
    CorruptTimestampError,
    InvalidKeyError,
    InvalidValueError,
    KeyNotFoundError,
    StorageError,
)
from kvts.models.sequence import Sequence
from kvts.models.sequence_log import SequenceLog

__all__ = [
    "Sequence",
    "SequenceLog",
    "SequenceCache",
    "StorageError",
    "KeyNotFoundError",
    "CorruptTimestampError",
    "CorruptLogError",
    "InvalidKeyError",
    "InvalidValueError",
]
