"""
FileStorer - File-backed timestamped key-value storage engine.
"""

import asyncio
import logging
import os
import threading
from pathlib import Path

from kvts.engine.scanner import LogScanner
from kvts.interfaces.storer import Storer
from kvts.models.cache import SequenceCache
from kvts.models.exceptions import KeyNotFoundError
from kvts.models.sequence import Sequence
from kvts.models.sequence_log import SequenceLog

logger = logging.getLogger(__name__)


class FileStorer(Storer):
    """
    Storage engine keeping one append-only log file per key.

    Provides:
    - save(sequence): Append a record to its key's log
    - get(key, timestamp): Resolve the value at an exact timestamp

    Architecture:
    - Every save appends one line to <storage_dir>/<key>.csv and caches it
    - Reads check the cache first, then scan the key's log front to back
    - Only hits are cached; a miss always rescans so later writes are seen
    - File I/O runs in the default thread pool, one lock per key
    """

    def __init__(self, storage_dir: str, sync: bool = True) -> None:
        """
        Initialize the storage engine.

        Args:
            storage_dir: Directory holding the per-key logs. Created if missing.
            sync: If True, fsync every append before returning.
        """
        # Validate storage_dir
        if not storage_dir or not storage_dir.strip():
            raise ValueError("storage_dir cannot be empty")

        # Convert to absolute path
        storage_dir = os.path.abspath(storage_dir)

        # Check parent directory is writable (if dir doesn't exist)
        if not os.path.exists(storage_dir):
            parent = os.path.dirname(storage_dir)
            while parent and not os.path.exists(parent):
                parent = os.path.dirname(parent)
            if not os.access(parent, os.W_OK):
                raise PermissionError(
                    f"Cannot create storage_dir: {storage_dir}. "
                    f"Parent directory not writable: {parent}"
                )
        elif not os.access(storage_dir, os.W_OK):
            raise PermissionError(f"storage_dir not writable: {storage_dir}")

        Path(storage_dir).mkdir(parents=True, exist_ok=True)

        self._storage_dir = storage_dir
        self._sync = sync
        self._cache = SequenceCache()
        self._scanner = LogScanner()

        # Serializes log I/O and the matching cache update per key
        self._key_locks: dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

        self._closed = False

    @property
    def storage_dir(self) -> str:
        return self._storage_dir

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def save(self, sequence: Sequence) -> None:
        """
        Append a record to its key's log and cache it.

        Args:
            sequence: The record to store.

        Raises:
            OSError: If the append fails. Nothing is cached in that case.
        """
        self._ensure_open()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._save_sync, sequence)

    def _save_sync(self, sequence: Sequence) -> None:
        """Sync implementation for thread pool execution."""
        log = self._log(sequence.key)
        with self._lock_for(sequence.key):
            log.append(sequence)
            self._cache.put(sequence.key, sequence.timestamp, sequence.value)

    async def get(self, key: str, timestamp: int) -> str:
        """
        Resolve the value of a key at an exact timestamp.

        Args:
            key: The key to look up.
            timestamp: The exact version to resolve.

        Returns:
            The value of the last record at that timestamp, or "" if the key
            has no record there.

        Raises:
            InvalidKeyError: If the key cannot name a log file.
            KeyNotFoundError: If the key has never been written.
            CorruptTimestampError: If the log holds an unparsable timestamp.
        """
        self._ensure_open()
        Sequence.validate_key(key)
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise TypeError(f"timestamp must be an integer, got {type(timestamp).__name__}")

        value = self._cache.get(key, timestamp)
        if value is not None:
            logger.debug(f"Cache hit for {key!r}@{timestamp}")
            return value

        logger.debug(f"Cache miss for {key!r}@{timestamp}, scanning log")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get_sync, key, timestamp)

    def _get_sync(self, key: str, timestamp: int) -> str:
        """Sync implementation for thread pool execution."""

        def remember(value: str) -> None:
            self._cache.put(key, timestamp, value)

        log = self._log(key)
        # Locks exist only for keys that were written
        if not log.exists():
            raise KeyNotFoundError(key)

        with self._lock_for(key):
            return self._scanner.resolve(log, timestamp, on_match=remember)

    def _log(self, key: str) -> SequenceLog:
        return SequenceLog(key=key, storage_dir=self._storage_dir, sync=self._sync)

    def _lock_for(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("FileStorer is closed")

    async def close(self) -> None:
        """Close the engine and drop the cache. Logs on disk are untouched."""
        self._closed = True
        self._cache.clear()
