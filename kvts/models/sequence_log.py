"""
SequenceLog - append-only per-key log file.
"""

import csv
import os
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

from kvts.models.exceptions import CorruptLogError
from kvts.models.sequence import Sequence

LOG_EXTENSION = ".csv"

# Values have no size cap, so neither may a single CSV field
csv.field_size_limit(sys.maxsize)


class SequenceLog:
    """
    Append-only log holding every version of one key.

    One file per key, ``<storage_dir>/<key>.csv``, one record per line in
    write order. Records are never rewritten or removed.
    """

    def __init__(self, key: str, storage_dir: str, sync: bool = True) -> None:
        """
        Initialize the log handle. Nothing is opened until used.

        Args:
            key: The key this log belongs to. Must already be validated.
            storage_dir: Directory holding all logs.
            sync: If True, fsync after every append.
        """
        self.key = key
        self.file_path = os.path.join(storage_dir, f"{key}{LOG_EXTENSION}")
        self._sync = sync

    def exists(self) -> bool:
        return os.path.exists(self.file_path)

    def append(self, sequence: Sequence) -> None:
        """
        Append one record, creating the file if absent.

        Raises:
            ValueError: If the record belongs to another key.
            OSError: Propagated from the file system.
        """
        if sequence.key != self.key:
            raise ValueError(
                f"cannot append record for key {sequence.key!r} to log of {self.key!r}"
            )

        Path(self.file_path).parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "a", encoding="utf-8", newline="") as file:
            file.write(sequence.to_line())
            if self._sync:
                self._perform_flush(file)

    def _perform_flush(self, file: TextIO) -> None:
        """Push the write from Python user space through the OS to disk"""
        file.flush()
        # Use fdatasync if available (Linux), fallback to fsync (macOS/Windows)
        _sync_data = getattr(os, "fdatasync", os.fsync)
        _sync_data(file.fileno())

    def __iter__(self) -> Iterator[tuple[int, list[str]]]:
        """
        Iterate over raw records as (line_number, fields), front to back.

        Raises:
            FileNotFoundError: If the key has never been written.
            CorruptLogError: While iterating, if the file is not valid CSV.
        """
        return _SequenceLogIterator(self.file_path)


class _SequenceLogIterator(Iterator[tuple[int, list[str]]]):
    """Iterator over the CSV records of one log file."""

    def __init__(self, file_path: str) -> None:
        self._file_path = file_path
        self._file: TextIO | None = None
        self._file = open(file_path, "r", encoding="utf-8", newline="")
        self._reader = csv.reader(self._file)

    def __iter__(self) -> Iterator[tuple[int, list[str]]]:
        return self

    def __next__(self) -> tuple[int, list[str]]:
        if self._file is None:
            raise StopIteration

        try:
            fields = next(self._reader)
        except (csv.Error, UnicodeDecodeError) as e:
            self.close()
            raise CorruptLogError(self._file_path, self._reader.line_num, str(e)) from e
        except Exception:
            self.close()
            raise

        return self._reader.line_num, fields

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __del__(self) -> None:
        self.close()

    def __enter__(self) -> "_SequenceLogIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
