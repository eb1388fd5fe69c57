"""
Custom exceptions for the storage engine.
"""


class StorageError(Exception):
    """Base class for errors raised by storage backends."""


class KeyNotFoundError(StorageError):
    """
    Raised when a key has never been written.

    This is distinct from a lookup that finds the key but no record at the
    requested timestamp, which is not an error.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"key not found: {key!r}")


class CorruptTimestampError(StorageError):
    """
    Raised when a log record carries a timestamp that is not an integer.

    Aborts the whole lookup, even if a later record would have matched.
    """

    def __init__(self, key: str, line_number: int, raw: str):
        """
        Initialize corruption error.

        Args:
            key: Key whose log is corrupt.
            line_number: 1-based line of the offending record.
            raw: The unparsable timestamp field.
        """
        self.key = key
        self.line_number = line_number
        self.raw = raw
        super().__init__(
            f"corrupt timestamp {raw!r} in log for key {key!r} at line {line_number}"
        )


class InvalidKeyError(StorageError, ValueError):
    """Raised when a key cannot be used as a log file name."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"invalid key {key!r}: {reason}")


class InvalidValueError(StorageError, ValueError):
    """Raised when a value cannot be written to a log."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid value: {reason}")


class CorruptLogError(StorageError):
    """Raised when a log file cannot be decoded as CSV records."""

    def __init__(self, file_path: str, line_number: int, reason: str):
        self.file_path = file_path
        self.line_number = line_number
        super().__init__(f"corrupt log {file_path} near line {line_number}: {reason}")
