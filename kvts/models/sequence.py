"""
Sequence - one timestamped version of a key.
"""

import re
from dataclasses import dataclass

from kvts.models.exceptions import InvalidKeyError, InvalidValueError

# Characters that would let a key escape the storage directory
_FORBIDDEN_KEY_CHARS = ("/", "\\", "\x00")

# Characters that force a field to be quoted on disk
_SPECIAL_FIELD_CHARS = (",", '"', "\r", "\n")

# Signed decimal integer, nothing else
TIMESTAMP_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_timestamp(raw: str | None) -> int:
    """
    Parse a timestamp written as a signed decimal integer.

    Stricter than int(): surrounding whitespace and underscores are rejected.

    Raises:
        ValueError: If raw is not a signed decimal integer.
    """
    if raw is None or not TIMESTAMP_PATTERN.fullmatch(raw):
        raise ValueError(f"invalid timestamp: {raw!r}")
    return int(raw)


def _is_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def encode_field(field: str) -> str:
    """Quote a field CSV-style only when it holds a delimiter, quote or line break."""
    if any(char in field for char in _SPECIAL_FIELD_CHARS):
        return '"' + field.replace('"', '""') + '"'
    return field


@dataclass(frozen=True)
class Sequence:
    """
    A single (key, timestamp, value) record.

    Attributes:
        key: Identifies the logical value; groups all of its versions.
        value: Payload stored for this version.
        timestamp: Version marker. Neither unique nor monotonic per key.
    """

    key: str
    value: str
    timestamp: int

    def __post_init__(self) -> None:
        self.validate_key(self.key)
        if not isinstance(self.value, str):
            raise TypeError(f"value must be a string, got {type(self.value).__name__}")
        if not _is_utf8(self.value):
            raise InvalidValueError("value is not encodable as UTF-8")
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise TypeError(
                f"timestamp must be an integer, got {type(self.timestamp).__name__}"
            )

    @staticmethod
    def validate_key(key: str) -> None:
        """
        Check that a key is usable as a single file name component.

        Raises:
            InvalidKeyError: If the key is empty or could address another path.
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidKeyError(key, "key cannot be empty")
        if key in (".", ".."):
            raise InvalidKeyError(key, "key cannot be a relative path marker")
        for char in _FORBIDDEN_KEY_CHARS:
            if char in key:
                raise InvalidKeyError(key, f"key cannot contain {char!r}")
        if not _is_utf8(key):
            raise InvalidKeyError(key, "key is not encodable as UTF-8")

    def to_line(self) -> str:
        """
        Encode as one log line.

        Format: key,timestamp,value\\n

        Plain fields are written bare, so simple records match the legacy
        layout byte for byte.
        """
        return (
            f"{encode_field(self.key)},{self.timestamp},{encode_field(self.value)}\n"
        )
