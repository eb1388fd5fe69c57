"""
LogScanner - Resolve a timestamp by scanning a key's log.
"""

import logging
from collections.abc import Callable

from kvts.models.exceptions import CorruptTimestampError, KeyNotFoundError
from kvts.models.sequence import TIMESTAMP_PATTERN
from kvts.models.sequence_log import SequenceLog

logger = logging.getLogger(__name__)


class LogScanner:
    """
    Resolves (key, timestamp) by reading a whole log front to back.

    Used on cache misses. Later records override earlier ones at the same
    timestamp, so the scan never stops at the first match.
    """

    def resolve(
        self,
        log: SequenceLog,
        timestamp: int,
        on_match: Callable[[str], None] | None = None,
    ) -> str:
        """
        Scan the log for records at an exact timestamp.

        Args:
            log: The log of the key being looked up.
            timestamp: The version to resolve.
            on_match: Called with the value of every matching record, in
                file order.

        Returns:
            Value of the last matching record, or "" if none matched.

        Raises:
            KeyNotFoundError: If the log file does not exist.
            CorruptTimestampError: On the first record whose timestamp is
                not an integer.
            CorruptLogError: If the file cannot be decoded as CSV records.
        """
        try:
            records = iter(log)
        except FileNotFoundError as e:
            raise KeyNotFoundError(log.key) from e

        result = ""
        with records:
            for line_number, fields in records:
                # Short records are structural noise, not corruption
                if len(fields) < 3:
                    logger.debug(
                        f"Skipping malformed record in {log.file_path} at line {line_number}"
                    )
                    continue

                raw_timestamp = fields[1]
                if not TIMESTAMP_PATTERN.fullmatch(raw_timestamp):
                    logger.error(
                        f"Corrupt timestamp {raw_timestamp!r} in {log.file_path} "
                        f"at line {line_number}"
                    )
                    raise CorruptTimestampError(log.key, line_number, raw_timestamp)

                if int(raw_timestamp) != timestamp:
                    continue

                # Unquoted commas in legacy values split them into extra fields
                result = ",".join(fields[2:])
                if on_match is not None:
                    on_match(result)

        return result
