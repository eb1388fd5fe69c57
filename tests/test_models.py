"""
Tests for data models: Sequence, SequenceCache, SequenceLog.
"""

import os
import threading

import pytest

from kvts.models import (
    CorruptLogError,
    InvalidKeyError,
    InvalidValueError,
    Sequence,
    SequenceCache,
    SequenceLog,
)
from kvts.models.sequence import encode_field, parse_timestamp


class TestSequence:
    """Tests for Sequence."""

    def test_sequence_creation(self):
        """Test creating a record."""
        sequence = Sequence(key="my-key", value="My Value", timestamp=101)
        assert sequence.key == "my-key"
        assert sequence.value == "My Value"
        assert sequence.timestamp == 101

    def test_sequence_is_immutable(self):
        """Test that a record cannot be changed after creation."""
        sequence = Sequence(key="my-key", value="v", timestamp=1)
        with pytest.raises(AttributeError):
            sequence.value = "other"

    def test_empty_value_allowed(self):
        """Test that an empty value is a legal payload."""
        assert Sequence(key="k", value="", timestamp=1).value == ""

    @pytest.mark.parametrize("key", ["", "   ", ".", "..", "a/b", "a\\b", "a\x00b"])
    def test_invalid_keys_rejected(self, key):
        """Test keys that cannot name a single file are rejected."""
        with pytest.raises(InvalidKeyError):
            Sequence(key=key, value="v", timestamp=1)

    def test_invalid_key_is_value_error(self):
        """Test InvalidKeyError can be handled as a ValueError."""
        with pytest.raises(ValueError):
            Sequence.validate_key("../etc")

    def test_timestamp_must_be_int(self):
        """Test non-integer timestamps are rejected."""
        with pytest.raises(TypeError):
            Sequence(key="k", value="v", timestamp="101")
        with pytest.raises(TypeError):
            Sequence(key="k", value="v", timestamp=True)

    def test_value_must_be_str(self):
        """Test non-string values are rejected."""
        with pytest.raises(TypeError):
            Sequence(key="k", value=42, timestamp=1)

    def test_plain_line_format(self):
        """Test simple records encode as bare key,timestamp,value lines."""
        sequence = Sequence(key="my-key", value="My Value", timestamp=101)
        assert sequence.to_line() == "my-key,101,My Value\n"

    def test_negative_timestamp_line(self):
        """Test negative timestamps are written as signed integers."""
        sequence = Sequence(key="k", value="v", timestamp=-5)
        assert sequence.to_line() == "k,-5,v\n"

    def test_special_characters_quoted(self):
        """Test values with delimiters are quoted CSV-style."""
        sequence = Sequence(key="k", value='a,b "c"\nd', timestamp=1)
        assert sequence.to_line() == 'k,1,"a,b ""c""\nd"\n'

    def test_surrogate_value_rejected(self):
        """Test values that cannot be written as UTF-8 are rejected."""
        with pytest.raises(InvalidValueError):
            Sequence(key="k", value="\ud800", timestamp=1)

    def test_surrogate_key_rejected(self):
        """Test keys that cannot be written as UTF-8 are rejected."""
        with pytest.raises(InvalidKeyError):
            Sequence(key="k\udfff", value="v", timestamp=1)

    @pytest.mark.parametrize("raw, expected", [("101", 101), ("-5", -5), ("+7", 7), ("0", 0)])
    def test_parse_timestamp(self, raw, expected):
        """Test signed decimal timestamps parse."""
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", " 12", "12 ", "1_000", "1.5", "0x10", "abc"])
    def test_parse_timestamp_rejects(self, raw):
        """Test forms int() would accept or that are not integers are rejected."""
        with pytest.raises(ValueError):
            parse_timestamp(raw)

    def test_encode_field(self):
        """Test field quoting is applied only when needed."""
        assert encode_field("plain") == "plain"
        assert encode_field("with,comma") == '"with,comma"'
        assert encode_field("carriage\rreturn") == '"carriage\rreturn"'


class TestSequenceCache:
    """Tests for SequenceCache."""

    def test_put_and_get(self):
        """Test storing and retrieving a pair."""
        cache = SequenceCache()
        cache.put("k", 1, "v")
        assert cache.get("k", 1) == "v"
        assert len(cache) == 1

    def test_miss_returns_none(self):
        """Test a missing pair returns None."""
        cache = SequenceCache()
        cache.put("k", 1, "v")
        assert cache.get("k", 2) is None
        assert cache.get("other", 1) is None

    def test_empty_value_is_a_hit(self):
        """Test an empty cached value is distinguishable from a miss."""
        cache = SequenceCache()
        cache.put("k", 1, "")
        assert cache.get("k", 1) == ""

    def test_overwrite(self):
        """Test later puts replace earlier ones."""
        cache = SequenceCache()
        cache.put("k", 1, "old")
        cache.put("k", 1, "new")
        assert cache.get("k", 1) == "new"
        assert len(cache) == 1

    def test_keys_do_not_collide(self):
        """Test keys that would collide when joined as strings stay apart."""
        cache = SequenceCache()
        cache.put("a_1", 2, "first")
        cache.put("a", 12, "second")
        assert cache.get("a_1", 2) == "first"
        assert cache.get("a", 12) == "second"

    def test_clear(self):
        """Test clearing empties the cache."""
        cache = SequenceCache()
        cache.put("k", 1, "v")
        cache.clear()
        assert len(cache) == 0
        assert cache.get("k", 1) is None

    def test_concurrent_puts(self):
        """Test puts from many threads are all kept."""
        cache = SequenceCache()

        def writer(thread_id: int) -> None:
            for i in range(200):
                cache.put(f"t{thread_id}", i, f"v{i}")

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 8 * 200


class TestSequenceLog:
    """Tests for SequenceLog."""

    def test_log_path(self, temp_dir, sequence_log):
        """Test the log lives at <dir>/<key>.csv."""
        assert sequence_log.file_path == os.path.join(temp_dir, "my-key.csv")

    def test_append_creates_file(self, sequence_log, log_path):
        """Test the first append creates the log."""
        assert not sequence_log.exists()
        sequence_log.append(Sequence(key="my-key", value="My Value", timestamp=101))

        assert sequence_log.exists()
        with open(log_path, encoding="utf-8") as f:
            assert f.read() == "my-key,101,My Value\n"

    def test_append_preserves_order(self, sequence_log, sample_sequences, log_path):
        """Test records are kept in write order."""
        for sequence in sample_sequences:
            sequence_log.append(sequence)

        with open(log_path, encoding="utf-8") as f:
            lines = f.read().splitlines()
        assert lines == ["my-key,100,first", "my-key,101,second", "my-key,102,third"]

    def test_append_without_sync(self, temp_dir, log_path):
        """Test appends still land on disk with fsync disabled."""
        log = SequenceLog(key="my-key", storage_dir=temp_dir, sync=False)
        log.append(Sequence(key="my-key", value="v", timestamp=1))

        with open(log_path, encoding="utf-8") as f:
            assert f.read() == "my-key,1,v\n"

    def test_append_rejects_other_key(self, sequence_log):
        """Test a record cannot be appended to another key's log."""
        with pytest.raises(ValueError):
            sequence_log.append(Sequence(key="other", value="v", timestamp=1))

    def test_iterate_records(self, sequence_log, sample_sequences):
        """Test iteration yields line numbers and raw fields."""
        for sequence in sample_sequences:
            sequence_log.append(sequence)

        records = list(sequence_log)
        assert records == [
            (1, ["my-key", "100", "first"]),
            (2, ["my-key", "101", "second"]),
            (3, ["my-key", "102", "third"]),
        ]

    def test_iterate_quoted_value(self, sequence_log):
        """Test values with commas and newlines read back as one field."""
        sequence_log.append(Sequence(key="my-key", value="a,b\nc", timestamp=1))

        records = list(sequence_log)
        assert len(records) == 1
        assert records[0][1] == ["my-key", "1", "a,b\nc"]

    def test_iterate_missing_file(self, sequence_log):
        """Test iterating a log that was never written fails."""
        with pytest.raises(FileNotFoundError):
            iter(sequence_log)

    def test_iterate_large_value(self, sequence_log):
        """Test fields beyond the csv module's default size limit read back."""
        value = "x" * 200_000
        sequence_log.append(Sequence(key="my-key", value=value, timestamp=1))

        records = list(sequence_log)
        assert records == [(1, ["my-key", "1", value])]

    def test_iterate_undecodable_bytes(self, sequence_log, log_path):
        """Test bytes that are not UTF-8 surface as a corrupt log."""
        with open(log_path, "wb") as f:
            f.write(b"my-key,1,\xff\xfe\n")

        with pytest.raises(CorruptLogError):
            list(sequence_log)
