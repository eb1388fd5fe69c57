"""
Shared pytest fixtures for storage engine tests.
"""

import os
import tempfile

import pytest
import pytest_asyncio

from kvts.engine import FileStorer, MemoryStorer
from kvts.models import Sequence, SequenceLog


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest_asyncio.fixture
async def storer(temp_dir):
    """Provide a FileStorer rooted in a fresh directory."""
    async with FileStorer(storage_dir=temp_dir) as s:
        yield s


@pytest_asyncio.fixture
async def memory_storer():
    """Provide an empty MemoryStorer."""
    async with MemoryStorer() as s:
        yield s


@pytest.fixture
def log_path(temp_dir):
    """Provide the log path of key 'my-key'."""
    return os.path.join(temp_dir, "my-key.csv")


@pytest.fixture
def sequence_log(temp_dir):
    """Provide a SequenceLog for key 'my-key'."""
    return SequenceLog(key="my-key", storage_dir=temp_dir)


@pytest.fixture
def sample_sequences():
    """Provide a small history for one key."""
    return [
        Sequence(key="my-key", value="first", timestamp=100),
        Sequence(key="my-key", value="second", timestamp=101),
        Sequence(key="my-key", value="third", timestamp=102),
    ]


@pytest.fixture
def write_raw_log(log_path):
    """Provide a function that writes raw content to the log of 'my-key'."""

    def write(content: str) -> None:
        with open(log_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    return write
