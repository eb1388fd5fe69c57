"""
Storage backends.
"""

from kvts.engine.file_storer import FileStorer
from kvts.engine.memory_storer import MemoryStorer

__all__ = ["FileStorer", "MemoryStorer"]
