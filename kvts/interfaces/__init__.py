"""
Abstract base classes for storage backends.
"""

from kvts.interfaces.storer import Storer

__all__ = ["Storer"]
