"""Keyed storage of compressed mutfunc matrices.

Provides read access to the mutfunc SQLite database, where every
translated protein (keyed by the md5 of its sequence) has one compressed
matrix per prediction category.
"""

from .blob_store import MatrixBlobStore

__all__ = [
    "MatrixBlobStore",
]
