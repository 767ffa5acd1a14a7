"""Inflate gzip-compressed mutfunc matrix blobs.

Each blob holds one peptide's [position × amino acid] grid for a single
category, flattened row-major and gzip-compressed. Inflation is pure and
may be called concurrently on independent blobs.
"""

import gzip
import zlib

from ..errors import CorruptBlobError


def decompress_matrix(blob: bytes) -> bytes:
    """Inflate a compressed matrix blob into its flat byte buffer.

    Parameters
    ----------
    blob : bytes
        gzip-compressed matrix as stored in the database

    Returns
    -------
    bytes
        Raw matrix buffer (rows = positions, 20 cells per row)

    Raises
    ------
    CorruptBlobError
        If the blob is empty, truncated, or not a gzip stream

    Examples
    --------
    >>> import gzip
    >>> decompress_matrix(gzip.compress(b"abc"))
    b'abc'
    """
    if not blob:
        raise CorruptBlobError("Failed to gunzip: empty blob")

    try:
        return gzip.decompress(bytes(blob))
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptBlobError(f"Failed to gunzip: {e}") from e
