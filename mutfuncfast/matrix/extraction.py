"""Bounds-checked record extraction from decoded mutfunc matrices.

A decoded matrix is a flat byte buffer laid out row-major as
[position × amino acid], each cell holding one fixed-width record::

    offset = position0 * 20 * record_width + aa_index * record_width

Design principles:
1. Never read past the buffer: a cell that does not fit is absent
2. Non-canonical amino acids short-circuit before any offset arithmetic
3. Flat uint8 storage, Numba-accelerated batch access
4. Thread-safe (read-only after construction)
"""

from typing import Optional, Sequence, Tuple

import numba
import numpy as np

from ..constants import AA_INDEX, N_AMINO_ACIDS, aa_to_index
from ..records.schemas import Category, record_width
from .decompress import decompress_matrix


# =============================================================================
# Numba-Accelerated Offset Arithmetic
# =============================================================================

@numba.jit(nopython=True, cache=True)
def record_offset(
    n_bytes: int,
    position0: int,
    aa_index: int,
    record_width: int,
) -> int:
    """Byte offset of a matrix cell, or -1 if the cell is not readable.

    Parameters
    ----------
    n_bytes : int
        Length of the decoded matrix buffer
    position0 : int
        Zero-based sequence position (matrix row)
    aa_index : int
        Amino acid column (0-19), -1 for non-canonical
    record_width : int
        Bytes per cell for the category

    Returns
    -------
    offset : int
        Start of the record, or -1 when the amino acid is non-canonical,
        the position is negative, or offset + record_width > n_bytes

    Examples
    --------
    >>> record_offset(26 * 20 * 10, 4, 2, 26)
    2132
    >>> record_offset(26 * 20, 1, 0, 26)
    -1
    """
    if aa_index < 0 or aa_index >= 20:
        return -1
    if position0 < 0 or record_width <= 0:
        return -1
    # Bound the row before multiplying: position0 * row_width can overflow int64
    if position0 > n_bytes // (20 * record_width):
        return -1

    offset = position0 * 20 * record_width + aa_index * record_width
    if offset + record_width > n_bytes:
        return -1

    return offset


@numba.jit(nopython=True, cache=True)
def extract_records_batch(
    flat: np.ndarray,
    positions0: np.ndarray,
    aa_indices: np.ndarray,
    record_width: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Extract many cells from one decoded matrix (Numba-compiled).

    Parameters
    ----------
    flat : np.ndarray (uint8)
        Decoded matrix buffer
    positions0 : np.ndarray (int64)
        Zero-based positions, one per query
    aa_indices : np.ndarray (int64)
        Amino acid columns, one per query (-1 for non-canonical)
    record_width : int
        Bytes per cell for the category

    Returns
    -------
    records : np.ndarray (uint8, shape [n_queries, record_width])
        Record bytes; rows of invalid queries are zero-filled
    valid : np.ndarray (bool)
        True where the query addressed a readable cell

    Performance
    -----------
    O(n_queries × record_width), no per-query allocation
    """
    n_queries = len(positions0)
    n_bytes = len(flat)

    records = np.zeros((n_queries, record_width), dtype=np.uint8)
    valid = np.zeros(n_queries, dtype=np.bool_)

    for i in range(n_queries):
        offset = record_offset(n_bytes, positions0[i], aa_indices[i], record_width)
        if offset < 0:
            continue

        for j in range(record_width):
            records[i, j] = flat[offset + j]
        valid[i] = True

    return records, valid


# =============================================================================
# Python Wrappers
# =============================================================================

def extract_record(
    buffer: bytes,
    category: Category,
    position0: int,
    amino_acid: str,
) -> Optional[bytes]:
    """Return the record bytes for one cell, or None if absent.

    Parameters
    ----------
    buffer : bytes
        Decoded matrix buffer (see decompress_matrix())
    category : Category
        Prediction category (selects the record width)
    position0 : int
        Zero-based sequence position (protein position - 1)
    amino_acid : str
        Substituted one-letter amino acid

    Returns
    -------
    Optional[bytes]
        Exactly record_width bytes, or None for a non-canonical amino
        acid or an out-of-range cell

    Examples
    --------
    >>> buffer = bytes(26 * 20 * 5)  # 5 positions of motif records
    >>> len(extract_record(buffer, Category.MOTIF, 4, 'D'))
    26
    >>> extract_record(buffer, Category.MOTIF, 5, 'D') is None
    True
    >>> extract_record(buffer, Category.MOTIF, 4, 'X') is None
    True
    """
    aa_index = aa_to_index(amino_acid)
    if aa_index < 0:
        return None

    width = record_width(category)
    if not _row_in_range(position0, len(buffer), width):
        return None

    offset = record_offset(len(buffer), position0, aa_index, width)
    if offset < 0:
        return None

    return bytes(buffer[offset:offset + width])


def _row_in_range(position0: int, n_bytes: int, width: int) -> bool:
    return 0 <= position0 <= n_bytes // (N_AMINO_ACIDS * width)


def encode_amino_acids(amino_acids: Sequence[str]) -> np.ndarray:
    """Map one-letter codes to matrix columns (-1 for non-canonical).

    Examples
    --------
    >>> encode_amino_acids(['A', 'D', 'X'])
    array([ 0,  2, -1])
    """
    codes = np.array(
        [ord(aa) if isinstance(aa, str) and len(aa) == 1 and ord(aa) < 256 else 0
         for aa in amino_acids],
        dtype=np.int64,
    )
    return AA_INDEX[codes].astype(np.int64)


class DecodedMatrix:
    """Flat uint8 view of one peptide's decoded matrix for one category.

    Attributes
    ----------
    category : Category
        Prediction category of the matrix
    record_width : int
        Bytes per cell
    flat : np.ndarray (uint8)
        Decoded buffer (read-only view)
    n_positions : int
        Number of complete rows (sequence positions)

    Examples
    --------
    >>> matrix = DecodedMatrix.from_blob(blob, Category.INTERACTION)
    >>> raw = matrix.get_record(position0=4, amino_acid='D')
    """

    def __init__(self, buffer: bytes, category: Category):
        self.category = category
        self.record_width = record_width(category)
        self.flat = np.frombuffer(buffer, dtype=np.uint8)
        self.n_positions = len(self.flat) // (N_AMINO_ACIDS * self.record_width)

    @classmethod
    def from_blob(cls, blob: bytes, category: Category) -> 'DecodedMatrix':
        """Inflate a compressed blob and wrap it (raises CorruptBlobError)."""
        return cls(decompress_matrix(blob), category)

    def __len__(self) -> int:
        return self.n_positions

    @property
    def n_bytes(self) -> int:
        return len(self.flat)

    def get_record(self, position0: int, amino_acid: str) -> Optional[bytes]:
        """Record bytes for one cell, or None if absent."""
        aa_index = aa_to_index(amino_acid)
        if aa_index < 0:
            return None

        if not _row_in_range(position0, self.n_bytes, self.record_width):
            return None

        offset = record_offset(self.n_bytes, position0, aa_index, self.record_width)
        if offset < 0:
            return None

        return self.flat[offset:offset + self.record_width].tobytes()

    def get_records(
        self,
        positions0: Sequence[int],
        amino_acids: Sequence[str],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Batch form of get_record(); see extract_records_batch()."""
        if len(positions0) != len(amino_acids):
            raise ValueError(
                f"positions0 and amino_acids differ in length: "
                f"{len(positions0)} vs {len(amino_acids)}"
            )

        # Rows outside the matrix, including ones beyond int64, map to -1
        rows = np.array(
            [p if _row_in_range(p, self.n_bytes, self.record_width) else -1
             for p in positions0],
            dtype=np.int64,
        )
        return extract_records_batch(
            self.flat,
            rows,
            encode_amino_acids(amino_acids),
            self.record_width,
        )
