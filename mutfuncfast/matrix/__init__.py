"""Decompression and bounds-checked cell access for mutfunc matrices.

Key Features
------------
- gzip inflation with CorruptBlobError on bad input
- Offset arithmetic that never reads past the buffer
- Numba batch extraction for many substitutions on one peptide

Examples
--------
>>> from mutfuncfast.matrix import DecodedMatrix
>>> matrix = DecodedMatrix.from_blob(blob, Category.MOTIF)
>>> raw = matrix.get_record(position0=4, amino_acid='D')
"""

from .decompress import decompress_matrix

from .extraction import (
    record_offset,
    extract_records_batch,
    extract_record,
    encode_amino_acids,
    DecodedMatrix,
)

__all__ = [
    "decompress_matrix",
    "record_offset",
    "extract_records_batch",
    "extract_record",
    "encode_amino_acids",
    "DecodedMatrix",
]
