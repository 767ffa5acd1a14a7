"""Amino acid index, record layouts and sentinels for mutfunc matrices.

This module provides all fixed constants used to address and decode the
packed mutfunc prediction matrices. Every value here mirrors the on-disk
format written by the mutfunc database build and must not be changed
without regenerating the data.

Constants are provided in both dictionary and ord()-indexed array formats
for compatibility with both standard Python and Numba JIT-compiled code.

Key Features
------------
- Fixed column order of the 20 canonical amino acids (A C D E ... W Y)
- ord()-indexed AA_INDEX array (-1 for non-canonical letters)
- Record widths per prediction category (26 / 42 / 40 / 40 bytes)
- Null sentinels for ASCII, 16-bit and text fields
- Output keys and delimiters for text and VCF targets
"""

import numpy as np

# =============================================================================
# Amino Acid Column Order
# =============================================================================

# Column order of the matrix grid (alphabetical by one-letter code)
# Matrix row = sequence position, column = substituted amino acid
ALL_AAS = (
    'A', 'C', 'D', 'E', 'F', 'G', 'H', 'I', 'K', 'L',
    'M', 'N', 'P', 'Q', 'R', 'S', 'T', 'V', 'W', 'Y',
)

N_AMINO_ACIDS = len(ALL_AAS)  # 20

AA_INDEX_DICT = {aa: idx for idx, aa in enumerate(ALL_AAS)}

# =============================================================================
# ord()-Indexed Array for Numba
# =============================================================================

# Access via: AA_INDEX[ord('D')] → 2
# Any letter outside the canonical 20 (X, B, Z, U, O, *, lowercase) maps to -1
AA_INDEX = np.full(256, -1, dtype=np.int8)

for aa, idx in AA_INDEX_DICT.items():
    AA_INDEX[ord(aa)] = idx

# =============================================================================
# Record Layouts (bytes)
# =============================================================================

# Fixed-width ASCII decimal field, e.g. b"1.20    "
ASCII_FIELD_WIDTH = 8

# Little-endian unsigned 16-bit field
UINT16_FIELD_WIDTH = 2

# Motif accession text field, e.g. b"ELM000123" padded to 24
ELM_FIELD_WIDTH = 24

# Motif: elm (24) + lost (2)
MOTIF_RECORD_WIDTH = ELM_FIELD_WIDTH + UINT16_FIELD_WIDTH  # 26

# Structure: dG_wt, ddG, dG_wt_sd, dG_mt_sd, ddG_sd (5 × 8)
STRUCTURE_RECORD_WIDTH = 5 * ASCII_FIELD_WIDTH  # 40

# Interaction: evidence (2) + structure layout (40)
INTERACTION_RECORD_WIDTH = UINT16_FIELD_WIDTH + STRUCTURE_RECORD_WIDTH  # 42

# =============================================================================
# Null Sentinels
# =============================================================================

# 8-character literal used for "no value" in every ASCII decimal field
ASCII_NULL_SENTINEL = "10000000"

# 16-bit value used for "no value" in lost / evidence
UINT16_NULL_SENTINEL = 0xFFFF

# Literal used for "no motif" in the elm text field
ELM_NULL_SENTINEL = "undefined"

# Perl-style 'A' unpack: trailing whitespace and NUL padding are not data
FIELD_PADDING = b" \t\n\r\f\v\x00"

# =============================================================================
# Interaction Evidence Codes
# =============================================================================

EVIDENCE_LABELS = {
    0: 'EXP',  # Experimental structure of the complex
    1: 'MDD',  # Domain-domain homology model
    2: 'MDL',  # Homology model
}

# =============================================================================
# Output Settings
# =============================================================================

# Prefix of flat text output keys: mutfunc_motif, mutfunc_int, ...
OUTPUT_KEY_PREFIX = "mutfunc_"

# Top-level key wrapping structured (JSON / REST) output
STRUCTURED_OUTPUT_KEY = "mutfunc"

# Field delimiter in flat text output
TEXT_DELIMITER = ","
VCF_DELIMITER = "&"

# Output formats rendered as structured mappings
STRUCTURED_OUTPUT_FORMATS = ("json",)

# Float rendering in flat text output (matches Perl number stringification)
FLOAT_SIGNIFICANT_DIGITS = 15


def aa_to_index(amino_acid: str) -> int:
    """Return the matrix column of a one-letter amino acid code.

    Parameters
    ----------
    amino_acid : str
        Single-letter amino acid code

    Returns
    -------
    int
        Column index 0-19, or -1 if the letter is not one of the
        20 canonical amino acids

    Examples
    --------
    >>> aa_to_index('A')
    0
    >>> aa_to_index('D')
    2
    >>> aa_to_index('X')
    -1
    """
    return AA_INDEX_DICT.get(amino_acid, -1)


def validate_constants():
    """Validate that record layouts are self-consistent.

    Raises AssertionError if any layout constant disagrees with the others.
    This is a sanity check to catch copy-paste errors or typos.
    """
    assert N_AMINO_ACIDS == 20, f"Expected 20 amino acids, got {N_AMINO_ACIDS}"
    assert len(set(ALL_AAS)) == 20, "Duplicate amino acid in ALL_AAS"
    assert MOTIF_RECORD_WIDTH == 26, f"MOTIF_RECORD_WIDTH is wrong: {MOTIF_RECORD_WIDTH}"
    assert INTERACTION_RECORD_WIDTH == 42, \
        f"INTERACTION_RECORD_WIDTH is wrong: {INTERACTION_RECORD_WIDTH}"
    assert STRUCTURE_RECORD_WIDTH == 40, \
        f"STRUCTURE_RECORD_WIDTH is wrong: {STRUCTURE_RECORD_WIDTH}"
    assert len(ASCII_NULL_SENTINEL) == ASCII_FIELD_WIDTH, \
        "ASCII sentinel must fill the whole field"

    for aa, idx in AA_INDEX_DICT.items():
        assert AA_INDEX[ord(aa)] == idx, f"AA_INDEX mismatch for {aa}"
