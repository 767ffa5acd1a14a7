"""Pytest configuration for MutfuncFast tests.

This module provides common fixtures for all tests: builders for raw
records and matrices in the mutfunc binary layout, a worked example
peptide, and an on-disk SQLite database holding its matrices.
"""

import gzip
import sqlite3
import struct

import pytest

from mutfuncfast.constants import ALL_AAS, AA_INDEX_DICT
from mutfuncfast.convenience import peptide_identity
from mutfuncfast.records.schemas import Category, record_width


# =============================================================================
# Record Builders
# =============================================================================

def _ascii_field(value) -> bytes:
    """8-byte ASCII decimal field; None encodes the sentinel."""
    text = "10000000" if value is None else str(value)
    return text.encode("ascii").ljust(8)


def _uint16_field(value) -> bytes:
    return struct.pack("<H", 0xFFFF if value is None else value)


def _build_motif_record(elm="undefined", lost=None) -> bytes:
    return elm.encode("ascii").ljust(24) + _uint16_field(lost)


def _build_energy_record(
    dG_wt=None,
    ddG=None,
    dG_wt_sd=None,
    dG_mt_sd=None,
    ddG_sd=None,
) -> bytes:
    return b"".join(_ascii_field(v) for v in (dG_wt, ddG, dG_wt_sd, dG_mt_sd, ddG_sd))


def _build_interaction_record(evidence=None, **energies) -> bytes:
    return _uint16_field(evidence) + _build_energy_record(**energies)


def _empty_record(category: Category) -> bytes:
    if category is Category.MOTIF:
        return _build_motif_record()
    if category is Category.INTERACTION:
        return _build_interaction_record()
    return _build_energy_record()


def _build_matrix(category: Category, n_positions: int, cells=None) -> bytes:
    """Raw matrix; cells maps (position0, amino_acid) -> record bytes."""
    cells = cells or {}
    width = record_width(category)
    empty = _empty_record(category)

    grid = [[empty] * len(ALL_AAS) for _ in range(n_positions)]
    for (position0, aa), record in cells.items():
        assert len(record) == width, f"record for {aa} must be {width} bytes"
        grid[position0][AA_INDEX_DICT[aa]] = record

    return b"".join(b"".join(row) for row in grid)


@pytest.fixture
def motif_record():
    """Builder: motif_record(elm='undefined', lost=None) -> 26 bytes."""
    return _build_motif_record


@pytest.fixture
def energy_record():
    """Builder for 40-byte mod/exp records (None → sentinel)."""
    return _build_energy_record


@pytest.fixture
def interaction_record():
    """Builder for 42-byte int records (None → sentinel)."""
    return _build_interaction_record


@pytest.fixture
def build_matrix():
    """Builder: build_matrix(category, n_positions, cells) -> raw bytes."""
    return _build_matrix


@pytest.fixture
def build_blob():
    """Builder: like build_matrix() but gzip-compressed."""
    def _build_blob(category, n_positions, cells=None):
        return gzip.compress(_build_matrix(category, n_positions, cells))
    return _build_blob


# =============================================================================
# Worked Example
# =============================================================================

@pytest.fixture
def example_sequence():
    """Translated protein used by the worked example (22 residues)."""
    return "MKTAYIAKQRQISFVKSHFSRQ"


@pytest.fixture
def example_blobs():
    """Compressed matrices with predictions at position 5 (one-based), D.

    motif: elm=ELM000123, lost=1
    int:   evidence=EXP, dG_wt=1.20, ddG=0.80, sd fields absent
    mod:   dG_wt=-3.5, ddG=2.25, all sd fields present
    exp:   no predictions at all
    """
    n_positions = 22
    return {
        Category.MOTIF: gzip.compress(_build_matrix(
            Category.MOTIF, n_positions,
            {(4, "D"): _build_motif_record("ELM000123", 1)},
        )),
        Category.INTERACTION: gzip.compress(_build_matrix(
            Category.INTERACTION, n_positions,
            {(4, "D"): _build_interaction_record(0, dG_wt="1.20", ddG="0.80")},
        )),
        Category.MODELED_STRUCTURE: gzip.compress(_build_matrix(
            Category.MODELED_STRUCTURE, n_positions,
            {(4, "D"): _build_energy_record("-3.5", "2.25", "0.1", "0.2", "0.3")},
        )),
        Category.EXPERIMENTAL_STRUCTURE: gzip.compress(_build_matrix(
            Category.EXPERIMENTAL_STRUCTURE, n_positions,
        )),
    }


@pytest.fixture
def mutfunc_db(tmp_path, example_sequence, example_blobs):
    """SQLite database file with the example peptide's matrices."""
    db_path = tmp_path / "mutfunc_test.db"

    con = sqlite3.connect(db_path)
    con.execute("CREATE TABLE consequences (md5 TEXT, item TEXT, matrix BLOB)")
    md5 = peptide_identity(example_sequence)
    for category, blob in example_blobs.items():
        con.execute(
            "INSERT INTO consequences (md5, item, matrix) VALUES (?, ?, ?)",
            (md5, category.value, sqlite3.Binary(blob)),
        )
    con.execute(
        "INSERT INTO consequences (md5, item, matrix) VALUES (?, ?, ?)",
        (md5, "tfbs", sqlite3.Binary(b"ignored")),
    )
    con.commit()
    con.close()

    return db_path
