"""Tests for the end-to-end decode pipeline.

Tests the convenience API that takes one-based positions and compressed
blobs and returns rendered output.
"""

import hashlib
import logging

import pandas as pd
import pytest

from mutfuncfast.convenience import (
    annotate_table,
    decode_category,
    decode_records,
    decode_substitution,
    decode_substitutions,
    peptide_identity,
    results_to_dataframe,
)
from mutfuncfast.errors import CorruptBlobError
from mutfuncfast.output import OutputTarget
from mutfuncfast.records.schemas import ALL_CATEGORIES, Category


class TestPeptideIdentity:
    """Test peptide keys."""

    def test_md5_hex(self, example_sequence):
        """Test identity is the md5 hex digest of the sequence."""
        expected = hashlib.md5(example_sequence.encode()).hexdigest()
        assert peptide_identity(example_sequence) == expected
        assert len(peptide_identity(example_sequence)) == 32

    def test_distinct_sequences(self):
        assert peptide_identity("MKT") != peptide_identity("MKA")


class TestDecodeCategory:
    """Test single-category decode."""

    def test_one_based_position(self, example_blobs):
        """Test position 5 reads row 4."""
        record = decode_category(example_blobs[Category.MOTIF], Category.MOTIF, 5, "D")
        assert record == {"elm": "ELM000123", "lost": 1}

        assert decode_category(example_blobs[Category.MOTIF], Category.MOTIF, 4, "D") is None

    def test_position_zero(self, example_blobs):
        """Test position 0 is absent, not a wrap-around read."""
        assert decode_category(example_blobs[Category.MOTIF], Category.MOTIF, 0, "D") is None

    def test_corrupt_blob_raises(self):
        """Test the low-level call propagates CorruptBlobError."""
        with pytest.raises(CorruptBlobError):
            decode_category(b"not gzip", Category.MOTIF, 5, "D")


class TestDecodeSubstitution:
    """Test the worked examples end to end."""

    def test_motif_compact_flat_text(self, example_blobs):
        """Test compact/flat text motif output."""
        blobs = {Category.MOTIF: example_blobs[Category.MOTIF]}
        assert decode_substitution(blobs, 5, "D") == {"mutfunc_motif": "1"}

    def test_motif_extended_structured(self, example_blobs):
        """Test extended/structured motif output."""
        blobs = {Category.MOTIF: example_blobs[Category.MOTIF]}
        rendered = decode_substitution(
            blobs, 5, "D", extended=True, target=OutputTarget.STRUCTURED,
        )
        assert rendered == {"motif": {"elm": "ELM000123", "lost": 1}}

    def test_interaction_extended(self, example_blobs):
        """Test evidence, energies and derived dG_mt for interaction."""
        blobs = {Category.INTERACTION: example_blobs[Category.INTERACTION]}
        rendered = decode_substitution(
            blobs, 5, "D", extended=True, target=OutputTarget.STRUCTURED,
        )

        fields = rendered["int"]
        assert fields["evidence"] == "EXP"
        assert fields["dG_wt"] == 1.2
        assert fields["dG_mt"] == pytest.approx(2.0)
        assert fields["ddG"] == 0.8
        assert fields["dG_wt_sd"] is None
        assert fields["dG_mt_sd"] is None
        assert fields["ddG_sd"] is None

    def test_all_categories_flat_text(self, example_blobs):
        """Test all categories together; empty exp is omitted."""
        rendered = decode_substitution(example_blobs, 5, "D", extended=True, delimiter="&")
        assert rendered == {
            "mutfunc_motif": "ELM000123&1",
            "mutfunc_int": "EXP&1.2&2&0.8&&&",
            "mutfunc_mod": "-3.5&-1.25&2.25&0.1&0.2&0.3",
        }

    def test_all_categories_compact_structured(self, example_blobs):
        """Test compact structured output for every category."""
        rendered = decode_substitution(
            example_blobs, 5, "D", target=OutputTarget.STRUCTURED,
        )
        assert rendered == {
            "motif": {"lost": 1},
            "int": {"ddG": 0.8},
            "mod": {"ddG": 2.25},
        }

    def test_non_canonical_amino_acid(self, example_blobs):
        """Test 'X' yields {} for every category without error."""
        for position in (1, 5, 22, 1000):
            assert decode_substitution(example_blobs, position, "X") == {}

    def test_non_canonical_skips_decompression(self):
        """Test non-canonical amino acid never touches the blobs."""
        blobs = {Category.MOTIF: b"corrupt"}
        assert decode_substitution(blobs, 5, "*") == {}

    def test_no_prediction_cell(self, example_blobs):
        """Test a cell without predictions yields {}."""
        assert decode_substitution(example_blobs, 5, "E") == {}

    def test_out_of_range_position(self, example_blobs):
        """Test a position past the matrix yields {}."""
        assert decode_substitution(example_blobs, 23, "D") == {}

    def test_huge_position(self, build_blob, motif_record):
        """Test a position whose row offset overflows int64 yields {}."""
        blob = build_blob(Category.MOTIF, 3, {(0, "A"): motif_record("ELM_ROW0", 1)})
        blobs = {Category.MOTIF: blob}

        assert decode_substitution(blobs, 1, "A", extended=True) == {
            "mutfunc_motif": "ELM_ROW0,1",
        }
        assert decode_substitution(blobs, 2**61 + 1, "A", extended=True) == {}
        assert decode_substitutions(blobs, [2**61 + 1, 2**70], ["A", "A"]) == [{}, {}]

    def test_missing_blobs(self):
        """Test missing blobs are silent absence."""
        blobs = {c: None for c in ALL_CATEGORIES}
        assert decode_substitution(blobs, 5, "D") == {}

    def test_corrupt_blob_is_isolated(self, example_blobs, caplog):
        """Test one corrupt category does not stop the others."""
        blobs = dict(example_blobs)
        blobs[Category.INTERACTION] = b"\x1f\x8b broken"

        with caplog.at_level(logging.WARNING, logger="mutfuncfast.convenience"):
            rendered = decode_substitution(blobs, 5, "D")

        assert rendered == {"mutfunc_motif": "1", "mutfunc_mod": "2.25"}
        assert any("int" in message for message in caplog.messages)

    def test_absence_is_not_logged(self, example_blobs, caplog):
        """Test absence does not log warnings."""
        with caplog.at_level(logging.WARNING):
            decode_substitution(example_blobs, 5, "X")
            decode_substitution(example_blobs, 500, "D")
            decode_substitution({Category.MOTIF: None}, 5, "D")
        assert caplog.records == []

    def test_decode_records(self, example_blobs):
        """Test per-category records before field selection."""
        records = decode_records(example_blobs, 5, "D")
        assert records[Category.EXPERIMENTAL_STRUCTURE] is None
        assert records[Category.MODELED_STRUCTURE]["dG_mt"] == pytest.approx(-1.25)


class TestDecodeSubstitutions:
    """Test batch decoding on one peptide."""

    def test_matches_single(self, example_blobs):
        """Test batch output equals per-substitution output."""
        positions = [5, 5, 4, 0, 30, 5]
        amino_acids = ["D", "E", "D", "D", "D", "X"]

        batch = decode_substitutions(example_blobs, positions, amino_acids, extended=True)
        single = [
            decode_substitution(example_blobs, p, aa, extended=True)
            for p, aa in zip(positions, amino_acids)
        ]

        assert batch == single
        assert batch[0]["mutfunc_motif"] == "ELM000123,1"
        assert all(out == {} for out in batch[1:])

    def test_corrupt_blob_is_isolated(self, example_blobs):
        """Test batch decoding isolates a corrupt category."""
        blobs = dict(example_blobs)
        blobs[Category.MOTIF] = b"garbage"

        batch = decode_substitutions(blobs, [5], ["D"])
        assert batch == [{"mutfunc_int": "0.8", "mutfunc_mod": "2.25"}]

    def test_length_mismatch(self, example_blobs):
        with pytest.raises(ValueError):
            decode_substitutions(example_blobs, [1, 2], ["D"])

    def test_empty(self, example_blobs):
        assert decode_substitutions(example_blobs, [], []) == []


class _DictStore:
    """In-memory stand-in with the MatrixBlobStore.fetch_all interface."""

    def __init__(self, blobs_by_peptide):
        self.blobs_by_peptide = blobs_by_peptide
        self.calls = []

    def fetch_all(self, peptide_id):
        self.calls.append(peptide_id)
        return self.blobs_by_peptide.get(peptide_id, {})


class TestAnnotateTable:
    """Test tabular annotation with pandas."""

    def test_annotate_table(self, example_sequence, example_blobs):
        """Test columns per category and one fetch per peptide."""
        known = peptide_identity(example_sequence)
        store = _DictStore({known: example_blobs})

        variants = pd.DataFrame({
            "peptide_id": [known, known, "unknown", known],
            "protein_position": [5, 6, 5, 5],
            "amino_acid": ["D", "D", "D", "X"],
        }, index=[10, 11, 12, 13])

        annotated = annotate_table(
            variants, store, [Category.MOTIF, Category.INTERACTION], extended=False,
        )

        assert annotated["mutfunc_motif"].tolist() == ["1", None, None, None]
        assert annotated["mutfunc_int"].tolist() == ["0.8", None, None, None]
        assert list(annotated.index) == [10, 11, 12, 13]
        assert sorted(store.calls) == sorted([known, "unknown"])
        assert "mutfunc_motif" not in variants.columns
        assert annotated["mutfunc_motif"].dtype == object

    def test_missing_position_gives_no_prediction(self, example_sequence, example_blobs):
        """Test rows without a position stay unannotated; others still are."""
        known = peptide_identity(example_sequence)
        store = _DictStore({known: example_blobs})

        variants = pd.DataFrame({
            "peptide_id": [known, known, known],
            "protein_position": [5, None, 5],
            "amino_acid": ["D", "D", "A"],
        })

        annotated = annotate_table(variants, store, [Category.MOTIF])

        assert annotated["mutfunc_motif"].tolist() == ["1", None, None]
        assert annotated["mutfunc_motif"].dtype == object

    def test_missing_column(self, example_blobs):
        """Test missing input column raises ValueError."""
        variants = pd.DataFrame({"peptide_id": ["a"], "protein_position": [1]})
        with pytest.raises(ValueError, match="amino_acid"):
            annotate_table(variants, _DictStore({}), [Category.MOTIF])

    def test_gzip_round_trip_blob(self, build_blob, motif_record):
        """Test annotate_table on a freshly built blob."""
        blob = build_blob(Category.MOTIF, 2, {(1, "Y"): motif_record("ELM9", 0)})
        store = _DictStore({"p": {Category.MOTIF: blob}})
        variants = pd.DataFrame({
            "peptide_id": ["p"], "protein_position": [2], "amino_acid": ["Y"],
        })

        annotated = annotate_table(variants, store, [Category.MOTIF], extended=True)
        assert annotated["mutfunc_motif"].tolist() == ["ELM9,0"]


class TestResultsToDataframe:
    """Test tabulating rendered outputs."""

    def test_flat_text(self, example_blobs):
        """Test flat text outputs keep one column per category."""
        rendered = decode_substitutions(example_blobs, [5, 6], ["D", "D"])
        table = results_to_dataframe(rendered)

        assert list(table.columns) == ["mutfunc_motif", "mutfunc_int", "mutfunc_mod"]
        assert table["mutfunc_motif"].tolist() == ["1", None]
        assert table["mutfunc_mod"].tolist() == ["2.25", None]

    def test_structured_is_flattened(self, example_blobs):
        """Test structured outputs become one column per field."""
        rendered = decode_substitutions(
            example_blobs, [6, 5], ["D", "D"],
            extended=True, target=OutputTarget.STRUCTURED,
        )
        table = results_to_dataframe(rendered)

        assert list(table.columns[:2]) == ["mutfunc_motif_elm", "mutfunc_motif_lost"]
        assert table["mutfunc_motif_lost"].tolist() == [None, 1]
        assert table["mutfunc_int_evidence"].tolist() == [None, "EXP"]
        assert table.loc[1, "mutfunc_int_dG_mt"] == pytest.approx(2.0)
        assert table.loc[1, "mutfunc_int_ddG_sd"] is None

    def test_empty(self):
        """Test no outputs gives an empty table."""
        table = results_to_dataframe([])
        assert len(table) == 0
        assert list(table.columns) == []
