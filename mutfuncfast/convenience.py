"""Convenience wrapper functions for easy-to-use API.

This module chains the low-level pieces (decompression, extraction,
parsing, field selection, rendering) into single calls that take a
protein position, a substituted amino acid and the compressed matrices
of the requested categories.

Use these functions when you want a simple API without worrying about:
- zero-based vs one-based positions
- amino acid column lookup
- per-category error isolation
- output mode selection

Examples
--------
>>> blobs = store.fetch_all(peptide_identity(translation))
>>> decode_substitution(blobs, position=5, amino_acid='D')
{'mutfunc_motif': '1'}

>>> decode_substitution(blobs, position=5, amino_acid='D', extended=True,
...                     target=OutputTarget.STRUCTURED)
{'motif': {'elm': 'ELM000123', 'lost': 1}}
"""

import hashlib
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .constants import OUTPUT_KEY_PREFIX, TEXT_DELIMITER, aa_to_index
from .errors import DecodeError
from .matrix.decompress import decompress_matrix
from .matrix.extraction import DecodedMatrix, extract_record
from .output.assembly import assemble_results
from .output.formatting import OutputTarget, format_results
from .records.parser import Record, parse_prediction
from .records.schemas import ALL_CATEGORIES, Category

logger = logging.getLogger(__name__)


# =============================================================================
# Peptide Identity
# =============================================================================

def peptide_identity(sequence: str) -> str:
    """Key of a translated protein sequence in the matrix database.

    Parameters
    ----------
    sequence : str
        Translated amino acid sequence (as produced by the transcript
        translation, without the stop character)

    Returns
    -------
    str
        Lowercase hex md5 digest of the sequence

    Examples
    --------
    >>> key = peptide_identity("MKTAYIAKQR")
    >>> len(key)
    32
    """
    return hashlib.md5(sequence.encode("ascii")).hexdigest()


# =============================================================================
# Single Substitution
# =============================================================================

def decode_category(
    blob: bytes,
    category: Category,
    position: int,
    amino_acid: str,
) -> Optional[Record]:
    """Decode one category's prediction for a substitution.

    Parameters
    ----------
    blob : bytes
        Compressed matrix of the peptide for this category
    category : Category
        Prediction category
    position : int
        One-based protein position
    amino_acid : str
        Substituted one-letter amino acid

    Returns
    -------
    Optional[Record]
        Parsed record, or None when there is no prediction

    Raises
    ------
    DecodeError
        If the blob cannot be inflated or the record is malformed
    """
    buffer = decompress_matrix(blob)
    raw = extract_record(buffer, category, position - 1, amino_acid)
    return parse_prediction(raw, category)


def decode_records(
    blobs: Mapping[Category, Optional[bytes]],
    position: int,
    amino_acid: str,
) -> Dict[Category, Optional[Record]]:
    """Decode every requested category, isolating failures.

    A category whose blob is missing yields None silently. A category
    whose blob fails to decode yields None and logs a warning; the other
    categories are still decoded.
    """
    records: Dict[Category, Optional[Record]] = {}

    for category, blob in blobs.items():
        if blob is None:
            records[category] = None
            continue

        try:
            records[category] = decode_category(blob, category, position, amino_acid)
        except DecodeError as e:
            logger.warning(f"Skipping mutfunc {category.value} matrix: {e}")
            records[category] = None

    return records


def decode_substitution(
    blobs: Mapping[Category, Optional[bytes]],
    position: int,
    amino_acid: str,
    extended: bool = False,
    target: OutputTarget = OutputTarget.FLAT_TEXT,
    delimiter: str = TEXT_DELIMITER,
) -> Dict[str, Any]:
    """Decode and render all requested categories for one substitution.

    Parameters
    ----------
    blobs : Mapping[Category, Optional[bytes]]
        Compressed matrix per requested category (None if not stored)
    position : int
        One-based protein position
    amino_acid : str
        Substituted one-letter amino acid
    extended : bool, default=False
        Full field list (True) or summary field only (False)
    target : OutputTarget, default=FLAT_TEXT
        Rendering target
    delimiter : str, default=','
        Field delimiter for flat text ('&' for VCF)

    Returns
    -------
    Dict[str, Any]
        Rendered output, {} when no category has a prediction

    Notes
    -----
    A non-canonical amino acid (X, *, U, ...) returns {} without
    inflating any blob.
    """
    if aa_to_index(amino_acid) < 0:
        return {}

    records = decode_records(blobs, position, amino_acid)
    results = assemble_results(records, extended=extended)
    return format_results(results, target=target, delimiter=delimiter)


# =============================================================================
# Many Substitutions on One Peptide
# =============================================================================

def decode_substitutions(
    blobs: Mapping[Category, Optional[bytes]],
    positions: Sequence[int],
    amino_acids: Sequence[str],
    extended: bool = False,
    target: OutputTarget = OutputTarget.FLAT_TEXT,
    delimiter: str = TEXT_DELIMITER,
) -> List[Dict[str, Any]]:
    """Decode many substitutions of the same peptide.

    Each category blob is inflated once and all cells are pulled with the
    Numba batch extractor. Results match calling decode_substitution()
    once per substitution.

    Parameters
    ----------
    blobs : Mapping[Category, Optional[bytes]]
        Compressed matrix per requested category
    positions : Sequence[int]
        One-based protein positions
    amino_acids : Sequence[str]
        Substituted amino acids (same length as positions)

    Returns
    -------
    List[Dict[str, Any]]
        Rendered output per substitution, in input order
    """
    if len(positions) != len(amino_acids):
        raise ValueError(
            f"positions and amino_acids differ in length: "
            f"{len(positions)} vs {len(amino_acids)}"
        )

    n_queries = len(positions)
    positions0 = [p - 1 for p in positions]
    per_query: List[Dict[Category, Optional[Record]]] = [{} for _ in range(n_queries)]

    for category, blob in blobs.items():
        parsed = _decode_category_batch(blob, category, positions0, amino_acids)
        for i in range(n_queries):
            per_query[i][category] = parsed[i]

    rendered = []
    for records in per_query:
        results = assemble_results(records, extended=extended)
        rendered.append(format_results(results, target=target, delimiter=delimiter))

    logger.debug(f"Decoded {n_queries:,} substitutions across {len(blobs)} categories")

    return rendered


def _decode_category_batch(
    blob: Optional[bytes],
    category: Category,
    positions0: Sequence[int],
    amino_acids: Sequence[str],
) -> List[Optional[Record]]:
    parsed: List[Optional[Record]] = [None] * len(positions0)
    if blob is None or len(positions0) == 0:
        return parsed

    try:
        matrix = DecodedMatrix.from_blob(blob, category)
    except DecodeError as e:
        logger.warning(f"Skipping mutfunc {category.value} matrix: {e}")
        return parsed

    records, valid = matrix.get_records(positions0, amino_acids)
    for i in range(len(positions0)):
        if not valid[i]:
            continue
        try:
            parsed[i] = parse_prediction(records[i].tobytes(), category)
        except DecodeError as e:
            logger.warning(f"Skipping mutfunc {category.value} record: {e}")

    return parsed


# =============================================================================
# Tabular Annotation
# =============================================================================

def annotate_table(
    variants: pd.DataFrame,
    store,
    categories: Sequence[Category],
    extended: bool = False,
    delimiter: str = TEXT_DELIMITER,
    peptide_column: str = "peptide_id",
    position_column: str = "protein_position",
    amino_acid_column: str = "amino_acid",
) -> pd.DataFrame:
    """Add mutfunc columns to a table of protein substitutions.

    Rows are grouped by peptide so each peptide's matrices are fetched
    and inflated once.

    Parameters
    ----------
    variants : pd.DataFrame
        One row per substitution
    store : MatrixBlobStore
        Any object with fetch_all(peptide_id) -> Dict[Category, bytes]
    categories : Sequence[Category]
        Categories to report (one output column each)
    extended : bool
        Full field list or summary field only
    delimiter : str
        Field delimiter inside each column
    peptide_column, position_column, amino_acid_column : str
        Input column names

    Returns
    -------
    pd.DataFrame
        Copy of variants with one object-dtype 'mutfunc_<key>' column per
        category; cells without a prediction (including rows with no
        position) are None

    Examples
    --------
    >>> df = pd.DataFrame({
    ...     "peptide_id": [peptide_identity(seq)] * 2,
    ...     "protein_position": [5, 6],
    ...     "amino_acid": ["D", "X"],
    ... })
    >>> annotate_table(df, store, [Category.MOTIF])["mutfunc_motif"].tolist()
    ['1', None]
    """
    for column in (peptide_column, position_column, amino_acid_column):
        if column not in variants.columns:
            raise ValueError(f"Missing column in variant table: {column}")

    annotated = variants.copy()
    output_columns = {c.output_key: [None] * len(annotated) for c in categories}

    logger.info(
        f"Annotating {len(annotated):,} substitutions "
        f"({annotated[peptide_column].nunique():,} peptides)"
    )

    groups = annotated.groupby(peptide_column, sort=False).indices
    for peptide_id, row_numbers in groups.items():
        stored = store.fetch_all(peptide_id)
        blobs = {c: stored.get(c) for c in categories}
        if not any(blob is not None for blob in blobs.values()):
            continue

        group = annotated.iloc[row_numbers]
        has_position = group[position_column].notna().to_numpy()
        if not has_position.all():
            row_numbers = row_numbers[has_position]
            group = group[has_position]

        rendered = decode_substitutions(
            blobs,
            [int(p) for p in group[position_column]],
            [str(aa) for aa in group[amino_acid_column]],
            extended=extended,
            target=OutputTarget.FLAT_TEXT,
            delimiter=delimiter,
        )

        for row, output in zip(row_numbers, rendered):
            for key, value in output.items():
                output_columns[key][row] = value

    for key, values in output_columns.items():
        annotated[key] = pd.Series(values, index=annotated.index, dtype=object)

    n_annotated = sum(
        any(output_columns[c.output_key][i] is not None for c in categories)
        for i in range(len(annotated))
    )
    logger.info(f"✓ {n_annotated:,} substitutions annotated")

    return annotated


def results_to_dataframe(rendered: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Tabulate rendered outputs, one row per substitution.

    Flat text outputs keep their 'mutfunc_<key>' columns. Structured
    outputs are flattened to one 'mutfunc_<key>_<field>' column per field.
    Columns follow the fixed category order; missing cells are None.

    Parameters
    ----------
    rendered : Sequence[Mapping[str, Any]]
        Outputs of decode_substitution() or decode_substitutions()

    Returns
    -------
    pd.DataFrame
        len(rendered) rows

    Examples
    --------
    >>> rows = decode_substitutions(blobs, [5, 6], ["D", "D"],
    ...                             target=OutputTarget.STRUCTURED)
    >>> results_to_dataframe(rows)["mutfunc_motif_lost"].tolist()
    [1, None]
    """
    rank = {c.value: i for i, c in enumerate(ALL_CATEGORIES)}
    rank.update({c.output_key: i for i, c in enumerate(ALL_CATEGORIES)})

    rows = []
    columns: Dict[str, int] = {}
    for output in rendered:
        row = {}
        for key, value in output.items():
            if isinstance(value, Mapping):
                cells = {f"{OUTPUT_KEY_PREFIX}{key}_{name}": v for name, v in value.items()}
            else:
                cells = {key: value}
            for column in cells:
                columns.setdefault(column, rank.get(key, len(rank)))
            row.update(cells)
        rows.append(row)

    ordered = sorted(columns, key=lambda column: columns[column])
    return pd.DataFrame(
        [[row.get(column) for column in ordered] for row in rows],
        columns=ordered,
        index=range(len(rows)),
        dtype=object,
    )
