"""Decode fixed-width mutfunc records into typed, nullable fields.

Records are split according to the category schema (see schemas.py) and
each field is decoded by its kind:

- TEXT:    ASCII, trailing whitespace/NUL stripped, "undefined" → None
- DECIMAL: ASCII float, trailing whitespace/NUL stripped, "10000000" → None
- UINT16:  little-endian unsigned short, 0xFFFF → None

After decoding, the energy categories gain the derived field
dG_mt = dG_wt + ddG (None unless both operands are present). dG_mt is
never stored in the matrix.

Examples
--------
>>> raw = b"ELM000123".ljust(24) + (1).to_bytes(2, "little")
>>> parse_record(raw, Category.MOTIF)
{'elm': 'ELM000123', 'lost': 1}
"""

import struct
from typing import Dict, Optional, Union

from ..constants import (
    ASCII_NULL_SENTINEL,
    ELM_NULL_SENTINEL,
    EVIDENCE_LABELS,
    FIELD_PADDING,
    UINT16_NULL_SENTINEL,
)
from ..errors import MalformedRecordError
from .schemas import Category, CategorySchema, FieldKind, get_schema

FieldValue = Union[str, int, float]
Record = Dict[str, Optional[FieldValue]]

_UINT16 = struct.Struct("<H")


# =============================================================================
# Field Decoders
# =============================================================================

def _strip_ascii(raw: bytes) -> str:
    try:
        return raw.rstrip(FIELD_PADDING).decode("ascii")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(f"Non-ASCII bytes in text field: {raw!r}") from e


def decode_text(raw: bytes, sentinel: str = ELM_NULL_SENTINEL) -> Optional[str]:
    """Decode a padded ASCII text field; sentinel or empty text is None."""
    text = _strip_ascii(raw)
    if not text or text == sentinel:
        return None
    return text


def decode_decimal(raw: bytes) -> Optional[float]:
    """Decode an 8-byte ASCII decimal field.

    Parameters
    ----------
    raw : bytes
        Field bytes, e.g. b"1.20    "

    Returns
    -------
    Optional[float]
        Parsed value, or None for the "10000000" sentinel or an empty field

    Raises
    ------
    MalformedRecordError
        If the field holds non-numeric text

    Examples
    --------
    >>> decode_decimal(b"-0.25   ")
    -0.25
    >>> decode_decimal(b"10000000") is None
    True
    """
    text = _strip_ascii(raw)
    if not text or text == ASCII_NULL_SENTINEL:
        return None

    try:
        return float(text)
    except ValueError as e:
        raise MalformedRecordError(f"Non-numeric decimal field: {text!r}") from e


def decode_uint16(raw: bytes) -> Optional[int]:
    """Decode a little-endian unsigned 16-bit field; 0xFFFF is None."""
    value = _UINT16.unpack(raw)[0]
    if value == UINT16_NULL_SENTINEL:
        return None
    return value


_DECODERS = {
    FieldKind.TEXT: decode_text,
    FieldKind.DECIMAL: decode_decimal,
    FieldKind.UINT16: decode_uint16,
}


# =============================================================================
# Record Parsing
# =============================================================================

def derive_dg_mt(dg_wt: Optional[float], ddg: Optional[float]) -> Optional[float]:
    """Mutant energy dG_mt = dG_wt + ddG, None if either operand is None."""
    if dg_wt is None or ddg is None:
        return None
    return dg_wt + ddg


def _split_fields(raw: bytes, schema: CategorySchema) -> Record:
    record: Record = {}
    offset = 0
    for field_spec in schema.fields:
        record[field_spec.name] = _DECODERS[field_spec.kind](raw[offset:offset + field_spec.width])
        offset += field_spec.width
    return record


def parse_record(raw: bytes, category: Category) -> Record:
    """Decode one record into a field mapping.

    Parameters
    ----------
    raw : bytes
        Record bytes, exactly the category's record width
    category : Category
        Prediction category

    Returns
    -------
    Record
        Field name → value or None. Interaction evidence is resolved to
        its label (EXP/MDD/MDL); unknown codes are None. Energy
        categories include the derived dG_mt.

    Raises
    ------
    MalformedRecordError
        If raw has the wrong length or a field cannot be decoded
    """
    schema = get_schema(category)
    if len(raw) != schema.record_width:
        raise MalformedRecordError(
            f"{category.value} record must be {schema.record_width} bytes, got {len(raw)}"
        )

    record = _split_fields(raw, schema)

    if "evidence" in record and record["evidence"] is not None:
        record["evidence"] = EVIDENCE_LABELS.get(record["evidence"])

    if schema.derives_dg_mt:
        record["dG_mt"] = derive_dg_mt(record["dG_wt"], record["ddG"])

    return record


def is_empty_record(record: Record) -> bool:
    """True if every field is None (no prediction for this cell)."""
    return all(value is None for value in record.values())


def parse_prediction(raw: Optional[bytes], category: Category) -> Optional[Record]:
    """Parse a record, returning None for missing or all-sentinel records.

    Examples
    --------
    >>> parse_prediction(None, Category.MOTIF) is None
    True
    >>> parse_prediction(b"undefined".ljust(24) + b"\\xff\\xff", Category.MOTIF) is None
    True
    """
    if raw is None:
        return None

    record = parse_record(raw, category)
    if is_empty_record(record):
        return None
    return record
