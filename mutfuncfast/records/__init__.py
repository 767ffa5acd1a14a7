"""Category schemas and record parsing."""

from .schemas import (
    Category,
    FieldKind,
    FieldSpec,
    CategorySchema,
    SCHEMAS,
    ALL_CATEGORIES,
    get_schema,
    record_width,
)

from .parser import (
    decode_text,
    decode_decimal,
    decode_uint16,
    derive_dg_mt,
    parse_record,
    parse_prediction,
    is_empty_record,
)

__all__ = [
    # Schemas
    "Category",
    "FieldKind",
    "FieldSpec",
    "CategorySchema",
    "SCHEMAS",
    "ALL_CATEGORIES",
    "get_schema",
    "record_width",

    # Parsing
    "decode_text",
    "decode_decimal",
    "decode_uint16",
    "derive_dg_mt",
    "parse_record",
    "parse_prediction",
    "is_empty_record",
]
