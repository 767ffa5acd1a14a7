"""Render assembled mutfunc results for structured or flat text output.

Structured (JSON / REST)::

    {"motif": {"elm": "ELM000123", "lost": 1}, "int": {"ddG": 0.8}}

Flat text (VEP default, tab and VCF)::

    {"mutfunc_motif": "ELM000123,1", "mutfunc_int": "0.8"}

Absent values are carried as None in structured output and rendered as
empty strings in flat text. VCF output joins fields with '&' because ','
separates alleles in VCF INFO fields.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from ..constants import (
    FLOAT_SIGNIFICANT_DIGITS,
    STRUCTURED_OUTPUT_FORMATS,
    TEXT_DELIMITER,
    VCF_DELIMITER,
)
from ..records.parser import FieldValue
from .assembly import CategoryResult


class OutputTarget(Enum):
    """Rendering targets."""
    STRUCTURED = "structured"  # Nested mapping (JSON, REST)
    FLAT_TEXT = "flat_text"    # Delimiter-joined string per category


def target_for_format(output_format: str, rest: bool = False) -> OutputTarget:
    """Pick the rendering target for a VEP-style output format name."""
    if rest or output_format.lower() in STRUCTURED_OUTPUT_FORMATS:
        return OutputTarget.STRUCTURED
    return OutputTarget.FLAT_TEXT


def delimiter_for_format(output_format: str) -> str:
    """Field delimiter for flat text output: '&' for VCF, ',' otherwise."""
    if output_format.lower() == "vcf":
        return VCF_DELIMITER
    return TEXT_DELIMITER


def format_value(value: Optional[FieldValue]) -> str:
    """Render one field value as text.

    Examples
    --------
    >>> format_value(None)
    ''
    >>> format_value(2.0)
    '2'
    >>> format_value(1.2 + 0.8)
    '2'
    >>> format_value(1)
    '1'
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isfinite(value) and value == int(value):
            return str(int(value))
        return f"{value:.{FLOAT_SIGNIFICANT_DIGITS}g}"
    return str(value)


def format_result(
    result: CategoryResult,
    target: OutputTarget,
    delimiter: str = TEXT_DELIMITER,
) -> Dict[str, Any]:
    """Render one category result as a single-entry mapping."""
    if target is OutputTarget.STRUCTURED:
        return {result.key: dict(result.fields)}

    return {result.output_key: delimiter.join(format_value(v) for v in result.values())}


def format_results(
    results: Sequence[CategoryResult],
    target: OutputTarget = OutputTarget.FLAT_TEXT,
    delimiter: str = TEXT_DELIMITER,
) -> Dict[str, Any]:
    """Render all category results.

    Parameters
    ----------
    results : Sequence[CategoryResult]
        Assembled results (see assemble_results())
    target : OutputTarget
        STRUCTURED for nested mappings, FLAT_TEXT for joined strings
    delimiter : str
        Field delimiter for FLAT_TEXT (',' or '&')

    Returns
    -------
    Dict[str, Any]
        One entry per category; {} when there are no results
    """
    if delimiter not in (TEXT_DELIMITER, VCF_DELIMITER):
        raise ValueError(
            f"Unsupported delimiter: {delimiter!r}. "
            f"Must be {TEXT_DELIMITER!r} or {VCF_DELIMITER!r}"
        )

    rendered: Dict[str, Any] = {}
    for result in results:
        rendered.update(format_result(result, target, delimiter))
    return rendered
