"""Field selection and rendering of decoded mutfunc predictions."""

from .assembly import (
    CategoryResult,
    select_fields,
    assemble_result,
    assemble_results,
)

from .formatting import (
    OutputTarget,
    target_for_format,
    delimiter_for_format,
    format_value,
    format_result,
    format_results,
)

__all__ = [
    "CategoryResult",
    "select_fields",
    "assemble_result",
    "assemble_results",
    "OutputTarget",
    "target_for_format",
    "delimiter_for_format",
    "format_value",
    "format_result",
    "format_results",
]
