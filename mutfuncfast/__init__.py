"""MutfuncFast - Decoder for packed mutfunc variant-effect matrices.

Looks up precomputed mutfunc predictions (linear motif loss, interaction
interface and protein structure destabilization) for missense variants.
Predictions are stored per protein as gzip-compressed [position × amino acid]
grids of fixed-width records keyed by the md5 of the translated sequence.

The decoder is pure and stateless: it inflates a blob, extracts the
record of one cell with bounds-checked offset arithmetic, translates null
sentinels, derives dG_mt and renders the result as structured mappings or
delimiter-joined text.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from mutfuncfast import constants
from mutfuncfast import matrix
from mutfuncfast import records
from mutfuncfast import output
from mutfuncfast import database

from mutfuncfast.errors import DecodeError, CorruptBlobError, MalformedRecordError
from mutfuncfast.records.schemas import Category
from mutfuncfast.output.formatting import OutputTarget
from mutfuncfast.convenience import (
    peptide_identity,
    decode_category,
    decode_substitution,
    decode_substitutions,
    annotate_table,
    results_to_dataframe,
)
from mutfuncfast.plugin import AnnotatorConfig, MutfuncAnnotator, VariantContext

__all__ = [
    "constants",
    "matrix",
    "records",
    "output",
    "database",
    "DecodeError",
    "CorruptBlobError",
    "MalformedRecordError",
    "Category",
    "OutputTarget",
    "peptide_identity",
    "decode_category",
    "decode_substitution",
    "decode_substitutions",
    "annotate_table",
    "results_to_dataframe",
    "AnnotatorConfig",
    "MutfuncAnnotator",
    "VariantContext",
]
