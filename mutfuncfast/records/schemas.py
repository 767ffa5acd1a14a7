"""Record layouts of the four mutfunc prediction categories.

Each category stores one fixed-width record per (position, amino acid)
cell. The schema describes how the record bytes are split into fields,
which fields are exposed in extended and compact output, and which field
is derived rather than stored.

Layouts
-------
motif (26 bytes)::

    elm        24s   ASCII text, sentinel "undefined"
    lost       <H    0/1, sentinel 0xFFFF

int (42 bytes)::

    evidence   <H    0=EXP 1=MDD 2=MDL, sentinel 0xFFFF
    dG_wt      8s    ASCII decimal, sentinel "10000000"
    ddG        8s
    dG_wt_sd   8s
    dG_mt_sd   8s
    ddG_sd     8s

mod / exp (40 bytes): as int, without evidence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from ..constants import (
    ASCII_FIELD_WIDTH,
    ELM_FIELD_WIDTH,
    INTERACTION_RECORD_WIDTH,
    MOTIF_RECORD_WIDTH,
    OUTPUT_KEY_PREFIX,
    STRUCTURE_RECORD_WIDTH,
    UINT16_FIELD_WIDTH,
)


class Category(Enum):
    """Prediction categories, valued by their database/output key."""
    MOTIF = "motif"                        # Linear motif disruption
    INTERACTION = "int"                    # Interaction interface stability
    MODELED_STRUCTURE = "mod"              # Homology-model structure stability
    EXPERIMENTAL_STRUCTURE = "exp"         # Experimental structure stability

    @property
    def output_key(self) -> str:
        """Flat text output key, e.g. ``mutfunc_motif``."""
        return OUTPUT_KEY_PREFIX + self.value

    @classmethod
    def from_key(cls, key: str) -> 'Category':
        """Look up a category by its short key ('motif', 'int', 'mod', 'exp').

        Raises
        ------
        ValueError
            If the key is not a known category
        """
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown mutfunc category: {key}. "
                f"Must be one of {[c.value for c in cls]}"
            ) from None


class FieldKind(Enum):
    """Binary encodings used inside a record."""
    TEXT = "text"        # Fixed-width ASCII text
    DECIMAL = "decimal"  # Fixed-width ASCII decimal
    UINT16 = "uint16"    # Little-endian unsigned 16-bit


@dataclass(frozen=True)
class FieldSpec:
    """One stored field of a record."""
    name: str
    kind: FieldKind
    width: int


@dataclass(frozen=True)
class CategorySchema:
    """Complete layout and output policy of one category.

    Attributes
    ----------
    category : Category
        Category described by this schema
    record_width : int
        Bytes per matrix cell
    fields : Tuple[FieldSpec, ...]
        Stored fields in on-disk order
    field_order : Tuple[str, ...]
        Extended output order (includes derived fields)
    summary_field : str
        The single field exposed in compact output
    derives_dg_mt : bool
        Whether dG_mt = dG_wt + ddG is computed after parsing
    """
    category: Category
    record_width: int
    fields: Tuple[FieldSpec, ...]
    field_order: Tuple[str, ...]
    summary_field: str
    derives_dg_mt: bool = False

    def __post_init__(self):
        stored = sum(f.width for f in self.fields)
        if stored != self.record_width:
            raise ValueError(
                f"Schema {self.category.value}: fields cover {stored} bytes, "
                f"record width is {self.record_width}"
            )


# =============================================================================
# Schema Definitions
# =============================================================================

_ENERGY_FIELDS = (
    FieldSpec("dG_wt", FieldKind.DECIMAL, ASCII_FIELD_WIDTH),
    FieldSpec("ddG", FieldKind.DECIMAL, ASCII_FIELD_WIDTH),
    FieldSpec("dG_wt_sd", FieldKind.DECIMAL, ASCII_FIELD_WIDTH),
    FieldSpec("dG_mt_sd", FieldKind.DECIMAL, ASCII_FIELD_WIDTH),
    FieldSpec("ddG_sd", FieldKind.DECIMAL, ASCII_FIELD_WIDTH),
)

_ENERGY_ORDER = ("dG_wt", "dG_mt", "ddG", "dG_wt_sd", "dG_mt_sd", "ddG_sd")

MOTIF_SCHEMA = CategorySchema(
    category=Category.MOTIF,
    record_width=MOTIF_RECORD_WIDTH,
    fields=(
        FieldSpec("elm", FieldKind.TEXT, ELM_FIELD_WIDTH),
        FieldSpec("lost", FieldKind.UINT16, UINT16_FIELD_WIDTH),
    ),
    field_order=("elm", "lost"),
    summary_field="lost",
)

INTERACTION_SCHEMA = CategorySchema(
    category=Category.INTERACTION,
    record_width=INTERACTION_RECORD_WIDTH,
    fields=(FieldSpec("evidence", FieldKind.UINT16, UINT16_FIELD_WIDTH),) + _ENERGY_FIELDS,
    field_order=("evidence",) + _ENERGY_ORDER,
    summary_field="ddG",
    derives_dg_mt=True,
)

MODELED_STRUCTURE_SCHEMA = CategorySchema(
    category=Category.MODELED_STRUCTURE,
    record_width=STRUCTURE_RECORD_WIDTH,
    fields=_ENERGY_FIELDS,
    field_order=_ENERGY_ORDER,
    summary_field="ddG",
    derives_dg_mt=True,
)

EXPERIMENTAL_STRUCTURE_SCHEMA = CategorySchema(
    category=Category.EXPERIMENTAL_STRUCTURE,
    record_width=STRUCTURE_RECORD_WIDTH,
    fields=_ENERGY_FIELDS,
    field_order=_ENERGY_ORDER,
    summary_field="ddG",
    derives_dg_mt=True,
)

SCHEMAS: Dict[Category, CategorySchema] = {
    Category.MOTIF: MOTIF_SCHEMA,
    Category.INTERACTION: INTERACTION_SCHEMA,
    Category.MODELED_STRUCTURE: MODELED_STRUCTURE_SCHEMA,
    Category.EXPERIMENTAL_STRUCTURE: EXPERIMENTAL_STRUCTURE_SCHEMA,
}

# Category iteration order for output and headers
ALL_CATEGORIES = (
    Category.MOTIF,
    Category.INTERACTION,
    Category.MODELED_STRUCTURE,
    Category.EXPERIMENTAL_STRUCTURE,
)


def get_schema(category: Category) -> CategorySchema:
    """Return the schema for a category."""
    return SCHEMAS[category]


def record_width(category: Category) -> int:
    """Return the record width in bytes for a category."""
    return SCHEMAS[category].record_width
