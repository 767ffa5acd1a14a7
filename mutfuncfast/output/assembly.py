"""Field selection for decoded mutfunc records.

Extended mode exposes the category's full field list in schema order;
compact mode exposes only its summary field (lost for motif, ddG for the
energy categories). Interaction evidence appears in extended mode only,
and only when present.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..records.parser import FieldValue, Record, is_empty_record
from ..records.schemas import ALL_CATEGORIES, Category, get_schema


@dataclass
class CategoryResult:
    """Selected fields of one category for one substitution."""

    category: Category
    fields: Dict[str, Optional[FieldValue]] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Structured output key ('motif', 'int', 'mod', 'exp')."""
        return self.category.value

    @property
    def output_key(self) -> str:
        """Flat text output key ('mutfunc_motif', ...)."""
        return self.category.output_key

    def values(self) -> List[Optional[FieldValue]]:
        return list(self.fields.values())


def select_fields(category: Category, extended: bool) -> Tuple[str, ...]:
    """Field names exposed for a category, in output order.

    Evidence is listed for interaction in extended mode; assemble_result()
    drops it when the record has no evidence.

    Examples
    --------
    >>> select_fields(Category.MOTIF, extended=False)
    ('lost',)
    >>> select_fields(Category.MOTIF, extended=True)
    ('elm', 'lost')
    """
    schema = get_schema(category)
    if extended:
        return schema.field_order
    return (schema.summary_field,)


def assemble_result(
    category: Category,
    record: Optional[Record],
    extended: bool = False,
) -> Optional[CategoryResult]:
    """Apply field selection to a parsed record.

    Parameters
    ----------
    category : Category
        Category of the record
    record : Record or None
        Parsed record (see parse_record())
    extended : bool
        Full field list if True, summary field only if False

    Returns
    -------
    Optional[CategoryResult]
        None when the record is missing or has no present field
    """
    if record is None or is_empty_record(record):
        return None

    fields = {}
    for name in select_fields(category, extended):
        if name == "evidence" and record.get(name) is None:
            continue
        fields[name] = record.get(name)

    return CategoryResult(category=category, fields=fields)


def assemble_results(
    records: Dict[Category, Optional[Record]],
    extended: bool = False,
) -> List[CategoryResult]:
    """Assemble every requested category, dropping empty ones.

    Results are kept per category (never merged) and ordered
    motif, int, mod, exp.
    """
    results = []
    for category in _ordered(records):
        result = assemble_result(category, records[category], extended=extended)
        if result is not None:
            results.append(result)
    return results


def _ordered(categories: Iterable[Category]) -> List[Category]:
    requested = set(categories)
    return [c for c in ALL_CATEGORIES if c in requested]
