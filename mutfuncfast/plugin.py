"""mutfunc annotator for variant effect pipelines.

Annotates missense variants with mutfunc predictions of motif loss and of
interaction/structure destabilization. The host pipeline configures the
annotator once per worker with key=value options, asks it for header
descriptions, and then calls annotate() per transcript variant.

Options
-------
db        Path to the mutfunc SQLite database (required)
motif     Report linear motif loss
int       Report interaction interface destabilization
mod       Report structure destabilization (homology models)
exp       Report structure destabilization (experimental structures)
all       All of the above
extended  Report every field instead of the summary field only

Examples
--------
>>> annotator = MutfuncAnnotator.from_params(
...     {"all": "1", "extended": "1", "db": "mutfunc_data.db"},
...     output_format="vcf",
... )
>>> annotator.describe_fields()["mutfunc_motif"]
"Nonsynonymous mutations impact on linear motif from mutfunc db. ..."
>>> annotator.annotate(VariantContext(translation, protein_position=5, amino_acid="D"))
{'mutfunc_motif': 'ELM000123&1', ...}

Please cite the mutfunc publication when using these predictions:
https://www.embopress.org/doi/full/10.15252/msb.20188430
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import STRUCTURED_OUTPUT_KEY
from .convenience import decode_substitution, peptide_identity
from .database.blob_store import MatrixBlobStore
from .output.assembly import select_fields
from .output.formatting import OutputTarget, delimiter_for_format, target_for_format
from .records.schemas import ALL_CATEGORIES, Category

logger = logging.getLogger(__name__)

_FALSE_VALUES = ("", "0", "false", "no", "off")

_CATEGORY_DESCRIPTIONS = {
    Category.MOTIF: "Nonsynonymous mutations impact on linear motif from mutfunc db.",
    Category.INTERACTION: "Interaction interfaces destabilization analysis from mutfunc db.",
    Category.MODELED_STRUCTURE: (
        "Protein structure destabilization analysis (homology models) from mutfunc db."
    ),
    Category.EXPERIMENTAL_STRUCTURE: (
        "Protein structure destabilization analysis (experimental structures) from mutfunc db."
    ),
}

_FIELD_DESCRIPTIONS = {
    "elm": "elm - ELM accession of the linear motif",
    "lost": "lost - '1' if the mutation causes the motif to be lost and '0' otherwise",
    "evidence": (
        "evidence - 'EXP' for experimental model and 'MDL' for homology models "
        "and 'MDD' for domain-domain homology models"
    ),
    "dG_wt": "dG_wt - reference energy (kcal/mol)",
    "dG_mt": "dG_mt - mutated energy (kcal/mol)",
    "ddG": (
        "ddG - change in stability between mutated and reference structure (kcal/mol) "
        "mutations where ddG >= 2 kcal/mol can be considered deleterious"
    ),
    "dG_wt_sd": "dG_wt_sd - dG_wt standard deviation (kcal/mol)",
    "dG_mt_sd": "dG_mt_sd - dG_mt standard deviation (kcal/mol)",
    "ddG_sd": "ddG_sd - ddG standard deviation (kcal/mol)",
}


def _is_enabled(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


@dataclass
class AnnotatorConfig:
    """Annotator settings resolved from plugin options.

    Attributes
    ----------
    categories : Tuple[Category, ...]
        Enabled categories, in output order
    db_path : Path
        mutfunc SQLite database
    extended : bool
        Full field list (True) or summary field only (False)
    output_format : str
        Host output format ('vcf', 'tab', 'txt', 'json', ...)
    rest : bool
        Running behind a REST service (always structured output)
    """

    categories: Tuple[Category, ...]
    db_path: Optional[Path] = None
    extended: bool = False
    output_format: str = "vcf"
    rest: bool = False
    target: OutputTarget = field(init=False)
    delimiter: str = field(init=False)

    def __post_init__(self):
        self.target = target_for_format(self.output_format, rest=self.rest)
        self.delimiter = delimiter_for_format(self.output_format)

    @property
    def structured(self) -> bool:
        return self.target is OutputTarget.STRUCTURED

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        output_format: str = "vcf",
        rest: bool = False,
    ) -> 'AnnotatorConfig':
        """Resolve plugin key=value options.

        Raises
        ------
        ValueError
            If no analysis is selected, or an analysis is selected without db
        """
        select_all = _is_enabled(params.get("all", ""))
        categories = tuple(
            c for c in ALL_CATEGORIES
            if select_all or _is_enabled(params.get(c.value, ""))
        )

        if not categories:
            raise ValueError(
                "No mutfunc analysis selected. "
                "Enable at least one of 'motif', 'int', 'mod', 'exp' or 'all'"
            )

        db = params.get("db")
        if not db:
            raise ValueError("db is not specified but some of the options enabled require it")

        return cls(
            categories=categories,
            db_path=Path(db),
            extended=_is_enabled(params.get("extended", "")),
            output_format=output_format,
            rest=rest,
        )


@dataclass
class VariantContext:
    """The parts of a transcript variant the annotator needs.

    Attributes
    ----------
    peptide_sequence : Optional[str]
        Translated reference protein (None for non-coding transcripts)
    protein_position : Optional[int]
        One-based position of the substituted residue
    amino_acid : Optional[str]
        Substituted one-letter amino acid
    """

    peptide_sequence: Optional[str]
    protein_position: Optional[int]
    amino_acid: Optional[str]


class MutfuncAnnotator:
    """Per-worker mutfunc annotator.

    Parameters
    ----------
    config : AnnotatorConfig
        Resolved settings
    store : MatrixBlobStore
        Blob store owned by this worker
    """

    def __init__(self, config: AnnotatorConfig, store: MatrixBlobStore):
        self.config = config
        self.store = store

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        output_format: str = "vcf",
        rest: bool = False,
    ) -> 'MutfuncAnnotator':
        """Configure from plugin options and open the database.

        Call once per worker process; the returned annotator owns its
        database connection.
        """
        config = AnnotatorConfig.from_params(params, output_format=output_format, rest=rest)
        store = MatrixBlobStore.open(config.db_path)

        logger.info(
            f"mutfunc annotator: {', '.join(c.value for c in config.categories)} "
            f"(extended={config.extended}, output={config.target.value})"
        )

        return cls(config, store)

    configure = from_params

    def describe_fields(self) -> Dict[str, str]:
        """Header description per output key of the enabled categories."""
        header = {}
        for category in self.config.categories:
            parts = [_CATEGORY_DESCRIPTIONS[category], "Output field(s) include:"]
            if self.config.extended:
                parts.append(f"(fields are separated by '{self.config.delimiter}')")

            fields = select_fields(category, self.config.extended)
            parts.append(", ".join(_FIELD_DESCRIPTIONS[name] for name in fields))

            header[category.output_key] = " ".join(parts)
        return header

    def annotate(self, variant: VariantContext) -> Dict[str, Any]:
        """Annotate one transcript variant.

        Returns
        -------
        Dict[str, Any]
            {} if there is nothing to report. Otherwise flat text keys
            ('mutfunc_motif', ...) or, for structured output,
            {'mutfunc': {'motif': {...}, ...}}
        """
        if not variant.peptide_sequence:
            return {}
        if variant.protein_position is None or not variant.amino_acid:
            return {}

        stored = self.store.fetch_all(peptide_identity(variant.peptide_sequence))
        blobs = {c: stored.get(c) for c in self.config.categories}

        result = decode_substitution(
            blobs,
            position=variant.protein_position,
            amino_acid=variant.amino_acid,
            extended=self.config.extended,
            target=self.config.target,
            delimiter=self.config.delimiter,
        )

        if not result:
            return {}
        if self.config.structured:
            return {STRUCTURED_OUTPUT_KEY: result}
        return result

    def close(self):
        self.store.close()
