#!/usr/bin/env python
"""Annotate a table of protein substitutions with mutfunc predictions.

Input: TSV with one row per substitution and columns
    sequence          translated reference protein
    protein_position  one-based position of the substituted residue
    amino_acid        substituted one-letter amino acid

Output: the same TSV with one mutfunc_<category> column per selected
category (motif, int, mod, exp).

Example:
    python scripts/annotate_substitutions.py \\
        --input substitutions.tsv --db mutfunc_data.db \\
        --categories motif int --extended --output annotated.tsv
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

import pandas as pd

from mutfuncfast.convenience import annotate_table, peptide_identity
from mutfuncfast.database import MatrixBlobStore
from mutfuncfast.records.schemas import ALL_CATEGORIES, Category


def main():
    parser = argparse.ArgumentParser(description='Annotate substitutions with mutfunc predictions')
    parser.add_argument('--input', type=str, required=True,
                        help='Input substitutions TSV')
    parser.add_argument('--output', type=str, default='./substitutions_mutfunc.tsv',
                        help='Output annotated TSV')
    parser.add_argument('--db', type=str, required=True,
                        help='mutfunc SQLite database')
    parser.add_argument('--categories', nargs='+', default=[c.value for c in ALL_CATEGORIES],
                        choices=[c.value for c in ALL_CATEGORIES],
                        help='Categories to report (default: all)')
    parser.add_argument('--extended', action='store_true',
                        help='Report every field instead of the summary field')
    parser.add_argument('--sequence-column', type=str, default='sequence')
    parser.add_argument('--position-column', type=str, default='protein_position')
    parser.add_argument('--amino-acid-column', type=str, default='amino_acid')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    input_path = Path(args.input).expanduser()
    output_path = Path(args.output).expanduser()
    categories = [Category.from_key(key) for key in args.categories]

    print("=" * 80)
    print("mutfunc Substitution Annotation")
    print("=" * 80)
    print(f"Input: {input_path}")
    print(f"Database: {args.db}")
    print(f"Categories: {', '.join(c.value for c in categories)}")

    variants = pd.read_csv(input_path, sep='\t')
    print(f"Loaded {len(variants):,} substitutions")

    variants['peptide_id'] = [
        peptide_identity(seq) if isinstance(seq, str) else None
        for seq in variants[args.sequence_column]
    ]

    with MatrixBlobStore.open(args.db) as store:
        annotated = annotate_table(
            variants,
            store,
            categories,
            extended=args.extended,
            peptide_column='peptide_id',
            position_column=args.position_column,
            amino_acid_column=args.amino_acid_column,
        )

    annotated = annotated.drop(columns=['peptide_id'])
    annotated.to_csv(output_path, sep='\t', index=False)

    print("\n" + "=" * 80)
    print("ANNOTATION COMPLETE")
    print("=" * 80)
    for category in categories:
        n_hits = annotated[category.output_key].notna().sum()
        print(f"  {category.output_key}: {n_hits:,} substitutions")
    print(f"Output written to: {output_path}")
    print("=" * 80)


if __name__ == '__main__':
    main()
