#!/usr/bin/env python3
"""
Summarize downloaded FASTA files (sequence counts, sizes, N50, GC)
"""

import gzip
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from Bio import SeqIO

FASTA_EXTENSIONS = ('.fna', '.faa', '.fa', '.fasta')
PROTEIN_EXTENSIONS = ('.faa',)

INVENTORY_COLUMNS = [
    'file', 'assembly_name', 'file_type', 'n_sequences', 'total_length',
    'longest', 'n50', 'gc_fraction',
]


def _strip_gz(path: str) -> str:
    return path[:-3] if path.endswith('.gz') else path


def is_fasta_file(path: str) -> bool:
    return _strip_gz(path).endswith(FASTA_EXTENSIONS)


def is_protein_file(path: str) -> bool:
    return _strip_gz(path).endswith(PROTEIN_EXTENSIONS)


def _open_text(path: str):
    if path.endswith('.gz'):
        return gzip.open(path, 'rt')
    return open(path, 'r')


def n50(lengths: List[int]) -> int:
    """Length L such that sequences of length >= L cover half the total"""
    total = sum(lengths)
    running = 0
    for length in sorted(lengths, reverse=True):
        running += length
        if running * 2 >= total:
            return length
    return 0


def summarize_fasta(path: str, protein: Optional[bool] = None) -> Dict[str, Any]:
    """Compute sequence statistics for a single (optionally gzipped) FASTA.

    GC content is only reported for nucleotide files; ``protein`` defaults to
    a guess from the file extension.
    """
    if protein is None:
        protein = is_protein_file(path)

    lengths = []
    gc = 0
    with _open_text(path) as handle:
        for record in SeqIO.parse(handle, 'fasta'):
            seq = record.seq.upper()
            lengths.append(len(seq))
            gc += seq.count('G') + seq.count('C')

    total = sum(lengths)
    return {
        'file': os.path.basename(path),
        'n_sequences': len(lengths),
        'total_length': total,
        'longest': max(lengths) if lengths else 0,
        'n50': n50(lengths),
        'gc_fraction': round(gc / total, 4) if total and not protein else None,
    }


def build_inventory(entries: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Tabulate statistics for every successfully downloaded FASTA.

    ``entries`` are manifest entries; only successful FASTA downloads that
    still exist on disk are read.
    """
    latest = {entry['destination']: entry for entry in entries}

    rows = []
    for path, entry in latest.items():
        if entry.get('status') != 'success' or not is_fasta_file(path) or not os.path.exists(path):
            continue
        try:
            row = summarize_fasta(path, protein=entry.get('file_type') == 'protein' or None)
        except (OSError, ValueError) as e:
            logging.warning(f"Could not read {path}: {e}")
            continue
        row['assembly_name'] = entry.get('assembly_name')
        row['file_type'] = entry.get('file_type')
        rows.append(row)

    return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)


def save_inventory(df: pd.DataFrame, output_file: str) -> Optional[str]:
    if df.empty:
        logging.warning("No FASTA files to include in the inventory")
        return None
    df.to_csv(output_file, sep='\t', index=False)
    logging.info(f"Inventory of {len(df)} FASTA files saved to {output_file}")
    return output_file
