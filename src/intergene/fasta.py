"""
FASTA module for reference sequences and per-type sequence output.

This module provides functionality to:
- Parse FASTA text into header/sequence pairs
- Load FASTA files through pyfaidx
- Write the sequences of annotation entries as FASTA blocks, one file per feature type
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from pyfaidx import Fasta, FastaIndexingError

from intergene.gff import GffEntry

FASTA_LINE_WIDTH = 80
HEADER_PREFIX = ">"


@dataclass(frozen=True)
class ReferenceSequence:
    header: str  # without the leading '>'
    sequence: str

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def name(self) -> str:
        """First word of the header, as used for the seqid column of a GFF file."""
        return self.header.split(" ")[0] if self.header else ""


def parse_fasta(text: str) -> List[ReferenceSequence]:
    records = []
    header = None
    chunks: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith(HEADER_PREFIX):
            if header is not None:
                records.append(ReferenceSequence(header, "".join(chunks)))
            header = line[1:]
            chunks = []
        elif header is not None:
            chunks.append(line)
    if header is not None:
        records.append(ReferenceSequence(header, "".join(chunks)))
    return records


def read_fasta(path: str) -> List[ReferenceSequence]:
    """Load all records of a FASTA file.

    pyfaidx writes a .fai index next to the file on first access. Files it cannot
    index (uneven line lengths, read-only directory) are parsed as plain text instead.

    Args:
        path: Path to the FASTA file

    Returns:
        List of ReferenceSequence in file order
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"The specified FASTA file does not exist: {path}")
    try:
        with Fasta(path, as_raw=True) as fasta:
            # long_name keeps the '>' when a blank line precedes the header
            return [ReferenceSequence(record.long_name.lstrip(HEADER_PREFIX), str(record)) for record in fasta]
    except (FastaIndexingError, OSError):
        with open(path, 'r') as file:
            return parse_fasta(file.read())


def wrap_sequence(sequence: str, line_width: int = FASTA_LINE_WIDTH) -> List[str]:
    if not sequence:
        return [""]
    return [sequence[i:i + line_width] for i in range(0, len(sequence), line_width)]


def format_fasta_entries(entries: List[GffEntry], feature_type: str, line_width: int = FASTA_LINE_WIDTH) -> str:
    lines = []
    for entry in entries:
        if entry.feature_type != feature_type:
            continue
        lines.append(f"{HEADER_PREFIX}{entry.attributes} length: {len(entry.sequence)}")
        lines.extend(wrap_sequence(entry.sequence, line_width))
    return "".join(f"{line}\n" for line in lines)


def write_fasta_entries(path: str, entries: List[GffEntry], feature_type: str, line_width: int = FASTA_LINE_WIDTH) -> None:
    with open(path, 'w') as out:
        out.write(format_fasta_entries(entries, feature_type, line_width))


def count_feature_types(entries: List[GffEntry]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for entry in entries:
        counts[entry.feature_type] = counts.get(entry.feature_type, 0) + 1
    return counts


def write_sequence_files(entries: List[GffEntry], types: Optional[List[str]], output_dir: str = ".") -> List[str]:
    """Write one FASTA file per requested feature type.

    Types without any matching entry are reported and skipped, no file is written for them.

    Args:
        entries: Entries with their sequences already extracted
        types: Feature types to write, e.g. ['intergenic', 'tRNA']
        output_dir: Directory for the <type>.fasta files

    Returns:
        Paths of the files that were written
    """
    if not types:
        return []
    available = count_feature_types(entries)
    written = []
    for feature_type in types:
        if feature_type not in available:
            print(f"Warning: Invalid entry type: {feature_type}. Not creating a fasta file for {feature_type}. Please check if it was spelled correctly.")
            continue
        output_path = os.path.join(output_dir, f"{feature_type}.fasta")
        write_fasta_entries(output_path, entries, feature_type)
        print(f"  Wrote {available[feature_type]} {feature_type} sequences to {output_path}")
        written.append(output_path)
    return written
