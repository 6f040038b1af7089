"""
GFF annotation module.

This module provides functionality to:
- Represent single annotation lines as GffEntry objects
- Parse GFF3/GTF style annotation text (nine tab separated columns)
- Write entries back into the same nine column layout
"""

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from intergene.errors import ColumnMismatchError, CoordinateParseError

GFF_COLUMNS = 9
COMMENT_PREFIX = "#"
SEQUENCE_REGION_PRAGMA = "##sequence-region"
COORDINATE_PATTERN = re.compile(r"[0-9]+")


@dataclass
class GffEntry:
    """Represents a genomic feature from a GFF/GTF annotation."""
    seqid: str
    source: str
    feature_type: str  # e.g., 'gene', 'CDS', 'tRNA', 'intergenic'
    start: int  # 1-based, inclusive
    end: int    # 1-based, inclusive
    score: str
    strand: str  # '+', '-' or '.'
    phase: str
    attributes: str
    sequence: str = ""  # filled in by sequence extraction

    def __lt__(self, other: "GffEntry") -> bool:
        return self.start < other.start

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, position: int) -> bool:
        """Check if a genomic position overlaps with this feature."""
        return self.start <= position <= self.end

    def to_line(self) -> str:
        return "\t".join([
            self.seqid,
            self.source,
            self.feature_type,
            str(self.start),
            str(self.end),
            self.score,
            self.strand,
            self.phase,
            self.attributes,
        ])


@dataclass
class Gff:
    """Header block plus the entries of one annotation file."""
    header: str
    entries: List[GffEntry] = field(default_factory=list)

    def sequence_region_end(self) -> Optional[int]:
        """End coordinate of the first ##sequence-region pragma, if there is one."""
        for line in self.header.splitlines():
            if line.startswith(SEQUENCE_REGION_PRAGMA):
                parts = line.split()
                if len(parts) == 4 and parts[3].isdigit():
                    return int(parts[3])
        return None


def parse_coordinate(value: str, column: str, line_number: int) -> int:
    # int() would also take signs, whitespace and underscores
    if not COORDINATE_PATTERN.fullmatch(value):
        raise CoordinateParseError(line_number, column, value)
    return int(value)


def parse_gff_line(line: str, line_number: int = 0) -> GffEntry:
    parts = line.split("\t")
    if len(parts) != GFF_COLUMNS:
        raise ColumnMismatchError(line_number, GFF_COLUMNS, len(parts), line)
    seqid, source, feature_type, start, end, score, strand, phase, attributes = parts
    return GffEntry(
        seqid=seqid,
        source=source,
        feature_type=feature_type,
        start=parse_coordinate(start, "start", line_number),
        end=parse_coordinate(end, "end", line_number),
        score=score,
        strand=strand,
        phase=phase,
        attributes=attributes,
    )


def parse_gff(text: str) -> Gff:
    """Parse annotation text into its header block and entries.

    Leading comment lines are kept verbatim as the header. Comment lines further
    down and blank lines are skipped. Every other line has to have exactly nine
    tab separated columns.

    Args:
        text: Content of a GFF file

    Returns:
        Gff with the header (lines joined by newlines) and the entries in file order
    """
    header_lines = []
    entries = []
    in_header = True
    for line_number, line in enumerate(text.splitlines(), start=1):
        if line.startswith(COMMENT_PREFIX):
            if in_header:
                header_lines.append(line)
            continue
        in_header = False
        if not line.strip():
            continue
        entries.append(parse_gff_line(line, line_number))
    return Gff(header="\n".join(header_lines), entries=entries)


def read_gff(path: str) -> Gff:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"The specified GFF file does not exist: {path}")
    with open(path, 'r') as file:
        return parse_gff(file.read())


def format_gff(header: str, entries: List[GffEntry]) -> str:
    lines = [header] if header else []
    lines.extend(entry.to_line() for entry in entries)
    return "\n".join(lines) + "\n" if lines else ""


def write_gff(path: str, header: str, entries: List[GffEntry]) -> None:
    with open(path, 'w') as out:
        out.write(format_gff(header, entries))
