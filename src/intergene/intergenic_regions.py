"""
Intergenic region module for finding the gaps between annotated features.

This module provides functionality to:
- Find intergenic regions (gaps between features) of a single reference sequence
- Create GFF entries for the intergenic regions
- Merge them with the original annotation and extract their sequences
- Write a combined GFF file and FASTA files for selected feature types
"""

import argparse
import os
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from intergene.errors import OutOfRangeError
from intergene.fasta import ReferenceSequence, read_fasta, write_sequence_files
from intergene.gff import Gff, GffEntry, read_gff, write_gff

DEFAULT_MIN_DISTANCE = 3
INTERGENIC_SOURCE = "intergene-finder"
INTERGENIC_TYPE = "intergenic"
OUTPUT_GFF_NAME = "reference+intergenic.gff"
UNSTRANDED = "."
STRANDS = ("+", "-")
# whole-sequence markers and codon annotations never open or close a gap
SKIPPED_TYPES = frozenset({"region", "sequence_feature", "start_codon", "stop_codon"})
SORT_KEYS = ("start", "end")


def qualifying_entries(entries: Sequence[GffEntry], strand: Optional[str] = None) -> List[GffEntry]:
    """Entries that take part in the gap sweep.

    Args:
        entries: Entries sorted by start
        strand: '+' or '-' to keep only features on that strand (and unstranded ones), None to keep all

    Returns:
        Entries without skipped types, filtered by strand
    """
    selected = []
    for entry in entries:
        if entry.feature_type in SKIPPED_TYPES:
            continue
        if strand is not None and entry.strand not in (strand, UNSTRANDED):
            continue
        selected.append(entry)
    return selected


def find_intergenic_regions(
    entries: Sequence[GffEntry],
    reference_length: int,
    min_distance: int = DEFAULT_MIN_DISTANCE,
    strand: Optional[str] = None
) -> List[Tuple[int, int]]:
    """Find the regions of the reference that are not covered by any feature.

    Single sweep over the entries in start order. A feature starting right after the
    current boundary (e.g. a gene following a stop codon) moves the boundary by one
    base, so no empty region is reported. Features closer than min_distance to the
    boundary do not produce a region. The region after the last feature starts at
    the end of that feature, regions in between start one base after it.

    Args:
        entries: Entries sorted by start
        reference_length: Length of the reference sequence
        min_distance: Minimum distance between two features for the space in between to count
        strand: '+' or '-' for one strand only, None to ignore strands

    Returns:
        List of (start, end) tuples, 1-based and inclusive
    """
    if min_distance < 0:
        raise ValueError(f"Minimum distance has to be non-negative, got {min_distance}")
    features = qualifying_entries(entries, strand)

    # 1 means position 1 is already covered by the first feature
    last_end = 1 if features and features[0].start == 1 else 0

    regions = []
    for entry in features:
        if entry.start == last_end + 1:
            last_end += 1
        if entry.start > last_end + min_distance:
            regions.append((last_end + 1, entry.start - 1))
        last_end = max(last_end, entry.end)

    if last_end < reference_length:
        # last_end is still 0 without qualifying features, position 0 does not exist
        regions.append((max(last_end, 1), reference_length))
    return regions


def intergenic_attributes(index: int, strand: str = UNSTRANDED) -> str:
    if strand == UNSTRANDED:
        return f"ID=IGR-{index};Name=INTERGENIC_{index};locus_tag=INTERGENIC_{index}"
    label = f"{index}({strand})"
    return f"ID=IGR_{label};Name=INTERGENIC_{label};locus_tag=INTERGENIC_{label}"


def create_intergenic_entries(
    regions: Sequence[Tuple[int, int]],
    seqid: str,
    strand: str = UNSTRANDED,
    first_index: int = 1
) -> List[GffEntry]:
    """Create a GFF entry for each intergenic region, numbered from first_index."""
    intergenic_entries = []
    for index, (start, end) in enumerate(regions, start=first_index):
        intergenic_entries.append(GffEntry(
            seqid=seqid,
            source=INTERGENIC_SOURCE,
            feature_type=INTERGENIC_TYPE,
            start=start,
            end=end,
            score=".",
            strand=strand,
            phase=".",
            attributes=intergenic_attributes(index, strand),
        ))
    return intergenic_entries


def find_intergenic_entries(
    entries: Sequence[GffEntry],
    reference_length: int,
    seqid: str,
    min_distance: int = DEFAULT_MIN_DISTANCE,
    stranded: bool = False
) -> List[GffEntry]:
    if not stranded:
        regions = find_intergenic_regions(entries, reference_length, min_distance)
        return create_intergenic_entries(regions, seqid)
    intergenic_entries = []
    for strand in STRANDS:
        regions = find_intergenic_regions(entries, reference_length, min_distance, strand=strand)
        intergenic_entries.extend(create_intergenic_entries(regions, seqid, strand=strand))
    return intergenic_entries


def merge_entries(original: Sequence[GffEntry], intergenic: Sequence[GffEntry], sort_by: str = "start") -> List[GffEntry]:
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Entries can only be sorted by one of {SORT_KEYS}, got {sort_by}")
    merged = list(original) + list(intergenic)
    merged.sort(key=lambda entry: getattr(entry, sort_by))
    return merged


def extract_sequence(entry: GffEntry, reference: str) -> str:
    if entry.start < 1 or entry.end > len(reference) or entry.start > entry.end:
        raise OutOfRangeError(entry.start, entry.end, len(reference))
    return reference[entry.start - 1:entry.end]


def add_sequences(entries: List[GffEntry], reference: str) -> List[GffEntry]:
    for entry in entries:
        entry.sequence = extract_sequence(entry, reference)
    return entries


def infer_reference_length(gff: Gff) -> int:
    """Reference length for runs without a FASTA file.

    Taken from the ##sequence-region pragma, a 'region' entry or the last feature end, in that order.
    """
    pragma_end = gff.sequence_region_end()
    if pragma_end is not None:
        return pragma_end
    region_ends = [entry.end for entry in gff.entries if entry.feature_type == "region"]
    if region_ends:
        return max(region_ends)
    return max((entry.end for entry in gff.entries), default=0)


def summarize_regions(entries: Sequence[GffEntry]) -> pd.DataFrame:
    """Length statistics of the intergenic entries, one row per strand."""
    data: Dict[str, list] = {"strand": [], "length": []}
    for entry in entries:
        if entry.feature_type == INTERGENIC_TYPE:
            data["strand"].append(entry.strand)
            data["length"].append(entry.length)
    lengths = pd.DataFrame(data)
    if lengths.empty:
        return pd.DataFrame(columns=["count", "total", "mean", "min", "max"])
    summary = lengths.groupby("strand")["length"].agg(["count", "sum", "mean", "min", "max"])
    summary = summary.rename(columns={"sum": "total"})
    return summary


def find_intergenic(
    gff_path: str,
    fasta_path: Optional[str] = None,
    types: Optional[List[str]] = None,
    min_distance: int = DEFAULT_MIN_DISTANCE,
    stranded: bool = False,
    output_dir: str = "."
) -> List[GffEntry]:
    """Add intergenic regions to a GFF file and optionally write their sequences.

    Writes <output_dir>/reference+intergenic.gff and, if a FASTA file is given, one
    <type>.fasta file per requested type. All inputs are read and all sequences are
    extracted before anything is written.

    Args:
        gff_path: Annotation of a single reference sequence, sorted by start
        fasta_path: FASTA file with the reference sequence as its first record
        types: Feature types to write FASTA files for
        min_distance: Minimum distance between two features for an intergenic region
        stranded: Find intergenic regions separately for the + and - strand
        output_dir: Directory for the output files

    Returns:
        Merged and sorted list of original and intergenic entries
    """
    gff = read_gff(gff_path)
    reference: Optional[ReferenceSequence] = None
    if fasta_path is not None:
        records = read_fasta(fasta_path)
        if not records:
            raise ValueError(f"No sequence found in FASTA file: {fasta_path}")
        reference = records[0]
        reference_length = len(reference)
    else:
        reference_length = infer_reference_length(gff)

    if gff.entries:
        seqid = gff.entries[0].seqid
    else:
        seqid = reference.name if reference is not None else "."

    print(f"Processing {os.path.basename(gff_path)}...")
    print(f"  Found {len(gff.entries)} entries, reference length {reference_length}")
    intergenic_entries = find_intergenic_entries(gff.entries, reference_length, seqid, min_distance, stranded)
    merged = merge_entries(gff.entries, intergenic_entries, sort_by="end" if stranded else "start")
    if reference is not None:
        add_sequences(merged, reference.sequence)

    os.makedirs(output_dir, exist_ok=True)
    gff_out = os.path.join(output_dir, OUTPUT_GFF_NAME)
    write_gff(gff_out, gff.header, merged)
    print(f"  Created {gff_out} with {len(intergenic_entries)} intergenic regions")

    if types:
        if reference is None:
            print("Warning: No FASTA file given, not writing sequences for the requested types.")
        else:
            write_sequence_files(merged, types, output_dir)

    print(summarize_regions(merged))
    return merged


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extracts intergenic regions from a GFF file, creating a new GFF file and (optionally) FASTA files with the sequences."
    )
    parser.add_argument("--input", "-i", type=str, required=True, help="Input GFF file to find the intergenic regions from")
    parser.add_argument("--fasta", "-f", type=str, default=None, help="The genome sequence as a FASTA file to extract sequences from")
    parser.add_argument("--types", "-t", type=lambda s: [t for t in s.split(",") if t], default=None,
                        help="The entry types to extract sequences from, separated by commas")
    parser.add_argument("--min_distance", "-d", type=int, default=DEFAULT_MIN_DISTANCE,
                        help="The minimum distance between two genes to be considered an intergenic region (default: 3)")
    parser.add_argument("--stranded", "-s", action="store_true", help="Find intergenic regions separately for each strand")
    parser.add_argument("--output_dir", "-o", type=str, default=".", help="Directory for the output files (default: current directory)")
    args = parser.parse_args()
    if args.min_distance < 0:
        parser.error("--min_distance has to be non-negative")
    return args


def main():
    args = parse_args()
    find_intergenic(args.input, args.fasta, args.types, args.min_distance, args.stranded, args.output_dir)


if __name__ == "__main__":
    main()
