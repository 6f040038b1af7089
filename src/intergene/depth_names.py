"""
Adds region names from a bed file to the output of "samtools depth".

The depth file only contains chromosome, position and read depth. Each position
gets the name of the bed region it belongs to. Both the bed file and the depth
files are assumed to be sorted by position.
"""

import argparse
import os
import re
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from intergene.errors import ColumnMismatchError, CoordinateParseError
from intergene.gff import COORDINATE_PATTERN

BED_COLUMNS = ["chromosome", "start", "end", "name"]
DEPTH_COLUMNS = ["chromosome", "position", "depth"]
NAMED_DEPTH_SUFFIX = ".depthn"
BED_PARSER_ERROR = re.compile(r"Expected (\d+) fields in line (\d+), saw (\d+)")


def read_bed(path: str) -> pd.DataFrame:
    """Read a bed file with chromosome, start, end and name of each region."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"The specified bed file does not exist: {path}")
    try:
        bed = pd.read_csv(path, sep="\t", header=None, dtype=str, keep_default_na=False, na_values=[""])
    except pd.errors.EmptyDataError:
        return pd.DataFrame({
            "chromosome": pd.Series(dtype=str),
            "start": pd.Series(dtype=np.int64),
            "end": pd.Series(dtype=np.int64),
            "name": pd.Series(dtype=str),
        })
    except pd.errors.ParserError as error:
        # raised for a line with more fields than the first one
        match = BED_PARSER_ERROR.search(str(error))
        if match is None:
            raise
        _, line_number, found = (int(group) for group in match.groups())
        raise ColumnMismatchError(line_number, len(BED_COLUMNS), found) from None

    if bed.shape[1] != len(BED_COLUMNS):
        raise ColumnMismatchError(1, len(BED_COLUMNS), bed.shape[1], "\t".join(bed.iloc[0].dropna()))
    incomplete = bed.isna().any(axis=1)
    if incomplete.any():
        row = int(incomplete.to_numpy().argmax())
        values = bed.iloc[row].dropna()
        raise ColumnMismatchError(row + 1, len(BED_COLUMNS), len(values), "\t".join(values))
    bed.columns = BED_COLUMNS

    for column in ("start", "end"):
        invalid = ~bed[column].str.fullmatch(COORDINATE_PATTERN.pattern)
        if invalid.any():
            row = int(invalid.to_numpy().argmax())
            raise CoordinateParseError(row + 1, column, bed[column].iloc[row])
    return bed.astype({"start": np.int64, "end": np.int64})


def read_depths(path: str) -> pd.DataFrame:
    """Read the output of samtools depth (chromosome, position, depth)."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"The specified depth file does not exist: {path}")
    return pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=DEPTH_COLUMNS,
        usecols=[0, 1, 2],
        dtype={"chromosome": str, "position": np.int64, "depth": np.int64},
    )


def add_region_names(depths: pd.DataFrame, regions: pd.DataFrame) -> pd.DataFrame:
    """Add a name column to the depth table.

    Every position is named after the first region (by end coordinate) that ends
    at or after it. Positions behind the last region keep the name of the last region.

    Args:
        depths: Table with at least a position column
        regions: Bed regions with end and name columns

    Returns:
        Copy of depths with an additional name column
    """
    if regions.empty:
        raise ValueError("No bed regions given to name the depth positions with.")
    ordered = regions.sort_values("end", kind="stable")
    ends = ordered["end"].to_numpy()
    names = ordered["name"].to_numpy()
    indices = np.searchsorted(ends, depths["position"].to_numpy(), side="left")
    indices = np.minimum(indices, len(ends) - 1)
    named = depths.copy()
    named["name"] = names[indices]
    return named


def write_named_depths(named: pd.DataFrame, output) -> None:
    named.to_csv(output, sep="\t", header=False, index=False)


def name_depth_file(depth_path: str, regions: pd.DataFrame, output_path: str) -> str:
    named = add_region_names(read_depths(depth_path), regions)
    write_named_depths(named, output_path)
    return output_path


def name_depth_files(depth_paths: List[str], regions: pd.DataFrame, workers: Optional[int] = None) -> List[str]:
    """Name several depth files independently, each in its own worker process.

    Output of each file goes to <depth_path>.depthn.
    """
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(name_depth_file, depth_path, regions, depth_path + NAMED_DEPTH_SUFFIX)
            for depth_path in depth_paths
        ]
        for future in tqdm(as_completed(futures), total=len(futures), desc="Naming depth files"):
            future.result()
    return [depth_path + NAMED_DEPTH_SUFFIX for depth_path in depth_paths]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Adds names defined in a bed file to the output of the \"samtools depth\" command. "
                    "Both files have to be sorted by position."
    )
    parser.add_argument("--depth", "-d", type=str, nargs="+", required=True, help="Depth file(s) from \"samtools depth\" to add names to")
    parser.add_argument("--bed", "-b", type=str, required=True, help="Bed file with start, end and name of the regions")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="Output file for a single depth file, stdout if not given. Several depth files are written to <depth>.depthn")
    parser.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes for several depth files")
    return parser.parse_args()


def main():
    args = parse_args()
    regions = read_bed(args.bed)
    if len(args.depth) > 1:
        print(f"Found {len(args.depth)} depth files to process")
        for output_path in name_depth_files(args.depth, regions, args.workers):
            print(f"  Wrote {output_path}")
    elif args.output is not None:
        name_depth_file(args.depth[0], regions, args.output)
        print(f"Wrote {args.depth[0]} to {args.output}")
    else:
        write_named_depths(add_region_names(read_depths(args.depth[0]), regions), sys.stdout)


if __name__ == "__main__":
    main()
