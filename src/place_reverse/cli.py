"""
Command-line interface for place-reverse.

Provides commands for looking up the nearest place in a GeoNames dump,
inspecting the built index and verifying it against a brute-force oracle.
"""

import argparse
import logging
import math
import random
import sys
import time
from pathlib import Path
from typing import Optional

from .builder import BuilderConfig
from .duckdb_oracle import DuckDBOracle
from .errors import PlaceReverseError
from .geocoder import ReverseGeocoder
from .kdtree import squared_distance


def _add_dataset_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by every command that loads a dataset."""
    parser.add_argument(
        "dataset",
        type=Path,
        help="GeoNames dump (.txt) or zip archive containing one",
    )
    parser.add_argument(
        "--major-only",
        action="store_true",
        help="Index only major places",
    )
    parser.add_argument(
        "--min-population",
        type=int,
        default=0,
        help="Minimum population for a major place (default: 0)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed line instead of skipping it",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for the tree builder (default: 42)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="place-reverse",
        description="Find the nearest named place to a coordinate",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Lookup command
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Print the nearest place to a coordinate",
    )
    _add_dataset_arguments(lookup_parser)
    lookup_parser.add_argument("latitude", type=float, help="Latitude in degrees")
    lookup_parser.add_argument("longitude", type=float, help="Longitude in degrees")

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show index statistics for a dataset",
    )
    _add_dataset_arguments(stats_parser)

    # Verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Check random queries against a brute-force DuckDB oracle",
    )
    _add_dataset_arguments(verify_parser)
    verify_parser.add_argument(
        "-n", "--queries",
        type=int,
        default=1000,
        help="Number of random queries (default: 1000)",
    )
    verify_parser.add_argument(
        "--query-seed",
        type=int,
        default=0,
        help="Random seed for query points (default: 0)",
    )

    return parser


def _load(args: argparse.Namespace) -> ReverseGeocoder:
    return ReverseGeocoder.from_file(
        args.dataset,
        major_only=args.major_only,
        min_population=args.min_population,
        strict=args.strict,
        config=BuilderConfig(seed=args.seed),
    )


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle the lookup command."""
    coder = _load(args)
    place, distance = coder.tree.nearest_with_distance(args.latitude, args.longitude)

    print(f"Nearest to {args.latitude}, {args.longitude} is {place}")
    print(f"  Location: {place.latitude}, {place.longitude} ({distance:.4f} degrees away)")
    if place.country_code:
        print(f"  Country: {place.country_code}")
    if place.admin1_code:
        region = coder.region_name(place.admin1_code)
        if region:
            print(f"  Region: {place.admin1_code} ({region})")
        else:
            print(f"  Region: {place.admin1_code}")
    if place.population:
        print(f"  Population: {place.population:,}")

    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the stats command."""
    start = time.perf_counter()
    coder = _load(args)
    elapsed = time.perf_counter() - start

    tree = coder.tree
    stats = coder.stats
    n = len(tree)

    print(f"Index statistics for {args.dataset}:")
    print(f"  Records indexed: {stats.records_indexed:,}")
    print(f"  Nodes created: {stats.nodes_created:,}")
    print(f"  Leaf nodes: {stats.leaves_created:,}")
    print(f"  Tree depth: {tree.depth} (balanced bound {math.ceil(math.log2(n + 1))})")
    print(f"  Select calls: {stats.select_calls:,}")
    print(f"  Load and build time: {elapsed:.2f}s")

    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Handle the verify command."""
    if args.queries < 1:
        print("Error: --queries must be at least 1")
        return 1

    print(f"Loading {args.dataset}...")
    coder = _load(args)
    records = list(coder.tree)
    print(f"Indexed {len(records):,} places")

    rng = random.Random(args.query_seed)
    points = [
        (rng.uniform(-90.0, 90.0), rng.uniform(-180.0, 180.0))
        for _ in range(args.queries)
    ]

    print(f"Running {len(points)} queries against DuckDB oracle...")
    with DuckDBOracle(records) as oracle:
        expected = oracle.nearest_batch(points)

    mismatches = 0
    for (lat, lon), idx in zip(points, expected):
        found = coder.nearest_place(lat, lon)
        # Any record at the oracle's distance is a correct answer
        if squared_distance((lat, lon), found) != squared_distance((lat, lon), records[idx]):
            mismatches += 1
            print(f"  Mismatch at {lat:.6f}, {lon:.6f}: tree={found} oracle={records[idx]}")

    print(f"\nMatches: {len(points) - mismatches}/{len(points)}")
    return 0 if mismatches == 0 else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "lookup": cmd_lookup,
        "stats": cmd_stats,
        "verify": cmd_verify,
    }
    try:
        return commands[args.command](args)
    except (FileNotFoundError, PlaceReverseError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
