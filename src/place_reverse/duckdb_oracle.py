"""
DuckDB-based oracle for nearest place lookup.

This module implements an oracle that loads place coordinates into an
in-memory DuckDB table and answers nearest-place queries with a full
scan ordered by squared planar distance.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import duckdb

from .geoname import Locatable
from .geonames import IngestConfig, load_geonames
from .oracle import Oracle


class DuckDBOracle(Oracle):
    """
    Oracle implementation using DuckDB.

    Ties are broken by the lower record index, matching BruteForceOracle.
    """

    def __init__(self, records: Sequence[Locatable], insert_batch_size: int = 10000):
        """
        Initialize the DuckDB oracle.

        Args:
            records: Records to load
            insert_batch_size: Rows per insert statement while loading
        """
        super().__init__(records)
        if insert_batch_size < 1:
            raise ValueError("insert_batch_size must be at least 1")
        self._insert_batch_size = insert_batch_size

        # Initialize DuckDB connection
        self._con = duckdb.connect(":memory:")
        self._load_records()

    def _load_records(self) -> None:
        """Load record coordinates into DuckDB."""
        self._con.execute("""
            CREATE TABLE places (idx INTEGER, lat DOUBLE, lon DOUBLE)
        """)

        batch = []
        for i, record in enumerate(self.records):
            batch.append((i, record.coordinate(0), record.coordinate(1)))
            if len(batch) >= self._insert_batch_size:
                self._con.executemany("INSERT INTO places VALUES (?, ?, ?)", batch)
                batch = []
        if batch:
            self._con.executemany("INSERT INTO places VALUES (?, ?, ?)", batch)

    def nearest_index(self, lat: float, lon: float) -> int:
        """
        Query the index of the closest record.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees

        Returns:
            Index into self.records
        """
        result = self._con.execute("""
            SELECT idx
            FROM places
            ORDER BY (lat - ?) * (lat - ?) + (lon - ?) * (lon - ?), idx
            LIMIT 1
        """, [lat, lat, lon, lon]).fetchone()
        return result[0]

    def nearest_batch(self, points: List[Tuple[float, float]]) -> List[int]:
        """
        Look up nearest record indices for multiple points in a single query.

        Args:
            points: List of (lat, lon) tuples

        Returns:
            List of record indices in the same order as input points
        """
        if not points:
            return []

        self._con.execute("""
            CREATE OR REPLACE TEMP TABLE queries (qidx INTEGER, qlat DOUBLE, qlon DOUBLE)
        """)
        self._con.executemany(
            "INSERT INTO queries VALUES (?, ?, ?)",
            [(i, lat, lon) for i, (lat, lon) in enumerate(points)],
        )

        # One aggregate state per query; (distance, idx) keys break ties
        # towards the lower index
        rows = self._con.execute("""
            SELECT q.qidx,
                   arg_min(
                       p.idx,
                       row((p.lat - q.qlat) * (p.lat - q.qlat)
                        + (p.lon - q.qlon) * (p.lon - q.qlon), p.idx)
                   ) AS idx
            FROM queries q CROSS JOIN places p
            GROUP BY q.qidx
            ORDER BY q.qidx
        """).fetchall()

        return [idx for _, idx in rows]

    def get_record_count(self) -> int:
        """Get the number of rows loaded into DuckDB."""
        return self._con.execute("SELECT count(*) FROM places").fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if getattr(self, "_con", None):
            self._con.close()
            self._con = None

    def __del__(self):
        """Cleanup on garbage collection."""
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_oracle_from_geonames(
    path: Union[str, Path],
    config: Optional[IngestConfig] = None,
) -> DuckDBOracle:
    """
    Convenience function to create an oracle from a GeoNames dump.

    Args:
        path: Path to a .txt dump or a .zip archive containing one
        config: Ingest configuration

    Returns:
        Configured DuckDBOracle instance
    """
    return DuckDBOracle(load_geonames(path, config))
