"""
place-reverse: offline reverse geocoding with a k-d tree.

This package provides tools to find the nearest named place to a WGS84
(lat, lon) coordinate, using a balanced two-dimensional k-d tree built
from GeoNames dump files.
"""

__version__ = "0.1.0"

from .errors import (
    PlaceReverseError,
    EmptyDatasetError,
    EmptyIndexError,
    MalformedRecordError,
    MalformedDatasetError,
)
from .geoname import GeoName, Locatable
from .kdtree import KDNode, KDTree
from .builder import KDTreeBuilder, BuilderConfig, BuilderStats, build, build_kdtree
from .geonames import IngestConfig, parse_line, read_geonames, load_geonames
from .regions import region_name
from .geocoder import ReverseGeocoder
from .oracle import Oracle, BruteForceOracle
from .duckdb_oracle import DuckDBOracle, create_oracle_from_geonames

__all__ = [
    "PlaceReverseError",
    "EmptyDatasetError",
    "EmptyIndexError",
    "MalformedRecordError",
    "MalformedDatasetError",
    "GeoName",
    "Locatable",
    "KDNode",
    "KDTree",
    "KDTreeBuilder",
    "BuilderConfig",
    "BuilderStats",
    "build",
    "build_kdtree",
    "IngestConfig",
    "parse_line",
    "read_geonames",
    "load_geonames",
    "region_name",
    "ReverseGeocoder",
    "Oracle",
    "BruteForceOracle",
    "DuckDBOracle",
    "create_oracle_from_geonames",
]
