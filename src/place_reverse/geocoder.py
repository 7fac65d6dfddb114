"""
Reverse geocoder: nearest named place for a coordinate.

Example:
    coder = ReverseGeocoder.from_file("cities1000.zip", major_only=True)
    place = coder.nearest_place(39.5, -98.3)
    print(place, coder.region_name(place.admin1_code))
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .builder import BuilderConfig, BuilderStats, KDTreeBuilder
from .geoname import GeoName
from .geonames import IngestConfig, load_geonames
from .kdtree import KDTree
from .regions import region_name


class ReverseGeocoder:
    """
    Nearest place lookup over a fixed set of GeoName records.

    The index is built once in the constructor and never modified, so one
    instance can be shared between threads.
    """

    def __init__(self, records: Iterable[GeoName], config: Optional[BuilderConfig] = None):
        """
        Args:
            records: Places to index
            config: Builder configuration

        Raises:
            EmptyDatasetError: if records is empty
        """
        builder = KDTreeBuilder(config)
        self.tree: KDTree[GeoName] = builder.build(records)
        self.stats: BuilderStats = builder.stats

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        major_only: bool = False,
        min_population: int = 0,
        strict: bool = False,
        config: Optional[BuilderConfig] = None,
    ) -> "ReverseGeocoder":
        """
        Build a geocoder from a GeoNames dump (.txt or .zip).

        Args:
            path: Dataset path
            major_only: Index only major places
            min_population: Population threshold for major places
            strict: Abort on malformed lines instead of skipping them
            config: Builder configuration
        """
        ingest = IngestConfig(
            major_only=major_only,
            min_population=min_population,
            strict=strict,
        )
        return cls(load_geonames(path, ingest), config)

    def nearest_place(self, latitude: float, longitude: float) -> GeoName:
        """Return the indexed place closest to (latitude, longitude)."""
        return self.tree.nearest(latitude, longitude)

    @staticmethod
    def region_name(code: Optional[str]) -> Optional[str]:
        """Full name for a two-letter region code, or None when unknown."""
        return region_name(code)

    def __len__(self) -> int:
        return len(self.tree)
