"""
Oracle interface for nearest place lookup.

An oracle answers nearest-place queries by exhaustive comparison against
every record. It is slow but obviously correct, and serves as ground truth
when verifying a k-d tree.
"""

from abc import ABC, abstractmethod
import math
from typing import List, Sequence, Tuple

from .errors import EmptyDatasetError
from .geoname import Locatable
from .kdtree import squared_distance


class Oracle(ABC):
    """
    Abstract base class for nearest place oracles.

    Oracles are built over a fixed sequence of records and report results
    as indices into that sequence.
    """

    def __init__(self, records: Sequence[Locatable]):
        if not records:
            raise EmptyDatasetError("Oracle needs at least one record")
        self.records = list(records)

    @abstractmethod
    def nearest_index(self, lat: float, lon: float) -> int:
        """
        Return the index of the record closest to (lat, lon).

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees

        Returns:
            Index into self.records
        """
        pass

    def nearest_batch(self, points: List[Tuple[float, float]]) -> List[int]:
        """
        Look up the nearest record index for multiple points.

        Default implementation calls nearest_index() for each point.
        Subclasses may override for better performance (e.g., batch SQL queries).

        Args:
            points: List of (lat, lon) tuples

        Returns:
            List of record indices in the same order as input points
        """
        return [self.nearest_index(lat, lon) for lat, lon in points]

    def nearest(self, lat: float, lon: float) -> Locatable:
        """Return the record closest to (lat, lon)."""
        return self.records[self.nearest_index(lat, lon)]

    def distance(self, lat: float, lon: float, index: int) -> float:
        """Squared distance from (lat, lon) to record `index`."""
        return squared_distance((lat, lon), self.records[index])


class BruteForceOracle(Oracle):
    """
    Linear scan oracle.

    Ties go to the record that comes first in the input sequence.
    """

    def nearest_index(self, lat: float, lon: float) -> int:
        query = (lat, lon)
        best_index = 0
        best_dist = math.inf
        for i, record in enumerate(self.records):
            dist = squared_distance(query, record)
            if dist < best_dist:
                best_index = i
                best_dist = dist
        return best_index
