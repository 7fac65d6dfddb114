"""
K-d tree data structures for nearest place lookup.

This module defines the tree nodes and the tree wrapper used for spatial
indexing of place records. Trees are built by place_reverse.builder and are
read-only afterwards, so a single tree may serve any number of concurrent
queries.
"""

from __future__ import annotations
from dataclasses import dataclass
import math
from typing import Generic, Iterator, Optional, Tuple, TypeVar

from .errors import EmptyIndexError
from .geoname import Locatable

R = TypeVar("R", bound=Locatable)

Query = Tuple[float, float]


def squared_distance(query: Query, record: Locatable) -> float:
    """Squared planar distance between a (lat, lon) query and a record."""
    dlat = query[0] - record.coordinate(0)
    dlon = query[1] - record.coordinate(1)
    return dlat * dlat + dlon * dlon


@dataclass
class KDNode(Generic[R]):
    """
    A node owning one record and splitting its subtree on one axis.

    Records in `left` have coordinate(axis) <= this record's, records in
    `right` have coordinate(axis) >= this record's.
    """
    record: R
    axis: int
    left: Optional[KDNode[R]] = None
    right: Optional[KDNode[R]] = None

    @property
    def split_value(self) -> float:
        """The record's coordinate on this node's axis."""
        return self.record.coordinate(self.axis)

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def nearest(
        self, query: Query, best: Optional[R], best_dist: float
    ) -> Tuple[Optional[R], float]:
        """
        Branch-and-bound nearest neighbour search below this node.

        Args:
            query: (latitude, longitude) being searched for
            best: Closest record seen so far (None before the first visit)
            best_dist: Squared distance of `best`

        Returns:
            Tuple of (closest record, squared distance)
        """
        dist = squared_distance(query, self.record)
        # Strict comparison keeps the first record found among equals
        if best is None or dist < best_dist:
            best, best_dist = self.record, dist

        diff = query[self.axis] - self.split_value
        if diff <= 0:
            near, far = self.left, self.right
        else:
            near, far = self.right, self.left

        if near is not None:
            best, best_dist = near.nearest(query, best, best_dist)

        # The far side can only hold a closer record if the splitting
        # line is nearer than the best match so far
        if far is not None and diff * diff < best_dist:
            best, best_dist = far.nearest(query, best, best_dist)

        return best, best_dist

    def iter_nodes(self, depth: int = 0) -> Iterator[Tuple[KDNode[R], int]]:
        """Pre-order iteration over (node, depth) pairs of this subtree."""
        stack = [(self, depth)]
        while stack:
            node, d = stack.pop()
            yield node, d
            if node.right is not None:
                stack.append((node.right, d + 1))
            if node.left is not None:
                stack.append((node.left, d + 1))

    def node_count(self) -> int:
        """Return total number of nodes in this subtree."""
        count = 1  # This node
        for child in (self.left, self.right):
            if child is not None:
                count += child.node_count()
        return count

    def leaf_count(self) -> int:
        """Return number of leaf nodes in this subtree."""
        if self.is_leaf():
            return 1
        count = 0
        for child in (self.left, self.right):
            if child is not None:
                count += child.leaf_count()
        return count

    def max_depth(self) -> int:
        """Return number of levels in this subtree (a leaf has depth 1)."""
        max_child_depth = 0
        for child in (self.left, self.right):
            if child is not None:
                max_child_depth = max(max_child_depth, child.max_depth())
        return 1 + max_child_depth


class KDTree(Generic[R]):
    """
    A two-dimensional k-d tree over place records.
    """

    def __init__(self, root: Optional[KDNode[R]], size: Optional[int] = None):
        """
        Initialize a tree.

        Args:
            root: The root node, or None for a tree that holds no records
            size: Number of records below root; counted when omitted
        """
        self.root = root
        if size is None:
            size = root.node_count() if root is not None else 0
        self._size = size

    def nearest(self, latitude: float, longitude: float) -> R:
        """
        Find the record closest to a coordinate.

        Args:
            latitude: Query latitude in degrees
            longitude: Query longitude in degrees

        Returns:
            The indexed record at minimum planar distance. Among records
            at equal distance the first one reached by the search wins.

        Raises:
            EmptyIndexError: if the tree holds no records
            ValueError: if the query is not finite
        """
        if self.root is None:
            raise EmptyIndexError("Cannot query an empty index")
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            raise ValueError(
                f"Query must be finite: lat={latitude}, lon={longitude}"
            )
        best, _ = self.root.nearest((float(latitude), float(longitude)), None, math.inf)
        return best

    def nearest_with_distance(self, latitude: float, longitude: float) -> Tuple[R, float]:
        """Like nearest(), also returning the planar distance in degrees."""
        record = self.nearest(latitude, longitude)
        return record, math.sqrt(squared_distance((latitude, longitude), record))

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[R]:
        """In-order traversal of the indexed records."""
        stack = []
        node = self.root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.record
            node = node.right

    def iter_nodes(self) -> Iterator[Tuple[KDNode[R], int]]:
        """Pre-order iteration over (node, depth) pairs; depth 0 is the root."""
        if self.root is None:
            return iter(())
        return self.root.iter_nodes()

    @property
    def node_count(self) -> int:
        """Total number of nodes in the tree."""
        return self.root.node_count() if self.root is not None else 0

    @property
    def leaf_count(self) -> int:
        """Number of leaf nodes in the tree."""
        return self.root.leaf_count() if self.root is not None else 0

    @property
    def depth(self) -> int:
        """Number of levels in the tree."""
        return self.root.max_depth() if self.root is not None else 0
