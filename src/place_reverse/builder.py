"""
K-d tree builder using recursive median partitioning.

This module implements the bulk builder that constructs a balanced k-d tree
from a batch of place records. Each level splits its slice at the median of
the current axis, found with quickselect rather than a full sort, so the
whole build runs in expected O(n log n) time and the tree depth never
exceeds ceil(log2(n + 1)).
"""

from dataclasses import dataclass
import logging
import random
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import EmptyDatasetError
from .geoname import AXES, Locatable
from .kdtree import KDNode, KDTree


logger = logging.getLogger(__name__)


@dataclass
class BuilderConfig:
    """Configuration for the k-d tree builder."""

    seed: int = 42
    """Random seed for quickselect pivot choice."""

    def __post_init__(self):
        if not isinstance(self.seed, int) or isinstance(self.seed, bool):
            raise ValueError("seed must be an integer")


@dataclass
class BuilderStats:
    """Statistics collected during tree building."""

    records_indexed: int = 0
    nodes_created: int = 0
    leaves_created: int = 0
    max_depth_reached: int = 0
    select_calls: int = 0


class KDTreeBuilder:
    """
    Builder for balanced two-dimensional k-d trees.

    The builder constructs a tree by:
    1. Choosing the split axis from the depth (latitude, then longitude, ...)
    2. Moving the median of the slice on that axis into place with quickselect
    3. Making the median the node and recursing on the slices either side
    """

    def __init__(self, config: Optional[BuilderConfig] = None):
        """
        Initialize the builder.

        Args:
            config: Builder configuration (defaults apply when omitted)
        """
        self.config = config or BuilderConfig()
        self.stats = BuilderStats()

    def build(self, records: Iterable[Locatable]) -> KDTree:
        """
        Build a tree over all records.

        Args:
            records: Records to index; the input itself is left untouched

        Returns:
            KDTree holding every record exactly once

        Raises:
            EmptyDatasetError: if no records are supplied
        """
        self.stats = BuilderStats()  # Reset stats
        self._rng = random.Random(self.config.seed)

        items = list(records)
        if not items:
            raise EmptyDatasetError("Cannot build an index from zero records")

        root = self._build_node(items, 0, len(items), depth=0)
        self.stats.records_indexed = len(items)
        logger.debug(
            "Built k-d tree: %d records, depth %d",
            len(items), self.stats.max_depth_reached + 1,
        )
        return KDTree(root, size=len(items))

    def _select(self, items: List[Locatable], lo: int, hi: int, k: int, axis: int) -> None:
        """
        Rearrange items[lo:hi] so that items[k] holds the k-th smallest value
        on `axis`, with nothing larger before it and nothing smaller after it.

        Uses three-way partitioning so runs of equal coordinates finish in
        a single pass.
        """
        self.stats.select_calls += 1
        rng = self._rng
        while hi - lo > 1:
            pivot = items[rng.randrange(lo, hi)].coordinate(axis)
            lt, i, gt = lo, lo, hi
            while i < gt:
                value = items[i].coordinate(axis)
                if value < pivot:
                    items[lt], items[i] = items[i], items[lt]
                    lt += 1
                    i += 1
                elif value > pivot:
                    gt -= 1
                    items[gt], items[i] = items[i], items[gt]
                else:
                    i += 1
            # items[lo:lt] < pivot == items[lt:gt] < items[gt:hi]
            if k < lt:
                hi = lt
            elif k >= gt:
                lo = gt
            else:
                return

    def _build_node(self, items: List[Locatable], lo: int, hi: int, depth: int) -> Optional[KDNode]:
        """
        Build the subtree for items[lo:hi].

        Args:
            items: Working list shared by the whole build
            lo: Start of the slice (inclusive)
            hi: End of the slice (exclusive)
            depth: Current depth in the tree

        Returns:
            KDNode for the slice, or None if the slice is empty
        """
        if lo >= hi:
            return None

        self.stats.max_depth_reached = max(self.stats.max_depth_reached, depth)
        axis = AXES[depth % len(AXES)]
        median = lo + (hi - lo) // 2
        self._select(items, lo, hi, median, axis)

        node = KDNode(
            record=items[median],
            axis=axis,
            left=self._build_node(items, lo, median, depth + 1),
            right=self._build_node(items, median + 1, hi, depth + 1),
        )

        self.stats.nodes_created += 1
        if node.is_leaf():
            self.stats.leaves_created += 1
        return node


def build_kdtree(records: Iterable[Locatable], seed: int = 42) -> Tuple[KDTree, BuilderStats]:
    """
    Convenience function to build a k-d tree.

    Args:
        records: Records to index
        seed: Random seed for pivot selection

    Returns:
        Tuple of (KDTree, BuilderStats)
    """
    builder = KDTreeBuilder(BuilderConfig(seed=seed))
    tree = builder.build(records)
    return tree, builder.stats


def build(records: Sequence[Locatable]) -> KDTree:
    """Build a k-d tree with default settings and return only the tree."""
    tree, _ = build_kdtree(records)
    return tree
