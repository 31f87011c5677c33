"""
Clustering engine: groups canonical keys into duplicate clusters.

Every unordered pair of distinct keys is scored (O(n^2), guarded by a batch
size limit). A pair becomes a link when its confidence reaches the minimum
and its pattern type was seen often enough among this batch's candidate
pairs; links are then closed transitively with union-find:

    A ~ B (0.93) and B ~ C (0.90)  =>  {A, B, C}
    even when A ~ C alone scores below the threshold.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass

import structlog

from .errors import BatchTooLargeError
from .patterns import PairScore, PatternType, compare_keys

logger = structlog.get_logger("concordia.clustering")

DEFAULT_MAX_BATCH_SIZE = 5000


class UnionFind:
    """Union-Find with path compression and union by rank."""

    def __init__(self):
        self.parent = {}
        self.rank = {}

    def find(self, x):
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0
        if self.parent[x] != x:
            self.parent[x] = self.find(self.parent[x])
        return self.parent[x]

    def union(self, x, y) -> bool:
        px, py = self.find(x), self.find(y)
        if px == py:
            return False
        if self.rank[px] < self.rank[py]:
            px, py = py, px
        self.parent[py] = px
        if self.rank[px] == self.rank[py]:
            self.rank[px] += 1
        return True

    def groups(self) -> dict:
        clusters = defaultdict(set)
        for x in self.parent:
            clusters[self.find(x)].add(x)
        return clusters


@dataclass(frozen=True)
class Link:
    """An accepted link between two input positions."""
    left: int
    right: int
    confidence: float
    pattern: PatternType | None  # None for identical keys


class ClusteringEngine:
    """
    Pairwise clustering with a confidence gate and a pattern-frequency gate.

    All state (pattern counts, links) belongs to the last create_clusters()
    call and is reset at the start of the next one.
    """

    def __init__(
        self,
        min_confidence: float = 0.85,
        min_frequency: int = 2,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ):
        """
        Args:
            min_confidence: Minimum pair confidence to become a candidate
            min_frequency: Candidates of a pattern type needed before that type is trusted
            max_batch_size: Refuse batches larger than this
        """
        self.min_confidence = min_confidence
        self.min_frequency = min_frequency
        self.max_batch_size = max_batch_size

        self.pattern_counts: Counter = Counter()
        self.links: list[Link] = []
        self.pairs_compared = 0

    def _reset(self) -> None:
        self.pattern_counts = Counter()
        self.links = []
        self.pairs_compared = 0

    def score_pair(self, first: str, second: str) -> PairScore:
        """Score two keys, using the longer one as the base form."""
        if len(second) > len(first):
            first, second = second, first
        return compare_keys(first, second)

    def create_clusters(self, keys: list[str]) -> list[list[int]]:
        """
        Group keys into clusters of duplicates.

        Args:
            keys: Canonical keys; positions are what the clusters refer to

        Returns:
            Clusters of two or more input positions, each sorted ascending,
            ordered by their first position. Singletons are not emitted,
            and empty keys never join a cluster.

        Raises:
            BatchTooLargeError: more keys than max_batch_size
        """
        self._reset()

        if len(keys) > self.max_batch_size:
            raise BatchTooLargeError(
                f"{len(keys)} keys exceed the clustering limit of {self.max_batch_size}",
                {"keys": len(keys), "max_batch_size": self.max_batch_size},
            )

        uf = UnionFind()
        positions_by_key: dict[str, list[int]] = defaultdict(list)
        blank = 0
        for position, key in enumerate(keys):
            uf.find(position)
            # An empty key (emoji or punctuation-only label) identifies nothing
            if not key:
                blank += 1
                continue
            positions_by_key[key].append(position)

        # Same canonical key means same entity
        for positions in positions_by_key.values():
            head = positions[0]
            for other in positions[1:]:
                uf.union(head, other)
                self.links.append(Link(head, other, 1.0, None))

        # Score every pair of distinct keys; keep those above the confidence gate
        distinct = list(positions_by_key)
        candidates: list[tuple[int, int, PairScore]] = []
        for i, first in enumerate(distinct):
            for second in distinct[i + 1:]:
                self.pairs_compared += 1
                score = self.score_pair(first, second)
                if score.confidence >= self.min_confidence:
                    candidates.append((positions_by_key[first][0], positions_by_key[second][0], score))
                    self.pattern_counts[score.pattern] += 1

        # Frequency gate: a pattern type seen only by chance is not trusted
        rejected = 0
        for left, right, score in candidates:
            if self.pattern_counts[score.pattern] < self.min_frequency:
                rejected += 1
                continue
            uf.union(left, right)
            self.links.append(Link(left, right, score.confidence, score.pattern))

        clusters = sorted(
            sorted(members)
            for members in uf.groups().values()
            if len(members) >= 2
        )

        logger.debug(
            "clusters_created",
            keys=len(keys),
            distinct_keys=len(distinct),
            blank_keys=blank,
            pairs_compared=self.pairs_compared,
            candidates=len(candidates),
            rejected_by_frequency=rejected,
            clusters=len(clusters),
        )

        return clusters

    def cluster_confidence(self, members: list[int]) -> float:
        """Minimum confidence among the accepted links inside a cluster."""
        member_set = set(members)
        scores = [
            link.confidence
            for link in self.links
            if link.left in member_set and link.right in member_set
        ]
        return min(scores) if scores else 0.0
