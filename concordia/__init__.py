"""
CONCORDIA: Catalog Entity Deduplication

Finds duplicate people, publishers, series, tags and roles in a personal
library catalog and merges them safely.

Pipeline:
- normalizer / names: labels -> canonical keys
- patterns: pair classification and confidence scoring
- clustering: confidence + frequency gates, union-find closure
- deduplication: duplicate groups, merge intent
- merge: transactional reference rewrite and delete
"""

__version__ = "1.0.0"

from .clustering import ClusteringEngine, UnionFind
from .config import DeduplicationConfig, MergeIntent, Settings, load_settings
from .deduplication import (
    DeduplicationResult,
    DuplicateGroup,
    deduplicate,
    deduplicate_all,
    deduplicate_people,
    deduplicate_publishers,
    deduplicate_roles,
    deduplicate_series,
    deduplicate_tags,
)
from .errors import ConcordiaError, MergeError
from .merge import (
    MergeStats,
    merge_entities,
    merge_people,
    merge_publishers,
    merge_roles,
    merge_series,
    merge_tags,
)
from .names import ParsedName, parse_name
from .normalizer import LabelNormalizer, normalize
from .patterns import PatternType, classify_pattern, score_confidence
from .records import EntityKind, build_records
from .similarity import SimilarityMetrics
from .storage import CatalogStorage

__all__ = [
    "CatalogStorage",
    "ClusteringEngine",
    "ConcordiaError",
    "DeduplicationConfig",
    "DeduplicationResult",
    "DuplicateGroup",
    "EntityKind",
    "LabelNormalizer",
    "MergeError",
    "MergeIntent",
    "MergeStats",
    "ParsedName",
    "PatternType",
    "Settings",
    "SimilarityMetrics",
    "UnionFind",
    "build_records",
    "classify_pattern",
    "deduplicate",
    "deduplicate_all",
    "deduplicate_people",
    "deduplicate_publishers",
    "deduplicate_roles",
    "deduplicate_series",
    "deduplicate_tags",
    "load_settings",
    "merge_entities",
    "merge_people",
    "merge_publishers",
    "merge_roles",
    "merge_series",
    "merge_tags",
    "normalize",
    "parse_name",
    "score_confidence",
]
