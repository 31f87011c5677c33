"""
Deduplication orchestrator.

Per entity kind: load records from storage, cluster their canonical keys,
turn clusters into duplicate groups with a stable primary, and merge them
only when the run's intent allows it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import structlog

from .clustering import DEFAULT_MAX_BATCH_SIZE, ClusteringEngine
from .config import DeduplicationConfig, MergeIntent
from .errors import MergeError
from .merge import MergeStats, merge_entities
from .normalizer import LabelNormalizer
from .records import EntityKind, EntityRecord, build_records
from .storage import CatalogStorage

logger = structlog.get_logger("concordia.deduplication")


@dataclass
class DuplicateGroup:
    """A primary entity and the entities judged to duplicate it."""
    primary_id: int
    primary_name: str
    duplicate_ids: list[int]
    duplicate_names: list[str]
    confidence: float


@dataclass
class DeduplicationResult:
    """Outcome of one deduplication run for one entity kind."""
    entity_kind: EntityKind
    total_entities: int = 0
    duplicate_groups: list[DuplicateGroup] = field(default_factory=list)
    merged_groups: list[MergeStats] = field(default_factory=list)
    skipped_low_confidence: int = 0
    failed_merges: int = 0

    @property
    def merged(self) -> bool:
        return bool(self.merged_groups)


def clusters_to_groups(
    records: list[EntityRecord],
    clusters: list[list[int]],
    engine: ClusteringEngine,
) -> list[DuplicateGroup]:
    """
    Convert clusters of record positions into duplicate groups.

    The primary is the member with the lowest id, which keeps the choice
    stable across runs on unchanged data.
    """
    groups = []

    for cluster in clusters:
        members = sorted((records[i] for i in cluster), key=lambda r: r.id())
        primary, duplicates = members[0], members[1:]
        if not duplicates:
            continue

        groups.append(DuplicateGroup(
            primary_id=primary.id(),
            primary_name=primary.label,
            duplicate_ids=[r.id() for r in duplicates],
            duplicate_names=[r.label for r in duplicates],
            confidence=engine.cluster_confidence(cluster),
        ))

    groups.sort(key=lambda g: g.primary_id)
    return groups


def _merge_groups(
    storage: CatalogStorage,
    kind: EntityKind,
    groups: list[DuplicateGroup],
    config: DeduplicationConfig,
    result: DeduplicationResult,
) -> None:
    threshold = config.effective_merge_threshold

    for group in groups:
        if config.intent is MergeIntent.MERGE_IF_CONFIDENT and group.confidence < threshold:
            result.skipped_low_confidence += 1
            logger.info(
                "merge_skipped_low_confidence",
                kind=kind.value,
                primary_id=group.primary_id,
                confidence=round(group.confidence, 4),
                threshold=threshold,
            )
            continue

        try:
            stats = merge_entities(storage, kind, group.primary_id, group.duplicate_ids)
        except MergeError as e:
            result.failed_merges += 1
            logger.warning(
                "merge_failed",
                kind=kind.value,
                primary_id=group.primary_id,
                duplicate_ids=group.duplicate_ids,
                error_code=e.error_code,
                error=e.message,
            )
            continue

        result.merged_groups.append(stats)


def deduplicate(
    storage: CatalogStorage,
    kind: EntityKind,
    config: Optional[DeduplicationConfig] = None,
    normalizer: Optional[LabelNormalizer] = None,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> DeduplicationResult:
    """
    Find and optionally merge duplicate entities of one kind.

    Args:
        storage: Catalog storage
        kind: Entity kind to process
        config: Run configuration (report-only by default)
        normalizer: Label normalizer (default instance if omitted)
        max_batch_size: Largest entity count the pairwise clustering accepts

    Returns:
        DeduplicationResult; storage is mutated only when config.intent allows it
    """
    config = config or DeduplicationConfig()
    log = logger.bind(kind=kind.value, intent=config.intent.value)

    rows = storage.load_labels(kind)
    records = build_records(kind, rows, normalizer)
    result = DeduplicationResult(entity_kind=kind, total_entities=len(records))

    if not records:
        log.info("dedup_nothing_to_do")
        return result

    log.info(
        "dedup_started",
        entities=len(records),
        min_confidence=config.min_confidence,
        min_frequency=config.min_frequency,
    )

    engine = ClusteringEngine(
        min_confidence=config.min_confidence,
        min_frequency=config.min_frequency,
        max_batch_size=max_batch_size,
    )
    clusters = engine.create_clusters([r.canonical_key() for r in records])
    result.duplicate_groups = clusters_to_groups(records, clusters, engine)

    if config.intent is not MergeIntent.REPORT_ONLY:
        _merge_groups(storage, kind, result.duplicate_groups, config, result)

    log.info(
        "dedup_finished",
        groups=len(result.duplicate_groups),
        merged=len(result.merged_groups),
        skipped_low_confidence=result.skipped_low_confidence,
        failed_merges=result.failed_merges,
        patterns={p.value: n for p, n in engine.pattern_counts.items()},
    )
    return result


def deduplicate_people(storage: CatalogStorage, config: Optional[DeduplicationConfig] = None) -> DeduplicationResult:
    return deduplicate(storage, EntityKind.PERSON, config)


def deduplicate_publishers(storage: CatalogStorage, config: Optional[DeduplicationConfig] = None) -> DeduplicationResult:
    return deduplicate(storage, EntityKind.PUBLISHER, config)


def deduplicate_series(storage: CatalogStorage, config: Optional[DeduplicationConfig] = None) -> DeduplicationResult:
    return deduplicate(storage, EntityKind.SERIES, config)


def deduplicate_tags(storage: CatalogStorage, config: Optional[DeduplicationConfig] = None) -> DeduplicationResult:
    return deduplicate(storage, EntityKind.TAG, config)


def deduplicate_roles(storage: CatalogStorage, config: Optional[DeduplicationConfig] = None) -> DeduplicationResult:
    return deduplicate(storage, EntityKind.ROLE, config)


def deduplicate_all(
    storage: CatalogStorage,
    config: Optional[DeduplicationConfig] = None,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> dict[EntityKind, DeduplicationResult]:
    """Run deduplication for every entity kind, one after the other."""
    return {
        kind: deduplicate(storage, kind, config, max_batch_size=max_batch_size)
        for kind in EntityKind
    }
