"""
Merge engine: collapse duplicate entities into one primary record.

A merge checks its preconditions first and touches nothing when they fail.
The mutation itself runs in a single transaction:

1. every foreign key pointing at a duplicate is rewritten to the primary
2. the duplicate entity rows are deleted

If any statement fails the whole transaction is rolled back and the error
propagates. A committed merge cannot be undone.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from .errors import EmptyDuplicatesError, EntityNotFoundError, PrimaryInDuplicatesError
from .records import EntityKind
from .storage import ENTITY_TABLES, CatalogStorage

logger = structlog.get_logger("concordia.merge")


@dataclass
class MergeStats:
    """Statistics about one committed merge."""
    primary_id: int
    merged_ids: list[int]
    rows_updated: dict[str, int] = field(default_factory=dict)
    books_updated: int = 0
    contents_updated: int = 0
    deleted_entities: int = 0


def _validate(storage: CatalogStorage, kind: EntityKind, primary_id: int, duplicate_ids: list[int]) -> None:
    if not duplicate_ids:
        raise EmptyDuplicatesError("No duplicate IDs provided", {"primary_id": primary_id})

    if primary_id in duplicate_ids:
        raise PrimaryInDuplicatesError(
            "Primary ID cannot be in duplicate IDs list",
            {"primary_id": primary_id, "duplicate_ids": duplicate_ids},
        )

    missing = storage.missing_ids(kind, [primary_id, *duplicate_ids])
    if missing:
        raise EntityNotFoundError(
            f"{kind.value} id(s) not found: {', '.join(map(str, missing))}",
            {"kind": kind.value, "missing_ids": missing},
        )


def merge_entities(
    storage: CatalogStorage,
    kind: EntityKind,
    primary_id: int,
    duplicate_ids: list[int],
) -> MergeStats:
    """
    Merge duplicate entities of one kind into a primary record.

    Args:
        storage: Catalog storage
        kind: Entity kind of all ids
        primary_id: Entity to keep
        duplicate_ids: Entities to fold into the primary (deleted afterwards)

    Returns:
        MergeStats with per-reference and per-book/content counts

    Raises:
        MergeError: a precondition failed; storage is untouched
        sqlite3.Error: storage failure; the transaction was rolled back
    """
    duplicate_ids = list(dict.fromkeys(duplicate_ids))
    _validate(storage, kind, primary_id, duplicate_ids)

    entity_table = ENTITY_TABLES[kind]
    stats = MergeStats(primary_id=primary_id, merged_ids=duplicate_ids)

    try:
        with storage.transaction():
            for reference in entity_table.references:
                updated = storage.rewrite_references(reference, primary_id, duplicate_ids)
                stats.rows_updated[reference.name] = updated
                if reference.counts_as == "contents":
                    stats.contents_updated += updated
                else:
                    stats.books_updated += updated

            stats.deleted_entities = storage.delete_entities(kind, duplicate_ids)
    except Exception as e:
        logger.error(
            "merge_rolled_back",
            kind=kind.value,
            primary_id=primary_id,
            duplicate_ids=duplicate_ids,
            error=str(e),
        )
        raise

    logger.info(
        "merge_committed",
        kind=kind.value,
        primary_id=primary_id,
        merged_ids=duplicate_ids,
        books_updated=stats.books_updated,
        contents_updated=stats.contents_updated,
    )
    return stats


def merge_people(storage: CatalogStorage, primary_id: int, duplicate_ids: list[int]) -> MergeStats:
    return merge_entities(storage, EntityKind.PERSON, primary_id, duplicate_ids)


def merge_publishers(storage: CatalogStorage, primary_id: int, duplicate_ids: list[int]) -> MergeStats:
    return merge_entities(storage, EntityKind.PUBLISHER, primary_id, duplicate_ids)


def merge_series(storage: CatalogStorage, primary_id: int, duplicate_ids: list[int]) -> MergeStats:
    return merge_entities(storage, EntityKind.SERIES, primary_id, duplicate_ids)


def merge_tags(storage: CatalogStorage, primary_id: int, duplicate_ids: list[int]) -> MergeStats:
    return merge_entities(storage, EntityKind.TAG, primary_id, duplicate_ids)


def merge_roles(storage: CatalogStorage, primary_id: int, duplicate_ids: list[int]) -> MergeStats:
    return merge_entities(storage, EntityKind.ROLE, primary_id, duplicate_ids)
