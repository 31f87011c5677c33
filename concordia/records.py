"""
Entity records: per-kind wrappers around catalog rows.

All five kinds (person, publisher, series, tag, role) expose the same
capability interface, so clustering and reporting are written once:

    id()            -> storage identity
    canonical_key() -> normalized comparison key
    variants()      -> alternate keys already known to be equivalent
    set_variants()  -> replace those alternates

Records are rebuilt from current storage on every run and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Protocol, runtime_checkable

import structlog

from .errors import NameParseError
from .names import ParsedName, parse_name
from .normalizer import LabelNormalizer

logger = structlog.get_logger("concordia.records")

HIGH_CONFIDENCE = 0.85
VERIFICATION_THRESHOLD = 0.90


class EntityKind(str, Enum):
    """Catalog entity kinds that can be deduplicated."""
    PERSON = "person"
    PUBLISHER = "publisher"
    SERIES = "series"
    TAG = "tag"
    ROLE = "role"

    @property
    def plural(self) -> str:
        return {
            EntityKind.PERSON: "people",
            EntityKind.PUBLISHER: "publishers",
            EntityKind.SERIES: "series",
            EntityKind.TAG: "tags",
            EntityKind.ROLE: "roles",
        }[self]


@runtime_checkable
class EntityRecord(Protocol):
    """Capability interface shared by every entity kind."""

    label: str

    def id(self) -> int: ...

    def canonical_key(self) -> str: ...

    def variants(self) -> list[str]: ...

    def set_variants(self, variants: list[str]) -> None: ...


# =============================================================================
# People
# =============================================================================

@dataclass
class PersonRecord:
    entity_id: int
    original_label: str
    parsed_name: ParsedName
    normalized_key: str
    confidence: float = 1.0
    verified: bool = False
    aliases: list[str] = field(default_factory=list)
    _normalizer: LabelNormalizer = field(default_factory=LabelNormalizer, repr=False, compare=False)

    @classmethod
    def from_label(cls, entity_id: int, label: str, normalizer: LabelNormalizer | None = None) -> "PersonRecord":
        """Parse a stored label; raises NameParseError when it holds no name at all."""
        normalizer = normalizer or LabelNormalizer()
        parsed = parse_name(label)
        return cls(
            entity_id=entity_id,
            original_label=label,
            parsed_name=parsed,
            normalized_key=parsed.to_normalized_key(normalizer),
            confidence=parsed.confidence,
            _normalizer=normalizer,
        )

    @property
    def label(self) -> str:
        return self.original_label

    def add_alias(self, alias: str) -> None:
        normalized = self._normalizer.normalize(alias)
        if normalized and normalized != self.normalized_key and normalized not in self.aliases:
            self.aliases.append(normalized)

    def update_confidence(self, new_confidence: float) -> None:
        self.confidence = min(max(new_confidence, 0.0), 1.0)

    def is_high_confidence(self) -> bool:
        return self.confidence >= HIGH_CONFIDENCE

    def needs_verification(self) -> bool:
        return not self.verified and self.confidence < VERIFICATION_THRESHOLD

    def all_canonical_keys(self) -> list[str]:
        return [self.normalized_key, *self.aliases]

    def id(self) -> int:
        return self.entity_id

    def canonical_key(self) -> str:
        return self.normalized_key

    def variants(self) -> list[str]:
        return self.all_canonical_keys()

    def set_variants(self, variants: list[str]) -> None:
        self.aliases = [v for v in variants if v != self.normalized_key]


# =============================================================================
# Labelled entities (publishers, series, tags, roles)
# =============================================================================

@dataclass
class LabelRecord:
    """Entity identified by a single free-text label."""
    entity_id: int
    label: str
    normalized_label: str
    variant_labels: list[str] = field(default_factory=list)

    @classmethod
    def from_label(cls, entity_id: int, label: str, normalizer: LabelNormalizer | None = None):
        normalizer = normalizer or LabelNormalizer()
        return cls(
            entity_id=entity_id,
            label=label,
            normalized_label=normalizer.normalize(label),
            variant_labels=[label],
        )

    def id(self) -> int:
        return self.entity_id

    def canonical_key(self) -> str:
        return self.normalized_label

    def variants(self) -> list[str]:
        return list(self.variant_labels)

    def set_variants(self, variants: list[str]) -> None:
        self.variant_labels = list(variants)


@dataclass
class PublisherRecord(LabelRecord):
    pass


@dataclass
class SeriesRecord(LabelRecord):
    pass


@dataclass
class TagRecord(LabelRecord):
    pass


@dataclass
class RoleRecord(LabelRecord):
    """Roles are a closed vocabulary; their variant list is fixed to the label."""

    def variants(self) -> list[str]:
        return [self.label]

    def set_variants(self, variants: list[str]) -> None:
        pass


RECORD_TYPES = {
    EntityKind.PERSON: PersonRecord,
    EntityKind.PUBLISHER: PublisherRecord,
    EntityKind.SERIES: SeriesRecord,
    EntityKind.TAG: TagRecord,
    EntityKind.ROLE: RoleRecord,
}


def build_records(
    kind: EntityKind,
    rows: Iterable[tuple[int, str]],
    normalizer: LabelNormalizer | None = None,
) -> list[EntityRecord]:
    """
    Turn (id, label) rows into records of the given kind.

    Person labels that fail parsing are logged and skipped; the rest of the
    batch is still returned.
    """
    normalizer = normalizer or LabelNormalizer()
    record_type = RECORD_TYPES[kind]
    records = []
    skipped = 0

    for entity_id, label in rows:
        try:
            records.append(record_type.from_label(entity_id, label, normalizer))
        except NameParseError as e:
            skipped += 1
            logger.warning(
                "person_parse_failed",
                entity_id=entity_id,
                label=label,
                error=e.message,
            )

    if skipped:
        logger.info("records_skipped", kind=kind.value, skipped=skipped, loaded=len(records))

    return records
