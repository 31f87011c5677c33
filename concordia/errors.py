"""
Error types for Concordia.

Every deliberate failure carries a stable ``error_code`` plus a details dict,
so the CLI can render one consistent line. Storage failures are not wrapped:
``sqlite3.Error`` propagates as-is.
"""


class ConcordiaError(Exception):
    """Base class for domain-level errors."""
    error_code: str = "CONCORDIA_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ConcordiaError):
    """Invalid deduplication settings."""
    error_code = "INVALID_CONFIG"


class NameParseError(ConcordiaError):
    """A person label has no usable name tokens."""
    error_code = "NAME_PARSE_FAILED"


class BatchTooLargeError(ConcordiaError):
    """Too many keys for one pairwise clustering run."""
    error_code = "BATCH_TOO_LARGE"


class MergeError(ConcordiaError):
    """A merge request was rejected before touching storage."""
    error_code = "MERGE_REJECTED"


class EmptyDuplicatesError(MergeError):
    """Merge called without any duplicate ids."""
    error_code = "EMPTY_DUPLICATES"


class PrimaryInDuplicatesError(MergeError):
    """The primary id was also listed as a duplicate."""
    error_code = "PRIMARY_IN_DUPLICATES"


class EntityNotFoundError(MergeError):
    """One or more ids of the merge do not exist."""
    error_code = "ENTITY_NOT_FOUND"
