"""
Pattern classification and confidence scoring for candidate key pairs.

Both functions are pure and deterministic: the confidence score is the
only thing that decides merge eligibility, so identical inputs must always
give identical output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .similarity import SimilarityMetrics

# Confidence adjustments per pattern type
ABBREVIATION_INITIALS_BONUS = 0.2
PREFIX_SUFFIX_BONUS = 0.1
TRANSLITERATION_BONUS = 0.15
COMPOUND_BONUS = 0.1
TYPO_PENALTY = 0.05

# Structural penalties
EDIT_DISTANCE_LIMIT = 5
EDIT_DISTANCE_PENALTY = 0.1
LENGTH_RATIO_LIMIT = 0.5
LENGTH_RATIO_PENALTY = 0.15

# Classifier limits
TRANSLITERATION_MAX_LENGTH_DIFF = 2
TRANSLITERATION_MAX_DISTANCE = 3
TYPO_MAX_DISTANCE = 2

_metrics = SimilarityMetrics()


class PatternType(str, Enum):
    """How a variant key relates to its base key."""
    ABBREVIATION = "abbreviation"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    COMPOUND = "compound"
    TRANSLITERATION = "transliteration"
    TYPO = "typo"
    OTHER = "other"


@dataclass(frozen=True)
class PairScore:
    """Everything computed for one base/variant comparison."""
    base: str
    variant: str
    edit_distance: int
    similarity: float
    pattern: PatternType
    confidence: float


def classify_pattern(base: str, variant: str, edit_distance: int) -> PatternType:
    """
    Classify the relationship between two keys.

    Rules are tried in priority order and the first match wins, so a pair
    that is both a prefix and within typo distance is a PREFIX.
    """
    base_lower = base.lower()
    variant_lower = variant.lower()

    if len(variant_lower) < len(base_lower) / 2:
        return PatternType.ABBREVIATION

    if base_lower.startswith(variant_lower) or variant_lower.startswith(base_lower):
        return PatternType.PREFIX

    if base_lower.endswith(variant_lower) or variant_lower.endswith(base_lower):
        return PatternType.SUFFIX

    if variant_lower in base_lower or base_lower in variant_lower:
        return PatternType.COMPOUND

    length_diff = abs(len(base) - len(variant))
    if length_diff <= TRANSLITERATION_MAX_LENGTH_DIFF and edit_distance <= TRANSLITERATION_MAX_DISTANCE:
        if not base.isascii() or not variant.isascii():
            return PatternType.TRANSLITERATION

    if edit_distance <= TYPO_MAX_DISTANCE:
        return PatternType.TYPO

    return PatternType.OTHER


def initials_match(full: str, abbrev: str) -> bool:
    """
    True when `abbrev` spells the word initials of `full`, in order.

    Periods and spaces in the abbreviation are ignored:
    "John Ronald Reuel" matches both "J.R.R." and "JRR".
    """
    words = full.split()
    letters = abbrev.replace(".", "").replace(" ", "")

    if not words or len(letters) != len(words):
        return False

    return all(
        word[0].lower() == letter.lower()
        for word, letter in zip(words, letters)
    )


def score_confidence(
    base: str,
    variant: str,
    pattern_type: PatternType,
    base_similarity: float,
) -> float:
    """
    Confidence (0-1) that `variant` names the same entity as `base`.

    Starts from the lexical similarity, applies the pattern adjustment and
    the structural penalties, and clamps the final value.
    """
    confidence = base_similarity

    if pattern_type is PatternType.ABBREVIATION:
        if initials_match(base, variant):
            confidence += ABBREVIATION_INITIALS_BONUS
    elif pattern_type in (PatternType.PREFIX, PatternType.SUFFIX):
        confidence += PREFIX_SUFFIX_BONUS
    elif pattern_type is PatternType.TRANSLITERATION:
        confidence += TRANSLITERATION_BONUS
    elif pattern_type is PatternType.COMPOUND:
        confidence += COMPOUND_BONUS
    elif pattern_type is PatternType.TYPO:
        confidence -= TYPO_PENALTY

    if _metrics.edit_distance(base, variant) > EDIT_DISTANCE_LIMIT:
        confidence -= EDIT_DISTANCE_PENALTY

    length_ratio = abs(len(base) - len(variant)) / max(len(base), 1)
    if length_ratio > LENGTH_RATIO_LIMIT:
        confidence -= LENGTH_RATIO_PENALTY

    return min(max(confidence, 0.0), 1.0)


def compare_keys(base: str, variant: str) -> PairScore:
    """Distance, similarity, pattern and confidence for one pair of keys."""
    distance = _metrics.edit_distance(base, variant)
    similarity = _metrics.jaro_winkler(base, variant)
    pattern = classify_pattern(base, variant, distance)
    return PairScore(
        base=base,
        variant=variant,
        edit_distance=distance,
        similarity=similarity,
        pattern=pattern,
        confidence=score_confidence(base, variant, pattern, similarity),
    )
