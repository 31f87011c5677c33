"""
Concordia Similarity: string similarity metrics

Thin layer over RapidFuzz for the metrics the pattern classifier and the
confidence function need:
- Jaro-Winkler: base lexical similarity of two keys
- Levenshtein: edit distance used by the classifier and penalties
- Token set: word-order-insensitive overlap, shown in explanations
"""

from rapidfuzz import fuzz
from rapidfuzz.distance import JaroWinkler, Levenshtein


class SimilarityMetrics:
    """
    String similarity calculator using RapidFuzz.

    Example:
        >>> metrics = SimilarityMetrics()
        >>> metrics.edit_distance("tolkien", "tolkein")
        2
        >>> metrics.token_set("king stephen", "stephen king")
        1.0
    """

    def __init__(self, prefix_weight: float = 0.1):
        """
        Initialize metrics calculator.

        Args:
            prefix_weight: Jaro-Winkler bonus for matching prefixes (0-0.25)
        """
        self.prefix_weight = prefix_weight

    def jaro_winkler(self, s1: str, s2: str) -> float:
        """
        Jaro-Winkler similarity (0-1).

        Favors strings sharing a prefix, which suits catalog keys where the
        surname or leading word is usually stable.
        """
        if not s1 or not s2:
            return 0.0

        return JaroWinkler.similarity(s1, s2, prefix_weight=self.prefix_weight)

    def edit_distance(self, s1: str, s2: str) -> int:
        """Levenshtein distance: insertions, deletions and substitutions."""
        return Levenshtein.distance(s1 or "", s2 or "")

    def levenshtein_ratio(self, s1: str, s2: str) -> float:
        """Normalized Levenshtein similarity (0-1)."""
        if not s1 or not s2:
            return 0.0

        return Levenshtein.normalized_similarity(s1, s2)

    def token_set(self, s1: str, s2: str) -> float:
        """Token Set Ratio (0-100, normalized to 0-1)."""
        if not s1 or not s2:
            return 0.0

        return fuzz.token_set_ratio(s1, s2) / 100.0

