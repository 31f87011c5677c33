"""
Unit tests for pattern classification and confidence scoring.
"""
import pytest

from concordia.patterns import (
    PatternType,
    classify_pattern,
    compare_keys,
    initials_match,
    score_confidence,
)


class TestClassifyPattern:
    """Test classify_pattern() rules and their priority."""

    def test_abbreviation(self):
        assert classify_pattern("john ronald reuel", "jrr", 14) is PatternType.ABBREVIATION

    def test_prefix(self):
        assert classify_pattern("king stephen edwin", "king stephen", 6) is PatternType.PREFIX

    def test_prefix_beats_typo(self):
        """A one-letter extension is within typo distance but classifies as prefix."""
        assert classify_pattern("kings", "king", 1) is PatternType.PREFIX

    def test_suffix(self):
        assert classify_pattern("saga dark tower", "dark tower", 5) is PatternType.SUFFIX

    def test_compound(self):
        assert classify_pattern("the dark tower saga", "dark tower", 9) is PatternType.COMPOUND

    def test_transliteration(self):
        assert classify_pattern("müller", "muller", 1) is PatternType.TRANSLITERATION

    def test_ascii_near_miss_is_typo(self):
        assert classify_pattern("stephen", "steven", 2) is PatternType.TYPO

    def test_other(self):
        assert classify_pattern("abcdef", "uvwxyz", 6) is PatternType.OTHER

    def test_case_insensitive(self):
        assert classify_pattern("KINGS", "king", 1) is PatternType.PREFIX


class TestInitialsMatch:
    """Test initials_match()."""

    @pytest.mark.parametrize("abbrev", ["J.R.R.", "JRR", "j r r", "jrr"])
    def test_matches(self, abbrev):
        assert initials_match("John Ronald Reuel", abbrev)

    def test_wrong_letters(self):
        assert not initials_match("John Ronald Reuel", "JRT")

    def test_wrong_count(self):
        assert not initials_match("John Ronald Reuel", "JR")
        assert not initials_match("king stephen edwin", "king s")

    def test_empty(self):
        assert not initials_match("", "J")


class TestScoreConfidence:
    """Test score_confidence() adjustments, penalties and bounds."""

    def test_typo_penalty(self):
        assert score_confidence("stephen", "steven", PatternType.TYPO, 0.9) == pytest.approx(0.85)

    def test_prefix_bonus(self):
        assert score_confidence("kings", "king", PatternType.PREFIX, 0.8) == pytest.approx(0.9)

    def test_transliteration_bonus(self):
        assert score_confidence("müller", "muller", PatternType.TRANSLITERATION, 0.8) == pytest.approx(0.95)

    def test_other_unchanged(self):
        assert score_confidence("abcd", "wxyz", PatternType.OTHER, 0.4) == pytest.approx(0.4)

    def test_abbreviation_bonus_requires_initials(self):
        with_initials = score_confidence("john ronald reuel", "jrr", PatternType.ABBREVIATION, 0.5)
        without = score_confidence("john ronald reuel", "xyz", PatternType.ABBREVIATION, 0.5)
        assert with_initials - without == pytest.approx(0.2)

    def test_structural_penalties(self):
        """Distance > 5 and length ratio > 0.5 both apply."""
        assert score_confidence("john ronald reuel", "xyz", PatternType.ABBREVIATION, 0.5) == pytest.approx(0.25)

    def test_clamped_high(self):
        assert score_confidence("kings", "king", PatternType.PREFIX, 1.0) == 1.0

    def test_clamped_low(self):
        assert score_confidence("abcdefghijkl", "z", PatternType.OTHER, 0.0) == 0.0

    def test_deterministic(self):
        first = compare_keys("king stephen edwin", "king stephen")
        second = compare_keys("king stephen edwin", "king stephen")
        assert first == second


class TestCompareKeys:
    """Test compare_keys() on catalog keys."""

    def test_extended_name(self):
        score = compare_keys("king stephen edwin", "king stephen")
        assert score.pattern is PatternType.PREFIX
        assert score.edit_distance == 6
        assert score.similarity == pytest.approx(0.9333, abs=1e-3)
        # +0.1 prefix bonus, -0.1 distance penalty
        assert score.confidence == pytest.approx(0.9333, abs=1e-3)

    def test_initial_form(self):
        score = compare_keys("king stephen", "king s")
        assert score.pattern is PatternType.PREFIX
        assert score.confidence == pytest.approx(0.9, abs=1e-3)

    def test_abbreviation_without_initials_rejected(self):
        score = compare_keys("king stephen edwin", "king s")
        assert score.pattern is PatternType.ABBREVIATION
        assert score.confidence < 0.85

    @pytest.mark.parametrize("base,variant", [
        ("king stephen", "atwood margaret"),
        ("tor books", "gallimard"),
        ("a", "b"),
        ("identical", "identical"),
    ])
    def test_bounded(self, base, variant):
        score = compare_keys(base, variant)
        assert 0.0 <= score.confidence <= 1.0
