"""
Unit tests for person name parsing.
"""
import pytest

from concordia.errors import NameParseError
from concordia.names import (
    CONFIDENCE_MONONYM,
    CONFIDENCE_STRUCTURED,
    CONFIDENCE_UNSTRUCTURED,
    parse_name,
)


class TestDirectOrder:
    """Test "Given Middle Surname" labels."""

    def test_given_surname(self):
        name = parse_name("Stephen King")
        assert name.given == "Stephen"
        assert name.surname == "King"
        assert name.middle == []
        assert name.confidence == CONFIDENCE_STRUCTURED
        assert name.structured

    def test_middle_names(self):
        name = parse_name("Stephen Edwin King")
        assert name.given == "Stephen"
        assert name.middle == ["Edwin"]
        assert name.surname == "King"
        assert name.to_normalized_key() == "king stephen edwin"

    def test_initial(self):
        assert parse_name("S. King").to_normalized_key() == "king s"

    def test_period_joined_initials(self):
        name = parse_name("J.R.R. Tolkien")
        assert name.given == "J."
        assert name.middle == ["R.", "R."]
        assert name.to_normalized_key() == "tolkien j r r"

    def test_title_is_not_part_of_key(self):
        name = parse_name("Dr. Ludwig van Beethoven")
        assert name.title == "Dr."
        assert name.surname == "van Beethoven"
        assert name.to_normalized_key() == "van beethoven ludwig"

    def test_trailing_suffix(self):
        name = parse_name("Martin Luther King Jr.")
        assert name.suffix == "Jr."
        assert name.surname == "King"
        assert name.middle == ["Luther"]

    def test_mononym(self):
        name = parse_name("Plato")
        assert name.surname == "Plato"
        assert name.given is None
        assert name.confidence == CONFIDENCE_MONONYM


class TestInvertedOrder:
    """Test "Surname, Given" labels."""

    def test_inverted_matches_direct(self):
        assert parse_name("King, Stephen").to_normalized_key() == parse_name("Stephen King").to_normalized_key()

    def test_inverted_with_middle(self):
        name = parse_name("King, Stephen Edwin")
        assert name.surname == "King"
        assert name.given == "Stephen"
        assert name.middle == ["Edwin"]

    def test_inverted_with_suffix(self):
        name = parse_name("King, Stephen, Jr.")
        assert name.suffix == "Jr."
        assert name.to_normalized_key() == "king stephen jr"

    def test_detached_suffix_is_direct(self):
        """'Stephen King, Jr.' is direct order with a suffix, not an inversion."""
        assert parse_name("Stephen King, Jr.").to_normalized_key() == "king stephen jr"

    def test_several_detached_suffixes_are_direct(self):
        name = parse_name("Stephen King, Jr., PhD")
        assert name.given == "Stephen"
        assert name.surname == "King"
        assert name.suffix == "Jr. PhD"
        assert name.to_normalized_key() == "king stephen jr phd"

    def test_inverted_with_several_suffixes(self):
        name = parse_name("King, Stephen, Jr., PhD")
        assert name.surname == "King"
        assert name.given == "Stephen"
        assert name.to_normalized_key() == "king stephen jr phd"


class TestFallbacks:
    """Test unstructured labels and hard failures."""

    def test_too_many_commas(self):
        name = parse_name("King, Stephen, Edwin, Maine")
        assert not name.structured
        assert name.confidence == CONFIDENCE_UNSTRUCTURED

    def test_only_bracketed_text(self):
        name = parse_name("(editor)")
        assert not name.structured
        assert name.confidence == CONFIDENCE_UNSTRUCTURED

    def test_bracketed_role_ignored(self):
        assert parse_name("Stephen King (author)").to_normalized_key() == "king stephen"

    @pytest.mark.parametrize("label", ["", "   ", "...", None])
    def test_no_name_tokens(self, label):
        with pytest.raises(NameParseError):
            parse_name(label)


class TestParsedName:
    """Test ParsedName rendering helpers."""

    def test_display_name(self):
        assert parse_name("King, Stephen, Jr.").display_name() == "Stephen King, Jr."

    def test_display_name_with_title(self):
        assert parse_name("Beethoven, Dr. Ludwig").display_name() == "Dr. Ludwig Beethoven"
