"""
Concordia Normalizer: catalog label normalization

Turns a raw catalog label into its comparison key:
- Accent and diacritic removal (transliterated to base Latin letters)
- Case folding
- Punctuation removal (apostrophes dropped, other marks split words)
- Whitespace collapse
"""

import re

from unidecode import unidecode


class LabelNormalizer:
    """
    Label normalizer shared by every entity kind.

    Example:
        >>> normalizer = LabelNormalizer()
        >>> normalizer.normalize("  Éditions   Gallimard! ")
        'editions gallimard'
        >>> normalizer.normalize("Handmaid's Tale")
        'handmaids tale'
        >>> normalizer.normalize_compact("Harper-Collins")
        'harpercollins'
    """

    # Elisions and possessives glue to the word they belong to
    APOSTROPHES = "'’‘`´"

    def __init__(self):
        self._apostrophe_pattern = re.compile("[" + re.escape(self.APOSTROPHES) + "]")
        self._punct_pattern = re.compile(r"[^a-z0-9\s]")

    def normalize(self, label: str | None) -> str:
        """
        Normalize a label into its comparison key.

        Idempotent: normalize(normalize(x)) == normalize(x).

        Args:
            label: Raw label (None is treated as empty)

        Returns:
            Lower-case ASCII words separated by single spaces
        """
        if not label or not isinstance(label, str):
            return ""

        text = self._apostrophe_pattern.sub("", label)
        text = unidecode(text).lower()
        # unidecode can emit apostrophes of its own (e.g. for soft signs)
        text = self._apostrophe_pattern.sub("", text)
        text = self._punct_pattern.sub(" ", text)

        return " ".join(text.split())

    def normalize_compact(self, label: str | None) -> str:
        """Normalized form without any spaces ("Harper Collins" == "HarperCollins")."""
        return self.normalize(label).replace(" ", "")

    def tokens(self, label: str | None) -> list[str]:
        """Normalized words of a label."""
        normalized = self.normalize(label)
        return normalized.split() if normalized else []


_default = LabelNormalizer()


# Module-level convenience function
def normalize(label: str | None) -> str:
    """Quick normalization with the default normalizer."""
    return _default.normalize(label)
