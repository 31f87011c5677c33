"""
Person name parsing.

Decomposes a free-text person label into structured fields so that format
variants of the same name converge on one canonical key:

    "Stephen King"      -> given=Stephen, surname=King      -> "king stephen"
    "King, Stephen"     -> surname=King, given=Stephen      -> "king stephen"
    "J.R.R. Tolkien"    -> given=J., middle=[R., R.]        -> "tolkien j r r"
    "Dr. Ludwig van Beethoven" -> title=Dr., surname="van Beethoven"

Labels that cannot be decomposed cleanly fall back to a single unstructured
surname with lowered confidence; only labels with no name tokens at all
raise NameParseError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import NameParseError
from .normalizer import LabelNormalizer, normalize


TITLES = {
    "dr", "prof", "professor", "sir", "dame", "lord", "lady",
    "mr", "mrs", "ms", "miss", "mx", "rev", "fr", "hon",
}

# "v" is left out on purpose: it is far more often an initial than a numeral
SUFFIXES = {
    "jr", "sr", "ii", "iii", "iv", "vi",
    "phd", "md", "esq", "obe", "mbe", "kbe",
}

# Lower-case particles that belong to the surname that follows them
SURNAME_PARTICLES = {
    "van", "von", "de", "da", "di", "del", "della", "der", "den", "des",
    "du", "la", "le", "dos", "das", "ten", "ter", "zu", "af", "al", "el",
}

CONFIDENCE_STRUCTURED = 1.0
CONFIDENCE_MONONYM = 0.8
CONFIDENCE_UNSTRUCTURED = 0.5

_TOKEN_RE = re.compile(r"[^\s.]+\.?")
_PARENS_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_QUOTED_RE = re.compile(r"\"[^\"]*\"|“[^”]*”")


@dataclass(slots=True)
class ParsedName:
    title: str | None = None
    given: str | None = None
    middle: list[str] = field(default_factory=list)
    surname: str | None = None
    suffix: str | None = None
    confidence: float = CONFIDENCE_STRUCTURED
    structured: bool = True

    def to_normalized_key(self, normalizer: LabelNormalizer | None = None) -> str:
        """
        Canonical key from the structured fields only.

        Fields are joined surname first (surname, given, middle..., suffix)
        so that direct and comma-inverted forms of a name produce the same
        key. The title never takes part.
        """
        norm = normalizer.normalize if normalizer is not None else normalize
        parts = [self.surname, self.given, *self.middle, self.suffix]
        return " ".join(filter(None, (norm(p) for p in parts if p)))

    def display_name(self) -> str:
        """Render as "Title Given Middle Surname, Suffix"."""
        parts = [self.title, self.given, *self.middle, self.surname]
        text = " ".join(p for p in parts if p)
        if self.suffix:
            text = f"{text}, {self.suffix}" if text else self.suffix
        return text


# -----------------------------------------------------------------------------
# Token helpers
# -----------------------------------------------------------------------------

def _bare(token: str) -> str:
    return token.rstrip(".").lower()


def _tokenize(text: str) -> list[str]:
    """Split on whitespace and between period-joined initials ("J.R.R." -> J. R. R.)."""
    return [t for t in _TOKEN_RE.findall(text) if any(ch.isalnum() for ch in t)]


def _is_title(token: str) -> bool:
    return _bare(token) in TITLES


def _is_suffix(token: str) -> bool:
    return _bare(token) in SUFFIXES


def _all_suffixes(tokens: list[str]) -> bool:
    return bool(tokens) and all(_is_suffix(t) for t in tokens)


def _strip_titles(tokens: list[str]) -> tuple[list[str], list[str]]:
    titles = []
    while len(tokens) > 1 and _is_title(tokens[0]):
        titles.append(tokens.pop(0))
    return titles, tokens


def _strip_suffixes(tokens: list[str]) -> tuple[list[str], list[str]]:
    suffixes = []
    while len(tokens) > 1 and _is_suffix(tokens[-1]):
        suffixes.insert(0, tokens.pop())
    return tokens, suffixes


def _surname_start(tokens: list[str]) -> int:
    """Index where the surname begins, pulling in lower-case particles."""
    start = len(tokens) - 1
    while start > 1 and tokens[start - 1].islower() and tokens[start - 1] in SURNAME_PARTICLES:
        start -= 1
    return start


def _join(tokens: list[str]) -> str | None:
    return " ".join(tokens) if tokens else None


def _unstructured(text: str) -> ParsedName:
    return ParsedName(
        surname=text,
        confidence=CONFIDENCE_UNSTRUCTURED,
        structured=False,
    )


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------

def _parse_direct(tokens: list[str], suffixes: list[str]) -> ParsedName:
    titles, tokens = _strip_titles(tokens)
    tokens, trailing = _strip_suffixes(tokens)
    suffixes = trailing + suffixes

    if len(tokens) == 1:
        return ParsedName(
            title=_join(titles),
            surname=tokens[0],
            suffix=_join(suffixes),
            confidence=CONFIDENCE_MONONYM,
        )

    start = _surname_start(tokens)
    return ParsedName(
        title=_join(titles),
        given=tokens[0],
        middle=tokens[1:start],
        surname=_join(tokens[start:]),
        suffix=_join(suffixes),
    )


def _parse_inverted(surname_part: str, given_part: str, suffix_part: str | None) -> ParsedName:
    surname_tokens = _tokenize(surname_part)
    given_tokens = _tokenize(given_part)

    titles, given_tokens = _strip_titles(given_tokens)
    if len(given_tokens) == 1 and _is_title(given_tokens[0]):
        titles, given_tokens = titles + given_tokens, []
    given_tokens, suffixes = _strip_suffixes(given_tokens)
    if suffix_part:
        suffixes.extend(_tokenize(suffix_part))

    if not given_tokens:
        return ParsedName(
            title=_join(titles),
            surname=_join(surname_tokens),
            suffix=_join(suffixes),
            confidence=CONFIDENCE_MONONYM,
        )

    return ParsedName(
        title=_join(titles),
        given=given_tokens[0],
        middle=given_tokens[1:],
        surname=_join(surname_tokens),
        suffix=_join(suffixes),
    )


def parse_name(label: str) -> ParsedName:
    """
    Parse a person label.

    Recognizes "Surname, Given Middle" (optionally followed by ", Suffix"),
    "Given Middle Surname" and period-joined initials. Parenthesized and
    double-quoted fragments (roles, nicknames) are ignored.

    Args:
        label: Raw label as stored in the catalog

    Returns:
        ParsedName; ambiguous labels come back unstructured with confidence 0.5

    Raises:
        NameParseError: the label holds no letters or digits at all
    """
    text = " ".join((label or "").split())
    if not any(ch.isalnum() for ch in text):
        raise NameParseError(f"No name tokens in {label!r}", {"label": label})

    cleaned = _QUOTED_RE.sub(" ", _PARENS_RE.sub(" ", text))
    cleaned = " ".join(cleaned.split())
    if not any(ch.isalnum() for ch in cleaned):
        return _unstructured(text)

    parts = [p.strip() for p in cleaned.split(",")]
    parts = [p for p in parts if any(ch.isalnum() for ch in p)]

    if len(parts) == 1:
        return _parse_direct(_tokenize(parts[0]), [])

    trailing = [_tokenize(p) for p in parts[1:]]

    # "Stephen King, Jr." and "Stephen King, Jr., PhD" are direct forms
    # with detached suffixes
    if all(_all_suffixes(tokens) for tokens in trailing):
        return _parse_direct(_tokenize(parts[0]), [t for tokens in trailing for t in tokens])

    if len(parts) == 2:
        return _parse_inverted(parts[0], parts[1], None)

    if all(_all_suffixes(tokens) for tokens in trailing[1:]):
        return _parse_inverted(parts[0], parts[1], " ".join(parts[2:]))

    return _unstructured(cleaned)
