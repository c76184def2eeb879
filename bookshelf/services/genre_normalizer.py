"""
Genre Name Normalization

Collapses near-duplicate genre names into one canonical form before a
genre is created or looked up:

    "  sci-fi "        -> "Science Fiction"
    "SCIFI"            -> "Science Fiction"
    "history of ROME"  -> "History of Rome"
    "nonfiction"       -> "Non-fiction"

Steps:
1. Trim and collapse internal whitespace
2. Lower-case
3. Apply the synonym table
4. Capitalize each word, leaving minor words ("of", "and", ...) in
   lower case unless they open the name

The result is the dedup key for genres, so the function must be
idempotent: normalizing an already normalized name returns it unchanged.
"""

import re

from bookshelf.exceptions import InvalidArgumentError

MAX_GENRE_NAME_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")

GENRE_SYNONYMS: dict[str, str] = {
    "sci-fi": "science fiction",
    "scifi": "science fiction",
    "sci fi": "science fiction",
    "non-fiction": "non-fiction",
    "nonfiction": "non-fiction",
    "non fiction": "non-fiction",
    "ya": "young adult",
    "rom com": "romantic comedy",
    "romcom": "romantic comedy",
    "rom-com": "romantic comedy",
    "self help": "self-help",
    "how to": "how-to",
}

MINOR_WORDS = frozenset({"of", "and", "the", "in", "on", "at", "to", "for", "with", "&"})


def collapse_whitespace(value: str) -> str:
    """Trim and replace every run of whitespace with a single space."""
    return _WHITESPACE.sub(" ", value).strip()


def _capitalize(word: str) -> str:
    # Only the first character: "non-fiction" -> "Non-fiction"
    return word[:1].upper() + word[1:]


def normalize_genre_name(name: str | None) -> str:
    """
    Return the canonical form of a genre name.

    Raises:
        InvalidArgumentError: If the name is blank or the canonical form
            is longer than MAX_GENRE_NAME_LENGTH characters
    """
    if name is None or not name.strip():
        raise InvalidArgumentError("Genre name cannot be empty")

    cleaned = collapse_whitespace(name).lower()
    cleaned = GENRE_SYNONYMS.get(cleaned, cleaned)

    words = cleaned.split(" ")
    normalized = " ".join(
        word if index > 0 and word in MINOR_WORDS else _capitalize(word)
        for index, word in enumerate(words)
    )

    if len(normalized) > MAX_GENRE_NAME_LENGTH:
        raise InvalidArgumentError(
            f"Genre name must not exceed {MAX_GENRE_NAME_LENGTH} characters"
        )
    return normalized
