# lorerank/vocabulary/variations.py
"""
Keyword normalization, stemming and tokenization.

Every keyword comparison in lorerank goes through stem_keyword(), so
"Dragons", "dragon" and "DRAGON" compare equal, as do "wolf_riders" and
"wolf rider".
"""

from __future__ import annotations

import re

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "should", "could", "may", "might", "must", "can", "this",
        "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
        "what", "which", "who", "when", "where", "why", "how", "his", "her",
        "its", "their", "our", "your", "them", "him", "not", "no", "yes",
        "there", "here", "than", "then", "also", "into", "onto", "over",
        "under", "about", "after", "before", "very", "just", "some", "any",
        "all", "each", "other", "such", "only", "own", "same", "too", "out",
        "up", "down", "off", "again", "once", "more", "most", "much", "many",
    }
)

_WORD_RE = re.compile(r"[a-z][a-z'\-]+")
_SEPARATORS_RE = re.compile(r"[\s_\-]+")


def normalize_for_matching(text: str) -> str:
    """
    Normalize text for matching by standardizing separators and case.

    Returns:
        Normalized text (lowercase, separators → single spaces)
    """
    return _SEPARATORS_RE.sub(" ", text.lower()).strip()


def stem_token(token: str) -> str:
    """
    Light suffix stripping for English plurals.

    Examples:
        >>> stem_token("dragons"), stem_token("stories"), stem_token("boxes")
        ('dragon', 'story', 'box')
        >>> stem_token("glass"), stem_token("chaos")
        ('glass', 'chaos')
    """
    if len(token) > 4 and token.endswith("ies"):
        return token[:-3] + "y"
    if token.endswith("sses"):
        return token[:-2]
    if len(token) > 4 and token.endswith(("xes", "zes", "ches", "shes")):
        return token[:-2]
    if (
        len(token) > 3
        and token.endswith("s")
        and not token.endswith(("ss", "us", "is", "os"))
    ):
        return token[:-1]
    return token


def stem_keyword(keyword: str) -> str:
    """Normalize a keyword (single word or phrase) and stem each token."""
    return " ".join(stem_token(t) for t in normalize_for_matching(keyword).split(" ") if t)


def tokenize(text: str) -> list[str]:
    """
    Split text into lowercase content words.

    Content words are at least 3 characters long and not stop words.
    Leading/trailing apostrophes and hyphens are stripped.
    """
    words = []
    for raw in _WORD_RE.findall(text.lower()):
        word = raw.strip("'-")
        if word.endswith("'s"):
            word = word[:-2]
        if len(word) < 3 or word in STOP_WORDS:
            continue
        words.append(word)
    return words


__all__ = [
    "STOP_WORDS",
    "normalize_for_matching",
    "stem_token",
    "stem_keyword",
    "tokenize",
]
