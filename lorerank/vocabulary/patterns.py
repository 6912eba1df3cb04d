# lorerank/vocabulary/patterns.py
r"""
Regex variants synthesized from keyword lists.

Three shapes exist:
    Literal("oath")                          → plain keyword, no regex
    FamilyRegex("myth", ("ical", "ic"))      → \bmyth(?:ical|ic)?\b
    PhraseRegex(("wolf", "riders"))          → \bwolf[\s_\-]+rider(?:s)?\b

They are built once at ingestion and stored on the chunk as KeywordRegex
records. Compiled forms are cached by (pattern, flags) and compiled lazily
the first time the Boost Calculator needs them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Union

from lorerank.core.chunk import KeywordRegex
from lorerank.core.exceptions import MalformedRegexError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import VOCABULARY

from .variations import normalize_for_matching, stem_token

logger = get_logger(__name__)

SYNTHESIZED_PRIORITY = 80

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


# =============================================================================
# Variants
# =============================================================================


@dataclass(frozen=True)
class Literal:
    """A keyword matched as a plain string."""

    text: str

    def to_pattern(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class FamilyRegex:
    """Keywords sharing a root, e.g. myth / mythic / mythical."""

    root: str
    suffixes: tuple[str, ...]
    root_optional: bool = True

    def to_pattern(self) -> str:
        ordered = sorted(set(self.suffixes), key=lambda s: (-len(s), s))
        group = "|".join(re.escape(s) for s in ordered)
        tail = "?" if self.root_optional else ""
        return rf"\b{re.escape(self.root)}(?:{group}){tail}\b"


@dataclass(frozen=True)
class PhraseRegex:
    """Multi-word keyword tolerant to whitespace/underscore/hyphen separators."""

    words: tuple[str, ...]

    def to_pattern(self) -> str:
        parts = []
        for word in self.words:
            stem = stem_token(word)
            if stem != word and word.startswith(stem):
                parts.append(f"{re.escape(stem)}(?:{re.escape(word[len(stem):])})?")
            else:
                parts.append(re.escape(word))
        return r"\b" + r"[\s_\-]+".join(parts) + r"\b"


PatternVariant = Union[Literal, FamilyRegex, PhraseRegex]


def to_keyword_regex(
    variant: PatternVariant,
    priority: int = SYNTHESIZED_PRIORITY,
    source: Optional[str] = None,
) -> Optional[KeywordRegex]:
    """Serialize a variant; Literal variants have no regex form."""
    pattern = variant.to_pattern()
    if pattern is None:
        return None
    if source is None:
        source = "family" if isinstance(variant, FamilyRegex) else "phrase"
    return KeywordRegex(pattern=pattern, flags="i", priority=priority, source=source)


# =============================================================================
# Synthesis
# =============================================================================


def _common_prefix(a: str, b: str) -> str:
    i = 0
    while i < min(len(a), len(b)) and a[i] == b[i]:
        i += 1
    return a[:i]


def build_variants(keywords: Iterable[str], min_prefix: int = 4) -> list[PatternVariant]:
    """
    Group keywords into regex variants.

    Single-word keywords sharing a common prefix of at least ``min_prefix``
    characters become one FamilyRegex over that prefix. Multi-word keywords
    become PhraseRegex. Everything else stays a Literal.

    Examples:
        >>> build_variants(["myth", "mythic", "mythical", "oath"])
        [FamilyRegex(root='myth', suffixes=('ical', 'ic'), root_optional=True), Literal(text='oath')]
    """
    singles: list[str] = []
    variants: list[PatternVariant] = []
    seen: set[str] = set()

    for kw in keywords:
        normalized = normalize_for_matching(kw)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        if " " in normalized:
            variants.append(PhraseRegex(tuple(normalized.split(" "))))
        else:
            singles.append(normalized)

    families: list[PatternVariant] = []
    remaining = sorted(singles)
    used: set[str] = set()

    for word in remaining:
        if word in used:
            continue
        members = [word]
        root = word
        for other in remaining:
            if other == word or other in used:
                continue
            prefix = _common_prefix(root, other)
            if len(prefix) >= min_prefix:
                root = prefix
                members.append(other)
        if len(members) < 2:
            continue

        used.update(members)
        suffixes = tuple(
            sorted({m[len(root):] for m in members if m != root}, key=lambda s: (-len(s), s))
        )
        families.append(
            FamilyRegex(root=root, suffixes=suffixes, root_optional=root in members)
        )

    literals = [Literal(w) for w in singles if w not in used]
    return families + literals + variants


# =============================================================================
# Compilation
# =============================================================================


def _flags_to_int(flags: str) -> int:
    value = 0
    for ch in flags or "":
        value |= _FLAG_MAP.get(ch.lower(), 0)
    return value


@lru_cache(maxsize=4096)
def _compile(pattern: str, flags: str) -> re.Pattern[str]:
    return re.compile(pattern, _flags_to_int(flags))


def compile_strict(pattern: str, flags: str = "i") -> re.Pattern[str]:
    """
    Compile a stored pattern, raising on failure.

    Raises:
        MalformedRegexError: If the pattern does not compile
    """
    try:
        return _compile(pattern, flags)
    except re.error as e:
        raise MalformedRegexError(pattern, str(e)) from e


def compile_pattern(pattern: str, flags: str = "i") -> Optional[re.Pattern[str]]:
    """Compile a stored pattern; malformed patterns are logged and yield None."""
    try:
        return compile_strict(pattern, flags)
    except MalformedRegexError as e:
        logger.warning(f"{VOCABULARY} Skipping malformed regex {pattern!r}: {e.reason}")
        return None


def clear_pattern_cache() -> None:
    _compile.cache_clear()


__all__ = [
    "Literal",
    "FamilyRegex",
    "PhraseRegex",
    "PatternVariant",
    "SYNTHESIZED_PRIORITY",
    "to_keyword_regex",
    "build_variants",
    "compile_pattern",
    "compile_strict",
    "clear_pattern_cache",
]
