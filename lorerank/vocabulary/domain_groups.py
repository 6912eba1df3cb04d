# lorerank/vocabulary/domain_groups.py
"""
Static domain keyword-group table.

Each group is detected from a chunk's section/topic header only, never from
the body text, so one section's vocabulary does not leak into another.
A detected group contributes curated keywords (with priorities), curated
regex patterns and a ``group:<name>`` tag.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from lorerank.core.chunk import KeywordRegex


@dataclass(frozen=True)
class DomainGroup:
    """One row of the domain table."""

    name: str
    header_substrings: tuple[str, ...] = ()
    header_pattern: str = ""
    keywords: dict[str, int] = field(default_factory=dict)
    patterns: tuple[tuple[str, int], ...] = ()

    def matches_header(self, header: str) -> bool:
        lowered = header.lower()
        if any(s in lowered for s in self.header_substrings):
            return True
        if self.header_pattern and re.search(self.header_pattern, lowered):
            return True
        return False

    def keyword_regexes(self) -> list[KeywordRegex]:
        return [
            KeywordRegex(pattern=p, flags="i", priority=prio, source="domain")
            for p, prio in self.patterns
        ]


DOMAIN_GROUPS: tuple[DomainGroup, ...] = (
    DomainGroup(
        name="magic",
        header_substrings=("magic", "spell", "arcane", "sorcery"),
        header_pattern=r"\b(?:mana|rune|enchant\w*|wizard\w*)\b",
        keywords={"magic": 110, "spell": 110, "mana": 90},
        patterns=((r"\bspell(?:s|casting|caster|casters)?\b", 100),),
    ),
    DomainGroup(
        name="religion",
        header_substrings=("religion", "faith", "church", "pantheon"),
        header_pattern=r"\b(?:gods?|deit(?:y|ies)|temples?|cults?)\b",
        keywords={"god": 110, "temple": 105, "prayer": 90},
        patterns=((r"\b(?:god|goddess|deity|deities)s?\b", 100),),
    ),
    DomainGroup(
        name="politics",
        header_substrings=("politic", "government", "faction", "nobility"),
        header_pattern=r"\b(?:kingdoms?|empires?|courts?|councils?)\b",
        keywords={"king": 110, "queen": 110, "throne": 105, "alliance": 100},
        patterns=((r"\b(?:king|queen|emperor|empress)s?\b", 100),),
    ),
    DomainGroup(
        name="geography",
        header_substrings=("geography", "location", "region", "map"),
        header_pattern=r"\b(?:cit(?:y|ies)|towns?|lands?|realms?)\b",
        keywords={"city": 90, "river": 80, "mountain": 80},
        patterns=((r"\b(?:north|south|east|west)(?:ern)?\b", 70),),
    ),
    DomainGroup(
        name="history",
        header_substrings=("history", "timeline", "chronicle", "legend"),
        header_pattern=r"\b(?:eras?|ages?|wars?)\b",
        keywords={"war": 120, "battle": 110, "founding": 90},
        patterns=((r"\b(?:first|second|third)\s+age\b", 100),),
    ),
    DomainGroup(
        name="characters",
        header_substrings=("character", "biography", "npc", "persona"),
        header_pattern=r"\b(?:profiles?|cast)\b",
        keywords={"personality": 90, "appearance": 80, "backstory": 100},
        patterns=((r"\bback[\s_\-]?story\b", 100),),
    ),
    DomainGroup(
        name="combat",
        header_substrings=("combat", "weapon", "armor", "armour"),
        header_pattern=r"\b(?:fights?|duels?|battles?)\b",
        keywords={"weapon": 100, "sword": 90, "armor": 80},
        patterns=((r"\barmou?r\b", 90),),
    ),
    DomainGroup(
        name="creatures",
        header_substrings=("creature", "bestiary", "monster", "beast"),
        header_pattern=r"\b(?:dragons?|races?|species)\b",
        keywords={"dragon": 110, "beast": 90, "monster": 90},
        patterns=((r"\bdragon(?:s|kin|born)?\b", 100),),
    ),
)


def detect_groups(header: str) -> list[DomainGroup]:
    """Return the domain groups whose header rules match ``header``."""
    if not header or not header.strip():
        return []
    return [g for g in DOMAIN_GROUPS if g.matches_header(header)]


__all__ = ["DomainGroup", "DOMAIN_GROUPS", "detect_groups"]
