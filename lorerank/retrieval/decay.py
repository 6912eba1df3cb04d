# lorerank/retrieval/decay.py
"""
Temporal decay - older chat-derived chunks lose relevance.

A chunk is subject to decay when it carries a ``message_id`` and is not
``temporally_blind``. Its age is the number of messages between it and the
current message:

    exponential: multiplier = 0.5 ** (age / half_life)
    linear:      multiplier = max(0, 1 - age * linear_rate)

and the multiplier is floored at ``min_relevance``.

With ``scene_aware`` on, a chunk from an earlier scene ages from the start
of its scene, so decay restarts whenever a new scene opens.
"""

from __future__ import annotations

from typing import Optional, Sequence

from lorerank.config.schema import DecayConfig
from lorerank.core.chunk import Chunk
from lorerank.core.context import Scene


def decay_multiplier(age: float, config: DecayConfig) -> float:
    """
    Score multiplier for a chunk ``age`` messages old.

    Examples:
        >>> decay_multiplier(50, DecayConfig(enabled=True))
        0.5
        >>> decay_multiplier(500, DecayConfig(enabled=True))
        0.3
    """
    if age <= 0:
        return 1.0
    if config.mode == "linear":
        multiplier = max(0.0, 1.0 - age * config.linear_rate)
    else:
        multiplier = 0.5 ** (age / config.half_life)
    return max(multiplier, config.min_relevance)


def _scene_start(message_id: int, scenes: Sequence[Scene]) -> Optional[int]:
    for scene in scenes:
        if message_id >= scene.start and (scene.end is None or message_id <= scene.end):
            return scene.start
    return None


def effective_age(
    message_id: int,
    current_message_id: int,
    scenes: Sequence[Scene] = (),
    scene_aware: bool = False,
) -> int:
    """
    Age of a chunk in messages.

    When both the chunk and the current message sit in scenes and the
    scenes differ, the age counts from the chunk's scene start.
    """
    age = current_message_id - message_id
    if not scene_aware or not scenes:
        return age

    current_scene = _scene_start(current_message_id, scenes)
    chunk_scene = _scene_start(message_id, scenes)
    if current_scene is None or chunk_scene is None or current_scene == chunk_scene:
        return age
    return current_message_id - chunk_scene


def decays(chunk: Chunk) -> bool:
    """True when ``chunk`` is subject to temporal decay."""
    return chunk.message_id is not None and not chunk.temporally_blind


__all__ = ["decay_multiplier", "effective_age", "decays"]
