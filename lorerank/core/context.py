# lorerank/core/context.py
"""
ScopeContext - what the host chat application tells retrieve() about the
current turn besides the query string.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ActiveChunk(BaseModel):
    """A chunk already injected this turn (for ``chunk_active`` rules)."""

    hash: Optional[int] = None
    section: str = ""
    topic: str = ""

    model_config = ConfigDict(extra="forbid")


class LorebookEntry(BaseModel):
    """A host lorebook entry that fired this turn (for ``lorebook_active`` rules)."""

    key: str = ""
    uid: Union[int, str] = ""

    model_config = ConfigDict(extra="forbid")


class Scene(BaseModel):
    """A scene span in message ids; ``end`` is None while the scene is open."""

    start: int
    end: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class ScopeContext(BaseModel):
    """
    Scope keys and conversation facts used by the activation gate.

    Attributes:
        scopes: Opaque scope keys whose collections are eligible
                (e.g. "global", "character:alice", "session:42")
        recent_messages: Recent message texts, used by keyword conditions
        last_speaker: Name of the author of the latest message
        message_speakers: Authors of the recent messages
        message_count: Number of messages in the conversation
        swipe_count: Number of swipes on the current message
        generation_type: normal, swipe, regenerate, continue, impersonate
        is_group_chat: Whether the conversation is a group chat
        active_chunks: Chunks already active this turn
        active_lorebook_entries: Host lorebook entries that fired this turn
        current_emotion: Emotion reported by the host's expression classifier
        now: Wall clock for time_of_day rules (defaults to the local time)
        current_message_id: Id of the newest message, enables temporal decay
        scenes: Scene spans used by scene-aware decay
    """

    scopes: List[str] = Field(default_factory=lambda: ["global"])
    recent_messages: List[str] = Field(default_factory=list)
    last_speaker: Optional[str] = None
    message_speakers: List[str] = Field(default_factory=list)
    message_count: int = 0
    swipe_count: int = 0
    generation_type: str = "normal"
    is_group_chat: bool = False

    active_chunks: List[ActiveChunk] = Field(default_factory=list)
    active_lorebook_entries: List[LorebookEntry] = Field(default_factory=list)
    current_emotion: Optional[str] = None
    now: Optional[datetime] = None

    current_message_id: Optional[int] = None
    scenes: List[Scene] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


__all__ = ["ScopeContext", "ActiveChunk", "LorebookEntry", "Scene"]
