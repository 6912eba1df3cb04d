# lorerank/retrieval/emotions.py
"""
Emotion vocabulary for ``emotion`` activation rules.

When the host does not report a classified emotion, a rule falls back to
looking for these words in the recent messages.
"""

from __future__ import annotations

EMOTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    # positive
    "joy": ("joy", "happy", "smile", "laugh", "glad", "cheerful", "delighted", "pleased", "joyful", "happiness"),
    "amusement": ("amusement", "amused", "funny", "humorous", "entertaining", "playful"),
    "love": ("love", "adore", "cherish", "affection", "beloved", "loving", "tender"),
    "caring": ("caring", "care", "compassion", "kind", "gentle", "nurturing", "supportive"),
    "admiration": ("admiration", "admire", "respect", "impressed", "awe", "wonderful"),
    "approval": ("approval", "approve", "agree", "accept", "support", "endorse"),
    "excitement": ("excitement", "excited", "thrilled", "energetic", "pumped", "hyped", "enthusiastic"),
    "gratitude": ("gratitude", "grateful", "thankful", "thanks", "appreciate", "appreciation"),
    "optimism": ("optimism", "optimistic", "hopeful", "positive", "confident", "upbeat"),
    "pride": ("pride", "proud", "accomplished", "achievement", "success", "triumphant"),
    "relief": ("relief", "relieved", "ease", "calm", "relaxed", "unburdened"),
    "desire": ("desire", "want", "wish", "crave", "yearn", "longing", "passion"),
    # negative
    "anger": ("anger", "angry", "mad", "furious", "rage", "hostile", "wrath", "irate"),
    "annoyance": ("annoyance", "annoyed", "irritated", "bothered", "frustrated", "vexed"),
    "disapproval": ("disapproval", "disapprove", "disagree", "reject", "oppose", "condemn"),
    "disgust": ("disgust", "disgusted", "repulsed", "revolted", "nauseated", "repelled"),
    "sadness": ("sadness", "sad", "unhappy", "miserable", "sorrowful", "melancholy", "down"),
    "grief": ("grief", "grieving", "mourn", "loss", "bereavement", "heartbroken"),
    "disappointment": ("disappointment", "disappointed", "letdown", "dissatisfied", "disheartened"),
    "remorse": ("remorse", "regret", "guilty", "ashamed", "sorry", "repentant"),
    "embarrassment": ("embarrassment", "embarrassed", "awkward", "self-conscious", "humiliated", "flustered"),
    "fear": ("fear", "afraid", "scared", "terrified", "frightened", "dread", "alarmed"),
    "nervousness": ("nervousness", "nervous", "anxious", "worried", "uneasy", "jittery", "tense"),
    # mixed / neutral
    "surprise": ("surprise", "surprised", "shocked", "amazed", "astonished", "startled", "stunned"),
    "curiosity": ("curiosity", "curious", "interested", "intrigued", "inquisitive", "wondering"),
    "confusion": ("confusion", "confused", "puzzled", "perplexed", "bewildered", "uncertain"),
    "realization": ("realization", "realize", "understand", "comprehend", "grasp", "see", "aha"),
    "neutral": (),
}

VALID_EMOTIONS = tuple(EMOTION_KEYWORDS)


__all__ = ["EMOTION_KEYWORDS", "VALID_EMOTIONS"]
