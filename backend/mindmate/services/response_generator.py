"""
Emotion-aware supportive reply for a single journal entry.

No LLM needed — curated templates per emotion and intensity level.
Randomly selects among the templates to avoid repetition; pass ``rng``
(a random.Random) for reproducible choices.
"""
from __future__ import annotations
import random
from typing import Dict, List, Optional

# ── Templates per emotion → intensity level ─────────────────────────────────
_TEMPLATES: Dict[str, Dict[str, List[str]]] = {
    "happy": {
        "high": [
            "I can hear the joy in your voice! That's wonderful to hear.",
            "Your happiness is contagious! Thanks for sharing that bright moment.",
            "What a beautiful thing to share! I'm so glad you're feeling this way.",
        ],
        "medium": [
            "It sounds like you're having a good day. That's lovely!",
            "I can sense some positive energy there. Nice to hear!",
            "That sounds really nice. I'm glad you shared that with me.",
        ],
        "low": [
            "I hear a little spark of happiness there. That's sweet.",
            "Even small moments of joy matter. Thank you for sharing.",
            "There's something gentle and positive in what you shared.",
        ],
    },
    "sad": {
        "high": [
            "I hear the heaviness in your words. It's okay to feel this way.",
            "That sounds really difficult. Thank you for trusting me with this.",
            "I can feel the sadness you're carrying. You're not alone in this.",
        ],
        "medium": [
            "It sounds like you're going through a tough time right now.",
            "I can sense some sadness there. That's completely valid.",
            "Sometimes days feel heavier than others. I hear you.",
        ],
        "low": [
            "There's a gentle sadness in what you shared. That's okay.",
            "I sense you might be feeling a bit down. That's natural.",
            "Everyone has moments like this. Thank you for sharing.",
        ],
    },
    "anxious": {
        "high": [
            "I can hear the worry in your voice. Let's take this one step at a time.",
            "That sounds overwhelming. Remember to breathe - you've got this.",
            "I sense a lot of concern there. It's okay to feel anxious sometimes.",
        ],
        "medium": [
            "It sounds like you have some things on your mind right now.",
            "I can sense some worry there. That's completely understandable.",
            "Sometimes our minds can feel busy. I hear that in your voice.",
        ],
        "low": [
            "There's a little tension I'm picking up on. That's normal.",
            "I sense you might be feeling a bit unsettled. That happens.",
            "Everyone feels a bit anxious sometimes. You're doing okay.",
        ],
    },
    "angry": {
        "high": [
            "I can hear the frustration in your voice. Those feelings are valid.",
            "It sounds like something really got to you today. That's tough.",
            "I sense some strong emotions there. It's okay to feel angry.",
        ],
        "medium": [
            "It sounds like something's bothering you. That's understandable.",
            "I can sense some frustration there. Everyone feels that way sometimes.",
            "There's some tension in what you shared. That's completely normal.",
        ],
        "low": [
            "I sense a bit of irritation there. That's part of being human.",
            "Everyone gets frustrated sometimes. I hear a little of that.",
            "There's a slight edge to your voice. That's okay.",
        ],
    },
    "calm": {
        "high": [
            "Your voice sounds so peaceful right now. That's beautiful.",
            "I can sense the tranquility in what you shared. How lovely.",
            "There's such a calm energy in your words. That's wonderful.",
        ],
        "medium": [
            "You sound quite centered today. That's really nice.",
            "I can sense some peace in your voice. That's good to hear.",
            "There's a gentle calm in what you shared. That's lovely.",
        ],
        "low": [
            "You sound fairly relaxed right now. That's nice.",
            "I sense a quiet stability in your voice. That's good.",
            "There's a gentle ease in what you shared.",
        ],
    },
    "neutral": {
        "high": [
            "Thank you for sharing your thoughts with me today.",
            "I appreciate you taking the time to reflect and share.",
            "Your voice sounds steady and thoughtful. Thank you for this moment.",
        ],
        "medium": [
            "Thanks for checking in and sharing your day with me.",
            "I appreciate you taking a moment to reflect.",
            "Thank you for sharing what's on your mind.",
        ],
        "low": [
            "Thank you for sharing. Every moment of reflection matters.",
            "I appreciate you taking time to check in today.",
            "Thanks for sharing your thoughts, however small.",
        ],
    },
}

# excited / peaceful borrow their nearest neighbour's voice
_ALIASES = {"excited": "happy", "peaceful": "calm"}


def intensity_level(intensity: float) -> str:
    if intensity > 0.7:
        return "high"
    if intensity > 0.4:
        return "medium"
    return "low"


def generate_supportive_response(
    emotion: str,
    intensity: float = 0.5,
    rng: Optional[random.Random] = None,
) -> dict:
    """
    Args:
        emotion:   detected emotion label
        intensity: 0–1 emotion strength
        rng:       optional random source

    Returns:
        {message, emotion, intensity, intensity_level, tone}
    """
    key = _ALIASES.get(emotion, emotion)
    templates = _TEMPLATES.get(key, _TEMPLATES["neutral"])
    level = intensity_level(intensity)
    message = (rng or random).choice(templates[level])
    return {
        "message": message,
        "emotion": emotion,
        "intensity": intensity,
        "intensity_level": level,
        "tone": "supportive" if emotion in ("sad", "anxious") else "encouraging",
    }
