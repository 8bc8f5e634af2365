"""
Wellness Aggregator — one SessionReport per completed session.

  history (ordered EmotionResult list) → wellness score (0–100)
                                       → dominant emotion (mode, first wins ties)
                                       → tier + message + encouragement
                                       → recommendations (4 buckets)
                                       → places (remote/static) + communities

Per-entry score: base[emotion] × intensity + 60 × (1 − intensity); low
intensity pulls an entry toward the neutral midpoint.
"""
from __future__ import annotations
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from mindmate.errors import EmptySessionError
from mindmate.models.emotion import EmotionResult
from mindmate.models.profile import Geolocation, Recommendation, SessionReport
from mindmate.services.places_service import PlaceSuggester, suggest_communities
from mindmate.utils.logging import logger

NEUTRAL_MIDPOINT = 60

BASE_SCORES: Dict[str, int] = {
    "happy": 90, "excited": 85, "calm": 80, "peaceful": 85, "hopeful": 75,
    "neutral": 60, "confused": 45, "anxious": 35, "sad": 30, "angry": 25,
    "stressed": 30,
}

# (min score, tier, message)
_TIERS: Tuple[Tuple[int, str, str], ...] = (
    (70, "affirming", "You are doing great! Keep up the positive momentum."),
    (50, "steady", "You are managing well. Small steps lead to big changes."),
    (30, "concerned", "Things are challenging right now. Remember, help is available."),
    (0, "urgent", "You are going through a difficult time. Please reach out for support."),
)

_ENCOURAGEMENT = {
    "anxious": "Anxiety is a signal, not a life sentence. You have the strength to manage this.",
    "sad": "It is okay to not be okay. Your feelings are valid, and brighter days are ahead.",
    "angry": "Your anger shows you care deeply. Channel this energy into positive change.",
    "stressed": "You are handling more than you think. Take it one step at a time.",
    "happy": "Your joy is beautiful! Share it with others and let it multiply.",
    "calm": "This inner peace you have found is precious. Protect and nurture it.",
    "confused": "Not having all the answers is part of being human. Clarity will come.",
    "hopeful": "Your hope is powerful. It is the first step toward positive change.",
    "excited": "Your enthusiasm is contagious! Use this energy to create something meaningful.",
    "peaceful": "This serenity is a gift. Return to it whenever you need grounding.",
}
_DEFAULT_ENCOURAGEMENT = "Every emotion is part of your unique human experience."
_HELP_IS_STRENGTH = " Remember: asking for help is a sign of strength, not weakness."

# ── Recommendation tables ────────────────────────────────────────────────────
_BREATHING = (
    Recommendation("🧘", "Try 5-Minute Breathing Exercise",
                   "Box breathing: Inhale 4s, hold 4s, exhale 4s, hold 4s"),
    Recommendation("🚶", "Take a Short Walk",
                   "Even 10 minutes outside can reduce stress by 20%"),
)

_IMMEDIATE: Dict[str, Tuple[Recommendation, ...]] = {
    "anxious": _BREATHING,
    "stressed": _BREATHING,
    "sad": (
        Recommendation("☀️", "Get Some Sunlight", "Natural light boosts serotonin levels"),
        Recommendation("🎵", "Listen to Uplifting Music", "Music therapy can improve mood within minutes"),
    ),
    "angry": (
        Recommendation("✍️", "Journal Your Feelings", "Writing helps process and release anger constructively"),
        Recommendation("💪", "Physical Activity", "Exercise releases tension and improves mood"),
    ),
}

_DAILY = (
    Recommendation("📝", "Gratitude Practice", "Write down 3 things you are grateful for",
                   duration="5 minutes"),
    Recommendation("🧘‍♀️", "Mindfulness Meditation", "Guided meditation for emotional awareness",
                   duration="10 minutes"),
)

_WEEKLY = (
    Recommendation("🤝", "Social Connection", "Meet friends or join a community group",
                   frequency="2-3 times per week"),
    Recommendation("🎨", "Creative Expression", "Art, music, writing - any creative outlet",
                   frequency="Once a week"),
)

_PROFESSIONAL_URGENT = (
    Recommendation("👨‍⚕️", "Consider Professional Support",
                   "A therapist can provide personalized strategies", urgent=True),
    Recommendation("📞", "Crisis Support Available",
                   "National Mental Health Hotline: 1-800-662-HELP", urgent=True),
)

_PROFESSIONAL_GENTLE = (
    Recommendation("🗣️", "Talk to Someone",
                   "Share your feelings with a trusted friend or counselor", urgent=False),
)


# ── Pure building blocks ─────────────────────────────────────────────────────

def wellness_score(history: Sequence[EmotionResult]) -> int:
    if not history:
        raise EmptySessionError("cannot score a session with zero turns")
    total = 0.0
    for entry in history:
        base = BASE_SCORES.get(entry.emotion, NEUTRAL_MIDPOINT)
        total += base * entry.intensity + NEUTRAL_MIDPOINT * (1 - entry.intensity)
    # int(x + 0.5) rounds halves up, matching Math.round for positive scores
    return max(0, min(100, int(total / len(history) + 0.5)))


def emotion_counts(history: Sequence[EmotionResult]) -> Dict[str, int]:
    """Counts in first-occurrence order."""
    return dict(Counter(e.emotion for e in history))


def dominant_emotion(history: Sequence[EmotionResult]) -> str:
    if not history:
        raise EmptySessionError("cannot pick a dominant emotion from zero turns")
    counts = emotion_counts(history)
    # max() returns the first maximal key; dict order is first occurrence
    return max(counts, key=counts.get)


def wellness_tier(score: int) -> Tuple[str, str]:
    for floor, tier, message in _TIERS:
        if score >= floor:
            return tier, message
    return _TIERS[-1][1], _TIERS[-1][2]


def encouragement(emotion: str, score: int) -> str:
    message = _ENCOURAGEMENT.get(emotion, _DEFAULT_ENCOURAGEMENT)
    if score < 40:
        message += _HELP_IS_STRENGTH
    return message


def recommendations(score: int, dominant: str) -> Dict[str, List[Recommendation]]:
    if score < 40:
        professional = list(_PROFESSIONAL_URGENT)
    elif score < 60:
        professional = list(_PROFESSIONAL_GENTLE)
    else:
        professional = []
    return {
        "immediate": list(_IMMEDIATE.get(dominant, ())),
        "daily": list(_DAILY),
        "weekly": list(_WEEKLY),
        "professional": professional,
    }


# ── Aggregator ───────────────────────────────────────────────────────────────

class WellnessAggregator:
    def __init__(self, places: Optional[PlaceSuggester] = None):
        self.places = places or PlaceSuggester()

    async def summarize(
        self,
        history: Sequence,
        geo: Optional[Geolocation] = None,
        answers: Optional[Sequence[str]] = None,
    ) -> SessionReport:
        if history is None or len(history) == 0:
            raise EmptySessionError("session has no emotion history")
        entries = [EmotionResult.coerce(e) for e in history]
        answers = list(answers or [])

        score = wellness_score(entries)
        dominant = dominant_emotion(entries)
        tier, message = wellness_tier(score)

        report = SessionReport(
            wellness_score=score,
            wellness_tier=tier,
            wellness_message=message,
            dominant_emotion=dominant,
            emotion_counts=emotion_counts(entries),
            recommendations=recommendations(score, dominant),
            places=await self.places.suggest(dominant, entries, geo, answers),
            communities=suggest_communities(answers, dominant),
            encouragement=encouragement(dominant, score),
        )
        logger.info(
            f"Session: wellness {score} ({tier}), dominant {dominant}",
            extra={
                "turns": len(entries),
                "wellness_score": score,
                "dominant_emotion": dominant,
                "places": len(report.places),
                "located": geo is not None,
            },
        )
        return report
