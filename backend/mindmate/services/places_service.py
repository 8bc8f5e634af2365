"""
Place and community suggestions for a finished session.

Places:      FallbackChain[remote?, static]  → 3 PlaceSuggestion
Communities: fixed keyword/emotion rules     → list[CommunitySuggestion]

The remote generator is asked for real, geographically sorted places when
a geolocation is known, or place types otherwise.  Any failure (timeout,
HTTP error, no JSON array, invalid entries) falls back to the static
per-emotion list, which is keyed on the dominant emotion.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple

from mindmate.config import Settings, settings
from mindmate.errors import RemoteProviderError
from mindmate.models.emotion import EmotionResult
from mindmate.models.profile import CommunitySuggestion, Geolocation, PlaceSuggestion
from mindmate.services.fallback import FallbackChain
from mindmate.services.llm_service import (
    ClientFactory, RemotePlacePayload, RemoteTextProvider,
    build_places_prompt, build_remote_provider, extract_json_array,
)
from mindmate.utils.logging import logger

PLACE_COUNT = 3

# ── Static places per emotion ────────────────────────────────────────────────
_STATIC_PLACES: Dict[str, Tuple[PlaceSuggestion, ...]] = {
    "anxious": (
        PlaceSuggestion("🌳", "Nature Parks", "Green spaces reduce anxiety by 30%", "outdoor"),
        PlaceSuggestion("☕", "Quiet Cafés", "Calm environment for reflection", "indoor"),
        PlaceSuggestion("🎨", "Art Museums", "Art therapy benefits for stress relief", "indoor"),
    ),
    "sad": (
        PlaceSuggestion("☀️", "Botanical Gardens", "Natural beauty lifts mood", "outdoor"),
        PlaceSuggestion("🎭", "Comedy Shows", "Laughter is powerful medicine", "event"),
        PlaceSuggestion("🏊", "Swimming Pools", "Water activities boost happiness", "activity"),
    ),
    "stressed": (
        PlaceSuggestion("🧘", "Yoga Studios", "Mind-body connection for stress relief", "wellness"),
        PlaceSuggestion("📚", "Libraries", "Peaceful environment for mental rest", "indoor"),
        PlaceSuggestion("🌊", "Beaches/Waterfronts", "Water sounds calm the nervous system", "outdoor"),
    ),
    "angry": (
        PlaceSuggestion("🏃", "Gym/Sports Centers", "Physical release of tension", "activity"),
        PlaceSuggestion("🥊", "Boxing/Martial Arts", "Controlled energy release", "activity"),
        PlaceSuggestion("🌲", "Hiking Trails", "Nature + exercise combination", "outdoor"),
    ),
    "lonely": (
        PlaceSuggestion("🎪", "Community Centers", "Meet people with shared interests", "social"),
        PlaceSuggestion("☕", "Co-working Spaces", "Work around others", "social"),
        PlaceSuggestion("🎮", "Gaming Cafés", "Connect through shared hobbies", "social"),
    ),
    "neutral": (
        PlaceSuggestion("🎨", "Creative Workshops", "Explore new interests", "activity"),
        PlaceSuggestion("🌆", "City Exploration", "Discover new places", "outdoor"),
        PlaceSuggestion("🎵", "Live Music Venues", "Emotional connection through music", "event"),
    ),
}


def static_places(dominant_emotion: str) -> List[PlaceSuggestion]:
    return list(_STATIC_PLACES.get(dominant_emotion, _STATIC_PLACES["neutral"]))


def conversation_context(history: Sequence[EmotionResult], answers: Sequence[str] = ()) -> str:
    lines = []
    for i, entry in enumerate(history):
        answer = answers[i] if i < len(answers) else ""
        lines.append(f"A: {answer or '(not recorded)'} (Emotion: {entry.emotion})")
    return "\n\n".join(lines)


# ── Providers ────────────────────────────────────────────────────────────────

class StaticPlaceProvider:
    name = "static"

    async def suggest(self, dominant_emotion: str, context: str,
                      geo: Optional[Geolocation]) -> List[PlaceSuggestion]:
        return static_places(dominant_emotion)


class RemotePlaceProvider:
    def __init__(self, backend: RemoteTextProvider):
        self.backend = backend
        self.name = f"remote:{backend.name}"

    async def suggest(self, dominant_emotion: str, context: str,
                      geo: Optional[Geolocation]) -> List[PlaceSuggestion]:
        reply = await self.backend.complete(build_places_prompt(dominant_emotion, context, geo))
        items = extract_json_array(reply)
        places = [
            PlaceSuggestion(**RemotePlacePayload.model_validate(item).model_dump())
            for item in items[:PLACE_COUNT]
        ]
        if not places:
            raise RemoteProviderError(self.backend.name, "empty place list")
        remote_count = len(places)
        used = {p.name.strip().lower() for p in places}
        for fallback in static_places(dominant_emotion):
            if len(places) >= PLACE_COUNT:
                break
            if fallback.name.lower() not in used:
                places.append(fallback)
        logger.info(
            f"Places: {remote_count} remote suggestions, {len(places) - remote_count} static",
            extra={"names": [p.name for p in places], "located": geo is not None},
        )
        return places


class PlaceSuggester:
    def __init__(self, providers: Optional[Sequence] = None, timeout_s: float = 12.0):
        providers = list(providers) if providers else [StaticPlaceProvider()]
        self.chain = FallbackChain("places", providers, timeout_s=timeout_s)

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = settings,
        client_factory: Optional[ClientFactory] = None,
    ) -> "PlaceSuggester":
        providers = []
        remote = build_remote_provider(cfg, timeout_s=cfg.PLACES_TIMEOUT_S, client_factory=client_factory)
        if remote is not None:
            providers.append(RemotePlaceProvider(remote))
        providers.append(StaticPlaceProvider())
        return cls(providers, timeout_s=cfg.PLACES_TIMEOUT_S)

    async def suggest(
        self,
        dominant_emotion: str,
        history: Sequence[EmotionResult] = (),
        geo: Optional[Geolocation] = None,
        answers: Sequence[str] = (),
    ) -> List[PlaceSuggestion]:
        context = conversation_context(history, answers)
        return await self.chain.run(lambda p: p.suggest(dominant_emotion, context, geo))


# ── Communities ──────────────────────────────────────────────────────────────

_TOPIC_RULES = (
    (("work", "career", "job"),
     CommunitySuggestion("💼", "Professional Support Groups",
                         "Connect with others navigating career challenges", "online-and-local")),
    (("family", "relationship"),
     CommunitySuggestion("👨‍👩‍👧", "Family Support Networks",
                         "Share experiences with others in similar situations", "local")),
    (("creative", "art", "music"),
     CommunitySuggestion("🎨", "Creative Communities",
                         "Express yourself through art with like-minded people", "workshops")),
)

_EMOTION_COMMUNITIES = {
    "anxious": CommunitySuggestion("🧘", "Mindfulness & Meditation Groups",
                                   "Practice stress management together", "weekly-meetups"),
    "stressed": CommunitySuggestion("🧘", "Mindfulness & Meditation Groups",
                                    "Practice stress management together", "weekly-meetups"),
    "sad": CommunitySuggestion("💝", "Peer Support Circles",
                               "Share your journey with understanding peers", "support-group"),
}

_ALWAYS_COMMUNITIES = (
    CommunitySuggestion("🌟", "Mental Health Awareness Groups",
                        "Learn and grow with others on wellness journeys", "educational"),
    CommunitySuggestion("🤝", "Local Volunteer Organizations",
                        "Helping others boosts your own well-being", "volunteer"),
)


def suggest_communities(answers: Sequence[str], dominant_emotion: str) -> List[CommunitySuggestion]:
    # substring scan, so "artist" counts as "art"
    transcript = " ".join(a.lower() for a in answers if isinstance(a, str))
    communities = [
        suggestion for keywords, suggestion in _TOPIC_RULES
        if any(kw in transcript for kw in keywords)
    ]
    if dominant_emotion in _EMOTION_COMMUNITIES:
        communities.append(_EMOTION_COMMUNITIES[dominant_emotion])
    communities.extend(_ALWAYS_COMMUNITIES)
    return communities
