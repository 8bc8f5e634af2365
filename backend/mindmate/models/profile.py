"""
Value types consumed and produced by the scorer and the aggregator.

UserProfile and Geolocation come from the surrounding system (read-only
here).  MatchScore and SessionReport are derived on every request and
handed back; nothing in this package keeps them.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from mindmate.models.emotion import EmotionResult

COMPATIBILITY_TIERS: Tuple[str, ...] = ("Excellent", "Great", "Good", "Fair", "Limited")


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    city: Optional[str] = None
    age: Optional[int] = None
    interests: Tuple[str, ...] = ()
    history: Tuple[EmotionResult, ...] = ()   # most-recent-last

    def __post_init__(self):
        # dedupe case-insensitively, keep first spelling
        seen: Dict[str, str] = {}
        for tag in self.interests or ():
            if isinstance(tag, str) and tag.strip():
                seen.setdefault(tag.strip().lower(), tag.strip())
        object.__setattr__(self, "interests", tuple(seen.values()))
        object.__setattr__(
            self, "history", tuple(EmotionResult.coerce(e) for e in self.history or ())
        )

    @property
    def interest_keys(self) -> frozenset:
        return frozenset(tag.lower() for tag in self.interests)


@dataclass(frozen=True)
class Geolocation:
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def label(self) -> str:
        return ", ".join(p for p in (self.city, self.region, self.country) if p) or "unknown"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class MatchScore:
    total: float
    breakdown: Dict[str, float]
    reasoning: List[str]
    compatibility_tier: str
    weights: Dict[str, float] = field(default_factory=dict)

    @property
    def summary(self) -> str:
        """Reasoning clauses as one phrase: "X", "X and Y", "X, Y, and Z"."""
        reasons = self.reasoning
        if not reasons:
            return "might be an interesting connection"
        if len(reasons) == 1:
            return reasons[0]
        if len(reasons) == 2:
            return " and ".join(reasons)
        return ", ".join(reasons[:-1]) + ", and " + reasons[-1]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["summary"] = self.summary
        return d


@dataclass(frozen=True)
class Recommendation:
    icon: str
    title: str
    description: str
    urgent: Optional[bool] = None
    duration: Optional[str] = None
    frequency: Optional[str] = None


@dataclass(frozen=True)
class PlaceSuggestion:
    icon: str
    name: str
    description: str
    type: str
    address: Optional[str] = None
    distance: Optional[str] = None


@dataclass(frozen=True)
class CommunitySuggestion:
    icon: str
    name: str
    description: str
    type: str


@dataclass
class SessionReport:
    wellness_score: int
    wellness_tier: str
    wellness_message: str
    dominant_emotion: str
    emotion_counts: Dict[str, int]
    recommendations: Dict[str, List[Recommendation]]
    places: List[PlaceSuggestion] = field(default_factory=list)
    communities: List[CommunitySuggestion] = field(default_factory=list)
    encouragement: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
