"""
EmotionResult — the one output shape every classification path produces.

EmotionResult = {
    "emotion":     str,     # one of EMOTIONS, unknown labels → "neutral"
    "intensity":   float,   # 0.0 – 1.0, strength of the emotion
    "confidence":  float,   # 0.0 – 1.0, certainty of the producing path
    "provenance":  str,     # remote | lexicon | fused | audio-mock
    "explanation": str?,    # rationale / trigger tokens when available
}

Clamping and label normalization happen in the constructor, so an
instance that exists is always valid.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Mapping, Optional, Tuple

EMOTIONS: Tuple[str, ...] = (
    "happy", "sad", "angry", "anxious", "calm", "neutral", "excited", "peaceful",
)

# Provenance tags
REMOTE     = "remote"
LEXICON    = "lexicon"
FUSED      = "fused"
AUDIO_MOCK = "audio-mock"


def clamp(value: Any, lo: float = 0.0, hi: float = 1.0, default: float = 0.0) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if v != v:  # NaN
        return default
    return max(lo, min(hi, v))


def normalize_label(label: Any) -> str:
    if isinstance(label, str):
        key = label.strip().lower()
        if key in EMOTIONS:
            return key
    return "neutral"


@dataclass(frozen=True)
class EmotionResult:
    emotion: str
    intensity: float
    confidence: float
    provenance: str = LEXICON
    explanation: Optional[str] = None
    triggers: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "emotion", normalize_label(self.emotion))
        object.__setattr__(self, "intensity", clamp(self.intensity))
        object.__setattr__(self, "confidence", clamp(self.confidence))
        object.__setattr__(self, "triggers", tuple(str(t) for t in self.triggers))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmotionResult":
        """Coerce a stored record; missing fields take neutral defaults."""
        intensity = data.get("intensity")
        confidence = data.get("confidence")
        return cls(
            emotion=data.get("emotion"),
            intensity=0.5 if intensity is None else clamp(intensity, default=0.5),
            confidence=0.5 if confidence is None else clamp(confidence, default=0.5),
            provenance=str(data.get("provenance") or LEXICON),
            explanation=data.get("explanation"),
            triggers=tuple(data.get("triggers") or ()),
        )

    @classmethod
    def coerce(cls, entry: Any) -> "EmotionResult":
        if isinstance(entry, EmotionResult):
            return entry
        if isinstance(entry, Mapping):
            return cls.from_dict(entry)
        if isinstance(entry, str):
            return cls(emotion=entry, intensity=0.5, confidence=0.5)
        return cls(emotion="neutral", intensity=0.5, confidence=0.0)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["triggers"] = list(self.triggers)
        return d
