"""
Fixed lookup tables for the rule-based scorers.

Tables are plain immutable data handed to the classifiers and scorers at
construction time, so each scorer stays a pure function of (input, table)
and a table can be swapped for a test or a different locale.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple


def _frozen(d: dict) -> Mapping:
    return MappingProxyType(dict(d))


# ── Emotion keyword sets (declaration order is the tie-break order) ─────────
_EMOTION_KEYWORDS = {
    "happy": (
        "happy", "joy", "excited", "amazing", "wonderful", "great", "fantastic",
        "love", "perfect", "awesome", "brilliant", "cheerful", "delighted",
        "thrilled", "ecstatic", "blissful", "content", "satisfied", "pleased",
    ),
    "sad": (
        "sad", "depressed", "down", "upset", "terrible", "awful", "horrible",
        "disappointed", "heartbroken", "miserable", "gloomy", "melancholy",
        "sorrowful", "dejected", "despondent", "grief", "mourning", "crying",
        "unhappy", "unfortunate", "regret", "lonely", "alone", "isolated",
        "hurt", "pain", "suffering", "blue", "low", "hopeless", "discouraged",
    ),
    "angry": (
        "angry", "mad", "furious", "irritated", "annoyed", "frustrated",
        "outraged", "livid", "enraged", "hostile", "aggressive", "bitter",
        "resentful", "indignant", "irate", "rage", "wrath", "hatred",
    ),
    "anxious": (
        "anxious", "worried", "nervous", "stressed", "overwhelmed", "panic",
        "scared", "afraid", "fearful", "concerned", "troubled", "uneasy",
        "restless", "tense", "apprehensive", "paranoid", "insecure", "dread",
    ),
    "calm": (
        "calm", "peaceful", "relaxed", "serene", "tranquil", "composed",
        "zen", "balanced", "centered", "still", "quiet", "soothed",
        "restful", "gentle", "mild", "placid", "undisturbed", "harmonious",
    ),
    "neutral": (
        "okay", "fine", "normal", "regular", "average", "ordinary",
        "usual", "standard", "typical", "moderate", "balanced", "stable",
    ),
}

# ── Polarity lexicon (+1 / -1 per recognized word) ──────────────────────────
_POSITIVE_WORDS = frozenset({
    "happy", "joy", "joyful", "love", "loved", "lovely", "great", "good", "wonderful",
    "amazing", "fantastic", "awesome", "excellent", "perfect", "brilliant", "glad",
    "grateful", "thankful", "blessed", "proud", "hope", "hopeful", "excited",
    "cheerful", "delighted", "pleased", "satisfied", "enjoy", "enjoyed", "fun",
    "nice", "beautiful", "calm", "peaceful", "relaxed", "like", "liked",
    "comfortable", "fortunate", "lucky", "better", "best", "win", "won",
    "success", "successful", "kind", "smile", "laugh", "thrilled", "ecstatic",
    "content", "confident", "safe", "healthy", "friendly", "pleasant", "calming",
    "motivated", "inspired", "fresh", "strong", "optimistic", "sweet", "warm",
})

_NEGATIVE_WORDS = frozenset({
    "sad", "bad", "terrible", "awful", "horrible", "hate", "hated", "angry", "mad",
    "upset", "depressed", "lonely", "hurt", "pain", "painful", "cry", "crying",
    "worried", "anxious", "nervous", "scared", "afraid", "fear", "stress",
    "stressed", "overwhelmed", "tired", "exhausted", "miserable", "hopeless",
    "worse", "worst", "fail", "failed", "failure", "lost", "sick", "annoyed",
    "frustrated", "furious", "disappointed", "regret", "guilty", "ashamed",
    "broken", "heartbroken", "panic", "dread", "unhappy", "unfortunate",
    "unfortunately", "sadly", "problem", "difficult", "boring", "bored",
    "useless", "worthless", "unpleasant", "awkward", "rough", "drained",
})

# Whole-word negators and the prefixes that negate a positive stem
_NEGATION_WORDS = frozenset({"not", "never", "no", "nothing", "nobody"})
_NEGATION_PREFIXES: Tuple[str, ...] = ("un", "dis")


@dataclass(frozen=True)
class LexiconTables:
    """Keyword sets and polarity word lists for the lexicon classifier."""

    emotion_keywords: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _frozen(_EMOTION_KEYWORDS)
    )
    positive_words: FrozenSet[str] = _POSITIVE_WORDS
    negative_words: FrozenSet[str] = _NEGATIVE_WORDS
    negation_words: FrozenSet[str] = _NEGATION_WORDS
    negation_prefixes: Tuple[str, ...] = _NEGATION_PREFIXES

    @property
    def emotion_order(self) -> Tuple[str, ...]:
        return tuple(self.emotion_keywords)


# ── Compatibility tables ────────────────────────────────────────────────────
# 6-d mood vectors; neighbouring emotions share most of their mass,
# opposed ones (happy / sad) barely overlap.
_EMOTION_VECTORS = {
    "happy":    (1.0, 0.8, 0.2, 0.1, 0.3, 0.5),
    "excited":  (1.0, 0.6, 0.1, 0.2, 0.5, 0.3),
    "sad":      (0.1, 0.2, 1.0, 0.3, 0.1, 0.4),
    "angry":    (0.2, 0.1, 0.4, 1.0, 0.2, 0.3),
    "anxious":  (0.3, 0.2, 0.6, 0.7, 1.0, 0.4),
    "calm":     (0.6, 0.9, 0.1, 0.1, 0.2, 1.0),
    "peaceful": (0.6, 0.9, 0.1, 0.1, 0.1, 1.0),
    "neutral":  (0.5, 0.5, 0.5, 0.5, 0.5, 0.5),
}

FACTORS: Tuple[str, ...] = ("location", "mood", "interests", "age", "activity")

# Raw factor weights; MatchingTables normalizes them to sum to 1.0.
_FACTOR_WEIGHTS = {
    "location":  0.40,
    "mood":      0.35,
    "interests": 0.15,
    "age":       0.10,
    "activity":  0.05,
}


@dataclass(frozen=True)
class MatchingTables:
    """Per-emotion mood vectors and the factor weight table."""

    emotion_vectors: Mapping[str, Tuple[float, ...]] = field(
        default_factory=lambda: _frozen(_EMOTION_VECTORS)
    )
    raw_weights: Mapping[str, float] = field(
        default_factory=lambda: _frozen(_FACTOR_WEIGHTS)
    )

    def __post_init__(self):
        unknown = set(self.raw_weights) - set(FACTORS)
        if unknown:
            raise ValueError(f"unknown factors: {sorted(unknown)}")
        if any(w < 0 for w in self.raw_weights.values()):
            raise ValueError("factor weights must not be negative")
        total = sum(self.raw_weights.values())
        if total <= 0:
            raise ValueError("factor weights must have a positive sum")
        if "neutral" not in self.emotion_vectors:
            raise ValueError("mood vectors need a neutral entry")
        dims = {len(v) for v in self.emotion_vectors.values()}
        if len(dims) != 1:
            raise ValueError("all mood vectors must share one dimension")

    @property
    def weights(self) -> Mapping[str, float]:
        total = sum(self.raw_weights.values())
        return _frozen({k: w / total for k, w in self.raw_weights.items()})

    @property
    def factors(self) -> Tuple[str, ...]:
        return tuple(self.raw_weights)


DEFAULT_LEXICON = LexiconTables()
DEFAULT_MATCHING = MatchingTables()
