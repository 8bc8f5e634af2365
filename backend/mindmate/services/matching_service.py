"""
Compatibility scoring between two user profiles.

Factors (raw weights, normalized together to sum to 1.0):
  location  0.40   exact city → 1.0, else bigram Jaccard bucketed 0.8 / 0.5 / 0.1
  mood      0.35   1 − cosine distance of averaged last-3 mood vectors
  interests 0.15   Jaccard of case-insensitive tag sets
  age       0.10   step function of |age difference|
  activity  0.05   min/max ratio of history lengths

Everything here is a pure function of its arguments and the tables:
no I/O, no randomness, symmetric in the two profiles.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
from scipy.spatial.distance import cosine

from mindmate.models.emotion import EmotionResult
from mindmate.models.lexicon import DEFAULT_MATCHING, MatchingTables
from mindmate.models.profile import COMPATIBILITY_TIERS, MatchScore, UserProfile
from mindmate.utils.logging import logger

MOOD_WINDOW = 3

# Materiality thresholds: (factor, cutoff, clause); first hit per factor wins.
_REASON_RULES = (
    ("location",  ((0.8, "lives in your city"), (0.4, "lives nearby"))),
    ("mood",      ((0.7, "has very similar recent moods"), (0.5, "shares some emotional patterns"))),
    ("interests", ((0.5, "shares many interests"), (0.2, "has some common interests"))),
    ("age",       ((0.7, "is around your age"),)),
    ("activity",  ((0.6, "has similar activity level"),)),
)

# cutoffs for every tier but the last, which catches the rest
_TIER_CUTOFFS = (0.8, 0.6, 0.4, 0.2)


# ── Factor functions ─────────────────────────────────────────────────────────

def _bigrams(s: str) -> set:
    return {s[i:i + 2] for i in range(len(s) - 1)}


def string_similarity(a: str, b: str) -> float:
    """Jaccard similarity of character bigram sets."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    ga, gb = _bigrams(a), _bigrams(b)
    union = ga | gb
    return len(ga & gb) / len(union) if union else 0.0


def location_score(city_a: Optional[str], city_b: Optional[str]) -> float:
    a = (city_a or "").strip().lower()
    b = (city_b or "").strip().lower()
    if not a or not b:
        return 0.1
    if a == b:
        return 1.0
    similarity = string_similarity(a, b)
    if similarity > 0.8:
        return 0.8
    if similarity > 0.6:
        return 0.5
    return 0.1


def mood_vector(history: Sequence[EmotionResult], tables: MatchingTables = DEFAULT_MATCHING) -> np.ndarray:
    recent = list(history)[-MOOD_WINDOW:]
    neutral = tables.emotion_vectors["neutral"]
    vectors = [tables.emotion_vectors.get(e.emotion, neutral) for e in recent]
    return np.mean(np.array(vectors, dtype=float), axis=0)


def mood_score(
    history_a: Sequence[EmotionResult],
    history_b: Sequence[EmotionResult],
    tables: MatchingTables = DEFAULT_MATCHING,
) -> float:
    if not history_a or not history_b:
        return 0.2
    va, vb = mood_vector(history_a, tables), mood_vector(history_b, tables)
    if not np.any(va) or not np.any(vb):
        return 0.2
    similarity = 1.0 - float(cosine(va, vb))
    return round(max(0.0, min(1.0, similarity)), 4)


def interest_score(tags_a: Iterable[str], tags_b: Iterable[str]) -> float:
    a = {t.strip().lower() for t in tags_a if isinstance(t, str) and t.strip()}
    b = {t.strip().lower() for t in tags_b if isinstance(t, str) and t.strip()}
    if not a or not b:
        return 0.1
    return round(len(a & b) / len(a | b), 4)


def age_score(age_a: Optional[int], age_b: Optional[int]) -> float:
    if not age_a or not age_b or age_a < 0 or age_b < 0:
        return 0.5
    diff = abs(age_a - age_b)
    if diff <= 3:
        return 1.0
    if diff <= 7:
        return 0.8
    if diff <= 12:
        return 0.6
    if diff <= 18:
        return 0.4
    return 0.2


def activity_score(count_a: int, count_b: int) -> float:
    if count_a == 0 and count_b == 0:
        return 0.5
    return round(min(count_a, count_b) / max(count_a, count_b), 4)


def match_reasoning(breakdown: Mapping[str, float]) -> List[str]:
    reasons = []
    for factor, cutoffs in _REASON_RULES:
        value = breakdown.get(factor, 0.0)
        for cutoff, clause in cutoffs:
            if value > cutoff:
                reasons.append(clause)
                break
    return reasons


def compatibility_tier(total: float) -> str:
    for cutoff, tier in zip(_TIER_CUTOFFS, COMPATIBILITY_TIERS):
        if total >= cutoff:
            return tier
    return COMPATIBILITY_TIERS[-1]


# ── Scorer ───────────────────────────────────────────────────────────────────

class CompatibilityScorer:
    def __init__(self, tables: MatchingTables = DEFAULT_MATCHING):
        self.tables = tables
        self.weights: Dict[str, float] = dict(tables.weights)

    def breakdown(
        self,
        profile_a: UserProfile,
        history_a: Sequence[EmotionResult],
        profile_b: UserProfile,
        history_b: Sequence[EmotionResult],
    ) -> Dict[str, float]:
        return {
            "location":  location_score(profile_a.city, profile_b.city),
            "mood":      mood_score(history_a, history_b, self.tables),
            "interests": interest_score(profile_a.interests, profile_b.interests),
            "age":       age_score(profile_a.age, profile_b.age),
            "activity":  activity_score(len(history_a), len(history_b)),
        }

    def score(
        self,
        profile_a: UserProfile,
        history_a: Optional[Sequence] = None,
        profile_b: Optional[UserProfile] = None,
        history_b: Optional[Sequence] = None,
    ) -> MatchScore:
        """
        Score two profiles.  Histories default to the ones carried on the
        profiles; ``profile_b`` defaults to ``profile_a`` (self-match).
        """
        if profile_b is None:
            profile_b = profile_a
        hist_a = self._history(profile_a, history_a)
        hist_b = self._history(profile_b, history_b)

        breakdown = self.breakdown(profile_a, hist_a, profile_b, hist_b)
        total = sum(breakdown[f] * self.weights.get(f, 0.0) for f in self.tables.factors)
        total = round(max(0.0, min(1.0, total)), 3)
        return MatchScore(
            total=total,
            breakdown=breakdown,
            reasoning=match_reasoning(breakdown),
            compatibility_tier=compatibility_tier(total),
            weights=dict(self.weights),
        )

    def rank(
        self,
        target: UserProfile,
        candidates: Iterable[UserProfile],
        histories: Optional[Mapping[str, Sequence]] = None,
        target_history: Optional[Sequence] = None,
        limit: int = 10,
    ) -> List[tuple]:
        """Top ``limit`` (candidate, MatchScore) pairs, best first; self skipped."""
        histories = histories or {}
        scored = []
        for candidate in candidates:
            if candidate.user_id == target.user_id:
                continue
            result = self.score(target, target_history, candidate, histories.get(candidate.user_id))
            scored.append((candidate, result))
        scored.sort(key=lambda pair: pair[1].total, reverse=True)
        top = scored[:max(0, limit)]
        logger.info(
            f"Matching: ranked {len(scored)} candidates for {target.user_id}",
            extra={"user_id": target.user_id, "returned": len(top)},
        )
        return top

    @staticmethod
    def _history(profile: UserProfile, history: Optional[Sequence]) -> List[EmotionResult]:
        if history is None:
            return list(profile.history)
        return [EmotionResult.coerce(e) for e in history]
