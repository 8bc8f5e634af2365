"""
Emotion Classifier — rule-based baseline, replaceable interface.

Design contract:
  LexiconClassifier.classify(text: str)            → EmotionResult
  AudioProsodyClassifier.classify(features: Dict)  → EmotionResult

Both return the same EmotionResult so the fusion layer does not care which
backend ran.  Neither touches the network: the lexicon classifier is the
last link of every classification chain and must always answer.

Replacement targets:
  - LexiconClassifier       → any text model returning EmotionResult
  - AudioProsodyClassifier  → trained SER model (e.g., speechbrain)
"""
from __future__ import annotations
import re
from typing import Dict, List, Optional, Tuple

from mindmate.errors import InvalidInputError
from mindmate.models.emotion import AUDIO_MOCK, EMOTIONS, LEXICON, EmotionResult
from mindmate.models.lexicon import DEFAULT_LEXICON, LexiconTables

_WORD_RE = re.compile(r"[a-z]+(?:'[a-z]+)?")


def _normalize(probs: Dict[str, float]) -> Dict[str, float]:
    total = sum(probs.values())
    if total < 1e-9:
        return {k: (1.0 / len(probs)) for k in probs}
    return {k: v / total for k, v in probs.items()}


def _best(probs: Dict[str, float]) -> Tuple[str, float]:
    # max() keeps the first key on ties, i.e. declaration order
    label = max(probs, key=probs.get)
    return label, round(probs[label], 4)


def validate_text(text) -> str:
    if not isinstance(text, str):
        raise InvalidInputError(f"text must be a string, got {type(text).__name__}")
    if not text.strip():
        raise InvalidInputError("text is empty")
    return text


# ── Text: keyword lexicon + polarity sentiment ───────────────────────────────

class LexiconClassifier:
    """
    Keyword-count classifier with a polarity-sentiment fallback.

    Scoring:
      matches    = whole-word hits per emotion keyword set
      winner     = most hits; ties keep declaration order
      intensity  = winner_hits / token_count × 10 + |sentiment| / 10
      confidence = 0.7 + 0.1 × winner_hits   (≤ 0.9)
    With no keyword hit at all the polarity score alone decides
    (negated or negative → sad, sentiment > 3 → happy, else neutral).
    """

    def __init__(self, tables: LexiconTables = DEFAULT_LEXICON):
        self.tables = tables
        self._patterns = {
            emotion: re.compile(
                r"\b(" + "|".join(re.escape(kw) for kw in keywords) + r")\b",
                re.IGNORECASE,
            )
            for emotion, keywords in tables.emotion_keywords.items()
            if keywords
        }

    # ── Building blocks ──────────────────────────────────────────────────────

    def sentiment(self, text: str) -> Tuple[int, List[str], List[str]]:
        """Additive polarity score: +1 per positive word, -1 per negative."""
        positive, negative = [], []
        for word in _WORD_RE.findall(text.lower()):
            if word in self.tables.positive_words:
                positive.append(word)
            elif word in self.tables.negative_words:
                negative.append(word)
        return len(positive) - len(negative), positive, negative

    def is_negated(self, text: str) -> bool:
        """
        True when a negator word appears, or a word is a negating prefix
        glued onto a positive stem ("unhappy", "dislike").
        """
        for word in _WORD_RE.findall(text.lower()):
            if word in self.tables.negation_words or word.endswith("n't"):
                return True
            for prefix in self.tables.negation_prefixes:
                stem = word[len(prefix):]
                if word.startswith(prefix) and stem in self.tables.positive_words:
                    return True
        return False

    def keyword_matches(self, text: str) -> Dict[str, List[str]]:
        lowered = text.lower()
        matches: Dict[str, List[str]] = {emotion: [] for emotion in self.tables.emotion_order}
        for emotion, pattern in self._patterns.items():
            matches[emotion] = [m.lower() for m in pattern.findall(lowered)]
        return matches

    # ── Public API ───────────────────────────────────────────────────────────

    def classify(self, text: str) -> EmotionResult:
        text = validate_text(text)
        lowered = text.lower().strip()
        tokens = lowered.split()
        score, positive, negative = self.sentiment(lowered)
        matches = self.keyword_matches(lowered)
        total_matches = sum(len(found) for found in matches.values())

        if total_matches > 0:
            emotion, best = self.tables.emotion_order[0], 0
            for candidate in self.tables.emotion_order:
                if len(matches[candidate]) > best:
                    emotion, best = candidate, len(matches[candidate])
            intensity = min(best / len(tokens) * 10 + abs(score) / 10, 1.0)
            confidence = min(0.7 + best * 0.1, 0.9)
            triggers = tuple(dict.fromkeys(matches[emotion]))
            explanation = f"keyword match: {', '.join(triggers)}"
        else:
            if self.is_negated(lowered) or score < 0:
                emotion = "sad"
                intensity = min(abs(score) / 8, 0.8)
            elif score > 3:
                emotion = "happy"
                intensity = min(score / 10, 0.9)
            else:
                emotion = "neutral"
                intensity = 0.5
            confidence = min(0.4 + abs(score) * 0.05, 0.7)
            triggers = tuple(dict.fromkeys(positive + negative))
            explanation = f"sentiment fallback (score {score:+d})"

        return EmotionResult(
            emotion=emotion,
            intensity=round(intensity, 2),
            confidence=round(confidence, 2),
            provenance=LEXICON,
            explanation=explanation,
            triggers=triggers,
        )


# ── Audio: prosody features → emotion ────────────────────────────────────────

class AudioProsodyClassifier:
    """
    Hand-crafted prosody heuristics over the closed emotion set.

    Scoring logic:
      Each rule adds weight to one or more emotion buckets.
      Weights accumulate; final probs are L1-normalized.
      F0=0 means autocorrelation found no voiced frame — fall back to
      RMS/ZCR/rate only (prevents always-neutral when F0 detection fails).
    The result is tagged "audio-mock": these thresholds are a stand-in for
    a trained model, so confidence is a fixed, modest value.
    """

    # Feature ranges (16kHz mono speech):
    #   f0_mean : ~80–300 Hz   (higher = more energy/excitement)
    #   rms_mean: ~0.01–0.15   (higher = louder)
    #   zcr_mean: ~0.05–0.25   (higher = more fricatives/noise)
    #   f0_std  : ~10–80 Hz    (higher = more pitch variation)
    #   speaking_rate: onsets/sec ~1–8

    def __init__(self, confidence: float = 0.6):
        self.confidence = confidence

    def probabilities(self, features: Dict) -> Dict[str, float]:
        probs: Dict[str, float] = {k: 0.0 for k in EMOTIONS}
        probs["neutral"] = 0.10  # low baseline — easier for other emotions to win

        f0_mean       = features.get("f0_mean",       0.0)
        f0_std        = features.get("f0_std",        0.0)
        rms_mean      = features.get("rms_mean",      0.05)
        zcr_mean      = features.get("zcr_mean",      0.10)
        speaking_rate = features.get("speaking_rate", 3.0)

        if f0_mean <= 50.0:
            f0_mean = 150.0   # assume neutral pitch; let RMS/ZCR drive result
            f0_std  = 25.0

        # R1: High pitch + energy + fast rate → excited
        if f0_mean > 185 and rms_mean > 0.06 and speaking_rate > 3.5:
            probs["excited"] += 0.55
            probs["happy"]   += 0.20

        # R2: Moderately high pitch + moderate energy → happy
        elif f0_mean > 155 and rms_mean > 0.04:
            probs["happy"]   += 0.45
            probs["excited"] += 0.10

        # R3: High energy with noisy or swinging pitch → angry
        if rms_mean > 0.07 and (zcr_mean > 0.12 or f0_std > 35):
            probs["angry"]   += 0.50

        # R4: Low pitch + low energy + slow rate → sad
        if f0_mean < 140 and rms_mean < 0.05 and speaking_rate < 3.0:
            probs["sad"]     += 0.45

        # R5: Unsteady pitch + hurried speech at moderate energy → anxious
        if f0_std > 30 and speaking_rate > 4.0 and rms_mean <= 0.07:
            probs["anxious"] += 0.45

        # R6: Low energy + stable pitch + moderate rate → calm
        if rms_mean < 0.06 and f0_std < 28 and 2.0 < speaking_rate < 4.5:
            probs["calm"]    += 0.35

        # R7: Very low energy (whisper/quiet) → peaceful
        if rms_mean < 0.03:
            probs["peaceful"] += 0.25

        # R8: Fast speech with high energy (without high pitch) → excited/happy
        if speaking_rate > 4.5 and rms_mean > 0.05:
            probs["excited"] += 0.20
            probs["happy"]   += 0.10

        return _normalize(probs)

    def classify(self, features: Dict, explanation: Optional[str] = None) -> EmotionResult:
        probs = self.probabilities(features)
        label, intensity = _best(probs)
        return EmotionResult(
            emotion=label,
            intensity=intensity,
            confidence=self.confidence,
            provenance=AUDIO_MOCK,
            explanation=explanation or "prosody rules",
        )
