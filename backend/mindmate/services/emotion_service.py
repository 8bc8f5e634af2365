"""
Emotion Service — classification chain + multimodal fusion.

Pipeline:
  text  → FallbackChain[remote?, lexicon]        → EmotionResult (text branch)
  audio → extract_audio_features → prosody rules → EmotionResult (audio branch)
  fuse(text, audio)                              → EmotionResult (final)

Fusion: weighted average  x_fused = 0.8·x_text + 0.2·x_audio  for intensity
and confidence.  Agreement multiplies confidence by 1.2 (cap 0.95);
disagreement multiplies it by 0.8 and keeps the label of the more
confident source (text on ties).
"""
from __future__ import annotations
import time
from typing import Optional, Sequence

import numpy as np

from mindmate.config import Settings, settings
from mindmate.errors import InvalidInputError
from mindmate.models.emotion import FUSED, REMOTE, EmotionResult
from mindmate.models.emotion_classifier import (
    AudioProsodyClassifier, LexiconClassifier, validate_text,
)
from mindmate.services.audio_features import extract_audio_features
from mindmate.services.fallback import FallbackChain
from mindmate.services.llm_service import (
    ClientFactory, RemoteEmotionPayload, RemoteTextProvider,
    build_emotion_prompt, build_remote_provider, parse_json_object,
)
from mindmate.utils.logging import logger

AGREEMENT_BOOST = 1.2
AGREEMENT_CAP = 0.95
DISAGREEMENT_PENALTY = 0.8


# ── Providers ────────────────────────────────────────────────────────────────

class LexiconProvider:
    name = "lexicon"

    def __init__(self, classifier: Optional[LexiconClassifier] = None):
        self.classifier = classifier or LexiconClassifier()

    async def classify(self, text: str) -> EmotionResult:
        return self.classifier.classify(text)


class RemoteEmotionProvider:
    """Asks a remote model for the emotion JSON and validates it strictly."""

    def __init__(self, backend: RemoteTextProvider):
        self.backend = backend
        self.name = f"remote:{backend.name}"

    async def classify(self, text: str) -> EmotionResult:
        reply = await self.backend.complete(build_emotion_prompt(text))
        payload = RemoteEmotionPayload.model_validate(parse_json_object(reply))
        return EmotionResult(
            emotion=payload.emotion,
            intensity=round(payload.intensity, 2),
            confidence=round(payload.confidence, 2),
            provenance=REMOTE,
            explanation=payload.reasoning or None,
            triggers=tuple(payload.tone_indicators),
        )


# ── Fusion ───────────────────────────────────────────────────────────────────

def fuse(
    text: EmotionResult,
    audio: EmotionResult,
    text_weight: float = 0.8,
    audio_weight: float = 0.2,
) -> EmotionResult:
    total_w = text_weight + audio_weight
    if total_w <= 0:
        text_weight, audio_weight, total_w = 0.8, 0.2, 1.0
    tw, aw = text_weight / total_w, audio_weight / total_w

    intensity = text.intensity * tw + audio.intensity * aw
    confidence = text.confidence * tw + audio.confidence * aw

    agreement = text.emotion == audio.emotion
    if agreement:
        emotion = text.emotion
        confidence = min(confidence * AGREEMENT_BOOST, AGREEMENT_CAP)
    else:
        emotion = audio.emotion if audio.confidence > text.confidence else text.emotion
        confidence = confidence * DISAGREEMENT_PENALTY

    if agreement:
        explanation = f"text and audio agree on {emotion}"
    else:
        explanation = (
            f"text says {text.emotion} ({text.confidence:.2f}), "
            f"audio says {audio.emotion} ({audio.confidence:.2f}); kept {emotion}"
        )
    return EmotionResult(
        emotion=emotion,
        intensity=round(intensity, 2),
        confidence=round(confidence, 2),
        provenance=FUSED,
        explanation=explanation,
        triggers=text.triggers,
    )


# ── Service ──────────────────────────────────────────────────────────────────

class EmotionPipeline:
    """
    classify(text)                 → EmotionResult (remote, else lexicon)
    classify_audio(audio, sr)      → EmotionResult (audio-mock)
    fuse(text_result, audio_result)→ EmotionResult (fused)
    analyze(text, audio?, sr)      → classify + optional audio + fuse
    """

    def __init__(
        self,
        providers: Optional[Sequence] = None,
        timeout_s: float = 8.0,
        text_weight: float = 0.8,
        audio_weight: float = 0.2,
        audio_classifier: Optional[AudioProsodyClassifier] = None,
    ):
        providers = list(providers) if providers else [LexiconProvider()]
        self.chain = FallbackChain(
            "emotion", providers, timeout_s=timeout_s, passthrough=(InvalidInputError,),
        )
        self._text_w = text_weight
        self._audio_w = audio_weight
        self.audio_classifier = audio_classifier or AudioProsodyClassifier()

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = settings,
        client_factory: Optional[ClientFactory] = None,
    ) -> "EmotionPipeline":
        providers = []
        remote = build_remote_provider(cfg, client_factory=client_factory)
        if remote is not None:
            providers.append(RemoteEmotionProvider(remote))
        providers.append(LexiconProvider())
        return cls(
            providers,
            timeout_s=cfg.REMOTE_TIMEOUT_S,
            text_weight=cfg.EMOTION_TEXT_WEIGHT,
            audio_weight=cfg.EMOTION_AUDIO_WEIGHT,
            audio_classifier=AudioProsodyClassifier(confidence=cfg.AUDIO_CONFIDENCE),
        )

    @property
    def provider_names(self):
        return [getattr(p, "name", type(p).__name__) for p in self.chain.providers]

    async def classify(self, text: str) -> EmotionResult:
        text = validate_text(text)
        t0 = time.time()
        result = await self.chain.run(lambda p: p.classify(text))
        logger.info(
            f"Emotion: {result.emotion} via {result.provenance}",
            extra={
                "emotion": result.emotion,
                "intensity": result.intensity,
                "confidence": result.confidence,
                "provenance": result.provenance,
                "latency_ms": round((time.time() - t0) * 1000, 1),
            },
        )
        return result

    def classify_audio(self, audio: np.ndarray, sr: int = 16000) -> EmotionResult:
        feats = extract_audio_features(audio, sr)
        summary = (
            f"f0={feats['f0_mean']:.0f}Hz rms={feats['rms_mean']:.3f} "
            f"rate={feats['speaking_rate']:.1f}/s"
        )
        return self.audio_classifier.classify(feats, explanation=summary)

    def fuse(self, text: EmotionResult, audio: EmotionResult) -> EmotionResult:
        result = fuse(text, audio, self._text_w, self._audio_w)
        logger.info(
            f"Fusion: {result.emotion} (confidence {result.confidence})",
            extra={"text": text.emotion, "audio": audio.emotion, "fused": result.emotion},
        )
        return result

    async def analyze(
        self,
        text: str,
        audio: Optional[np.ndarray] = None,
        sr: int = 16000,
    ) -> EmotionResult:
        text_result = await self.classify(text)
        if audio is None or np.asarray(audio).size == 0:
            return text_result
        return self.fuse(text_result, self.classify_audio(audio, sr))
