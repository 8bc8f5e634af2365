"""
Public entry points.

  await classify(text)                    → EmotionResult
  fuse(text_result, audio_result)         → EmotionResult
  score(profile_a, hist_a, profile_b, hist_b) → MatchScore
  await summarize(history, geo?, answers?)→ SessionReport

Module-level functions share one lazily built EmotionEngine configured
from ``settings``; build an EmotionEngine directly to inject providers.
"""
from __future__ import annotations
from typing import List, Mapping, Optional, Sequence

import numpy as np

from mindmate.config import Settings, settings
from mindmate.models.emotion import EmotionResult
from mindmate.models.profile import Geolocation, MatchScore, SessionReport, UserProfile
from mindmate.services.emotion_service import EmotionPipeline
from mindmate.services.llm_service import ClientFactory
from mindmate.services.matching_service import CompatibilityScorer
from mindmate.services.places_service import PlaceSuggester
from mindmate.services.response_generator import generate_supportive_response
from mindmate.services.wellness_service import WellnessAggregator
from mindmate.utils.logging import setup_logging


class EmotionEngine:
    def __init__(
        self,
        pipeline: Optional[EmotionPipeline] = None,
        scorer: Optional[CompatibilityScorer] = None,
        aggregator: Optional[WellnessAggregator] = None,
        match_limit: int = 10,
    ):
        self.pipeline = pipeline or EmotionPipeline()
        self.scorer = scorer or CompatibilityScorer()
        self.aggregator = aggregator or WellnessAggregator()
        self.match_limit = match_limit

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = settings,
        client_factory: Optional[ClientFactory] = None,
    ) -> "EmotionEngine":
        return cls(
            pipeline=EmotionPipeline.from_settings(cfg, client_factory),
            aggregator=WellnessAggregator(PlaceSuggester.from_settings(cfg, client_factory)),
            match_limit=cfg.MATCH_LIMIT,
        )

    async def classify(self, text: str) -> EmotionResult:
        return await self.pipeline.classify(text)

    async def analyze(self, text: str, audio: Optional[np.ndarray] = None,
                      sr: int = 16000) -> EmotionResult:
        return await self.pipeline.analyze(text, audio, sr)

    def fuse(self, text: EmotionResult, audio: EmotionResult) -> EmotionResult:
        return self.pipeline.fuse(text, audio)

    def score(self, profile_a: UserProfile, history_a: Optional[Sequence] = None,
              profile_b: Optional[UserProfile] = None,
              history_b: Optional[Sequence] = None) -> MatchScore:
        return self.scorer.score(profile_a, history_a, profile_b, history_b)

    def rank(self, target: UserProfile, candidates: Sequence[UserProfile],
             histories: Optional[Mapping[str, Sequence]] = None,
             target_history: Optional[Sequence] = None) -> List[tuple]:
        return self.scorer.rank(target, candidates, histories, target_history, self.match_limit)

    async def summarize(self, history: Sequence, geo: Optional[Geolocation] = None,
                        answers: Optional[Sequence[str]] = None) -> SessionReport:
        return await self.aggregator.summarize(history, geo, answers)

    def respond(self, result: EmotionResult) -> dict:
        return generate_supportive_response(result.emotion, result.intensity)


# ── Lazy default engine ──────────────────────────────────────────────────────
_engine: Optional[EmotionEngine] = None


def get_engine() -> EmotionEngine:
    global _engine
    if _engine is None:
        setup_logging(settings.LOG_LEVEL)
        _engine = EmotionEngine.from_settings()
    return _engine


async def classify(text: str) -> EmotionResult:
    return await get_engine().classify(text)


def fuse(text: EmotionResult, audio: EmotionResult) -> EmotionResult:
    return get_engine().fuse(text, audio)


def score(profile_a: UserProfile, history_a: Optional[Sequence] = None,
          profile_b: Optional[UserProfile] = None,
          history_b: Optional[Sequence] = None) -> MatchScore:
    return get_engine().score(profile_a, history_a, profile_b, history_b)


async def summarize(history: Sequence, geo: Optional[Geolocation] = None,
                    answers: Optional[Sequence[str]] = None) -> SessionReport:
    return await get_engine().summarize(history, geo, answers)
