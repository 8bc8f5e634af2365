"""Shared fixtures: stub providers and httpx mock transports (no network)."""

import asyncio

import httpx
import pytest

from mindmate.models.emotion import EmotionResult
from mindmate.models.profile import UserProfile
from mindmate.services.emotion_service import EmotionPipeline, LexiconProvider


class StubEmotionProvider:
    """Returns a canned result, or raises / hangs to exercise fallback."""

    def __init__(self, result=None, error=None, delay=0.0, name="stub"):
        self.result = result
        self.error = error
        self.delay = delay
        self.name = name
        self.calls = 0

    async def classify(self, text):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def make_client_factory(handler):
    """client_factory that routes every request through ``handler``."""
    def factory(timeout_s):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=timeout_s)
    return factory


def gemini_reply(text, status=200):
    body = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return httpx.Response(status, json=body)


def history(*labels, intensity=0.7, confidence=0.8):
    return [EmotionResult(emotion=l, intensity=intensity, confidence=confidence) for l in labels]


@pytest.fixture
def lexicon_pipeline():
    return EmotionPipeline([LexiconProvider()], timeout_s=1.0)


@pytest.fixture
def sf_profile():
    return UserProfile(
        user_id="u1",
        city="San Francisco",
        age=29,
        interests=("hiking", "Music", "yoga"),
        history=tuple(history("calm", "happy", "calm")),
    )


