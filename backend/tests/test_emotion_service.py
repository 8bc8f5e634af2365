"""Emotion pipeline: remote → lexicon fallback, fusion, and the audio branch."""

import json
import logging

import httpx
import numpy as np
import pytest

from conftest import StubEmotionProvider, gemini_reply, make_client_factory
from mindmate.config import Settings
from mindmate.errors import InvalidInputError, RemoteProviderError
from mindmate.models.emotion import AUDIO_MOCK, FUSED, LEXICON, REMOTE, EmotionResult
from mindmate.services.emotion_service import EmotionPipeline, LexiconProvider, fuse


def gemini_settings(**overrides):
    values = dict(GEMINI_API_KEY="test-key", OPENAI_API_KEY="", ANTHROPIC_API_KEY="")
    values.update(overrides)
    return Settings(_env_file=None, **values)


def remote_pipeline(handler, **overrides):
    return EmotionPipeline.from_settings(gemini_settings(**overrides), make_client_factory(handler))


REMOTE_SAD = {
    "emotion": "sad",
    "intensity": 0.65,
    "confidence": 0.85,
    "reasoning": "long day and feeling drained",
    "tone_indicators": ["long day", "drained"],
}


# ── Chain wiring ─────────────────────────────────────────────────────────────

def test_from_settings_without_keys_is_lexicon_only():
    cfg = Settings(_env_file=None, GEMINI_API_KEY="", OPENAI_API_KEY="", ANTHROPIC_API_KEY="")
    assert EmotionPipeline.from_settings(cfg).provider_names == ["lexicon"]


def test_from_settings_puts_remote_first():
    pipeline = EmotionPipeline.from_settings(gemini_settings())
    assert pipeline.provider_names == ["remote:gemini", "lexicon"]


def test_first_configured_provider_wins():
    cfg = Settings(_env_file=None, GEMINI_API_KEY="", OPENAI_API_KEY="sk-1", ANTHROPIC_API_KEY="a-1")
    assert EmotionPipeline.from_settings(cfg).provider_names == ["remote:openai", "lexicon"]


# ── Remote path ──────────────────────────────────────────────────────────────

async def test_remote_success():
    seen = []

    def handler(request):
        seen.append(request)
        return gemini_reply(json.dumps(REMOTE_SAD))

    result = await remote_pipeline(handler).classify("It was a long day and I feel drained")

    assert result.emotion == "sad"
    assert result.intensity == pytest.approx(0.65)
    assert result.confidence == pytest.approx(0.85)
    assert result.provenance == REMOTE
    assert result.triggers == ("long day", "drained")

    request = seen[0]
    assert request.headers["x-goog-api-key"] == "test-key"
    assert "key=" not in str(request.url)
    prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
    assert "It was a long day and I feel drained" in prompt


async def test_remote_reply_in_code_fence():
    def handler(request):
        return gemini_reply("```json\n" + json.dumps(REMOTE_SAD) + "\n```")

    result = await remote_pipeline(handler).classify("meh")
    assert result.provenance == REMOTE
    assert result.emotion == "sad"


async def test_remote_values_are_clamped():
    payload = dict(REMOTE_SAD, intensity=1.6, confidence=-3)

    def handler(request):
        return gemini_reply(json.dumps(payload))

    result = await remote_pipeline(handler).classify("whatever")
    assert result.intensity == 1.0
    assert result.confidence == 0.0


@pytest.mark.parametrize("reply", [
    gemini_reply("I think the speaker sounds anxious."),                     # not JSON
    gemini_reply(json.dumps(dict(REMOTE_SAD, emotion="bored"))),             # outside the set
    gemini_reply(json.dumps({"emotion": "sad"})),                            # missing fields
    gemini_reply(json.dumps(["sad", 0.5])),                                  # wrong JSON type
    gemini_reply(""),                                                        # empty completion
    httpx.Response(200, json={"candidates": []}),                            # wrong shape
    httpx.Response(500, json={"error": "internal"}),                         # server error
    httpx.Response(429, json={"error": "quota"}),                            # rate limited
])
async def test_unusable_remote_falls_back_to_lexicon(reply):
    def handler(request):
        return reply

    result = await remote_pipeline(handler).classify("I am so anxious and worried about tomorrow")
    assert result.provenance == LEXICON
    assert result.emotion == "anxious"


async def test_network_error_falls_back_to_lexicon():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await remote_pipeline(handler).classify("I feel wonderful and happy today")
    assert result.provenance == LEXICON
    assert result.emotion == "happy"


async def test_slow_remote_times_out():
    slow = StubEmotionProvider(
        result=EmotionResult(emotion="angry", intensity=0.9, confidence=0.9, provenance=REMOTE),
        delay=0.5,
    )
    pipeline = EmotionPipeline([slow, LexiconProvider()], timeout_s=0.05)

    result = await pipeline.classify("I feel wonderful and happy today")
    assert slow.calls == 1
    assert result.provenance == LEXICON
    assert result.emotion == "happy"


async def test_remote_error_falls_back_and_logs(caplog):
    caplog.set_level(logging.INFO)
    broken = StubEmotionProvider(error=RemoteProviderError("stub", "empty completion"))
    pipeline = EmotionPipeline([broken, LexiconProvider()], timeout_s=1.0)

    result = await pipeline.classify("so frustrated")
    assert result.emotion == "angry"
    assert any("stub failed" in r.getMessage() for r in caplog.records)
    assert any(r.getMessage().startswith("Emotion: angry") for r in caplog.records)


async def test_remote_result_is_used_as_is():
    canned = EmotionResult(emotion="calm", intensity=0.3, confidence=0.8, provenance=REMOTE)
    pipeline = EmotionPipeline([StubEmotionProvider(result=canned), LexiconProvider()])
    assert await pipeline.classify("anything at all") == canned


# ── Input validation ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("bad", ["", "  \t", None, 3.5])
async def test_invalid_input_never_reaches_providers(bad):
    stub = StubEmotionProvider(result=EmotionResult(emotion="happy", intensity=1, confidence=1))
    pipeline = EmotionPipeline([stub, LexiconProvider()])
    with pytest.raises(InvalidInputError):
        await pipeline.classify(bad)
    assert stub.calls == 0


async def test_every_provider_failing_raises_last_error():
    pipeline = EmotionPipeline([StubEmotionProvider(error=RuntimeError("down"))])
    with pytest.raises(RuntimeError, match="down"):
        await pipeline.classify("hello")


# ── Fusion ───────────────────────────────────────────────────────────────────

def r(emotion, intensity, confidence, provenance=LEXICON):
    return EmotionResult(emotion=emotion, intensity=intensity, confidence=confidence,
                         provenance=provenance)


class TestFuse:
    def test_agreement_boosts_confidence(self):
        text, audio = r("happy", 0.8, 0.7), r("happy", 0.6, 0.6, AUDIO_MOCK)
        fused = fuse(text, audio)
        assert fused.emotion == "happy"
        assert fused.provenance == FUSED
        assert fused.intensity == pytest.approx(0.76)
        assert fused.confidence == pytest.approx(0.82)
        assert fused.confidence >= max(text.confidence, audio.confidence) * 0.8

    def test_agreement_is_capped(self):
        fused = fuse(r("calm", 0.5, 0.9), r("calm", 0.5, 0.9))
        assert fused.confidence == pytest.approx(0.95)

    def test_disagreement_prefers_more_confident_audio(self):
        fused = fuse(r("sad", 0.5, 0.5), r("angry", 0.7, 0.6, AUDIO_MOCK))
        assert fused.emotion == "angry"
        assert fused.confidence == pytest.approx(0.42)
        assert fused.confidence < 0.6

    def test_disagreement_tie_keeps_text(self):
        fused = fuse(r("sad", 0.5, 0.6), r("excited", 0.9, 0.6, AUDIO_MOCK))
        assert fused.emotion == "sad"
        assert fused.confidence == pytest.approx(0.48)

    def test_text_more_confident_keeps_text(self):
        fused = fuse(r("anxious", 0.7, 0.8), r("calm", 0.3, 0.6, AUDIO_MOCK))
        assert fused.emotion == "anxious"
        assert "kept anxious" in fused.explanation

    def test_custom_weights_are_normalized(self):
        fused = fuse(r("happy", 1.0, 0.5), r("happy", 0.0, 0.5), text_weight=3, audio_weight=1)
        assert fused.intensity == pytest.approx(0.75)

    def test_pipeline_uses_configured_weights(self):
        pipeline = EmotionPipeline(text_weight=0.5, audio_weight=0.5)
        fused = pipeline.fuse(r("sad", 0.2, 0.6), r("sad", 0.8, 0.6))
        assert fused.intensity == pytest.approx(0.5)


# ── Audio branch ─────────────────────────────────────────────────────────────

def tone(seconds=1.0, freq=220.0, amplitude=0.3, sr=16000):
    t = np.arange(int(seconds * sr)) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def test_classify_audio_is_tagged_mock(lexicon_pipeline):
    result = lexicon_pipeline.classify_audio(tone())
    assert result.provenance == AUDIO_MOCK
    assert result.confidence == pytest.approx(0.6)
    assert result.explanation.startswith("f0=")


def test_classify_audio_resamples(lexicon_pipeline):
    result = lexicon_pipeline.classify_audio(tone(sr=44100), sr=44100)
    assert result.provenance == AUDIO_MOCK


def test_classify_audio_rejects_empty(lexicon_pipeline):
    with pytest.raises(ValueError):
        lexicon_pipeline.classify_audio(np.zeros(0, dtype=np.float32))


async def test_analyze_text_only(lexicon_pipeline):
    result = await lexicon_pipeline.analyze("I feel wonderful and happy today")
    assert result.provenance == LEXICON


async def test_analyze_with_audio_fuses(lexicon_pipeline):
    result = await lexicon_pipeline.analyze("I feel wonderful and happy today", tone())
    assert result.provenance == FUSED
    assert 0.0 <= result.confidence <= 0.95


async def test_analyze_ignores_empty_audio(lexicon_pipeline):
    result = await lexicon_pipeline.analyze("calm and relaxed", np.zeros(0))
    assert result.provenance == LEXICON
    assert result.emotion == "calm"
