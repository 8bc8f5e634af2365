"""
Remote text-understanding providers.

Provider order (first one with a credential is used):
  1. Google Gemini     — GEMINI_API_KEY
  2. OpenAI            — OPENAI_API_KEY
  3. Anthropic Claude  — ANTHROPIC_API_KEY

Every provider exposes ``complete(prompt) -> str``: one POST, hard
timeout, no retry.  Callers parse the returned text with the helpers and
pydantic payload models below; anything unusable raises and is handled by
the caller's fallback chain.
"""
from __future__ import annotations

import json
import re
from typing import Any, Callable, List, Optional

import httpx
from pydantic import BaseModel, Field, field_validator

from mindmate.config import Settings, settings
from mindmate.errors import RemoteProviderError
from mindmate.models.emotion import EMOTIONS
from mindmate.models.profile import Geolocation
from mindmate.utils.logging import logger

ClientFactory = Callable[[float], httpx.AsyncClient]


def _default_client(timeout_s: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_s)


# ── Prompts ──────────────────────────────────────────────────────────────────

_EMOTION_PROMPT = """You are an empathetic emotion analyzer for a voice journaling app.

Analyze the following voice transcript and determine the speaker's emotional state.

Transcript: "{text}"

You must respond with a valid JSON object (no markdown, no code blocks) in this exact format:
{{
  "emotion": "<one of: {labels}>",
  "intensity": <number between 0.0 and 1.0>,
  "confidence": <number between 0.0 and 1.0>,
  "reasoning": "<brief explanation of why you chose this emotion>",
  "tone_indicators": ["<key phrases or words that influenced your decision>"]
}}

Consider:
- The overall emotional tone and context
- Subtle cues like "I'm not feeling great" means sad/down, not neutral
- Words like "unhappy", "terrible", "awful" indicate negative emotions
- Any contradictions or mixed emotions (choose the dominant one)

Respond ONLY with the JSON object, nothing else."""

_PLACES_PROMPT = """You are a mental health wellness advisor with knowledge of local wellness resources worldwide. Based on this conversation and the person's emotional state, suggest 3 SPECIFIC, REAL places they can visit to improve their well-being.

Conversation Summary:
{context}

Dominant Emotion: {emotion}

{location}

Generate 3 place recommendations in the following JSON format:
[
  {{
    "icon": "single emoji that represents the place",
    "name": "{name_hint}",
    "description": "Brief therapeutic benefit (max 60 characters)",
    "type": "category (outdoor/indoor/activity/social/wellness/event)",
    "address": "{address_hint}",
    "distance": "{distance_hint}"
  }}
]

{rules}

Return ONLY a valid JSON array, no other text or markdown."""

_LOCATED_RULES = """CRITICAL RULES FOR {area}:
{numbered}

Prioritize based on emotion:
- Anxious: Parks, quiet cafes, yoga studios, meditation centers
- Sad: Botanical gardens, art galleries, community centers, swimming pools
- Angry: Gyms, sports complexes, hiking trails, martial arts studios
- Stressed: Spas, libraries, nature reserves, wellness centers"""

_GENERAL_RULES = """GENERAL RULES (No location data):
1. Recommend TYPES of places (not specific names)
2. Keep descriptions therapeutic and encouraging
3. Mix indoor/outdoor based on emotion
4. Focus on accessibility and public spaces"""


def build_emotion_prompt(text: str) -> str:
    return _EMOTION_PROMPT.format(text=text, labels=", ".join(EMOTIONS))


def build_places_prompt(
    dominant_emotion: str,
    context: str,
    geo: Optional[Geolocation] = None,
) -> str:
    named = geo is not None and any((geo.city, geo.region, geo.country))
    if named or (geo is not None and geo.has_coordinates):
        area = geo.label if named else f"the area around ({geo.latitude}, {geo.longitude})"
        rules = [
            f"ONLY recommend REAL, EXISTING places in {area}",
            "Provide EXACT street addresses with postal codes",
        ]
        if geo.has_coordinates:
            coords = f"Latitude {geo.latitude}, Longitude {geo.longitude}"
            rules += [
                f"Calculate ACTUAL distance from ({geo.latitude}, {geo.longitude})",
                "Sort from NEAREST to FARTHEST (closest first)",
            ]
            sort_hint = "Sort recommendations from CLOSEST to FARTHEST."
            distance_hint = "Distance in km from user location"
        else:
            coords = "Coordinates unknown"
            sort_hint = "Exact coordinates are unknown, so do not estimate distances."
            distance_hint = "N/A"
        rules.append("Choose places that are OPEN TO PUBLIC and currently operational")

        location = (
            f"User's Location: {area}\n{coords}\n\n"
            f"IMPORTANT: Recommend SPECIFIC, REAL places in {area} that the user can visit TODAY. "
            f"{sort_hint}"
        )
        return _PLACES_PROMPT.format(
            context=context or "(no answers recorded)",
            emotion=dominant_emotion,
            location=location,
            name_hint=f"Specific Place Name in {geo.city or area}",
            address_hint="Full street address with postal code",
            distance_hint=distance_hint,
            rules=_LOCATED_RULES.format(
                area=area,
                numbered="\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1)),
            ),
        )
    return _PLACES_PROMPT.format(
        context=context or "(no answers recorded)",
        emotion=dominant_emotion,
        location="Location: Not available (provide general recommendations)",
        name_hint="Place Type (e.g., Nature Parks)",
        address_hint="General location type",
        distance_hint="N/A",
        rules=_GENERAL_RULES,
    )


# ── Response parsing ─────────────────────────────────────────────────────────

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def strip_code_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    return (match.group(1) if match else text).strip()


def parse_json_object(text: str) -> dict:
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def extract_json_array(text: str) -> List[Any]:
    match = _ARRAY_RE.search(strip_code_fences(text))
    if not match:
        raise ValueError("no JSON array found in response")
    data = json.loads(match.group(0))
    if not isinstance(data, list):
        raise ValueError("JSON array expected")
    return data


class RemoteEmotionPayload(BaseModel):
    emotion: str
    intensity: float
    confidence: float
    reasoning: str = ""
    tone_indicators: List[str] = Field(default_factory=list)

    @field_validator("emotion")
    @classmethod
    def _known_emotion(cls, v: str) -> str:
        label = v.strip().lower()
        if label not in EMOTIONS:
            raise ValueError(f"emotion '{v}' is outside the supported set")
        return label


class RemotePlacePayload(BaseModel):
    icon: str = "📍"
    name: str
    description: str = ""
    type: str = "place"
    address: Optional[str] = None
    distance: Optional[str] = None

    @field_validator("distance", "address", mode="before")
    @classmethod
    def _stringify(cls, v):
        return None if v is None else str(v)


# ── Backends ─────────────────────────────────────────────────────────────────

class RemoteTextProvider:
    """One chat/completion endpoint; subclasses know the wire shape."""

    name = "remote"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_s: float = 8.0,
        temperature: float = 0.3,
        max_tokens: int = 500,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client_factory = client_factory or _default_client

    async def complete(self, prompt: str) -> str:
        async with self._client_factory(self.timeout_s) as client:
            resp = await client.post(
                self._url(), headers=self._headers(), json=self._body(prompt)
            )
            resp.raise_for_status()
            data = resp.json()
        try:
            text = self._extract(data).strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise RemoteProviderError(self.name, f"unexpected response shape ({e})") from e
        if not text:
            raise RemoteProviderError(self.name, "empty completion")
        logger.debug(f"LLM: {self.name} response ({len(text)} chars)")
        return text

    def _url(self) -> str:
        raise NotImplementedError

    def _headers(self) -> dict:
        return {"content-type": "application/json"}

    def _body(self, prompt: str) -> dict:
        raise NotImplementedError

    def _extract(self, data: dict) -> str:
        raise NotImplementedError


class GeminiProvider(RemoteTextProvider):
    name = "gemini"

    def _url(self) -> str:
        return (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            f"{self.model}:generateContent"
        )

    def _headers(self) -> dict:
        # header rather than ?key= so the credential stays out of URL logs
        return {"content-type": "application/json", "x-goog-api-key": self.api_key}

    def _body(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }

    def _extract(self, data: dict) -> str:
        return data["candidates"][0]["content"]["parts"][0]["text"]


class OpenAIProvider(RemoteTextProvider):
    name = "openai"

    def _url(self) -> str:
        return "https://api.openai.com/v1/chat/completions"

    def _headers(self) -> dict:
        return {"content-type": "application/json", "authorization": f"Bearer {self.api_key}"}

    def _body(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": "You are an empathetic emotion analyzer. Always respond with valid JSON only."},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def _extract(self, data: dict) -> str:
        return data["choices"][0]["message"]["content"]


class AnthropicProvider(RemoteTextProvider):
    name = "anthropic"

    def _url(self) -> str:
        return "https://api.anthropic.com/v1/messages"

    def _headers(self) -> dict:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

    def _body(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _extract(self, data: dict) -> str:
        return data["content"][0]["text"]


_PROVIDERS = {
    "gemini":    (GeminiProvider,    "GEMINI_API_KEY",    "GEMINI_MODEL"),
    "openai":    (OpenAIProvider,    "OPENAI_API_KEY",    "OPENAI_MODEL"),
    "anthropic": (AnthropicProvider, "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
}


def build_remote_provider(
    cfg: Settings = settings,
    timeout_s: Optional[float] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Optional[RemoteTextProvider]:
    """Instantiate the first configured provider, or None when no key is set."""
    name = cfg.remote_provider
    if name is None:
        logger.info("LLM: no provider credential configured — lexicon only")
        return None
    cls, key_attr, model_attr = _PROVIDERS[name]
    logger.info(f"LLM: using {name}", extra={"provider": name, "model": getattr(cfg, model_attr)})
    return cls(
        api_key=getattr(cfg, key_attr),
        model=getattr(cfg, model_attr),
        timeout_s=timeout_s if timeout_s is not None else cfg.REMOTE_TIMEOUT_S,
        temperature=cfg.REMOTE_TEMPERATURE,
        max_tokens=cfg.REMOTE_MAX_TOKENS,
        client_factory=client_factory,
    )
