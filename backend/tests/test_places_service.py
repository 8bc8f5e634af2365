"""Place suggestions (remote → static fallback) and community rules."""

import json

import httpx
import pytest

from conftest import gemini_reply, history, make_client_factory
from mindmate.config import Settings
from mindmate.models.profile import Geolocation
from mindmate.services.places_service import (
    PlaceSuggester,
    conversation_context,
    static_places,
    suggest_communities,
)
from mindmate.services.wellness_service import WellnessAggregator

SF = Geolocation(city="San Francisco", region="CA", country="USA", latitude=37.77, longitude=-122.42)

REMOTE_PLACES = [
    {"icon": "🌳", "name": "Golden Gate Park", "description": "Wide green space",
     "type": "outdoor", "address": "501 Stanyan St, San Francisco, CA 94117", "distance": 2.5},
    {"icon": "🧘", "name": "SF Zen Center", "description": "Drop-in meditation",
     "type": "wellness", "address": "300 Page St, San Francisco, CA 94102", "distance": "1.1 km"},
    {"name": "Presidio Trails", "description": "Forest walks"},
    {"name": "Fourth place", "description": "should be dropped"},
]


def suggester(handler):
    cfg = Settings(_env_file=None, GEMINI_API_KEY="k", OPENAI_API_KEY="", ANTHROPIC_API_KEY="")
    return PlaceSuggester.from_settings(cfg, make_client_factory(handler))


async def test_default_suggester_is_static():
    places = await PlaceSuggester().suggest("anxious")
    assert [p.name for p in places] == ["Nature Parks", "Quiet Cafés", "Art Museums"]


def test_unknown_emotion_uses_neutral_list():
    assert static_places("excited") == static_places("neutral")
    assert len(static_places("lonely")) == 3


async def test_remote_places_are_validated_and_truncated():
    seen = []

    def handler(request):
        seen.append(request)
        return gemini_reply("Sure!\n```json\n" + json.dumps(REMOTE_PLACES) + "\n```")

    places = await suggester(handler).suggest(
        "anxious", history("anxious", "calm"), SF, ["Deadlines at work", "Better after a walk"],
    )

    assert [p.name for p in places] == ["Golden Gate Park", "SF Zen Center", "Presidio Trails"]
    assert places[0].distance == "2.5"
    assert places[2].icon == "📍"
    assert places[2].address is None

    prompt = json.loads(seen[0].content)["contents"][0]["parts"][0]["text"]
    assert "San Francisco, CA, USA" in prompt
    assert "Latitude 37.77" in prompt
    assert "A: Deadlines at work (Emotion: anxious)" in prompt


async def test_prompt_without_location_asks_for_place_types():
    seen = []

    def handler(request):
        seen.append(request)
        return gemini_reply(json.dumps(REMOTE_PLACES[:1]))

    places = await suggester(handler).suggest("sad", history("sad"))
    assert [p.name for p in places] == ["Golden Gate Park", "Botanical Gardens", "Comedy Shows"]
    prompt = json.loads(seen[0].content)["contents"][0]["parts"][0]["text"]
    assert "Location: Not available" in prompt
    assert "GENERAL RULES" in prompt


@pytest.mark.parametrize("reply", [
    gemini_reply("I recommend visiting a park and a library."),      # no array
    gemini_reply("[]"),                                              # empty list
    gemini_reply(json.dumps([{"description": "no name"}])),          # invalid entry
    gemini_reply("[{broken json"),                                   # not parseable
    httpx.Response(503),                                             # unavailable
])
async def test_unusable_remote_falls_back_to_static(reply):
    def handler(request):
        return reply

    places = await suggester(handler).suggest("sad", history("sad"), SF)
    assert [p.name for p in places] == ["Botanical Gardens", "Comedy Shows", "Swimming Pools"]


async def test_timeout_falls_back_to_static():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    places = await suggester(handler).suggest("angry", history("angry"), SF)
    assert places[0].name == "Gym/Sports Centers"


async def test_aggregator_uses_remote_places():
    def handler(request):
        return gemini_reply(json.dumps(REMOTE_PLACES))

    aggregator = WellnessAggregator(suggester(handler))
    report = await aggregator.summarize(history("calm", "happy"), geo=SF)
    assert len(report.places) == 3
    assert report.places[0].name == "Golden Gate Park"


async def test_short_remote_list_is_topped_up_from_static():
    def handler(request):
        return gemini_reply(json.dumps([{"name": "Golden Gate Park", "description": "Wide green space"}]))

    report = await WellnessAggregator(suggester(handler)).summarize(history("sad", "sad"), geo=SF)
    assert len(report.places) == 3
    assert [p.name for p in report.places] == ["Golden Gate Park", "Botanical Gardens", "Comedy Shows"]


async def test_top_up_skips_names_already_suggested():
    def handler(request):
        return gemini_reply(json.dumps([
            {"name": "botanical gardens", "description": "Same as a static entry"},
            {"name": "Dolores Park", "description": "Sunny lawn"},
        ]))

    places = await suggester(handler).suggest("sad", history("sad"), SF)
    assert [p.name for p in places] == ["botanical gardens", "Dolores Park", "Comedy Shows"]


def test_conversation_context_pairs_answers_with_turns():
    context = conversation_context(history("sad", "calm"), ["rough morning"])
    assert context == "A: rough morning (Emotion: sad)\n\nA: (not recorded) (Emotion: calm)"


# ── Communities ──────────────────────────────────────────────────────────────

def test_communities_always_include_two_defaults():
    names = [c.name for c in suggest_communities([], "happy")]
    assert names == ["Mental Health Awareness Groups", "Local Volunteer Organizations"]


def test_communities_keyword_substring_and_emotion():
    names = [c.name for c in suggest_communities(["I'm an ARTIST at heart"], "anxious")]
    assert names[:2] == ["Creative Communities", "Mindfulness & Meditation Groups"]
    assert len(names) == 4


def test_communities_ignore_non_strings():
    names = [c.name for c in suggest_communities([None, 3, "new job"], "neutral")]
    assert names[0] == "Professional Support Groups"
