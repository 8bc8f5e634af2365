"""Tests for the lexicon and prosody classifiers (no network, no models)."""

import pytest

from mindmate.errors import InvalidInputError
from mindmate.models.emotion import AUDIO_MOCK, EMOTIONS, LEXICON, EmotionResult
from mindmate.models.emotion_classifier import AudioProsodyClassifier, LexiconClassifier
from mindmate.models.lexicon import LexiconTables


@pytest.fixture
def classifier():
    return LexiconClassifier()


class TestLexiconKeywords:
    def test_happy_sentence(self, classifier):
        result = classifier.classify("I feel wonderful and happy today")
        assert result.emotion == "happy"
        assert result.confidence >= 0.7
        assert result.provenance == LEXICON
        assert result.triggers == ("wonderful", "happy")

    def test_anxious_sentence(self, classifier):
        result = classifier.classify("I am so anxious and worried about tomorrow")
        assert result.emotion == "anxious"
        assert result.confidence == pytest.approx(0.9)

    def test_single_match_confidence(self, classifier):
        result = classifier.classify("Honestly I am just so frustrated with everything lately")
        assert result.emotion == "angry"
        assert result.confidence == pytest.approx(0.8)

    def test_tie_keeps_declaration_order(self, classifier):
        # one happy hit, one sad hit → happy is declared first
        assert classifier.classify("I am happy but sad").emotion == "happy"
        # sad precedes calm
        assert classifier.classify("I am still sad").emotion == "sad"

    def test_whole_word_matching(self, classifier):
        # "down" / "blue" must not match inside longer words
        result = classifier.classify("I downloaded a blueprint")
        assert result.emotion == "neutral"

    def test_case_insensitive(self, classifier):
        assert classifier.classify("FURIOUS. Absolutely FURIOUS.").emotion == "angry"

    def test_intensity_is_clamped(self, classifier):
        result = classifier.classify("happy happy joy")
        assert result.intensity == 1.0


class TestSentimentFallback:
    def test_negated_positive_stem_is_sad(self, classifier):
        result = classifier.classify("The meeting was unpleasant")
        assert result.emotion == "sad"
        assert result.confidence == pytest.approx(0.45)
        assert "sentiment fallback" in result.explanation

    def test_negator_word_is_sad(self, classifier):
        assert classifier.classify("I could not sleep last night").emotion == "sad"

    def test_strong_positive_sentiment_is_happy(self, classifier):
        result = classifier.classify("I won and it was good, nice, lovely and excellent")
        assert result.emotion == "happy"
        assert result.intensity == pytest.approx(0.5)
        assert result.confidence == pytest.approx(0.65)

    def test_mild_positive_sentiment_is_neutral(self, classifier):
        result = classifier.classify("It was a nice walk")
        assert result.emotion == "neutral"
        assert result.intensity == 0.5

    def test_nothing_recognized_is_neutral(self, classifier):
        result = classifier.classify("We walked to the store")
        assert result.emotion == "neutral"
        assert result.intensity == 0.5
        assert result.confidence == pytest.approx(0.4)

    def test_sentiment_score_is_additive(self, classifier):
        score, positive, negative = classifier.sentiment("good good bad")
        assert score == 1
        assert positive == ["good", "good"]
        assert negative == ["bad"]


class TestLexiconContract:
    @pytest.mark.parametrize("bad", ["", "   \n\t", None, 42, b"bytes"])
    def test_invalid_input(self, classifier, bad):
        with pytest.raises(InvalidInputError):
            classifier.classify(bad)

    def test_invalid_input_is_a_value_error(self, classifier):
        with pytest.raises(ValueError):
            classifier.classify("")

    @pytest.mark.parametrize("text", [
        "I feel wonderful and happy today",
        "so so so tired",
        "never again",
        "!!!",
        "calm calm calm calm calm calm calm calm calm calm calm",
        "I'm not sure how I feel about the dismal disconnect",
        "Work was ok",
    ])
    def test_bounds_and_closed_set(self, classifier, text):
        result = classifier.classify(text)
        assert result.emotion in EMOTIONS
        assert 0.0 <= result.intensity <= 1.0
        assert 0.0 <= result.confidence <= 1.0

    def test_deterministic(self, classifier):
        text = "Lonely and tired, but the sunset was beautiful"
        assert classifier.classify(text) == classifier.classify(text)
        assert classifier.classify(text).to_dict() == LexiconClassifier().classify(text).to_dict()

    def test_custom_tables(self):
        tables = LexiconTables(emotion_keywords={"excited": ("hyped",), "neutral": ("meh",)})
        result = LexiconClassifier(tables).classify("so hyped right now")
        assert result.emotion == "excited"

    def test_emotion_without_keywords_never_matches(self):
        tables = LexiconTables(emotion_keywords={"happy": (), "sad": ("sad",)})
        classifier = LexiconClassifier(tables)
        assert classifier.keyword_matches("hello there") == {"happy": [], "sad": []}
        assert classifier.classify("I am sad").emotion == "sad"
        assert classifier.classify("hello there").emotion == "neutral"


class TestEmotionResult:
    def test_clamps_and_normalizes(self):
        result = EmotionResult(emotion="Ecstatic", intensity=1.7, confidence=-0.2)
        assert result.emotion == "neutral"
        assert result.intensity == 1.0
        assert result.confidence == 0.0

    def test_label_is_case_folded(self):
        assert EmotionResult(emotion=" Calm ", intensity=0.5, confidence=0.5).emotion == "calm"

    def test_from_dict_defaults(self):
        result = EmotionResult.from_dict({"emotion": None})
        assert result.emotion == "neutral"
        assert result.intensity == 0.5

    def test_frozen(self):
        result = EmotionResult(emotion="sad", intensity=0.4, confidence=0.6)
        with pytest.raises(Exception):
            result.emotion = "happy"


class TestAudioProsodyClassifier:
    def test_quiet_slow_low_pitch_is_sad(self):
        features = {"f0_mean": 120, "f0_std": 10, "rms_mean": 0.02,
                    "zcr_mean": 0.05, "speaking_rate": 2.5}
        result = AudioProsodyClassifier().classify(features)
        assert result.emotion == "sad"
        assert result.provenance == AUDIO_MOCK
        assert result.confidence == pytest.approx(0.6)

    def test_high_energy_fast_speech_is_excited(self):
        features = {"f0_mean": 200, "f0_std": 20, "rms_mean": 0.08,
                    "zcr_mean": 0.05, "speaking_rate": 5.0}
        assert AudioProsodyClassifier().classify(features).emotion == "excited"

    def test_unvoiced_input_does_not_crash(self):
        probs = AudioProsodyClassifier().probabilities({"f0_mean": 0.0})
        assert sum(probs.values()) == pytest.approx(1.0)
        assert set(probs) == set(EMOTIONS)

    def test_configured_confidence(self):
        result = AudioProsodyClassifier(confidence=0.45).classify({})
        assert result.confidence == pytest.approx(0.45)
