"""
Unit tests for the SpeechMetricsAnalyzer module.

Tests the local, deterministic delivery analysis.
"""

import pytest

from prepcoach.app.coaching import (
    SpeechMetricsAnalyzer,
    SpeechThresholds,
    score_pace_control,
)
from prepcoach.core.exceptions import ValidationError


class TestSpeechMetricsAnalyzer:
    """Test suite for SpeechMetricsAnalyzer class."""

    @pytest.fixture
    def analyzer(self):
        """Create a fresh analyzer for each test."""
        return SpeechMetricsAnalyzer()

    # =========================================================================
    # Filler Word Tests
    # =========================================================================

    def test_filler_words_counted_case_insensitively(self, analyzer):
        """Each lexicon word is counted, regardless of case or punctuation."""
        count = analyzer.get_filler_count("Um, I, uh, like, did this")

        assert count == 3

    def test_repeated_fillers_all_counted(self, analyzer):
        assert analyzer.get_filler_count("UM Um um") == 3

    def test_multi_word_filler_and_overlap(self, analyzer):
        """'so you know' counts both 'so' and 'you know'."""
        assert analyzer.get_filler_count("so you know") == 2

    def test_filler_requires_word_boundary(self, analyzer):
        assert analyzer.get_filler_count("The umbrella was unlikely to help") == 0

    def test_no_fillers_returns_zero(self, analyzer):
        text = "I implemented a REST API using Flask and PostgreSQL"

        assert analyzer.get_filler_count(text) == 0

    def test_empty_text_returns_zero_fillers(self, analyzer):
        assert analyzer.get_filler_count("") == 0

    # =========================================================================
    # Pace Tests
    # =========================================================================

    def test_optimal_pace_scores_100(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 150), duration_seconds=60)

        assert metrics.words_per_minute == 150
        assert metrics.pace == 100

    def test_slow_pace_is_floored(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 100), duration_seconds=60)

        assert metrics.words_per_minute == 100
        assert metrics.pace == 60

    def test_slightly_slow_pace_penalized_two_per_wpm(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 110), duration_seconds=60)

        assert metrics.pace == 80

    def test_fast_pace_is_floored(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 200), duration_seconds=60)

        assert metrics.words_per_minute == 200
        assert metrics.pace == 60

    def test_wpm_rounds_half_up(self, analyzer):
        assert analyzer.calculate_wpm(1, 120) == 1

    # =========================================================================
    # Duration Handling Tests
    # =========================================================================

    def test_missing_duration_uses_default(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 30))

        assert metrics.duration_seconds == 60
        assert metrics.words_per_minute == 30

    def test_zero_duration_uses_default(self, analyzer):
        metrics = analyzer.analyze("hello world", duration_seconds=0)

        assert metrics.duration_seconds == 60
        assert metrics.words_per_minute == 2

    def test_negative_duration_raises(self, analyzer):
        with pytest.raises(ValidationError):
            analyzer.analyze("hello world", duration_seconds=-5)

    # =========================================================================
    # Clarity / Confidence Tests
    # =========================================================================

    def test_empty_transcript_has_explicit_values(self, analyzer):
        metrics = analyzer.analyze("", duration_seconds=10)

        assert metrics.word_count == 0
        assert metrics.words_per_minute == 0
        assert metrics.clarity == 100
        assert metrics.pace == 60
        assert metrics.confidence == 60
        assert metrics.suggestions == (SpeechThresholds().speak_faster,)

    def test_filler_density_lowers_clarity(self, analyzer):
        # 10 words, 150 WPM
        text = "um I built the service and uh it scaled well"
        metrics = analyzer.analyze(text, duration_seconds=4)

        assert metrics.word_count == 10
        assert metrics.filler_word_count == 3  # um, uh, well
        assert metrics.clarity == 50
        assert metrics.confidence == 85

    def test_confidence_never_below_floor(self, analyzer):
        text = " ".join(["um"] * 40)
        metrics = analyzer.analyze(text, duration_seconds=16)

        assert metrics.confidence == 50

    def test_suggestions_accumulate(self, analyzer):
        text = "um uh like um so basically " + " ".join(["word"] * 4)
        metrics = analyzer.analyze(text, duration_seconds=60)

        t = analyzer.thresholds
        assert t.speak_faster in metrics.suggestions
        assert t.reduce_fillers in metrics.suggestions
        assert t.speak_clearly in metrics.suggestions
        assert t.slow_down not in metrics.suggestions

    def test_fast_speech_suggests_slowing_down(self, analyzer):
        metrics = analyzer.analyze(" ".join(["word"] * 50), duration_seconds=10)

        assert metrics.suggestions == (analyzer.thresholds.slow_down,)

    def test_custom_lexicon(self):
        analyzer = SpeechMetricsAnalyzer(SpeechThresholds(filler_words=("erm",)))

        assert analyzer.get_filler_count("erm um erm") == 2


class TestScorePaceControl:
    """The analytics pace table is separate from SpeechMetrics.pace."""

    @pytest.mark.parametrize(
        "wpm, expected",
        [
            (150, 100),
            (140, 100),
            (160, 100),
            (125, 85),
            (161, 85),
            (180, 85),
            (110, 70),
            (181, 70),
            (200, 70),
            (99, 50),
            (250, 50),
        ],
    )
    def test_bands(self, wpm, expected):
        assert score_pace_control(wpm) == expected
