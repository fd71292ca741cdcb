"""
PrepCoach - Speech Metrics Analyzer.

Analyzes HOW the candidate speaks, not WHAT they say.
Everything here is local and deterministic.

Key metrics:
- Words Per Minute (WPM): Detect rushing or dragging
- Filler Words: Count "um", "uh", "like", "you know"
- Pace / Clarity / Confidence: 0-100 scores derived from the two above
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from prepcoach.core.config import get_settings
from prepcoach.core.domain.models import SpeechMetrics, round_half_up
from prepcoach.core.exceptions import ValidationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechThresholds:
    """Lexicon and thresholds used by SpeechMetricsAnalyzer."""

    filler_words: tuple[str, ...] = (
        "um",
        "uh",
        "like",
        "you know",
        "so",
        "well",
        "actually",
        "basically",
    )

    # Pace band; outside it the pace score drops
    slow_wpm: int = 120
    fast_wpm: int = 180
    pace_floor: int = 60
    pace_penalty_per_wpm: int = 2

    clarity_floor: int = 50
    filler_density_weight: int = 200
    confidence_floor: int = 50
    confidence_penalty_per_filler: int = 5

    filler_suggestion_threshold: int = 3
    clarity_suggestion_threshold: int = 70

    speak_faster: str = "Try speaking a bit faster - aim for 140-160 words per minute"
    slow_down: str = "Slow down slightly - you're speaking very fast"
    reduce_fillers: str = "Reduce filler words like 'um' and 'uh' for more confident delivery"
    speak_clearly: str = "Practice speaking more clearly and deliberately"


DEFAULT_SPEECH_THRESHOLDS = SpeechThresholds()


def score_pace_control(wpm: float) -> int:
    """
    Score how well a speaking pace sits in the optimal 140-160 WPM band.

    Used only by trend analytics; unrelated to SpeechMetrics.pace.
    """
    if 140 <= wpm <= 160:
        return 100
    if 120 <= wpm < 140 or 160 < wpm <= 180:
        return 85
    if 100 <= wpm < 120 or 180 < wpm <= 200:
        return 70
    return 50


class SpeechMetricsAnalyzer:
    """
    Derive delivery metrics from a transcript.

    Usage:
        analyzer = SpeechMetricsAnalyzer()
        metrics = analyzer.analyze(transcript, duration_seconds=42)
        metrics.words_per_minute
        metrics.suggestions
    """

    def __init__(self, thresholds: SpeechThresholds | None = None):
        self._thresholds = thresholds or DEFAULT_SPEECH_THRESHOLDS
        self._filler_patterns = [
            re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
            for word in self._thresholds.filler_words
        ]

    @property
    def thresholds(self) -> SpeechThresholds:
        return self._thresholds

    def get_filler_count(self, text: str) -> int:
        """
        Count filler words in the transcribed text.

        Every lexicon entry is matched independently, so "you know"
        and "so" in the same phrase are both counted.

        Args:
            text: Transcribed text

        Returns:
            Total count of filler words detected
        """
        if not text:
            return 0
        return sum(len(pattern.findall(text)) for pattern in self._filler_patterns)

    def calculate_wpm(self, word_count: int, duration_seconds: float) -> int:
        return round_half_up(word_count / duration_seconds * 60)

    def score_pace(self, wpm: int) -> int:
        t = self._thresholds
        if wpm < t.slow_wpm:
            return max(t.pace_floor, 100 - (t.slow_wpm - wpm) * t.pace_penalty_per_wpm)
        if wpm > t.fast_wpm:
            return max(t.pace_floor, 100 - (wpm - t.fast_wpm) * t.pace_penalty_per_wpm)
        return 100

    def score_clarity(self, filler_count: int, word_count: int) -> int:
        t = self._thresholds
        density = filler_count / word_count if word_count > 0 else 0
        return round_half_up(max(t.clarity_floor, 100 - density * t.filler_density_weight))

    def analyze(self, transcript: str, duration_seconds: float | None = None) -> SpeechMetrics:
        """
        Analyze a transcript.

        Args:
            transcript: Transcribed answer text
            duration_seconds: Speaking time; None or 0 uses the configured default

        Returns:
            SpeechMetrics for the transcript

        Raises:
            ValidationError: If duration is negative
        """
        if duration_seconds is not None and duration_seconds < 0:
            raise ValidationError("Duration must be positive", details=str(duration_seconds))
        if not duration_seconds:
            duration_seconds = get_settings().DEFAULT_ANSWER_DURATION_SECONDS

        t = self._thresholds
        text = transcript or ""
        word_count = len(text.split())

        wpm = self.calculate_wpm(word_count, duration_seconds)
        filler_count = self.get_filler_count(text)
        pace = self.score_pace(wpm)
        clarity = self.score_clarity(filler_count, word_count)
        confidence = max(t.confidence_floor, pace - filler_count * t.confidence_penalty_per_filler)

        suggestions = []
        if wpm < t.slow_wpm:
            suggestions.append(t.speak_faster)
        if wpm > t.fast_wpm:
            suggestions.append(t.slow_down)
        if filler_count > t.filler_suggestion_threshold:
            suggestions.append(t.reduce_fillers)
        if clarity < t.clarity_suggestion_threshold:
            suggestions.append(t.speak_clearly)

        return SpeechMetrics(
            words_per_minute=wpm,
            filler_word_count=filler_count,
            pace=pace,
            clarity=clarity,
            confidence=confidence,
            suggestions=tuple(suggestions),
            word_count=word_count,
            duration_seconds=duration_seconds,
        )
