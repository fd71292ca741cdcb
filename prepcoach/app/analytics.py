"""
PrepCoach - Predictive Analytics.

Turns a user's recent session history into current performance,
predictions, trends and practice recommendations.

User states (a pure function of history length):
    0 snapshots   -> new_user              (onboarding copy, no predictions)
    1-2 snapshots -> insufficient_data     (latest snapshot only)
    3+ snapshots  -> ready_for_predictions (full trend model)

History must be chronologically ascending; it is not re-sorted here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Sequence

import numpy as np

from prepcoach.app.coaching import score_pace_control
from prepcoach.core.config import get_settings
from prepcoach.core.domain.models import (
    CurrentPerformance,
    ImprovementVelocity,
    PredictiveInsights,
    Predictions,
    Recommendations,
    SessionMetricSnapshot,
    Trends,
    UserState,
    clamp,
    clamp_score,
    round_half_up,
)
from prepcoach.infra.persistence.repository import Repository


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendRules:
    """Constants of the trend and prediction model."""

    target_score: int = 85
    recent_window: int = 3
    prediction_window: int = 5
    optimistic_bias: float = 1.2
    early_prediction_bonus: int = 2

    min_history_for_weekly: int = 4
    sessions_per_week: int = 3
    default_weekly_improvement: int = 3

    readiness_performance_weight: float = 0.6
    readiness_consistency_weight: float = 0.3
    readiness_improvement_weight: float = 0.1
    early_readiness_factor: float = 0.8
    consistency_stdev_weight: float = 2
    default_consistency: int = 50

    velocity_margin: int = 3
    declining_threshold: int = -2

    # Ready-path focus area thresholds
    low_confidence: int = 70
    low_clarity: int = 75
    # Early (insufficient data) focus area thresholds
    early_low_confidence: int = 60
    early_low_clarity: int = 70
    pace_range: tuple[int, int] = (120, 180)


DEFAULT_TREND_RULES = TrendRules()


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values))


def _pick_skill(skills: dict[str, float], strongest: bool) -> str:
    """Argmax/argmin over skills; on ties the later skill wins."""
    names = list(skills)
    chosen = names[0]
    for name in names[1:]:
        if strongest:
            keep = skills[chosen] > skills[name]
        else:
            keep = skills[chosen] < skills[name]
        if not keep:
            chosen = name
    return chosen


def _format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


class TrendPredictionEngine:
    """
    Tiered trend model over SessionMetricSnapshot history.

    Usage:
        engine = TrendPredictionEngine()
        insights = engine.generate(history)
        insights.user_state          # UserState.READY_FOR_PREDICTIONS
        insights.predictions.next_session_score
    """

    def __init__(
        self,
        rules: TrendRules | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._rules = rules or DEFAULT_TREND_RULES
        self._clock = clock

    def generate(
        self,
        history: Sequence[SessionMetricSnapshot],
        now: datetime | None = None,
    ) -> PredictiveInsights:
        """
        Build predictive insights for an ascending history window.

        Args:
            history: Snapshots ordered oldest -> newest
            now: Reference time for weekly windows and target dates

        Returns:
            PredictiveInsights for the user's tier
        """
        now = now or self._clock()
        state = UserState.for_history_length(len(history))

        if state == UserState.NEW_USER:
            return self._new_user_insights()
        if state == UserState.INSUFFICIENT_DATA:
            return self._insufficient_data_insights(history)
        return self._full_insights(history, now)

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    def _new_user_insights(self) -> PredictiveInsights:
        return PredictiveInsights(
            current_performance=CurrentPerformance(),
            predictions=Predictions(
                next_session_score=None,
                weekly_improvement=None,
                target_achievement_date="Take your first interview to get personalized predictions",
                interview_readiness=0,
            ),
            trends=Trends(
                improvement_velocity=ImprovementVelocity.STEADY,
                strongest_skill="Take interviews to discover your strengths",
                improvement_area="Complete sessions to identify areas for growth",
                consistency_score=0,
            ),
            recommendations=Recommendations(
                focus_areas=["Take your first mock interview to get started"],
                practice_frequency="Start with 1-2 interviews this week",
                next_milestone="Complete your first interview session",
                confidence_booster="Remember: everyone starts somewhere. You've got this!",
            ),
            user_state=UserState.NEW_USER,
        )

    def _insufficient_data_insights(
        self,
        history: Sequence[SessionMetricSnapshot],
    ) -> PredictiveInsights:
        r = self._rules
        latest = history[-1]
        remaining = r.recent_window - len(history)
        plural = "s" if remaining > 1 else ""

        skills = {
            "Speaking Confidence": latest.confidence_level,
            "Speech Clarity": latest.clarity_score,
            "Pace Control": score_pace_control(latest.words_per_minute or 120),
        }

        return PredictiveInsights(
            current_performance=CurrentPerformance(
                overall_score=latest.overall_score,
                confidence_level=latest.confidence_level,
                clarity_score=latest.clarity_score,
                speaking_pace=latest.words_per_minute,
            ),
            predictions=Predictions(
                next_session_score=None,
                weekly_improvement=None,
                target_achievement_date=(
                    f"Take {remaining} more interview{plural} for accurate predictions"
                ),
                interview_readiness=clamp_score(latest.overall_score * r.early_readiness_factor),
            ),
            trends=Trends(
                improvement_velocity=ImprovementVelocity.STEADY,
                strongest_skill=_pick_skill(skills, strongest=True),
                improvement_area=_pick_skill(skills, strongest=False),
                consistency_score=0,
            ),
            recommendations=Recommendations(
                focus_areas=self.early_focus_areas(latest),
                practice_frequency="2-3 sessions this week to build momentum",
                next_milestone=f"{remaining} more sessions for detailed analytics",
                confidence_booster="Great start! Keep practicing to unlock detailed insights.",
            ),
            user_state=UserState.INSUFFICIENT_DATA,
        )

    def _full_insights(
        self,
        history: Sequence[SessionMetricSnapshot],
        now: datetime,
    ) -> PredictiveInsights:
        scores = [snapshot.overall_score for snapshot in history]
        weekly = self.weekly_improvement(history, now)
        velocity = self.improvement_velocity(scores)
        latest = history[-1]

        skills = {
            "Confidence": latest.confidence_level,
            "Clarity": latest.clarity_score,
            "Pace Control": score_pace_control(latest.words_per_minute or 120),
        }

        insights = PredictiveInsights(
            current_performance=self.current_performance(history),
            predictions=Predictions(
                next_session_score=clamp_score(self.predict_next_score(scores)),
                weekly_improvement=weekly,
                target_achievement_date=self.predict_target_achievement(history, now),
                interview_readiness=self.interview_readiness(history, now),
            ),
            trends=Trends(
                improvement_velocity=velocity,
                strongest_skill=_pick_skill(skills, strongest=True),
                improvement_area=_pick_skill(skills, strongest=False),
                consistency_score=self.consistency(scores),
            ),
            recommendations=self.recommendations(latest, velocity),
            user_state=UserState.READY_FOR_PREDICTIONS,
        )
        logger.debug(
            f"Predictions over {len(history)} snapshots: "
            f"next={insights.predictions.next_session_score}, velocity={velocity.value}"
        )
        return insights

    # -------------------------------------------------------------------------
    # Building Blocks
    # -------------------------------------------------------------------------

    def current_performance(self, history: Sequence[SessionMetricSnapshot]) -> CurrentPerformance:
        """Average of the most recent sessions, each metric rounded independently."""
        recent = history[-self._rules.recent_window:]
        return CurrentPerformance(
            overall_score=clamp_score(_mean([s.overall_score for s in recent])),
            confidence_level=clamp_score(_mean([s.confidence_level for s in recent])),
            clarity_score=clamp_score(_mean([s.clarity_score for s in recent])),
            speaking_pace=round_half_up(_mean([s.words_per_minute for s in recent])),
        )

    def predict_next_score(self, scores: Sequence[int]) -> int:
        """
        Recency-weighted trend projection with an optimistic bias.

        The last five scores are weighted 1..5 (oldest -> newest); the gap
        between that weighted mean and the latest score is amplified.
        """
        r = self._rules
        latest = scores[-1]
        if len(scores) < r.recent_window:
            return latest + r.early_prediction_bonus

        recent = scores[-r.prediction_window:]
        weights = np.arange(1, len(recent) + 1)
        trend = float(np.average(recent, weights=weights))
        improvement = trend - latest

        return round_half_up(latest + improvement * r.optimistic_bias)

    def weekly_improvement(
        self,
        history: Sequence[SessionMetricSnapshot],
        now: datetime,
    ) -> int:
        """Mean score of the last 7 days minus the mean of the 7 days before."""
        if len(history) < self._rules.min_history_for_weekly:
            return 0

        week_ago = now - timedelta(days=7)
        two_weeks_ago = now - timedelta(days=14)

        this_week = [s.overall_score for s in history if week_ago <= s.timestamp <= now]
        last_week = [s.overall_score for s in history if two_weeks_ago <= s.timestamp < week_ago]

        if not this_week or not last_week:
            return 0
        return round_half_up(_mean(this_week) - _mean(last_week))

    def predict_target_achievement(
        self,
        history: Sequence[SessionMetricSnapshot],
        now: datetime,
    ) -> str:
        r = self._rules
        current_avg = _mean([s.overall_score for s in history[-r.recent_window:]])
        if current_avg >= r.target_score:
            return "Target achieved!"

        improvement = self.weekly_improvement(history, now)
        if improvement <= 0:
            improvement = r.default_weekly_improvement

        per_session = improvement / r.sessions_per_week
        sessions_needed = math.ceil((r.target_score - current_avg) / per_session)
        days_needed = math.ceil(sessions_needed / r.sessions_per_week * 7)

        return _format_date(now + timedelta(days=days_needed))

    def interview_readiness(
        self,
        history: Sequence[SessionMetricSnapshot],
        now: datetime,
    ) -> int:
        """Blend of recent performance (60%), consistency (30%) and improvement (10%)."""
        r = self._rules
        recent = [s.overall_score for s in history[-r.prediction_window:]]
        if not recent:
            return 0

        readiness = (
            _mean(recent) * r.readiness_performance_weight
            + self.consistency(recent) * r.readiness_consistency_weight
            + max(0, self.weekly_improvement(history, now)) * r.readiness_improvement_weight
        )
        return clamp_score(readiness)

    def consistency(self, scores: Sequence[int]) -> int:
        """100 minus twice the population standard deviation, clamped."""
        if len(scores) < 3:
            return self._rules.default_consistency
        stdev = float(np.std(scores))
        return clamp_score(clamp(100 - stdev * self._rules.consistency_stdev_weight))

    def improvement_velocity(self, scores: Sequence[int]) -> ImprovementVelocity:
        """Compare the gain over the last three sessions with the three before."""
        r = self._rules
        if len(scores) < 6:
            return ImprovementVelocity.STEADY

        recent = scores[-3:]
        previous = scores[-6:-3]
        recent_gain = recent[2] - recent[0]
        previous_gain = previous[2] - previous[0]

        if recent_gain > previous_gain + r.velocity_margin:
            return ImprovementVelocity.ACCELERATING
        if recent_gain < previous_gain - r.velocity_margin:
            return ImprovementVelocity.SLOWING
        if recent_gain < r.declining_threshold:
            return ImprovementVelocity.DECLINING
        return ImprovementVelocity.STEADY

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def recommendations(
        self,
        latest: SessionMetricSnapshot,
        velocity: ImprovementVelocity,
    ) -> Recommendations:
        r = self._rules
        low_wpm, high_wpm = r.pace_range

        focus_areas = []
        practice_frequency = "3-4 times per week"
        next_milestone = "Reach 80% consistency"
        confidence_booster = "Practice power poses before sessions"

        if latest.confidence_level < r.low_confidence:
            focus_areas.append("Build Speaking Confidence")
            confidence_booster = "Record yourself speaking for 2 minutes daily"
        if latest.clarity_score < r.low_clarity:
            focus_areas.append("Improve Speech Clarity")
        if latest.words_per_minute < low_wpm or latest.words_per_minute > high_wpm:
            focus_areas.append("Optimize Speaking Pace")

        if velocity == ImprovementVelocity.ACCELERATING:
            practice_frequency = "4-5 times per week (you're on a roll!)"
            next_milestone = "Target 90%+ interview readiness"
        elif velocity == ImprovementVelocity.SLOWING:
            practice_frequency = "2-3 shorter, focused sessions"
            next_milestone = "Regain momentum with small wins"

        if not focus_areas:
            focus_areas.append("Maintain Current Excellence")

        return Recommendations(
            focus_areas=focus_areas,
            practice_frequency=practice_frequency,
            next_milestone=next_milestone,
            confidence_booster=confidence_booster,
        )

    def early_focus_areas(self, latest: SessionMetricSnapshot) -> list[str]:
        r = self._rules
        low_wpm, high_wpm = r.pace_range

        focus_areas = []
        if latest.confidence_level < r.early_low_confidence:
            focus_areas.append("Build Speaking Confidence")
        if latest.clarity_score < r.early_low_clarity:
            focus_areas.append("Improve Speech Clarity")
        if latest.words_per_minute < low_wpm or latest.words_per_minute > high_wpm:
            focus_areas.append("Practice Speaking Pace")

        return focus_areas or ["Continue practicing regularly"]


class PredictiveAnalyticsService:
    """
    Loads a user's recent history from the repository and runs the engine.

    Usage:
        service = PredictiveAnalyticsService(repository)
        insights = service.generate_predictive_insights("user-1")
    """

    def __init__(
        self,
        repository: Repository,
        engine: TrendPredictionEngine | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repository = repository
        self._engine = engine or TrendPredictionEngine(
            rules=TrendRules(target_score=get_settings().TARGET_READINESS_SCORE),
            clock=clock,
        )
        self._clock = clock

    def generate_predictive_insights(self, user_id: str) -> PredictiveInsights:
        now = self._clock()
        since = now - timedelta(days=get_settings().HISTORY_WINDOW_DAYS)
        history = self._repository.get_history(user_id, since)

        insights = self._engine.generate(history, now=now)
        logger.info(
            f"📈 Predictive insights for {user_id}: {insights.user_state.value} "
            f"({len(history)} snapshots)"
        )
        return insights

    def record_snapshot(self, snapshot: SessionMetricSnapshot) -> None:
        self._repository.add_snapshot(snapshot)
