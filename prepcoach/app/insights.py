"""
PrepCoach - Coaching Insight Generator.

Turns a classified question (and optional delivery metrics) into a ranked
list of coaching insights:

- Structure: answer framework for the question type
- Content: which experience to draw on
- Delivery: pace, confidence and clarity feedback from SpeechMetrics
- Timing: recommended answer length

Insights are sorted by priority (high > medium > low); ties keep the order
in which they were generated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from prepcoach.app.classifier import QuestionClassifier
from prepcoach.core.domain.models import (
    CoachingInsight,
    InsightPriority,
    InsightType,
    QuestionContext,
    QuestionType,
    SmartCoachingResponse,
    SpeechMetrics,
    UserProfile,
    round_half_up,
)


logger = logging.getLogger(__name__)


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


STRUCTURE_INSIGHTS: Mapping[QuestionType, CoachingInsight] = _frozen({
    QuestionType.BEHAVIORAL: CoachingInsight(
        type=InsightType.STRUCTURE,
        priority=InsightPriority.HIGH,
        title="Use STAR Framework",
        message="Structure your behavioral answer using the STAR method for maximum impact.",
        actionable_advice="Start with Situation, then Task, Action, and Result.",
        framework="STAR",
        example=(
            'Situation: "At my previous company..." -> Task: "I was responsible for..." '
            '-> Action: "I decided to..." -> Result: "This resulted in..."'
        ),
    ),
    QuestionType.TECHNICAL: CoachingInsight(
        type=InsightType.STRUCTURE,
        priority=InsightPriority.HIGH,
        title="Structure Technical Response",
        message="Break down your technical answer into clear, logical components.",
        actionable_advice=(
            "Start with understanding the problem, then explain your approach step by step."
        ),
        framework="Problem-Solution-Example",
        example=(
            "First clarify requirements -> Explain your solution approach "
            "-> Provide a specific example"
        ),
    ),
    QuestionType.SITUATIONAL: CoachingInsight(
        type=InsightType.STRUCTURE,
        priority=InsightPriority.HIGH,
        title="Think-Explain-Act Framework",
        message="Show your thought process for hypothetical scenarios.",
        actionable_advice=(
            "Think through the scenario, explain your reasoning, then describe your action plan."
        ),
        framework="Think-Explain-Act",
    ),
    QuestionType.GENERAL: CoachingInsight(
        type=InsightType.STRUCTURE,
        priority=InsightPriority.MEDIUM,
        title="Clear Structure",
        message="Organize your response with a clear beginning, middle, and end.",
        actionable_advice=(
            "Start with a brief overview, provide details, then conclude with key takeaways."
        ),
        framework="Introduction-Body-Conclusion",
    ),
})


@dataclass(frozen=True)
class InsightTables:
    """Lookup tables and thresholds used by CoachingInsightGenerator."""

    structure: Mapping[QuestionType, CoachingInsight] = field(
        default_factory=lambda: STRUCTURE_INSIGHTS
    )

    experiences: Mapping[str, str] = field(default_factory=lambda: _frozen({
        "frontend": "your React e-commerce project",
        "backend": "your Node.js API development",
        "leadership": "your team lead experience",
        "problem-solving": "your debugging and optimization work",
    }))
    fallback_experience: str = "your relevant project experience"

    # Timing insight copy
    optimal_durations: Mapping[QuestionType, str] = field(default_factory=lambda: _frozen({
        QuestionType.BEHAVIORAL: "2-3 minutes",
        QuestionType.TECHNICAL: "3-4 minutes",
        QuestionType.SITUATIONAL: "2 minutes",
        QuestionType.GENERAL: "1-2 minutes",
    }))
    # Smart coaching estimate; situational differs from optimal_durations
    estimated_durations: Mapping[QuestionType, str] = field(default_factory=lambda: _frozen({
        QuestionType.BEHAVIORAL: "2-3 minutes",
        QuestionType.TECHNICAL: "3-4 minutes",
        QuestionType.SITUATIONAL: "1-2 minutes",
        QuestionType.GENERAL: "1-2 minutes",
    }))
    frameworks: Mapping[QuestionType, str] = field(default_factory=lambda: _frozen({
        QuestionType.BEHAVIORAL: "STAR (Situation, Task, Action, Result)",
        QuestionType.TECHNICAL: "Problem-Solution-Example",
        QuestionType.SITUATIONAL: "Think-Explain-Act",
        QuestionType.GENERAL: "Introduction-Body-Conclusion",
    }))
    generic_tips: tuple[str, ...] = (
        "Start strong with confidence",
        "Use specific examples with metrics",
        "Conclude with lessons learned",
        "Maintain good eye contact",
        "Speak at a steady, measured pace",
    )
    tip_count: int = 3
    # Words per minute used to estimate how long a written answer runs aloud
    speaking_pace_wpm: int = 150

    # Post-answer delivery thresholds
    fast_wpm: int = 180
    slow_wpm: int = 120
    low_confidence: int = 60
    low_clarity: int = 70

    # Live (while speaking) thresholds
    live_fast_wpm: int = 200
    live_max_seconds_technical: int = 240
    live_max_seconds_default: int = 180
    live_high_confidence: int = 80
    live_high_clarity: int = 75


DEFAULT_INSIGHT_TABLES = InsightTables()


def rank_insights(insights: list[CoachingInsight]) -> list[CoachingInsight]:
    """Sort insights by descending priority weight; stable for ties."""
    return sorted(insights, key=lambda insight: -insight.priority.weight)


class CoachingInsightGenerator:
    """
    Rule-driven coaching insights for an interview question.

    Usage:
        generator = CoachingInsightGenerator()
        insights = generator.generate(context, metrics=metrics)

        # Or classify and bundle everything at once
        response = generator.generate_smart_coaching("Tell me about a time...")
    """

    def __init__(
        self,
        tables: InsightTables | None = None,
        classifier: QuestionClassifier | None = None,
    ):
        self._tables = tables or DEFAULT_INSIGHT_TABLES
        self._classifier = classifier or QuestionClassifier()

    # -------------------------------------------------------------------------
    # Post-answer coaching
    # -------------------------------------------------------------------------

    def generate(
        self,
        context: QuestionContext,
        profile: UserProfile | None = None,
        metrics: SpeechMetrics | None = None,
        current_answer: str | None = None,
    ) -> list[CoachingInsight]:
        """
        Generate ranked insights for a classified question.

        Args:
            context: Classification of the question
            profile: Optional candidate profile for the content insight
            metrics: Optional delivery metrics for delivery insights
            current_answer: Answer so far, used to estimate its spoken length

        Returns:
            Insights sorted by priority
        """
        insights = [
            self.structure_insight(context),
            self.content_insight(context, profile),
        ]
        if metrics is not None:
            insights.extend(self.delivery_insights(metrics))
        insights.append(self.timing_insight(context, current_answer))

        return rank_insights(insights)

    def structure_insight(self, context: QuestionContext) -> CoachingInsight:
        structure = self._tables.structure
        return structure.get(context.type, structure[QuestionType.GENERAL])

    def content_insight(
        self,
        context: QuestionContext,
        profile: UserProfile | None = None,
    ) -> CoachingInsight:
        experience = self._lookup_experience(context.category, profile)
        return CoachingInsight(
            type=InsightType.CONTENT,
            priority=InsightPriority.HIGH,
            title="Leverage Your Experience",
            message=f"This question is perfect for discussing {experience}.",
            actionable_advice=(
                "Mention specific details, technologies used, and measurable outcomes."
            ),
            example=f'"In {experience}, I successfully..."',
        )

    def delivery_insights(self, metrics: SpeechMetrics) -> list[CoachingInsight]:
        t = self._tables
        wpm = metrics.words_per_minute
        insights = []

        if wpm > t.fast_wpm:
            insights.append(CoachingInsight(
                type=InsightType.DELIVERY,
                priority=InsightPriority.HIGH,
                title="Slow Down Your Pace",
                message=f"You're speaking at {wpm} WPM - too fast for optimal comprehension.",
                actionable_advice="Take deliberate pauses between sentences. Aim for 140-160 WPM.",
            ))
        if wpm < t.slow_wpm:
            insights.append(CoachingInsight(
                type=InsightType.DELIVERY,
                priority=InsightPriority.MEDIUM,
                title="Increase Your Pace",
                message=f"Your pace of {wpm} WPM is slower than optimal.",
                actionable_advice="Speak with more energy and confidence. Aim for 140-160 WPM.",
            ))
        if metrics.confidence < t.low_confidence:
            insights.append(CoachingInsight(
                type=InsightType.CONFIDENCE,
                priority=InsightPriority.HIGH,
                title="Project More Confidence",
                message=(
                    "Your speech patterns suggest hesitation. "
                    "Interviewers notice confidence levels."
                ),
                actionable_advice=(
                    'Use definitive language, avoid hedge words like "maybe" or "I think".'
                ),
            ))
        if metrics.clarity < t.low_clarity:
            insights.append(CoachingInsight(
                type=InsightType.DELIVERY,
                priority=InsightPriority.MEDIUM,
                title="Improve Speech Clarity",
                message="Focus on clearer articulation for better understanding.",
                actionable_advice="Enunciate key words and avoid filler words.",
            ))

        return insights

    def timing_insight(
        self,
        context: QuestionContext,
        current_answer: str | None = None,
    ) -> CoachingInsight:
        duration = self._tables.optimal_durations.get(context.type, "1-2 minutes")
        message = f"For {context.type.value} questions, aim for {duration}."
        word_count = len(current_answer.split()) if current_answer else 0
        if word_count:
            seconds = round_half_up(word_count / self._tables.speaking_pace_wpm * 60)
            message += f" Your answer so far runs about {seconds} seconds when spoken."
        return CoachingInsight(
            type=InsightType.TIMING,
            priority=InsightPriority.MEDIUM,
            title="Optimal Response Length",
            message=message,
            actionable_advice="Be comprehensive but concise. Quality over quantity.",
        )

    # -------------------------------------------------------------------------
    # Live coaching
    # -------------------------------------------------------------------------

    def generate_live(
        self,
        metrics: SpeechMetrics,
        context: QuestionContext,
        speaking_duration: float,
    ) -> list[CoachingInsight]:
        """
        Insights for a candidate who is still speaking.

        Args:
            metrics: Metrics over the transcript so far
            context: Classification of the current question
            speaking_duration: Seconds spent speaking so far

        Returns:
            Insights sorted by priority (possibly empty)
        """
        t = self._tables
        insights = []

        if metrics.words_per_minute > t.live_fast_wpm:
            insights.append(CoachingInsight(
                type=InsightType.DELIVERY,
                priority=InsightPriority.HIGH,
                title="⚡ Slow Down",
                message=f"Current pace: {metrics.words_per_minute} WPM",
                actionable_advice="Take a breath and slow down to 150 WPM",
            ))

        max_duration = (
            t.live_max_seconds_technical
            if context.type == QuestionType.TECHNICAL
            else t.live_max_seconds_default
        )
        if speaking_duration > max_duration:
            insights.append(CoachingInsight(
                type=InsightType.TIMING,
                priority=InsightPriority.HIGH,
                title="⏰ Wrap Up Soon",
                message=f"You've been speaking for {int(speaking_duration // 60)} minutes",
                actionable_advice="Summarize your key points and conclude",
            ))

        if metrics.confidence > t.live_high_confidence and metrics.clarity > t.live_high_clarity:
            insights.append(CoachingInsight(
                type=InsightType.CONFIDENCE,
                priority=InsightPriority.LOW,
                title="🎯 Great Delivery!",
                message="Excellent pace and clarity",
                actionable_advice="Maintain this energy level",
            ))

        return rank_insights(insights)

    # -------------------------------------------------------------------------
    # Smart coaching bundle
    # -------------------------------------------------------------------------

    def generate_smart_coaching(
        self,
        question: str,
        profile: UserProfile | None = None,
        metrics: SpeechMetrics | None = None,
        current_answer: str | None = None,
    ) -> SmartCoachingResponse:
        """Classify a question and build the full coaching bundle."""
        if profile is not None:
            context = self._classifier.classify(question, role=profile.role, industry=profile.industry)
        else:
            context = self._classifier.classify(question)

        insights = self.generate(context, profile, metrics, current_answer)
        logger.info(
            f"🧭 Smart coaching for {context.type.value} question: {len(insights)} insights"
        )

        return SmartCoachingResponse(
            insights=insights,
            question_context=context,
            personalized_tips=self.personalized_tips(context, profile),
            suggested_framework=self.select_framework(context),
            estimated_duration=self.estimate_duration(context),
        )

    def personalized_tips(
        self,
        context: QuestionContext,
        profile: UserProfile | None = None,
    ) -> list[str]:
        """
        Tips for this question, most specific first.

        A profile adds a role tip, a known experience for the question's
        category adds an experience tip, and generic tips fill the rest.
        """
        t = self._tables
        tips = []
        if profile is not None:
            tips.append(f"Tie your answer to what a {profile.role} in {profile.industry} needs")
        experience = self._lookup_experience(context.category, profile)
        if experience != t.fallback_experience:
            tips.append(f"Draw on {experience}")
        for tip in t.generic_tips:
            if len(tips) >= t.tip_count:
                break
            tips.append(tip)
        return tips[: t.tip_count]

    def select_framework(self, context: QuestionContext) -> str:
        frameworks = self._tables.frameworks
        return frameworks.get(context.type, frameworks[QuestionType.GENERAL])

    def estimate_duration(self, context: QuestionContext) -> str:
        return self._tables.estimated_durations.get(context.type, "1-2 minutes")

    def _lookup_experience(self, category: str, profile: UserProfile | None) -> str:
        if profile is not None and category in profile.experiences:
            return profile.experiences[category]
        return self._tables.experiences.get(category, self._tables.fallback_experience)
