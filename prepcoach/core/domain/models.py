"""
PrepCoach - Domain Models.

Defines the core data structures used throughout the application.
Uses dataclasses for clarity and immutability where appropriate.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# -----------------------------------------------------------------------------
# Scoring Helpers
# -----------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Round and clamp a score or percentage into [0, 100]."""
    return int(clamp(round_half_up(value)))


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class QuestionType(str, Enum):
    """Top-level classification of an interview question."""
    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    SITUATIONAL = "situational"
    GENERAL = "general"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InsightType(str, Enum):
    STRUCTURE = "structure"
    CONTENT = "content"
    DELIVERY = "delivery"
    TIMING = "timing"
    CONFIDENCE = "confidence"


class InsightPriority(str, Enum):
    """Priority of a coaching insight; higher weight sorts first."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class UserState(str, Enum):
    """Analytics tier derived from the number of history snapshots."""
    NEW_USER = "new_user"
    INSUFFICIENT_DATA = "insufficient_data"
    READY_FOR_PREDICTIONS = "ready_for_predictions"

    @classmethod
    def for_history_length(cls, length: int) -> "UserState":
        if length == 0:
            return cls.NEW_USER
        if length < 3:
            return cls.INSUFFICIENT_DATA
        return cls.READY_FOR_PREDICTIONS


class ImprovementVelocity(str, Enum):
    ACCELERATING = "accelerating"
    STEADY = "steady"
    SLOWING = "slowing"
    DECLINING = "declining"


class QuizQuestionType(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MULTIPLE_SELECT = "MULTIPLE_SELECT"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"


class AttemptState(str, Enum):
    """States in the quiz attempt state machine."""
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"


class SessionStatus(str, Enum):
    """States in the interview session state machine."""
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


# -----------------------------------------------------------------------------
# Question Classification
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class QuestionContext:
    """Derived classification of a single interview question."""

    type: QuestionType
    category: str
    difficulty: Difficulty
    role: str = "software-engineer"
    industry: str = "technology"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "category": self.category,
            "difficulty": self.difficulty.value,
            "role": self.role,
            "industry": self.industry,
        }


@dataclass(frozen=True)
class UserProfile:
    """What the coach knows about the candidate."""

    user_id: str | None = None
    role: str = "software-engineer"
    industry: str = "technology"
    # category -> experience phrase, e.g. {"backend": "your payments API"}
    experiences: dict[str, str] = field(default_factory=dict)


# -----------------------------------------------------------------------------
# Speech & Coaching Models
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeechMetrics:
    """Delivery metrics derived from a transcript and its duration."""

    words_per_minute: int = 0
    filler_word_count: int = 0
    pace: int = 0
    clarity: int = 0
    confidence: int = 0
    suggestions: tuple[str, ...] = ()
    word_count: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "words_per_minute": self.words_per_minute,
            "filler_word_count": self.filler_word_count,
            "pace": self.pace,
            "clarity": self.clarity,
            "confidence": self.confidence,
            "suggestions": list(self.suggestions),
            "word_count": self.word_count,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class CoachingInsight:
    """One piece of coaching guidance shown to the candidate."""

    type: InsightType
    priority: InsightPriority
    title: str
    message: str
    actionable_advice: str
    framework: str | None = None
    example: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "message": self.message,
            "actionable_advice": self.actionable_advice,
        }
        if self.framework:
            data["framework"] = self.framework
        if self.example:
            data["example"] = self.example
        return data


@dataclass(frozen=True)
class SmartCoachingResponse:
    """Full coaching bundle for a question."""

    insights: list[CoachingInsight]
    question_context: QuestionContext
    personalized_tips: list[str]
    suggested_framework: str
    estimated_duration: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "insights": [insight.to_dict() for insight in self.insights],
            "question_context": self.question_context.to_dict(),
            "personalized_tips": list(self.personalized_tips),
            "suggested_framework": self.suggested_framework,
            "estimated_duration": self.estimated_duration,
        }


# -----------------------------------------------------------------------------
# Provider Payloads
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ResponseAnalysis:
    """Provider analysis of one spoken answer, clamped at the parse boundary."""

    confidence: int
    clarity: int
    pace: int
    keyword_relevance: int
    suggestions: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    improvement_areas: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence": self.confidence,
            "clarity": self.clarity,
            "pace": self.pace,
            "keyword_relevance": self.keyword_relevance,
            "suggestions": list(self.suggestions),
            "strengths": list(self.strengths),
            "improvement_areas": list(self.improvement_areas),
        }


@dataclass(frozen=True)
class GeneratedQuestion:
    """Interview question produced by the text provider."""

    id: str
    question: str
    type: str
    difficulty: str
    expected_duration: int
    role: str
    industry: str
    hints: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    follow_up_questions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "type": self.type,
            "difficulty": self.difficulty,
            "expected_duration": self.expected_duration,
            "hints": list(self.hints),
            "tags": list(self.tags),
            "follow_up_questions": list(self.follow_up_questions),
            "role": self.role,
            "industry": self.industry,
        }


@dataclass(frozen=True)
class ProviderResult:
    """Envelope telling callers whether content is real or a fallback."""

    data: Any
    provider: str
    timestamp: datetime = field(default_factory=datetime.now)
    success: bool = True

    @property
    def is_fallback(self) -> bool:
        return self.provider == "fallback"


# -----------------------------------------------------------------------------
# Analytics Models
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionMetricSnapshot:
    """One immutable history record consumed by trend prediction."""

    timestamp: datetime
    overall_score: int
    confidence_level: int
    clarity_score: int
    words_per_minute: int
    user_id: str = ""
    session_id: str | None = None


@dataclass
class CurrentPerformance:
    overall_score: int = 0
    confidence_level: int = 0
    clarity_score: int = 0
    speaking_pace: int = 0


@dataclass
class Predictions:
    # next_session_score and weekly_improvement stay None below three snapshots
    next_session_score: int | None = None
    weekly_improvement: int | None = None
    target_achievement_date: str = ""
    interview_readiness: int = 0


@dataclass
class Trends:
    improvement_velocity: ImprovementVelocity = ImprovementVelocity.STEADY
    strongest_skill: str = ""
    improvement_area: str = ""
    consistency_score: int = 0


@dataclass
class Recommendations:
    focus_areas: list[str] = field(default_factory=list)
    practice_frequency: str = ""
    next_milestone: str = ""
    confidence_booster: str = ""


@dataclass
class PredictiveInsights:
    """Output of the trend prediction engine."""

    current_performance: CurrentPerformance
    predictions: Predictions
    trends: Trends
    recommendations: Recommendations
    user_state: UserState

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_performance": {
                "overall_score": self.current_performance.overall_score,
                "confidence_level": self.current_performance.confidence_level,
                "clarity_score": self.current_performance.clarity_score,
                "speaking_pace": self.current_performance.speaking_pace,
            },
            "predictions": {
                "next_session_score": self.predictions.next_session_score,
                "weekly_improvement": self.predictions.weekly_improvement,
                "target_achievement_date": self.predictions.target_achievement_date,
                "interview_readiness": self.predictions.interview_readiness,
            },
            "trends": {
                "improvement_velocity": self.trends.improvement_velocity.value,
                "strongest_skill": self.trends.strongest_skill,
                "improvement_area": self.trends.improvement_area,
                "consistency_score": self.trends.consistency_score,
            },
            "recommendations": {
                "focus_areas": list(self.recommendations.focus_areas),
                "practice_frequency": self.recommendations.practice_frequency,
                "next_milestone": self.recommendations.next_milestone,
                "confidence_booster": self.recommendations.confidence_booster,
            },
            "user_state": self.user_state.value,
        }


# -----------------------------------------------------------------------------
# Quiz Models
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Question:
    """Quiz question. Immutable so grading stays reproducible."""

    id: str
    text: str
    type: QuizQuestionType
    correct_answer: Any
    points: int = 1
    order_index: int = 0
    options: tuple[str, ...] | None = None
    explanation: str | None = None


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    questions: tuple[Question, ...]
    max_attempts: int = 3
    passing_score: int = 70
    is_randomized: bool = False
    show_results: bool = True
    allow_review: bool = True

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class QuizAttempt:
    """One bounded trial of a quiz by a user."""

    id: str
    user_id: str
    quiz_id: str
    attempt_number: int
    max_score: int
    # Ordered snapshot of the questions presented in this attempt
    question_ids: tuple[str, ...]
    state: AttemptState = AttemptState.IN_PROGRESS
    score: int = 0
    passed: bool = False
    time_spent: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def is_submitted(self) -> bool:
        return self.state == AttemptState.SUBMITTED


@dataclass(frozen=True)
class QuizResponse:
    """Answer to one question, unique per (attempt_id, question_id)."""

    attempt_id: str
    question_id: str
    answer: Any
    is_correct: bool
    points_earned: int
    time_spent: int = 0


@dataclass(frozen=True)
class QuizResult:
    attempt: QuizAttempt
    score_percentage: int
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int
    # Only populated when the quiz allows review
    review: list[dict[str, Any]] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt": {
                "id": self.attempt.id,
                "score": self.attempt.score,
                "max_score": self.attempt.max_score,
                "score_percentage": self.score_percentage,
                "passed": self.attempt.passed,
                "time_spent": self.attempt.time_spent,
                "attempt_number": self.attempt.attempt_number,
                "completed_at": (
                    self.attempt.completed_at.isoformat()
                    if self.attempt.completed_at else None
                ),
            },
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "incorrect_answers": self.incorrect_answers,
            "unanswered_questions": self.unanswered_questions,
            "review": self.review,
        }


# -----------------------------------------------------------------------------
# Interview Session Models
# -----------------------------------------------------------------------------

@dataclass
class InterviewResponse:
    """Single answered question within an interview session."""

    question: str
    transcript: str
    duration_seconds: float
    metrics: SpeechMetrics
    context: QuestionContext
    score: int
    analysis: ResponseAnalysis | None = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class InterviewSession:
    """Interview session state."""

    session_id: str
    user_id: str
    role: str = "software-engineer"
    industry: str = "technology"
    status: SessionStatus = SessionStatus.SCHEDULED
    responses: list[InterviewResponse] = field(default_factory=list)
    live_transcript: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    ended_at: datetime | None = None
    overall_score: int | None = None

    @property
    def duration_minutes(self) -> float:
        """Get session duration in minutes."""
        if not self.started_at:
            return 0.0
        end = self.ended_at or datetime.now()
        return (end - self.started_at).total_seconds() / 60

    def to_summary_dict(self) -> dict[str, Any]:
        """Generate summary for the session report."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "status": self.status.value,
            "duration_minutes": round(self.duration_minutes, 1),
            "total_responses": len(self.responses),
            "overall_score": self.overall_score,
            "total_filler_words": sum(r.metrics.filler_word_count for r in self.responses),
        }
