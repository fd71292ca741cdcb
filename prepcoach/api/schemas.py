"""
PrepCoach - API Request/Response Schemas.

Pydantic models for API validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Coaching Requests
# =============================================================================

class SpeechAnalysisRequest(BaseModel):
    """Transcript to analyze for delivery metrics."""
    transcript: str = Field(default="", description="Transcribed answer text")
    duration_seconds: Optional[float] = Field(default=None, ge=0, description="Speaking time")


class SmartCoachingRequest(BaseModel):
    """Question to coach on, with optional profile and answer so far."""
    question: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    role: str = "software-engineer"
    industry: str = "technology"
    experiences: dict[str, str] = Field(default_factory=dict, description="category -> experience")
    current_answer: Optional[str] = None
    duration_seconds: Optional[float] = Field(default=None, ge=0)


class LiveCoachingRequest(BaseModel):
    question: str = Field(..., min_length=1)
    transcript_chunk: str = ""
    speaking_duration: float = Field(..., ge=0, description="Seconds spoken so far")


class ResponseAnalysisRequest(BaseModel):
    question: str = Field(..., min_length=1)
    spoken_text: str = Field(..., min_length=1)
    role: str = "software-engineer"
    industry: str = "technology"


class CoachingTipsRequest(BaseModel):
    current_response: str = Field(..., min_length=1)
    role: Optional[str] = None
    industry: Optional[str] = None


class QuestionGenerationRequest(BaseModel):
    role: str = Field(..., min_length=1)
    industry: str = Field(..., min_length=1)
    question_types: list[str] = Field(default_factory=lambda: ["behavioral", "technical"])
    difficulty: str = "medium"
    count: int = Field(default=5, ge=1, le=10)


class FollowUpRequest(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    role: Optional[str] = None
    industry: Optional[str] = None


# =============================================================================
# Interview Session Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to schedule a new interview session."""
    user_id: str = Field(..., min_length=1)
    role: str = "software-engineer"
    industry: str = "technology"


class RecordResponseRequest(BaseModel):
    """Answer to one interview question (text-based)."""
    question: str = Field(..., min_length=1)
    transcript: str = Field(..., description="Candidate's transcribed answer")
    duration_seconds: Optional[float] = Field(default=None, ge=0, description="Time taken to answer")
    experiences: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Quiz Requests
# =============================================================================

class QuizQuestionSchema(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    type: str = Field(default="MULTIPLE_CHOICE", pattern="^(MULTIPLE_CHOICE|MULTIPLE_SELECT|TRUE_FALSE|SHORT_ANSWER)$")
    correct_answer: Any
    points: int = Field(default=1, gt=0)
    order_index: int = 0
    options: Optional[list[str]] = None
    explanation: Optional[str] = None


class CreateQuizRequest(BaseModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    questions: list[QuizQuestionSchema] = Field(..., min_length=1)
    max_attempts: int = Field(default=3, ge=1)
    passing_score: int = Field(default=70, ge=0)
    is_randomized: bool = False
    show_results: bool = True
    allow_review: bool = True

    @field_validator("questions")
    @classmethod
    def question_ids_unique(cls, questions: list[QuizQuestionSchema]) -> list[QuizQuestionSchema]:
        ids = [q.id for q in questions]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique")
        return questions


class StartAttemptRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class AnswerRequest(BaseModel):
    question_id: str = Field(..., min_length=1)
    answer: Any = None
    time_spent: int = Field(default=0, ge=0, description="Seconds spent on the question")


class SubmitAllRequest(BaseModel):
    responses: list[AnswerRequest] = Field(default_factory=list)


# =============================================================================
# Response Schemas
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    provider_configured: bool
    persistence: str


class ProviderResponse(BaseModel):
    """Envelope for provider-backed results."""
    success: bool = True
    provider: str
    timestamp: datetime
    data: Any


class SessionResponse(BaseModel):
    """Interview session state."""
    session_id: str
    user_id: str
    status: str
    role: str
    industry: str
    total_responses: int
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    overall_score: Optional[int] = None


class AttemptResponse(BaseModel):
    attempt_id: str
    quiz_id: str
    user_id: str
    attempt_number: int
    state: str
    max_score: int
    score: int
    passed: bool
    time_spent: int
    question_ids: list[str]
    started_at: datetime
    completed_at: Optional[datetime] = None


class QuizResponseSchema(BaseModel):
    question_id: str
    is_correct: bool
    points_earned: int
