"""
PrepCoach - API Routes.

Thin FastAPI router over the coaching, analytics, interview and quiz
components. Provider-backed endpoints are rate limited to protect
Gemini credits.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from prepcoach.api.schemas import (
    AnswerRequest,
    AttemptResponse,
    CoachingTipsRequest,
    CreateQuizRequest,
    CreateSessionRequest,
    FollowUpRequest,
    HealthResponse,
    LiveCoachingRequest,
    ProviderResponse,
    QuestionGenerationRequest,
    QuizResponseSchema,
    RecordResponseRequest,
    ResponseAnalysisRequest,
    SessionResponse,
    SmartCoachingRequest,
    SpeechAnalysisRequest,
    StartAttemptRequest,
    SubmitAllRequest,
)
from prepcoach.app.analytics import PredictiveAnalyticsService
from prepcoach.app.coaching import SpeechMetricsAnalyzer
from prepcoach.app.orchestrator import InterviewOrchestrator, create_orchestrator
from prepcoach.app.quizzes import QuizGradingEngine
from prepcoach.core.config import get_settings
from prepcoach.core.domain.models import (
    InterviewSession,
    ProviderResult,
    Question,
    Quiz,
    QuizAttempt,
    QuizQuestionType,
    UserProfile,
)
from prepcoach.infra.llm.gemini import AICoachingService, create_ai_service
from prepcoach.infra.persistence.repository import Repository, create_repository


router = APIRouter(prefix="/api", tags=["prepcoach"])

limiter = Limiter(key_func=get_remote_address)
AI_RATE_LIMIT = get_settings().AI_RATE_LIMIT


# =============================================================================
# Service Wiring
# =============================================================================

@dataclass
class Services:
    """Components shared by every request."""
    repository: Repository
    orchestrator: InterviewOrchestrator
    quizzes: QuizGradingEngine
    analytics: PredictiveAnalyticsService
    ai: AICoachingService
    analyzer: SpeechMetricsAnalyzer


def build_services(repository: Repository, ai: AICoachingService) -> Services:
    return Services(
        repository=repository,
        orchestrator=create_orchestrator(repository, ai),
        quizzes=QuizGradingEngine(repository),
        analytics=PredictiveAnalyticsService(repository),
        ai=ai,
        analyzer=SpeechMetricsAnalyzer(),
    )


@lru_cache
def get_services() -> Services:
    """Process-wide services; overridden in tests."""
    return build_services(create_repository(), create_ai_service())


# =============================================================================
# Serialization Helpers
# =============================================================================

def _to_jsonable(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def _provider_response(result: ProviderResult) -> ProviderResponse:
    return ProviderResponse(
        success=result.success,
        provider=result.provider,
        timestamp=result.timestamp,
        data=_to_jsonable(result.data),
    )


def _session_response(session: InterviewSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        status=session.status.value,
        role=session.role,
        industry=session.industry,
        total_responses=len(session.responses),
        started_at=session.started_at,
        ended_at=session.ended_at,
        overall_score=session.overall_score,
    )


def _attempt_response(attempt: QuizAttempt) -> AttemptResponse:
    return AttemptResponse(
        attempt_id=attempt.id,
        quiz_id=attempt.quiz_id,
        user_id=attempt.user_id,
        attempt_number=attempt.attempt_number,
        state=attempt.state.value,
        max_score=attempt.max_score,
        score=attempt.score,
        passed=attempt.passed,
        time_spent=attempt.time_spent,
        question_ids=list(attempt.question_ids),
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
    )


# =============================================================================
# Health
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        provider_configured=bool(settings.GEMINI_API_KEY),
        persistence=settings.PERSISTENCE_BACKEND,
    )


# =============================================================================
# Coaching
# =============================================================================

@router.post("/coaching/smart")
async def smart_coaching(
    request: SmartCoachingRequest,
    services: Services = Depends(get_services),
) -> dict:
    """Classify a question and return the full coaching bundle."""
    profile = UserProfile(
        user_id=request.user_id,
        role=request.role,
        industry=request.industry,
        experiences=request.experiences,
    )
    metrics = None
    if request.current_answer:
        metrics = services.analyzer.analyze(request.current_answer, request.duration_seconds)

    response = services.orchestrator.get_smart_coaching(
        request.question, profile, metrics, request.current_answer,
    )
    return response.to_dict()


@router.post("/speech/analyze", response_model=ProviderResponse)
async def analyze_speech(
    request: SpeechAnalysisRequest,
    services: Services = Depends(get_services),
) -> ProviderResponse:
    result = services.ai.analyze_speech_patterns(request.transcript, request.duration_seconds)
    return _provider_response(result)


# =============================================================================
# AI (provider-backed, rate limited)
# =============================================================================

@router.post("/ai/analyze", response_model=ProviderResponse)
@limiter.limit(AI_RATE_LIMIT)
async def analyze_response(
    request: Request,
    body: ResponseAnalysisRequest,
    services: Services = Depends(get_services),
) -> ProviderResponse:
    result = await services.ai.analyze_response(
        body.question, body.spoken_text, role=body.role, industry=body.industry,
    )
    return _provider_response(result)


@router.post("/ai/tips", response_model=ProviderResponse)
@limiter.limit(AI_RATE_LIMIT)
async def coaching_tips(
    request: Request,
    body: CoachingTipsRequest,
    services: Services = Depends(get_services),
) -> ProviderResponse:
    result = await services.ai.instant_coaching_tips(
        body.current_response, role=body.role, industry=body.industry,
    )
    return _provider_response(result)


@router.post("/ai/questions", response_model=ProviderResponse)
@limiter.limit(AI_RATE_LIMIT)
async def generate_questions(
    request: Request,
    body: QuestionGenerationRequest,
    services: Services = Depends(get_services),
) -> ProviderResponse:
    result = await services.ai.generate_questions(
        body.role,
        body.industry,
        question_types=body.question_types,
        difficulty=body.difficulty,
        count=body.count,
    )
    return _provider_response(result)


@router.post("/ai/follow-up", response_model=ProviderResponse)
@limiter.limit(AI_RATE_LIMIT)
async def follow_up(
    request: Request,
    body: FollowUpRequest,
    services: Services = Depends(get_services),
) -> ProviderResponse:
    result = await services.ai.generate_follow_up(
        body.question, body.answer, role=body.role, industry=body.industry,
    )
    return _provider_response(result)


# =============================================================================
# Analytics
# =============================================================================

@router.get("/analytics/{user_id}/predictions")
async def predictive_insights(
    user_id: str,
    services: Services = Depends(get_services),
) -> dict:
    return services.analytics.generate_predictive_insights(user_id).to_dict()


# =============================================================================
# Interview Sessions
# =============================================================================

@router.post("/sessions", response_model=SessionResponse)
async def create_session(
    request: CreateSessionRequest,
    services: Services = Depends(get_services),
) -> SessionResponse:
    session = services.orchestrator.create_session(
        request.user_id, role=request.role, industry=request.industry,
    )
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    services: Services = Depends(get_services),
) -> SessionResponse:
    return _session_response(services.orchestrator.get_session(session_id))


@router.post("/sessions/{session_id}/start", response_model=SessionResponse)
async def start_session(
    session_id: str,
    services: Services = Depends(get_services),
) -> SessionResponse:
    return _session_response(services.orchestrator.start_session(session_id))


@router.post("/sessions/{session_id}/responses")
async def record_response(
    session_id: str,
    request: RecordResponseRequest,
    services: Services = Depends(get_services),
) -> dict:
    session = services.orchestrator.get_session(session_id)
    profile = UserProfile(
        user_id=session.user_id,
        role=session.role,
        industry=session.industry,
        experiences=request.experiences,
    )
    response, insights = await services.orchestrator.record_response(
        session_id,
        request.question,
        request.transcript,
        duration_seconds=request.duration_seconds,
        profile=profile,
    )
    return {
        "session_id": session_id,
        "score": response.score,
        "metrics": response.metrics.to_dict(),
        "question_context": response.context.to_dict(),
        "analysis": response.analysis.to_dict() if response.analysis else None,
        "insights": [insight.to_dict() for insight in insights],
    }


@router.post("/sessions/{session_id}/live")
async def live_coaching(
    session_id: str,
    request: LiveCoachingRequest,
    services: Services = Depends(get_services),
) -> dict:
    insights = services.orchestrator.live_coaching(
        session_id, request.question, request.transcript_chunk, request.speaking_duration,
    )
    return {"insights": [insight.to_dict() for insight in insights]}


@router.post("/sessions/{session_id}/end")
async def end_session(
    session_id: str,
    services: Services = Depends(get_services),
) -> dict:
    return services.orchestrator.end_session(session_id)


# =============================================================================
# Quizzes
# =============================================================================

@router.post("/quizzes")
async def create_quiz(
    request: CreateQuizRequest,
    services: Services = Depends(get_services),
) -> dict:
    quiz = Quiz(
        id=request.id,
        title=request.title,
        questions=tuple(
            Question(
                id=q.id,
                text=q.text,
                type=QuizQuestionType(q.type),
                correct_answer=q.correct_answer,
                points=q.points,
                order_index=q.order_index,
                options=tuple(q.options) if q.options is not None else None,
                explanation=q.explanation,
            )
            for q in request.questions
        ),
        max_attempts=request.max_attempts,
        passing_score=request.passing_score,
        is_randomized=request.is_randomized,
        show_results=request.show_results,
        allow_review=request.allow_review,
    )
    services.quizzes.save_quiz(quiz)
    return {"quiz_id": quiz.id, "total_questions": len(quiz.questions)}


@router.post("/quizzes/{quiz_id}/attempts", response_model=AttemptResponse)
async def start_attempt(
    quiz_id: str,
    request: StartAttemptRequest,
    services: Services = Depends(get_services),
) -> AttemptResponse:
    return _attempt_response(services.quizzes.start(request.user_id, quiz_id))


@router.get("/quizzes/{quiz_id}/attempts")
async def list_attempts(
    quiz_id: str,
    user_id: str,
    services: Services = Depends(get_services),
) -> list[AttemptResponse]:
    return [_attempt_response(a) for a in services.quizzes.list_attempts(user_id, quiz_id)]


@router.get("/attempts/{attempt_id}/questions")
async def attempt_questions(
    attempt_id: str,
    services: Services = Depends(get_services),
) -> list[dict]:
    """Questions in presentation order, without answers."""
    return [
        {"id": q.id, "text": q.text, "type": q.type.value, "points": q.points,
         "options": list(q.options) if q.options is not None else None}
        for q in services.quizzes.get_attempt_questions(attempt_id)
    ]


@router.post("/attempts/{attempt_id}/answers", response_model=QuizResponseSchema)
async def answer_question(
    attempt_id: str,
    request: AnswerRequest,
    services: Services = Depends(get_services),
) -> QuizResponseSchema:
    response = services.quizzes.answer(
        attempt_id, request.question_id, request.answer, time_spent=request.time_spent,
    )
    return QuizResponseSchema(
        question_id=response.question_id,
        is_correct=response.is_correct,
        points_earned=response.points_earned,
    )


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResponse)
async def submit_attempt(
    attempt_id: str,
    request: SubmitAllRequest | None = None,
    services: Services = Depends(get_services),
) -> AttemptResponse:
    if request is not None and request.responses:
        attempt = services.quizzes.submit_all(
            attempt_id, [item.model_dump() for item in request.responses],
        )
    else:
        attempt = services.quizzes.submit(attempt_id)
    return _attempt_response(attempt)


@router.get("/attempts/{attempt_id}/results")
async def attempt_results(
    attempt_id: str,
    services: Services = Depends(get_services),
) -> dict:
    return services.quizzes.get_results(attempt_id).to_dict()
