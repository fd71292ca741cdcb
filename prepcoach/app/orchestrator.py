"""
PrepCoach - Interview Orchestrator.

Manages the interview session state machine and coordinates the
components that analyze each answer:
- SpeechMetricsAnalyzer for delivery metrics (local)
- QuestionClassifier + CoachingInsightGenerator for coaching (local)
- AICoachingService for content analysis (provider, optional)

State Flow:
SCHEDULED -> IN_PROGRESS -> COMPLETED

Ending a session with at least one response appends one
SessionMetricSnapshot to the user's history.
"""

import logging
import threading
import uuid
from datetime import datetime

import numpy as np

from prepcoach.app.classifier import QuestionClassifier
from prepcoach.app.coaching import SpeechMetricsAnalyzer
from prepcoach.app.insights import CoachingInsightGenerator
from prepcoach.core.domain.models import (
    CoachingInsight,
    InterviewResponse,
    InterviewSession,
    SessionMetricSnapshot,
    SessionStatus,
    SmartCoachingResponse,
    SpeechMetrics,
    UserProfile,
    clamp_score,
    round_half_up,
)
from prepcoach.core.exceptions import InvalidSessionStateError, SessionNotFoundError
from prepcoach.infra.llm.gemini import AICoachingService
from prepcoach.infra.persistence.repository import Repository


logger = logging.getLogger(__name__)


class InterviewOrchestrator:
    """
    Main orchestrator for the interview flow.

    Usage:
        orchestrator = InterviewOrchestrator(repository)

        session = orchestrator.create_session("user-1")
        orchestrator.start_session(session.session_id)

        response, insights = await orchestrator.record_response(
            session.session_id, question, transcript, duration_seconds=75,
        )

        summary = orchestrator.end_session(session.session_id)
    """

    def __init__(
        self,
        repository: Repository,
        ai_service: AICoachingService | None = None,
        analyzer: SpeechMetricsAnalyzer | None = None,
        classifier: QuestionClassifier | None = None,
        insight_generator: CoachingInsightGenerator | None = None,
    ):
        """
        Initialize the orchestrator with its components.

        Args:
            repository: Store for sessions and history snapshots
            ai_service: Provider-backed analysis; skipped when None
            analyzer: Speech metrics analyzer
            classifier: Question classifier
            insight_generator: Coaching insight generator
        """
        self._repository = repository
        self._ai_service = ai_service
        self._analyzer = analyzer or SpeechMetricsAnalyzer()
        self._classifier = classifier or QuestionClassifier()
        self._insights = insight_generator or CoachingInsightGenerator(classifier=self._classifier)
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Session Management
    # -------------------------------------------------------------------------

    def get_session(self, session_id: str) -> InterviewSession:
        session = self._repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _require_status(self, session: InterviewSession, required: SessionStatus) -> None:
        if session.status != required:
            raise InvalidSessionStateError(session.status.value, required.value)

    def create_session(
        self,
        user_id: str,
        role: str = "software-engineer",
        industry: str = "technology",
    ) -> InterviewSession:
        session = InterviewSession(
            session_id=str(uuid.uuid4())[:8],
            user_id=user_id,
            role=role,
            industry=industry,
        )
        self._repository.save_session(session)
        logger.info(f"🗓️ Interview session scheduled: {session.session_id} for {user_id}")
        return session

    def start_session(self, session_id: str) -> InterviewSession:
        with self._lock:
            session = self.get_session(session_id)
            self._require_status(session, SessionStatus.SCHEDULED)

            session.status = SessionStatus.IN_PROGRESS
            session.started_at = datetime.now()
            self._repository.save_session(session)

        logger.info(f"🎙️ Interview session started: {session_id}")
        return session

    async def record_response(
        self,
        session_id: str,
        question: str,
        transcript: str,
        duration_seconds: float | None = None,
        profile: UserProfile | None = None,
    ) -> tuple[InterviewResponse, list[CoachingInsight]]:
        """
        Analyze and store one answered question.

        Args:
            session_id: Active session
            question: Question that was asked
            transcript: Candidate's transcribed answer
            duration_seconds: Speaking time (default applies when missing)
            profile: Optional candidate profile for content coaching

        Returns:
            Tuple of (stored response, ranked coaching insights)
        """
        session = self.get_session(session_id)
        self._require_status(session, SessionStatus.IN_PROGRESS)

        # Local analysis first; these raise on invalid input
        context = self._classifier.classify(question, role=session.role, industry=session.industry)
        metrics = self._analyzer.analyze(transcript, duration_seconds)
        insights = self._insights.generate(context, profile, metrics, transcript)

        analysis = None
        score = metrics.confidence
        if self._ai_service is not None:
            result = await self._ai_service.analyze_response(
                question, transcript, role=session.role, industry=session.industry,
            )
            analysis = result.data
            if not result.is_fallback:
                score = analysis.confidence

        response = InterviewResponse(
            question=question,
            transcript=transcript,
            duration_seconds=metrics.duration_seconds,
            metrics=metrics,
            context=context,
            score=score,
            analysis=analysis,
        )

        with self._lock:
            session = self.get_session(session_id)
            self._require_status(session, SessionStatus.IN_PROGRESS)
            session.responses.append(response)
            session.live_transcript.clear()
            self._repository.save_session(session)

        logger.info(
            f"✅ Response {len(session.responses)} recorded: {metrics.word_count} words, "
            f"{metrics.words_per_minute} WPM, score={score}"
        )
        return response, insights

    def live_coaching(
        self,
        session_id: str,
        question: str,
        transcript_chunk: str,
        speaking_duration: float,
    ) -> list[CoachingInsight]:
        """
        Coaching for an answer still being spoken.

        Chunks accumulate on the session until the response is recorded.
        """
        with self._lock:
            session = self.get_session(session_id)
            self._require_status(session, SessionStatus.IN_PROGRESS)
            if transcript_chunk:
                session.live_transcript.append(transcript_chunk)
            self._repository.save_session(session)
            transcript = " ".join(session.live_transcript)

        context = self._classifier.classify(question, role=session.role, industry=session.industry)
        metrics = self._analyzer.analyze(transcript, speaking_duration or None)
        return self._insights.generate_live(metrics, context, speaking_duration)

    def end_session(self, session_id: str) -> dict:
        """
        End the session and record its history snapshot.

        Returns:
            Session summary dictionary
        """
        with self._lock:
            session = self.get_session(session_id)
            self._require_status(session, SessionStatus.IN_PROGRESS)

            session.status = SessionStatus.COMPLETED
            session.ended_at = datetime.now()
            if session.responses:
                session.overall_score = clamp_score(np.mean([r.score for r in session.responses]))
            self._repository.save_session(session)

        if session.responses:
            self._repository.add_snapshot(self._build_snapshot(session))

        summary = session.to_summary_dict()
        logger.info(f"🏁 Interview complete: {summary}")
        return summary

    def _build_snapshot(self, session: InterviewSession) -> SessionMetricSnapshot:
        metrics = [r.metrics for r in session.responses]
        return SessionMetricSnapshot(
            timestamp=session.ended_at,
            overall_score=session.overall_score,
            confidence_level=clamp_score(np.mean([m.confidence for m in metrics])),
            clarity_score=clamp_score(np.mean([m.clarity for m in metrics])),
            words_per_minute=round_half_up(np.mean([m.words_per_minute for m in metrics])),
            user_id=session.user_id,
            session_id=session.session_id,
        )

    # -------------------------------------------------------------------------
    # Coaching
    # -------------------------------------------------------------------------

    def get_smart_coaching(
        self,
        question: str,
        profile: UserProfile | None = None,
        metrics: SpeechMetrics | None = None,
        current_answer: str | None = None,
    ) -> SmartCoachingResponse:
        return self._insights.generate_smart_coaching(question, profile, metrics, current_answer)


# -----------------------------------------------------------------------------
# Factory Function
# -----------------------------------------------------------------------------

def create_orchestrator(
    repository: Repository,
    ai_service: AICoachingService | None = None,
) -> InterviewOrchestrator:
    """Create an orchestrator with default local components."""
    return InterviewOrchestrator(
        repository=repository,
        ai_service=ai_service,
        analyzer=SpeechMetricsAnalyzer(),
        classifier=QuestionClassifier(),
    )
