"""
Tests for the InterviewOrchestrator session flow.
"""

import pytest

from prepcoach.app.orchestrator import InterviewOrchestrator, create_orchestrator
from prepcoach.core.domain.models import InsightType, SessionStatus
from prepcoach.core.exceptions import (
    InvalidSessionStateError,
    ProviderConnectionError,
    SessionNotFoundError,
    ValidationError,
)
from prepcoach.infra.llm.gemini import AICoachingService


QUESTION = "Tell me about a time you led a team through a difficult deadline"


def _words(count: int) -> str:
    return " ".join(["word"] * count)


def _analysis_json(confidence: int) -> str:
    return (
        f'{{"confidence": {confidence}, "clarity": 80, "pace": 75, "keywordRelevance": 70,'
        ' "suggestions": [], "strengths": [], "improvementAreas": []}'
    )


@pytest.fixture
def orchestrator(repository):
    return create_orchestrator(repository)


@pytest.fixture
def active_session(orchestrator):
    session = orchestrator.create_session("user-1", role="engineering-manager")
    orchestrator.start_session(session.session_id)
    return session


class TestSessionLifecycle:
    """Test suite for session state transitions."""

    def test_create_session_is_scheduled(self, orchestrator, repository):
        session = orchestrator.create_session("user-1")

        assert session.status == SessionStatus.SCHEDULED
        assert len(session.session_id) == 8
        assert repository.get_session(session.session_id) is session

    def test_start_session(self, orchestrator):
        session = orchestrator.create_session("user-1")

        started = orchestrator.start_session(session.session_id)

        assert started.status == SessionStatus.IN_PROGRESS
        assert started.started_at is not None

    def test_start_twice_raises(self, orchestrator, active_session):
        with pytest.raises(InvalidSessionStateError):
            orchestrator.start_session(active_session.session_id)

    def test_unknown_session_raises(self, orchestrator):
        with pytest.raises(SessionNotFoundError):
            orchestrator.get_session("missing")

    async def test_record_before_start_raises(self, orchestrator):
        session = orchestrator.create_session("user-1")

        with pytest.raises(InvalidSessionStateError):
            await orchestrator.record_response(session.session_id, QUESTION, _words(10))

    def test_end_before_start_raises(self, orchestrator):
        session = orchestrator.create_session("user-1")

        with pytest.raises(InvalidSessionStateError):
            orchestrator.end_session(session.session_id)

    async def test_record_after_end_raises(self, orchestrator, active_session):
        orchestrator.end_session(active_session.session_id)

        with pytest.raises(InvalidSessionStateError):
            await orchestrator.record_response(active_session.session_id, QUESTION, _words(10))


class TestRecordResponse:

    async def test_local_only_scores_with_metrics(self, orchestrator, active_session):
        response, insights = await orchestrator.record_response(
            active_session.session_id, QUESTION, _words(150), duration_seconds=60,
        )

        assert response.metrics.words_per_minute == 150
        assert response.score == response.metrics.confidence
        assert response.analysis is None
        assert response.context.role == "engineering-manager"
        assert insights[0].type == InsightType.STRUCTURE

    async def test_provider_confidence_used_when_real(self, repository, fake_provider_factory):
        ai = AICoachingService(fake_provider_factory([_analysis_json(91)]))
        orchestrator = InterviewOrchestrator(repository, ai_service=ai)
        session = orchestrator.create_session("user-1")
        orchestrator.start_session(session.session_id)

        response, _ = await orchestrator.record_response(session.session_id, QUESTION, _words(40))

        assert response.score == 91
        assert response.analysis.confidence == 91

    async def test_fallback_analysis_keeps_metrics_score(self, repository, fake_provider_factory):
        ai = AICoachingService(fake_provider_factory(error=ProviderConnectionError("Gemini", "down")))
        orchestrator = InterviewOrchestrator(repository, ai_service=ai)
        session = orchestrator.create_session("user-1")
        orchestrator.start_session(session.session_id)

        response, _ = await orchestrator.record_response(session.session_id, QUESTION, _words(40))

        assert response.analysis.confidence == 75
        assert response.score == response.metrics.confidence

    async def test_empty_question_rejected(self, orchestrator, active_session):
        with pytest.raises(ValidationError):
            await orchestrator.record_response(active_session.session_id, "  ", _words(10))

        assert orchestrator.get_session(active_session.session_id).responses == []


class TestLiveCoaching:

    def test_chunks_accumulate(self, orchestrator, active_session):
        orchestrator.live_coaching(active_session.session_id, QUESTION, "First I", 2)
        orchestrator.live_coaching(active_session.session_id, QUESTION, "aligned the team", 4)

        session = orchestrator.get_session(active_session.session_id)
        assert session.live_transcript == ["First I", "aligned the team"]

    def test_fast_speech_triggers_slow_down(self, orchestrator, active_session):
        insights = orchestrator.live_coaching(active_session.session_id, QUESTION, _words(50), 10)

        assert insights[0].title == "⚡ Slow Down"

    async def test_recording_clears_live_transcript(self, orchestrator, active_session):
        orchestrator.live_coaching(active_session.session_id, QUESTION, "partial", 1)

        await orchestrator.record_response(active_session.session_id, QUESTION, _words(20))

        assert orchestrator.get_session(active_session.session_id).live_transcript == []


class TestEndSession:

    async def test_end_records_snapshot(self, repository, fake_provider_factory):
        ai = AICoachingService(fake_provider_factory([_analysis_json(80), _analysis_json(91)]))
        orchestrator = InterviewOrchestrator(repository, ai_service=ai)
        session = orchestrator.create_session("user-1")
        orchestrator.start_session(session.session_id)
        await orchestrator.record_response(session.session_id, QUESTION, _words(150), 60)
        await orchestrator.record_response(session.session_id, QUESTION, _words(100), 60)

        summary = orchestrator.end_session(session.session_id)

        assert summary["status"] == "COMPLETED"
        assert summary["total_responses"] == 2
        assert summary["overall_score"] == 86
        history = repository.get_history("user-1")
        assert len(history) == 1
        assert history[0].overall_score == 86
        assert history[0].words_per_minute == 125
        assert history[0].session_id == session.session_id

    def test_end_without_responses_skips_snapshot(self, orchestrator, active_session, repository):
        summary = orchestrator.end_session(active_session.session_id)

        assert summary["overall_score"] is None
        assert repository.get_history("user-1") == []

    def test_smart_coaching(self, orchestrator):
        response = orchestrator.get_smart_coaching("How would you design a REST API?")

        assert response.suggested_framework.startswith("Problem-Solution-Example")
