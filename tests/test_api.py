"""
Tests for the HTTP API.

Services are overridden with an in-memory repository and a fake text
provider, so no Gemini key or data file is needed.
"""

import pytest
from fastapi.testclient import TestClient

from prepcoach.api.app import create_app, status_for_error
from prepcoach.api.routes import build_services, get_services
from prepcoach.core.exceptions import (
    AttemptAlreadySubmittedError,
    ParseError,
    ProviderRateLimitError,
    QuizNotFoundError,
    ValidationError,
)
from prepcoach.infra.llm.gemini import AICoachingService
from prepcoach.infra.persistence.repository import InMemoryRepository


QUIZ_PAYLOAD = {
    "id": "quiz-api",
    "title": "Delivery Basics",
    "max_attempts": 1,
    "passing_score": 3,
    "questions": [
        {"id": "q1", "text": "Filler words help clarity.", "type": "TRUE_FALSE",
         "correct_answer": False, "points": 2, "order_index": 0},
        {"id": "q2", "text": "Pick a framework", "type": "MULTIPLE_CHOICE",
         "correct_answer": "STAR", "points": 3, "order_index": 1,
         "options": ["STAR", "SOAR"], "explanation": "STAR fits behavioral answers"},
    ],
}


@pytest.fixture
def provider(fake_provider_factory):
    return fake_provider_factory()


@pytest.fixture
def client(provider):
    app = create_app()
    services = build_services(InMemoryRepository(), AICoachingService(provider))
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client


class TestHealthAndCoaching:
    """Test suite for stateless endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_smart_coaching(self, client):
        response = client.post("/api/coaching/smart", json={
            "question": "Tell me about a time you had a conflict with a peer",
            "role": "designer",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["question_context"]["type"] == "behavioral"
        assert data["question_context"]["category"] == "conflict-resolution"
        assert data["question_context"]["role"] == "designer"
        assert len(data["personalized_tips"]) == 3

    def test_whitespace_question_is_bad_request(self, client):
        response = client.post("/api/coaching/smart", json={"question": "   "})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_speech_analysis_is_internal(self, client):
        response = client.post("/api/speech/analyze", json={
            "transcript": " ".join(["word"] * 150),
            "duration_seconds": 60,
        })

        body = response.json()
        assert body["provider"] == "internal"
        assert body["data"]["words_per_minute"] == 150

    def test_ai_analysis_fallback(self, client, provider):
        provider.responses.append("not json")

        response = client.post("/api/ai/analyze", json={"question": "Q", "spoken_text": "A"})

        body = response.json()
        assert response.status_code == 200
        assert body["provider"] == "fallback"
        assert body["data"]["confidence"] == 75

    def test_ai_questions(self, client, provider):
        provider.responses.append('[{"question": "Walk me through a launch", "type": "behavioral"}]')

        response = client.post("/api/ai/questions", json={"role": "pm", "industry": "retail", "count": 1})

        body = response.json()
        assert body["provider"] == "gemini"
        assert body["data"][0]["question"] == "Walk me through a launch"

    def test_question_count_validated(self, client):
        response = client.post("/api/ai/questions", json={"role": "pm", "industry": "retail", "count": 50})

        assert response.status_code == 422

    def test_predictions_for_new_user(self, client):
        response = client.get("/api/analytics/nobody/predictions")

        assert response.json()["user_state"] == "new_user"


class TestQuizFlow:

    @pytest.fixture
    def attempt_id(self, client):
        assert client.post("/api/quizzes", json=QUIZ_PAYLOAD).status_code == 200
        response = client.post("/api/quizzes/quiz-api/attempts", json={"user_id": "user-1"})
        assert response.status_code == 200
        return response.json()["attempt_id"]

    def test_full_flow(self, client, attempt_id):
        questions = client.get(f"/api/attempts/{attempt_id}/questions").json()
        assert [q["id"] for q in questions] == ["q1", "q2"]
        assert "correct_answer" not in questions[0]

        answer = client.post(f"/api/attempts/{attempt_id}/answers", json={
            "question_id": "q2", "answer": "STAR", "time_spent": 8,
        })
        assert answer.json()["is_correct"] is True

        submitted = client.post(f"/api/attempts/{attempt_id}/submit")
        assert submitted.json()["state"] == "SUBMITTED"
        assert submitted.json()["passed"] is True

        results = client.get(f"/api/attempts/{attempt_id}/results").json()
        assert results["attempt"]["score"] == 3
        assert results["attempt"]["score_percentage"] == 60
        assert results["unanswered_questions"] == 1
        assert results["review"][1]["explanation"] == "STAR fits behavioral answers"

    def test_submit_with_batch(self, client, attempt_id):
        response = client.post(f"/api/attempts/{attempt_id}/submit", json={"responses": [
            {"question_id": "q1", "answer": "false"},
            {"question_id": "q2", "answer": "STAR"},
        ]})

        assert response.json()["score"] == 5

    def test_double_submit_conflicts(self, client, attempt_id):
        client.post(f"/api/attempts/{attempt_id}/submit")

        response = client.post(f"/api/attempts/{attempt_id}/submit")

        assert response.status_code == 409

    def test_attempts_exhausted_conflicts(self, client, attempt_id):
        response = client.post("/api/quizzes/quiz-api/attempts", json={"user_id": "user-1"})

        assert response.status_code == 409

    def test_results_before_submit_conflict(self, client, attempt_id):
        assert client.get(f"/api/attempts/{attempt_id}/results").status_code == 409

    def test_missing_attempt_not_found(self, client):
        assert client.get("/api/attempts/missing/results").status_code == 404

    def test_list_attempts(self, client, attempt_id):
        response = client.get("/api/quizzes/quiz-api/attempts", params={"user_id": "user-1"})

        assert [a["attempt_id"] for a in response.json()] == [attempt_id]

    def test_quiz_can_be_replaced_before_attempts(self, client):
        client.post("/api/quizzes", json=QUIZ_PAYLOAD)
        payload = {**QUIZ_PAYLOAD, "questions": QUIZ_PAYLOAD["questions"][:1]}

        response = client.post("/api/quizzes", json=payload)

        assert response.status_code == 200
        assert response.json()["total_questions"] == 1

    def test_quiz_with_attempts_cannot_be_replaced(self, client, attempt_id):
        client.post(f"/api/attempts/{attempt_id}/submit")
        payload = {**QUIZ_PAYLOAD, "questions": QUIZ_PAYLOAD["questions"][:1]}

        response = client.post("/api/quizzes", json=payload)

        assert response.status_code == 409
        results = client.get(f"/api/attempts/{attempt_id}/results")
        assert results.status_code == 200
        assert results.json()["total_questions"] == 2

    def test_zero_point_question_rejected(self, client):
        first = {**QUIZ_PAYLOAD["questions"][0], "points": 0}
        payload = {**QUIZ_PAYLOAD, "questions": [first, QUIZ_PAYLOAD["questions"][1]]}

        assert client.post("/api/quizzes", json=payload).status_code == 422

    def test_duplicate_question_ids_rejected(self, client):
        second = {**QUIZ_PAYLOAD["questions"][1], "id": "q1"}
        payload = {**QUIZ_PAYLOAD, "questions": [QUIZ_PAYLOAD["questions"][0], second]}

        response = client.post("/api/quizzes", json=payload)

        assert response.status_code == 422
        assert client.post("/api/quizzes/quiz-api/attempts", json={"user_id": "user-1"}).status_code == 404


class TestSessionFlow:

    def test_session_lifecycle(self, client):
        created = client.post("/api/sessions", json={"user_id": "user-1", "role": "pm"}).json()
        session_id = created["session_id"]
        assert created["status"] == "SCHEDULED"

        assert client.post(f"/api/sessions/{session_id}/start").json()["status"] == "IN_PROGRESS"

        live = client.post(f"/api/sessions/{session_id}/live", json={
            "question": "Why this company?", "transcript_chunk": "I admire", "speaking_duration": 3,
        })
        assert live.status_code == 200

        recorded = client.post(f"/api/sessions/{session_id}/responses", json={
            "question": "Why this company?",
            "transcript": " ".join(["word"] * 150),
            "duration_seconds": 60,
        }).json()
        assert recorded["metrics"]["words_per_minute"] == 150
        assert recorded["analysis"]["confidence"] == 75

        summary = client.post(f"/api/sessions/{session_id}/end").json()
        assert summary["total_responses"] == 1

        predictions = client.get("/api/analytics/user-1/predictions").json()
        assert predictions["user_state"] == "insufficient_data"

    def test_start_twice_conflicts(self, client):
        session_id = client.post("/api/sessions", json={"user_id": "user-1"}).json()["session_id"]
        client.post(f"/api/sessions/{session_id}/start")

        assert client.post(f"/api/sessions/{session_id}/start").status_code == 409

    def test_unknown_session_not_found(self, client):
        assert client.get("/api/sessions/nope").status_code == 404


class TestStatusMapping:

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (ValidationError("bad"), 400),
            (QuizNotFoundError("quiz-1"), 404),
            (AttemptAlreadySubmittedError("a-1"), 409),
            (ProviderRateLimitError("Gemini", retry_after=60), 429),
            (ParseError("garbled"), 500),
        ],
    )
    def test_status_for_error(self, error, status_code):
        assert status_for_error(error) == status_code
