"""
PrepCoach - Repository.

Persistence collaborator for session history, quizzes, attempts,
responses and interview sessions.

Two stores share one interface:
- InMemoryRepository: process-local dictionaries guarded by an RLock
- JsonRepository: same, plus the whole store is written to a single
  JSON file after every mutation (atomic temp-file-then-rename)

Usage:
    repo = create_repository()

    repo.add_snapshot(snapshot)
    history = repo.get_history("user-1", since=datetime.now() - timedelta(days=30))

    attempt = repo.create_attempt(attempt)
    repo.upsert_response(response)
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from prepcoach.core.config import get_settings
from prepcoach.core.domain.models import (
    AttemptState,
    Difficulty,
    InterviewResponse,
    InterviewSession,
    Question,
    QuestionContext,
    QuestionType,
    Quiz,
    QuizAttempt,
    QuizQuestionType,
    QuizResponse,
    ResponseAnalysis,
    SessionMetricSnapshot,
    SessionStatus,
    SpeechMetrics,
)

logger = logging.getLogger(__name__)


class Repository(ABC):
    """CRUD surface consumed by the analytics, quiz and session components."""

    # Session history ---------------------------------------------------------

    @abstractmethod
    def add_snapshot(self, snapshot: SessionMetricSnapshot) -> None: ...

    @abstractmethod
    def get_history(self, user_id: str, since: datetime | None = None) -> list[SessionMetricSnapshot]:
        """Snapshots for a user at or after `since`, oldest first."""

    # Quizzes -----------------------------------------------------------------

    @abstractmethod
    def save_quiz(self, quiz: Quiz) -> None: ...

    @abstractmethod
    def get_quiz(self, quiz_id: str) -> Quiz | None: ...

    @abstractmethod
    def count_attempts(self, user_id: str, quiz_id: str) -> int: ...

    @abstractmethod
    def has_attempts(self, quiz_id: str) -> bool:
        """True if any user has started the quiz."""

    @abstractmethod
    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt: ...

    @abstractmethod
    def get_attempt(self, attempt_id: str) -> QuizAttempt | None: ...

    @abstractmethod
    def update_attempt(self, attempt: QuizAttempt) -> None: ...

    @abstractmethod
    def list_attempts(self, user_id: str, quiz_id: str) -> list[QuizAttempt]: ...

    @abstractmethod
    def upsert_response(self, response: QuizResponse) -> None:
        """Insert or replace the response keyed by (attempt_id, question_id)."""

    @abstractmethod
    def list_responses(self, attempt_id: str) -> list[QuizResponse]: ...

    # Interview sessions ------------------------------------------------------

    @abstractmethod
    def save_session(self, session: InterviewSession) -> None: ...

    @abstractmethod
    def get_session(self, session_id: str) -> InterviewSession | None: ...


class InMemoryRepository(Repository):
    """Thread-safe dictionary-backed repository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._snapshots: dict[str, list[SessionMetricSnapshot]] = {}
        self._quizzes: dict[str, Quiz] = {}
        self._attempts: dict[str, QuizAttempt] = {}
        # attempt_id -> question_id -> response (insertion ordered)
        self._responses: dict[str, dict[str, QuizResponse]] = {}
        self._sessions: dict[str, InterviewSession] = {}

    def _changed(self) -> None:
        """Hook invoked after every mutation."""

    def add_snapshot(self, snapshot: SessionMetricSnapshot) -> None:
        with self._lock:
            self._snapshots.setdefault(snapshot.user_id, []).append(snapshot)
            self._changed()

    def get_history(self, user_id: str, since: datetime | None = None) -> list[SessionMetricSnapshot]:
        with self._lock:
            snapshots = list(self._snapshots.get(user_id, []))
        if since is not None:
            snapshots = [s for s in snapshots if s.timestamp >= since]
        return sorted(snapshots, key=lambda s: s.timestamp)

    def save_quiz(self, quiz: Quiz) -> None:
        with self._lock:
            self._quizzes[quiz.id] = quiz
            self._changed()

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        with self._lock:
            return self._quizzes.get(quiz_id)

    def count_attempts(self, user_id: str, quiz_id: str) -> int:
        return len(self.list_attempts(user_id, quiz_id))

    def has_attempts(self, quiz_id: str) -> bool:
        with self._lock:
            return any(a.quiz_id == quiz_id for a in self._attempts.values())

    def create_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        with self._lock:
            self._attempts[attempt.id] = replace(attempt)
            self._changed()
        return attempt

    def get_attempt(self, attempt_id: str) -> QuizAttempt | None:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            return replace(attempt) if attempt else None

    def update_attempt(self, attempt: QuizAttempt) -> None:
        with self._lock:
            self._attempts[attempt.id] = replace(attempt)
            self._changed()

    def list_attempts(self, user_id: str, quiz_id: str) -> list[QuizAttempt]:
        with self._lock:
            attempts = [
                replace(a) for a in self._attempts.values()
                if a.user_id == user_id and a.quiz_id == quiz_id
            ]
        return sorted(attempts, key=lambda a: a.attempt_number)

    def upsert_response(self, response: QuizResponse) -> None:
        with self._lock:
            self._responses.setdefault(response.attempt_id, {})[response.question_id] = response
            self._changed()

    def list_responses(self, attempt_id: str) -> list[QuizResponse]:
        with self._lock:
            return list(self._responses.get(attempt_id, {}).values())

    def save_session(self, session: InterviewSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session
            self._changed()

    def get_session(self, session_id: str) -> InterviewSession | None:
        with self._lock:
            return self._sessions.get(session_id)


class JsonRepository(InMemoryRepository):
    """
    In-memory repository mirrored to a single JSON file.

    The file is loaded once at construction and rewritten after each
    mutation using the atomic write pattern.
    """

    def __init__(self, data_file: str = "data/prepcoach.json"):
        super().__init__()
        self._path = Path(data_file)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if self._path.exists():
            self._load()
        logger.info(f"JSON repository initialized at: {self._path}")

    def _changed(self) -> None:
        data = self._store_to_dict()
        temp_path = self._path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)

            temp_path.replace(self._path)

        except OSError as e:
            logger.error(f"Failed to write repository file {self._path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _load(self) -> None:
        with open(self._path, "r", encoding="utf-8") as f:
            data = json.load(f)

        for item in data.get("snapshots", []):
            snapshot = _dict_to_snapshot(item)
            self._snapshots.setdefault(snapshot.user_id, []).append(snapshot)
        for item in data.get("quizzes", []):
            quiz = _dict_to_quiz(item)
            self._quizzes[quiz.id] = quiz
        for item in data.get("attempts", []):
            attempt = _dict_to_attempt(item)
            self._attempts[attempt.id] = attempt
        for item in data.get("responses", []):
            response = QuizResponse(**item)
            self._responses.setdefault(response.attempt_id, {})[response.question_id] = response
        for item in data.get("sessions", []):
            session = _dict_to_session(item)
            self._sessions[session.session_id] = session

        logger.info(
            f"Loaded repository from disk ({len(self._attempts)} attempts, "
            f"{len(self._sessions)} sessions)"
        )

    def _store_to_dict(self) -> dict[str, Any]:
        return {
            "version": 1,
            "snapshots": [
                _snapshot_to_dict(s) for snapshots in self._snapshots.values() for s in snapshots
            ],
            "quizzes": [_quiz_to_dict(q) for q in self._quizzes.values()],
            "attempts": [_attempt_to_dict(a) for a in self._attempts.values()],
            "responses": [
                {
                    "attempt_id": r.attempt_id,
                    "question_id": r.question_id,
                    "answer": r.answer,
                    "is_correct": r.is_correct,
                    "points_earned": r.points_earned,
                    "time_spent": r.time_spent,
                }
                for responses in self._responses.values()
                for r in responses.values()
            ],
            "sessions": [_session_to_dict(s) for s in self._sessions.values()],
        }


def create_repository() -> Repository:
    """Build the repository selected by PERSISTENCE_BACKEND."""
    settings = get_settings()
    if settings.PERSISTENCE_BACKEND == "json":
        return JsonRepository(settings.DATA_FILE)
    return InMemoryRepository()


# -------------------------------------------------------------------------
# Serialization Helpers
# -------------------------------------------------------------------------

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _snapshot_to_dict(snapshot: SessionMetricSnapshot) -> dict:
    return {
        "timestamp": snapshot.timestamp.isoformat(),
        "overall_score": snapshot.overall_score,
        "confidence_level": snapshot.confidence_level,
        "clarity_score": snapshot.clarity_score,
        "words_per_minute": snapshot.words_per_minute,
        "user_id": snapshot.user_id,
        "session_id": snapshot.session_id,
    }


def _dict_to_snapshot(data: dict) -> SessionMetricSnapshot:
    return SessionMetricSnapshot(
        timestamp=datetime.fromisoformat(data["timestamp"]),
        overall_score=data.get("overall_score", 0),
        confidence_level=data.get("confidence_level", 0),
        clarity_score=data.get("clarity_score", 0),
        words_per_minute=data.get("words_per_minute", 0),
        user_id=data.get("user_id", ""),
        session_id=data.get("session_id"),
    )


def _quiz_to_dict(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "max_attempts": quiz.max_attempts,
        "passing_score": quiz.passing_score,
        "is_randomized": quiz.is_randomized,
        "show_results": quiz.show_results,
        "allow_review": quiz.allow_review,
        "questions": [
            {
                "id": q.id,
                "text": q.text,
                "type": q.type.value,
                "correct_answer": q.correct_answer,
                "points": q.points,
                "order_index": q.order_index,
                "options": list(q.options) if q.options is not None else None,
                "explanation": q.explanation,
            }
            for q in quiz.questions
        ],
    }


def _dict_to_quiz(data: dict) -> Quiz:
    questions = tuple(
        Question(
            id=q["id"],
            text=q["text"],
            type=QuizQuestionType(q["type"]),
            correct_answer=q["correct_answer"],
            points=q.get("points", 1),
            order_index=q.get("order_index", 0),
            options=tuple(q["options"]) if q.get("options") is not None else None,
            explanation=q.get("explanation"),
        )
        for q in data.get("questions", [])
    )
    return Quiz(
        id=data["id"],
        title=data.get("title", ""),
        questions=questions,
        max_attempts=data.get("max_attempts", 3),
        passing_score=data.get("passing_score", 70),
        is_randomized=data.get("is_randomized", False),
        show_results=data.get("show_results", True),
        allow_review=data.get("allow_review", True),
    )


def _attempt_to_dict(attempt: QuizAttempt) -> dict:
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "quiz_id": attempt.quiz_id,
        "attempt_number": attempt.attempt_number,
        "max_score": attempt.max_score,
        "question_ids": list(attempt.question_ids),
        "state": attempt.state.value,
        "score": attempt.score,
        "passed": attempt.passed,
        "time_spent": attempt.time_spent,
        "started_at": _iso(attempt.started_at),
        "completed_at": _iso(attempt.completed_at),
    }


def _dict_to_attempt(data: dict) -> QuizAttempt:
    return QuizAttempt(
        id=data["id"],
        user_id=data["user_id"],
        quiz_id=data["quiz_id"],
        attempt_number=data["attempt_number"],
        max_score=data.get("max_score", 0),
        question_ids=tuple(data.get("question_ids", [])),
        state=AttemptState(data.get("state", AttemptState.IN_PROGRESS.value)),
        score=data.get("score", 0),
        passed=data.get("passed", False),
        time_spent=data.get("time_spent", 0),
        started_at=_parse_iso(data.get("started_at")) or datetime.now(),
        completed_at=_parse_iso(data.get("completed_at")),
    )


def _session_to_dict(session: InterviewSession) -> dict:
    return {
        "session_id": session.session_id,
        "user_id": session.user_id,
        "role": session.role,
        "industry": session.industry,
        "status": session.status.value,
        "live_transcript": list(session.live_transcript),
        "started_at": _iso(session.started_at),
        "ended_at": _iso(session.ended_at),
        "overall_score": session.overall_score,
        "responses": [
            {
                "question": r.question,
                "transcript": r.transcript,
                "duration_seconds": r.duration_seconds,
                "metrics": r.metrics.to_dict(),
                "context": r.context.to_dict(),
                "score": r.score,
                "analysis": r.analysis.to_dict() if r.analysis else None,
                "timestamp": r.timestamp.isoformat(),
            }
            for r in session.responses
        ],
    }


def _dict_to_session(data: dict) -> InterviewSession:
    session = InterviewSession(
        session_id=data["session_id"],
        user_id=data["user_id"],
        role=data.get("role", "software-engineer"),
        industry=data.get("industry", "technology"),
        status=SessionStatus(data.get("status", SessionStatus.SCHEDULED.value)),
        live_transcript=list(data.get("live_transcript", [])),
        started_at=_parse_iso(data.get("started_at")),
        ended_at=_parse_iso(data.get("ended_at")),
        overall_score=data.get("overall_score"),
    )

    for item in data.get("responses", []):
        metrics = dict(item["metrics"])
        metrics["suggestions"] = tuple(metrics.get("suggestions", ()))
        context = item["context"]
        analysis = item.get("analysis")

        session.responses.append(
            InterviewResponse(
                question=item["question"],
                transcript=item["transcript"],
                duration_seconds=item.get("duration_seconds", 0),
                metrics=SpeechMetrics(**metrics),
                context=QuestionContext(
                    type=QuestionType(context["type"]),
                    category=context["category"],
                    difficulty=Difficulty(context["difficulty"]),
                    role=context.get("role", session.role),
                    industry=context.get("industry", session.industry),
                ),
                score=item.get("score", 0),
                analysis=ResponseAnalysis(**analysis) if analysis else None,
                timestamp=_parse_iso(item.get("timestamp")) or datetime.now(),
            )
        )

    return session
