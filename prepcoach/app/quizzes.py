"""
PrepCoach - Quiz Grading Engine.

Attempt lifecycle for practice quizzes:

    NOT_STARTED -> IN_PROGRESS -> SUBMITTED (terminal)

- start:  enforce max attempts, snapshot the question order, create the attempt
- answer: grade one answer and upsert it by (attempt, question)
- submit: total the latest answers, decide pass/fail, lock the attempt

Operations on one attempt are serialized with a per-attempt lock that is
dropped once the attempt is submitted. Saving a quiz and the attempt-count
check in `start` share a per-quiz lock, and a quiz with attempts is frozen.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator

import numpy as np

from prepcoach.core.domain.models import (
    AttemptState,
    Question,
    Quiz,
    QuizAttempt,
    QuizQuestionType,
    QuizResponse,
    QuizResult,
    clamp_score,
)
from prepcoach.core.exceptions import (
    AttemptAlreadySubmittedError,
    AttemptNotFoundError,
    AttemptsExhaustedError,
    QuestionNotFoundError,
    QuizNotFoundError,
    StateError,
    ValidationError,
)
from prepcoach.infra.persistence.repository import Repository


logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Answer Normalization
# -----------------------------------------------------------------------------

def _to_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return value


def _to_selection(value: Any) -> frozenset[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(item).strip() for item in value)
    return frozenset([str(value).strip()])


def normalize_answer(question_type: QuizQuestionType, value: Any) -> Any:
    """
    Normalize an answer so that equality means "same answer".

    Args:
        question_type: Type of the question being answered
        value: Raw answer (or the stored correct answer)

    Returns:
        Comparable representation of the answer
    """
    if value is None:
        return None
    if question_type == QuizQuestionType.TRUE_FALSE:
        return _to_bool(value)
    if question_type == QuizQuestionType.MULTIPLE_SELECT:
        return _to_selection(value)
    if question_type == QuizQuestionType.SHORT_ANSWER:
        return str(value).strip().lower()
    return str(value).strip()


def is_correct_answer(question: Question, answer: Any) -> bool:
    given = normalize_answer(question.type, answer)
    if given is None:
        return False
    return given == normalize_answer(question.type, question.correct_answer)


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

class QuizGradingEngine:
    """
    Grades quiz attempts against a repository.

    Usage:
        engine = QuizGradingEngine(repository)
        attempt = engine.start("user-1", "quiz-1")
        engine.answer(attempt.id, "q1", "B")
        attempt = engine.submit(attempt.id)
        attempt.passed
    """

    def __init__(self, repository: Repository, rng: np.random.Generator | None = None):
        self._repository = repository
        self._rng = rng or np.random.default_rng()
        self._registry_lock = threading.Lock()
        self._attempt_locks: dict[str, threading.Lock] = {}
        self._quiz_locks: dict[str, threading.Lock] = {}

    def _attempt_lock(self, attempt_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._attempt_locks.setdefault(attempt_id, threading.Lock())

    def _quiz_lock(self, quiz_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._quiz_locks.setdefault(quiz_id, threading.Lock())

    @contextmanager
    def _locked_attempt(self, attempt_id: str) -> Iterator[QuizAttempt]:
        """Hold the attempt's lock, dropping it once the attempt is missing or submitted."""
        attempt = None
        try:
            with self._attempt_lock(attempt_id):
                attempt = self._get_attempt(attempt_id)
                yield attempt
        finally:
            # submitted attempts reject every later write
            if attempt is None or attempt.is_submitted:
                with self._registry_lock:
                    self._attempt_locks.pop(attempt_id, None)

    @property
    def tracked_attempts(self) -> int:
        """Number of attempts currently holding a lock."""
        with self._registry_lock:
            return len(self._attempt_locks)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._repository.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def _get_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self._repository.get_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(attempt_id)
        return attempt

    def order_questions(self, quiz: Quiz) -> list[Question]:
        """Question snapshot for a new attempt: shuffled or by order_index."""
        if quiz.is_randomized:
            order = self._rng.permutation(len(quiz.questions))
            return [quiz.questions[int(i)] for i in order]
        return sorted(quiz.questions, key=lambda q: q.order_index)

    def get_attempt_questions(self, attempt_id: str) -> list[Question]:
        """Questions of an attempt in the order they were presented."""
        attempt = self._get_attempt(attempt_id)
        quiz = self._get_quiz(attempt.quiz_id)
        return [quiz.get_question(qid) for qid in attempt.question_ids]

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    def save_quiz(self, quiz: Quiz) -> Quiz:
        """
        Create or replace a quiz definition.

        Raises:
            ValidationError: If question ids repeat or a question is worth no points
            StateError: If attempts already reference the quiz
        """
        if not quiz.questions:
            raise ValidationError("Quiz has no questions", details=quiz.id)
        seen: set[str] = set()
        for question in quiz.questions:
            if question.id in seen:
                raise ValidationError("Duplicate question id", details=question.id)
            if question.points <= 0:
                raise ValidationError("Question points must be positive", details=question.id)
            seen.add(question.id)

        with self._quiz_lock(quiz.id):
            if self._repository.has_attempts(quiz.id):
                raise StateError("Quiz has attempts and cannot be changed", details=quiz.id)
            self._repository.save_quiz(quiz)

        logger.info(f"🗂️ Quiz {quiz.id} saved with {len(quiz.questions)} questions")
        return quiz

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, user_id: str, quiz_id: str) -> QuizAttempt:
        """
        Start a new attempt.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            ValidationError: If the quiz has no questions
            AttemptsExhaustedError: If max attempts have been used
        """
        self._get_quiz(quiz_id)  # unknown quizzes never get a lock
        with self._quiz_lock(quiz_id):
            quiz = self._get_quiz(quiz_id)
            if not quiz.questions:
                raise ValidationError("Quiz has no questions", details=quiz_id)

            prior = self._repository.count_attempts(user_id, quiz_id)
            if prior >= quiz.max_attempts:
                raise AttemptsExhaustedError(quiz_id, quiz.max_attempts)

            questions = self.order_questions(quiz)
            attempt = QuizAttempt(
                id=str(uuid.uuid4()),
                user_id=user_id,
                quiz_id=quiz_id,
                attempt_number=prior + 1,
                max_score=sum(q.points for q in questions),
                question_ids=tuple(q.id for q in questions),
                state=AttemptState.IN_PROGRESS,
                started_at=datetime.now(),
            )
            self._repository.create_attempt(attempt)

        logger.info(
            f"📝 Attempt {attempt.attempt_number}/{quiz.max_attempts} started "
            f"for quiz {quiz_id} by {user_id}"
        )
        return attempt

    def answer(
        self,
        attempt_id: str,
        question_id: str,
        answer: Any,
        time_spent: int = 0,
    ) -> QuizResponse:
        """
        Grade and store an answer, replacing any earlier answer to the question.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            AttemptAlreadySubmittedError: If the attempt is submitted
            QuestionNotFoundError: If the question is not part of the attempt
        """
        with self._locked_attempt(attempt_id) as attempt:
            return self._answer_locked(attempt, question_id, answer, time_spent)

    def _answer_locked(
        self,
        attempt: QuizAttempt,
        question_id: str,
        answer: Any,
        time_spent: int,
    ) -> QuizResponse:
        if attempt.is_submitted:
            raise AttemptAlreadySubmittedError(attempt.id)
        if question_id not in attempt.question_ids:
            raise QuestionNotFoundError(question_id)

        quiz = self._get_quiz(attempt.quiz_id)
        question = quiz.get_question(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)

        correct = is_correct_answer(question, answer)
        response = QuizResponse(
            attempt_id=attempt.id,
            question_id=question_id,
            answer=answer,
            is_correct=correct,
            points_earned=question.points if correct else 0,
            time_spent=max(0, int(time_spent or 0)),
        )
        self._repository.upsert_response(response)
        return response

    def submit(self, attempt_id: str) -> QuizAttempt:
        """
        Score and close an attempt. A second submit raises.

        Raises:
            AttemptNotFoundError: If the attempt does not exist
            AttemptAlreadySubmittedError: If the attempt is already submitted
        """
        with self._locked_attempt(attempt_id) as attempt:
            return self._submit_locked(attempt)

    def _submit_locked(self, attempt: QuizAttempt) -> QuizAttempt:
        if attempt.is_submitted:
            raise AttemptAlreadySubmittedError(attempt.id)

        quiz = self._get_quiz(attempt.quiz_id)
        responses = self._repository.list_responses(attempt.id)

        attempt.score = sum(r.points_earned for r in responses)
        attempt.passed = attempt.score >= quiz.passing_score
        attempt.time_spent = sum(r.time_spent for r in responses)
        attempt.state = AttemptState.SUBMITTED
        attempt.completed_at = datetime.now()
        self._repository.update_attempt(attempt)

        logger.info(
            f"✅ Attempt {attempt.id} submitted: {attempt.score}/{attempt.max_score} "
            f"({'passed' if attempt.passed else 'failed'})"
        )
        return attempt

    def submit_all(
        self,
        attempt_id: str,
        responses: Iterable[dict[str, Any]],
    ) -> QuizAttempt:
        """
        Store a batch of answers and submit in one step.

        Args:
            attempt_id: Attempt to submit
            responses: Items with "question_id", "answer" and optional "time_spent"
        """
        with self._locked_attempt(attempt_id) as attempt:
            for item in responses:
                self._answer_locked(
                    attempt,
                    item["question_id"],
                    item.get("answer"),
                    item.get("time_spent", 0),
                )
            return self._submit_locked(attempt)

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def get_results(self, attempt_id: str) -> QuizResult:
        attempt = self._get_attempt(attempt_id)
        if not attempt.is_submitted:
            raise StateError("Quiz attempt not submitted", details=attempt_id)

        quiz = self._get_quiz(attempt.quiz_id)
        responses = {r.question_id: r for r in self._repository.list_responses(attempt_id)}

        total = len(attempt.question_ids)
        correct = sum(1 for r in responses.values() if r.is_correct)
        answered = sum(1 for qid in attempt.question_ids if qid in responses)

        review = None
        if quiz.allow_review:
            review = []
            for qid in attempt.question_ids:
                question = quiz.get_question(qid)
                response = responses.get(qid)
                review.append({
                    "question_id": qid,
                    "question": question.text,
                    "your_answer": response.answer if response else None,
                    "correct_answer": question.correct_answer,
                    "is_correct": response.is_correct if response else False,
                    "points_earned": response.points_earned if response else 0,
                    "points": question.points,
                    "explanation": question.explanation,
                })

        return QuizResult(
            attempt=attempt,
            score_percentage=(
                clamp_score(attempt.score / attempt.max_score * 100) if attempt.max_score else 0
            ),
            total_questions=total,
            correct_answers=correct,
            incorrect_answers=answered - correct,
            unanswered_questions=total - answered,
            review=review,
        )

    def list_attempts(self, user_id: str, quiz_id: str) -> list[QuizAttempt]:
        return self._repository.list_attempts(user_id, quiz_id)
