"""
Pytest configuration and fixtures for PrepCoach tests.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest


# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prepcoach.core.domain.models import (  # noqa: E402
    Question,
    Quiz,
    QuizQuestionType,
    SessionMetricSnapshot,
)
from prepcoach.core.exceptions import ProviderResponseError  # noqa: E402
from prepcoach.infra.persistence.repository import InMemoryRepository  # noqa: E402


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0)


class FakeTextProvider:
    """Text provider that replays canned responses or raises."""

    name = "gemini"

    def __init__(self, responses=None, error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str, temperature: float = 0.7, max_tokens: int = 1024) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            raise ProviderResponseError("No canned response left")
        return self.responses.pop(0)


@pytest.fixture(scope="session")
def project_root_path():
    """Return the project root directory."""
    return project_root


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def make_snapshot():
    """Factory for history snapshots, `days_ago` relative to FIXED_NOW."""
    def _make(
        overall_score: int,
        days_ago: float = 0,
        confidence_level: int = 80,
        clarity_score: int = 80,
        words_per_minute: int = 150,
        user_id: str = "user-1",
    ) -> SessionMetricSnapshot:
        return SessionMetricSnapshot(
            timestamp=FIXED_NOW - timedelta(days=days_ago),
            overall_score=overall_score,
            confidence_level=confidence_level,
            clarity_score=clarity_score,
            words_per_minute=words_per_minute,
            user_id=user_id,
        )
    return _make


@pytest.fixture
def sample_quiz():
    """Four-question quiz worth 10 points, one of each type."""
    return Quiz(
        id="quiz-1",
        title="Interview Fundamentals",
        questions=(
            Question(
                id="q1",
                text="Which framework suits behavioral questions?",
                type=QuizQuestionType.MULTIPLE_CHOICE,
                correct_answer="B",
                points=5,
                order_index=0,
                options=("A", "B", "C"),
                explanation="STAR is option B",
            ),
            Question(
                id="q2",
                text="Filler words lower clarity.",
                type=QuizQuestionType.TRUE_FALSE,
                correct_answer=True,
                points=2,
                order_index=1,
            ),
            Question(
                id="q3",
                text="Select the STAR components.",
                type=QuizQuestionType.MULTIPLE_SELECT,
                correct_answer=["Situation", "Task", "Action", "Result"],
                points=2,
                order_index=2,
            ),
            Question(
                id="q4",
                text="Name the ideal speaking pace unit.",
                type=QuizQuestionType.SHORT_ANSWER,
                correct_answer="WPM",
                points=1,
                order_index=3,
            ),
        ),
        max_attempts=2,
        passing_score=7,
    )


@pytest.fixture
def fake_provider_factory():
    return FakeTextProvider
