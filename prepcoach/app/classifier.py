"""
PrepCoach - Question Classifier.

Deterministic keyword heuristic that labels an interview question with a
type, a sub-category and a difficulty. Three independent passes run over
the same lower-cased text:

- Type: behavioral, then technical, then situational phrases; first match wins
- Category: secondary keyword table scoped to the matched type
- Difficulty: complex terms => hard, basic terms => easy, else medium
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from prepcoach.core.domain.models import Difficulty, QuestionContext, QuestionType
from prepcoach.core.exceptions import ValidationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifierRules:
    """Keyword tables used by QuestionClassifier."""

    behavioral_keywords: tuple[str, ...] = (
        "tell me about a time",
        "describe a situation",
        "give an example",
        "when did you",
        "how did you handle",
        "what would you do if",
    )
    technical_keywords: tuple[str, ...] = (
        "how would you",
        "what is",
        "explain",
        "implement",
        "code",
        "algorithm",
        "database",
        "api",
        "system design",
        "optimize",
        "debug",
    )
    situational_keywords: tuple[str, ...] = (
        "what if",
        "suppose",
        "imagine",
        "hypothetical",
        "scenario",
    )

    # Checked in order, first category with a matching keyword wins
    behavioral_categories: tuple[tuple[str, tuple[str, ...]], ...] = (
        ("conflict-resolution", ("conflict", "disagree")),
        ("leadership", ("lead", "team")),
        ("problem-solving", ("challenge", "difficult")),
        ("learning-from-failure", ("mistake", "failure")),
        ("time-management", ("deadline", "pressure")),
    )
    technical_categories: tuple[tuple[str, tuple[str, ...]], ...] = (
        ("frontend", ("react", "frontend")),
        ("backend", ("api", "backend")),
        ("database", ("database", "sql")),
        ("system-design", ("system", "architecture")),
        ("algorithms", ("algorithm", "complexity")),
    )
    behavioral_default: str = "general-behavioral"
    technical_default: str = "general-technical"
    situational_category: str = "problem-solving"
    general_category: str = "general"

    complex_terms: tuple[str, ...] = (
        "architecture",
        "scalability",
        "optimization",
        "distributed",
        "microservices",
    )
    basic_terms: tuple[str, ...] = ("what is", "define", "basic", "simple")


DEFAULT_CLASSIFIER_RULES = ClassifierRules()


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _first_category(
    text: str,
    table: tuple[tuple[str, tuple[str, ...]], ...],
    default: str,
) -> str:
    for category, keywords in table:
        if _contains_any(text, keywords):
            return category
    return default


class QuestionClassifier:
    """
    Pure text -> QuestionContext classifier.

    Usage:
        classifier = QuestionClassifier()
        context = classifier.classify("Tell me about a time you led a team")
        context.type       # QuestionType.BEHAVIORAL
        context.category   # "leadership"
    """

    def __init__(self, rules: ClassifierRules | None = None):
        self._rules = rules or DEFAULT_CLASSIFIER_RULES

    @property
    def rules(self) -> ClassifierRules:
        return self._rules

    def classify(
        self,
        question: str,
        role: str = "software-engineer",
        industry: str = "technology",
    ) -> QuestionContext:
        """
        Classify a question.

        Args:
            question: Raw question text
            role: Target role, passed through unchanged
            industry: Target industry, passed through unchanged

        Returns:
            QuestionContext for the question

        Raises:
            ValidationError: If the question text is empty
        """
        if not question or not question.strip():
            raise ValidationError("Question text is required")

        text = question.lower()
        question_type = self.classify_type(text)

        context = QuestionContext(
            type=question_type,
            category=self.categorize(text, question_type),
            difficulty=self.assess_difficulty(text),
            role=role,
            industry=industry,
        )
        logger.debug(
            f"Classified question as {context.type.value}/{context.category} "
            f"({context.difficulty.value})"
        )
        return context

    def classify_type(self, text: str) -> QuestionType:
        rules = self._rules
        if _contains_any(text, rules.behavioral_keywords):
            return QuestionType.BEHAVIORAL
        if _contains_any(text, rules.technical_keywords):
            return QuestionType.TECHNICAL
        if _contains_any(text, rules.situational_keywords):
            return QuestionType.SITUATIONAL
        return QuestionType.GENERAL

    def categorize(self, text: str, question_type: QuestionType) -> str:
        rules = self._rules
        if question_type == QuestionType.BEHAVIORAL:
            return _first_category(text, rules.behavioral_categories, rules.behavioral_default)
        if question_type == QuestionType.TECHNICAL:
            return _first_category(text, rules.technical_categories, rules.technical_default)
        if question_type == QuestionType.SITUATIONAL:
            return rules.situational_category
        return rules.general_category

    def assess_difficulty(self, text: str) -> Difficulty:
        if _contains_any(text, self._rules.complex_terms):
            return Difficulty.HARD
        if _contains_any(text, self._rules.basic_terms):
            return Difficulty.EASY
        return Difficulty.MEDIUM
