"""
PrepCoach - Provider Response Parser.

Turns free-form provider text into validated domain payloads.

The provider is asked for bare JSON but often wraps it in Markdown
fences or adds prose around it. Parsing:
1. Strip ```json / ``` fences and stray backticks
2. Cut from the first '{' to the last '}' (or '[' ... ']' for arrays)
3. json.loads the candidate
4. Clamp numeric fields, coerce list fields

Any failure raises ParseError; callers swap in the fallback payloads
defined at the bottom of this module.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
from typing import Any

from prepcoach.core.domain.models import GeneratedQuestion, ResponseAnalysis, round_half_up
from prepcoach.core.exceptions import ParseError

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = "fallback"

_FENCE_PATTERN = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
_EDGE_BACKTICKS = re.compile(r"^`+|`+$")


class ProviderResponseParser:
    """
    Low-level JSON extraction and field coercion.

    Usage:
        parser = ProviderResponseParser()
        data = parser.parse_object('```json\\n{"confidence": 140}\\n```')
        parser.clamp_score(data["confidence"], default=75)   # 100
    """

    def clean(self, text: str) -> str:
        cleaned = _FENCE_PATTERN.sub("", text or "")
        return _EDGE_BACKTICKS.sub("", cleaned.strip()).strip()

    def extract(self, text: str, opener: str, closer: str) -> str:
        cleaned = self.clean(text)
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start == -1 or end == -1 or end < start:
            raise ParseError(f"No JSON {opener}{closer} found in response", details=cleaned[:120])
        return cleaned[start:end + 1]

    def _loads(self, candidate: str) -> Any:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            raise ParseError("Invalid JSON in response", details=str(e)) from e

    def parse_object(self, text: str) -> dict[str, Any]:
        data = self._loads(self.extract(text, "{", "}"))
        if not isinstance(data, dict):
            raise ParseError("Expected a JSON object")
        return data

    def parse_array(self, text: str) -> list[Any]:
        data = self._loads(self.extract(text, "[", "]"))
        if not isinstance(data, list):
            raise ParseError("Expected a JSON array")
        return data

    @staticmethod
    def clamp_score(value: Any, default: int, low: int = 0, high: int = 100) -> int:
        """Clamp a provider number into [low, high]; non-numbers and NaN/Infinity use the default."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return default
        if not math.isfinite(value):
            return default
        return int(max(low, min(high, round_half_up(value))))

    @staticmethod
    def coerce_list(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


# -----------------------------------------------------------------------------
# Domain Parsers
# -----------------------------------------------------------------------------

_parser = ProviderResponseParser()


def parse_response_analysis(text: str) -> ResponseAnalysis:
    data = _parser.parse_object(text)
    defaults = FALLBACK_ANALYSIS
    return ResponseAnalysis(
        confidence=_parser.clamp_score(data.get("confidence"), defaults.confidence),
        clarity=_parser.clamp_score(data.get("clarity"), defaults.clarity),
        pace=_parser.clamp_score(data.get("pace"), defaults.pace),
        keyword_relevance=_parser.clamp_score(
            data.get("keywordRelevance", data.get("keyword_relevance")),
            defaults.keyword_relevance,
        ),
        suggestions=_parser.coerce_list(data.get("suggestions")),
        strengths=_parser.coerce_list(data.get("strengths")),
        improvement_areas=_parser.coerce_list(
            data.get("improvementAreas", data.get("improvement_areas"))
        ),
    )


def parse_coaching_tips(text: str) -> list[str]:
    tips = [str(tip) for tip in _parser.parse_array(text)[:3]]
    if not tips:
        raise ParseError("No coaching tips in response")
    return tips


def parse_generated_questions(
    text: str,
    role: str,
    industry: str,
    difficulty: str,
) -> list[GeneratedQuestion]:
    items = _parser.parse_array(text)
    stamp = int(time.time() * 1000)

    questions = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        questions.append(
            GeneratedQuestion(
                id=f"ai-{stamp}-{index}",
                question=str(item.get("question") or "Sample interview question"),
                type=str(item.get("type") or "behavioral"),
                difficulty=str(item.get("difficulty") or difficulty),
                expected_duration=_parser.clamp_score(
                    item.get("expectedDuration", item.get("expected_duration")),
                    default=120,
                    low=30,
                    high=600,
                ),
                role=role,
                industry=industry,
                hints=_parser.coerce_list(item.get("hints")),
                tags=_parser.coerce_list(item.get("tags")),
                follow_up_questions=_parser.coerce_list(
                    item.get("followUpQuestions", item.get("follow_up_questions"))
                ),
            )
        )

    if not questions:
        raise ParseError("No questions in response")
    return questions


def parse_follow_up(text: str) -> str:
    question = _parser.clean(text)
    if not question:
        raise ParseError("Empty follow-up question")
    return question


# -----------------------------------------------------------------------------
# Fallback Payloads
# -----------------------------------------------------------------------------

FALLBACK_ANALYSIS = ResponseAnalysis(
    confidence=75,
    clarity=78,
    pace=72,
    keyword_relevance=70,
    suggestions=[
        "Provide more specific examples from your experience",
        "Use quantifiable results to strengthen your answer",
        "Structure your response using the STAR method",
    ],
    strengths=["Clear communication", "Professional tone"],
    improvement_areas=["Add specific metrics", "Include more details"],
)

FALLBACK_FOLLOW_UP = "Can you elaborate on that with a specific example?"


def fallback_tips(role: str | None = None) -> list[str]:
    return [
        f"Mention specific achievements related to {role or 'your target role'}",
        "Use the STAR method to structure your response",
        "Include quantifiable results and metrics",
    ]


def fallback_questions(
    role: str,
    industry: str,
    difficulty: str,
    count: int,
) -> list[GeneratedQuestion]:
    questions = [
        GeneratedQuestion(
            id="fallback-1",
            question=f"Tell me about yourself and why you're interested in a {role} position.",
            type="behavioral",
            difficulty=difficulty,
            expected_duration=120,
            role=role,
            industry=industry,
            hints=[
                "Start with your professional background",
                "Connect your experience to this specific role",
                "End with your career goals",
            ],
            tags=["introduction", "motivation", "career-goals"],
            follow_up_questions=["What specific skills make you a good fit for this role?"],
        ),
        GeneratedQuestion(
            id="fallback-2",
            question=(
                f"Describe a challenging project you worked on in {industry}. "
                "How did you handle it?"
            ),
            type="situational",
            difficulty=difficulty,
            expected_duration=180,
            role=role,
            industry=industry,
            hints=[
                "Use the STAR method (Situation, Task, Action, Result)",
                "Focus on your problem-solving process",
                "Highlight specific skills you used",
            ],
            tags=["problem-solving", "industry-specific", "challenges"],
            follow_up_questions=["What would you do differently if faced with a similar situation?"],
        ),
    ]
    return questions[:max(0, count)]
