"""
Unit tests for the provider response parser.
"""

import pytest

from prepcoach.core.exceptions import ParseError
from prepcoach.infra.llm.parser import (
    ProviderResponseParser,
    fallback_questions,
    fallback_tips,
    parse_coaching_tips,
    parse_follow_up,
    parse_generated_questions,
    parse_response_analysis,
)


class TestProviderResponseParser:
    """Test suite for JSON extraction and field coercion."""

    @pytest.fixture
    def parser(self):
        return ProviderResponseParser()

    # =========================================================================
    # Extraction Tests
    # =========================================================================

    def test_parses_fenced_json(self, parser):
        text = '```json\n{"confidence": 80}\n```'

        assert parser.parse_object(text) == {"confidence": 80}

    def test_parses_json_wrapped_in_prose(self, parser):
        text = 'Here is my analysis: {"clarity": 70, "pace": 65} Hope this helps!'

        assert parser.parse_object(text) == {"clarity": 70, "pace": 65}

    def test_parses_array(self, parser):
        assert parser.parse_array('Tips:\n```\n["a", "b"]\n```') == ["a", "b"]

    def test_missing_json_raises(self, parser):
        with pytest.raises(ParseError):
            parser.parse_object("I cannot help with that.")

    def test_invalid_json_raises(self, parser):
        with pytest.raises(ParseError):
            parser.parse_object("{confidence: eighty}")

    def test_object_where_array_expected_raises(self, parser):
        with pytest.raises(ParseError):
            parser.parse_array('{"tips": "none"}')

    # =========================================================================
    # Coercion Tests
    # =========================================================================

    @pytest.mark.parametrize(
        "value, expected",
        [
            (140, 100),
            (-5, 0),
            (82.5, 83),
            (0, 0),
            ("high", 75),
            (None, 75),
            (True, 75),
            (float("nan"), 75),
            (float("inf"), 75),
            (float("-inf"), 75),
        ],
    )
    def test_clamp_score(self, parser, value, expected):
        assert parser.clamp_score(value, default=75) == expected

    def test_coerce_list(self, parser):
        assert parser.coerce_list([1, "two"]) == ["1", "two"]
        assert parser.coerce_list("not a list") == []


class TestDomainParsers:

    def test_response_analysis_clamps_and_defaults(self):
        text = """```json
        {
            "confidence": 140,
            "clarity": -5,
            "keywordRelevance": "n/a",
            "suggestions": ["Add numbers"],
            "strengths": ["Clear"],
            "improvementAreas": ["Depth"]
        }
        ```"""

        analysis = parse_response_analysis(text)

        assert analysis.confidence == 100
        assert analysis.clarity == 0
        assert analysis.pace == 72
        assert analysis.keyword_relevance == 70
        assert analysis.suggestions == ["Add numbers"]
        assert analysis.improvement_areas == ["Depth"]

    def test_tips_are_capped_at_three(self):
        tips = parse_coaching_tips('["one", "two", "three", "four"]')

        assert tips == ["one", "two", "three"]

    def test_empty_tips_raise(self):
        with pytest.raises(ParseError):
            parse_coaching_tips("[]")

    def test_generated_questions(self):
        text = """[
            {"question": "Describe a rollout", "type": "behavioral",
             "expectedDuration": 5000, "hints": ["Be concrete"]},
            "not an object",
            {"question": "Design a cache", "type": "technical", "difficulty": "hard"}
        ]"""

        questions = parse_generated_questions(text, "backend-engineer", "fintech", "medium")

        assert len(questions) == 2
        first, second = questions
        assert first.expected_duration == 600
        assert first.difficulty == "medium"
        assert first.role == "backend-engineer"
        assert first.id.startswith("ai-") and first.id.endswith("-0")
        assert second.expected_duration == 120
        assert second.difficulty == "hard"
        assert second.id.endswith("-2")

    def test_short_duration_clamped_up(self):
        questions = parse_generated_questions(
            '[{"question": "Q", "expectedDuration": 5}]', "pm", "retail", "easy"
        )

        assert questions[0].expected_duration == 30

    def test_non_finite_numbers_use_defaults(self):
        analysis = parse_response_analysis(
            '{"confidence": NaN, "clarity": Infinity, "pace": -Infinity, "keywordRelevance": 64}'
        )

        assert (analysis.confidence, analysis.clarity, analysis.pace) == (75, 78, 72)
        assert analysis.keyword_relevance == 64

    def test_non_finite_duration_uses_default(self):
        questions = parse_generated_questions(
            '[{"question": "Q", "expectedDuration": NaN}, {"question": "R", "expectedDuration": Infinity}]',
            "pm", "retail", "easy",
        )

        assert [q.expected_duration for q in questions] == [120, 120]

    def test_no_usable_questions_raise(self):
        with pytest.raises(ParseError):
            parse_generated_questions('["just text"]', "pm", "retail", "easy")

    def test_follow_up_is_cleaned(self):
        assert parse_follow_up("```\nWhat was the outcome?\n```") == "What was the outcome?"

    def test_blank_follow_up_raises(self):
        with pytest.raises(ParseError):
            parse_follow_up("``` ```")


class TestFallbacks:

    def test_tips_mention_role(self):
        assert "data-analyst" in fallback_tips("data-analyst")[0]
        assert "your target role" in fallback_tips()[0]

    @pytest.mark.parametrize("count, expected", [(1, 1), (2, 2), (5, 2), (0, 0)])
    def test_questions_sliced_to_count(self, count, expected):
        assert len(fallback_questions("sre", "cloud", "medium", count)) == expected
