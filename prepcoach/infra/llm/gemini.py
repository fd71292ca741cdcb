"""
PrepCoach - Gemini Text Provider.

Wraps Google Gemini as a plain prompt -> text provider and builds the
AI coaching service on top of it.

Every provider-backed coaching call follows the same contract: on any
provider or parse failure it logs and returns a fixed fallback payload
tagged provider="fallback" instead of raising.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import google.generativeai as genai
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from prepcoach.app.coaching import SpeechMetricsAnalyzer
from prepcoach.core.config import get_settings
from prepcoach.core.domain.models import ProviderResult
from prepcoach.core.exceptions import (
    MissingAPIKeyError,
    ParseError,
    ProviderConnectionError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from prepcoach.core.prompts import (
    COACHING_TIPS_PROMPT,
    FOLLOW_UP_PROMPT,
    QUESTION_GENERATION_PROMPT,
    RESPONSE_ANALYSIS_PROMPT,
)
from prepcoach.infra.llm.parser import (
    FALLBACK_ANALYSIS,
    FALLBACK_FOLLOW_UP,
    FALLBACK_PROVIDER,
    fallback_questions,
    fallback_tips,
    parse_coaching_tips,
    parse_follow_up,
    parse_generated_questions,
    parse_response_analysis,
)

logger = logging.getLogger(__name__)

# Failures that are recovered with a fallback payload
RECOVERABLE_ERRORS = (ProviderError, ParseError, MissingAPIKeyError)


class TextProvider(Protocol):
    """Anything that turns a prompt into free-form text."""

    name: str

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> str: ...


class GeminiTextProvider:
    """
    Gemini-backed text provider.

    The client is configured lazily so the app can boot without a key;
    calls then fail with MissingAPIKeyError and callers fall back.
    """

    name = "gemini"

    def __init__(self, api_key: str | None = None, model_name: str | None = None):
        settings = get_settings()
        self._api_key = api_key or settings.GEMINI_API_KEY
        self._model_name = model_name or settings.GEMINI_MODEL
        self._model = None

    def _configure(self) -> None:
        """Configure the Gemini API client (lazy initialization)."""
        if self._model is not None:
            return

        if not self._api_key:
            raise MissingAPIKeyError("GEMINI_API_KEY")

        genai.configure(api_key=self._api_key)
        self._model = genai.GenerativeModel(self._model_name)
        logger.info(f"✅ Gemini API configured ({self._model_name})")

    @retry(
        retry=retry_if_exception_type(ProviderRateLimitError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> str:
        """Send a prompt to Gemini and return the response text."""
        self._configure()

        try:
            generation_config = genai.GenerationConfig(
                temperature=temperature,
                top_k=40,
                top_p=0.95,
                max_output_tokens=max_tokens,
            )

            response = await self._model.generate_content_async(
                prompt,
                generation_config=generation_config,
            )

            if not response.text:
                raise ProviderResponseError("Empty response from Gemini")

            return response.text.strip()

        except genai.types.BlockedPromptException as e:
            logger.warning(f"Prompt blocked: {e}")
            raise ProviderResponseError("Content was blocked by safety filters") from e
        except ProviderError:
            raise
        except Exception as e:
            error_str = str(e).lower()
            if "429" in error_str or "rate" in error_str:
                raise ProviderRateLimitError("Gemini", retry_after=60) from e
            if "connection" in error_str or "network" in error_str:
                raise ProviderConnectionError("Gemini", str(e)) from e
            logger.error(f"Gemini error: {e}")
            raise ProviderResponseError("Gemini request failed", details=str(e)) from e


class AICoachingService:
    """
    Provider-backed coaching with guaranteed fallbacks.

    Usage:
        service = AICoachingService(GeminiTextProvider())
        result = await service.analyze_response(question, answer)
        result.data.confidence
        result.is_fallback
    """

    def __init__(
        self,
        provider: TextProvider,
        speech_analyzer: SpeechMetricsAnalyzer | None = None,
    ):
        self._provider = provider
        self._speech_analyzer = speech_analyzer or SpeechMetricsAnalyzer()

    def _success(self, data) -> ProviderResult:
        return ProviderResult(data=data, provider=self._provider.name)

    async def analyze_response(
        self,
        question: str,
        spoken_text: str,
        role: str = "software-engineer",
        industry: str = "technology",
    ) -> ProviderResult:
        """Score a spoken answer (confidence, clarity, pace, keyword relevance)."""
        prompt = RESPONSE_ANALYSIS_PROMPT.format(
            question=question,
            spoken_text=spoken_text,
            role=role,
            industry=industry,
        )

        try:
            logger.debug(f"Analyzing response for role: {role}")
            text = await self._provider.generate(prompt, temperature=0.3, max_tokens=1024)
            return self._success(parse_response_analysis(text))
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Response analysis failed, using fallback: {e}")
            return ProviderResult(data=FALLBACK_ANALYSIS, provider=FALLBACK_PROVIDER)

    async def instant_coaching_tips(
        self,
        current_response: str,
        role: str | None = None,
        industry: str | None = None,
    ) -> ProviderResult:
        """Three short tips for the answer in progress."""
        prompt = COACHING_TIPS_PROMPT.format(
            current_response=current_response,
            role=role or "General",
            industry=industry or "Technology",
        )

        try:
            text = await self._provider.generate(prompt, temperature=0.7, max_tokens=300)
            return self._success(parse_coaching_tips(text))
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Coaching tips generation failed, using fallback: {e}")
            return ProviderResult(data=fallback_tips(role), provider=FALLBACK_PROVIDER)

    async def generate_questions(
        self,
        role: str,
        industry: str,
        question_types: Sequence[str] = ("behavioral", "technical"),
        difficulty: str = "medium",
        count: int = 5,
    ) -> ProviderResult:
        """Personalized interview questions for a role and industry."""
        prompt = QUESTION_GENERATION_PROMPT.format(
            count=count,
            role=role,
            industry=industry,
            question_types=", ".join(question_types),
            difficulty=difficulty,
        )

        try:
            logger.debug(f"Generating {count} questions for {role} in {industry}")
            text = await self._provider.generate(prompt, temperature=0.7, max_tokens=2048)
            questions = parse_generated_questions(text, role, industry, difficulty)
            return self._success(questions)
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Question generation failed, using fallback: {e}")
            return ProviderResult(
                data=fallback_questions(role, industry, difficulty, count),
                provider=FALLBACK_PROVIDER,
            )

    async def generate_follow_up(
        self,
        question: str,
        answer: str,
        role: str | None = None,
        industry: str | None = None,
    ) -> ProviderResult:
        prompt = FOLLOW_UP_PROMPT.format(
            question=question,
            answer=answer,
            role=role or "General",
            industry=industry or "Technology",
        )

        try:
            text = await self._provider.generate(prompt, temperature=0.8, max_tokens=200)
            return self._success(parse_follow_up(text))
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Follow-up generation failed, using fallback: {e}")
            return ProviderResult(data=FALLBACK_FOLLOW_UP, provider=FALLBACK_PROVIDER)

    def analyze_speech_patterns(
        self,
        transcript: str,
        duration_seconds: float | None = None,
    ) -> ProviderResult:
        """Local speech metrics; never touches the provider."""
        metrics = self._speech_analyzer.analyze(transcript, duration_seconds)
        return ProviderResult(data=metrics, provider="internal")


def create_ai_service() -> AICoachingService:
    """Build the AI coaching service backed by Gemini."""
    return AICoachingService(GeminiTextProvider())
