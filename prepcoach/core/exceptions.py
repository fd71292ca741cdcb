"""
PrepCoach - Custom Exceptions.

Defines a hierarchy of domain-specific exceptions for clean error handling.
"""


class PrepCoachError(Exception):
    """Base exception for all PrepCoach errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# -----------------------------------------------------------------------------
# Configuration Errors
# -----------------------------------------------------------------------------

class ConfigurationError(PrepCoachError):
    """Raised when configuration is invalid or missing."""
    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is missing."""

    def __init__(self, key_name: str):
        super().__init__(
            message=f"Missing required API key: {key_name}",
            details="Please set this in your .env file or environment variables",
        )


# -----------------------------------------------------------------------------
# Input Errors
# -----------------------------------------------------------------------------

class ValidationError(PrepCoachError):
    """Raised when required input is missing or malformed."""
    pass


# -----------------------------------------------------------------------------
# Lookup Errors
# -----------------------------------------------------------------------------

class NotFoundError(PrepCoachError):
    """Base exception for missing entities."""

    def __init__(self, entity: str, entity_id: str):
        self.entity_id = entity_id
        super().__init__(message=f"{entity} not found: {entity_id}")


class QuizNotFoundError(NotFoundError):
    def __init__(self, quiz_id: str):
        super().__init__("Quiz", quiz_id)


class AttemptNotFoundError(NotFoundError):
    def __init__(self, attempt_id: str):
        super().__init__("Quiz attempt", attempt_id)


class QuestionNotFoundError(NotFoundError):
    def __init__(self, question_id: str):
        super().__init__("Question", question_id)


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__("Interview session", session_id)


# -----------------------------------------------------------------------------
# State Errors
# -----------------------------------------------------------------------------

class StateError(PrepCoachError):
    """Raised when an operation is invalid for the current state."""
    pass


class AttemptsExhaustedError(StateError):
    """Raised when a user has used every attempt allowed for a quiz."""

    def __init__(self, quiz_id: str, max_attempts: int):
        super().__init__(
            message="Quiz attempts exhausted",
            details=f"Maximum attempts ({max_attempts}) reached for quiz {quiz_id}",
        )


class AttemptAlreadySubmittedError(StateError):
    """Raised when answering or submitting a submitted attempt."""

    def __init__(self, attempt_id: str):
        super().__init__(
            message="Quiz attempt already submitted",
            details=attempt_id,
        )


class InvalidSessionStateError(StateError):
    """Raised when an operation is invalid for the current session state."""

    def __init__(self, current_state: str, required_state: str):
        super().__init__(
            message="Invalid session state",
            details=f"Current: {current_state}, Required: {required_state}",
        )


# -----------------------------------------------------------------------------
# Provider Errors
# -----------------------------------------------------------------------------

class ProviderError(PrepCoachError):
    """Base exception for text-generation provider errors."""
    pass


class ProviderConnectionError(ProviderError):
    """Raised when unable to connect to the text provider."""

    def __init__(self, service: str, reason: str):
        super().__init__(
            message=f"Failed to connect to {service}",
            details=reason,
        )


class ProviderRateLimitError(ProviderError):
    """Raised when rate limited by the text provider."""

    def __init__(self, service: str, retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(
            message=f"Rate limited by {service}",
            details=f"Retry after {retry_after}s" if retry_after else None,
        )


class ProviderResponseError(ProviderError):
    """Raised when the provider returns an empty or blocked response."""
    pass


class ParseError(PrepCoachError):
    """Raised when provider text cannot be turned into a structured payload."""
    pass
