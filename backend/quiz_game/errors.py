"""
Exception hierarchy for the quiz game backend.

Question source failures carry a machine-readable ``reason`` so the HTTP layer
can surface them without knowing which LLM backend produced them.
"""
from typing import Optional


class QuizGameError(Exception):
    """Base exception for the quiz game."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details})"


class TeamSetupError(QuizGameError):
    """Raised when a game is started with fewer than the minimum number of teams."""
    pass


class GameStateError(QuizGameError):
    """Raised when a transition is requested outside the phase that allows it."""
    pass


class QuestionSourceError(QuizGameError):
    """Base class for failures of a question source."""

    reason = 'question_source_failed'

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details)
        if reason:
            self.reason = reason


class ConfigurationError(QuestionSourceError):
    """The selected provider is not ready: missing credential, model or unknown backend."""

    reason = 'configuration_missing'


class TransportError(QuestionSourceError):
    """Network unreachable, timeout or non-2xx response from the provider."""

    reason = 'network_unreachable'


class AuthenticationError(TransportError):
    """The provider rejected the credential."""

    reason = 'authentication_rejected'


class ValidationError(QuestionSourceError):
    """The provider answered, but the payload does not describe a valid question."""

    reason = 'malformed_payload'
