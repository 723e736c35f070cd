from dataclasses import dataclass

from quiz_game.errors import ConfigurationError
from .providers import (
    GeminiQuestionSource,
    GroqQuestionSource,
    OllamaQuestionSource,
    OpenAIQuestionSource,
)

PROVIDERS = ('ollama', 'openai', 'gemini', 'groq')


@dataclass
class LLMSettings:
    provider: str = 'ollama'
    api_key: str = ''
    ollama_model: str = ''
    is_configured: bool = False

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            provider=str(data.get('provider') or 'ollama').strip().lower(),
            api_key=str(data.get('api_key') or '').strip(),
            ollama_model=str(data.get('ollama_model') or '').strip(),
            is_configured=bool(data.get('is_configured')),
        )

    def to_session(self):
        return {
            'provider': self.provider,
            'api_key': self.api_key,
            'ollama_model': self.ollama_model,
            'is_configured': self.is_configured,
        }

    def to_public_dict(self):
        """Settings as shown to the browser; the key itself is never echoed."""
        return {
            'provider': self.provider,
            'has_api_key': bool(self.api_key),
            'ollama_model': self.ollama_model,
            'is_configured': self.is_configured,
            'providers': list(PROVIDERS),
        }


def build_question_source(settings: LLMSettings, config=None):
    """Return the question source for the selected provider.

    ``config`` is a mapping (usually ``app.config``) with endpoint and model
    overrides.
    """
    config = config or {}
    timeout = float(config.get('LLM_REQUEST_TIMEOUT_SEC', 60))

    if not settings.is_configured:
        raise ConfigurationError('LLM settings are not configured. Please configure settings first.')

    provider = settings.provider
    if provider == 'ollama':
        if not settings.ollama_model:
            raise ConfigurationError('No Ollama model selected. Please select a model in settings.')
        return OllamaQuestionSource(
            settings.ollama_model,
            base_url=config.get('OLLAMA_BASE_URL', 'http://localhost:11434'),
            timeout=timeout,
        )

    if provider not in PROVIDERS:
        raise ConfigurationError('Unsupported LLM provider', reason='unsupported_backend',
                                 details={'provider': provider})

    label = {'openai': 'OpenAI', 'gemini': 'Gemini', 'groq': 'Groq'}[provider]
    if not settings.api_key:
        raise ConfigurationError(f"{label} API key is missing. Please add your API key in settings.")

    if provider == 'openai':
        return OpenAIQuestionSource(
            settings.api_key,
            model=config.get('OPENAI_MODEL', 'gpt-3.5-turbo'),
            base_url=config.get('OPENAI_BASE_URL', 'https://api.openai.com/v1'),
            timeout=timeout,
        )
    if provider == 'groq':
        return GroqQuestionSource(
            settings.api_key,
            model=config.get('GROQ_MODEL', 'llama-3.1-8b-instant'),
            base_url=config.get('GROQ_BASE_URL', 'https://api.groq.com/openai/v1'),
            timeout=timeout,
        )
    return GeminiQuestionSource(
        settings.api_key,
        model=config.get('GEMINI_MODEL', 'gemini-1.5-flash'),
        base_url=config.get('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta'),
        timeout=timeout,
    )
