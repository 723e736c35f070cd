"""LLM backends that implement the QuestionSource protocol.

Each backend knows its endpoint, auth header and response shape; everything
else (prompting, payload validation, error taxonomy) is shared.
"""
import logging

import requests

from quiz_game.errors import AuthenticationError, TransportError, ValidationError
from quiz_game.models import Question
from .base import QuestionRequest
from .prompts import SYSTEM_PROMPT, user_prompt
from .validation import parse_question_json, validate_question_payload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 60


class HTTPQuestionSource:
    """Shared request/response handling for HTTP-based backends."""

    name = 'http'
    display_name = 'LLM'
    auth_statuses = (401,)

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SEC):
        self.timeout = timeout

    def generate(self, request: QuestionRequest) -> Question:
        body = self._call(request)
        raw = self.extract_text(body)
        data = parse_question_json(raw, self.display_name)
        question = validate_question_payload(data, request.difficulty)
        logger.info(f"[source] provider={self.name} difficulty={request.difficulty.value} ok")
        return question

    def build_request(self, request: QuestionRequest):
        """Return ``(url, json_body, headers)`` for the provider call."""
        raise NotImplementedError

    def extract_text(self, body: dict) -> str:
        raise NotImplementedError

    def connection_error_message(self) -> str:
        return f"Could not connect to {self.display_name}"

    def _call(self, request: QuestionRequest) -> dict:
        url, payload, headers = self.build_request(request)
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            logger.warning(f"[source-timeout] provider={self.name} {exc}")
            raise TransportError(f"{self.display_name} request timed out", reason='timeout') from exc
        except requests.exceptions.ConnectionError as exc:
            logger.warning(f"[source-unreachable] provider={self.name} {exc}")
            raise TransportError(self.connection_error_message()) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"{self.display_name} API error: {exc}") from exc

        if response.status_code in self.auth_statuses:
            raise AuthenticationError(f"Invalid {self.display_name} API key",
                                      details={'status': response.status_code})
        if not 200 <= response.status_code < 300:
            logger.warning(f"[source-status] provider={self.name} status={response.status_code}")
            raise TransportError(
                f"{self.display_name} API error: status {response.status_code}",
                reason='bad_status',
                details={'status': response.status_code},
            )
        try:
            return response.json()
        except ValueError:
            raise ValidationError(f"Invalid response format from {self.display_name}") from None


class OllamaQuestionSource(HTTPQuestionSource):
    name = 'ollama'
    display_name = 'Ollama'

    def __init__(self, model: str, base_url: str = 'http://localhost:11434', timeout: float = DEFAULT_TIMEOUT_SEC):
        super().__init__(timeout)
        self.model = model
        self.base_url = base_url.rstrip('/')

    def build_request(self, request):
        return (
            f"{self.base_url}/api/generate",
            {
                'model': self.model,
                'prompt': f"{SYSTEM_PROMPT}\n\n{user_prompt(request)}",
                'stream': False,
            },
            {},
        )

    def extract_text(self, body):
        if not isinstance(body, dict):
            return None
        return body.get('response')

    def connection_error_message(self):
        return f"Could not connect to Ollama. Make sure Ollama is running on {self.base_url}"


class OpenAIQuestionSource(HTTPQuestionSource):
    name = 'openai'
    display_name = 'OpenAI'

    def __init__(self, api_key: str, model: str = 'gpt-3.5-turbo',
                 base_url: str = 'https://api.openai.com/v1', timeout: float = DEFAULT_TIMEOUT_SEC):
        super().__init__(timeout)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')

    def build_request(self, request):
        return (
            f"{self.base_url}/chat/completions",
            {
                'model': self.model,
                'messages': [
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': user_prompt(request)},
                ],
            },
            {
                'Authorization': f"Bearer {self.api_key}",
                'Content-Type': 'application/json',
            },
        )

    def extract_text(self, body):
        try:
            return body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            return None


class GroqQuestionSource(OpenAIQuestionSource):
    """Groq serves an OpenAI-compatible chat completions API."""

    name = 'groq'
    display_name = 'Groq'

    def __init__(self, api_key: str, model: str = 'llama-3.1-8b-instant',
                 base_url: str = 'https://api.groq.com/openai/v1', timeout: float = DEFAULT_TIMEOUT_SEC):
        super().__init__(api_key, model=model, base_url=base_url, timeout=timeout)


class GeminiQuestionSource(HTTPQuestionSource):
    name = 'gemini'
    display_name = 'Gemini'
    auth_statuses = (401, 403)

    def __init__(self, api_key: str, model: str = 'gemini-1.5-flash',
                 base_url: str = 'https://generativelanguage.googleapis.com/v1beta',
                 timeout: float = DEFAULT_TIMEOUT_SEC):
        super().__init__(timeout)
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')

    def build_request(self, request):
        return (
            f"{self.base_url}/models/{self.model}:generateContent",
            {
                'systemInstruction': {'parts': [{'text': SYSTEM_PROMPT}]},
                'contents': [{'role': 'user', 'parts': [{'text': user_prompt(request)}]}],
                'generationConfig': {'responseMimeType': 'application/json'},
            },
            {
                'x-goog-api-key': self.api_key,
                'Content-Type': 'application/json',
            },
        )

    def extract_text(self, body):
        try:
            return body['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError):
            return None


def list_ollama_models(base_url: str = 'http://localhost:11434', timeout: float = 10):
    """Names of the models installed in a local Ollama server."""
    url = f"{base_url.rstrip('/')}/api/tags"
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as exc:
        logger.warning(f"[ollama-tags] {exc}")
        raise TransportError('Failed to fetch Ollama models. Please ensure Ollama is running.') from exc

    # requests' JSONDecodeError is both a RequestException and a ValueError
    try:
        body = response.json()
    except ValueError:
        raise ValidationError('Invalid response format from Ollama') from None
    if not isinstance(body, dict):
        raise ValidationError('Invalid response format from Ollama')
    models = body.get('models') or []
    if not isinstance(models, list):
        raise ValidationError('Invalid response format from Ollama')
    return [m.get('name') for m in models if isinstance(m, dict) and m.get('name')]
