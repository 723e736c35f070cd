"""Question sources: one interface, one implementation per LLM backend."""

from .base import QuestionRequest, QuestionSource
from .providers import list_ollama_models
from .settings import LLMSettings, build_question_source
