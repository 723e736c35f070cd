"""Question source interface shared by every LLM backend."""
from dataclasses import dataclass, field
from typing import Protocol, Tuple

from quiz_game.models import Difficulty, Question


@dataclass(frozen=True)
class QuestionRequest:
    difficulty: Difficulty
    # Most recent first
    prior_question_texts: Tuple[str, ...] = field(default_factory=tuple)


class QuestionSource(Protocol):
    """Generates one multiple-choice question of the requested difficulty.

    Implementations return a validated Question or raise a
    QuestionSourceError subclass; they never return partial data.
    """

    name: str

    def generate(self, request: QuestionRequest) -> Question:
        ...


def prior_texts(recent) -> Tuple[str, ...]:
    return tuple(recent or ())


def remember_question(recent, text: str) -> None:
    """Push ``text`` onto a bounded most-recent-first queue."""
    if recent is None:
        return
    if text in recent:
        recent.remove(text)
    recent.appendleft(text)
