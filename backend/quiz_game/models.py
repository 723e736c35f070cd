from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import string
import random
import uuid


QUESTIONS_PER_TEAM = 5


class Difficulty(Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'

    @property
    def points(self) -> int:
        return DIFFICULTY_POINTS[self]

    @classmethod
    def parse(cls, value):
        """Return the Difficulty for ``value`` or raise ValueError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value!r}") from None


DIFFICULTY_POINTS = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}


@dataclass(frozen=True)
class AnswerRecord:
    question_number: int
    is_correct: bool
    points: int

    def to_dict(self):
        return {
            'question_number': self.question_number,
            'is_correct': self.is_correct,
            'points': self.points,
        }


@dataclass
class Team:
    id: str
    name: str
    score: int = 0
    questions_answered: int = 0
    correct_answers: int = 0
    bonus_eligible: bool = False
    question_history: List[AnswerRecord] = field(default_factory=list)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'questions_answered': self.questions_answered,
            'correct_answers': self.correct_answers,
            'bonus_eligible': self.bonus_eligible,
            'question_history': [r.to_dict() for r in self.question_history],
        }


@dataclass
class Question:
    text: str
    options: List[str]
    correct_answer: str
    difficulty: Difficulty
    is_bonus: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self, reveal_answer: bool = True):
        data = {
            'id': self.id,
            'text': self.text,
            'options': list(self.options),
            'difficulty': self.difficulty.value,
            'points': self.difficulty.points,
            'is_bonus': self.is_bonus,
        }
        # The correct option stays hidden until the answer phase
        if reveal_answer:
            data['correct_answer'] = self.correct_answer
        return data


@dataclass
class GameState:
    teams: List[Team] = field(default_factory=list)
    current_team_index: int = 0
    current_question: Optional[Question] = None
    is_game_active: bool = False
    is_selecting_difficulty: bool = True
    questions_per_team: int = QUESTIONS_PER_TEAM
    show_answer: bool = False
    waiting_for_next: bool = False
    is_game_complete: bool = False

    @property
    def current_team(self) -> Optional[Team]:
        if 0 <= self.current_team_index < len(self.teams):
            return self.teams[self.current_team_index]
        return None

    @property
    def is_bonus_turn(self) -> bool:
        """True when the current team is about to play (or is playing) its bonus question."""
        team = self.current_team
        return bool(team and team.bonus_eligible and team.questions_answered == self.questions_per_team)

    def find_team(self, team_id: str) -> Optional[Team]:
        return next((t for t in self.teams if t.id == team_id), None)

    def to_dict(self):
        team = self.current_team
        return {
            'teams': [t.to_dict() for t in self.teams],
            'current_team_index': self.current_team_index,
            'current_team_id': team.id if team else None,
            'current_question': (
                self.current_question.to_dict(reveal_answer=self.show_answer)
                if self.current_question else None
            ),
            'is_game_active': self.is_game_active,
            'is_selecting_difficulty': self.is_selecting_difficulty,
            'questions_per_team': self.questions_per_team,
            'questions_remaining': (
                max(0, self.questions_per_team - team.questions_answered) if team else 0
            ),
            'is_bonus_question': self.is_bonus_turn,
            'show_answer': self.show_answer,
            'waiting_for_next': self.waiting_for_next,
            'is_game_complete': self.is_game_complete,
        }


def generate_game_code(taken=(), length=4):
    """Generate a short game code not present in ``taken``."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code
