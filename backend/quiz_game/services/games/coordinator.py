"""Round coordinator: the turn/round state machine of a quiz game.

Phases:
- selecting difficulty (``is_selecting_difficulty``)
- question active, split by ``show_answer`` / ``waiting_for_next``
- complete (``is_game_complete``, terminal)

Every function mutates the given GameState in place and returns it. Nothing
here performs I/O except through the question source passed to
``begin_question``.
"""
import logging
from typing import Iterable, Optional

from quiz_game.errors import GameStateError, TeamSetupError
from quiz_game.models import QUESTIONS_PER_TEAM, Difficulty, GameState, Question, Team
from quiz_game.services.questions.base import QuestionRequest, prior_texts, remember_question
from .scoring import record_answer

logger = logging.getLogger(__name__)

MIN_TEAMS = 2


def is_team_done(team: Team, questions_per_team: int) -> bool:
    """A team is done once its regular quota is answered and it either has no
    bonus question or has already answered it."""
    return team.questions_answered >= questions_per_team and (
        not team.bonus_eligible or team.questions_answered > questions_per_team
    )


def start_new_game(team_names: Iterable[str], questions_per_team: int = QUESTIONS_PER_TEAM,
                   min_teams: int = MIN_TEAMS) -> GameState:
    """Create a game from the submitted team name slots.

    Blank names are replaced by ``Team N`` and still count towards the minimum.
    """
    teams = []
    for index, name in enumerate(team_names or []):
        if name is not None and not isinstance(name, str):
            raise TeamSetupError(
                'Team names must be text.',
                details={'slot': index, 'type': type(name).__name__},
            )
        name = (name or '').strip() or f"Team {index + 1}"
        teams.append(Team(id=f"team-{index}", name=name))
    if len(teams) < min_teams:
        raise TeamSetupError(
            f"Please add at least {min_teams} teams to start the game.",
            details={'team_count': len(teams)},
        )
    state = GameState(teams=teams, questions_per_team=questions_per_team)
    state.is_game_active = True
    logger.info(f"[start] teams={[t.name for t in teams]} questions_per_team={questions_per_team}")
    return state


def reset_game() -> GameState:
    return GameState()


def _require_not_complete(state: GameState) -> None:
    if state.is_game_complete:
        raise GameStateError('The game is already complete')


def prepare_question_request(state: GameState, difficulty, recent=None) -> QuestionRequest:
    """Check that a question may be started now and build the source request."""
    _require_not_complete(state)
    if not state.teams:
        raise GameStateError('No game in progress')
    if not state.is_selecting_difficulty:
        raise GameStateError('A question is already in play')
    return QuestionRequest(difficulty=Difficulty.parse(difficulty), prior_question_texts=prior_texts(recent))


def apply_question(state: GameState, question: Question, recent=None) -> GameState:
    """Install a freshly generated question as the current one."""
    question.is_bonus = state.is_bonus_turn
    state.current_question = question
    state.is_selecting_difficulty = False
    state.show_answer = False
    state.waiting_for_next = False
    remember_question(recent, question.text)
    logger.info(
        f"[question] team={state.current_team.id} difficulty={question.difficulty.value} bonus={question.is_bonus}"
    )
    return state


def begin_question(state: GameState, difficulty, source, recent=None) -> GameState:
    """Ask ``source`` for a question and make it current.

    A QuestionSourceError propagates and leaves ``state`` exactly as it was.
    """
    request = prepare_question_request(state, difficulty, recent)
    question = source.generate(request)
    return apply_question(state, question, recent)


def submit_answer(state: GameState, option: Optional[str] = None) -> GameState:
    """Score the current question. ``option=None`` means the timer ran out."""
    _require_not_complete(state)
    question = state.current_question
    if question is None or state.is_selecting_difficulty:
        raise GameStateError('There is no question to answer')
    if state.waiting_for_next:
        raise GameStateError('This question has already been answered')

    is_correct = option is not None and option == question.correct_answer
    points = question.difficulty.points if is_correct else 0
    record_answer(state, state.current_team.id, is_correct, points)
    state.show_answer = True
    state.waiting_for_next = True
    return state


def advance_turn(state: GameState) -> GameState:
    """Close the answered question and decide who plays next.

    Order matters: the bonus flag is updated before the completion check so a
    team that just earned its bonus question is not yet considered done.
    """
    _require_not_complete(state)
    if not state.waiting_for_next:
        raise GameStateError('The current question has not been answered yet')

    per_team = state.questions_per_team
    team = state.current_team
    team.questions_answered += 1

    if (team.questions_answered == per_team
            and team.correct_answers == per_team
            and not team.bonus_eligible):
        team.bonus_eligible = True
        logger.info(f"[bonus] team={team.id} earned a bonus question")

    if all(is_team_done(t, per_team) for t in state.teams):
        state.is_game_complete = True
        state.is_game_active = False
        logger.info(f"[finish] all teams done scores={[(t.id, t.score) for t in state.teams]}")
        return state

    if is_team_done(team, per_team):
        count = len(state.teams)
        next_index = (state.current_team_index + 1) % count
        attempts = 0
        while is_team_done(state.teams[next_index], per_team) and attempts < count:
            next_index = (next_index + 1) % count
            attempts += 1
        if attempts < count:
            logger.info(f"[advance] team {team.id} -> {state.teams[next_index].id}")
            state.current_team_index = next_index

    state.current_question = None
    state.is_selecting_difficulty = True
    state.show_answer = False
    state.waiting_for_next = False
    return state


def end_game(state: GameState) -> GameState:
    """Force completion regardless of quotas."""
    if state.is_game_complete:
        return state
    state.is_game_complete = True
    state.is_game_active = False
    logger.info('[finish] ended early')
    return state
