import logging
from typing import List

from quiz_game.models import AnswerRecord, Difficulty, GameState, Team

logger = logging.getLogger(__name__)


def points_for(difficulty: Difficulty) -> int:
    return Difficulty.parse(difficulty).points


def record_answer(state: GameState, team_id: str, is_correct: bool, difficulty_points: int) -> None:
    """Record the outcome of one answered question for one team.

    Runs before the coordinator bumps ``questions_answered``, so the recorded
    question number is the ordinal of the question just answered. Incorrect
    answers and timeouts are stored with 0 points. An unknown team id is a
    no-op.
    """
    team = state.find_team(team_id)
    if team is None:
        logger.warning(f"[record-skip] team={team_id} not in game")
        return
    points = difficulty_points if is_correct else 0
    if is_correct:
        team.score += points
        team.correct_answers += 1
    team.question_history.append(AnswerRecord(
        question_number=team.questions_answered + 1,
        is_correct=bool(is_correct),
        points=points,
    ))
    logger.debug(
        f"[record] team={team.id} question={team.questions_answered + 1} correct={is_correct} points={points} score={team.score}"
    )


def rank_teams(teams: List[Team]) -> List[Team]:
    """Order teams by score, highest first; ties keep turn order."""
    return sorted(teams, key=lambda t: -t.score)


def winning_teams(teams: List[Team]) -> List[Team]:
    if not teams:
        return []
    top = max(t.score for t in teams)
    return [t for t in rank_teams(teams) if t.score == top]


def game_outcome(teams: List[Team]) -> str:
    """'win' for a single winner, 'tie' when every team shares the top score,
    'shared' when some but not all teams do."""
    winners = winning_teams(teams)
    if len(winners) == 1:
        return 'win'
    if len(winners) == len(teams):
        return 'tie'
    return 'shared'


def results_summary(state: GameState) -> dict:
    ranked = rank_teams(state.teams)
    winners = winning_teams(state.teams)
    return {
        'ranked_teams': [
            dict(t.to_dict(), rank=1 + sum(1 for o in ranked if o.score > t.score))
            for t in ranked
        ],
        'winner_ids': [t.id for t in winners],
        'outcome': game_outcome(state.teams) if state.teams else None,
        'is_game_complete': state.is_game_complete,
    }
