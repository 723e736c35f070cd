from flask import Blueprint, jsonify, request, current_app
from quiz_game import socketio
from quiz_game.api.settings import load_settings
from quiz_game.errors import (
    ConfigurationError,
    GameStateError,
    QuestionSourceError,
    TeamSetupError,
    TransportError,
    ValidationError,
)
from quiz_game.services.games import coordinator
from quiz_game.services.games.registry import registry
from quiz_game.services.games.scheduler import schedule_answer_timer
from quiz_game.services.games.scoring import results_summary
from quiz_game.services.questions import build_question_source


games = Blueprint('games', __name__)


def _emit_update(game_code: str) -> None:
    socketio.emit('state_update', {'game_code': game_code}, to=f"game:{game_code}", namespace='/ws')


def _not_found():
    return jsonify({'error': 'Game not found'}), 404


def _state_payload(entry):
    payload = entry.to_dict()
    payload['durations'] = {'answer': int(current_app.config.get('ANSWER_DURATION_SEC', 30))}
    return payload


def _source_error_status(exc: QuestionSourceError) -> int:
    if isinstance(exc, ConfigurationError):
        return 424
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, TransportError):
        return 502
    return 500


@games.route('/create', methods=['POST'])
def create_game():
    """
    Creates a new game from the submitted team name slots.
    """
    data = request.get_json(silent=True) or {}
    team_names = data.get('team_names')
    if not isinstance(team_names, list):
        return jsonify({'error': 'team_names must be a list'}), 400
    cfg = current_app.config
    try:
        state = coordinator.start_new_game(
            team_names,
            questions_per_team=int(cfg.get('QUESTIONS_PER_TEAM', 5)),
            min_teams=int(cfg.get('MIN_TEAMS', 2)),
        )
    except TeamSetupError as exc:
        return jsonify({'error': exc.message}), 400
    for stale_code in registry.sweep():
        socketio.emit('session_ended', {'game_code': stale_code}, to=f"game:{stale_code}", namespace='/ws')
    entry = registry.create(state, recent_limit=int(cfg.get('RECENT_QUESTION_LIMIT', 20)))
    current_app.logger.info(f"[create] game={entry.code} teams={len(state.teams)}")
    return jsonify(_state_payload(entry)), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    entry = registry.get(game_code)
    if not entry:
        return _not_found()
    with entry.lock:
        return jsonify(_state_payload(entry))


@games.route('/<string:game_code>/question', methods=['POST'])
def begin_question(game_code):
    """
    Asks the configured LLM for a question of the chosen difficulty.

    The provider call runs outside the game lock; on any failure the game
    stays in difficulty selection and the error is returned to the caller.
    """
    data = request.get_json(silent=True) or {}
    entry = registry.get(game_code)
    if not entry:
        return _not_found()

    with entry.lock:
        if entry.question_pending:
            return jsonify({'error': 'A question is already being generated'}), 409
        try:
            source_request = coordinator.prepare_question_request(
                entry.state, data.get('difficulty'), entry.recent_questions
            )
        except ValueError as exc:
            return jsonify({'error': str(exc)}), 400
        except GameStateError as exc:
            return jsonify({'error': exc.message}), 409
        entry.question_pending = True
        state = entry.state

    try:
        source = build_question_source(load_settings(), current_app.config)
        question = source.generate(source_request)
    except QuestionSourceError as exc:
        with entry.lock:
            entry.question_pending = False
        current_app.logger.warning(f"[question-failed] game={entry.code} reason={exc.reason} {exc.message}")
        return jsonify({
            'error': f"Failed to generate question: {exc.message}",
            'reason': exc.reason,
        }), _source_error_status(exc)
    except Exception:
        with entry.lock:
            entry.question_pending = False
        raise

    with entry.lock:
        entry.question_pending = False
        if registry.get(entry.code) is not entry or entry.state is not state \
                or state.is_game_complete or not state.is_selecting_difficulty:
            current_app.logger.info(f"[question-discard] game={entry.code} game moved on before the question arrived")
            return jsonify({'error': 'The game moved on before the question arrived'}), 409
        coordinator.apply_question(state, question, entry.recent_questions)
        entry.answer_deadline = None

    _emit_update(entry.code)
    schedule_answer_timer(current_app._get_current_object(), entry.code)
    with entry.lock:
        return jsonify(_state_payload(entry))


@games.route('/<string:game_code>/answer', methods=['POST'])
def submit_answer(game_code):
    """
    Submits the current team's answer. A missing or null option is a timeout.
    """
    data = request.get_json(silent=True) or {}
    option = data.get('option')
    entry = registry.get(game_code)
    if not entry:
        return _not_found()

    with entry.lock:
        question = entry.state.current_question
        if option is not None and question is not None and option not in question.options:
            return jsonify({'error': 'Unknown option'}), 400
        try:
            coordinator.submit_answer(entry.state, option)
        except GameStateError as exc:
            return jsonify({'error': exc.message}), 409
        entry.answer_deadline = None
        payload = _state_payload(entry)

    _emit_update(entry.code)
    return jsonify(payload)


@games.route('/<string:game_code>/next', methods=['POST'])
def advance_turn(game_code):
    entry = registry.get(game_code)
    if not entry:
        return _not_found()
    with entry.lock:
        try:
            coordinator.advance_turn(entry.state)
        except GameStateError as exc:
            return jsonify({'error': exc.message}), 409
        payload = _state_payload(entry)
    _emit_update(entry.code)
    return jsonify(payload)


@games.route('/<string:game_code>/end', methods=['POST'])
def end_game(game_code):
    entry = registry.get(game_code)
    if not entry:
        return _not_found()
    with entry.lock:
        coordinator.end_game(entry.state)
        entry.answer_deadline = None
        payload = _state_payload(entry)
    _emit_update(entry.code)
    return jsonify(payload)


@games.route('/<string:game_code>/results', methods=['GET'])
def get_results(game_code):
    entry = registry.get(game_code)
    if not entry:
        return _not_found()
    with entry.lock:
        summary = results_summary(entry.state)
    summary['game_code'] = entry.code
    return jsonify(summary)


@games.route('/<string:game_code>', methods=['DELETE'])
def reset_game(game_code):
    """
    Discards the game; the browser goes back to the team form with a fresh state.
    """
    entry = registry.discard(game_code)
    if not entry:
        return _not_found()
    current_app.logger.info(f"[reset] game={entry.code}")
    socketio.emit('session_ended', {'game_code': entry.code}, to=f"game:{entry.code}", namespace='/ws')
    return jsonify(coordinator.reset_game().to_dict())
