from flask_socketio import join_room, leave_room, emit

from quiz_game.services.games.registry import registry


def _room(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def _game_code(data):
    code = (data or {}).get('game_code')
    if not code or not isinstance(code, str):
        emit('error', {'message': 'game_code is required'})
        return None
    return code.strip().upper()


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    """Subscribe to a game's room; the browser re-fetches state on every state_update."""
    game_code = _game_code(data)
    if not game_code:
        return
    join_room(_room(game_code))
    emit('joined', {'room': _room(game_code)})
    # Late joiners get the current state immediately instead of waiting for the next transition
    entry = registry.get(game_code)
    if entry:
        with entry.lock:
            snapshot = entry.to_dict()
        emit('state', snapshot)


def handle_leave_game(data):
    game_code = _game_code(data)
    if not game_code:
        return
    leave_room(_room(game_code))
    emit('left', {'room': _room(game_code)})


def handle_ping(data):
    emit('pong', data or {})


_HANDLERS = (
    ('connect', handle_connect),
    ('join_game', handle_join_game),
    ('leave_game', handle_leave_game),
    ('ping', handle_ping),
)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from quiz_game import socketio

    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in _HANDLERS:
            socketio.on_event(event, handler, namespace=namespace)
