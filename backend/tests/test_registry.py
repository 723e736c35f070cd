import time

from quiz_game.services.games import coordinator
from quiz_game.services.games.registry import GameRegistry


def new_state():
    return coordinator.start_new_game(['Red', 'Blue'])


def test_codes_are_unique_and_lookup_ignores_case():
    games = GameRegistry()
    codes = {games.create(new_state()).code for _ in range(50)}
    assert len(codes) == 50
    code = next(iter(codes))
    assert games.get(code.lower()).code == code
    assert games.get('') is None


def test_idle_games_are_swept():
    games = GameRegistry(idle_ttl=100, completed_ttl=10)
    idle = games.create(new_state())
    active = games.create(new_state())
    now = time.time()
    idle.last_touched = now - 101
    active.last_touched = now - 50

    assert games.sweep(now) == [idle.code]
    assert games.get(idle.code) is None
    assert games.get(active.code) is active


def test_finished_games_expire_sooner():
    games = GameRegistry(idle_ttl=100, completed_ttl=10)
    entry = games.create(new_state())
    coordinator.end_game(entry.state)
    entry.last_touched = time.time() - 11
    assert games.sweep() == [entry.code]
    assert len(games) == 0


def test_game_waiting_on_a_question_is_kept():
    games = GameRegistry(idle_ttl=1, completed_ttl=1)
    entry = games.create(new_state())
    entry.question_pending = True
    entry.last_touched = time.time() - 60
    assert games.sweep() == []
    assert games.get(entry.code) is entry


def test_lookup_refreshes_last_touched():
    games = GameRegistry(idle_ttl=100)
    entry = games.create(new_state())
    entry.last_touched = time.time() - 99
    games.get(entry.code)
    assert games.sweep(time.time() + 50) == []


def test_create_sweeps_stale_games():
    games = GameRegistry(idle_ttl=100)
    stale = games.create(new_state())
    stale.last_touched = time.time() - 500
    fresh = games.create(new_state())
    assert len(games) == 1
    assert games.get(fresh.code) is fresh
