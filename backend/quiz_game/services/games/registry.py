"""In-memory store of running games, keyed by game code.

Nothing is persisted: restarting the process forgets every game. Games
nobody has touched for a while are evicted whenever a new game is created.
"""
import logging
import time
from collections import deque
from threading import Lock
from typing import Dict, List, Optional

from quiz_game.models import GameState, generate_game_code

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 20
# Seconds without any request before a game is dropped
DEFAULT_IDLE_TTL = 6 * 60 * 60
# Finished games only need to live long enough for the results screen
DEFAULT_COMPLETED_TTL = 30 * 60


class GameEntry:
    """One game plus the per-game bookkeeping the HTTP layer needs."""

    def __init__(self, code: str, state: GameState, recent_limit: int = DEFAULT_RECENT_LIMIT):
        self.code = code
        self.state = state
        self.lock = Lock()
        self.recent_questions = deque(maxlen=recent_limit)
        self.question_pending = False
        self.answer_deadline: Optional[float] = None
        self.last_touched = time.time()

    def is_expired(self, now: float, idle_ttl: float, completed_ttl: float) -> bool:
        if self.question_pending:
            return False
        idle = now - self.last_touched
        if self.state.is_game_complete:
            return idle > completed_ttl
        return idle > idle_ttl

    def to_dict(self):
        payload = self.state.to_dict()
        payload['game_code'] = self.code
        payload['question_pending'] = self.question_pending
        payload['answer_deadline'] = self.answer_deadline
        return payload


class GameRegistry:
    def __init__(self, idle_ttl: float = DEFAULT_IDLE_TTL, completed_ttl: float = DEFAULT_COMPLETED_TTL):
        self._lock = Lock()
        self._games: Dict[str, GameEntry] = {}
        self.idle_ttl = idle_ttl
        self.completed_ttl = completed_ttl

    def create(self, state: GameState, recent_limit: int = DEFAULT_RECENT_LIMIT) -> GameEntry:
        with self._lock:
            self._sweep_locked(time.time())
            code = generate_game_code(self._games)
            entry = GameEntry(code, state, recent_limit=recent_limit)
            self._games[code] = entry
            return entry

    def get(self, code: str) -> Optional[GameEntry]:
        if not code:
            return None
        with self._lock:
            entry = self._games.get(code.upper())
            if entry:
                entry.last_touched = time.time()
            return entry

    def discard(self, code: str) -> Optional[GameEntry]:
        with self._lock:
            return self._games.pop((code or '').upper(), None)

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """Drop expired games and return their codes."""
        with self._lock:
            return self._sweep_locked(time.time() if now is None else now)

    def _sweep_locked(self, now: float) -> List[str]:
        expired = [
            code for code, entry in self._games.items()
            if entry.is_expired(now, self.idle_ttl, self.completed_ttl)
        ]
        for code in expired:
            del self._games[code]
        if expired:
            logger.info(f"[evict] games={expired}")
        return expired

    def clear(self) -> None:
        with self._lock:
            self._games.clear()

    def __len__(self):
        with self._lock:
            return len(self._games)


registry = GameRegistry()
