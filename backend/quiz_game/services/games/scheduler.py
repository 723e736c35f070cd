import time
from threading import Lock
from typing import Set, Tuple

from quiz_game import socketio
from .coordinator import submit_answer
from .registry import registry


_scheduled_answer_keys: Set[Tuple[str, str]] = set()
_scheduled_lock = Lock()


def schedule_answer_timer(app, game_code: str) -> None:
    """Schedule the answer countdown for the question currently in play.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Sets entry.answer_deadline so clients can render countdowns
    - Ensures a single timer per (game_code, question id)
    - When the countdown expires on an unanswered question, records a timeout
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    entry = registry.get(game_code)
    if not entry:
        return

    with entry.lock:
        state = entry.state
        question = state.current_question
        if state.is_game_complete or question is None or state.waiting_for_next:
            return
        key = (entry.code, question.id)
        with _scheduled_lock:
            already = key in _scheduled_answer_keys
            _scheduled_answer_keys.add(key)
        if already:
            app.logger.info(f"[timer-skip] game={entry.code} question={question.id} already scheduled")
            return

        duration = int(app.config.get('ANSWER_DURATION_SEC', 30))
        entry.answer_deadline = time.time() + duration
        app.logger.info(
            f"[timer-set] game={entry.code} question={question.id} duration={duration}s deadline={entry.answer_deadline}"
        )

    def _worker(code: str, question_id: str, delay: int):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        if hb > 0:
            slept = 0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] game={code} question={question_id} remaining={max(0, delay - slept)}s")
        else:
            time.sleep(delay)

        with _scheduled_lock:
            _scheduled_answer_keys.discard((code, question_id))
        current = registry.get(code)
        if not current:
            return
        with current.lock:
            st = current.state
            q = st.current_question
            app.logger.info(
                f"[timer-fire] game={code} expected_question={question_id} actual_question={q.id if q else None}"
            )
            if st.is_game_complete or q is None or q.id != question_id or st.waiting_for_next:
                app.logger.info(f"[timer-abort] game={code} question already answered or replaced")
                return
            submit_answer(st, None)
            current.answer_deadline = None
        socketio.emit('state_update', {'game_code': code}, to=f"game:{code}", namespace='/ws')

    if app.config.get('TESTING'):
        _worker(entry.code, question.id, duration)
    else:
        socketio.start_background_task(_worker, entry.code, question.id, duration)
