import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Browser origins allowed to call the API (comma separated)
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',') if o.strip()
    ]
    # Game rules
    QUESTIONS_PER_TEAM = int(os.environ.get('QUESTIONS_PER_TEAM', '5'))
    MIN_TEAMS = int(os.environ.get('MIN_TEAMS', '2'))
    # Answer countdown (seconds); expiry counts as a wrong answer
    ANSWER_DURATION_SEC = int(os.environ.get('ANSWER_DURATION_SEC', '30'))
    # How many earlier question texts are sent to the LLM to avoid repeats
    RECENT_QUESTION_LIMIT = int(os.environ.get('RECENT_QUESTION_LIMIT', '20'))
    # In-memory games are dropped after this long without a request (seconds)
    GAME_IDLE_TTL_SEC = int(os.environ.get('GAME_IDLE_TTL_SEC', str(6 * 60 * 60)))
    # Finished games are kept only long enough to show the results
    COMPLETED_GAME_TTL_SEC = int(os.environ.get('COMPLETED_GAME_TTL_SEC', str(30 * 60)))
    # LLM backends
    LLM_REQUEST_TIMEOUT_SEC = float(os.environ.get('LLM_REQUEST_TIMEOUT_SEC', '60'))
    OLLAMA_BASE_URL = os.environ.get('OLLAMA_BASE_URL', 'http://localhost:11434')
    OPENAI_BASE_URL = os.environ.get('OPENAI_BASE_URL', 'https://api.openai.com/v1')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-3.5-turbo')
    GROQ_BASE_URL = os.environ.get('GROQ_BASE_URL', 'https://api.groq.com/openai/v1')
    GROQ_MODEL = os.environ.get('GROQ_MODEL', 'llama-3.1-8b-instant')
    GEMINI_BASE_URL = os.environ.get('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
