import json
import os
import sys
import pytest
import requests

# Ensure the backend root (containing the `quiz_game` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quiz_game import create_app, socketio
from quiz_game.models import Question
from quiz_game.services.games.registry import registry
from quiz_game.services.questions import providers


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    QUESTIONS_PER_TEAM = 5
    MIN_TEAMS = 2
    ANSWER_DURATION_SEC = 30
    RECENT_QUESTION_LIMIT = 3
    LLM_REQUEST_TIMEOUT_SEC = 5
    OLLAMA_BASE_URL = 'http://ollama.test'
    OPENAI_BASE_URL = 'https://openai.test/v1'
    OPENAI_MODEL = 'gpt-test'


class FakeSource:
    """In-memory question source: option 'A' is always correct."""

    name = 'fake'

    def __init__(self, fail=None):
        self.fail = fail
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.fail is not None:
            raise self.fail
        n = len(self.requests)
        return Question(
            text=f"Question {n}?",
            options=['A', 'B', 'C', 'D'],
            correct_answer='A',
            difficulty=request.difficulty,
        )


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON object could be decoded')
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class FakeLLM:
    """Stands in for requests.post against an OpenAI-compatible endpoint."""

    def __init__(self):
        self.calls = []
        self.error = None
        self.status_code = 200
        self.content = None

    def __call__(self, url, json=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if self.error is not None:
            raise self.error
        content = self.content
        if content is None:
            content = _json_dumps({
                'text': f"Generated question {len(self.calls)}?",
                'options': ['Alpha', 'Beta', 'Gamma', 'Delta'],
                'correctAnswer': 'Beta',
            })
        return FakeResponse(self.status_code, {'choices': [{'message': {'content': content}}]})


def _json_dumps(obj):
    return json.dumps(obj)


@pytest.fixture(autouse=True)
def clean_registry():
    registry.clear()
    yield
    registry.clear()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def fake_source():
    return FakeSource()


@pytest.fixture()
def fake_llm(monkeypatch):
    llm = FakeLLM()
    monkeypatch.setattr(providers.requests, 'post', llm)
    return llm


@pytest.fixture()
def configured_client(client, fake_llm):
    res = client.put('/api/settings', json={'provider': 'openai', 'api_key': 'sk-test'})
    assert res.status_code == 200
    return client
