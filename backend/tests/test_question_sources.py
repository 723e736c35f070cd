import json

import pytest
import requests

from quiz_game.errors import (
    AuthenticationError,
    ConfigurationError,
    TransportError,
    ValidationError,
)
from quiz_game.models import Difficulty
from quiz_game.services.questions import LLMSettings, QuestionRequest, build_question_source, list_ollama_models
from quiz_game.services.questions import providers
from quiz_game.services.questions.providers import (
    GeminiQuestionSource,
    GroqQuestionSource,
    OllamaQuestionSource,
    OpenAIQuestionSource,
)
from quiz_game.services.questions.validation import parse_question_json, validate_question_payload


GOOD = {
    'text': 'What does SGD stand for?',
    'options': ['Stochastic Gradient Descent', 'Simple Gradient Design', 'Sparse Graph Decoder', 'Stable Gain Drift'],
    'correctAnswer': 'Stochastic Gradient Descent',
}


class Reply:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError('not json')
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(str(self.status_code))


def stub_post(monkeypatch, reply=None, error=None):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        if error is not None:
            raise error
        return reply

    monkeypatch.setattr(providers.requests, 'post', fake_post)
    return calls


# ---- payload validation ----

def test_validate_good_payload_builds_question():
    q = validate_question_payload(dict(GOOD), Difficulty.MEDIUM)
    assert q.text == GOOD['text']
    assert q.options == GOOD['options']
    assert q.correct_answer == GOOD['correctAnswer']
    assert q.difficulty is Difficulty.MEDIUM
    assert q.is_bonus is False


@pytest.mark.parametrize('patch', [
    {'text': ''},
    {'text': None},
    {'options': ['a', 'b', 'c']},
    {'options': ['a', 'b', 'c', 'd', 'e']},
    {'options': 'a,b,c,d'},
    {'options': ['a', 'a', 'b', 'c'], 'correctAnswer': 'a'},
    {'options': ['a', '', 'b', 'c'], 'correctAnswer': 'a'},
    {'correctAnswer': 'Something else'},
    {'correctAnswer': None},
])
def test_validate_rejects_contract_violations(patch):
    data = dict(GOOD)
    data.update(patch)
    with pytest.raises(ValidationError):
        validate_question_payload(data, Difficulty.EASY)


def test_parse_question_json_accepts_code_fence():
    raw = '```json\n' + json.dumps(GOOD) + '\n```'
    assert parse_question_json(raw, 'Test')['text'] == GOOD['text']


@pytest.mark.parametrize('raw', ['', None, 'not json at all', '[1, 2, 3]'])
def test_parse_question_json_rejects_garbage(raw):
    with pytest.raises(ValidationError):
        parse_question_json(raw, 'Test')


# ---- providers ----

def test_openai_source_posts_chat_completion(monkeypatch):
    calls = stub_post(monkeypatch, Reply(200, {'choices': [{'message': {'content': json.dumps(GOOD)}}]}))
    source = OpenAIQuestionSource('sk-1', model='gpt-x', base_url='https://openai.test/v1', timeout=7)
    request = QuestionRequest(Difficulty.HARD, ('Earlier question?',))
    q = source.generate(request)
    assert q.correct_answer == GOOD['correctAnswer']
    assert q.difficulty is Difficulty.HARD
    call = calls[0]
    assert call['url'] == 'https://openai.test/v1/chat/completions'
    assert call['headers']['Authorization'] == 'Bearer sk-1'
    assert call['json']['model'] == 'gpt-x'
    assert call['timeout'] == 7
    user_message = call['json']['messages'][1]['content']
    assert 'hard difficulty' in user_message
    assert 'Earlier question?' in user_message


def test_openai_401_is_authentication_error(monkeypatch):
    stub_post(monkeypatch, Reply(401, {'error': 'bad key'}))
    with pytest.raises(AuthenticationError) as info:
        OpenAIQuestionSource('sk-bad').generate(QuestionRequest(Difficulty.EASY))
    assert info.value.reason == 'authentication_rejected'
    assert isinstance(info.value, TransportError)


def test_non_2xx_is_transport_error(monkeypatch):
    stub_post(monkeypatch, Reply(503, {}))
    with pytest.raises(TransportError) as info:
        GroqQuestionSource('gsk').generate(QuestionRequest(Difficulty.EASY))
    assert info.value.reason == 'bad_status'
    assert info.value.details['status'] == 503


def test_ollama_connection_refused_mentions_host(monkeypatch):
    stub_post(monkeypatch, error=requests.exceptions.ConnectionError('refused'))
    source = OllamaQuestionSource('llama3', base_url='http://ollama.test:11434')
    with pytest.raises(TransportError) as info:
        source.generate(QuestionRequest(Difficulty.EASY))
    assert 'http://ollama.test:11434' in info.value.message
    assert info.value.reason == 'network_unreachable'


def test_timeout_is_transport_error(monkeypatch):
    stub_post(monkeypatch, error=requests.exceptions.ReadTimeout('slow'))
    with pytest.raises(TransportError) as info:
        OllamaQuestionSource('llama3').generate(QuestionRequest(Difficulty.EASY))
    assert info.value.reason == 'timeout'


def test_ollama_reads_response_field(monkeypatch):
    calls = stub_post(monkeypatch, Reply(200, {'response': json.dumps(GOOD)}))
    q = OllamaQuestionSource('llama3', base_url='http://ollama.test').generate(QuestionRequest(Difficulty.EASY))
    assert q.text == GOOD['text']
    assert calls[0]['url'] == 'http://ollama.test/api/generate'
    assert calls[0]['json']['stream'] is False
    assert calls[0]['json']['model'] == 'llama3'


def test_ollama_empty_response_is_validation_error(monkeypatch):
    stub_post(monkeypatch, Reply(200, {'response': ''}))
    with pytest.raises(ValidationError):
        OllamaQuestionSource('llama3').generate(QuestionRequest(Difficulty.EASY))


@pytest.mark.parametrize('body', [['oops'], 'just text', 42])
def test_non_object_json_body_is_validation_error(monkeypatch, body):
    for source in (OllamaQuestionSource('llama3'), OpenAIQuestionSource('sk'), GeminiQuestionSource('g')):
        stub_post(monkeypatch, Reply(200, body))
        with pytest.raises(ValidationError):
            source.generate(QuestionRequest(Difficulty.EASY))


def test_gemini_reads_candidate_text(monkeypatch):
    body = {'candidates': [{'content': {'parts': [{'text': json.dumps(GOOD)}]}}]}
    calls = stub_post(monkeypatch, Reply(200, body))
    q = GeminiQuestionSource('g-key', model='gemini-test', base_url='https://gemini.test').generate(
        QuestionRequest(Difficulty.MEDIUM)
    )
    assert q.options == GOOD['options']
    assert calls[0]['url'] == 'https://gemini.test/models/gemini-test:generateContent'
    assert calls[0]['headers']['x-goog-api-key'] == 'g-key'


def test_malformed_model_output_is_validation_error(monkeypatch):
    bad = dict(GOOD, correctAnswer='Not an option')
    stub_post(monkeypatch, Reply(200, {'choices': [{'message': {'content': json.dumps(bad)}}]}))
    with pytest.raises(ValidationError) as info:
        OpenAIQuestionSource('sk').generate(QuestionRequest(Difficulty.EASY))
    assert info.value.reason == 'malformed_payload'


def test_list_ollama_models(monkeypatch):
    seen = {}

    def fake_get(url, timeout=None):
        seen['url'] = url
        return Reply(200, {'models': [{'name': 'llama3:8b'}, {'name': 'mistral'}, {}]})

    monkeypatch.setattr(providers.requests, 'get', fake_get)
    assert list_ollama_models('http://ollama.test/') == ['llama3:8b', 'mistral']
    assert seen['url'] == 'http://ollama.test/api/tags'


def test_list_ollama_models_unreachable(monkeypatch):
    def fake_get(url, timeout=None):
        raise requests.exceptions.ConnectionError('refused')

    monkeypatch.setattr(providers.requests, 'get', fake_get)
    with pytest.raises(TransportError):
        list_ollama_models()


def test_list_ollama_models_non_json_body_is_validation_error(monkeypatch):
    class HtmlReply(Reply):
        def json(self):
            raise requests.exceptions.JSONDecodeError('Expecting value', '<html>', 0)

    monkeypatch.setattr(providers.requests, 'get', lambda url, timeout=None: HtmlReply(200))
    with pytest.raises(ValidationError) as info:
        list_ollama_models()
    assert info.value.reason == 'malformed_payload'


@pytest.mark.parametrize('body', [[{'name': 'llama3'}], {'models': 'llama3'}])
def test_list_ollama_models_wrong_shape_is_validation_error(monkeypatch, body):
    monkeypatch.setattr(providers.requests, 'get', lambda url, timeout=None: Reply(200, body))
    with pytest.raises(ValidationError):
        list_ollama_models()


def test_list_ollama_models_error_status_is_transport_error(monkeypatch):
    monkeypatch.setattr(providers.requests, 'get', lambda url, timeout=None: Reply(500, {}))
    with pytest.raises(TransportError) as info:
        list_ollama_models()
    assert info.value.reason == 'network_unreachable'


# ---- factory ----

def test_unconfigured_settings_are_rejected():
    with pytest.raises(ConfigurationError) as info:
        build_question_source(LLMSettings())
    assert info.value.reason == 'configuration_missing'


def test_ollama_requires_model():
    with pytest.raises(ConfigurationError):
        build_question_source(LLMSettings(provider='ollama', is_configured=True))


@pytest.mark.parametrize('provider', ['openai', 'gemini', 'groq'])
def test_key_providers_require_api_key(provider):
    with pytest.raises(ConfigurationError) as info:
        build_question_source(LLMSettings(provider=provider, is_configured=True))
    assert 'API key is missing' in info.value.message


def test_unknown_provider_is_unsupported_backend():
    with pytest.raises(ConfigurationError) as info:
        build_question_source(LLMSettings(provider='claude-on-a-toaster', api_key='k', is_configured=True))
    assert info.value.reason == 'unsupported_backend'


@pytest.mark.parametrize('provider,cls', [
    ('openai', OpenAIQuestionSource),
    ('gemini', GeminiQuestionSource),
    ('groq', GroqQuestionSource),
])
def test_factory_picks_backend(provider, cls):
    source = build_question_source(
        LLMSettings(provider=provider, api_key='k', is_configured=True),
        {'LLM_REQUEST_TIMEOUT_SEC': 3, 'OPENAI_MODEL': 'gpt-custom'},
    )
    assert type(source) is cls
    assert source.timeout == 3.0
    if provider == 'openai':
        assert source.model == 'gpt-custom'


def test_factory_builds_ollama_with_configured_url():
    source = build_question_source(
        LLMSettings(provider='ollama', ollama_model='llama3', is_configured=True),
        {'OLLAMA_BASE_URL': 'http://gpu-box:11434/'},
    )
    assert isinstance(source, OllamaQuestionSource)
    assert source.base_url == 'http://gpu-box:11434'
    assert source.model == 'llama3'
