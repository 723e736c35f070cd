from flask import Blueprint, current_app, jsonify, request, session

from quiz_game.errors import QuestionSourceError
from quiz_game.services.questions import LLMSettings, list_ollama_models
from quiz_game.services.questions.settings import PROVIDERS

settings = Blueprint('settings', __name__)

_SESSION_KEY = 'llm_settings'


def load_settings() -> LLMSettings:
    """LLM settings for the calling browser session.

    These live in Flask's cookie session, which is signed but not encrypted:
    the API key round-trips to the browser readable by anyone holding the
    cookie. Fine for a host running the game on their own machine; do not
    share the browser profile or serve the app to untrusted clients.
    """
    return LLMSettings.from_dict(session.get(_SESSION_KEY))


@settings.route('', methods=['GET'])
def get_settings():
    return jsonify(load_settings().to_public_dict())


@settings.route('', methods=['PUT', 'POST'])
def save_settings():
    data = request.get_json(silent=True) or {}
    current = load_settings()
    provider = str(data.get('provider') or current.provider).strip().lower()
    if provider not in PROVIDERS:
        return jsonify({'error': 'Unsupported LLM provider', 'reason': 'unsupported_backend'}), 400

    # An omitted api_key keeps the stored one so the form need not resend it
    api_key = data['api_key'] if 'api_key' in data else current.api_key
    updated = LLMSettings.from_dict({
        'provider': provider,
        'api_key': api_key,
        'ollama_model': data.get('ollama_model', current.ollama_model),
        'is_configured': True,
    })
    session[_SESSION_KEY] = updated.to_session()
    current_app.logger.info(f"[settings] provider={updated.provider} model={updated.ollama_model or '-'}")
    return jsonify(updated.to_public_dict())


@settings.route('', methods=['DELETE'])
def reset_settings():
    session.pop(_SESSION_KEY, None)
    return jsonify(LLMSettings().to_public_dict())


@settings.route('/ollama/models', methods=['GET'])
def ollama_models():
    try:
        models = list_ollama_models(current_app.config.get('OLLAMA_BASE_URL', 'http://localhost:11434'))
    except QuestionSourceError as exc:
        return jsonify({'error': exc.message, 'reason': exc.reason}), 502
    return jsonify({'models': models})
