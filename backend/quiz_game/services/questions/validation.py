import json
import re

from quiz_game.errors import ValidationError
from quiz_game.models import Difficulty, Question

OPTION_COUNT = 4

_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)


def parse_question_json(raw: str, provider: str) -> dict:
    """Decode the JSON object a model returned, tolerating a markdown code fence."""
    if not raw or not isinstance(raw, str):
        raise ValidationError(f"No response from {provider}")
    text = raw.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)
    try:
        data = json.loads(text)
    except ValueError:
        raise ValidationError(
            f"Invalid response format from {provider}", details={'raw': raw[:500]}
        ) from None
    if not isinstance(data, dict):
        raise ValidationError(f"Invalid response format from {provider}", details={'raw': raw[:500]})
    return data


def validate_question_payload(data: dict, difficulty: Difficulty) -> Question:
    """Check the shape contract and build a Question; never coerces bad data."""
    text = data.get('text')
    if not isinstance(text, str) or not text.strip():
        raise ValidationError('Invalid question text')

    options = data.get('options')
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise ValidationError(f"Question must have exactly {OPTION_COUNT} options")
    if not all(isinstance(o, str) and o.strip() for o in options):
        raise ValidationError('Options must be non-empty strings')
    options = [o.strip() for o in options]
    if len(set(options)) != OPTION_COUNT:
        raise ValidationError('Options must be distinct')

    correct = data.get('correctAnswer', data.get('correct_answer'))
    if not isinstance(correct, str) or correct.strip() not in options:
        raise ValidationError('Correct answer must be one of the options')

    return Question(
        text=text.strip(),
        options=options,
        correct_answer=correct.strip(),
        difficulty=Difficulty.parse(difficulty),
    )
