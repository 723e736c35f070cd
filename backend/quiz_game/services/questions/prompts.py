SYSTEM_PROMPT = """You are a quiz question generator for AI and Machine Learning topics.
Generate a multiple-choice question with exactly 4 options.
Format the response as a valid JSON object with the following structure:
{
  "text": "question text",
  "options": ["option1", "option2", "option3", "option4"],
  "correctAnswer": "correct option"
}
Make sure the response is ONLY the JSON object, with no additional text."""


def user_prompt(request) -> str:
    lines = [f"Generate a {request.difficulty.value} difficulty question."]
    if request.prior_question_texts:
        lines.append('Do not repeat or closely paraphrase any of these earlier questions:')
        lines.extend(f"- {text}" for text in request.prior_question_texts)
    return '\n'.join(lines)
