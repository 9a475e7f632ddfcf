"""
JSON schema for generated lessons.

The chat model is asked for structured output via lesson_response_format(),
whose per-question shape comes from question_schema(). Strict structured
outputs need an object at the root, so the question list is
wrapped in {"questions": [...]}.
"""

QUESTION_FIELDS = ("question", "translation", "options", "correctAnswerIndex", "imagePrompt")


def question_schema(language: str) -> dict:
    return {
        "type": "object",
        "properties": {
            "question": {
                "type": "string",
                "description": f"The phrase in {language}",
            },
            "translation": {
                "type": "string",
                "description": "The correct English translation",
            },
            "options": {
                "type": "array",
                "items": {"type": "string"},
                "description": "List of 4 total options (1 correct, 3 incorrect), shuffled",
            },
            "correctAnswerIndex": {
                "type": "integer",
                "description": "Index (0-3) of the correct option in the options array",
            },
            "imagePrompt": {
                "type": "string",
                "description": "A detailed description for an image generator",
            },
        },
        "required": list(QUESTION_FIELDS),
        "additionalProperties": False,
    }


def lesson_response_format(language: str) -> dict:
    """The response_format argument for chat.completions.create."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "vocabulary_lesson",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "questions": {
                        "type": "array",
                        "items": question_schema(language),
                    },
                },
                "required": ["questions"],
                "additionalProperties": False,
            },
        },
    }


LESSON_PROMPT_TEMPLATE = """Create a beginner vocabulary lesson for learning {language}.
Generate {count} distinct multiple-choice questions.
Each question should present a simple word or short phrase in {language}.
The user needs to select the correct English translation.

For each question, provide:
1. The target phrase in {language}.
2. The correct English translation.
3. 3 incorrect English options (distractors), mixed with the correct one into 4 options.
4. A visual description of the phrase (imagePrompt) to generate an illustration
   (e.g., "A cute vector illustration of a red apple").

Do NOT include letter prefixes (A, B, C, D) in option text.
Return valid JSON."""
