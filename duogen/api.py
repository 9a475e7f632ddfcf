"""
Content providers for DuoGen Language Buddy.

A ContentProvider turns a language name into a lesson and an image
description into illustration bytes. OpenAIContentProvider is the production
implementation:

- Lesson generation: chat completions with a strict JSON schema
- Illustration generation: a size-aware image model, falling back to a
  fixed-size square model when the first one fails

The API key is read from the CredentialStore on every request and a new
client is built each time, so a key picked mid-session applies at once.
"""

import base64
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from openai import OpenAI

from .config import Settings
from .credentials import CredentialStore
from .errors import GenerationError
from .logger import logger, Timer
from .models import OPTIONS_PER_QUESTION, ImageSize, Question
from .schemas import LESSON_PROMPT_TEMPLATE, lesson_response_format


IMAGE_STYLE_PREFIX = "A fun, vibrant, flat vector style illustration suitable for a language learning app."

# The primary model renders squares only at 1024x1024; ImageSize picks its quality
PRIMARY_IMAGE_PIXELS = "1024x1024"
IMAGE_SIZE_QUALITY = {
    ImageSize.SIZE_1K: "low",
    ImageSize.SIZE_2K: "medium",
    ImageSize.SIZE_4K: "high",
}
FALLBACK_IMAGE_PIXELS = "1024x1024"

# Words that tend to trip image safety filters, with harmless stand-ins
_PROMPT_REPLACEMENTS = {
    "weapon": "tool",
    "gun": "camera",
    "knife": "utensil",
    "sword": "stick",
    "naked": "dressed",
    "nude": "clothed",
    "war": "peace",
    "battle": "game",
    "fight": "play",
}
MAX_IMAGE_PROMPT_CHARS = 400


class ContentProvider(ABC):
    """Source of lessons and illustrations."""

    @abstractmethod
    def generate_lesson(self, language: str) -> List[Question]:
        """Return the lesson's questions in order, or raise GenerationError."""

    @abstractmethod
    def generate_image(self, description: str, size: ImageSize = ImageSize.SIZE_1K) -> Optional[bytes]:
        """Return image bytes, or None when no image could be produced."""


def sanitize_image_prompt(prompt: str) -> str:
    """
    Replace terms likely to trigger content filters and cap the length.
    """
    if not prompt or not prompt.strip():
        logger.debug("Empty image prompt, using default")
        return "a simple educational illustration"

    sanitized = prompt.strip()
    replaced = []
    for word, replacement in _PROMPT_REPLACEMENTS.items():
        pattern = r"\b" + re.escape(word) + r"\b"
        if re.search(pattern, sanitized, flags=re.IGNORECASE):
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
            replaced.append(f"{word}->{replacement}")
    if replaced:
        logger.debug(f"Sanitized prompt: {', '.join(replaced)}")

    if len(sanitized) > MAX_IMAGE_PROMPT_CHARS:
        sanitized = sanitized[:MAX_IMAGE_PROMPT_CHARS].rstrip() + "..."
        logger.debug(f"Truncated prompt to {MAX_IMAGE_PROMPT_CHARS} chars")
    return sanitized


def _clean_option_text(option: str) -> str:
    """Remove letter/number prefixes such as 'A. ', 'a) ', '(b) ', '1. '."""
    cleaned = re.sub(r"^[A-D]\.\s+", "", str(option).strip())
    cleaned = re.sub(r"^[a-d]\)\s*", "", cleaned)
    cleaned = re.sub(r"^\(\s*[a-dA-D]\s*\)\s*", "", cleaned)
    cleaned = re.sub(r"^[1-4][.)]\s*", "", cleaned)
    return cleaned.strip()


def _json_to_question(index: int, item: Dict[str, Any]) -> Question:
    """
    Convert one generated record into a Question.

    A record whose correctAnswerIndex disagrees with its translation is
    repaired when the translation is among the options; anything else that
    breaks the question invariants rejects the whole lesson.
    """
    if not isinstance(item, dict):
        raise GenerationError(f"Question {index} is not an object")

    missing = [key for key in ("question", "translation", "options", "correctAnswerIndex") if key not in item]
    if missing:
        raise GenerationError(f"Question {index} is missing {', '.join(missing)}")

    prompt = str(item["question"]).strip()
    translation = str(item["translation"]).strip()
    raw_options = item["options"]
    if not isinstance(raw_options, list):
        raise GenerationError(f"Question {index} options are not a list")
    options = [_clean_option_text(opt) for opt in raw_options]

    if not prompt or not translation:
        raise GenerationError(f"Question {index} has an empty phrase or translation")
    if len(options) != OPTIONS_PER_QUESTION:
        raise GenerationError(
            f"Question {index} has {len(options)} options, expected {OPTIONS_PER_QUESTION}"
        )

    try:
        correct_index = int(item["correctAnswerIndex"])
    except (TypeError, ValueError):
        raise GenerationError(f"Question {index} has a non-integer correctAnswerIndex")

    in_range = 0 <= correct_index < len(options)
    if not in_range or options[correct_index] != translation:
        if translation not in options:
            raise GenerationError(f"Question {index}: translation '{translation}' is not among the options")
        repaired = options.index(translation)
        logger.warning(f"Question {index}: correctAnswerIndex {correct_index} repaired to {repaired}")
        correct_index = repaired

    image_description = str(item.get("imagePrompt") or "").strip() or f"the meaning of '{translation}'"

    return Question(
        id=index,
        prompt=prompt,
        translation=translation,
        options=tuple(options),
        correct_index=correct_index,
        image_description=image_description,
    )


def parse_lesson(raw: Optional[str]) -> List[Question]:
    """Parse the model's JSON text into questions; all or nothing."""
    if not raw or not raw.strip():
        raise GenerationError("No data returned")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Lesson is not valid JSON: {e}") from e

    items = data.get("questions") if isinstance(data, dict) else data
    if not isinstance(items, list) or not items:
        raise GenerationError("Lesson contains no questions")
    return [_json_to_question(i, item) for i, item in enumerate(items)]


class OpenAIContentProvider(ContentProvider):
    """ContentProvider backed by the OpenAI API."""

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore,
        client_factory: Callable[..., OpenAI] = OpenAI,
    ):
        self.settings = settings
        self.credentials = credentials
        self._client_factory = client_factory

    def _client(self) -> Optional[OpenAI]:
        api_key = self.credentials.api_key
        if not api_key:
            return None
        return self._client_factory(api_key=api_key)

    # ------------------------------------------------------------------
    # Lesson generation
    # ------------------------------------------------------------------

    def generate_lesson(self, language: str) -> List[Question]:
        logger.separator(f"Generating Lesson for {language}")
        logger.api(f"generate_lesson() called for language: {language}")

        client = self._client()
        if client is None:
            logger.api_error("No API key configured")
            raise GenerationError("No API key configured")

        prompt = LESSON_PROMPT_TEMPLATE.format(language=language, count=self.settings.lesson_size)
        try:
            logger.api_call("chat.completions.create", model=self.settings.chat_model)
            with Timer() as timer:
                completion = client.chat.completions.create(
                    model=self.settings.chat_model,
                    response_format=lesson_response_format(language),
                    messages=[
                        {
                            "role": "system",
                            "content": "You are an expert language teacher writing beginner vocabulary quizzes.",
                        },
                        {"role": "user", "content": prompt},
                    ],
                    temperature=0.8,
                )
            logger.api_response("chat.completions.create", duration_ms=timer.duration_ms)
        except Exception as e:
            logger.api_error(f"Lesson generation failed: {e}", exc_info=True)
            raise GenerationError(f"Lesson generation failed: {e}") from e

        try:
            raw = completion.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise GenerationError("Response has no message content") from e

        questions = parse_lesson(raw)
        logger.success(f"Generated {len(questions)} questions for {language}")
        return questions

    # ------------------------------------------------------------------
    # Illustration generation
    # ------------------------------------------------------------------

    def _request_image(self, client: OpenAI, model: str, prompt: str, **params) -> Optional[bytes]:
        logger.api_call("images.generate", model=model)
        with Timer() as timer:
            result = client.images.generate(model=model, prompt=prompt, n=1, **params)
        logger.api_response("images.generate", duration_ms=timer.duration_ms)

        if not result.data:
            logger.img_error("Response contained no images")
            return None
        b64 = getattr(result.data[0], "b64_json", None)
        if not b64:
            logger.img_error("Response missing b64_json data")
            return None
        image_bytes = base64.b64decode(b64)
        logger.img_complete(len(image_bytes), duration_ms=timer.duration_ms)
        return image_bytes

    def generate_image(self, description: str, size: ImageSize = ImageSize.SIZE_1K) -> Optional[bytes]:
        client = self._client()
        if client is None:
            logger.warning("No API key configured, skipping image generation")
            return None

        prompt = f"{IMAGE_STYLE_PREFIX} {sanitize_image_prompt(description)}"
        logger.img_start(description)

        try:
            image = self._request_image(
                client,
                self.settings.image_model,
                prompt,
                size=PRIMARY_IMAGE_PIXELS,
                quality=IMAGE_SIZE_QUALITY[ImageSize(size)],
            )
            if image:
                return image
            logger.warning(f"Primary image model returned nothing, falling back to {self.settings.fallback_image_model}")
        except Exception as e:
            logger.warning(f"Primary image model failed, falling back to {self.settings.fallback_image_model}: {e}")

        try:
            return self._request_image(
                client,
                self.settings.fallback_image_model,
                prompt,
                size=FALLBACK_IMAGE_PIXELS,
                response_format="b64_json",
            )
        except Exception as e:
            logger.img_error(f"Fallback image generation also failed: {e}")
            return None
