"""
Runtime settings for DuoGen Language Buddy.

Values come from a .env file at the project root (via python-dotenv) and the
process environment:

    OPENAI_API_KEY=sk-...
    DUOGEN_IMAGE_SIZE=2K

Settings are loaded once and passed explicitly to whatever needs them.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .logger import logger, mask_secret
from .models import DEFAULT_INITIAL_LIVES, ImageSize


DEFAULT_CHAT_MODEL = "gpt-4o-mini"
# Supports explicit output sizes
DEFAULT_IMAGE_MODEL = "gpt-image-1"
# Square output only, size is fixed
DEFAULT_FALLBACK_IMAGE_MODEL = "dall-e-3"
DEFAULT_LESSON_SIZE = 5
DEFAULT_CHECK_DELAY_MS = 500


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    chat_model: str = DEFAULT_CHAT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    fallback_image_model: str = DEFAULT_FALLBACK_IMAGE_MODEL
    lesson_size: int = DEFAULT_LESSON_SIZE
    initial_lives: int = DEFAULT_INITIAL_LIVES
    check_delay_ms: int = DEFAULT_CHECK_DELAY_MS
    image_size: ImageSize = ImageSize.SIZE_1K


def _int_from_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if value < minimum:
        logger.warning(f"{name}={value} is below {minimum}, using {default}")
        return default
    return value


def _image_size_from_env(name: str, default: ImageSize) -> ImageSize:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return ImageSize.parse(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not one of 1K/2K/4K, using {default.value}")
        return default


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Read .env (if present) and the environment into a Settings value."""
    logger.env("Loading environment variables from .env file...")
    if load_dotenv(dotenv_path):
        logger.env_success("dotenv file loaded successfully")
    else:
        logger.warning("No .env file found or file is empty")

    api_key = os.getenv("OPENAI_API_KEY") or None
    if api_key:
        logger.env_success(f"OPENAI_API_KEY found: {mask_secret(api_key)}")
    else:
        logger.env_error("OPENAI_API_KEY not found in environment")

    settings = Settings(
        api_key=api_key,
        chat_model=os.getenv("DUOGEN_CHAT_MODEL") or DEFAULT_CHAT_MODEL,
        image_model=os.getenv("DUOGEN_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        fallback_image_model=os.getenv("DUOGEN_FALLBACK_IMAGE_MODEL") or DEFAULT_FALLBACK_IMAGE_MODEL,
        lesson_size=_int_from_env("DUOGEN_LESSON_SIZE", DEFAULT_LESSON_SIZE, minimum=1),
        initial_lives=_int_from_env("DUOGEN_INITIAL_LIVES", DEFAULT_INITIAL_LIVES, minimum=1),
        check_delay_ms=_int_from_env("DUOGEN_CHECK_DELAY_MS", DEFAULT_CHECK_DELAY_MS),
        image_size=_image_size_from_env("DUOGEN_IMAGE_SIZE", ImageSize.SIZE_1K),
    )
    logger.env(f"Chat model: {settings.chat_model}")
    logger.env(f"Image models: {settings.image_model} (fallback {settings.fallback_image_model})")
    return settings
