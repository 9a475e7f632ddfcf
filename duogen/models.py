from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


OPTIONS_PER_QUESTION = 4
DEFAULT_INITIAL_LIVES = 3
# Scoring was never defined beyond this constant
PLACEHOLDER_SCORE = 100


class ImageSize(str, Enum):
    """Requested illustration resolution."""
    SIZE_1K = "1K"
    SIZE_2K = "2K"
    SIZE_4K = "4K"

    @classmethod
    def parse(cls, value: str) -> "ImageSize":
        return cls(value.strip().upper())


class AnswerStatus(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class Verdict(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    SUCCESS = "success"
    FAILURE = "failure"


class ImageStatus(str, Enum):
    LOADING = "loading"
    LOADED = "loaded"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Language:
    """A target language offered on the home screen."""
    id: str
    name: str
    flag: str


LANGUAGES: Tuple[Language, ...] = (
    Language("es", "Spanish", "🇪🇸"),
    Language("fr", "French", "🇫🇷"),
    Language("jp", "Japanese", "🇯🇵"),
    Language("de", "German", "🇩🇪"),
    Language("it", "Italian", "🇮🇹"),
    Language("kr", "Korean", "🇰🇷"),
)


@dataclass(frozen=True)
class Question:
    """A single multiple-choice vocabulary question."""
    id: int                          # Position in the lesson
    prompt: str                      # Phrase in the target language
    translation: str                 # Correct English meaning
    options: Tuple[str, ...]         # English choices, order fixed at creation
    correct_index: int
    image_description: str          # Description handed to the image model

    def __post_init__(self) -> None:
        # Accept lists from JSON but store an immutable tuple
        object.__setattr__(self, "options", tuple(self.options))
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValueError(
                f"Question {self.id} needs {OPTIONS_PER_QUESTION} options, got {len(self.options)}"
            )
        if not 0 <= self.correct_index < OPTIONS_PER_QUESTION:
            raise ValueError(f"Question {self.id} has correct_index {self.correct_index} out of range")
        if self.options[self.correct_index] != self.translation:
            raise ValueError(
                f"Question {self.id}: option {self.correct_index} is "
                f"'{self.options[self.correct_index]}', expected '{self.translation}'"
            )

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


@dataclass(frozen=True)
class LessonResult:
    """Outcome reported by LessonSession.advance()."""
    status: SessionStatus
    score: int = 0
    lives: int = 0

    @property
    def finished(self) -> bool:
        return self.status is not SessionStatus.ACTIVE


@dataclass(frozen=True)
class ImageState:
    """What the illustration area of the current question shows."""
    status: ImageStatus
    data: Optional[bytes] = None

    @classmethod
    def loading(cls) -> "ImageState":
        return cls(ImageStatus.LOADING)

    @classmethod
    def loaded(cls, data: bytes) -> "ImageState":
        return cls(ImageStatus.LOADED, data)

    @classmethod
    def unavailable(cls) -> "ImageState":
        return cls(ImageStatus.UNAVAILABLE)
