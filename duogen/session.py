from typing import Dict, Optional, Sequence

from .logger import logger
from .models import (
    DEFAULT_INITIAL_LIVES,
    PLACEHOLDER_SCORE,
    LessonResult,
    Question,
    SessionStatus,
    Verdict,
)


class ImageCache:
    """Question index -> illustration bytes for one lesson session."""

    def __init__(self) -> None:
        self._images: Dict[int, bytes] = {}

    def get(self, index: int) -> Optional[bytes]:
        return self._images.get(index)

    def put(self, index: int, image: bytes) -> None:
        self._images[index] = image

    def __contains__(self, index: int) -> bool:
        return index in self._images

    def __len__(self) -> int:
        return len(self._images)


class LessonSession:
    """
    One pass through a fixed, ordered list of questions.

    Lives drop by one on every wrong answer and never regenerate. The session
    ends in failure on the first advance() with no lives left, or in success
    when advance() moves past the last question.
    """

    def __init__(self, questions: Sequence[Question], initial_lives: int = DEFAULT_INITIAL_LIVES):
        if not questions:
            raise ValueError("A lesson session needs at least one question")
        if initial_lives < 1:
            raise ValueError(f"initial_lives must be positive, got {initial_lives}")

        self.questions = tuple(questions)
        self.initial_lives = initial_lives
        self.lives = initial_lives
        self.current_index = 0
        self.result: Optional[LessonResult] = None
        self.image_cache = ImageCache()

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    @property
    def progress(self) -> float:
        """Fraction of questions already completed, 0.0 to 1.0."""
        return self.current_index / self.total

    def current_question(self) -> Optional[Question]:
        if self.current_index >= self.total:
            return None
        return self.questions[self.current_index]

    def record_answer(self, selected_index: int) -> Verdict:
        question = self.current_question()
        if question is None:
            raise ValueError("No current question to answer")

        if selected_index == question.correct_index:
            logger.ui(f"Question {self.current_index + 1}: correct")
            return Verdict.CORRECT

        self.lives = max(0, self.lives - 1)
        logger.ui(f"Question {self.current_index + 1}: incorrect, {self.lives} lives left")
        return Verdict.INCORRECT

    def advance(self) -> LessonResult:
        if self.result is not None:
            return self.result

        if self.lives == 0:
            self.result = LessonResult(SessionStatus.FAILURE, score=0, lives=0)
            logger.ui(f"Lesson failed at question {self.current_index + 1} of {self.total}")
            return self.result

        self.current_index += 1
        if self.current_index == self.total:
            self.result = LessonResult(SessionStatus.SUCCESS, score=PLACEHOLDER_SCORE, lives=self.lives)
            logger.success(f"Lesson complete with {self.lives} lives left")
            return self.result

        return LessonResult(SessionStatus.ACTIVE, lives=self.lives)
