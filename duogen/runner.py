from typing import Callable, Optional, Set

from .api import ContentProvider
from .logger import logger
from .models import AnswerStatus, ImageSize, ImageState, LessonResult, Question, Verdict
from .scheduling import Scheduler
from .session import LessonSession


class QuestionRunner:
    """
    Drives the current question of a LessonSession.

    Answer flow: idle -> checking -> correct/incorrect, then continue_()
    moves to the next question (fresh idle state) or ends the lesson.

    Illustrations are fetched when a question is entered. Results are stored
    by the index they were requested for and the display always reads the
    current index, so a late result for an earlier question lands in the
    cache without touching what is on screen.
    """

    def __init__(
        self,
        session: LessonSession,
        provider: ContentProvider,
        scheduler: Scheduler,
        image_size: ImageSize = ImageSize.SIZE_1K,
        check_delay_ms: int = 500,
        on_change: Optional[Callable[[], None]] = None,
        on_complete: Optional[Callable[[LessonResult], None]] = None,
    ):
        self.session = session
        self.provider = provider
        self.scheduler = scheduler
        self.image_size = image_size
        self.check_delay_ms = check_delay_ms
        self.on_change = on_change
        self.on_complete = on_complete

        self.selected_option: Optional[int] = None
        self.status = AnswerStatus.IDLE
        self.closed = False
        self._unavailable: Set[int] = set()
        self._requested: Set[int] = set()

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def index(self) -> int:
        """Index of the question on screen."""
        return self.session.current_index

    @property
    def question(self) -> Optional[Question]:
        return self.session.current_question()

    @property
    def lives(self) -> int:
        """Lives left in the session."""
        return self.session.lives

    @property
    def progress(self) -> float:
        return self.session.progress

    @property
    def can_check(self) -> bool:
        """True when an option is selected and no answer has been checked yet."""
        return self.status is AnswerStatus.IDLE and self.selected_option is not None

    @property
    def image_state(self) -> ImageState:
        """Illustration state for the current question."""
        cached = self.session.image_cache.get(self.index)
        if cached is not None:
            return ImageState.loaded(cached)
        if self.index in self._unavailable:
            return ImageState.unavailable()
        return ImageState.loading()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Enter the first question."""
        self._enter_question()

    def close(self) -> None:
        """Drop any timer or fetch that completes after this point."""
        self.closed = True

    def select_option(self, option_index: int) -> None:
        """Highlight an option while the question is unanswered."""
        if self.closed or self.status is not AnswerStatus.IDLE:
            return
        question = self.question
        if question is None or not 0 <= option_index < len(question.options):
            logger.warning(f"Ignoring selection of option {option_index}")
            return
        self.selected_option = option_index
        self._changed()

    def check(self) -> None:
        """Lock in the selected option and judge it after the check delay."""
        if self.closed or not self.can_check:
            return
        self.status = AnswerStatus.CHECKING
        logger.ui(f"Checking answer {self.selected_option} for question {self.index + 1}")
        self._changed()
        self.scheduler.call_later(self.check_delay_ms, self._resolve_check)

    def _resolve_check(self) -> None:
        if self.closed or self.status is not AnswerStatus.CHECKING:
            return
        verdict = self.session.record_answer(self.selected_option)
        self.status = AnswerStatus.CORRECT if verdict is Verdict.CORRECT else AnswerStatus.INCORRECT
        self._changed()

    def continue_(self) -> None:
        """Move past an answered question, or finish the lesson."""
        if self.closed or self.status not in (AnswerStatus.CORRECT, AnswerStatus.INCORRECT):
            return
        result = self.session.advance()
        if result.finished:
            logger.info(f"Lesson finished: {result.status.value}, lives={result.lives}")
            if self.on_complete is not None:
                self.on_complete(result)
            return
        self._enter_question()

    # ------------------------------------------------------------------
    # Question entry and illustrations
    # ------------------------------------------------------------------

    def _enter_question(self) -> None:
        self.selected_option = None
        self.status = AnswerStatus.IDLE
        logger.ui(f"Question {self.index + 1} of {self.session.total}")
        self._schedule_image(self.index)
        self._changed()

    def _schedule_image(self, index: int) -> None:
        """Fetch the illustration for question `index` unless it is cached or already known."""
        if index in self.session.image_cache:
            logger.img(f"Using cached illustration for question {index + 1}")
            return
        if index in self._unavailable or index in self._requested:
            return

        question = self.session.questions[index]
        self._requested.add(index)
        self.scheduler.run_async(
            lambda: self.provider.generate_image(question.image_description, self.image_size),
            lambda image: self._on_image_ready(index, image),
            lambda error: self._on_image_failed(index, error),
            name=f"image_question_{index + 1}",
        )

    def _on_image_ready(self, index: int, image: Optional[bytes]) -> None:
        self._requested.discard(index)
        if image:
            self.session.image_cache.put(index, image)
        else:
            logger.img_error(f"No illustration for question {index + 1}")
            self._unavailable.add(index)
        if not self.closed and index == self.index:
            self._changed()

    def _on_image_failed(self, index: int, error: Exception) -> None:
        """Treat a failed fetch as a missing illustration."""
        logger.img_error(f"Illustration for question {index + 1} failed: {error}")
        self._on_image_ready(index, None)

    def _changed(self) -> None:
        if self.on_change is not None and not self.closed:
            self.on_change()
