"""
Screen state machine for DuoGen Language Buddy.

transition() is a pure function over AppState and the events below; the
AppController runs it and performs the effects tied to entering each screen:

    HOME            -> (nothing, lesson objects discarded)
    LESSON_LOADING  -> fetch the lesson in the background
    LESSON_ACTIVE   -> build LessonSession + QuestionRunner and start it
    LESSON_COMPLETE -> stop the runner, keep the result for display

Views subscribe to the controller and render from `state` and `runner`.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type

from .api import ContentProvider
from .config import Settings
from .credentials import CredentialStore
from .logger import logger
from .models import ImageSize, LessonResult, Question
from .runner import QuestionRunner
from .scheduling import Scheduler
from .session import LessonSession


LESSON_FAILED_NOTICE = "Failed to generate lesson. Please check your connection and API key."
KEY_REQUIRED_NOTICE = "An API key is required to start a lesson."


class Screen(str, Enum):
    HOME = "HOME"
    LESSON_LOADING = "LESSON_LOADING"
    LESSON_ACTIVE = "LESSON_ACTIVE"
    LESSON_COMPLETE = "LESSON_COMPLETE"


@dataclass(frozen=True)
class AppState:
    screen: Screen = Screen.HOME
    language: Optional[str] = None
    questions: Tuple[Question, ...] = ()
    result: Optional[LessonResult] = None
    has_credential: bool = False
    image_size: ImageSize = ImageSize.SIZE_1K
    notice: Optional[str] = None


# --- Events ---

@dataclass(frozen=True)
class StartLesson:
    language: str


@dataclass(frozen=True)
class LessonLoaded:
    questions: Tuple[Question, ...]


@dataclass(frozen=True)
class LessonFailed:
    message: str = LESSON_FAILED_NOTICE


@dataclass(frozen=True)
class SessionFinished:
    result: LessonResult


@dataclass(frozen=True)
class ContinuePressed:
    pass


@dataclass(frozen=True)
class ExitPressed:
    pass


@dataclass(frozen=True)
class CredentialChecked:
    has_credential: bool


@dataclass(frozen=True)
class ImageSizeSelected:
    size: ImageSize


@dataclass(frozen=True)
class NoticeDismissed:
    pass


@dataclass(frozen=True)
class KeyRequired:
    pass


# --- Transition table ---

def _home(state: AppState) -> AppState:
    """Back to the home screen with the lesson discarded."""
    return replace(state, screen=Screen.HOME, language=None, questions=(), result=None)


def _start(state: AppState, event: StartLesson) -> AppState:
    return replace(state, screen=Screen.LESSON_LOADING, language=event.language, notice=None)


def _loaded(state: AppState, event: LessonLoaded) -> AppState:
    """Show the lesson, or fail it when no questions came back."""
    if not event.questions:
        return _failed(state, LessonFailed())
    return replace(state, screen=Screen.LESSON_ACTIVE, questions=tuple(event.questions))


def _failed(state: AppState, event: LessonFailed) -> AppState:
    return replace(_home(state), notice=event.message)


def _finished(state: AppState, event: SessionFinished) -> AppState:
    return replace(state, screen=Screen.LESSON_COMPLETE, result=event.result)


TRANSITIONS: Dict[Tuple[Optional[Screen], Type], Callable] = {
    (Screen.HOME, StartLesson): _start,
    (Screen.LESSON_LOADING, LessonLoaded): _loaded,
    (Screen.LESSON_LOADING, LessonFailed): _failed,
    (Screen.LESSON_ACTIVE, SessionFinished): _finished,
    (Screen.LESSON_COMPLETE, ContinuePressed): lambda state, event: _home(state),
    (Screen.LESSON_ACTIVE, ExitPressed): lambda state, event: _home(state),
    (Screen.HOME, ImageSizeSelected): lambda state, event: replace(state, image_size=event.size),
    (Screen.HOME, NoticeDismissed): lambda state, event: replace(state, notice=None),
    (Screen.HOME, KeyRequired): lambda state, event: replace(state, notice=KEY_REQUIRED_NOTICE),
    # None matches every screen
    (None, CredentialChecked): lambda state, event: replace(state, has_credential=event.has_credential),
}


def transition(state: AppState, event) -> AppState:
    """Next state for `event`, or `state` unchanged if the event is not allowed."""
    handler = TRANSITIONS.get((state.screen, type(event))) or TRANSITIONS.get((None, type(event)))
    if handler is None:
        logger.warning(f"Ignoring {type(event).__name__} on {state.screen.value}")
        return state
    return handler(state, event)


class AppController:
    """Owns the current AppState and the lesson objects of the active screen."""

    def __init__(
        self,
        settings: Settings,
        provider: ContentProvider,
        credentials: CredentialStore,
        scheduler: Scheduler,
    ):
        self.settings = settings
        self.provider = provider
        self.credentials = credentials
        self.scheduler = scheduler

        self.state = AppState(image_size=settings.image_size)
        self.session: Optional[LessonSession] = None
        self.runner: Optional[QuestionRunner] = None
        self._listeners: List[Callable[[], None]] = []

        self.refresh_credential_status()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Register a callback run after every state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ------------------------------------------------------------------
    # Dispatch and entry effects
    # ------------------------------------------------------------------

    def dispatch(self, event) -> AppState:
        """Apply `event`, run the entry effect of a new screen and notify views."""
        previous = self.state
        self.state = transition(previous, event)
        if self.state.screen is not previous.screen:
            logger.ui_transition(previous.screen.value, self.state.screen.value)
            self._on_enter(self.state.screen)
        self._notify()
        return self.state

    def _on_enter(self, screen: Screen) -> None:
        """Run the effect tied to entering `screen`."""
        if screen is Screen.LESSON_LOADING:
            self._fetch_lesson(self.state.language)
        elif screen is Screen.LESSON_ACTIVE:
            self._begin_session()
        else:
            self._discard_session()

    def _fetch_lesson(self, language: str) -> None:
        """Generate the lesson on a background thread."""
        self.scheduler.run_async(
            lambda: self.provider.generate_lesson(language),
            lambda questions: self.dispatch(LessonLoaded(tuple(questions))),
            self._on_lesson_error,
            name=f"generate_lesson_{language}",
        )

    def _on_lesson_error(self, error: Exception) -> None:
        """Return home with a notice when lesson generation fails."""
        logger.error(f"Error starting lesson: {error}")
        self.dispatch(LessonFailed())

    def _begin_session(self) -> None:
        """Create the session and runner for the loaded questions."""
        self.session = LessonSession(self.state.questions, self.settings.initial_lives)
        runner = QuestionRunner(
            self.session,
            self.provider,
            self.scheduler,
            image_size=self.state.image_size,
            check_delay_ms=self.settings.check_delay_ms,
        )
        runner.on_change = lambda: self._on_runner_change(runner)
        runner.on_complete = lambda result: self._on_runner_complete(runner, result)
        self.runner = runner
        runner.start()

    def _discard_session(self) -> None:
        """Close the runner so its late callbacks are dropped."""
        if self.runner is not None:
            self.runner.close()
        self.runner = None
        self.session = None

    def _on_runner_change(self, runner: QuestionRunner) -> None:
        if runner is self.runner:
            self._notify()

    def _on_runner_complete(self, runner: QuestionRunner, result: LessonResult) -> None:
        if runner is self.runner:
            self.dispatch(SessionFinished(result))

    # ------------------------------------------------------------------
    # Home screen actions
    # ------------------------------------------------------------------

    def refresh_credential_status(self) -> bool:
        """Query the credential store and update the key indicator."""
        has_key = self.credentials.has_credential()
        self.dispatch(CredentialChecked(has_key))
        return has_key

    def select_key(self) -> None:
        """Prompt for a key, then re-check it."""
        self.credentials.prompt_selection()
        self.refresh_credential_status()

    def start_lesson(self, language: str) -> None:
        """Start a lesson in `language`, asking for a key first when none is set."""
        if self.state.screen is not Screen.HOME:
            logger.warning(f"start_lesson ignored on {self.state.screen.value}")
            return
        logger.ui(f"User selected language: {language}")

        if not self.credentials.has_credential():
            self.credentials.prompt_selection()
            if not self.refresh_credential_status():
                logger.warning("Still no API key after prompting, staying on home screen")
                self.dispatch(KeyRequired())
                return

        self.dispatch(StartLesson(language))

    def set_image_size(self, size: ImageSize) -> None:
        """Choose the illustration quality for the next lesson."""
        self.dispatch(ImageSizeSelected(ImageSize(size)))

    def dismiss_notice(self) -> None:
        """Clear the notice after the view has shown it."""
        self.dispatch(NoticeDismissed())

    # ------------------------------------------------------------------
    # Lesson actions
    # ------------------------------------------------------------------

    def select_option(self, option_index: int) -> None:
        if self.runner is not None:
            self.runner.select_option(option_index)

    def check(self) -> None:
        if self.runner is not None:
            self.runner.check()

    def continue_lesson(self) -> None:
        if self.runner is not None:
            self.runner.continue_()

    def exit_lesson(self) -> None:
        """Abandon the active lesson."""
        self.dispatch(ExitPressed())

    def continue_pressed(self) -> None:
        """Leave the completion screen."""
        self.dispatch(ContinuePressed())
