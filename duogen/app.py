"""
Tkinter front end for DuoGen Language Buddy.

Each screen is a card (ttk.Frame) stacked in one grid cell. The window
subscribes to the AppController and, on every change, raises the card for
the current screen and lets it redraw from controller state. Cards never
hold lesson state of their own.
"""

import io
import tkinter as tk
from tkinter import messagebox, simpledialog, ttk
from typing import Dict, List, Optional

from PIL import Image, ImageTk

from .api import OpenAIContentProvider
from .config import Settings, load_settings
from .controller import AppController, Screen
from .credentials import CredentialStore
from .logger import logger
from .models import LANGUAGES, AnswerStatus, ImageSize, ImageStatus
from .scheduling import TkScheduler


BG = "#1e1e1e"
FG = "#e0e0e0"
GREEN = "#58cc02"
RED = "#ff4b4b"
BLUE = "#7bb3ff"
MUTED = "#9a9a9a"


# ---------------------------------------------------------------------------
# Widgets
# ---------------------------------------------------------------------------

class ResponsiveImage(ttk.Frame):
    """
    Square illustration area that scales image bytes to the window height.
    """

    MIN_SIDE = 150
    MAX_SIDE = 420
    TARGET_HEIGHT_FRACTION = 0.35

    def __init__(self, parent, **kwargs) -> None:
        super().__init__(parent, **kwargs)
        self._original_image: Optional[Image.Image] = None
        self._image_bytes: Optional[bytes] = None
        self._undecodable: Optional[bytes] = None
        self._photo: Optional[ImageTk.PhotoImage] = None

        self.image_label = ttk.Label(self, anchor="center", justify="center")
        self.image_label.pack(fill="both", expand=True)
        self.bind("<Configure>", self._on_resize)

    def set_image_bytes(self, data: bytes) -> bool:
        """
        Display PNG/JPEG bytes. Returns False if they cannot be decoded.

        A payload that failed to decode is remembered and not decoded again.
        """
        if data is self._image_bytes and self._original_image is not None:
            return True
        if data is self._undecodable:
            return False
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (OSError, ValueError) as e:
            logger.img_error(f"Could not decode illustration: {e}")
            self.set_placeholder("[Could not display image]")
            self._undecodable = data
            return False
        self._image_bytes = data
        self._original_image = image
        self._update_display()
        return True

    def set_placeholder(self, text: str) -> None:
        """Show text in place of an illustration."""
        self._original_image = None
        self._image_bytes = None
        self._photo = None
        self.image_label.configure(text=text, image="")

    def _on_resize(self, event: tk.Event) -> None:
        """Rescale the illustration when the window changes size."""
        if self._original_image is not None:
            self._update_display()

    def _update_display(self) -> None:
        """Fit the original image into a square sized from the window height."""
        if self._original_image is None:
            return
        window_height = self.winfo_toplevel().winfo_height() or 750
        side = int(window_height * self.TARGET_HEIGHT_FRACTION)
        side = max(self.MIN_SIDE, min(side, self.MAX_SIDE))

        resized = self._original_image.copy()
        resized.thumbnail((side, side), Image.Resampling.LANCZOS)
        self._photo = ImageTk.PhotoImage(resized)
        self.image_label.configure(image=self._photo, text="")


class LoadingSpinner(ttk.Frame):
    """A text spinner animated with after()."""

    SPINNER_CHARS = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

    def __init__(self, parent, text: str = "Loading...") -> None:
        super().__init__(parent)
        self.text = text
        self.spinner_index = 0
        self.is_running = False
        self._after_id = None

        self.label = ttk.Label(
            self,
            text=f"{self.SPINNER_CHARS[0]} {text}",
            font=("Helvetica", 14),
            foreground=BLUE,
        )
        self.label.pack(pady=20)

    def start(self) -> None:
        """Start the spinner animation."""
        if self.is_running:
            return
        self.is_running = True
        self._animate()

    def stop(self) -> None:
        """Stop the spinner animation."""
        self.is_running = False
        if self._after_id:
            self.after_cancel(self._after_id)
            self._after_id = None

    def _animate(self) -> None:
        """Advance the spinner by one frame."""
        if not self.is_running:
            return
        char = self.SPINNER_CHARS[self.spinner_index]
        self.label.configure(text=f"{char} {self.text}")
        self.spinner_index = (self.spinner_index + 1) % len(self.SPINNER_CHARS)
        self._after_id = self.after(100, self._animate)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

class HomeCard(ttk.Frame):
    """Language picker with the key indicator and illustration quality buttons."""

    def __init__(self, parent, controller: AppController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)

        header = ttk.Frame(self)
        header.grid(row=0, column=0, sticky="ew", padx=24, pady=(24, 16))
        header.columnconfigure(0, weight=1)

        ttk.Label(header, text="DuoGen AI", font=("Helvetica", 26, "bold"), foreground=GREEN).grid(
            row=0, column=0, sticky="w"
        )
        self.key_button = ttk.Button(header, text="SET KEY", command=controller.select_key)
        self.key_button.grid(row=0, column=1, sticky="e")

        ttk.Label(self, text="I want to learn...", font=("Helvetica", 18, "bold")).grid(
            row=1, column=0, pady=(0, 12)
        )

        size_frame = ttk.Frame(self)
        size_frame.grid(row=2, column=0, pady=(0, 16))
        ttk.Label(size_frame, text="IMAGE QUALITY", font=("Helvetica", 11, "bold")).grid(
            row=0, column=0, columnspan=3, pady=(0, 4)
        )
        self.size_buttons: Dict[ImageSize, ttk.Button] = {}
        for col, size in enumerate(ImageSize):
            button = ttk.Button(
                size_frame,
                text=size.value,
                width=5,
                command=lambda s=size: controller.set_image_size(s),
            )
            button.grid(row=1, column=col, padx=4)
            self.size_buttons[size] = button

        grid = ttk.Frame(self)
        grid.grid(row=3, column=0, pady=(0, 16))
        for i, language in enumerate(LANGUAGES):
            ttk.Button(
                grid,
                text=f"{language.flag}  {language.name}",
                width=16,
                command=lambda name=language.name: controller.start_lesson(name),
            ).grid(row=i // 2, column=i % 2, padx=8, pady=8, ipady=10)

        ttk.Label(
            self,
            text="Powered by OpenAI chat and image models",
            font=("Helvetica", 11),
            foreground=MUTED,
        ).grid(row=4, column=0, pady=(16, 24))

    def render(self) -> None:
        """Update the key indicator and highlight the chosen quality."""
        state = self.controller.state
        self.key_button.configure(text="KEY ACTIVE" if state.has_credential else "SET KEY")
        for size, button in self.size_buttons.items():
            button.configure(style="Selected.TButton" if size is state.image_size else "TButton")


class LoadingCard(ttk.Frame):
    """Shown while the lesson is generated."""

    def __init__(self, parent, controller: AppController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)
        self.rowconfigure(4, weight=1)

        ttk.Label(self, text="Creating your lesson...", font=("Helvetica", 22, "bold")).grid(
            row=1, column=0, pady=(0, 8)
        )
        self.detail_label = ttk.Label(
            self,
            text="",
            font=("Helvetica", 13),
            foreground=MUTED,
            wraplength=420,
            justify="center",
        )
        self.detail_label.grid(row=2, column=0, padx=24)
        self.spinner = LoadingSpinner(self, text="Generating questions...")
        self.spinner.grid(row=3, column=0, pady=(16, 0))

    def render(self) -> None:
        """Name the language and run the spinner only while loading."""
        language = self.controller.state.language or "your language"
        self.detail_label.configure(
            text=f"The AI is crafting {language} questions and custom illustrations just for you."
        )
        if self.controller.state.screen is Screen.LESSON_LOADING:
            self.spinner.start()
        else:
            self.spinner.stop()


class LessonCardView(ttk.Frame):
    """
    One multiple-choice question: illustration, phrase, four options and
    the Check/Continue button. Drawn entirely from the QuestionRunner.
    """

    def __init__(self, parent, controller: AppController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)

        header = ttk.Frame(self)
        header.grid(row=0, column=0, sticky="ew", padx=16, pady=(16, 8))
        header.columnconfigure(1, weight=1)
        ttk.Button(header, text="✕", width=3, command=controller.exit_lesson).grid(row=0, column=0)
        self.progress_bar = ttk.Progressbar(header, maximum=1.0, mode="determinate")
        self.progress_bar.grid(row=0, column=1, sticky="ew", padx=12)
        self.lives_label = ttk.Label(header, text="", font=("Helvetica", 15, "bold"), foreground=RED)
        self.lives_label.grid(row=0, column=2)

        ttk.Label(self, text="Select the correct meaning", font=("Helvetica", 20, "bold")).grid(
            row=1, column=0, pady=(4, 8)
        )

        self.image = ResponsiveImage(self)
        self.image.grid(row=2, column=0, pady=(0, 8))

        self.prompt_label = ttk.Label(
            self, text="", font=("Helvetica", 20, "bold"), foreground="#ffffff", justify="center"
        )
        self.prompt_label.grid(row=3, column=0, pady=(4, 12))

        self.options_frame = ttk.Frame(self)
        self.options_frame.grid(row=4, column=0, padx=24, sticky="ew")
        self.options_frame.columnconfigure(0, weight=1)
        self.option_buttons: List[ttk.Button] = []

        self.feedback_label = ttk.Label(self, text="", font=("Helvetica", 15, "bold"), justify="center")
        self.feedback_label.grid(row=5, column=0, pady=(12, 4))

        self.action_button = ttk.Button(self, text="Check", command=self._on_action)
        self.action_button.grid(row=6, column=0, pady=(4, 24), ipadx=40, ipady=6)

        self._rendered_index: Optional[int] = None

    def _on_action(self) -> None:
        """Check the answer, or continue once it has been judged."""
        runner = self.controller.runner
        if runner is None:
            return
        if runner.status is AnswerStatus.IDLE:
            self.controller.check()
        else:
            self.controller.continue_lesson()

    def _build_option_buttons(self, options) -> None:
        """Recreate one button per answer option."""
        for button in self.option_buttons:
            button.destroy()
        self.option_buttons = []
        for i, option in enumerate(options):
            button = ttk.Button(
                self.options_frame,
                text=option,
                command=lambda idx=i: self.controller.select_option(idx),
            )
            button.grid(row=i, column=0, sticky="ew", pady=4, ipady=6)
            self.option_buttons.append(button)

    def render(self) -> None:
        """Render the lesson card from runner state."""
        runner = self.controller.runner
        if runner is None or runner.question is None:
            return
        question = runner.question

        if self._rendered_index != runner.index or len(self.option_buttons) != len(question.options):
            self._build_option_buttons(question.options)
            self._rendered_index = runner.index

        self.progress_bar.configure(value=runner.progress)
        self.lives_label.configure(text=f"♥ {runner.lives}")
        self.prompt_label.configure(text=question.prompt)

        image_state = runner.image_state
        if image_state.status is ImageStatus.LOADED:
            self.image.set_image_bytes(image_state.data)
        elif image_state.status is ImageStatus.LOADING:
            self.image.set_placeholder("🖌  AI Drawing...")
        else:
            self.image.set_placeholder("🎨\nImage unavailable\n(Check API Key)")

        answering = runner.status is AnswerStatus.IDLE
        for i, button in enumerate(self.option_buttons):
            style = "TButton"
            if answering and i == runner.selected_option:
                style = "Selected.TButton"
            elif runner.status in (AnswerStatus.CORRECT, AnswerStatus.INCORRECT):
                if i == question.correct_index:
                    style = "Correct.TButton"
                elif i == runner.selected_option:
                    style = "Incorrect.TButton"
            button.configure(style=style, state="normal" if answering else "disabled")

        if runner.status is AnswerStatus.CORRECT:
            self.feedback_label.configure(text="✓ Nice job!", foreground=GREEN)
        elif runner.status is AnswerStatus.INCORRECT:
            self.feedback_label.configure(
                text=f"✗ Correct solution:\n{question.correct_option}", foreground=RED
            )
        elif runner.status is AnswerStatus.CHECKING:
            self.feedback_label.configure(text="Checking...", foreground=BLUE)
        else:
            self.feedback_label.configure(text="")

        if answering:
            self.action_button.configure(text="Check", state="normal" if runner.can_check else "disabled")
        elif runner.status is AnswerStatus.CHECKING:
            self.action_button.configure(text="Check", state="disabled")
        else:
            self.action_button.configure(text="Continue", state="normal")

    def reset(self) -> None:
        """Force the option buttons to be rebuilt on the next render."""
        self._rendered_index = None


class CompleteCard(ttk.Frame):
    """Lesson result: score and lives left."""

    def __init__(self, parent, controller: AppController) -> None:
        super().__init__(parent)
        self.controller = controller
        self.columnconfigure(0, weight=1)
        self.columnconfigure(1, weight=1)

        self.title_label = ttk.Label(self, text="Lesson Complete!", font=("Helvetica", 30, "bold"))
        self.title_label.grid(row=0, column=0, columnspan=2, pady=(80, 30))

        ttk.Label(self, text="SCORE", font=("Helvetica", 11, "bold")).grid(row=1, column=0)
        ttk.Label(self, text="LIVES LEFT", font=("Helvetica", 11, "bold")).grid(row=1, column=1)
        self.score_label = ttk.Label(self, text="", font=("Helvetica", 28, "bold"), foreground=GREEN)
        self.score_label.grid(row=2, column=0, pady=(4, 40))
        self.lives_label = ttk.Label(self, text="", font=("Helvetica", 28, "bold"), foreground=RED)
        self.lives_label.grid(row=2, column=1, pady=(4, 40))

        ttk.Button(self, text="Continue", command=controller.continue_pressed).grid(
            row=3, column=0, columnspan=2, ipadx=60, ipady=8
        )

    def render(self) -> None:
        """Show the final score and lives."""
        result = self.controller.state.result
        if result is None:
            return
        self.title_label.configure(text="Lesson Complete!" if result.lives > 0 else "Out of lives!")
        self.score_label.configure(text=str(result.score))
        self.lives_label.configure(text=str(result.lives))


SCREEN_CARDS = {
    Screen.HOME: HomeCard,
    Screen.LESSON_LOADING: LoadingCard,
    Screen.LESSON_ACTIVE: LessonCardView,
    Screen.LESSON_COMPLETE: CompleteCard,
}


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------

class DuoGenApp(tk.Tk):
    """Main window. Stacks one card per screen and raises the current one."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        logger.ui("Initializing DuoGenApp window...")
        self.title("DuoGen AI")

        window_width, window_height = 520, 820
        center_x = int(self.winfo_screenwidth() / 2 - window_width / 2)
        center_y = int(self.winfo_screenheight() / 2 - window_height / 2)
        self.geometry(f"{window_width}x{window_height}+{center_x}+{max(center_y, 0)}")
        self.minsize(420, 600)
        self._configure_style()

        settings = settings or load_settings()
        credentials = CredentialStore(settings.api_key, selector=self._ask_for_key)
        self.controller = AppController(
            settings,
            OpenAIContentProvider(settings, credentials),
            credentials,
            TkScheduler(self),
        )

        container = ttk.Frame(self)
        container.pack(fill="both", expand=True)
        container.rowconfigure(0, weight=1)
        container.columnconfigure(0, weight=1)

        self.cards: Dict[Screen, ttk.Frame] = {}
        for screen, card_class in SCREEN_CARDS.items():
            card = card_class(parent=container, controller=self.controller)
            card.grid(row=0, column=0, sticky="nsew")
            self.cards[screen] = card

        self._shown_screen: Optional[Screen] = None
        self.controller.subscribe(self.render)
        self.render()
        logger.ui("Application initialized successfully")

    def _configure_style(self) -> None:
        """Apply the dark clam theme and the answer button styles."""
        self.configure(bg=BG)
        style = ttk.Style()
        style.theme_use("clam")
        style.configure("TFrame", background=BG)
        style.configure("TLabel", background=BG, foreground=FG, font=("Helvetica", 14))
        style.configure("TButton", background="#2d2d2d", foreground=FG, font=("Helvetica", 14))
        style.map("TButton", background=[("active", "#3d3d3d")])
        style.configure("Selected.TButton", background="#4a6fa5", foreground="#ffffff")
        style.map("Selected.TButton", background=[("active", "#5a7fb5")])
        style.configure("Correct.TButton", background="#2e7d32", foreground="#ffffff")
        style.configure("Incorrect.TButton", background="#b71c1c", foreground="#ffffff")
        style.configure("TProgressbar", background=GREEN, troughcolor="#2d2d2d")

    def _ask_for_key(self) -> Optional[str]:
        """Ask for an OpenAI API key in a masked dialog."""
        return simpledialog.askstring(
            "OpenAI API key",
            "Paste your OpenAI API key:",
            show="*",
            parent=self,
        )

    def render(self) -> None:
        """Raise the card for the current screen and show any pending notice."""
        state = self.controller.state
        card = self.cards[state.screen]
        if state.screen is not self._shown_screen:
            if state.screen is Screen.LESSON_ACTIVE:
                self.cards[Screen.LESSON_ACTIVE].reset()
            card.tkraise()
            self._shown_screen = state.screen
        for each in self.cards.values():
            if each is card or isinstance(each, LoadingCard):
                each.render()

        if state.notice:
            notice = state.notice
            # Dismiss first so the modal dialog is not shown twice
            self.controller.dismiss_notice()
            messagebox.showerror("DuoGen AI", notice, parent=self)


def run() -> None:
    """Launch the DuoGen window."""
    logger.banner("DuoGen Language Buddy - Starting Application")
    app = DuoGenApp()
    app.mainloop()
