"""
Console logging for DuoGen Language Buddy.

Every line is tagged with a short category so the flow of a lesson can be
followed from the terminal:

- ENV: settings and credentials
- API: calls to the generative backend
- IMG: illustration requests
- UI: screen transitions and learner actions
- TASK: background work
- OK / WARN / ERR / DBG / INFO: general status

Usage:
    from duogen.logger import logger, Timer

    logger.api_call("chat.completions.create", model="gpt-4o-mini")
    with Timer() as timer:
        ...
    logger.api_response("chat.completions.create", duration_ms=timer.duration_ms)
"""

import os
import sys
import time
import traceback
from datetime import datetime
from typing import Optional, TextIO

# Emoji markers and box characters break cp1252 consoles
for _stream in (sys.stdout, sys.stderr):
    if hasattr(_stream, "reconfigure"):
        try:
            _stream.reconfigure(encoding="utf-8")
        except (ValueError, OSError):
            pass


class ColorCodes:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"


CATEGORY_COLORS = {
    "ENV": ColorCodes.MAGENTA,
    "API": ColorCodes.CYAN,
    "IMG": ColorCodes.YELLOW,
    "UI": ColorCodes.BLUE,
    "TASK": ColorCodes.WHITE,
    "OK": ColorCodes.BRIGHT_GREEN,
    "WARN": ColorCodes.BRIGHT_YELLOW,
    "ERR": ColorCodes.BRIGHT_RED,
    "INFO": ColorCodes.WHITE,
    "DBG": ColorCodes.DIM,
}


def _debug_enabled_from_env() -> bool:
    return os.getenv("DUOGEN_DEBUG", "1").strip().lower() not in ("0", "false", "no", "off")


class DebugLogger:
    """
    Categorised, colour-coded console logger.

    Each line carries a timestamp, the time elapsed since start-up and a
    category tag. Pass exc_info=True to print the active traceback below it.
    """

    def __init__(self, enabled: bool = True, stream: Optional[TextIO] = None):
        self.enabled = enabled
        self._stream = stream
        self._start_time = datetime.now()

    @property
    def stream(self) -> TextIO:
        """Stream log lines are written to (stdout unless overridden)."""
        return self._stream or sys.stdout

    def _timestamp(self) -> str:
        """Get formatted timestamp with elapsed time."""
        now = datetime.now()
        elapsed = (now - self._start_time).total_seconds()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d} (+{elapsed:>6.1f}s)"

    def _log(self, category: str, message: str, color: Optional[str] = None, exc_info: bool = False) -> None:
        """Internal logging method."""
        if not self.enabled:
            return

        color = color or CATEGORY_COLORS.get(category, ColorCodes.WHITE)
        timestamp = self._timestamp()
        prefix = f"{ColorCodes.DIM}{timestamp}{ColorCodes.RESET}"
        tag = f"{color}{ColorCodes.BOLD}[{category:>4}]{ColorCodes.RESET}"
        padding = " " * (len(timestamp) + 8)

        first, *rest = message.split("\n")
        print(f"{prefix} {tag} {first}", file=self.stream, flush=True)
        for line in rest:
            print(f"{padding}{line}", file=self.stream, flush=True)

        if exc_info:
            for line in traceback.format_exc().splitlines():
                if line.strip():
                    print(f"{padding}{ColorCodes.RED}{line}{ColorCodes.RESET}", file=sys.stderr, flush=True)

    # === Environment/Configuration ===
    def env(self, message: str, **kwargs) -> None:
        """Log environment/configuration messages (dotenv, API keys, etc.)."""
        self._log("ENV", message, **kwargs)

    def env_success(self, message: str, **kwargs) -> None:
        """Log successful environment setup."""
        self._log("ENV", f"✓ {message}", color=ColorCodes.GREEN, **kwargs)

    def env_error(self, message: str, **kwargs) -> None:
        """Log environment setup errors."""
        self._log("ENV", f"✗ {message}", color=ColorCodes.RED, **kwargs)

    # === API Calls ===
    def api(self, message: str, **kwargs) -> None:
        """Log API-related messages."""
        self._log("API", message, **kwargs)

    def api_call(self, endpoint: str, model: Optional[str] = None, **kwargs) -> None:
        """Log an API call being made."""
        model_info = f" (model: {model})" if model else ""
        self._log("API", f"→ Calling {endpoint}{model_info}", **kwargs)

    def api_response(self, endpoint: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        """Log an API response received."""
        duration_info = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("API", f"← Response from {endpoint}{duration_info}", color=ColorCodes.BRIGHT_CYAN, **kwargs)

    def api_error(self, message: str, **kwargs) -> None:
        """Log API errors."""
        self._log("API", f"✗ {message}", color=ColorCodes.BRIGHT_RED, **kwargs)

    # === Image Generation ===
    def img(self, message: str, **kwargs) -> None:
        """Log illustration messages."""
        self._log("IMG", message, **kwargs)

    def img_start(self, prompt: str, **kwargs) -> None:
        """Log start of image generation."""
        display_prompt = prompt[:60] + "..." if len(prompt) > 60 else prompt
        self._log("IMG", f"→ Generating: \"{display_prompt}\"", **kwargs)

    def img_complete(self, size_bytes: int, duration_ms: Optional[float] = None, **kwargs) -> None:
        """Log completed image generation with the payload size."""
        duration_info = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("IMG", f"✓ Received {size_bytes} bytes{duration_info}", color=ColorCodes.BRIGHT_GREEN, **kwargs)

    def img_error(self, message: str, **kwargs) -> None:
        """Log image generation errors."""
        self._log("IMG", f"✗ {message}", color=ColorCodes.BRIGHT_RED, **kwargs)

    # === UI Events ===
    def ui(self, message: str, **kwargs) -> None:
        """Log screen changes and learner actions."""
        self._log("UI", message, **kwargs)

    def ui_transition(self, from_state: str, to_state: str, **kwargs) -> None:
        """Log screen transitions."""
        self._log("UI", f"{from_state} → {to_state}", color=ColorCodes.BRIGHT_BLUE, **kwargs)

    # === Background Tasks ===
    def task(self, message: str, **kwargs) -> None:
        """Log background task messages."""
        self._log("TASK", message, **kwargs)

    def task_start(self, task_name: str, **kwargs) -> None:
        """Log task start."""
        self._log("TASK", f"⚡ Starting: {task_name}", **kwargs)

    def task_complete(self, task_name: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        """Log task completion."""
        duration_info = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("TASK", f"✓ Completed: {task_name}{duration_info}", color=ColorCodes.BRIGHT_GREEN, **kwargs)

    def task_error(self, task_name: str, error: str, **kwargs) -> None:
        """Log task error."""
        self._log("TASK", f"✗ Failed: {task_name} - {error}", color=ColorCodes.BRIGHT_RED, **kwargs)

    # === General Status ===
    def success(self, message: str, **kwargs) -> None:
        """Log success messages."""
        self._log("OK", f"✓ {message}", **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warnings."""
        self._log("WARN", f"⚠ {message}", **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log errors."""
        self._log("ERR", f"✗ {message}", **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log general info messages."""
        self._log("INFO", message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug details."""
        self._log("DBG", message, **kwargs)

    # === Separators/Formatting ===
    def separator(self, title: Optional[str] = None) -> None:
        """Print a visual separator."""
        if not self.enabled:
            return
        line = f"{'─' * 20} {title} {'─' * 20}" if title else "─" * 60
        print(f"\n{ColorCodes.DIM}{line}{ColorCodes.RESET}\n", file=self.stream, flush=True)

    def banner(self, text: str) -> None:
        """Print a banner message."""
        if not self.enabled:
            return
        width = max(60, len(text) + 4)
        border = "═" * width
        padding = " " * ((width - len(text)) // 2)
        print(f"\n{ColorCodes.BRIGHT_CYAN}{border}{ColorCodes.RESET}", file=self.stream, flush=True)
        print(f"{ColorCodes.BOLD}{padding}{text}{ColorCodes.RESET}", file=self.stream, flush=True)
        print(f"{ColorCodes.BRIGHT_CYAN}{border}{ColorCodes.RESET}\n", file=self.stream, flush=True)


def mask_secret(value: Optional[str]) -> str:
    """Show the first 8 and last 4 characters of a key, or *** when short."""
    if not value:
        return "<none>"
    return f"{value[:8]}...{value[-4:]}" if len(value) > 12 else "***"


# Global logger instance
logger = DebugLogger(enabled=_debug_enabled_from_env())


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time: Optional[float] = None
        self.duration_ms: float = 0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time:
            self.duration_ms = (time.perf_counter() - self.start_time) * 1000
