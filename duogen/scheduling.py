import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TypeVar

from .logger import logger

T = TypeVar("T")


class Scheduler(ABC):
    """
    Where deferred and background work runs.

    Callbacks passed to either method always run on the UI thread.
    """

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        ...

    @abstractmethod
    def run_async(
        self,
        work: Callable[[], T],
        on_done: Callable[[T], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        name: str = "background_task",
    ) -> None:
        ...


class TkScheduler(Scheduler):
    """
    Runs work on daemon threads and hands results back through widget.after().
    """

    def __init__(self, widget: Any):
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.widget.after(delay_ms, callback)

    def run_async(self, work, on_done, on_error=None, name="background_task") -> None:
        def _run():
            logger.task_start(name)
            start_time = time.perf_counter()
            try:
                result = work()
            except Exception as e:
                logger.task_error(name, str(e))
                if on_error is not None:
                    self.widget.after(0, lambda err=e: on_error(err))
                return
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.task_complete(name, duration_ms=duration_ms)
            self.widget.after(0, lambda: on_done(result))

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        logger.task(f"Spawned background thread for {name}")
