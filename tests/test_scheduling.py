import threading

from duogen.scheduling import TkScheduler


class FakeWidget:
    """Runs after() callbacks immediately on the calling thread."""

    def __init__(self):
        self.delays = []

    def after(self, delay_ms, callback):
        self.delays.append(delay_ms)
        callback()


def test_call_later_uses_after():
    widget = FakeWidget()
    calls = []
    TkScheduler(widget).call_later(500, lambda: calls.append("fired"))
    assert widget.delays == [500]
    assert calls == ["fired"]


def test_run_async_delivers_result():
    widget = FakeWidget()
    done = threading.Event()
    results = []

    def on_done(value):
        results.append(value)
        done.set()

    TkScheduler(widget).run_async(lambda: 42, on_done, name="answer")
    assert done.wait(timeout=5)
    assert results == [42]
    assert widget.delays == [0]


def test_run_async_delivers_error():
    widget = FakeWidget()
    done = threading.Event()
    errors = []

    def fail():
        raise RuntimeError("backend down")

    def on_error(error):
        errors.append(error)
        done.set()

    TkScheduler(widget).run_async(fail, lambda value: None, on_error, name="failing")
    assert done.wait(timeout=5)
    assert isinstance(errors[0], RuntimeError)
    assert str(errors[0]) == "backend down"
