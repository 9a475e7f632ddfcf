import io

from duogen.logger import DebugLogger, mask_secret


def test_info_line_carries_category_tag():
    stream = io.StringIO()
    DebugLogger(stream=stream).info("Lesson finished: success, lives=1")
    output = stream.getvalue()
    assert "[INFO]" in output
    assert "Lesson finished: success, lives=1" in output


def test_disabled_logger_writes_nothing():
    stream = io.StringIO()
    log = DebugLogger(enabled=False, stream=stream)
    log.info("hidden")
    log.banner("hidden")
    assert stream.getvalue() == ""


def test_mask_secret():
    assert mask_secret(None) == "<none>"
    assert mask_secret("short") == "***"
    assert mask_secret("sk-test-key-1234567890") == "sk-test-...7890"
