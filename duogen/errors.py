class DuoGenError(Exception):
    """Base class for errors raised by DuoGen Language Buddy."""


class GenerationError(DuoGenError):
    """Lesson content could not be generated or returned no usable data."""
