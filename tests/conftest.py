from typing import Dict, List, Optional

import pytest

from duogen.api import ContentProvider
from duogen.config import Settings
from duogen.credentials import CredentialStore
from duogen.errors import GenerationError
from duogen.models import ImageSize, Question
from duogen.scheduling import Scheduler


class ManualScheduler(Scheduler):
    """Queues timers and background jobs until the test runs them."""

    def __init__(self):
        self.timers = []
        self.jobs = []

    def call_later(self, delay_ms, callback):
        self.timers.append((delay_ms, callback))

    def run_async(self, work, on_done, on_error=None, name="background_task"):
        self.jobs.append((name, work, on_done, on_error))

    def fire_timers(self):
        timers, self.timers = self.timers, []
        for _, callback in timers:
            callback()

    def run_job(self, position=0):
        name, work, on_done, on_error = self.jobs.pop(position)
        try:
            result = work()
        except Exception as e:
            if on_error is not None:
                on_error(e)
            return
        on_done(result)

    def run_jobs(self):
        while self.jobs:
            self.run_job()


class FakeProvider(ContentProvider):
    def __init__(self, questions: Optional[List[Question]] = None, images: Optional[Dict[str, bytes]] = None):
        self.questions = questions or []
        self.images = images or {}
        self.lesson_error: Optional[Exception] = None
        self.lesson_calls: List[str] = []
        self.image_calls: List[tuple] = []

    def generate_lesson(self, language):
        self.lesson_calls.append(language)
        if self.lesson_error is not None:
            raise self.lesson_error
        if not self.questions:
            raise GenerationError("No data returned")
        return list(self.questions)

    def generate_image(self, description, size=ImageSize.SIZE_1K):
        self.image_calls.append((description, size))
        return self.images.get(description)


def make_question(index: int) -> Question:
    words = ["apple", "dog", "house", "water", "tree", "cat", "book"]
    translation = words[index % len(words)]
    distractors = [w for w in words if w != translation][:3]
    correct_index = index % 4
    options = list(distractors)
    options.insert(correct_index, translation)
    return Question(
        id=index,
        prompt=f"palabra {index}",
        translation=translation,
        options=tuple(options),
        correct_index=correct_index,
        image_description=f"picture {index}",
    )


def wrong_index(question: Question) -> int:
    return (question.correct_index + 1) % len(question.options)


@pytest.fixture
def questions():
    return [make_question(i) for i in range(5)]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def provider(questions):
    return FakeProvider(questions, images={q.image_description: f"png-{q.id}".encode() for q in questions})


@pytest.fixture
def settings():
    return Settings(api_key="sk-test-key-1234567890", check_delay_ms=500)


@pytest.fixture
def credentials():
    return CredentialStore("sk-test-key-1234567890")
