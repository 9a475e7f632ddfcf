import pytest

from duogen.models import LANGUAGES, ImageSize, LessonResult, Question, SessionStatus
from conftest import make_question


def test_generated_questions_hold_invariant():
    for i in range(12):
        question = make_question(i)
        assert len(question.options) == 4
        assert question.options[question.correct_index] == question.translation
        assert question.correct_option == question.translation


def test_question_stores_options_as_tuple():
    question = Question(1, "el perro", "dog", ["dog", "cat", "tree", "house"], 0, "a dog")
    assert question.options == ("dog", "cat", "tree", "house")


def test_question_rejects_wrong_option_count():
    with pytest.raises(ValueError):
        Question(0, "el perro", "dog", ("dog", "cat", "tree"), 0, "a dog")


def test_question_rejects_index_out_of_range():
    with pytest.raises(ValueError):
        Question(0, "el perro", "dog", ("dog", "cat", "tree", "house"), 4, "a dog")


def test_question_rejects_mismatched_translation():
    with pytest.raises(ValueError):
        Question(0, "el perro", "dog", ("cat", "dog", "tree", "house"), 0, "a dog")


def test_image_size_parse():
    assert ImageSize.parse("2k") is ImageSize.SIZE_2K
    with pytest.raises(ValueError):
        ImageSize.parse("8K")


def test_lesson_result_finished_flag():
    assert not LessonResult(SessionStatus.ACTIVE, lives=2).finished
    assert LessonResult(SessionStatus.SUCCESS, score=100, lives=2).finished
    assert LessonResult(SessionStatus.FAILURE).finished


def test_language_catalogue():
    assert [language.name for language in LANGUAGES] == [
        "Spanish", "French", "Japanese", "German", "Italian", "Korean",
    ]
