from unittest.mock import Mock

import pytest

from duogen.models import AnswerStatus, ImageSize, ImageStatus, SessionStatus
from duogen.runner import QuestionRunner
from duogen.session import LessonSession
from conftest import FakeProvider, wrong_index


@pytest.fixture
def session(questions):
    return LessonSession(questions, 3)


@pytest.fixture
def runner(session, provider, scheduler):
    runner = QuestionRunner(
        session,
        provider,
        scheduler,
        image_size=ImageSize.SIZE_2K,
        check_delay_ms=500,
        on_change=Mock(),
        on_complete=Mock(),
    )
    runner.start()
    return runner


def answer(runner, scheduler, option):
    runner.select_option(option)
    runner.check()
    scheduler.fire_timers()


def test_start_enters_first_question(runner, questions):
    assert runner.index == 0
    assert runner.question is questions[0]
    assert runner.status is AnswerStatus.IDLE
    assert runner.selected_option is None
    assert runner.image_state.status is ImageStatus.LOADING


def test_select_option_does_not_change_status(runner):
    runner.select_option(2)
    assert runner.selected_option == 2
    assert runner.status is AnswerStatus.IDLE
    assert runner.can_check


def test_select_option_out_of_range_ignored(runner):
    runner.select_option(7)
    assert runner.selected_option is None


def test_check_without_selection_is_noop(runner, scheduler):
    runner.check()
    assert runner.status is AnswerStatus.IDLE
    assert scheduler.timers == []


def test_check_waits_for_delay(runner, scheduler, questions):
    runner.select_option(questions[0].correct_index)
    runner.check()
    assert runner.status is AnswerStatus.CHECKING
    assert [delay for delay, _ in scheduler.timers] == [500]

    scheduler.fire_timers()
    assert runner.status is AnswerStatus.CORRECT
    assert runner.lives == 3


def test_incorrect_answer_costs_a_life(runner, scheduler, questions):
    answer(runner, scheduler, wrong_index(questions[0]))
    assert runner.status is AnswerStatus.INCORRECT
    assert runner.lives == 2


def test_second_check_while_checking_is_noop(runner, scheduler, questions):
    runner.select_option(wrong_index(questions[0]))
    runner.check()
    runner.check()
    assert len(scheduler.timers) == 1
    scheduler.fire_timers()
    assert runner.lives == 2


def test_selection_locked_outside_idle(runner, scheduler, questions):
    runner.select_option(questions[0].correct_index)
    runner.check()
    runner.select_option(wrong_index(questions[0]))
    assert runner.selected_option == questions[0].correct_index


def test_continue_only_after_verdict(runner, scheduler, questions):
    runner.continue_()
    assert runner.index == 0

    runner.select_option(questions[0].correct_index)
    runner.check()
    runner.continue_()
    assert runner.index == 0


def test_continue_resets_for_next_question(runner, scheduler, questions):
    answer(runner, scheduler, questions[0].correct_index)
    runner.continue_()
    assert runner.index == 1
    assert runner.status is AnswerStatus.IDLE
    assert runner.selected_option is None
    assert runner.image_state.status is ImageStatus.LOADING


def test_image_fetched_with_description_and_size(runner, scheduler, provider, questions):
    assert [name for name, *_ in scheduler.jobs] == ["image_question_1"]
    scheduler.run_jobs()
    assert provider.image_calls == [(questions[0].image_description, ImageSize.SIZE_2K)]
    state = runner.image_state
    assert state.status is ImageStatus.LOADED
    assert state.data == b"png-0"


def test_cached_image_is_not_fetched_again(session, provider, scheduler):
    session.image_cache.put(0, b"cached")
    runner = QuestionRunner(session, provider, scheduler)
    runner.start()
    assert scheduler.jobs == []
    assert provider.image_calls == []
    assert runner.image_state.data == b"cached"


def test_missing_image_marks_unavailable(session, scheduler, questions):
    provider = FakeProvider(questions, images={})
    runner = QuestionRunner(session, provider, scheduler)
    runner.start()
    scheduler.run_jobs()
    assert runner.image_state.status is ImageStatus.UNAVAILABLE
    assert len(session.image_cache) == 0


def test_image_error_marks_unavailable(session, scheduler, questions):
    provider = FakeProvider(questions)
    provider.generate_image = Mock(side_effect=RuntimeError("boom"))
    runner = QuestionRunner(session, provider, scheduler)
    runner.start()
    scheduler.run_jobs()
    assert runner.image_state.status is ImageStatus.UNAVAILABLE


def test_unavailable_image_does_not_block_answers(session, scheduler, questions):
    runner = QuestionRunner(session, FakeProvider(questions), scheduler)
    runner.start()
    scheduler.run_jobs()
    answer(runner, scheduler, questions[0].correct_index)
    runner.continue_()
    assert runner.index == 1


def test_answer_before_image_arrives(runner, scheduler, questions):
    answer(runner, scheduler, questions[0].correct_index)
    assert runner.status is AnswerStatus.CORRECT
    assert runner.image_state.status is ImageStatus.LOADING
    scheduler.run_jobs()
    assert runner.image_state.status is ImageStatus.LOADED


def test_late_image_for_previous_question_is_cached_not_shown(runner, scheduler, session, questions):
    answer(runner, scheduler, questions[0].correct_index)
    runner.continue_()
    assert runner.index == 1
    runner.on_change.reset_mock()

    # The first question's request finishes after the learner moved on
    scheduler.run_job(0)
    assert session.image_cache.get(0) == b"png-0"
    assert runner.image_state.status is ImageStatus.LOADING
    runner.on_change.assert_not_called()

    scheduler.run_job(0)
    assert runner.image_state.data == b"png-1"
    runner.on_change.assert_called()


def test_completion_after_last_question(runner, scheduler, questions):
    for i, question in enumerate(questions):
        answer(runner, scheduler, wrong_index(question) if i < 2 else question.correct_index)
        runner.continue_()
    result = runner.on_complete.call_args[0][0]
    assert result.status is SessionStatus.SUCCESS
    assert result.lives == 1


def test_three_misses_fail_on_following_continue(runner, scheduler, questions):
    for question in questions[:2]:
        answer(runner, scheduler, wrong_index(question))
        runner.continue_()
        runner.on_complete.assert_not_called()

    answer(runner, scheduler, wrong_index(questions[2]))
    assert runner.lives == 0
    runner.on_complete.assert_not_called()

    runner.continue_()
    result = runner.on_complete.call_args[0][0]
    assert result.status is SessionStatus.FAILURE
    assert result.lives == 0
    assert runner.index == 2


def test_closed_runner_drops_late_callbacks(runner, scheduler, questions):
    runner.select_option(wrong_index(questions[0]))
    runner.check()
    runner.close()
    scheduler.fire_timers()
    assert runner.status is AnswerStatus.CHECKING
    assert runner.lives == 3
