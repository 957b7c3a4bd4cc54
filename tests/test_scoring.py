"""Scoring, negative marking and answer matching."""

from __future__ import annotations

import pytest

from examprep.domain.models import QuestionModel, TestConfigModel
from examprep.services.scoring import is_answered, is_correct, score_test


def _mcq(qid: int, correct, options=("a", "b", "c", "d")) -> QuestionModel:
    return QuestionModel(
        id=qid, question_text=f"Q{qid}", type="mcq", options=list(options), correct_answer=correct
    )


def _short(qid: int, correct) -> QuestionModel:
    return QuestionModel(id=qid, question_text=f"Q{qid}", type="short_answer", correct_answer=correct)


def _config(**overrides) -> TestConfigModel:
    values = {"name": "Quiz", "total_questions": 4, "marks_per_question": 1.0, "passing_marks": 50}
    values.update(overrides)
    return TestConfigModel(**values)


@pytest.mark.parametrize("answer", [None, "", "   ", [], ()])
def test_blank_answers_are_unanswered(answer):
    assert not is_answered(answer)
    assert not is_correct(_mcq(1, "a"), answer)


def test_multi_select_matches_as_a_set():
    question = _mcq(1, ["a", "b"])

    assert is_correct(question, ["b", "a"])
    assert not is_correct(question, ["a"])
    assert not is_correct(question, ["a", "b", "c"])


def test_single_choice_accepts_plain_or_wrapped_value():
    question = _mcq(1, "c")

    assert is_correct(question, "c")
    assert is_correct(question, ["c"])
    assert not is_correct(question, "C")


def test_short_answer_is_trimmed_and_case_insensitive():
    assert is_correct(_short(1, "Paris"), " paris ")
    assert not is_correct(_short(1, "Paris"), "Lyon")


def test_short_answer_accepts_any_listed_alternative():
    question = _short(1, ["H2O", "water"])

    assert is_correct(question, "Water")
    assert not is_correct(question, ["water"])


@pytest.mark.parametrize(
    ("question", "answer"),
    [
        (_mcq(2, "a"), {"bogus": 1}),
        (_mcq(2, "a"), 3),
        (_mcq(2, ["a", "b"]), ["a", 2]),
        (_short(2, "Paris"), ["Paris"]),
        (_short(2, "4"), 4),
        (_short(2, "Paris"), {"text": "Paris"}),
    ],
)
def test_malformed_answers_are_unanswered_and_not_penalised(question, answer):
    config = _config(total_questions=2, has_negative_marking=True, negative_mark_value=0.25)
    questions = [_short(1, "Paris"), question]

    result = score_test(config, questions, {1: "Paris", 2: answer})

    assert not is_answered(answer, question.type)
    assert result.raw_score == 1.0
    malformed = result.per_question[1]
    assert (malformed.answered, malformed.is_correct, malformed.marks) == (False, False, 0.0)
    assert malformed.user_answer is None


def test_score_without_negative_marking():
    questions = [_mcq(1, "a"), _mcq(2, "b"), _short(3, "Paris"), _mcq(4, ["a", "d"])]
    answers = {1: "a", 2: "c", 3: " PARIS", 4: ["d", "a"]}

    result = score_test(_config(), questions, answers)

    assert result.raw_score == 3.0
    assert result.total_marks == 4.0
    assert result.percentage == pytest.approx(75.0)
    assert result.passed
    assert [item.is_correct for item in result.per_question] == [True, False, True, True]


def test_negative_marking_skips_unanswered_questions():
    config = _config(has_negative_marking=True, negative_mark_value=0.25, marks_per_question=2.0)
    questions = [_mcq(1, "a"), _mcq(2, "b"), _mcq(3, "c"), _mcq(4, "d")]
    answers = {1: "a", 2: "a", 3: "  ", 4: []}

    result = score_test(config, questions, answers)

    assert [item.marks for item in result.per_question] == [2.0, -0.25, 0.0, 0.0]
    assert result.raw_score == pytest.approx(1.75)
    assert result.total_marks == 8.0
    assert not result.per_question[2].answered
    assert result.per_question[2].user_answer is None


def test_score_is_clamped_at_zero():
    config = _config(has_negative_marking=True, negative_mark_value=1.0)
    questions = [_mcq(1, "a"), _mcq(2, "b"), _mcq(3, "c"), _mcq(4, "d")]

    result = score_test(config, questions, {1: "b", 2: "a", 3: "a", 4: "a"})

    assert result.raw_score == 0.0
    assert result.percentage == 0.0
    assert not result.passed


def test_total_marks_counts_configured_questions_not_delivered_ones():
    # An under-filled test is still marked out of the configured total.
    result = score_test(_config(total_questions=10), [_mcq(1, "a")], {1: "a"})

    assert result.total_marks == 10.0
    assert result.percentage == pytest.approx(10.0)


def test_zero_total_marks_gives_zero_percentage():
    result = score_test(_config(total_questions=0), [], {})

    assert result.percentage == 0.0
    assert not result.passed


def test_pass_threshold_is_inclusive():
    questions = [_mcq(1, "a"), _mcq(2, "b")]
    result = score_test(_config(total_questions=2, passing_marks=50), questions, {1: "a", 2: "c"})

    assert result.percentage == 50.0
    assert result.passed


def test_string_keys_and_time_spent_are_read():
    questions = [_mcq(1, "a"), _mcq(2, "b")]

    result = score_test(_config(total_questions=2), questions, {"1": "a"}, {"1": 12, 2: 30.7})

    assert result.per_question[0].is_correct
    assert result.per_question[0].time_spent == 12
    assert result.per_question[1].time_spent == 30
    assert not result.per_question[1].answered


def test_scoring_is_repeatable():
    questions = [_mcq(1, "a"), _short(2, "Paris")]
    answers = {1: "a", 2: "paris"}

    first = score_test(_config(total_questions=2), questions, answers)
    second = score_test(_config(total_questions=2), questions, answers)

    assert first == second
