"""Test scoring with optional negative marking.

Scoring is a pure function of (config, questions, answers): the preview shown
while a test is open and the result written on submission come from the same
call and must agree.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from examprep.domain.models import QuestionModel, QuestionScore, ScoreResult, TestConfigModel


def is_answered(answer: Any, question_type: str | None = None) -> bool:
    """Whether ``answer`` is a usable response for the question type.

    Missing, blank and empty-selection answers count as unanswered, and so do
    malformed ones: short answers must be non-blank text, multiple-choice
    answers text or a non-empty list of text.
    """

    if isinstance(answer, str):
        return bool(answer.strip())
    if question_type == "short_answer":
        return False
    if isinstance(answer, (list, tuple)):
        return len(answer) > 0 and all(isinstance(value, str) for value in answer)
    return False


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _normalize_text(value: Any) -> str:
    return str(value).strip().lower()


def is_correct(question: QuestionModel, answer: Any) -> bool:
    if not is_answered(answer, question.type):
        return False

    if question.type == "mcq":
        expected = [str(value) for value in _as_list(question.correct_answer)]
        given = _as_list(answer)
        # Multi-select needs the exact set; no partial credit.
        return len(expected) == len(given) and set(expected) == set(given)

    given = _normalize_text(answer)
    return any(_normalize_text(expected) == given for expected in _as_list(question.correct_answer))


def _lookup(values: Mapping | None, question_id: int) -> Any:
    # Answers decoded from JSON carry string keys.
    if not values:
        return None
    if question_id in values:
        return values[question_id]
    return values.get(str(question_id))


def _seconds(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def score_test(
    config: TestConfigModel,
    questions: Sequence[QuestionModel],
    answers: Mapping[int | str, Any],
    time_spent: Mapping[int | str, int] | None = None,
) -> ScoreResult:
    per_question: list[QuestionScore] = []
    raw_score = 0.0
    for question in questions:
        answer = _lookup(answers, question.id)
        answered = is_answered(answer, question.type)
        correct = is_correct(question, answer)
        if correct:
            marks = config.marks_per_question
        elif answered and config.has_negative_marking:
            marks = -config.negative_mark_value
        else:
            marks = 0.0
        raw_score += marks
        per_question.append(
            QuestionScore(
                question_id=question.id,
                user_answer=answer if answered else None,
                answered=answered,
                is_correct=correct,
                marks=marks,
                time_spent=_seconds(_lookup(time_spent, question.id)),
            )
        )

    raw_score = max(0.0, raw_score)
    total_marks = config.total_questions * config.marks_per_question
    percentage = (raw_score / total_marks) * 100 if total_marks > 0 else 0.0
    return ScoreResult(
        raw_score=raw_score,
        total_marks=total_marks,
        percentage=percentage,
        passed=percentage >= config.passing_marks,
        per_question=per_question,
    )


__all__ = ["is_answered", "is_correct", "score_test"]
