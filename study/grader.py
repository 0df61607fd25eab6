"""Quiz answer checking and scoring."""

import math
from typing import List, Optional, Sequence

from study.enums import QuizType
from study.models import QuizQuestion


def _normalize(answer: str) -> str:
    return answer.strip().lower()


def is_correct(question: QuizQuestion, given: Optional[Sequence[str]]) -> bool:
    """
    Compare given answers with the expected ones.

    Works the same for every quiz type: answers are compared without regard
    to order, case or surrounding whitespace. Duplicates count, so the two
    lists must have the same length.
    """
    if given is None:
        return False
    expected = question.correct_answer
    if len(given) != len(expected):
        return False
    return sorted(_normalize(a) for a in given) == sorted(_normalize(a) for a in expected)


def score_quiz(
    questions: Sequence[QuizQuestion],
    answers: Sequence[Optional[Sequence[str]]],
) -> int:
    """
    Percentage of correctly answered questions, rounded half-up.

    answers[i] belongs to questions[i]; missing entries count as wrong.
    An empty quiz scores 0.
    """
    if not questions:
        return 0
    correct = 0
    for i, question in enumerate(questions):
        given = answers[i] if i < len(answers) else None
        if is_correct(question, given):
            correct += 1
    return math.floor(correct / len(questions) * 100 + 0.5)


def incorrect_questions(
    questions: Sequence[QuizQuestion],
    answers: Sequence[Optional[Sequence[str]]],
) -> List[QuizQuestion]:
    missed = []
    for i, question in enumerate(questions):
        given = answers[i] if i < len(answers) else None
        if not is_correct(question, given):
            missed.append(question)
    return missed


def toggle_answer(quiz_type: QuizType, current: Sequence[str], answer: str) -> List[str]:
    """
    Selection after the user picks an answer.

    Multiple choice toggles the option in or out; true/false and
    fill-in-the-blank hold a single answer that is replaced.
    """
    if quiz_type == QuizType.MULTIPLE_CHOICE:
        if answer in current:
            return [a for a in current if a != answer]
        return list(current) + [answer]
    return [answer]
