"""Hard validation for content service output. Invalid items are dropped."""

import logging
from typing import Any, Dict, List, Tuple

from study.enums import QuizType
from study.models import QuizQuestion

logger = logging.getLogger("studymate.content")

TRUE_FALSE_OPTIONS = ("true", "false")


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ''


def validate_summary(obj: Any) -> Tuple[bool, str]:
    """Validate summary output. Returns (ok, reason)."""
    if not isinstance(obj, dict):
        return False, "not a dict"
    if not _text(obj.get("summary")):
        return False, "missing summary"
    return True, ""


def validate_chat_reply(obj: Any) -> Tuple[bool, str]:
    if not isinstance(obj, dict):
        return False, "not a dict"
    if not _text(obj.get("reply")):
        return False, "missing reply"
    return True, ""


def validate_quiz_feedback(obj: Any) -> Tuple[bool, str]:
    if not isinstance(obj, dict):
        return False, "not a dict"
    if not _text(obj.get("feedback")):
        return False, "missing feedback"
    return True, ""


def validate_flashcard(item: Any) -> Tuple[bool, str]:
    if not isinstance(item, dict):
        return False, "not a dict"
    if not _text(item.get("term")):
        return False, "missing term"
    if not _text(item.get("definition")):
        return False, "missing definition"
    return True, ""


def validate_question(quiz_type: QuizType, item: Any) -> Tuple[bool, str]:
    """
    Validate one quiz question for its quiz type. Returns (ok, reason).

    Multiple choice: at least two options, every correct answer among them.
    True/false: options are True and False, exactly one correct answer.
    Fill-in-the-blank: exactly one correct answer.
    """
    if not isinstance(item, dict):
        return False, "not a dict"
    if not _text(item.get("question")):
        return False, "missing question"
    options = item.get("options") or []
    answers = item.get("correctAnswer", item.get("correct_answer")) or []
    if not isinstance(options, list) or not isinstance(answers, list):
        return False, "options and correctAnswer must be lists"
    if not answers or not all(_text(a) for a in answers):
        return False, "missing correct answer"

    lowered = [str(o).strip().lower() for o in options]
    if quiz_type == QuizType.MULTIPLE_CHOICE:
        if len(options) < 2:
            return False, "fewer than two options"
        if any(a.strip().lower() not in lowered for a in answers):
            return False, "correct answer not among options"
    elif quiz_type == QuizType.TRUE_FALSE:
        if sorted(lowered) != sorted(TRUE_FALSE_OPTIONS):
            return False, "options must be True and False"
        if len(answers) != 1 or answers[0].strip().lower() not in TRUE_FALSE_OPTIONS:
            return False, "true/false needs one answer"
    elif len(answers) != 1:
        return False, "fill-in-the-blank needs one answer"
    return True, ""


def clean_flashcards(obj: Any, limit: int) -> List[Tuple[str, str]]:
    """Valid (term, definition) pairs from flashcard output, at most limit of them."""
    items = obj.get("flashcards") if isinstance(obj, dict) else None
    if not isinstance(items, list):
        return []
    pairs = []
    for item in items:
        ok, reason = validate_flashcard(item)
        if not ok:
            logger.debug("Dropped flashcard: %s", reason)
            continue
        pairs.append((item["term"].strip(), item["definition"].strip()))
    return pairs[:limit]


def clean_quizzes(obj: Any, limit: int) -> Dict[QuizType, List[QuizQuestion]]:
    """Valid questions per quiz type, at most limit per type. Empty types are omitted."""
    if not isinstance(obj, dict):
        return {}
    quizzes = {}
    for quiz_type in QuizType:
        items = obj.get(quiz_type.value)
        if not isinstance(items, list):
            continue
        questions = []
        for item in items:
            ok, reason = validate_question(quiz_type, item)
            if not ok:
                logger.debug("Dropped %s question: %s", quiz_type.value, reason)
                continue
            question = QuizQuestion.from_dict(item)
            if quiz_type == QuizType.FILL_IN_THE_BLANK:
                question.options = []
            questions.append(question)
        if questions:
            quizzes[quiz_type] = questions[:limit]
    return quizzes
