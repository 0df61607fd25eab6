"""Readiness score: a 0-100 estimate of how prepared a subject is."""

from study.errors import InvalidInput

MIN_SCORE = 0
MAX_SCORE = 100

# Absolute score after material is added, edited or cleared
MATERIAL_BASELINE = 25

SUMMARY_BONUS = 10
FLASHCARDS_GENERATED_BONUS = 15
QUIZZES_GENERATED_BONUS = 15
FLASHCARD_SESSION_BONUS = 25
QUIZ_PASS_BONUS = 25
QUIZ_FAIL_BONUS = 10
QUIZ_PASS_THRESHOLD = 60  # strictly greater passes


def clamp_score(score: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, int(score)))


def bump(score: int, delta: int) -> int:
    """Add a non-negative delta, capped at 100."""
    if delta < 0:
        raise InvalidInput(f"Readiness delta must be non-negative, got {delta}")
    return clamp_score(clamp_score(score) + delta)


def on_material_updated(score: int) -> int:
    return MATERIAL_BASELINE


def on_content_cleared(score: int) -> int:
    return MATERIAL_BASELINE


def on_summary_generated(score: int) -> int:
    return bump(score, SUMMARY_BONUS)


def on_flashcards_generated(score: int) -> int:
    return bump(score, FLASHCARDS_GENERATED_BONUS)


def on_quizzes_generated(score: int) -> int:
    return bump(score, QUIZZES_GENERATED_BONUS)


def on_flashcard_session_completed(score: int) -> int:
    return bump(score, FLASHCARD_SESSION_BONUS)


def quiz_completion_bonus(quiz_score: int) -> int:
    if not (0 <= quiz_score <= 100):
        raise InvalidInput(f"Quiz score must be 0-100, got {quiz_score}")
    return QUIZ_PASS_BONUS if quiz_score > QUIZ_PASS_THRESHOLD else QUIZ_FAIL_BONUS


def on_quiz_completed(score: int, quiz_score: int) -> int:
    return bump(score, quiz_completion_bonus(quiz_score))
