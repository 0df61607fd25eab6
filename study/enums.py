"""Enumerations shared by the study engine."""

from enum import Enum


class QuizType(str, Enum):
    """Kinds of quiz a subject can hold."""
    MULTIPLE_CHOICE = "Multiple Choice"
    TRUE_FALSE = "True/False"
    FILL_IN_THE_BLANK = "Fill-in-the-Blank"


class SubjectDifficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class StudyIntensity(str, Enum):
    LIGHT = "Light"
    MODERATE = "Moderate"
    INTENSE = "Intense"


class ProgressEventType(str, Enum):
    QUIZ = "quiz"
    FLASHCARDS = "flashcards"


class ReviewButton(int, Enum):
    """Recall grades sent by the three review buttons."""
    AGAIN = 1
    GOOD = 3
    EASY = 5


class GenerationAmount(str, Enum):
    FEW = "Few"
    NORMAL = "Normal"
    A_LOT = "A lot"


# Upper bounds handed to the content service per generation amount.
GENERATION_LIMITS = {
    GenerationAmount.FEW: {'flashcards': 5, 'quizzes': 3},
    GenerationAmount.NORMAL: {'flashcards': 10, 'quizzes': 5},
    GenerationAmount.A_LOT: {'flashcards': 20, 'quizzes': 8},
}

SUPPORTED_FILE_TYPES = frozenset({
    'application/pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'text/plain',
    'text/markdown',
    'image/jpeg',
    'image/png',
})
