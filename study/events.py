"""Events that change a user's study state. Applied by study.state.apply_event."""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from study.enums import QuizType, StudyIntensity, SubjectDifficulty
from study.models import QuizQuestion, SubjectFile, UserProfile


@dataclass(frozen=True)
class NewSubject:
    name: str
    difficulty: SubjectDifficulty = SubjectDifficulty.MEDIUM
    exam_date: Optional[date] = None


@dataclass(frozen=True)
class CompleteOnboarding:
    user: UserProfile
    subjects: List[NewSubject] = field(default_factory=list)
    intensity: Optional[StudyIntensity] = None


@dataclass(frozen=True)
class AddSubject:
    name: str
    difficulty: SubjectDifficulty = SubjectDifficulty.MEDIUM
    exam_date: Optional[date] = None


@dataclass(frozen=True)
class UpdateMaterial:
    subject_id: str
    material: str


@dataclass(frozen=True)
class SetSummary:
    subject_id: str
    summary: str


@dataclass(frozen=True)
class SetFlashcards:
    """Generated (term, definition) pairs; replaces the subject's cards."""
    subject_id: str
    cards: List[Tuple[str, str]]


@dataclass(frozen=True)
class SetQuizzes:
    subject_id: str
    quizzes: Dict[QuizType, List[QuizQuestion]]


@dataclass(frozen=True)
class AddFile:
    subject_id: str
    file: SubjectFile


@dataclass(frozen=True)
class RemoveFile:
    subject_id: str
    file_id: str


@dataclass(frozen=True)
class ClearContent:
    subject_id: str


@dataclass(frozen=True)
class ReviewFlashcard:
    subject_id: str
    card_id: str
    quality: int


@dataclass(frozen=True)
class CompleteFlashcardSession:
    subject_id: str
    cards_reviewed: int


@dataclass(frozen=True)
class CompleteQuiz:
    subject_id: str
    score: int


@dataclass(frozen=True)
class UpdateReadiness:
    subject_id: str
    delta: int


@dataclass(frozen=True)
class UpdateProfile:
    user: UserProfile
    intensity: Optional[StudyIntensity] = None
    notifications_enabled: bool = True


@dataclass(frozen=True)
class ResetApp:
    pass
