"""Pydantic request/response schemas for the Studymate API."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from study.enums import GenerationAmount, QuizType, StudyIntensity, SubjectDifficulty


# ---- Auth ----

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: str
    email: str


# ---- Profile / onboarding ----

class UserProfileSchema(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    grade_level: str = ""
    school_name: str = ""


class NewSubjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    difficulty: SubjectDifficulty = SubjectDifficulty.MEDIUM
    exam_date: Optional[date] = None


class OnboardingRequest(BaseModel):
    user: UserProfileSchema
    subjects: List[NewSubjectRequest] = Field(default_factory=list)
    study_intensity: Optional[StudyIntensity] = None


class ProfileRequest(BaseModel):
    user: UserProfileSchema
    study_intensity: Optional[StudyIntensity] = None
    notifications_enabled: bool = True


# ---- Subject content ----

class MaterialRequest(BaseModel):
    material: str = Field(..., max_length=200_000)


class SummaryRequest(BaseModel):
    summary: str = Field(..., min_length=1)


class FileUploadRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: str
    data: str = Field(..., description="Base64-encoded file contents")


class FlashcardInput(BaseModel):
    term: str = Field(..., min_length=1)
    definition: str = Field(..., min_length=1)


class FlashcardsRequest(BaseModel):
    flashcards: List[FlashcardInput] = Field(..., min_length=1)


class QuizQuestionSchema(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(default_factory=list)
    correct_answer: List[str] = Field(..., min_length=1)
    explanation: str = ""


class QuizzesRequest(BaseModel):
    quizzes: Dict[QuizType, List[QuizQuestionSchema]]


# ---- Review / quiz ----

class ReviewRequest(BaseModel):
    quality: int


class SessionCompleteRequest(BaseModel):
    cards_reviewed: int


class QuizSubmitRequest(BaseModel):
    quiz_type: QuizType
    answers: List[List[str]]


class QuizSubmitResponse(BaseModel):
    subject_id: str
    quiz_type: str
    score: int
    total: int
    correct: int
    incorrect: List[Dict[str, Any]]
    readiness_score: int


class DueCardsResponse(BaseModel):
    subject_id: str
    count: int
    cards: List[Dict[str, Any]]


class PreviewResponse(BaseModel):
    card_id: str
    options: Dict[str, Dict[str, Any]]


# ---- Progress ----

class QuizHistoryItem(BaseModel):
    date: str
    score: Optional[int] = None


class SubjectProgressResponse(BaseModel):
    subject_id: str
    name: str
    readiness_score: int
    average_quiz_score: int
    total_flashcards_reviewed: int
    quiz_history: List[QuizHistoryItem]
    due_count: int
    card_count: int
    days_until_exam: Optional[int] = None


class StatsResponse(BaseModel):
    subject_count: int
    average_quiz_score: int
    total_flashcards_reviewed: int
    most_studied_subject: Optional[str] = None
    weakest_subject: Optional[str] = None
    study_streak: int
    due_count: int


# ---- Generation ----

class GenerateRequest(BaseModel):
    focus: str = Field(default="", max_length=20000)
    language: Literal["en", "fr"] = "en"
    amount: GenerationAmount = GenerationAmount.NORMAL


class ChatMessageSchema(BaseModel):
    role: Literal["user", "model"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessageSchema]
    language: Literal["en", "fr"] = "en"


class ChatResponse(BaseModel):
    reply: str


class QuizFeedbackRequest(BaseModel):
    """The questions answered wrongly, as returned by quiz submission."""
    questions: List[QuizQuestionSchema]
    language: Literal["en", "fr"] = "en"


class QuizFeedbackResponse(BaseModel):
    feedback: str
