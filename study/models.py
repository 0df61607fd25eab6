"""Data models for the study engine: subjects, flashcards, quizzes and progress."""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from study.enums import ProgressEventType, QuizType, StudyIntensity, SubjectDifficulty

INITIAL_EASINESS = 2.5
MIN_EASINESS = 1.3


def new_id() -> str:
    return str(uuid.uuid4())


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def parse_datetime(value) -> datetime:
    """Accept a datetime or an ISO string (a trailing 'Z' is read as UTC)."""
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def _parse_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _known(cls, data: Dict) -> Dict:
    known = cls.__dataclass_fields__
    return {k: v for k, v in data.items() if k in known}


@dataclass
class Flashcard:
    """
    A term/definition pair with SM-2 scheduling state.

    term and definition never change after generation; the scheduling
    fields are replaced on every review.
    """
    id: str
    term: str
    definition: str
    easiness_factor: float = INITIAL_EASINESS
    interval: int = 0
    repetitions: int = 0
    due_date: datetime = field(default_factory=lambda: start_of_day(datetime.now(timezone.utc)))

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['due_date'] = self.due_date.isoformat()
        return d

    @classmethod
    def from_dict(cls, data: Dict) -> 'Flashcard':
        data = _known(cls, data)
        if 'due_date' in data:
            data['due_date'] = parse_datetime(data['due_date'])
        return cls(**data)


@dataclass
class QuizQuestion:
    question: str
    options: List[str] = field(default_factory=list)
    correct_answer: List[str] = field(default_factory=list)
    explanation: str = ''

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'QuizQuestion':
        data = dict(data)
        # Content service payloads use camelCase for this field
        if 'correctAnswer' in data and 'correct_answer' not in data:
            data['correct_answer'] = data.pop('correctAnswer')
        data = _known(cls, data)
        data['options'] = [str(o) for o in data.get('options') or []]
        data['correct_answer'] = [str(a) for a in data.get('correct_answer') or []]
        return cls(**data)


@dataclass
class ProgressEvent:
    """One completed quiz or flashcard session. Never modified once logged."""
    type: ProgressEventType
    date: datetime
    score: Optional[int] = None
    cards_reviewed: Optional[int] = None

    def to_dict(self) -> Dict:
        d = {'type': self.type.value, 'date': self.date.isoformat()}
        if self.score is not None:
            d['score'] = self.score
        if self.cards_reviewed is not None:
            d['cards_reviewed'] = self.cards_reviewed
        return d

    @classmethod
    def from_dict(cls, data: Dict) -> 'ProgressEvent':
        return cls(
            type=ProgressEventType(data['type']),
            date=parse_datetime(data['date']),
            score=data.get('score'),
            cards_reviewed=data.get('cards_reviewed'),
        )


@dataclass
class SubjectFile:
    id: str
    name: str
    mime_type: str
    data: str = ''  # base64
    upload_date: Optional[datetime] = None

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['upload_date'] = self.upload_date.isoformat() if self.upload_date else None
        return d

    @classmethod
    def from_dict(cls, data: Dict) -> 'SubjectFile':
        data = _known(cls, data)
        if data.get('upload_date'):
            data['upload_date'] = parse_datetime(data['upload_date'])
        return cls(**data)


@dataclass
class Subject:
    """A subject and everything generated for it."""
    id: str
    name: str
    difficulty: SubjectDifficulty = SubjectDifficulty.MEDIUM
    exam_date: Optional[date] = None
    files: List[SubjectFile] = field(default_factory=list)
    material: str = ''
    summary: Optional[str] = None
    flashcards: List[Flashcard] = field(default_factory=list)
    quizzes: Dict[QuizType, List[QuizQuestion]] = field(default_factory=dict)
    readiness_score: int = 0
    progress: List[ProgressEvent] = field(default_factory=list)

    def find_card(self, card_id: str) -> Optional[Flashcard]:
        for card in self.flashcards:
            if card.id == card_id:
                return card
        return None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'difficulty': self.difficulty.value,
            'exam_date': self.exam_date.isoformat() if self.exam_date else None,
            'files': [f.to_dict() for f in self.files],
            'material': self.material,
            'summary': self.summary,
            'flashcards': [c.to_dict() for c in self.flashcards],
            'quizzes': {
                qt.value: [q.to_dict() for q in questions]
                for qt, questions in self.quizzes.items()
            },
            'readiness_score': self.readiness_score,
            'progress': [e.to_dict() for e in self.progress],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Subject':
        return cls(
            id=data['id'],
            name=data['name'],
            difficulty=SubjectDifficulty(data.get('difficulty', SubjectDifficulty.MEDIUM.value)),
            exam_date=_parse_date(data.get('exam_date')),
            files=[SubjectFile.from_dict(f) for f in data.get('files') or []],
            material=data.get('material') or '',
            summary=data.get('summary'),
            flashcards=[Flashcard.from_dict(c) for c in data.get('flashcards') or []],
            quizzes={
                QuizType(qt): [QuizQuestion.from_dict(q) for q in questions]
                for qt, questions in (data.get('quizzes') or {}).items()
            },
            readiness_score=int(data.get('readiness_score', 0)),
            progress=[ProgressEvent.from_dict(e) for e in data.get('progress') or []],
        )


@dataclass
class UserProfile:
    full_name: str
    grade_level: str = ''
    school_name: str = ''

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'UserProfile':
        return cls(**_known(cls, data))


@dataclass
class AppState:
    """Everything stored for one user."""
    user: Optional[UserProfile] = None
    subjects: List[Subject] = field(default_factory=list)
    study_intensity: Optional[StudyIntensity] = None
    notifications_enabled: bool = True

    def find_subject(self, subject_id: str) -> Optional[Subject]:
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        return None

    def to_dict(self) -> Dict:
        return {
            'user': self.user.to_dict() if self.user else None,
            'subjects': [s.to_dict() for s in self.subjects],
            'study_intensity': self.study_intensity.value if self.study_intensity else None,
            'notifications_enabled': self.notifications_enabled,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'AppState':
        if not data:
            return cls()
        intensity = data.get('study_intensity')
        return cls(
            user=UserProfile.from_dict(data['user']) if data.get('user') else None,
            subjects=[Subject.from_dict(s) for s in data.get('subjects') or []],
            study_intensity=StudyIntensity(intensity) if intensity else None,
            notifications_enabled=data.get('notifications_enabled', True),
        )
