"""Study engine service wrappers -- all return JSON-serializable dicts."""

import base64
import binascii
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from sqlalchemy.orm import Session as DBSession

from server.services.state_service import dispatch
from study.analytics import profile_stats, subject_progress
from study.enums import QuizType, ReviewButton, SUPPORTED_FILE_TYPES
from study.errors import CardNotFound, InvalidInput, SubjectNotFound
from study.events import AddFile, CompleteFlashcardSession, CompleteQuiz, ReviewFlashcard
from study.grader import incorrect_questions, score_quiz
from study.models import AppState, Flashcard, Subject, SubjectFile, new_id
from study.scheduler import describe_interval, due_cards, preview_interval


def _now() -> datetime:
    return datetime.now(timezone.utc)


def require_subject(state: AppState, subject_id: str) -> Subject:
    subject = state.find_subject(subject_id)
    if subject is None:
        raise SubjectNotFound(subject_id)
    return subject


def _require_card(subject: Subject, card_id: str) -> Flashcard:
    card = subject.find_card(card_id)
    if card is None:
        raise CardNotFound(card_id)
    return card


def get_due_cards(state: AppState, subject_id: str, today: date) -> Dict:
    subject = require_subject(state, subject_id)
    due = due_cards(subject.flashcards, today)
    return {
        'subject_id': subject.id,
        'count': len(due),
        'cards': [c.to_dict() for c in due],
    }


def preview_card(state: AppState, subject_id: str, card_id: str) -> Dict:
    """Next interval for each review button, without changing the card."""
    card = _require_card(require_subject(state, subject_id), card_id)
    options = {}
    for button in ReviewButton:
        days = preview_interval(card, int(button))
        options[button.name.lower()] = {
            'quality': int(button),
            'days': days,
            'label': describe_interval(days),
        }
    return {'card_id': card.id, 'options': options}


def review(
    db: DBSession,
    user_id: str,
    subject_id: str,
    card_id: str,
    quality: int,
    now: Optional[datetime] = None,
) -> Dict:
    """Grade one card and return its new schedule."""
    state = dispatch(db, user_id, ReviewFlashcard(subject_id, card_id, quality), now or _now())
    card = require_subject(state, subject_id).find_card(card_id)
    return {'card': card.to_dict()}


def complete_session(
    db: DBSession,
    user_id: str,
    subject_id: str,
    cards_reviewed: int,
    now: Optional[datetime] = None,
) -> Dict:
    state = dispatch(db, user_id, CompleteFlashcardSession(subject_id, cards_reviewed), now or _now())
    subject = require_subject(state, subject_id)
    return {'subject_id': subject.id, 'readiness_score': subject.readiness_score}


def submit_quiz(
    db: DBSession,
    user_id: str,
    state: AppState,
    subject_id: str,
    quiz_type: QuizType,
    answers: List[List[str]],
    now: Optional[datetime] = None,
) -> Dict:
    """
    Score answers against a stored quiz and record the result.

    answers[i] is the answer list given for question i; missing entries
    count as wrong.
    """
    subject = require_subject(state, subject_id)
    questions = subject.quizzes.get(quiz_type) or []
    if not questions:
        raise InvalidInput(f"Subject has no {quiz_type.value} quiz")
    if len(answers) > len(questions):
        raise InvalidInput(f"Got {len(answers)} answers for {len(questions)} questions")

    score = score_quiz(questions, answers)
    wrong = incorrect_questions(questions, answers)
    state = dispatch(db, user_id, CompleteQuiz(subject_id, score), now or _now())
    return {
        'subject_id': subject_id,
        'quiz_type': quiz_type.value,
        'score': score,
        'total': len(questions),
        'correct': len(questions) - len(wrong),
        'incorrect': [
            {'question': q.question, 'correct_answer': list(q.correct_answer), 'explanation': q.explanation}
            for q in wrong
        ],
        'readiness_score': require_subject(state, subject_id).readiness_score,
    }


def add_file(
    db: DBSession,
    user_id: str,
    subject_id: str,
    name: str,
    mime_type: str,
    data: str,
    now: Optional[datetime] = None,
) -> AppState:
    """Attach a base64-encoded source file to a subject."""
    if mime_type not in SUPPORTED_FILE_TYPES:
        raise InvalidInput(f"Unsupported file type: {mime_type}")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInput("File data is not valid base64")
    now = now or _now()
    file = SubjectFile(id=new_id(), name=name, mime_type=mime_type, data=data, upload_date=now)
    return dispatch(db, user_id, AddFile(subject_id, file), now)


def get_subject_progress(state: AppState, subject_id: str, today: date) -> Dict:
    return subject_progress(require_subject(state, subject_id), today)


def get_stats(state: AppState, today: date) -> Dict:
    return profile_stats(state.subjects, today)
