"""
Study state reducer.

apply_event(state, event) returns the next AppState without touching the
one passed in. Flashcard reviews go through the SM-2 scheduler and score
changes through the readiness functions.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from study import readiness
from study.enums import ProgressEventType
from study.errors import CardNotFound, InvalidInput, SubjectNotFound
from study.events import (
    AddFile,
    AddSubject,
    ClearContent,
    CompleteFlashcardSession,
    CompleteOnboarding,
    CompleteQuiz,
    RemoveFile,
    ResetApp,
    ReviewFlashcard,
    SetFlashcards,
    SetQuizzes,
    SetSummary,
    UpdateMaterial,
    UpdateProfile,
    UpdateReadiness,
)
from study.models import AppState, Flashcard, ProgressEvent, Subject, new_id, start_of_day
from study.scheduler import review_card

logger = logging.getLogger("studymate.state")


def _new_subject(subject_id: str, name: str, difficulty, exam_date) -> Subject:
    return Subject(id=subject_id, name=name, difficulty=difficulty, exam_date=exam_date)


def _update_subject(
    state: AppState,
    subject_id: str,
    fn: Callable[[Subject], Subject],
) -> AppState:
    """Replace one subject with fn(subject); every other subject is shared."""
    if state.find_subject(subject_id) is None:
        raise SubjectNotFound(subject_id)
    subjects = [fn(s) if s.id == subject_id else s for s in state.subjects]
    return replace(state, subjects=subjects)


def _cleared(subject: Subject) -> Subject:
    return replace(
        subject,
        summary=None,
        flashcards=[],
        quizzes={},
        readiness_score=readiness.on_content_cleared(subject.readiness_score),
    )


def _on_onboarding(state, event: CompleteOnboarding, now, make_id):
    subjects = [
        _new_subject(make_id(), s.name, s.difficulty, s.exam_date)
        for s in event.subjects
    ]
    return replace(state, user=event.user, subjects=subjects, study_intensity=event.intensity)


def _on_add_subject(state, event: AddSubject, now, make_id):
    subject = _new_subject(make_id(), event.name, event.difficulty, event.exam_date)
    return replace(state, subjects=state.subjects + [subject])


def _on_update_material(state, event: UpdateMaterial, now, make_id):
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        material=event.material,
        readiness_score=readiness.on_material_updated(s.readiness_score),
    ))


def _on_set_summary(state, event: SetSummary, now, make_id):
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        summary=event.summary,
        readiness_score=readiness.on_summary_generated(s.readiness_score),
    ))


def _on_set_flashcards(state, event: SetFlashcards, now, make_id):
    due = start_of_day(now)
    cards = [
        Flashcard(id=make_id(), term=term, definition=definition, due_date=due)
        for term, definition in event.cards
    ]
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        flashcards=cards,
        readiness_score=readiness.on_flashcards_generated(s.readiness_score),
    ))


def _on_set_quizzes(state, event: SetQuizzes, now, make_id):
    quizzes = {qt: list(questions) for qt, questions in event.quizzes.items()}
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        quizzes=quizzes,
        readiness_score=readiness.on_quizzes_generated(s.readiness_score),
    ))


def _on_add_file(state, event: AddFile, now, make_id):
    def add(s: Subject) -> Subject:
        s = replace(s, files=s.files + [event.file])
        # New source material invalidates generated content
        return _cleared(s) if s.summary else s
    return _update_subject(state, event.subject_id, add)


def _on_remove_file(state, event: RemoveFile, now, make_id):
    def remove(s: Subject) -> Subject:
        s = replace(s, files=[f for f in s.files if f.id != event.file_id])
        return _cleared(s) if s.summary else s
    return _update_subject(state, event.subject_id, remove)


def _on_clear_content(state, event: ClearContent, now, make_id):
    return _update_subject(state, event.subject_id, _cleared)


def _on_review(state, event: ReviewFlashcard, now, make_id):
    def review(s: Subject) -> Subject:
        if s.find_card(event.card_id) is None:
            raise CardNotFound(event.card_id)
        cards = [
            review_card(c, event.quality, now) if c.id == event.card_id else c
            for c in s.flashcards
        ]
        return replace(s, flashcards=cards)
    return _update_subject(state, event.subject_id, review)


def _on_flashcard_session(state, event: CompleteFlashcardSession, now, make_id):
    if event.cards_reviewed < 0:
        raise InvalidInput(f"cards_reviewed must be non-negative, got {event.cards_reviewed}")
    progress_event = ProgressEvent(
        type=ProgressEventType.FLASHCARDS,
        date=now,
        cards_reviewed=event.cards_reviewed,
    )
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        readiness_score=readiness.on_flashcard_session_completed(s.readiness_score),
        progress=s.progress + [progress_event],
    ))


def _on_quiz(state, event: CompleteQuiz, now, make_id):
    progress_event = ProgressEvent(type=ProgressEventType.QUIZ, date=now, score=event.score)
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        readiness_score=readiness.on_quiz_completed(s.readiness_score, event.score),
        progress=s.progress + [progress_event],
    ))


def _on_update_readiness(state, event: UpdateReadiness, now, make_id):
    return _update_subject(state, event.subject_id, lambda s: replace(
        s,
        readiness_score=readiness.bump(s.readiness_score, event.delta),
    ))


def _on_update_profile(state, event: UpdateProfile, now, make_id):
    return replace(
        state,
        user=event.user,
        study_intensity=event.intensity,
        notifications_enabled=event.notifications_enabled,
    )


def _on_reset(state, event: ResetApp, now, make_id):
    return AppState()


_HANDLERS: Dict[type, Callable] = {
    CompleteOnboarding: _on_onboarding,
    AddSubject: _on_add_subject,
    UpdateMaterial: _on_update_material,
    SetSummary: _on_set_summary,
    SetFlashcards: _on_set_flashcards,
    SetQuizzes: _on_set_quizzes,
    AddFile: _on_add_file,
    RemoveFile: _on_remove_file,
    ClearContent: _on_clear_content,
    ReviewFlashcard: _on_review,
    CompleteFlashcardSession: _on_flashcard_session,
    CompleteQuiz: _on_quiz,
    UpdateReadiness: _on_update_readiness,
    UpdateProfile: _on_update_profile,
    ResetApp: _on_reset,
}


def apply_event(
    state: AppState,
    event,
    now: Optional[datetime] = None,
    make_id: Callable[[], str] = new_id,
) -> AppState:
    """
    Apply one event and return the resulting state.

    Args:
        state:   Current state (not modified)
        event:   One of the dataclasses in study.events
        now:     Event time, used for due dates and progress timestamps
        make_id: Id factory for new subjects and cards

    Raises:
        InvalidInput for unknown events or out-of-range values,
        SubjectNotFound / CardNotFound for unknown ids.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise InvalidInput(f"Unknown event: {type(event).__name__}")
    if now is None:
        now = datetime.now(timezone.utc)
    logger.debug("apply %s subject=%s", type(event).__name__, getattr(event, 'subject_id', None))
    return handler(state, event, now, make_id)
