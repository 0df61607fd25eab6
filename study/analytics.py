"""Progress analytics derived from subjects' progress logs."""

import math
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from study.enums import ProgressEventType
from study.models import ProgressEvent, Subject
from study.scheduler import due_cards


def _quiz_events(events: Iterable[ProgressEvent]) -> List[ProgressEvent]:
    return [e for e in events if e.type == ProgressEventType.QUIZ and e.score is not None]


def quiz_history(events: Iterable[ProgressEvent]) -> List[ProgressEvent]:
    """Quiz events oldest first."""
    return sorted(_quiz_events(events), key=lambda e: e.date)


def average_quiz_score(events: Iterable[ProgressEvent]) -> int:
    """Mean quiz score rounded half-up; 0 when no quiz was taken."""
    quizzes = _quiz_events(events)
    if not quizzes:
        return 0
    mean = sum(e.score for e in quizzes) / len(quizzes)
    return math.floor(mean + 0.5)


def total_flashcards_reviewed(events: Iterable[ProgressEvent]) -> int:
    return sum(
        e.cards_reviewed or 0
        for e in events
        if e.type == ProgressEventType.FLASHCARDS
    )


def most_studied_subject(subjects: List[Subject]) -> Optional[str]:
    """
    Name of the subject with the most progress events.

    Ties go to the later subject. Subjects without events never qualify, so
    a profile with no activity at all gives None rather than naming the last
    subject.
    """
    best: Optional[Subject] = None
    for subject in subjects:
        if not subject.progress:
            continue
        if best is None or len(subject.progress) >= len(best.progress):
            best = subject
    return best.name if best else None


def weakest_subject(subjects: List[Subject]) -> Optional[str]:
    """
    Name of the subject with the lowest mean quiz score.

    Only subjects with at least one quiz count; ties go to the earlier subject.
    """
    weakest: Optional[str] = None
    weakest_mean = None
    for subject in subjects:
        quizzes = _quiz_events(subject.progress)
        if not quizzes:
            continue
        mean = sum(e.score for e in quizzes) / len(quizzes)
        if weakest_mean is None or mean < weakest_mean:
            weakest, weakest_mean = subject.name, mean
    return weakest


def study_streak(subjects: List[Subject], today: date) -> int:
    """
    Consecutive days with at least one progress event.

    The streak only counts when the most recent activity was today or
    yesterday; it then extends back one day at a time until a gap.
    """
    days = sorted(
        {e.date.date() for s in subjects for e in s.progress},
        reverse=True,
    )
    if not days:
        return 0
    if days[0] not in (today, today - timedelta(days=1)):
        return 0
    streak = 1
    for prev, cur in zip(days, days[1:]):
        if prev - cur != timedelta(days=1):
            break
        streak += 1
    return streak


def days_until(target: date, today: date) -> int:
    """Whole days from today to target; negative once target has passed."""
    return (target - today).days


def subject_progress(subject: Subject, today: date) -> Dict:
    """JSON-safe progress summary for one subject."""
    return {
        'subject_id': subject.id,
        'name': subject.name,
        'readiness_score': subject.readiness_score,
        'average_quiz_score': average_quiz_score(subject.progress),
        'total_flashcards_reviewed': total_flashcards_reviewed(subject.progress),
        'quiz_history': [
            {'date': e.date.isoformat(), 'score': e.score}
            for e in quiz_history(subject.progress)
        ],
        'due_count': len(due_cards(subject.flashcards, today)),
        'card_count': len(subject.flashcards),
        'days_until_exam': days_until(subject.exam_date, today) if subject.exam_date else None,
    }


def profile_stats(subjects: List[Subject], today: date) -> Dict:
    """Aggregate statistics across all subjects."""
    all_events = [e for s in subjects for e in s.progress]
    return {
        'subject_count': len(subjects),
        'average_quiz_score': average_quiz_score(all_events),
        'total_flashcards_reviewed': total_flashcards_reviewed(all_events),
        'most_studied_subject': most_studied_subject(subjects),
        'weakest_subject': weakest_subject(subjects),
        'study_streak': study_streak(subjects, today),
        'due_count': sum(len(due_cards(s.flashcards, today)) for s in subjects),
    }
