"""Tests for study/analytics.py -- progress statistics."""

import sys
from pathlib import Path
from datetime import date, datetime, timedelta, timezone

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from study.analytics import (
    average_quiz_score,
    days_until,
    most_studied_subject,
    profile_stats,
    study_streak,
    subject_progress,
    total_flashcards_reviewed,
    weakest_subject,
)
from study.enums import ProgressEventType
from study.models import Flashcard, ProgressEvent, Subject

TODAY = date(2026, 5, 20)


def _at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


def _quiz(score: int, day: date = TODAY) -> ProgressEvent:
    return ProgressEvent(type=ProgressEventType.QUIZ, date=_at(day), score=score)


def _session(cards: int, day: date = TODAY) -> ProgressEvent:
    return ProgressEvent(type=ProgressEventType.FLASHCARDS, date=_at(day), cards_reviewed=cards)


def _subject(name: str, progress=None, **kwargs) -> Subject:
    return Subject(id=name.lower(), name=name, progress=list(progress or []), **kwargs)


def test_average_quiz_score_ignores_sessions():
    events = [_quiz(70), _quiz(85), _session(12)]
    assert average_quiz_score(events) == 78  # 77.5 rounds up
    assert average_quiz_score([_session(3)]) == 0


def test_total_flashcards_reviewed():
    assert total_flashcards_reviewed([_session(5), _session(7), _quiz(90)]) == 12


def test_most_studied_tie_goes_to_later_subject():
    a = _subject('Algebra', [_quiz(50), _quiz(60)])
    b = _subject('Biology', [_session(3), _quiz(90)])
    assert most_studied_subject([a, b]) == 'Biology'
    c = _subject('Chemistry', [_quiz(10), _quiz(10), _quiz(10)])
    assert most_studied_subject([a, b, c]) == 'Chemistry'


def test_most_studied_none_without_activity():
    assert most_studied_subject([_subject('Algebra'), _subject('Biology')]) is None
    assert most_studied_subject([]) is None


def test_weakest_subject_lowest_mean():
    a = _subject('Algebra', [_quiz(80), _quiz(60)])
    b = _subject('Biology', [_quiz(40), _quiz(90)])
    c = _subject('Chemistry', [_session(10)])
    assert weakest_subject([a, b, c]) == 'Biology'


def test_weakest_subject_tie_goes_to_earlier_subject():
    a = _subject('Algebra', [_quiz(50)])
    b = _subject('Biology', [_quiz(50)])
    assert weakest_subject([a, b]) == 'Algebra'
    assert weakest_subject([_subject('Algebra', [_session(2)])]) is None


def test_streak_three_days_ending_today():
    s = _subject('Algebra', [
        _quiz(50, TODAY),
        _session(3, TODAY - timedelta(days=1)),
        _quiz(70, TODAY - timedelta(days=2)),
    ])
    assert study_streak([s], TODAY) == 3


def test_streak_counts_from_yesterday():
    s = _subject('Algebra', [
        _session(3, TODAY - timedelta(days=1)),
        _session(3, TODAY - timedelta(days=2)),
    ])
    assert study_streak([s], TODAY) == 2


def test_streak_broken_when_last_activity_two_days_ago():
    s = _subject('Algebra', [_quiz(50, TODAY - timedelta(days=2))])
    assert study_streak([s], TODAY) == 0


def test_streak_stops_at_gap_and_merges_subjects():
    a = _subject('Algebra', [_quiz(50, TODAY), _quiz(50, TODAY - timedelta(days=3))])
    b = _subject('Biology', [_session(4, TODAY - timedelta(days=1)), _session(1, TODAY)])
    assert study_streak([a, b], TODAY) == 2


def test_streak_empty():
    assert study_streak([_subject('Algebra')], TODAY) == 0


def test_days_until():
    assert days_until(date(2026, 5, 30), TODAY) == 10
    assert days_until(date(2026, 5, 18), TODAY) == -2


def test_subject_progress():
    cards = [
        Flashcard(id='1', term='a', definition='b', due_date=_at(TODAY)),
        Flashcard(id='2', term='c', definition='d', due_date=_at(TODAY + timedelta(days=4))),
    ]
    s = _subject(
        'Algebra',
        [_quiz(90, TODAY), _quiz(40, TODAY - timedelta(days=1)), _session(6)],
        flashcards=cards,
        exam_date=date(2026, 6, 1),
        readiness_score=60,
    )
    p = subject_progress(s, TODAY)
    assert p['readiness_score'] == 60
    assert p['average_quiz_score'] == 65
    assert p['total_flashcards_reviewed'] == 6
    assert [h['score'] for h in p['quiz_history']] == [40, 90]
    assert p['due_count'] == 1
    assert p['card_count'] == 2
    assert p['days_until_exam'] == 12


def test_profile_stats():
    a = _subject('Algebra', [_quiz(80), _session(5)])
    b = _subject('Biology', [_quiz(40)])
    stats = profile_stats([a, b], TODAY)
    assert stats['subject_count'] == 2
    assert stats['average_quiz_score'] == 60
    assert stats['total_flashcards_reviewed'] == 5
    assert stats['most_studied_subject'] == 'Algebra'
    assert stats['weakest_subject'] == 'Biology'
    assert stats['study_streak'] == 1
