"""Tests for study/storage.py -- per-user JSON state files."""

import json
import sys
import tempfile
from pathlib import Path
from datetime import date, datetime, timezone

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from study.enums import QuizType, SubjectDifficulty
from study.events import AddSubject, CompleteQuiz, SetFlashcards, SetQuizzes
from study.models import AppState, QuizQuestion
from study.state import apply_event
from study.storage import StateStore

NOW = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


def _state():
    state = apply_event(AppState(), AddSubject('Physics', SubjectDifficulty.HARD, date(2026, 2, 1)), NOW)
    sid = state.subjects[0].id
    state = apply_event(state, SetFlashcards(sid, [('Force', 'Mass times acceleration')]), NOW)
    quiz = {QuizType.MULTIPLE_CHOICE: [QuizQuestion('Units of force?', ['N', 'J', 'W'], ['N'], 'Newton')]}
    state = apply_event(state, SetQuizzes(sid, quiz), NOW)
    return apply_event(state, CompleteQuiz(sid, 100), NOW)


def test_load_missing_user_is_empty():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(Path(tmp) / 'nested')
        assert store.load('nobody') == AppState()


def test_save_and_load():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(tmp)
        state = _state()
        store.save('u1', state)
        assert store.load('u1') == state


def test_users_are_isolated():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(tmp)
        store.save('u1', _state())
        store.save('u2', AppState())
        assert len(store.load('u1').subjects) == 1
        assert store.load('u2').subjects == []
        assert sorted(store.user_ids()) == ['u1', 'u2']


def test_save_leaves_no_temp_file():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(tmp)
        store.save('u1', _state())
        files = [p.name for p in Path(tmp).iterdir()]
        assert len(files) == 1
        assert files[0].endswith('.json')


def test_file_format():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(tmp)
        store.save('u1', _state())
        path = next(Path(tmp).glob('*.json'))
        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['user_id'] == 'u1'
        subject = data['state']['subjects'][0]
        assert subject['difficulty'] == 'Hard'
        assert subject['exam_date'] == '2026-02-01'
        assert 'Multiple Choice' in subject['quizzes']
        assert subject['progress'][0] == {'type': 'quiz', 'date': NOW.isoformat(), 'score': 100}


def test_delete():
    with tempfile.TemporaryDirectory() as tmp:
        store = StateStore(tmp)
        store.save('u1', _state())
        assert store.delete('u1') is True
        assert store.delete('u1') is False
        assert store.load('u1') == AppState()
