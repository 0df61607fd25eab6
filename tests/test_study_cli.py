"""Tests for study/cli.py -- command-line entry point."""

import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from study import cli
from study.enums import QuizType
from study.events import SetQuizzes
from study.models import QuizQuestion
from study.state import apply_event
from study.storage import StateStore


def _run(tmp, *args):
    cli.main(['--db', str(tmp), *args])


def test_add_subject_and_list(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        _run(tmp, 'add-subject', 'Biology', '--difficulty', 'Hard', '--exam-date', '2026-06-01')
        _run(tmp, 'subjects')
        out = capsys.readouterr().out
        assert "Added subject 'Biology'" in out
        assert 'Biology [Hard] readiness=0%' in out
        assert 'exam=2026-06-01' in out


def test_import_cards_and_due(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cards = Path(tmp) / 'cards.json'
        cards.write_text(json.dumps([
            {'term': 'Osmosis', 'definition': 'Diffusion of water'},
            {'term': '', 'definition': 'skipped'},
        ]), encoding='utf-8')
        _run(tmp, 'add-subject', 'Biology')
        _run(tmp, 'import-cards', 'biology', str(cards))
        _run(tmp, 'due')
        out = capsys.readouterr().out
        assert 'Imported 1 card(s)' in out
        assert 'Biology: 1 card(s) due' in out
        assert 'Osmosis' in out


def test_unknown_subject_exits(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            _run(tmp, 'review', 'Nope')
        assert exc.value.code == 1
        assert 'Subject not found: Nope' in capsys.readouterr().out


def test_quiz_records_score(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        _run(tmp, 'add-subject', 'History')
        store = StateStore(tmp)
        state = store.load(cli.DEFAULT_USER)
        sid = state.subjects[0].id
        questions = [
            QuizQuestion('Rome fell in 476', ['True', 'False'], ['True']),
            QuizQuestion('Paris is in Spain', ['True', 'False'], ['False']),
        ]
        store.save(cli.DEFAULT_USER, apply_event(state, SetQuizzes(sid, {QuizType.TRUE_FALSE: questions})))

        replies = iter(['true', 'True'])
        monkeypatch.setattr('builtins.input', lambda prompt='': next(replies))
        _run(tmp, 'quiz', 'History', '--type', 'True/False')

        out = capsys.readouterr().out
        assert 'Score: 50%' in out
        subject = store.load(cli.DEFAULT_USER).subjects[0]
        assert subject.progress[0].score == 50
        assert subject.readiness_score == 15 + 10


def test_bad_exam_date_is_a_usage_error(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            _run(tmp, 'add-subject', 'Biology', '--exam-date', '01/06/2026')
        assert exc.value.code == 2
        assert "invalid date '01/06/2026'" in capsys.readouterr().err
        assert StateStore(tmp).load(cli.DEFAULT_USER).subjects == []


def test_quiz_multiple_choice_toggles_repeated_options(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        _run(tmp, 'add-subject', 'Math')
        store = StateStore(tmp)
        state = store.load(cli.DEFAULT_USER)
        sid = state.subjects[0].id
        questions = [
            QuizQuestion('Pick the primes', ['2', '3', '4'], ['2', '3']),
            QuizQuestion('Pick the even numbers', ['2', '3', '4'], ['2', '4']),
        ]
        store.save(cli.DEFAULT_USER, apply_event(state, SetQuizzes(sid, {QuizType.MULTIPLE_CHOICE: questions})))

        # picking 4 twice deselects it
        replies = iter(['2; 4; 3; 4', '2;4;4'])
        monkeypatch.setattr('builtins.input', lambda prompt='': next(replies))
        _run(tmp, 'quiz', 'Math')

        assert 'Score: 50%' in capsys.readouterr().out
        assert store.load(cli.DEFAULT_USER).subjects[0].progress[0].score == 50


def test_stats_and_export(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cards = Path(tmp) / 'cards.json'
        cards.write_text(json.dumps({'flashcards': [{'term': 'A', 'definition': 'B'}]}), encoding='utf-8')
        _run(tmp, 'add-subject', 'Art')
        _run(tmp, 'import-cards', 'Art', str(cards))
        out_path = Path(tmp) / 'art.tsv'
        _run(tmp, 'export', 'Art', '--anki', str(out_path))
        _run(tmp, 'stats')
        out = capsys.readouterr().out
        assert 'Exported 1 card(s)' in out
        assert out_path.read_text(encoding='utf-8').startswith('A\tB\t')
        assert 'Subjects:               1' in out


def test_no_command_prints_help(capsys):
    cli.main([])
    assert 'usage' in capsys.readouterr().out.lower()
