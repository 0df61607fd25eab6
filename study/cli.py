"""
Study CLI.

Usage:
    python -m study.cli --db data subjects
    python -m study.cli --db data add-subject "Biology" --difficulty Hard --exam-date 2026-06-01
    python -m study.cli --db data import-cards Biology cards.json
    python -m study.cli --db data due [Biology]
    python -m study.cli --db data review Biology
    python -m study.cli --db data quiz Biology --type "True/False"
    python -m study.cli --db data stats
    python -m study.cli --db data export Biology --anki out.tsv
"""

import sys
import json
import argparse
import logging
from datetime import date, datetime, timezone
from pathlib import Path

from study.analytics import profile_stats, subject_progress
from study.enums import QuizType, SubjectDifficulty
from study.errors import StudyError
from study.events import AddSubject, CompleteQuiz, SetFlashcards
from study.export import export_anki_csv
from study.grader import is_correct, score_quiz, toggle_answer
from study.scheduler import due_cards
from study.session import run_review_session
from study.state import apply_event
from study.storage import StateStore

logger = logging.getLogger("studymate.cli")

DEFAULT_USER = 'local'


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def _resolve_subject(state, key: str):
    """Find a subject by id or case-insensitive name."""
    for s in state.subjects:
        if s.id == key or s.name.lower() == key.lower():
            return s
    print(f"Subject not found: {key}")
    sys.exit(1)


def cmd_subjects(args, store):
    """List subjects with readiness and due counts."""
    state = store.load(args.user)
    if not state.subjects:
        print("No subjects yet. Add one with add-subject.")
        return
    today = _today()
    for s in state.subjects:
        due = len(due_cards(s.flashcards, today))
        exam = f"  exam={s.exam_date.isoformat()}" if s.exam_date else ''
        print(f"  {s.name} [{s.difficulty.value}] readiness={s.readiness_score}% "
              f"cards={len(s.flashcards)} due={due}{exam}")


def cmd_add_subject(args, store):
    state = store.load(args.user)
    state = apply_event(state, AddSubject(
        name=args.name,
        difficulty=SubjectDifficulty(args.difficulty),
        exam_date=args.exam_date,
    ))
    store.save(args.user, state)
    print(f"Added subject '{args.name}'.")


def cmd_import_cards(args, store):
    """Replace a subject's flashcards with term/definition pairs from a JSON file."""
    path = Path(args.file)
    if not path.exists():
        print(f"Card file not found: {path}")
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('flashcards', [])
    pairs = [
        (item['term'], item['definition'])
        for item in data
        if item.get('term') and item.get('definition')
    ]
    if not pairs:
        print("No term/definition pairs found.")
        return
    state = store.load(args.user)
    subject = _resolve_subject(state, args.subject)
    state = apply_event(state, SetFlashcards(subject_id=subject.id, cards=pairs))
    store.save(args.user, state)
    print(f"Imported {len(pairs)} card(s) into '{subject.name}'.")


def cmd_due(args, store):
    """Show due cards."""
    state = store.load(args.user)
    subjects = [_resolve_subject(state, args.subject)] if args.subject else state.subjects
    today = _today()
    total = 0
    for s in subjects:
        due = due_cards(s.flashcards, today)
        if not due:
            continue
        total += len(due)
        print(f"\n{s.name}: {len(due)} card(s) due")
        for i, card in enumerate(due, 1):
            print(f"  {i}. {card.term[:80]}")
            print(f"     due={card.due_date.date().isoformat()}  ease={card.easiness_factor:.2f}  "
                  f"interval={card.interval}d  reps={card.repetitions}")
    if total == 0:
        print("No cards due today.")


def cmd_review(args, store):
    """Run interactive review session."""
    state = store.load(args.user)
    subject = _resolve_subject(state, args.subject)
    run_review_session(store, args.user, subject.id)


def cmd_quiz(args, store):
    """Take one of a subject's stored quizzes."""
    state = store.load(args.user)
    subject = _resolve_subject(state, args.subject)
    quiz_type = QuizType(args.type)
    questions = subject.quizzes.get(quiz_type) or []
    if not questions:
        print(f"No {quiz_type.value} quiz for '{subject.name}'.")
        return

    print(f"\nQUIZ: {subject.name} -- {quiz_type.value} -- {len(questions)} question(s)")
    print("=" * 60)
    answers = []
    for i, q in enumerate(questions, 1):
        print(f"\nQ{i}. {q.question}")
        for opt in q.options:
            print(f"   - {opt}")
        try:
            reply = input("Your answer (separate several with ';'): ")
        except (EOFError, KeyboardInterrupt):
            print("\nQuiz ended.")
            return
        given = []
        for token in reply.split(';'):
            if token.strip():
                given = toggle_answer(quiz_type, given, token.strip())
        answers.append(given)
        if is_correct(q, given):
            print("  Correct!")
        else:
            print(f"  Correct answer: {', '.join(q.correct_answer)}")
        if q.explanation:
            print(f"  {q.explanation}")

    score = score_quiz(questions, answers)
    state = apply_event(state, CompleteQuiz(subject_id=subject.id, score=score))
    store.save(args.user, state)
    print(f"\nScore: {score}%  Readiness: {state.find_subject(subject.id).readiness_score}%")


def cmd_stats(args, store):
    """Show study statistics."""
    state = store.load(args.user)
    today = _today()
    stats = profile_stats(state.subjects, today)

    print(f"\nStore: {args.db}  user={args.user}")
    print(f"  Subjects:               {stats['subject_count']}")
    print(f"  Cards due today:        {stats['due_count']}")
    print(f"  Average quiz score:     {stats['average_quiz_score']}%")
    print(f"  Flashcards reviewed:    {stats['total_flashcards_reviewed']}")
    print(f"  Most studied subject:   {stats['most_studied_subject'] or '-'}")
    print(f"  Weakest subject:        {stats['weakest_subject'] or '-'}")
    print(f"  Study streak:           {stats['study_streak']} day(s)")

    for s in state.subjects:
        p = subject_progress(s, today)
        exam = p['days_until_exam']
        exam_txt = f"  exam in {exam}d" if exam is not None else ''
        print(f"\n  {s.name}: readiness {p['readiness_score']}%  "
              f"avg quiz {p['average_quiz_score']}%  "
              f"reviewed {p['total_flashcards_reviewed']}{exam_txt}")


def cmd_export(args, store):
    """Export a subject's flashcards to Anki TSV."""
    state = store.load(args.user)
    subject = _resolve_subject(state, args.subject)
    count = export_anki_csv(subject, Path(args.anki))
    print(f"Exported {count} card(s) to {args.anki}")


COMMANDS = {
    'subjects': cmd_subjects,
    'add-subject': cmd_add_subject,
    'import-cards': cmd_import_cards,
    'due': cmd_due,
    'review': cmd_review,
    'quiz': cmd_quiz,
    'stats': cmd_stats,
    'export': cmd_export,
}


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Study mode -- subjects, flashcards and quizzes",
        prog="python -m study.cli",
    )
    parser.add_argument(
        '--db', default='data',
        help="Directory holding the per-user state files (default: data)",
    )
    parser.add_argument(
        '--user', default=DEFAULT_USER,
        help=f"User id whose state is used (default: {DEFAULT_USER})",
    )
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('subjects', help='List subjects')

    add_parser = subparsers.add_parser('add-subject', help='Add a subject')
    add_parser.add_argument('name', help='Subject name')
    add_parser.add_argument(
        '--difficulty', default=SubjectDifficulty.MEDIUM.value,
        choices=[d.value for d in SubjectDifficulty],
    )
    add_parser.add_argument('--exam-date', default=None, type=_iso_date, help='Exam date (YYYY-MM-DD)')

    import_parser = subparsers.add_parser('import-cards',
                                          help='Replace flashcards from a JSON file')
    import_parser.add_argument('subject', help='Subject name or id')
    import_parser.add_argument('file', help='JSON list of {term, definition}')

    due_parser = subparsers.add_parser('due', help='Show cards due for review')
    due_parser.add_argument('subject', nargs='?', default=None, help='Subject name or id')

    review_parser = subparsers.add_parser('review', help='Run interactive review session')
    review_parser.add_argument('subject', help='Subject name or id')

    quiz_parser = subparsers.add_parser('quiz', help='Take a quiz')
    quiz_parser.add_argument('subject', help='Subject name or id')
    quiz_parser.add_argument(
        '--type', default=QuizType.MULTIPLE_CHOICE.value,
        choices=[q.value for q in QuizType],
    )

    subparsers.add_parser('stats', help='Show study statistics')

    export_parser = subparsers.add_parser('export', help='Export flashcards')
    export_parser.add_argument('subject', help='Subject name or id')
    export_parser.add_argument('--anki', required=True,
                               help='Output TSV path for Anki export')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return

    store = StateStore(args.db)
    try:
        handler(args, store)
    except StudyError as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
