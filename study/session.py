"""Flashcard review sessions, plus an interactive runner with injectable IO."""

from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

from study.enums import ReviewButton
from study.errors import InvalidInput, SubjectNotFound
from study.events import CompleteFlashcardSession, ReviewFlashcard
from study.models import Flashcard, Subject
from study.scheduler import check_quality, describe_interval, due_cards, preview_interval
from study.state import apply_event
from study.storage import StateStore


class FlashcardSession:
    """
    One pass over the cards that were due when the session started.

    The card list is a snapshot: reviews rescheduling a card do not add or
    remove cards from a running session.
    """

    def __init__(self, subject: Subject, as_of: date):
        self.subject_id = subject.id
        self.cards: List[Flashcard] = due_cards(subject.flashcards, as_of)
        self.index = 0
        self.qualities: List[int] = []

    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def is_complete(self) -> bool:
        return self.index >= len(self.cards)

    def current(self) -> Optional[Flashcard]:
        if self.is_complete:
            return None
        return self.cards[self.index]

    def preview(self, quality: int) -> str:
        card = self.current()
        if card is None:
            return ''
        return describe_interval(preview_interval(card, quality))

    def answer(self, quality: int) -> ReviewFlashcard:
        """Record a grade for the current card and move on."""
        card = self.current()
        if card is None:
            raise InvalidInput("Session has no card left to review")
        check_quality(quality)
        self.qualities.append(quality)
        self.index += 1
        return ReviewFlashcard(subject_id=self.subject_id, card_id=card.id, quality=quality)

    def finish_event(self) -> Optional[CompleteFlashcardSession]:
        """Session-complete event once every card was answered, else None."""
        if not self.cards or not self.is_complete:
            return None
        return CompleteFlashcardSession(subject_id=self.subject_id, cards_reviewed=len(self.cards))


_BUTTONS = {
    'a': ReviewButton.AGAIN,
    'g': ReviewButton.GOOD,
    'e': ReviewButton.EASY,
}


def run_review_session(
    store: StateStore,
    user_id: str,
    subject_id: str,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Review a subject's due cards interactively.

    IO is injectable for testability. Each grade is saved as soon as it is
    given; the session bonus and progress event are only recorded when every
    card was answered.

    Returns:
        Summary dict: {due, reviewed, again, good, easy, completed, readiness_score}
    """
    if now is None:
        now = datetime.now(timezone.utc)
    state = store.load(user_id)
    subject = state.find_subject(subject_id)
    if subject is None:
        raise SubjectNotFound(subject_id)

    session = FlashcardSession(subject, now.date())
    counts = {b: 0 for b in ReviewButton}

    if session.total == 0:
        output_fn("No cards due. All caught up!")
    else:
        output_fn(f"\n{'='*60}")
        output_fn(f"REVIEW SESSION -- {subject.name} -- {session.total} card(s) due")
        output_fn(f"{'='*60}")
        output_fn("Type 'q' to quit early.\n")

    while not session.is_complete:
        card = session.current()
        output_fn(f"\n--- Card {session.index + 1}/{session.total} ---")
        output_fn(f"  {card.term}")
        try:
            reply = input_fn("\nPress Enter to show the definition: ")
        except (EOFError, KeyboardInterrupt):
            break
        if reply.strip().lower() == 'q':
            break

        output_fn(f"  {card.definition}")
        output_fn("  [a] Again {}   [g] Good {}   [e] Easy {}".format(
            session.preview(ReviewButton.AGAIN),
            session.preview(ReviewButton.GOOD),
            session.preview(ReviewButton.EASY),
        ))

        button = None
        while button is None:
            try:
                reply = input_fn("Grade: ").strip().lower()
            except (EOFError, KeyboardInterrupt):
                reply = 'q'
            if reply == 'q':
                break
            button = _BUTTONS.get(reply)
            if button is None:
                output_fn("  Enter a, g or e.")
        if button is None:
            break

        state = apply_event(state, session.answer(int(button)), now)
        store.save(user_id, state)
        counts[button] += 1

    finish = session.finish_event()
    if finish is not None:
        state = apply_event(state, finish, now)
        store.save(user_id, state)

    reviewed = len(session.qualities)
    score = state.find_subject(subject_id).readiness_score
    if session.total:
        output_fn(f"\n{'='*60}")
        output_fn("SESSION COMPLETE" if finish else "SESSION ENDED EARLY")
        output_fn(f"  Reviewed: {reviewed}/{session.total}  Readiness: {score}%")
        output_fn(f"{'='*60}")

    return {
        'due': session.total,
        'reviewed': reviewed,
        'again': counts[ReviewButton.AGAIN],
        'good': counts[ReviewButton.GOOD],
        'easy': counts[ReviewButton.EASY],
        'completed': finish is not None,
        'readiness_score': score,
    }
