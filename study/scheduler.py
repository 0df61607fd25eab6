"""SM-2 spaced repetition scheduler."""

import math
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, List, Tuple

from study.errors import InvalidInput
from study.models import Flashcard, MIN_EASINESS

PASSING_QUALITY = 3


def check_quality(quality: int) -> None:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"Quality must be an integer 0-5, got {quality!r}")
    if not (0 <= quality <= 5):
        raise InvalidInput(f"Quality must be 0-5, got {quality}")


def _next_state(card: Flashcard, quality: int) -> Tuple[float, int, int]:
    """
    Shared arithmetic for reviews and previews.

    Returns (easiness_factor, interval, repetitions) after a review of the
    given quality. Out-of-range card state is clamped before use.
    """
    ease = max(card.easiness_factor, MIN_EASINESS)
    reps = max(card.repetitions, 0)
    interval = max(card.interval, 0)

    if quality < PASSING_QUALITY:
        # Failed recall resets progress but leaves easiness alone
        return ease, 1, 0

    # EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02))
    new_ease = ease + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ease = max(new_ease, MIN_EASINESS)

    new_reps = reps + 1
    if new_reps == 1:
        new_interval = 1
    elif new_reps == 2:
        new_interval = 6
    else:
        # Previous interval times the new easiness
        new_interval = max(1, math.ceil(interval * new_ease))

    return new_ease, new_interval, new_reps


def review_card(card: Flashcard, quality: int, now: datetime) -> Flashcard:
    """
    Apply one review to a card.

    Args:
        card:    Card to review (not modified)
        quality: Recall grade 0-5 (0-2 failed, 3 hard, 4 good, 5 easy)
        now:     Review time; the due date is counted from here

    Returns:
        A new Flashcard with updated easiness, interval, repetitions and due date.

    Raises:
        InvalidInput if quality is outside 0-5.
    """
    check_quality(quality)
    ease, interval, reps = _next_state(card, quality)
    return replace(
        card,
        easiness_factor=ease,
        interval=interval,
        repetitions=reps,
        due_date=now + timedelta(days=interval),
    )


def preview_interval(card: Flashcard, quality: int) -> int:
    """Days until the next review if the card were answered with this quality."""
    check_quality(quality)
    return _next_state(card, quality)[1]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def describe_interval(days: int) -> str:
    """Short label for an interval, e.g. '≈ 6 days' or '≈ 2 months'."""
    if days <= 1:
        return '≈ 1 day'
    if days < 30:
        return f'≈ {days} days'
    months = _round_half_up(days / 30)
    if months <= 1:
        return '≈ 1 month'
    return f'≈ {months} months'


def is_due(card: Flashcard, as_of: date) -> bool:
    """Due dates are compared by calendar day."""
    return card.due_date.date() <= as_of


def due_cards(cards: Iterable[Flashcard], as_of: date) -> List[Flashcard]:
    """Cards eligible for review on as_of, in collection order."""
    return [c for c in cards if is_due(c, as_of)]
