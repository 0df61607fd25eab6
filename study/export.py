"""Export flashcards to Anki-compatible CSV format."""

import csv
from pathlib import Path

from study.models import Subject


def _format_tags(subject: Subject) -> str:
    """Subject name and difficulty as space-separated Anki tags."""
    tags = [subject.name, subject.difficulty.value.lower()]
    return ' '.join(t.strip().replace(' ', '_') for t in tags if t.strip())


def export_anki_csv(subject: Subject, path: Path) -> int:
    """
    Export a subject's flashcards to Anki-compatible CSV.

    Format: Front,Back,Tags (no header row, tab-separated as Anki expects).

    Returns:
        Number of cards exported.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tags = _format_tags(subject)
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f, delimiter='\t', quoting=csv.QUOTE_MINIMAL)
        for card in subject.flashcards:
            writer.writerow([card.term, card.definition, tags])
    return len(subject.flashcards)
