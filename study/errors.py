"""Exceptions raised by the study engine."""


class StudyError(Exception):
    """Base class for study engine errors."""


class InvalidInput(StudyError, ValueError):
    """A caller passed a value outside the accepted range."""


class SubjectNotFound(StudyError, KeyError):
    def __init__(self, subject_id: str):
        super().__init__(f"Subject not found: {subject_id}")
        self.subject_id = subject_id

    def __str__(self) -> str:
        return self.args[0]


class CardNotFound(StudyError, KeyError):
    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id

    def __str__(self) -> str:
        return self.args[0]
