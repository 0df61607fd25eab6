"""Per-user study state persisted as one JSON document in the database."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from server.db.models import UserDocument
from study.models import AppState
from study.state import apply_event

logger = logging.getLogger("studymate")


def load_state(db: DBSession, user_id: str) -> AppState:
    """Stored state for user_id; an empty state if the user has none yet."""
    doc = db.get(UserDocument, user_id)
    if doc is None:
        return AppState()
    return AppState.from_dict(doc.data)


def save_state(db: DBSession, user_id: str, state: AppState) -> None:
    doc = db.get(UserDocument, user_id)
    data = state.to_dict()
    if doc is None:
        db.add(UserDocument(user_id=user_id, data=data))
    else:
        # JSON columns are not mutation-tracked; assign a new object
        doc.data = data
    db.flush()


def dispatch(db: DBSession, user_id: str, event, now: Optional[datetime] = None) -> AppState:
    """
    Load, apply one event, save.

    Nothing is written if the event is rejected; the error propagates to the
    caller (the request session is rolled back).
    """
    state = apply_event(load_state(db, user_id), event, now)
    save_state(db, user_id, state)
    logger.debug("user=%s applied %s", user_id, type(event).__name__)
    return state
