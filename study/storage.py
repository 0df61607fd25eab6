"""JSON-file state storage keyed by user id."""

import hashlib
import json
from pathlib import Path
from typing import List

from study.models import AppState


class StateStore:
    """
    One JSON document per user under root_dir.

    File names are a hash of the user id so arbitrary ids are safe on disk.
    Writes are atomic: the document is written to a temp file then renamed.
    """

    def __init__(self, root_dir):
        self.root_dir = Path(root_dir)

    def _path(self, user_id: str) -> Path:
        digest = hashlib.sha256(user_id.encode('utf-8')).hexdigest()[:16]
        return self.root_dir / f'{digest}.json'

    def load(self, user_id: str) -> AppState:
        """Stored state for user_id, or an empty state if none was saved."""
        path = self._path(user_id)
        if not path.exists():
            return AppState()
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return AppState.from_dict(data.get('state'))

    def save(self, user_id: str, state: AppState) -> None:
        path = self._path(user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + '.tmp')
        with tmp.open('w', encoding='utf-8') as f:
            json.dump({'user_id': user_id, 'state': state.to_dict()}, f, ensure_ascii=False, indent=2)
        tmp.replace(path)

    def delete(self, user_id: str) -> bool:
        path = self._path(user_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def user_ids(self) -> List[str]:
        ids = []
        if not self.root_dir.exists():
            return ids
        for path in sorted(self.root_dir.glob('*.json')):
            with open(path, 'r', encoding='utf-8') as f:
                ids.append(json.load(f).get('user_id', ''))
        return ids
