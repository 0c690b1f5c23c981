"""JSON-file key/value store standing in for browser local storage."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

_LOCKS: dict[str, Lock] = {}
_LOCKS_GUARD = Lock()


def _lock_for(path: Path) -> Lock:
    key = str(path.resolve())
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(key, Lock())


@contextmanager
def _locked(path: Path) -> Iterator[None]:
    """Serialize read-modify-write cycles on one state file within this process."""
    lock = _lock_for(path)
    with lock:
        yield


class StateStore:
    """String values keyed by name, persisted as a single JSON object."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        with _locked(self.path):
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with _locked(self.path):
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with _locked(self.path):
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)
