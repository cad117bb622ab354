from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

REQUEST_DATE_KEY = "requestDate"
DAILY_REQUESTS_KEY = "dailyRequests"
API_KEY_KEY = "apiKey"
DEMO_MODE_KEY = "demoModeSelected"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def update(self, values: dict[str, str]) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def update(self, values: dict[str, str]) -> None:
        self._values.update(values)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


class JsonFileStore:
    """String key/value store persisted as a single JSON object on disk.

    Every write replaces the file atomically, so a crash mid-write leaves the
    previous contents intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            print(f"[STATE][corrupt_state_file] path={self.path}", flush=True)
            return {}
        if not isinstance(decoded, dict):
            return {}
        return {str(k): str(v) for k, v in decoded.items()}

    def _write(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(values, fh, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def update(self, values: dict[str, str]) -> None:
        with self._lock:
            current = self._read()
            current.update(values)
            self._write(current)

    def delete(self, key: str) -> None:
        with self._lock:
            current = self._read()
            if current.pop(key, None) is not None:
                self._write(current)
