"""Key-Value Stores — local persistence backends for the secure storage wrapper.

Invariants:
    - Both stores satisfy core.repository_protocols.KeyValueStore
    - JsonFileStore writes atomically (temp file + os.replace) with 0600 permissions
    - A missing file reads as empty; an unreadable or corrupt file raises StorageError
"""

import json
import os
import tempfile
from pathlib import Path

from app.core.errors import StorageError


class MemoryStore:
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()


class JsonFileStore:
    """Single JSON object on disk, rewritten in full on every mutation."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._write(data)

    def keys(self) -> list[str]:
        return list(self._load())

    def clear(self) -> None:
        self._write({})

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Cannot read {self.path.name}: {e}")
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt store {self.path.name}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Corrupt store {self.path.name}: not an object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)
                os.chmod(tmp, 0o600)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self.path.name}: {e}")
