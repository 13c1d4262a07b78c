"""Persisted key/value backends for portal state.

Values are plain strings so a state file written by one version of the
library stays readable by another; structured values (the user snapshot)
are JSON-encoded by :class:`pyqikpod.session.PortalContext`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pyqikpod.exceptions import QikpodConfigError

_logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Structural storage interface used by :class:`PortalContext`."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage, mainly for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileStorage:
    """Storage backed by a single JSON object on disk.

    Every write replaces the file atomically. A missing file reads as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()
        self._data: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._data = {}
            return self._data
        except OSError as exc:
            raise QikpodConfigError(f"Cannot read state file {self._path}: {exc}") from exc

        try:
            loaded = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise QikpodConfigError(f"State file {self._path} is not valid JSON") from exc
        if not isinstance(loaded, dict):
            raise QikpodConfigError(f"State file {self._path} must hold a JSON object")
        self._data = {str(k): str(v) for k, v in loaded.items() if v is not None}
        return self._data

    def _flush(self) -> None:
        data = self._load()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        _logger.debug("Wrote state file %s (%d keys)", self._path, len(data))

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        if data.get(key) == value:
            return
        data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        self._flush()
