"""
Key-value persistence of player settings (best score, tutorial flag).

Stores map string keys to string values. ``SafeStore`` shields the game from an unavailable
backend: failed reads behave as missing values and failed writes are dropped.
"""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)

# ##>: Environment variable overriding the settings file location.
SETTINGS_ENV = 'POWERTILES_SETTINGS'


class KeyValueStore(Protocol):
    """Minimal interface of a settings backend."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """In-memory store, lost when the process exits."""

    def __init__(self, values: dict[str, str] | None = None):
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStore:
    """
    Store backed by a single JSON object on disk.

    Parameters
    ----------
    path : str | Path
        Location of the JSON file. Parent directories are created on first write.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding='utf-8'))
        if not isinstance(data, dict):
            raise ValueError(f'{self.path} does not contain a JSON object')
        return data

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding='utf-8')


class SafeStore:
    """
    Wrapper turning backend failures into missing values and dropped writes.

    Parameters
    ----------
    backend : KeyValueStore
        The store doing the actual work.
    """

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    @classmethod
    def wrap(cls, store: KeyValueStore | None) -> 'SafeStore':
        """Wrap a store once; ``None`` gives an in-memory store."""
        if isinstance(store, cls):
            return store
        return cls(store if store is not None else MemoryStore())

    def get(self, key: str) -> str | None:
        try:
            return self.backend.get(key)
        except (OSError, ValueError) as error:
            _logger.debug('Settings unavailable, ignoring read of %r: %s', key, error)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            self.backend.set(key, value)
        except (OSError, ValueError) as error:
            _logger.debug('Settings unavailable, dropping write of %r: %s', key, error)


def default_settings_path() -> Path:
    """Settings file location: ``$POWERTILES_SETTINGS`` or ``~/.powertiles/settings.json``."""
    env_path = os.environ.get(SETTINGS_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / '.powertiles' / 'settings.json'
