"""
Persistent key-value storage for the LYNX client.

Storage plays the part ``localStorage`` plays for the browser client: a flat
mapping of string keys to string values that survives process restarts.
Two backends are provided:

- ``MemoryStorage`` keeps everything in a dict (tests, short-lived scripts).
- ``FileStorage`` persists the mapping as a JSON object on disk.

Any failure to read or write the backing store is raised as
``StorageUnavailable``.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union
from collections.abc import Iterator, MutableMapping

import orjson

from .conf import PRESERVED_KEYS
from .exceptions import StorageUnavailable

logger = logging.getLogger("lynx.storage")


class Storage(MutableMapping[str, str]):
    """Dict-like string storage.

    Subclasses implement ``_load`` and ``_flush``; every mutation is
    flushed immediately.
    """

    def __init__(self) -> None:
        self._data: Optional[dict[str, str]] = None

    def __repr__(self) -> str:
        return f'<{type(self).__name__} keys={sorted(self._items().keys())}>'

    # --- Backend hooks ---

    def _load(self) -> dict[str, str]:
        raise NotImplementedError

    def _flush(self, data: dict[str, str]) -> None:
        raise NotImplementedError

    def _items(self) -> dict[str, str]:
        if self._data is None:
            self._data = self._load()
        return self._data

    # --- localStorage-style API ---

    def get_item(self, key: str) -> Optional[str]:
        return self._items().get(key)

    def set_item(self, key: str, value: str) -> None:
        self[key] = value

    def remove_item(self, key: str) -> None:
        """Remove key if present; missing keys are ignored."""
        data = self._items()
        if key in data:
            del data[key]
            self._flush(data)

    def reload(self) -> None:
        """Drop the in-memory view so the next read hits the backend."""
        self._data = None

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._items())

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items()))

    def __contains__(self, key: object) -> bool:
        return key in self._items()

    def __getitem__(self, key: str) -> str:
        return self._items()[key]

    def __setitem__(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(
                f"Storage values must be str, got {type(value).__name__}"
            )
        data = self._items()
        data[key] = value
        self._flush(data)

    def __delitem__(self, key: str) -> None:
        data = self._items()
        del data[key]
        self._flush(data)

    def clear(self) -> None:
        data = self._items()
        data.clear()
        self._flush(data)


class MemoryStorage(Storage):
    """Process-local storage, lost on exit."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        super().__init__()
        self._data = dict(initial or {})

    def _load(self) -> dict[str, str]:
        return {}

    def _flush(self, data: dict[str, str]) -> None:
        pass


class FileStorage(Storage):
    """Storage persisted as a JSON object in a single file.

    The file is read lazily on first access and rewritten atomically
    (temporary file + rename) after every mutation. The file is created
    with owner-only permissions.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageUnavailable(
                f"Cannot read storage file {self.path}: {err}"
            ) from err
        if not raw.strip():
            return {}
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise StorageUnavailable(
                f"Storage file {self.path} is not valid JSON"
            ) from err
        if not isinstance(data, dict):
            raise StorageUnavailable(
                f"Storage file {self.path} must contain a JSON object"
            )
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self, data: dict[str, str]) -> None:
        payload = orjson.dumps(data, option=orjson.OPT_SORT_KEYS)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(payload)
                os.chmod(tmp, 0o600)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as err:
            raise StorageUnavailable(
                f"Cannot write storage file {self.path}: {err}"
            ) from err


def clear_auth_data(storage: Storage) -> list[str]:
    """Remove every stored key except the preserved UI settings.

    Returns:
        Names of the removed keys.
    """
    removed = [key for key in storage if key not in PRESERVED_KEYS]
    for key in removed:
        storage.remove_item(key)
    logger.debug("Cleared %d storage key(s)", len(removed))
    return removed
