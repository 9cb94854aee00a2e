"""File-backed storage adapter keeping all keys in one JSON document."""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from finance_tracker.errors import StorageError
from finance_tracker.storage.base import StorageAdapter
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)


class JsonFileStorage(StorageAdapter):
    """Stores string blobs as values of a single JSON object on disk.

    The whole document is rewritten on every set(). Writes go to a temporary
    file in the same directory which is then renamed over the target, so a
    crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: Path):
        """Initialize file storage.

        Args:
            path: Location of the JSON document. Created on first write.
        """
        self.path = Path(path)
        self._data: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise StorageError(f"Cannot read storage file {self.path}: {e}") from e

        if not content.strip():
            self._data = {}
            return self._data

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Storage file {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(
                f"Storage file {self.path} must hold a JSON object, got {type(data).__name__}"
            )

        self._data = {str(k): str(v) for k, v in data.items()}
        logger.debug(f"Loaded {len(self._data)} keys from {self.path}")
        return self._data

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._load())
        data[key] = value
        self._write(data)
        self._data = data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
