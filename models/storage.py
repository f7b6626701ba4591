"""Key/value string storage backends for the badge catalog document."""

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union


class StorageBackend:
    """A named string store: get(key) -> str | None, set(key, value).

    Implementations raise OSError when a value cannot be read or written.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class StorageQuotaError(OSError):
    """The backend refused a value because it exceeds its quota."""


class MemoryStorage(StorageBackend):
    """In-process storage, optionally capped at a number of characters per value."""

    def __init__(self, quota: Optional[int] = None):
        self._data: Dict[str, str] = {}
        self.quota = quota

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota is not None and len(value) > self.quota:
            raise StorageQuotaError(f"Value of {len(value)} characters exceeds quota of {self.quota}")
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStorage(StorageBackend):
    """One file per key inside a directory; writes replace the file in one step."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", key)
        return self.directory / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=path.stem, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
