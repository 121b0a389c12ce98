"""File-based state storage adapter."""

import json
import os
from pathlib import Path

from parish.errors import CorruptStateError, StorageError


class FileStateStorage:
    """
    File-based state storage.

    Implements StateStorage protocol. Each namespace gets a JSON file,
    replaced atomically on save.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, namespace: str) -> Path:
        """Get the file path for a namespace."""
        return self.data_dir / f"{namespace}.json"

    def load(self, namespace: str) -> dict | None:
        """Load a record. Returns None if nothing was saved."""
        path = self._path_for(namespace)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"{path.name} is not valid JSON: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise CorruptStateError(f"{path.name} does not hold an object")
        return data

    def save(self, namespace: str, data: dict) -> None:
        """Replace a record."""
        path = self._path_for(namespace)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2))
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def exists(self, namespace: str) -> bool:
        """Check if a record has been saved."""
        return self._path_for(namespace).exists()
