"""Local key-value storage for editor state.

All persisted state lives in one JSON object in the user's data directory,
keyed by name. Writes are atomic so a crash never leaves a half-written file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

from .constants import EditorConstants

logger = logging.getLogger(__name__)


class LocalStore:
    """JSON-backed key-value store.

    Values must be JSON-serializable. Reads are served from an in-memory
    cache after the first load.
    """

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            data_dir = Path(platformdirs.user_data_dir("ezwrite", "ezwrite"))
            path = data_dir / EditorConstants.STORAGE_FILENAME
        self._data_dir = Path(path).parent
        self._storage_file = Path(path)
        self._cache: Optional[Dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._storage_file

    def _ensure_data_dir(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not create data directory {self._data_dir}: {e}")

    def _load_all(self) -> Dict[str, Any]:
        if self._cache is not None:
            return self._cache

        if not self._storage_file.exists():
            self._cache = {}
            return self._cache

        try:
            with open(self._storage_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, PermissionError) as e:
            logger.warning(f"Could not load storage from {self._storage_file}: {e}")
            self._cache = {}
            return self._cache

        if not isinstance(data, dict):
            logger.warning("Storage file has invalid format (not a dict), ignoring")
            data = {}
        self._cache = data
        return self._cache

    def _save_all(self, data: Dict[str, Any]) -> bool:
        self._ensure_data_dir()
        temp_file = self._storage_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(self._storage_file)
            self._cache = data
            return True
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not save storage to {self._storage_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._load_all().get(key, default)

    def contains(self, key: str) -> bool:
        return key in self._load_all()

    def set(self, key: str, value: Any) -> bool:
        data = dict(self._load_all())
        data[key] = value
        return self._save_all(data)

    def update(self, values: Dict[str, Any]) -> bool:
        """Set several keys with a single write."""
        data = dict(self._load_all())
        data.update(values)
        return self._save_all(data)

    def remove(self, key: str) -> bool:
        data = dict(self._load_all())
        if key not in data:
            return True
        del data[key]
        return self._save_all(data)

    def clear_cache(self) -> None:
        self._cache = None
