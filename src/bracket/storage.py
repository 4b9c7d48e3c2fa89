"""
Key-value stores used by the persistence and sharing collaborators.

Values are plain data (dicts, lists, strings, numbers, booleans, None).
"""
import copy
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import yaml
from filelock import FileLock

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


class KeyValueStore(ABC):
    """Abstract base class for stores: put, get, list, delete."""

    @abstractmethod
    def put(self, key: str, value):
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def get(self, key: str):
        """Value stored under key, or None."""
        pass

    @abstractmethod
    def list(self) -> List[str]:
        """All keys, sorted."""
        pass

    @abstractmethod
    def delete(self, key: str):
        """Remove key. Missing keys are ignored."""
        pass


class MemoryStore(KeyValueStore):
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self):
        self._data: Dict[str, object] = {}

    def put(self, key, value):
        self._data[key] = copy.deepcopy(value)

    def get(self, key):
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def list(self):
        return sorted(self._data.keys())

    def delete(self, key):
        self._data.pop(key, None)


class FileStore(KeyValueStore):
    """
    One YAML document per key under base_dir.

    Writes go through a temp file and a rename while holding a FileLock, so
    readers never see a half-written document.
    """

    def __init__(self, base_dir: str, lock_timeout: int = 10):
        self.base_dir = base_dir
        os.makedirs(base_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(base_dir, '.lock'), timeout=lock_timeout)

    def _path(self, key: str) -> str:
        if not isinstance(key, str) or not KEY_PATTERN.match(key):
            raise ValueError(f'Invalid store key: {key!r}')
        return os.path.join(self.base_dir, f'{key}.yaml')

    def put(self, key, value):
        path = self._path(key)
        tmp_path = path + '.tmp'
        with self._lock:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(value, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)

    def get(self, key):
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return None

    def list(self):
        keys = []
        for filename in os.listdir(self.base_dir):
            stem, ext = os.path.splitext(filename)
            if ext == '.yaml' and KEY_PATTERN.match(stem):
                keys.append(stem)
        return sorted(keys)

    def delete(self, key):
        path = self._path(key)
        with self._lock:
            if os.path.exists(path):
                os.remove(path)
