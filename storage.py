"""
storage.py — Key/value JSON document store on disk.

Each key is one file `<key>.json` inside the storage directory. Writes go
through a temporary file and an atomic rename so a crash mid-write never
leaves a truncated document behind. Unparseable documents are reported as
missing rather than raised, so a corrupted save falls back to a fresh game.
"""

import json
import logging
import os
import re
import tempfile
from typing import Any, Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_\-]+$')


class JsonStorage:
    """Persist JSON-serializable values under string keys."""

    def __init__(self, directory: str):
        self.directory = directory

    def init(self) -> None:
        """Create the storage directory. OSError propagates."""
        os.makedirs(self.directory, exist_ok=True)

    def _path(self, key: str) -> str:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.directory, f'{key}.json')

    def get_item(self, key: str) -> Optional[Any]:
        """
        Read the value stored under `key`.

        Returns:
            The decoded value, or None if the key was never written or its
            document cannot be parsed.
        """
        path = self._path(key)
        if not os.path.exists(path):
            return None

        with open(path, 'rb') as f:
            raw = f.read()
        try:
            return json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable document for %r: %s", key, e)
            return None

    def set_item(self, key: str, value: Any) -> None:
        """Write `value` under `key`. OSError and TypeError propagate."""
        path = self._path(key)
        payload = json.dumps(value)

        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f'.{key}.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
