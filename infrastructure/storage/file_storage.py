from __future__ import annotations

import json
import os
import tempfile
from typing import Dict, Optional

from domain.repositories import KeyValueStorage


class FileKeyValueStorage(KeyValueStorage):
    """
    `KeyValueStorage` kept in a single JSON file, one file per client context.

    The file holds a flat object of string keys to string values. Writes go
    through a temporary file and `os.replace`, so a reader sees either the
    old or the new content and never a half-written file.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self._path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (ValueError, RecursionError):
            # A damaged file is treated as empty storage and overwritten on the next write.
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key not in items:
            return
        del items[key]
        self._write_all(items)
