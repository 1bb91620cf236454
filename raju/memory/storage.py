#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Key-value blob storage backing the experience and model stores.

Each key maps to one UTF-8 file under the storage root. Writes go through a
temporary file and ``os.replace`` so a reader never observes a half-written
value. Every I/O failure surfaces as ``StorageUnavailableError``; callers
decide whether that degrades or propagates.
"""

import os
import re
import threading
import uuid
from pathlib import Path
from typing import List, Optional, Union

from raju import config
from raju.exceptions import StorageUnavailableError

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStorage:
    """File-per-key string store."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else config.STORAGE_DIR
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key or ""):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key has never been written."""
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailableError(f"Failed to read {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        with self._lock:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(value, encoding="utf-8")
                with open(tmp_path, "rb") as f:
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except OSError as e:
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
                raise StorageUnavailableError(f"Failed to write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        path = self._path_for(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return
            except OSError as e:
                raise StorageUnavailableError(f"Failed to remove {key}: {e}") from e

    def keys(self) -> List[str]:
        if not self.root.exists():
            return []
        try:
            return sorted(p.stem for p in self.root.glob("*.json") if not p.name.startswith("."))
        except OSError as e:
            raise StorageUnavailableError(f"Failed to list {self.root}: {e}") from e
