"""File-based persistence helpers for the JSON collections and uploaded proofs."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from ..config import settings
from ..errors import StorageFailure

logger = logging.getLogger(__name__)


class FileStorage:
    """Thin wrapper around the data root for storing whole JSON documents.

    Every collection lives in ``<root>/<name>.json`` and is always read and
    written as a single document. Writers of the same collection are
    serialised through a per-collection lock held for the whole
    load/mutate/save cycle (see :meth:`transaction`).
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self._locks: defaultdict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def lock_for(self, name: str) -> threading.RLock:
        with self._locks_guard:
            return self._locks[name]

    def load_json(self, name: str, default: Any) -> Any:
        """Return the saved document, or a copy of ``default`` when it is unusable.

        A missing, empty or malformed file never raises. Malformed content is
        logged and left on disk untouched until the next successful save.
        """
        path = self.path_for(name)
        with self.lock_for(name):
            if not path.exists():
                return copy.deepcopy(default)
            try:
                raw = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(f"Unable to read {path}: {exc}; using default")
                return copy.deepcopy(default)
            if not raw.strip():
                return copy.deepcopy(default)
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                logger.warning(f"Malformed JSON in {path}: {exc}; using default")
                return copy.deepcopy(default)
        if not isinstance(data, type(default)):
            logger.warning(
                f"Unexpected document type in {path} "
                f"(expected {type(default).__name__}, got {type(data).__name__}); using default"
            )
            return copy.deepcopy(default)
        return data

    def save_json(self, name: str, data: Any, *, indent: int = 2) -> None:
        """Replace the document atomically, raising StorageFailure on any error."""
        path = self.path_for(name)
        with self.lock_for(name):
            try:
                payload = json.dumps(data, ensure_ascii=False, indent=indent)
            except (TypeError, ValueError) as exc:
                raise StorageFailure(f"Collection '{name}' is not serialisable: {exc}") from exc
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=path.parent)
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        handle.write(payload)
                        handle.flush()
                        os.fsync(handle.fileno())
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                raise StorageFailure(f"Failed to save collection '{name}' to {path}: {exc}") from exc

    @contextmanager
    def transaction(self, name: str, default: Any) -> Iterator[Any]:
        """Load a collection, yield it for mutation and save it on clean exit."""
        with self.lock_for(name):
            data = self.load_json(name, default)
            yield data
            self.save_json(name, data)

    def write_bytes(self, path: Path, payload: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as handle:
                handle.write(payload)
        except OSError as exc:
            raise StorageFailure(f"Failed to write {path}: {exc}") from exc
