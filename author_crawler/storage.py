from __future__ import annotations

import json
import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .classifier import normalize_url
from .models import ArticleRecord


class ResultStore:
    """Append-only article store keyed by normalised URL.

    Records keep discovery order. A second record for a URL already held is
    rejected and append() returns False.
    """

    def __init__(self) -> None:
        self._records: List[ArticleRecord] = []
        self._keys: set = set()

    def append(self, record: ArticleRecord) -> bool:
        key = normalize_url(record.url)
        if key in self._keys:
            return False
        self._keys.add(key)
        self._records.append(record)
        return True

    def records(self) -> List[ArticleRecord]:
        return list(self._records)


class StorageBase(ABC):
    """Abstract base class for output sinks.

    Subclasses must implement write() and close().
    """

    @abstractmethod
    def write(self, kind: str, payload: Dict[str, Any]) -> None:
        """Persist one record of the given kind."""

    @abstractmethod
    def close(self) -> None:
        """Flush pending writes and release resources."""


class JsonlStorage(StorageBase):
    """Writes records as JSON Lines (.jsonl) from a background writer thread."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._queue: queue.Queue[Optional[Dict[str, Any]]] = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    def write(self, kind: str, payload: Dict[str, Any]) -> None:
        """Enqueue a record for background writing."""
        self._queue.put({"timestamp": time.time(), "kind": kind, "data": payload})

    def close(self) -> None:
        """Signal the writer thread to flush and stop."""
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _writer(self) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            while True:
                item = self._queue.get()
                if item is None:
                    break
                f.write(json.dumps(item, ensure_ascii=False) + "\n")
                f.flush()
