"""Building blocks shared by the durable stores."""

import json
import os
from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Retention limit for the event and notification logs
MAX_LOG_ENTRIES = 1000


class RingLog(Generic[T]):
    """
    Append-only log that keeps only the most recent ``maxlen`` entries.

    Appending to a full log evicts the oldest entry in O(1).
    """

    def __init__(self, maxlen: int = MAX_LOG_ENTRIES, items: Iterable[T] = ()):
        """Initialize the log, keeping only the newest ``maxlen`` of ``items``."""
        if maxlen < 1:
            raise ValueError("maxlen must be positive")
        self._items: deque[T] = deque(items, maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        """Maximum number of retained entries."""
        return self._items.maxlen or 0

    def append(self, item: T) -> T | None:
        """
        Append an entry.

        Returns:
            The evicted entry when the log was full, otherwise None
        """
        evicted = self._items[0] if len(self._items) == self.maxlen else None
        self._items.append(item)
        return evicted

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


def matches(record: Any, filters: Mapping[str, Any]) -> bool:
    """Conjunctive equality match; filters set to None are ignored."""
    return all(
        getattr(record, field) == value for field, value in filters.items() if value is not None
    )


class JsonStateFile:
    """JSON document holding a store's full state, rewritten on every change."""

    def __init__(self, path: str | Path):
        """Initialize with the path of the state file."""
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        """
        Read the persisted state.

        A missing file yields an empty state. Any other read or parse failure
        is logged and also yields an empty state.

        Returns:
            Persisted state, or an empty dict
        """
        try:
            with self.path.open(encoding="utf-8") as fh:
                state = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("store_file_unreadable", path=str(self.path), error=str(e))
            return {}

        if not isinstance(state, dict):
            logger.warning("store_file_unreadable", path=str(self.path), error="not an object")
            return {}
        return state

    def writable(self) -> bool:
        """Check whether the state file (or the directory that will hold it) is writable."""
        target = self.path
        while not target.exists() and target != target.parent:
            target = target.parent
        return os.access(target, os.W_OK)

    def write(self, state: Mapping[str, Any]) -> None:
        """Atomically replace the persisted state; returns once it is on disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(state, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, self.path)
