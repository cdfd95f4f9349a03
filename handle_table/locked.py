from __future__ import annotations

import contextlib
import threading
from typing import Any
from typing import Iterator
from typing import List
from typing import Tuple

from .create_table import create_table
from .table import HandleTable
from .table import MaxSeen
from .table import TableStats


def create_table_locked(*args: Any, **kwargs: Any) -> LockedHandleTable:
    return LockedHandleTable(create_table(*args, **kwargs))


class LockedHandleTable:
    """A `HandleTable` shared between threads.

    Every call holds one lock for its whole duration. Compound operations
    (allocate then store, scan then free) go through `hold()`.
    """

    _table: HandleTable
    _lock: threading.Lock

    def __init__(self, table: HandleTable):
        self._table = table
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} of {self._table!r}>"

    @contextlib.contextmanager
    def hold(self) -> Iterator[HandleTable]:
        with self._lock:
            yield self._table

    def alloc(self) -> int:
        with self._lock:
            return self._table.alloc()

    def free(self, handle: int) -> int:
        with self._lock:
            return self._table.free(handle)

    def alloc_entry(self, max_seen: MaxSeen, payload_size: int = 0) -> int:
        with self._lock:
            return self._table.alloc_entry(max_seen, payload_size)

    def free_entry(self, handle: int) -> int:
        with self._lock:
            return self._table.free_entry(handle)

    def get(self, handle: int) -> Any:
        with self._lock:
            return self._table.get(handle)

    def set(self, handle: int, value: Any) -> None:
        with self._lock:
            self._table.set(handle, value)

    def valid(self, handle: object) -> bool:
        with self._lock:
            return self._table.valid(handle)

    # snapshots, the table may change as soon as the lock is released
    def handles(self) -> List[int]:
        with self._lock:
            return list(self._table.handles())

    def items(self) -> List[Tuple[int, Any]]:
        with self._lock:
            return list(self._table.items())

    def stats(self) -> TableStats:
        with self._lock:
            return self._table.stats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)

    def clear(self) -> None:
        with self._lock:
            self._table.clear()

    def __enter__(self) -> LockedHandleTable:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.clear()
