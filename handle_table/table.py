from __future__ import annotations

from dataclasses import dataclass
import functools
import logging
from typing import Any
from typing import Dict
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from typing_extensions import TypedDict

from ._utils import is_int
from ._utils import log_obj
from .allocator import Allocator
from .allocator import DefaultAllocator
from .config import _Config
from .config import _expand_config
from .errors import InvariantError

_logger = logging.getLogger(__name__)
_log_obj = functools.partial(log_obj, _logger)


class _Reserved:
    _instance: Optional[_Reserved] = None

    def __new__(cls) -> _Reserved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "RESERVED"

    def __reduce__(self) -> str:
        return "RESERVED"


# Placeholder held by a freshly allocated slot until the caller stores a value
RESERVED = _Reserved()

TableStats = TypedDict(
    "TableStats",
    {
        "allocated": bool,
        "capacity": int,
        "used": int,
        "high_water_mark": int,
    },
)


@dataclass
class _Storage:
    # None marks an empty slot
    slots: List[Any]
    used: int

    @property
    def capacity(self) -> int:
        return len(self.slots)


class MaxSeen:
    """One past the greatest handle ever returned by `HandleTable.alloc_entry`.

    The counter belongs to the caller, who typically uses it to size arrays
    kept in parallel with the table. It only ever grows, frees do not lower it.
    """

    value: int
    __slots__ = ["value"]

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def __index__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"MaxSeen({self.value})"


class HandleTable:
    """Hands out small integer handles, each naming a slot that holds a value.

    Freed handles are reused lowest first before the table grows, so the live
    handles stay packed towards zero. Storage is created on the first `alloc`
    and released again when the last handle is freed; in between the capacity
    grows one chunk at a time and never shrinks.

    The table does no locking, see `LockedHandleTable` for a guarded variant.
    """

    _config: _Config
    _allocator: Allocator
    _storage: Optional[_Storage]
    # payload blocks handed out by alloc_entry(), by handle
    _payloads: Dict[int, bytearray]

    def __init__(
        self, config: Optional[_Config] = None, allocator: Optional[Allocator] = None
    ):
        if config is None:
            config = _expand_config()
        if allocator is None:
            allocator = DefaultAllocator(config.max_slots, config.max_payload_bytes)
        self._config = config
        self._allocator = allocator
        self._storage = None
        self._payloads = {}

    def __repr__(self) -> str:
        addr = hex(id(self))
        storage = self._storage
        if storage is None:
            return f"<{self.__class__.__name__} at {addr} absent>"
        return (
            f"<{self.__class__.__name__} at {addr} "
            f"used={storage.used} capacity={storage.capacity}>"
        )

    _log = functools.partial(_log_obj)
    _dbg = functools.partialmethod(_log, logging.DEBUG)
    _err = functools.partialmethod(_log, logging.ERROR)

    def alloc(self) -> int:
        """Reserve the lowest free handle and return it.

        The new slot holds `RESERVED` until a value is stored with `set()`.
        Raises `AllocationError` when storage cannot be obtained, in which case
        the table is left untouched.
        """
        storage = self._storage
        chunk_size = self._config.chunk_size
        if storage is None:
            storage = _Storage(self._allocator.allocate_slots(chunk_size), 0)
            self._storage = storage
            self._dbg("created storage with %d slots", chunk_size)

        if storage.used < storage.capacity:
            handle = _first_empty(storage.slots)
        else:
            handle = storage.capacity
            storage.slots = self._allocator.reallocate_slots(
                storage.slots, handle + chunk_size
            )
            self._dbg("grew storage from %d to %d slots", handle, storage.capacity)

        storage.slots[handle] = RESERVED
        storage.used += 1
        self._after_mutation()
        return handle

    def free(self, handle: int) -> int:
        """Release `handle` and return the new high-water mark.

        The mark is one past the greatest handle still in use, or 0 once the
        table has released its storage.
        """
        storage = self._storage
        if storage is None:
            raise self._violation(
                f"Cannot free handle {handle!r}, the table holds no storage"
            )
        self._check_live(storage, handle)
        if storage.used <= 0:
            raise self._violation(
                f"Cannot free handle {handle!r}, the used count is {storage.used}"
            )

        storage.slots[handle] = None
        storage.used -= 1
        # the payload, if any, now belongs to whoever holds a reference to it
        self._payloads.pop(handle, None)
        if storage.used == 0:
            self._release_storage()
        self._after_mutation()
        return self.high_water_mark

    def alloc_entry(self, max_seen: MaxSeen, payload_size: int = 0) -> int:
        """Allocate a handle, optionally backed by a zeroed payload block.

        With `payload_size > 0` the slot holds a `bytearray` of that size
        instead of `RESERVED`. `max_seen` is raised to `handle + 1` when the
        new handle reaches it. Either everything succeeds or `AllocationError`
        is raised with the table and `max_seen` exactly as they were.
        """
        if not is_int(payload_size) or payload_size < 0:
            raise self._violation(
                f"payload_size must be a non-negative int, got {payload_size!r}"
            )

        # The payload is obtained first: rolling back a handle whose allocation
        # grew the table would leave the extra chunk behind.
        payload: Optional[bytearray] = None
        if payload_size > 0:
            payload = self._allocator.allocate_payload(payload_size)

        try:
            handle = self.alloc()
        except Exception:
            if payload is not None:
                self._dbg("rolling back %d byte payload", payload_size)
                self._allocator.release_payload(payload)
            raise

        if payload is not None:
            self._storage_or_fail().slots[handle] = payload
            self._payloads[handle] = payload

        if handle >= max_seen.value:
            max_seen.value = handle + 1
        return handle

    def free_entry(self, handle: int) -> int:
        """Like `free()`, also returning the payload from `alloc_entry()` to
        the allocator."""
        storage = self._storage_or_fail()
        self._check_live(storage, handle)
        payload = self._payloads.pop(handle, None)
        mark = self.free(handle)
        if payload is not None:
            self._allocator.release_payload(payload)
        return mark

    def get(self, handle: int) -> Any:
        storage = self._storage_or_fail()
        self._check_live(storage, handle)
        return storage.slots[handle]

    def set(self, handle: int, value: Any) -> None:
        if value is None:
            raise self._violation(
                f"Cannot store None at handle {handle!r}, use free() to empty a slot"
            )
        storage = self._storage_or_fail()
        self._check_live(storage, handle)
        storage.slots[handle] = value
        self._after_mutation()

    __getitem__ = get
    __setitem__ = set

    def valid(self, handle: object) -> bool:
        storage = self._storage
        return (
            storage is not None
            and is_int(handle)
            and 0 <= handle < storage.capacity  # type: ignore[operator]
            and storage.slots[handle] is not None  # type: ignore[index]
        )

    __contains__ = valid

    def handles(self) -> Iterator[int]:
        storage = self._storage
        if storage is None:
            return
        for handle, value in enumerate(storage.slots):
            if value is not None:
                yield handle

    __iter__ = handles

    def items(self) -> Iterator[Tuple[int, Any]]:
        storage = self._storage
        if storage is None:
            return
        for handle, value in enumerate(storage.slots):
            if value is not None:
                yield handle, value

    def __len__(self) -> int:
        return self.used

    @property
    def allocated(self) -> bool:
        return self._storage is not None

    @property
    def capacity(self) -> int:
        storage = self._storage
        return 0 if storage is None else storage.capacity

    @property
    def used(self) -> int:
        storage = self._storage
        return 0 if storage is None else storage.used

    @property
    def chunk_size(self) -> int:
        return self._config.chunk_size

    @property
    def allocator(self) -> Allocator:
        return self._allocator

    @property
    def slots(self) -> Optional[List[Any]]:
        """The raw slot list, or None while the table holds no storage.

        `alloc()` and `free()` may swap in a different list, so a reference
        obtained here must be fetched again after either call.
        """
        storage = self._storage
        return None if storage is None else storage.slots

    @property
    def high_water_mark(self) -> int:
        storage = self._storage
        if storage is None:
            return 0
        if storage.used == storage.capacity:
            # every slot is occupied, the last one included
            return storage.capacity
        for handle in range(storage.capacity - 1, -1, -1):
            if storage.slots[handle] is not None:
                return handle + 1
        return 0

    def stats(self) -> TableStats:
        return {
            "allocated": self.allocated,
            "capacity": self.capacity,
            "used": self.used,
            "high_water_mark": self.high_water_mark,
        }

    def clear(self) -> None:
        """Drop every handle and release all storage, payloads included."""
        payloads, self._payloads = self._payloads, {}
        for payload in payloads.values():
            self._allocator.release_payload(payload)
        if self._storage is not None:
            self._release_storage()

    def check(self) -> None:
        """Verify the used/capacity bookkeeping, raising `InvariantError`."""
        storage = self._storage
        if storage is None:
            if self._payloads:
                raise self._violation(
                    f"{len(self._payloads)} payloads tracked without storage"
                )
            return
        occupied = sum(1 for value in storage.slots if value is not None)
        if occupied != storage.used:
            raise self._violation(
                f"used count is {storage.used} but {occupied} slots are occupied"
            )
        if storage.used == 0:
            raise self._violation("storage is held with no slot in use")
        if storage.capacity % self._config.chunk_size != 0:
            raise self._violation(
                f"capacity {storage.capacity} is not a multiple of the chunk size "
                f"{self._config.chunk_size}"
            )
        for handle in self._payloads:
            if not 0 <= handle < storage.capacity or storage.slots[handle] is None:
                raise self._violation(f"payload tracked for free handle {handle}")

    def __enter__(self) -> HandleTable:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.clear()

    def _storage_or_fail(self) -> _Storage:
        storage = self._storage
        if storage is None:
            raise self._violation("The table holds no storage")
        return storage

    def _check_live(self, storage: _Storage, handle: object) -> None:
        if not is_int(handle):
            raise self._violation(
                f"Handle must be an int, got {type(handle).__name__}"
            )
        if not 0 <= handle < storage.capacity:  # type: ignore[operator]
            raise self._violation(
                f"Handle {handle} is outside the table capacity {storage.capacity}"
            )
        if storage.slots[handle] is None:  # type: ignore[index]
            raise self._violation(f"Handle {handle} is not allocated")

    def _release_storage(self) -> None:
        storage = self._storage
        assert storage is not None
        self._storage = None
        self._allocator.release_slots(storage.slots)
        self._dbg("released storage of %d slots", storage.capacity)

    def _after_mutation(self) -> None:
        if self._config.debug:
            self.check()

    def _violation(self, message: str) -> InvariantError:
        self._err("%s", message)
        return InvariantError(message)


def _first_empty(slots: List[Any]) -> int:
    for handle, value in enumerate(slots):
        if value is None:
            return handle
    raise InvariantError("No empty slot although the used count is below capacity")
