from __future__ import annotations

from abc import ABC
from abc import abstractmethod
import functools
import logging
from typing import Any
from typing import List
from typing import Optional

from ._utils import log_obj
from .errors import AllocationError
from .errors import InvariantError

_logger = logging.getLogger(__name__)
_log_obj = functools.partial(log_obj, _logger)

Slots = List[Any]


class Allocator(ABC):
    """Source of slot storage and payload blocks for a `HandleTable`.

    Implementations never fail halfway: they either return the requested
    storage or raise `AllocationError` and leave their arguments untouched.
    """

    @abstractmethod
    def allocate_slots(self, count: int) -> Slots:
        """Return a new list of `count` empty (None) slots."""

    @abstractmethod
    def reallocate_slots(self, slots: Slots, count: int) -> Slots:
        """Return a new list of `count` slots holding a copy of `slots`
        followed by empty slots. `slots` itself is no longer owned by the
        caller once this returns."""

    @abstractmethod
    def release_slots(self, slots: Slots) -> None:
        ...

    @abstractmethod
    def allocate_payload(self, size: int) -> bytearray:
        """Return a zero-filled block of `size` bytes."""

    @abstractmethod
    def release_payload(self, payload: bytearray) -> None:
        ...


class DefaultAllocator(Allocator):
    _max_slots: Optional[int]
    _max_payload_bytes: Optional[int]
    _slots_in_use: int
    _payload_bytes_in_use: int
    __slots__ = (
        "_max_slots",
        "_max_payload_bytes",
        "_slots_in_use",
        "_payload_bytes_in_use",
    )

    def __init__(
        self,
        max_slots: Optional[int] = None,
        max_payload_bytes: Optional[int] = None,
    ) -> None:
        self._max_slots = max_slots
        self._max_payload_bytes = max_payload_bytes
        self._slots_in_use = 0
        self._payload_bytes_in_use = 0

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} at {hex(id(self))} "
            f"slots={self._slots_in_use}/{self._max_slots} "
            f"payload_bytes={self._payload_bytes_in_use}/{self._max_payload_bytes}>"
        )

    _log = functools.partial(_log_obj)
    _dbg = functools.partialmethod(_log, logging.DEBUG)

    @property
    def slots_in_use(self) -> int:
        return self._slots_in_use

    @property
    def payload_bytes_in_use(self) -> int:
        return self._payload_bytes_in_use

    def _reserve_slots(self, delta: int) -> None:
        if self._max_slots is not None and self._slots_in_use + delta > self._max_slots:
            self._dbg("slot budget exhausted, %d more requested", delta)
            raise AllocationError(
                f"Cannot hold {self._slots_in_use + delta} slots, "
                f"the budget is {self._max_slots}"
            )

    def allocate_slots(self, count: int) -> Slots:
        self._reserve_slots(count)
        try:
            slots: Slots = [None] * count
        except MemoryError as e:
            raise AllocationError(f"Out of memory allocating {count} slots") from e
        self._slots_in_use += count
        return slots

    def reallocate_slots(self, slots: Slots, count: int) -> Slots:
        delta = count - len(slots)
        if delta < 0:
            raise InvariantError(
                f"Slot storage only grows, cannot shrink {len(slots)} to {count}"
            )
        self._reserve_slots(delta)
        try:
            grown = slots + [None] * delta
        except MemoryError as e:
            raise AllocationError(f"Out of memory growing to {count} slots") from e
        self._slots_in_use += delta
        return grown

    def release_slots(self, slots: Slots) -> None:
        self._slots_in_use -= len(slots)
        assert self._slots_in_use >= 0

    def allocate_payload(self, size: int) -> bytearray:
        if (
            self._max_payload_bytes is not None
            and self._payload_bytes_in_use + size > self._max_payload_bytes
        ):
            self._dbg("payload budget exhausted, %d bytes requested", size)
            raise AllocationError(
                f"Cannot allocate a payload of {size} bytes, "
                f"{self._payload_bytes_in_use} of {self._max_payload_bytes} in use"
            )
        try:
            payload = bytearray(size)
        except MemoryError as e:
            raise AllocationError(f"Out of memory allocating {size} bytes") from e
        self._payload_bytes_in_use += size
        return payload

    def release_payload(self, payload: bytearray) -> None:
        self._payload_bytes_in_use -= len(payload)
        assert self._payload_bytes_in_use >= 0
