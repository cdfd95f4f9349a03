from __future__ import annotations

from typing import Optional

from .allocator import Allocator
from .allocator import DefaultAllocator
from .config import _expand_config
from .config import DEFAULT_CHUNK_SIZE
from .errors import HandleTableError
from .table import HandleTable


def create_table(
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_slots: Optional[int] = None,
    max_payload_bytes: Optional[int] = None,
    allocator: Optional[Allocator] = None,
    debug: bool = False,
) -> HandleTable:
    config = _expand_config(
        chunk_size=chunk_size,
        max_slots=max_slots,
        max_payload_bytes=max_payload_bytes,
        debug=debug,
    )
    if allocator is None:
        allocator = DefaultAllocator(config.max_slots, config.max_payload_bytes)
    elif not isinstance(allocator, Allocator):
        raise HandleTableError(
            f"allocator must be an Allocator, got {type(allocator).__name__}",
            "CONFIG_INVALID",
        )
    elif config.max_slots is not None or config.max_payload_bytes is not None:
        raise HandleTableError(
            "Budgets cannot be combined with a custom allocator, "
            "configure the allocator instead",
            "CONFIG_INVALID",
        )
    return HandleTable(config, allocator)
