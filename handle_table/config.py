from __future__ import annotations

from typing import NamedTuple
from typing import Optional

from ._utils import is_int
from .errors import HandleTableError

DEFAULT_CHUNK_SIZE = 16


class _Config(NamedTuple):
    chunk_size: int
    max_slots: Optional[int]
    max_payload_bytes: Optional[int]
    debug: bool


def _expand_config(
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_slots: Optional[int] = None,
    max_payload_bytes: Optional[int] = None,
    debug: bool = False,
) -> _Config:
    if not is_int(chunk_size):
        raise HandleTableError(
            f"chunk_size must be an int, got {type(chunk_size).__name__}",
            "CONFIG_INVALID",
        )
    if chunk_size < 1:
        raise HandleTableError(
            f"chunk_size must be at least 1, got {chunk_size!r}", "CONFIG_INVALID"
        )

    for name, budget in (
        ("max_slots", max_slots),
        ("max_payload_bytes", max_payload_bytes),
    ):
        if budget is None:
            continue
        if not is_int(budget):
            raise HandleTableError(
                f"{name} must be an int or None, got {type(budget).__name__}",
                "CONFIG_INVALID",
            )
        if budget < 0:
            raise HandleTableError(
                f"{name} must not be negative, got {budget!r}", "CONFIG_INVALID"
            )

    if not isinstance(debug, bool):
        raise HandleTableError(
            f"debug must be a bool, got {type(debug).__name__}", "CONFIG_INVALID"
        )

    return _Config(chunk_size, max_slots, max_payload_bytes, debug)
