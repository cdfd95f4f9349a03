from __future__ import annotations

import logging
from typing import Optional


def log_prefix(
    logger: logging.Logger,
    prefix: str,
    level: int,
    msg: str,
    *args: object,
    exc_info: Optional[BaseException] = None,
) -> None:
    logger.log(level, prefix + msg, *args, exc_info=exc_info)


def log_obj(
    logger: logging.Logger,
    obj: object,
    level: int,
    msg: str,
    *args: object,
    exc_info: Optional[BaseException] = None,
) -> None:
    prefix = getattr(obj, "_log_prefix", None)
    if prefix is None:
        prefix = f"{obj!r}: "
    log_prefix(logger, prefix, level, msg, *args, exc_info=exc_info)


def is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
