"""Logging utilities for foldlab.

Provides a consistent logger hierarchy and formatting without modifying the
process root logger. All foldlab code should obtain loggers via get_logger().
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')


def _ensure_foldlab_root() -> logging.Logger:
    """Ensure the 'foldlab' logger has a single stream handler and is isolated
    from the process root logger. Returns the 'foldlab' logger.
    """
    root = logging.getLogger('foldlab')
    has_stream = any(not isinstance(h, logging.NullHandler) for h in root.handlers)
    if not has_stream:
        # NullHandlers added by the package __init__ would swallow records
        for h in list(root.handlers):
            root.removeHandler(h)
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_FORMAT)
        root.addHandler(handler)
    root.propagate = False
    return root


def _to_level(level: Union[str, int, None], default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: Union[str, int] = 'INFO') -> logging.Logger:
    """Configure the 'foldlab' logger family level.

    This does NOT modify the process root logger.
    """
    root = _ensure_foldlab_root()
    root.setLevel(_to_level(level))
    return root


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Return a logger under the 'foldlab' namespace.

    Nothing is attached here: until configure_logging() is called, records
    only reach the NullHandler installed by the package. When a level is
    given it is set on the child; otherwise the child inherits from 'foldlab'.
    """
    if name != 'foldlab' and not name.startswith('foldlab.'):
        name = 'foldlab.' + name
    log = logging.getLogger(name)
    log.setLevel(_to_level(level) if level is not None else logging.NOTSET)
    return log


__all__ = ['get_logger', 'configure_logging']
