"""
Detached post-response work.

Tasks are handed to Starlette's ``BackgroundTasks`` and run after the response
has been sent. Nothing waits on them: a failure is logged and dropped, and no
ordering is guaranteed against the next request for the same path.
"""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


def run_detached(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    try:
        func(*args, **kwargs)
    except Exception:
        logger.warning("Background task %s failed", getattr(func, "__qualname__", func), exc_info=True)


def fire_and_forget(background: BackgroundTasks, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    background.add_task(run_detached, func, *args, **kwargs)
