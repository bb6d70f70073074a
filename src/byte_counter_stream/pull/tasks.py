"""
Helpers for calling user callbacks and background tasks from the pull layer.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Set


logger = logging.getLogger(__name__)

# Strong references to fire-and-forget tasks until they finish
_background_tasks: Set[asyncio.Task] = set()


async def maybe_await(func: Optional[Callable[..., Any]], *args: Any) -> Any:
    """Call a sync or async callback and return its result."""
    if func is None:
        return None
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def settle(awaitable: Awaitable[Any]) -> None:
    """
    Await a secondary cleanup step whose failure must not replace the
    primary error being propagated.
    """
    try:
        await awaitable
    except Exception as e:
        logger.debug(f"Cleanup step failed: {e!r}")


def spawn(coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
    """
    Run a coroutine in the background.

    The task's exception is marked as retrieved; failures are logged at debug
    level because they surface through the streams involved.
    """
    task = asyncio.ensure_future(coro)
    if name is not None:
        task.set_name(name)
    _background_tasks.add(task)
    task.add_done_callback(_task_done)
    return task


def _task_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Background task {task.get_name()} failed: {error!r}")
