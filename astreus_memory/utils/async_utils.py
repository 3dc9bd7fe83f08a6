"""Async utility functions."""

import asyncio
from typing import Awaitable, Callable, List, Tuple, Type, TypeVar, Union

T = TypeVar('T')


async def gather_with_concurrency(
    tasks: List[Awaitable[T]],
    max_concurrency: int = 10,
    return_exceptions: bool = False,
) -> List[Union[T, BaseException]]:
    """Run multiple coroutines with limited concurrency, preserving order."""
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run_with_semaphore(task: Awaitable[T]) -> T:
        async with semaphore:
            return await task

    limited_tasks = [_run_with_semaphore(task) for task in tasks]

    return await asyncio.gather(*limited_tasks, return_exceptions=return_exceptions)


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """Retry a function with exponential backoff.

    Only exceptions listed in ``retry_on`` are retried; the last one is
    re-raised once retries are exhausted. Cancellation is never retried.
    """
    delay = base_delay

    for attempt in range(max_retries + 1):
        try:
            return await func()
        except retry_on:
            if attempt == max_retries:
                raise

            await asyncio.sleep(min(delay, max_delay))
            delay *= backoff_factor

    raise RuntimeError("unreachable")
