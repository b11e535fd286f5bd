import asyncio
import random
from logzero import logger

from typing import Any, Optional


def run(callable, *args, timeout: Optional[float] = None, **kwargs) -> Any:
    """
    Run an async function to completion on a fresh asyncio event loop

    :param callable: An async function pointer
    :type callable: Callable[..., Awaitable]
    :param *args: Expanded list of arguments to pass to the async function
    :type *args: Any
    :param timeout: Number of seconds the async function is allowed to execute
        before timing out. None means no limit.
        Optional. (Default: None)
    :type timeout: float
    :param **kwargs: Expanded keyword arguments to pass to the async function
    :type **kwargs: Any
    :return: Whatever the async function returns
    """
    async def _bounded():
        return await asyncio.wait_for(callable(*args, **kwargs),
                                      timeout=timeout)

    try:
        return asyncio.run(_bounded())
    except asyncio.TimeoutError:
        logger.error("Call to %s timed out!!!", callable)
        raise


async def sleep_random_ms(max_millis: int, rng=random) -> float:
    """
    Sleep for a random duration between 0 and max_millis milliseconds.

    Used to de-synchronize antagonists that act on the same resource.

    :param max_millis: Upper bound (inclusive) of the nap, in milliseconds.
    :type max_millis: int
    :param rng: Source of randomness; anything with a randint method.
        Optional. (Default: the random module)
    :return: float - the number of seconds slept
    """
    duration = rng.randint(0, max(0, int(max_millis))) / 1000.0
    logger.debug("taking a nap for %.3f seconds", duration)
    await asyncio.sleep(duration)
    return duration
