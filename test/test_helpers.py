import asyncio
import random

import pytest

from chaoscontrol.helpers import *
from test import FixedRng


def test_run_returns_result():
    async def add(a, b=0):
        return a + b

    assert run(add, 1, b=2) == 3


def test_run_timeout():
    async def forever():
        await asyncio.sleep(10)

    with pytest.raises(asyncio.TimeoutError):
        run(forever, timeout=0.01)


@pytest.mark.asyncio
async def test_sleep_random_ms_bounds():
    rng = random.Random(5)
    for _ in range(20):
        assert 0 <= await sleep_random_ms(2, rng) <= 0.002

    assert await sleep_random_ms(100, FixedRng()) == 0
    assert await sleep_random_ms(0) == 0
