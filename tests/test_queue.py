"""
PriorityQueue / MultiQueue behaviour:
- heap order under sync and async comparators
- lazy deletion shared across views
"""

import asyncio
import random
from enum import Enum

import pytest

from propsort.queue import MultiQueue, PriorityQueue


class View(Enum):
    ASC = "asc"
    DESC = "desc"


def _asc(a, b):
    return a - b


def _desc(a, b):
    return b - a


async def _drain(q):
    out = []
    while len(q):
        out.append(await q.pop())
    return out


@pytest.mark.asyncio
async def test_pops_in_non_decreasing_order():
    rng = random.Random(7)
    values = [rng.randint(-50, 50) for _ in range(200)]
    q = PriorityQueue(_asc)
    for v in values:
        await q.push(v)
    assert len(q) == len(values)
    assert await _drain(q) == sorted(values)


@pytest.mark.asyncio
async def test_async_comparator_is_awaited():
    calls = []

    async def slow_cmp(a, b):
        calls.append((a, b))
        await asyncio.sleep(0)
        return a - b

    q = PriorityQueue(slow_cmp)
    for v in [5, 3, 9, 1, 4]:
        await q.push(v)
    assert q.peek() == 1
    assert await _drain(q) == [1, 3, 4, 5, 9]
    assert calls


@pytest.mark.asyncio
async def test_empty_queue_returns_none():
    q = PriorityQueue(_asc)
    assert await q.pop() is None
    assert q.peek() is None
    await q.push(1)
    assert await q.pop() == 1
    assert await q.pop() is None
    assert len(q) == 0


@pytest.mark.asyncio
async def test_length_tracks_pushes_minus_pops():
    q = PriorityQueue(_asc)
    for v in range(10):
        await q.push(v)
    for _ in range(4):
        await q.pop()
    assert len(q) == 6


@pytest.mark.asyncio
async def test_multiqueue_views_share_items():
    mq = MultiQueue({View.ASC: _asc, View.DESC: _desc})
    for v in [3, 1, 4, 1, 5]:
        await mq.push(v)
    assert len(mq) == 5
    assert await mq.peek(View.ASC) == 1
    assert await mq.peek(View.DESC) == 5

    assert await mq.pop(View.DESC) == 5
    # popped through DESC, must be gone from ASC too
    out = []
    while len(mq):
        out.append(await mq.pop(View.ASC))
    assert out == [1, 1, 3, 4]
    assert await mq.pop(View.DESC) is None
    assert await mq.peek(View.ASC) is None


@pytest.mark.asyncio
async def test_multiqueue_delete_hides_item_from_every_view():
    mq = MultiQueue({View.ASC: _asc, View.DESC: _desc})
    items = [await mq.push(v) for v in [10, 20, 30]]
    assert [it.id for it in items] == [0, 1, 2]

    mq.delete(items[0].id)
    mq.delete(items[2].id)
    assert len(mq) == 1
    assert items[0].id not in mq
    assert await mq.peek(View.ASC) == 20
    assert await mq.peek(View.DESC) == 20
    assert await mq.pop(View.ASC) == 20
    assert len(mq) == 0
    assert await mq.pop(View.DESC) is None


@pytest.mark.asyncio
async def test_multiqueue_peek_does_not_consume():
    mq = MultiQueue({View.ASC: _asc})
    await mq.push(2)
    await mq.push(1)
    assert await mq.peek(View.ASC) == 1
    assert await mq.peek(View.ASC) == 1
    assert len(mq) == 2


@pytest.mark.asyncio
async def test_multiqueue_resubmit_pattern():
    # delete-old + push-new is how callers change an item's priority
    mq = MultiQueue({View.ASC: _asc})
    a = await mq.push(5)
    await mq.push(3)
    mq.delete(a.id)
    await mq.push(1)
    assert await mq.pop(View.ASC) == 1
    assert await mq.pop(View.ASC) == 3
    assert await mq.pop(View.ASC) is None


def test_multiqueue_needs_views():
    with pytest.raises(ValueError):
        MultiQueue({})


@pytest.mark.asyncio
async def test_multiqueue_unknown_view():
    class Other(Enum):
        X = "x"

    mq = MultiQueue({View.ASC: _asc})
    with pytest.raises(KeyError):
        await mq.pop(Other.X)
