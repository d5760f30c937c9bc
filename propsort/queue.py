# /propsort/queue.py

from __future__ import annotations
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Set, TypeVar, Union

T = TypeVar("T")
V = TypeVar("V", bound=Enum)

# Negative: a before b. Positive: b before a. Zero: either.
Comparator = Callable[[Any, Any], Union[float, Awaitable[float]]]


async def _call_cmp(cmp: Comparator, a: Any, b: Any) -> float:
    res = cmp(a, b)
    if inspect.isawaitable(res):
        res = await res
    return res


class PriorityQueue(Generic[T]):
    """
    Binary min-heap driven by a three-way comparator.

    The comparator may be a plain function or a coroutine function; every
    comparison during a sift is awaited in turn. There is no locking, so a
    single instance must not see interleaved push/pop calls.
    """

    def __init__(self, cmp: Comparator):
        self._cmp = cmp
        self._q: List[T] = []

    def __len__(self) -> int:
        return len(self._q)

    async def _sift_up(self, idx: int) -> None:
        q = self._q
        while idx > 0:
            parent = (idx - 1) // 2
            if await _call_cmp(self._cmp, q[idx], q[parent]) < 0:
                q[idx], q[parent] = q[parent], q[idx]
                idx = parent
            else:
                break

    async def _sift_down(self, idx: int) -> None:
        q = self._q
        n = len(q)
        while True:
            left, right = 2 * idx + 1, 2 * idx + 2
            smallest = idx
            if left < n and await _call_cmp(self._cmp, q[left], q[smallest]) < 0:
                smallest = left
            if right < n and await _call_cmp(self._cmp, q[right], q[smallest]) < 0:
                smallest = right
            if smallest == idx:
                break
            q[idx], q[smallest] = q[smallest], q[idx]
            idx = smallest

    async def push(self, item: T) -> None:
        self._q.append(item)
        await self._sift_up(len(self._q) - 1)

    async def pop(self) -> Optional[T]:
        if not self._q:
            return None
        top = self._q[0]
        last = self._q.pop()
        if self._q:
            self._q[0] = last
            await self._sift_down(0)
        return top

    def peek(self) -> Optional[T]:
        return self._q[0] if self._q else None


@dataclass(frozen=True)
class QueuedItem(Generic[T]):
    id: int
    data: T


class MultiQueue(Generic[T, V]):
    """
    One logical item set exposed through several priority orderings ("views").

    Views are the members of an Enum, each mapped to its comparator at
    construction. Deletion only clears the id from the liveness set; stale
    heap entries are discarded later, when a pop or peek of that view reaches
    them.
    """

    def __init__(self, view_cmps: Dict[V, Comparator]):
        if not view_cmps:
            raise ValueError("MultiQueue needs at least one view.")
        self._queues: Dict[V, PriorityQueue[QueuedItem[T]]] = {
            view: PriorityQueue(self._wrap(cmp)) for view, cmp in view_cmps.items()
        }
        self._live: Set[int] = set()
        self._next_id = 0

    @staticmethod
    def _wrap(cmp: Comparator) -> Comparator:
        def item_cmp(a: QueuedItem[T], b: QueuedItem[T]):
            return cmp(a.data, b.data)
        return item_cmp

    def __len__(self) -> int:
        return len(self._live)

    def _queue(self, view: V) -> PriorityQueue[QueuedItem[T]]:
        try:
            return self._queues[view]
        except KeyError:
            raise KeyError(f"Unknown queue view: {view!r}") from None

    async def push(self, data: T) -> QueuedItem[T]:
        item = QueuedItem(self._next_id, data)
        self._next_id += 1
        self._live.add(item.id)
        for q in self._queues.values():
            await q.push(item)
        return item

    async def pop(self, view: V) -> Optional[T]:
        q = self._queue(view)
        while True:
            top = await q.pop()
            if top is None:
                return None
            if top.id in self._live:
                self._live.discard(top.id)
                return top.data

    async def peek(self, view: V) -> Optional[T]:
        q = self._queue(view)
        while True:
            top = q.peek()
            if top is None:
                return None
            if top.id in self._live:
                return top.data
            await q.pop()

    def delete(self, item_id: int) -> None:
        self._live.discard(item_id)

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._live
