# /propsort/graph.py

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from propsort.queue import Comparator, MultiQueue, PriorityQueue, QueuedItem

logger = logging.getLogger(__name__)

Token = str
WILDCARD = "*"


def token_matcher(pattern: Token) -> Callable[[Token], bool]:
    """
    Predicate for a hint entry. A trailing '*' makes the entry a prefix pattern;
    anything else only matches itself.
    """
    if pattern.endswith(WILDCARD):
        prefix = pattern[: -len(WILDCARD)]
        return lambda token: token.startswith(prefix)
    return lambda token: token == pattern


def is_pattern(token: Token) -> bool:
    return token.endswith(WILDCARD)


class DAG:
    """
    Preference graph over a fixed node set. Edges only ever get added when the
    new edge cannot close a cycle, so the graph stays acyclic for its lifetime.
    """

    def __init__(self, nodes: Iterable[Token]):
        self._g: Dict[Token, Set[Token]] = {}
        for node in nodes:
            self._g.setdefault(node, set())

    def __len__(self) -> int:
        return len(self._g)

    def __contains__(self, node: Token) -> bool:
        return node in self._g

    def edges(self) -> Iterator[Tuple[Token, Token]]:
        for u, vs in self._g.items():
            for v in vs:
                yield u, v

    def match_nodes(self, token: Token) -> List[Token]:
        if not token:
            return []
        if is_pattern(token):
            matches = token_matcher(token)
            return [node for node in self._g if matches(node)]
        return [token] if token in self._g else []

    def has_path(self, src: Token, dsts: Sequence[Token]) -> List[bool]:
        """
        For each destination, whether it is reachable from src (src reaches itself).
        """
        targets = set(dsts)
        reachable: Set[Token] = set()
        visited: Set[Token] = set()
        stack = [src]
        while stack:
            node = stack.pop()
            if node in targets:
                reachable.add(node)
                if len(reachable) == len(targets):
                    break
            if node not in visited:
                visited.add(node)
                stack.extend(self._g.get(node, ()))
        return [d in reachable for d in dsts]

    def add_edges(self, hint: Sequence[Token], keep: Optional[Callable[[Token], bool]] = None) -> int:
        """
        Absorb one ordering hint: every entry should come no later than the
        entries after it. Returns the number of new edges.
        With `keep`, only matched nodes passing the predicate take part.

        Entries matching no node are skipped. An edge u -> v is added only if v
        cannot already reach u; otherwise it is dropped because it would close a
        cycle. Frontier nodes that received no edge stay in the frontier so a
        later entry can still attach to them.
        """
        added = 0
        frontier: List[Token] = []
        for entry in hint:
            vs = self.match_nodes(entry)
            if keep is not None:
                vs = [v for v in vs if keep(v)]
            if not vs:
                continue
            if not frontier:
                frontier = vs
                continue

            open_ends = dict.fromkeys(frontier)
            for v in vs:
                for u, reaches_back in zip(frontier, self.has_path(v, frontier)):
                    if reaches_back:
                        logger.debug("Dropped edge %r -> %r (would close a cycle).", u, v)
                        continue
                    if v not in self._g[u]:
                        self._g[u].add(v)
                        added += 1
                    open_ends.pop(u, None)
            frontier = list(open_ends) + [v for v in vs if v not in open_ends]
        return added

    async def topo_sort(self, tie_breaker: Comparator) -> List[Token]:
        """
        Kahn's algorithm; nodes that become free at the same time are ordered by
        tie_breaker (which may be async).
        """
        indegree: Dict[Token, int] = {u: 0 for u in self._g}
        for _, v in self.edges():
            indegree[v] += 1

        pq: PriorityQueue[Token] = PriorityQueue(tie_breaker)
        for node, deg in indegree.items():
            if deg == 0:
                await pq.push(node)

        result: List[Token] = []
        while len(pq):
            u = await pq.pop()
            result.append(u)
            for v in self._g[u]:
                indegree[v] -= 1
                if indegree[v] == 0:
                    await pq.push(v)
        return result

    def to_dot(self) -> str:
        lines = ["digraph {"]
        for u, vs in self._g.items():
            if not vs:
                lines.append(f'  "{u}";')
            for v in sorted(vs):
                lines.append(f'  "{u}" -> "{v}";')
        lines.append("}")
        return "\n".join(lines)


# ---------- Greedy FAS ordering ----------

class FasView(Enum):
    OUT_W = "out_w"
    IN_W = "in_w"
    SCORE = "score"


@dataclass(frozen=True)
class _NodeWeights:
    u: Token
    seq: int  # first-seen position in the edge list
    out_w: float
    in_w: float


def _out_w_cmp(a: _NodeWeights, b: _NodeWeights) -> float:
    # Equal sinks are placed right to left, so the later node goes first.
    return (a.out_w - b.out_w) or (b.seq - a.seq)


def _in_w_cmp(a: _NodeWeights, b: _NodeWeights) -> float:
    return (a.in_w - b.in_w) or (a.seq - b.seq)


def _score_cmp(a: _NodeWeights, b: _NodeWeights) -> float:
    in_diff = a.in_w - b.in_w
    out_diff = a.out_w - b.out_w
    return (in_diff - out_diff) or (in_diff + out_diff) or (a.seq - b.seq)


WeightedEdge = Tuple[Token, Token, float]


async def fas_topo_sort(edges: Iterable[WeightedEdge]) -> List[Token]:
    """
    Order the nodes of a weighted directed graph that may contain cycles, trying
    to keep the total weight of backward edges small (greedy Feedback Arc Set,
    Eades-Lin-Smyth style).

    Sinks are placed from the right end, sources from the left end; when
    neither exists, the node with the largest (out_w - in_w) is treated as a
    source. Parallel edges add up; self-loops are ignored.
    """
    seq: Dict[Token, int] = {}
    out_adj: Dict[Token, Dict[Token, float]] = {}
    in_adj: Dict[Token, Dict[Token, float]] = {}
    for src, dst, weight in edges:
        for node in (src, dst):
            if node not in seq:
                seq[node] = len(seq)
                out_adj[node] = {}
                in_adj[node] = {}
        if src == dst:
            continue
        out_adj[src][dst] = out_adj[src].get(dst, 0) + weight
        in_adj[dst][src] = in_adj[dst].get(src, 0) + weight

    q: MultiQueue[_NodeWeights, FasView] = MultiQueue({
        FasView.OUT_W: _out_w_cmp,
        FasView.IN_W: _in_w_cmp,
        FasView.SCORE: _score_cmp,
    })
    entries: Dict[Token, QueuedItem[_NodeWeights]] = {}
    for u, i in seq.items():
        entries[u] = await q.push(_NodeWeights(
            u=u, seq=i, out_w=sum(out_adj[u].values()), in_w=sum(in_adj[u].values()),
        ))

    async def resubmit(v: Token, d_out: float, d_in: float) -> None:
        old = entries[v]
        q.delete(old.id)
        entries[v] = await q.push(_NodeWeights(
            u=v, seq=old.data.seq, out_w=old.data.out_w - d_out, in_w=old.data.in_w - d_in,
        ))

    async def remove_node(u: Token) -> None:
        del entries[u]
        for v, w in out_adj.pop(u).items():
            if v in entries:
                await resubmit(v, 0, w)
        for v, w in in_adj.pop(u).items():
            if v in entries:
                await resubmit(v, w, 0)

    order: List[Token] = [""] * len(seq)
    left, right = 0, len(seq) - 1
    while entries:
        while len(q):
            sink = await q.peek(FasView.OUT_W)
            if sink.out_w > 0:
                break
            await q.pop(FasView.OUT_W)
            order[right] = sink.u
            right -= 1
            await remove_node(sink.u)

        while len(q):
            source = await q.peek(FasView.IN_W)
            if source.in_w > 0:
                break
            await q.pop(FasView.IN_W)
            order[left] = source.u
            left += 1
            await remove_node(source.u)

        if not len(q):
            break
        sink = await q.peek(FasView.OUT_W)
        if sink.out_w <= 0:
            continue

        best = await q.pop(FasView.SCORE)
        logger.debug("FAS: no source or sink left, placing %r (out=%s, in=%s).", best.u, best.out_w, best.in_w)
        order[left] = best.u
        left += 1
        await remove_node(best.u)

    return order
