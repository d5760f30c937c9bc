# /propsort/preference_sorter.py

from __future__ import annotations
import logging
import math
from collections import Counter
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple, Union

from propsort.bradley_terry import bradley_terry
from propsort.canonical_order import CANONICAL_ORDER
from propsort.graph import DAG, Token, token_matcher

logger = logging.getLogger(__name__)

Estimator = Callable[[List[List[float]]], Sequence[float]]


class SortMode(str, Enum):
    DIRECT = "direct"          # comparator output as-is for ties
    OFF = "off"                # no comparator, keep the input order for ties
    STABILIZED = "stabilized"  # comparator scores -> Bradley–Terry ranking -> ties


def parse_mode(mode: Union[str, SortMode]) -> SortMode:
    try:
        return SortMode(mode)
    except ValueError:
        choices = ", ".join(m.value for m in SortMode)
        raise ValueError(f"Invalid sort mode {mode!r}; expected one of: {choices}.") from None


class PreferenceSorter:
    """
    Sorts a group of tokens by a list of preference hints: the custom order first,
    then the canonical order. Each hint decides among the items the earlier hints
    left unmatched; whatever no hint covers is ordered by the mode:

    - direct: the pairwise comparator breaks ties directly.
    - off: the input order is kept.
    - stabilized: all pairs are scored once, ranked with an estimator
      (Bradley–Terry by default), and that ranking is kept.

    The comparator is any object with async compare(a, b) -> float (negative
    means a first) and async raw_compare(a, b) -> (b_first, a_first).
    """

    def __init__(
        self,
        mode: Union[str, SortMode],
        custom_order: Sequence[Token] = (),
        comparator=None,
        estimator: Estimator = bradley_terry,
        canonical_order: Sequence[Token] = CANONICAL_ORDER,
    ):
        self.mode = parse_mode(mode)
        if self.mode is not SortMode.OFF and comparator is None:
            raise ValueError(f"Sort mode {self.mode.value!r} requires a pairwise comparator.")
        self.comparator = comparator
        self.estimator = estimator
        self.hints: List[List[Token]] = []
        if custom_order:
            self.hints.append(list(custom_order))
        if canonical_order:
            self.hints.append(list(canonical_order))
        self._matchers = [[token_matcher(t) for t in hint if t] for hint in self.hints]

    def tier(self, token: Token) -> int:
        """
        Index of the first hint mentioning the token; len(hints) if none does.
        """
        for i, matchers in enumerate(self._matchers):
            if any(m(token) for m in matchers):
                return i
        return len(self._matchers)

    async def sort(self, tokens: Sequence[Token]) -> List[Token]:
        tokens = list(tokens)
        counts = Counter(tokens)
        items = list(counts)
        if len(items) < 2:
            return tokens

        dag = DAG(items)
        tiers = {t: self.tier(t) for t in items}
        for k, hint in enumerate(self.hints):
            # items an earlier hint already placed are not reordered by this one
            dag.add_edges(hint, keep=lambda t, k=k: tiers[t] >= k)

        if self.mode is SortMode.DIRECT:
            compare = self.comparator.compare

            async def tie_breaker(a: Token, b: Token) -> float:
                return (tiers[a] - tiers[b]) or await compare(a, b)

            order = await dag.topo_sort(tie_breaker)
        else:
            if self.mode is SortMode.STABILIZED:
                items = await self.rank(items)
            items = sorted(items, key=tiers.__getitem__)
            dag.add_edges(items)
            index = {t: i for i, t in enumerate(items)}
            order = await dag.topo_sort(lambda a, b: index[a] - index[b])

        return [t for t in order for _ in range(counts[t])]

    async def win_matrix(self, items: Sequence[Token]) -> List[List[float]]:
        n = len(items)
        w = [[0.0] * n for _ in range(n)]
        for i in range(n):
            for j in range(i + 1, n):
                w[j][i], w[i][j] = await self.comparator.raw_compare(items[i], items[j])
        return w

    async def rank(self, items: Sequence[Token]) -> List[Token]:
        """
        Items by descending estimated strength. Items whose strength is NaN have
        no preference: they stay in their input slots and the rest fill the
        remaining slots in strength order (stable).
        """
        strengths = [float(s) for s in self.estimator(await self.win_matrix(items))]
        if len(strengths) != len(items):
            raise ValueError(f"Estimator returned {len(strengths)} strengths for {len(items)} items.")

        nan_slots = {i for i, s in enumerate(strengths) if math.isnan(s)}
        if nan_slots:
            logger.debug("No strength for %d of %d items; keeping them in place.", len(nan_slots), len(items))
        ranked = iter(sorted((i for i in range(len(items)) if i not in nan_slots), key=lambda i: -strengths[i]))
        return [items[i] if i in nan_slots else items[next(ranked)] for i in range(len(items))]


def remap(sorted_tokens: Sequence[Token], originals: Sequence[Tuple[Token, str]]) -> List[str]:
    """
    Map sorted tokens back to the original names they came from. Names sharing a
    token keep their input order.
    """
    by_token: Dict[Token, List[str]] = {}
    for token, name in originals:
        by_token.setdefault(token, []).append(name)
    out: List[str] = []
    cursor: Dict[Token, int] = {}
    for token in sorted_tokens:
        i = cursor.get(token, 0)
        out.append(by_token[token][i])
        cursor[token] = i + 1
    return out
