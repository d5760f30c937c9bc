# /propsort/groups.py

from __future__ import annotations
import json
import os
import re
from typing import Dict, Iterable, List, Sequence

from propsort.graph import Token, fas_topo_sort
from propsort.identifiers import split_identifier

_NAME_SPLIT_RE = re.compile(r"[,\s]+")

# Prop families that are ordered as one block rather than name by name.
WILDCARD_PREFIXES = ("data ", "test ", "aria ")


class GroupFileError(RuntimeError):
    pass


def read_groups(path: str) -> List[List[str]]:
    """
    Reads groups of raw prop names from a file.

    *.jsonl: one JSON array of names per line.
    anything else: one group per line, names separated by commas and/or spaces;
    lines starting with '#' are comments.
    Blank lines are skipped in both formats.
    """
    if not os.path.isfile(path):
        raise GroupFileError(f"Missing file: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise GroupFileError(f"Failed to read {path}: {e}")

    is_jsonl = path.endswith(".jsonl")
    groups: List[List[str]] = []
    for ln, line in enumerate(lines, 1):
        s = line.strip()
        if not s:
            continue
        if is_jsonl:
            try:
                group = json.loads(s)
            except json.JSONDecodeError as e:
                raise GroupFileError(f"Malformed JSON on line #{ln} of {os.path.basename(path)}: {e}")
            if not isinstance(group, list) or not all(isinstance(x, str) for x in group):
                raise GroupFileError(f"Line #{ln} of {os.path.basename(path)} must be a JSON array of strings.")
        else:
            if s.startswith("#"):
                continue
            group = [x for x in _NAME_SPLIT_RE.split(s) if x]
        groups.append(group)
    return groups


def prefix_to_wildcard(token: Token) -> Token:
    for prefix in WILDCARD_PREFIXES:
        if token.startswith(prefix):
            return prefix + "*"
    return token


class PairWeights:
    """
    Co-occurrence counts over groups: weight(u, v) is the number of times u was
    written before v in the same group.
    """

    def __init__(self):
        self._w: Dict[Token, Dict[Token, int]] = {}

    def inc(self, u: Token, v: Token) -> None:
        u, v = prefix_to_wildcard(u), prefix_to_wildcard(v)
        row = self._w.setdefault(u, {})
        row[v] = row.get(v, 0) + 1

    def add_group(self, tokens: Sequence[Token]) -> None:
        for i in range(len(tokens)):
            for j in range(i + 1, len(tokens)):
                self.inc(tokens[i], tokens[j])

    def add_groups(self, groups: Iterable[Sequence[str]]) -> None:
        for group in groups:
            self.add_group([split_identifier(name) for name in group])

    def edges(self) -> List[tuple]:
        return [(u, v, w) for u, row in self._w.items() for v, w in row.items()]

    async def sort_keys(self) -> List[Token]:
        return await fas_topo_sort(self.edges())
