#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sort groups of JSX prop names by preference.

Each group (one line of the input file) is normalized, sorted by the custom order,
then the built-in canonical order, and finally by the selected mode for whatever
neither order covers:

  off         keep the written order
  direct      ask the judge model for every tie
  stabilized  judge every pair once, rank with Bradley–Terry, keep that ranking

Prints each sorted group on its own line, in the original spelling.

Judge configuration comes from .env (OLLAMA_HOST, OLLAMA_MODEL_JUDGE,
OLLAMA_TIMEOUT_SECONDS). With --cache, every judged pair is journaled to a JSONL
file and reused on the next run.

Dependencies:
- numpy, choix==0.4.1
- httpx
- python-dotenv
"""

from __future__ import annotations
import sys
import asyncio
import logging
import argparse
from typing import List, Optional

from dotenv import load_dotenv

from propsort.bradley_terry import bradley_terry, regularized_strengths
from propsort.groups import GroupFileError, read_groups
from propsort.identifiers import split_identifier
from propsort.judge import ComparisonCache, JudgeError, PairwiseJudge
from propsort.llm import get_client
from propsort.preference_sorter import PreferenceSorter, SortMode, remap

logger = logging.getLogger("sort_props")

ESTIMATORS = {
    "bradley-terry": bradley_terry,
    "choix": regularized_strengths,
}


async def sort_groups(
    groups: List[List[str]],
    mode: SortMode,
    custom_order: List[str],
    estimator: str = "bradley-terry",
    cache_path: Optional[str] = None,
) -> List[List[str]]:
    custom_tokens = [split_identifier(name) for name in custom_order]

    async def run(comparator) -> List[List[str]]:
        sorter = PreferenceSorter(
            mode,
            custom_order=custom_tokens,
            comparator=comparator,
            estimator=ESTIMATORS[estimator],
        )
        out: List[List[str]] = []
        for i, group in enumerate(groups, 1):
            originals = [(split_identifier(name), name) for name in group]
            tokens = await sorter.sort([t for t, _ in originals])
            out.append(remap(tokens, originals))
            logger.debug("Group %d/%d sorted.", i, len(groups))
        return out

    if mode is SortMode.OFF:
        return await run(None)
    async with get_client() as client:
        judge = PairwiseJudge(client, cache=ComparisonCache(cache_path))
        return await run(judge)


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Sort groups of JSX prop names by preference.")
    parser.add_argument("--input", type=str, required=True,
                        help="Group file: one group per line (names separated by commas/spaces), or .jsonl arrays.")
    parser.add_argument("--mode", type=str, default=SortMode.STABILIZED.value,
                        choices=[m.value for m in SortMode],
                        help="How to order props no hint covers (default: stabilized).")
    parser.add_argument("--custom-order", type=str, nargs="*", default=[],
                        help="Prop names (or 'prefix*' patterns) that take precedence over the canonical order.")
    parser.add_argument("--estimator", type=str, default="bradley-terry", choices=sorted(ESTIMATORS),
                        help="Ranking estimator for --mode stabilized (default: bradley-terry).")
    parser.add_argument("--cache", type=str, default=None,
                        help="JSONL journal of judged pairs, reused across runs.")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    groups = read_groups(args.input)
    if not groups:
        print(f"No groups found in {args.input}.")
        return

    mode = SortMode(args.mode)
    sorted_groups = asyncio.run(sort_groups(groups, mode, args.custom_order, args.estimator, args.cache))
    for group in sorted_groups:
        print(" ".join(group))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except (JudgeError, GroupFileError, ValueError) as e:
        print(f"\nFATAL: {e}")
        sys.exit(1)
