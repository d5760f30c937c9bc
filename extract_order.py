#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Suggest a custom prop order from existing code.

Reads groups of prop names (same format as sort_props.py), counts for every pair
how often one was written before the other, and turns those counts into one
linear order with a greedy Feedback Arc Set sort. data-*, test-* and aria-*
props are counted as one family each. The result is printed as a JSON list,
ready to pass to sort_props.py --custom-order (after any manual edits).
"""

from __future__ import annotations
import sys
import json
import asyncio
import logging
import argparse
from typing import List

from propsort.groups import GroupFileError, PairWeights, read_groups


async def extract_order(paths: List[str]) -> List[str]:
    weights = PairWeights()
    for path in paths:
        weights.add_groups(read_groups(path))
    return await weights.sort_keys()


def main() -> None:
    parser = argparse.ArgumentParser(description="Suggest a custom prop order from existing prop groups.")
    parser.add_argument("--input", type=str, nargs="+", required=True,
                        help="One or more group files (one group per line, or .jsonl arrays).")
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    order = asyncio.run(extract_order(args.input))
    print("Rearrange the following props, if necessary, and pass them as --custom-order:")
    print(json.dumps(order, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except GroupFileError as e:
        print(f"\nFATAL: {e}")
        sys.exit(1)
