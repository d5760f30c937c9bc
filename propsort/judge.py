# /propsort/judge.py
"""
Pairwise prop-order comparator backed by an Ollama judge model.

judge(first, second) asks the model how confident it is that `first` belongs
before `second` in a JSX attribute list. raw_compare(a, b) asks both ways round
and returns (b_first, a_first); compare(a, b) is their difference, negative when
`a` should come first. Every raw result is kept in a ComparisonCache, which can
be journaled to a JSONL file so an interrupted run resumes without re-asking.
"""

from __future__ import annotations
import json
import logging
import os
from typing import Dict, List, Optional, Tuple

import httpx

from propsort.llm import chat_complete, format_stats, get_model_name, get_ollama_options

logger = logging.getLogger(__name__)

RETRIES_PER_JUDGE = 5
JUDGE_MAX_TOKENS = 256
Raw = Tuple[float, float]


class JudgeError(RuntimeError):
    pass


# ---------- Cache ----------

class ComparisonCache:
    """
    Raw comparison results keyed by the unordered pair of tokens.

    Pairs are stored with the smaller token first; looking up the reversed pair
    returns the swapped tuple. With a journal path, every new entry is appended
    (and fsync'd) as one JSON line, and existing lines are replayed on load.
    """

    def __init__(self, journal_path: Optional[str] = None):
        self.journal_path = journal_path
        self._raw: Dict[Tuple[str, str], Raw] = {}
        if journal_path:
            self._replay(journal_path)

    def __len__(self) -> int:
        return len(self._raw)

    def get(self, a: str, b: str) -> Optional[Raw]:
        if a <= b:
            return self._raw.get((a, b))
        hit = self._raw.get((b, a))
        return None if hit is None else (hit[1], hit[0])

    def put(self, a: str, b: str, raw: Raw) -> None:
        if a > b:
            a, b, raw = b, a, (raw[1], raw[0])
        raw = (float(raw[0]), float(raw[1]))
        self._raw[(a, b)] = raw
        if self.journal_path:
            self._append({"type": "cmp", "a": a, "b": b, "raw": list(raw)})

    def _replay(self, path: str) -> None:
        if not os.path.isfile(path):
            return
        with open(path, "r", encoding="utf-8") as f:
            for ln, line in enumerate(f, 1):
                s = line.strip()
                if not s:
                    continue
                try:
                    rec = json.loads(s)
                    if rec.get("type") != "cmp":
                        raise ValueError(f"unexpected record type {rec.get('type')!r}")
                    raw = rec["raw"]
                    self._raw[(rec["a"], rec["b"])] = (float(raw[0]), float(raw[1]))
                except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
                    raise JudgeError(f"Invalid line #{ln} in comparison journal {path}: {e}\nLine: {line[:200]}")
        logger.info("Loaded %d cached comparisons from %s", len(self._raw), path)

    def _append(self, obj: dict) -> None:
        try:
            with open(self.journal_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(obj, ensure_ascii=False))
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise JudgeError(f"Failed to append to {self.journal_path}: {e}")


# ---------- Judge ----------

def _build_messages(first: str, second: str) -> List[dict]:
    prompt = f"""
You are deciding the conventional order of two attributes (props) on the same JSX element.
Props are given as lower-case words, e.g. "class name" is className and "on click" is onClick.

PROP A: "{first}"
PROP B: "{second}"

Think about how experienced React developers usually order props: identity first (key, ref, id),
then what the element is, then appearance, then values and state, then event handlers, then
data/aria attributes. Judge only by the two names.

Respond ONLY with JSON:
{{
  "rationale": "<one short sentence>",
  "score": <number between 0 and 1: how confident you are that A should come BEFORE B>
}}
""".strip()
    return [
        {"role": "system", "content": "Return strictly valid JSON. No preface/suffix."},
        {"role": "user", "content": prompt},
    ]


def _parse_score(txt: str) -> float:
    start = txt.find("{")
    end = txt.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError("Model output lacked a well-formed JSON object.")
    obj = json.loads(txt[start : end + 1])
    score = obj.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ValueError(f"Model must return a numeric 'score'. Got: {score!r}")
    if not 0.0 <= score <= 1.0:
        raise ValueError(f"'score' must be within [0, 1]. Got: {score!r}")
    return float(score)


class PairwiseJudge:
    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: Optional[ComparisonCache] = None,
        retries: int = RETRIES_PER_JUDGE,
    ):
        if retries < 1:
            raise ValueError("retries must be >= 1")
        # Fail on missing or unknown model config before the first comparison.
        self.model = get_model_name()
        get_ollama_options(self.model)
        self.client = client
        self.cache = cache if cache is not None else ComparisonCache()
        self.retries = retries

    async def judge(self, first: str, second: str) -> float:
        """
        Confidence in [0, 1] that `first` goes before `second`.
        Raises JudgeError once all retries failed.
        """
        messages = _build_messages(first, second)
        last_err: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                resp = await chat_complete(
                    messages=messages,
                    client=self.client,
                    max_completion_tokens=JUDGE_MAX_TOKENS,
                    require_json=True,
                )
                stats = format_stats(resp)
                if stats:
                    logger.debug(stats)
                if resp.ran_out_of_tokens:
                    raise ValueError(f"Judge response hit the {JUDGE_MAX_TOKENS}-token limit before finishing.")
                return _parse_score(resp.message.content)
            except (httpx.HTTPError, ValueError) as e:
                last_err = e
                logger.warning("Judge %r vs %r failed (attempt %d/%d): %s", first, second, attempt, self.retries, e)
        raise JudgeError(f"Judge failed after {self.retries} attempts for {first!r} vs {second!r}; last error: {last_err}")

    async def raw_compare(self, a: str, b: str) -> Raw:
        hit = self.cache.get(a, b)
        if hit is not None:
            return hit
        raw = (await self.judge(b, a), await self.judge(a, b))
        self.cache.put(a, b, raw)
        return raw

    async def compare(self, a: str, b: str) -> float:
        b_first, a_first = await self.raw_compare(a, b)
        return b_first - a_first
