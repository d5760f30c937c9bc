import json
import sys

import httpx
import pytest

import sort_props
from propsort.llm import get_client
from propsort.preference_sorter import SortMode


@pytest.mark.asyncio
async def test_sort_groups_off_keeps_original_spelling():
    groups = [["onClick", "className", "key", "zIndex"], ["data-test-id", "id"]]
    out = await sort_props.sort_groups(groups, SortMode.OFF, custom_order=["zIndex"])
    assert out == [["zIndex", "key", "className", "onClick"], ["id", "data-test-id"]]


def _alphabetical_judge(request: httpx.Request) -> httpx.Response:
    # "A before B" confidence: 0.9 when A sorts first alphabetically
    prompt = json.loads(request.content)["messages"][1]["content"]
    a = prompt.split('PROP A: "')[1].split('"')[0]
    b = prompt.split('PROP B: "')[1].split('"')[0]
    score = 0.9 if a < b else 0.1
    return httpx.Response(200, json={"message": {"content": json.dumps({"rationale": "-", "score": score})}})


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [SortMode.DIRECT, SortMode.STABILIZED])
async def test_sort_groups_with_judge(monkeypatch, tmp_path, mode):
    monkeypatch.setenv("OLLAMA_MODEL_JUDGE", "gemma3:12b")
    monkeypatch.setattr(sort_props, "get_client", lambda: get_client(transport=httpx.MockTransport(_alphabetical_judge)))
    cache = tmp_path / "cmp.jsonl"

    out = await sort_props.sort_groups(
        [["zebra", "apple", "key", "mango"]], mode, custom_order=[], cache_path=str(cache),
    )
    assert out == [["key", "apple", "mango", "zebra"]]
    assert cache.read_text(encoding="utf-8").strip()


@pytest.mark.asyncio
async def test_sort_groups_choix_estimator(monkeypatch):
    monkeypatch.setenv("OLLAMA_MODEL_JUDGE", "gemma3:12b")
    monkeypatch.setattr(sort_props, "get_client", lambda: get_client(transport=httpx.MockTransport(_alphabetical_judge)))
    out = await sort_props.sort_groups([["pear", "fig", "kiwi"]], SortMode.STABILIZED, [], estimator="choix")
    assert out == [["fig", "kiwi", "pear"]]


def test_main_prints_sorted_groups(monkeypatch, tmp_path, capsys):
    path = tmp_path / "props.txt"
    path.write_text("style id key\nonChange value\n", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["sort_props.py", "--input", str(path), "--mode", "off"])
    sort_props.main()
    assert capsys.readouterr().out.splitlines() == ["key id style", "value onChange"]
