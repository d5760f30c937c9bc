# /propsort/llm.py

import os
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from dotenv import load_dotenv

# Load env once here; callers can also call load_dotenv earlier safely.
load_dotenv()


# --- Configuration & helpers ---

def _normalize_host(raw: str | None) -> str:
    """
    Accepts IP+Port as a single string variable (env). Defaults to 127.0.0.1:11434.
    Adds http:// if missing. If only IP is provided (no ':'), appends :11434.
    """
    default = "127.0.0.1:11434"
    host = (raw or default).strip()
    if ":" not in host:
        host = f"{host}:11434"
    if not host.startswith("http://") and not host.startswith("https://"):
        host = f"http://{host}"
    return host.rstrip("/")


def base_url() -> str:
    return _normalize_host(os.environ.get("OLLAMA_HOST"))


def _request_timeout_seconds() -> float:
    # Hard ceiling so a judge call cannot hang a sort forever.
    return float(os.environ.get("OLLAMA_TIMEOUT_SECONDS", "300"))


@dataclass
class _Message:
    role: str = "assistant"
    content: str = ""
    thinking: Optional[str] = None  # extracted if available (or from <think>...</think>)


@dataclass
class ChatResponse:
    message: _Message
    prompt_eval_duration: Optional[int] = None   # nanoseconds
    prompt_eval_count: Optional[int] = None
    eval_duration: Optional[int] = None          # nanoseconds (includes think+response)
    eval_count: Optional[int] = None             # tokens generated (incl. think where applicable)
    ran_out_of_tokens: bool = False


def get_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """
    Returns a configured httpx.AsyncClient. The caller owns it and must close it
    (or use it as an async context manager).
    """
    timeout_total = _request_timeout_seconds()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=10.0,        # fail fast if daemon is down
            read=timeout_total,  # cap total wait on non-stream responses
            write=10.0,
            pool=None,
        ),
        transport=transport,
    )


def get_model_name() -> str:
    """
    Judge model from OLLAMA_MODEL_JUDGE. No fallback. Force explicit config.
    """
    name = os.environ.get("OLLAMA_MODEL_JUDGE", "").strip()
    if not name:
        raise ValueError("Missing required env var OLLAMA_MODEL_JUDGE. See .env.example")
    return name


# Comparing two short identifiers needs little context; keep num_ctx small so the
# model stays resident next to whatever else is loaded.
_QWEN3_BASE_OPTIONS = {
    "num_ctx": 4096,
    "num_predict": 2048,
    "top_k": 20,
    "min_p": 0.0,
    "repeat_penalty": 1.0,
}

_QWEN3_THINK_OPTIONS = {
    **_QWEN3_BASE_OPTIONS,
    "temperature": 0.6,
    "top_p": 0.95,
}

_QWEN3_NO_THINK_OPTIONS = {
    **_QWEN3_BASE_OPTIONS,
    "temperature": 0.7,
    "top_p": 0.8,
}

_GEMMA3_OPTIONS = {
    "num_ctx": 4096,
    # The model was never trained on outputting more than 8192 tokens.
    "num_predict": 1024,
}

_MODEL_OPTIONS = {
    "qwen3:32b": _QWEN3_NO_THINK_OPTIONS,
    "qwen3:30b-a3b-instruct-2507-q4_K_M": _QWEN3_NO_THINK_OPTIONS,
    "qwen3:30b-a3b-thinking-2507-q4_K_M": _QWEN3_THINK_OPTIONS,
    "qwen3:8b": _QWEN3_NO_THINK_OPTIONS,
    "gemma3:27b": _GEMMA3_OPTIONS,
    "gemma3:12b": _GEMMA3_OPTIONS,
}


def get_ollama_options(model: str) -> dict:
    try:
        return dict(_MODEL_OPTIONS[model])
    except KeyError:
        raise ValueError(f"Unrecognized OLLAMA_MODEL_JUDGE '{model}'. See .env.example") from None


def _supports_thinking(model: str) -> bool:
    return model in {"qwen3:30b-a3b-thinking-2507-q4_K_M"}


def _supports_qwen3_hybrid(model: str) -> bool:
    return model in {"qwen3:32b", "qwen3:8b"}


_THINK_TAG_RE = re.compile(r"<think>(.*?)</think>", flags=re.DOTALL | re.IGNORECASE)


def _extract_thinking(message_obj: dict, can_think: bool, content: str) -> Optional[str]:
    """
    Ollama sometimes emits the thinking trace as a separate field, or inline
    inside <think>...</think> tags. We support both.
    """
    if isinstance(message_obj, dict) and isinstance(message_obj.get("thinking"), str):
        return message_obj["thinking"]
    if can_think and content:
        m = _THINK_TAG_RE.search(content)
        if m:
            return m.group(1).strip()
    return None


async def chat_complete(
    messages: list[dict[str, str]],
    client: httpx.AsyncClient,
    max_completion_tokens: int,
    require_json: bool = True,
) -> ChatResponse:
    """
    Non-streaming call to Ollama's /api/chat. Hybrid models get "/no_think";
    JSON format is enforced unless the model emits <think> tags.
    """
    if client is None:
        raise RuntimeError("httpx client is not initialized")

    model = get_model_name()
    options = get_ollama_options(model)
    can_think = _supports_thinking(model)

    if _supports_qwen3_hybrid(model):
        system_prompt = dict(messages[0])
        system_prompt["content"] = f"/no_think {system_prompt['content']}"
        messages = [system_prompt, *messages[1:]]

    if not can_think:
        options["num_predict"] = max_completion_tokens

    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "options": options,
        "stream": False,
    }
    # Strict JSON output enforced by Ollama doesn't work together with "<think>" tags.
    if require_json and not can_think:
        payload["format"] = "json"
    if can_think:
        payload["think"] = True

    resp = await client.post(f"{base_url()}/api/chat", json=payload)
    resp.raise_for_status()
    data = resp.json()

    msg = data.get("message") or {}
    content = msg.get("content") or ""
    done_reason = data.get("done_reason") or ""

    return ChatResponse(
        message=_Message(
            role=msg.get("role", "assistant"),
            content=content,
            thinking=_extract_thinking(msg, can_think, content),
        ),
        prompt_eval_duration=data.get("prompt_eval_duration"),
        prompt_eval_count=data.get("prompt_eval_count"),
        eval_duration=data.get("eval_duration"),
        eval_count=data.get("eval_count"),
        ran_out_of_tokens=(done_reason.lower() == "length"),
    )


# For debug statistics
def format_stats(response: ChatResponse) -> str | None:
    if None in [response.prompt_eval_duration, response.prompt_eval_count,
                response.eval_duration, response.eval_count]:
        return None
    try:
        prefill_speed = response.prompt_eval_count / (response.prompt_eval_duration / 1e9)
        generation_speed = response.eval_count / (response.eval_duration / 1e9)
    except ZeroDivisionError:
        prefill_speed = 0.0
        generation_speed = 0.0
    return (
        f"prefill_speed: {prefill_speed:.2f}(tok/sec), "
        f"generation_speed: {generation_speed:.2f}(tok/sec), "
        f"prompt: {response.prompt_eval_count}(tok), response: {response.eval_count}(tok)"
    )
