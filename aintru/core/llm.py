# aintru/core/llm.py
import re
import json
import logging
from typing import Any, Callable, Optional

import requests

from aintru.core import config

logger = logging.getLogger("aintru.core.llm")

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"

_http: Optional[requests.Session] = None


class LLMError(Exception):
    """Provider not configured, unreachable, or returned an unusable envelope."""


def _session() -> requests.Session:
    global _http
    if _http is None:
        _http = requests.Session()
    return _http


def _mask(text: str, secret: str) -> str:
    return text.replace(secret, "***") if secret else text


def services_status() -> dict:
    return {
        "gemini": bool(config.GEMINI_API_KEY),
        "openai": bool(config.OPENAI_API_KEY),
        "deepgram": bool(config.DEEPGRAM_API_KEY),
    }


# =========================================================
# Gemini
# =========================================================
def gemini_generate(prompt: str, temperature: Optional[float] = None, max_output_tokens: Optional[int] = None) -> str:
    """Send a single-turn prompt to Gemini and return the text of the first candidate."""
    if not config.GEMINI_API_KEY:
        raise LLMError("GEMINI_API_KEY not configured")

    body: dict = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    gen_cfg = {}
    if temperature is not None:
        gen_cfg["temperature"] = temperature
    if max_output_tokens is not None:
        gen_cfg["maxOutputTokens"] = max_output_tokens
    if gen_cfg:
        body["generationConfig"] = gen_cfg

    url = GEMINI_URL.format(model=config.GEMINI_MODEL)
    try:
        resp = _session().post(
            url,
            params={"key": config.GEMINI_API_KEY},
            json=body,
            timeout=config.LLM_TIMEOUT_S,
        )
    except requests.RequestException as e:
        raise LLMError(f"Gemini call error: {_mask(str(e), config.GEMINI_API_KEY)}")

    if resp.status_code != 200:
        msg = _mask(resp.text[:400], config.GEMINI_API_KEY)
        logger.warning(f"[llm] Gemini HTTP {resp.status_code}: {msg}")
        raise LLMError(f"Gemini HTTP {resp.status_code}")

    try:
        data = resp.json()
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(p.get("text", "") for p in parts).strip()
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise LLMError(f"Unexpected Gemini response: {e}")


# =========================================================
# OpenAI chat completions
# =========================================================
def openai_chat(prompt: str, model: Optional[str] = None, max_tokens: int = 500, temperature: float = 0.7) -> str:
    if not config.OPENAI_API_KEY:
        raise LLMError("OpenAI API key not configured")

    body = {
        "model": model or config.OPENAI_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    try:
        resp = _session().post(
            OPENAI_URL,
            headers={"Authorization": f"Bearer {config.OPENAI_API_KEY}"},
            json=body,
            timeout=config.LLM_TIMEOUT_S,
        )
    except requests.RequestException as e:
        raise LLMError(f"OpenAI call error: {_mask(str(e), config.OPENAI_API_KEY)}")

    if resp.status_code != 200:
        logger.warning(f"[llm] OpenAI HTTP {resp.status_code}: {_mask(resp.text[:400], config.OPENAI_API_KEY)}")
        raise LLMError("OpenAI service unavailable")

    try:
        return clean_response(resp.json()["choices"][0]["message"]["content"])
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise LLMError(f"Unexpected OpenAI response: {e}")


# =========================================================
# Response shaping
# =========================================================
_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

def clean_response(text: Optional[str]) -> str:
    """Strip markdown code fences and surrounding whitespace."""
    if not text:
        return ""
    return _FENCE.sub("", text).strip()


def slice_json(text: Optional[str], opener: str = "{", closer: str = "}") -> Any:
    """
    Parse the JSON between the first `opener` and the last `closer`.
    Raises ValueError when there is no such span or it is not valid JSON.
    """
    s = (text or "").strip()
    start = s.find(opener)
    end = s.rfind(closer)
    if start < 0 or end <= start:
        raise ValueError(f"no {opener}...{closer} span in model output")
    return json.loads(s[start:end + 1])


def parse_json_or(text: Optional[str], fallback: Any) -> Any:
    """json.loads on the cleaned text; the fallback on any parse failure."""
    try:
        return json.loads(clean_response(text))
    except (TypeError, ValueError):
        return fallback


def safe_ai_call(ai_fn: Callable[[], str], fallback_fn: Callable[[], str], error_message: str = "AI service unavailable") -> str:
    try:
        return clean_response(ai_fn())
    except LLMError as e:
        logger.error(f"[llm] {error_message}: {e}")
        return fallback_fn()
