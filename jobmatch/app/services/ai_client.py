import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

import httpx

from ..config import (
    AI_LOG_PAYLOADS,
    AI_MAX_OUTPUT_TOKENS,
    AI_TIMEOUT_S,
    GEMINI_API_KEY,
    GEMINI_API_VERSION,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
)


logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class AIClientError(RuntimeError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class TextGenerator(Protocol):
    """Anything that turns a prompt into a completion. `model` is reported in responses."""

    model: str

    async def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class GeminiMeta:
    model: str
    latency_ms: int
    status_code: int | None
    retries: int


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def _response_text(data: dict[str, Any]) -> str:
    # { candidates: [ { content: { parts: [ { text: "..." } ] } } ], ... }
    parts = (
        ((data.get("candidates") or [{}])[0] or {})
        .get("content", {})
        .get("parts", [])
    )
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))


@dataclass
class GeminiClient:
    """
    Generative Language API client (API key auth).

    POST {base_url}/{api_version}/models/{model}:generateContent
    with header x-goog-api-key.

    `max_retries` only covers transient failures (timeouts, 429/5xx). Resume
    parsing uses max_retries=0: one attempt, then the caller falls back.
    """

    api_key: str
    model: str = GEMINI_MODEL
    base_url: str = GEMINI_BASE_URL
    api_version: str = GEMINI_API_VERSION
    timeout_s: float = AI_TIMEOUT_S
    max_retries: int = 0
    temperature: float = 0.0
    max_output_tokens: int | None = AI_MAX_OUTPUT_TOKENS
    log_payloads: bool = AI_LOG_PAYLOADS
    last_meta: GeminiMeta | None = field(default=None, init=False)

    @property
    def url(self) -> str:
        api_v = (self.api_version or "v1beta").strip().lstrip("/")
        base = (self.base_url or "").rstrip("/")
        model_path = self.model.strip()
        if model_path.startswith("models/"):
            model_path = model_path[len("models/") :]
        return f"{base}/{api_v}/models/{model_path}:generateContent"

    def _body(self, prompt: str) -> dict[str, Any]:
        generation_config: dict[str, Any] = {"temperature": float(self.temperature)}
        if self.max_output_tokens:
            generation_config["maxOutputTokens"] = int(self.max_output_tokens)
        return {
            "contents": [
                {"role": "user", "parts": [{"text": prompt or ""}]},
            ],
            "generationConfig": generation_config,
        }

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise AIClientError("Missing GEMINI_API_KEY")
        if not self.model:
            raise AIClientError("Missing GEMINI_MODEL")

        body = self._body(prompt)
        headers = {
            "x-goog-api-key": self.api_key,
            "content-type": "application/json",
        }
        start = time.perf_counter()

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    if self.log_payloads:
                        logger.info(
                            "Gemini request model=%s body=%s",
                            self.model,
                            _safe_truncate(json.dumps(body, ensure_ascii=False)),
                        )
                    r = await client.post(self.url, json=body, headers=headers)

                if r.status_code >= 400:
                    if r.status_code in _RETRYABLE_STATUS and attempt < self.max_retries:
                        backoff = 0.5 * (2**attempt)
                        logger.warning("Gemini HTTP %s; retrying in %.1fs", r.status_code, backoff)
                        await asyncio.sleep(backoff)
                        continue
                    raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

                text = _response_text(r.json() or {})
                self.last_meta = GeminiMeta(
                    model=self.model,
                    latency_ms=int((time.perf_counter() - start) * 1000),
                    status_code=r.status_code,
                    retries=attempt,
                )
                logger.info(
                    "Gemini ok model=%s status=%s latency_ms=%s retries=%s",
                    self.last_meta.model,
                    self.last_meta.status_code,
                    self.last_meta.latency_ms,
                    self.last_meta.retries,
                )
                if self.log_payloads:
                    logger.info("Gemini response text=%s", _safe_truncate(text))
                return text.strip()
            except httpx.TimeoutException:
                if attempt < self.max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("Gemini timeout; retrying in %.1fs", backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientTimeout("Gemini request timed out") from None
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    backoff = 0.5 * (2**attempt)
                    logger.warning("Gemini network error (%s); retrying in %.1fs", type(e).__name__, backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientError(f"Gemini request failed: {type(e).__name__}") from e

        raise AIClientError("Gemini request failed after retries")


@lru_cache(maxsize=1)
def _configured_client() -> GeminiClient | None:
    if not GEMINI_API_KEY:
        return None
    return GeminiClient(api_key=GEMINI_API_KEY)


def get_text_generator() -> TextGenerator | None:
    """FastAPI dependency: the configured generative capability, or None when no key is set."""
    return _configured_client()
