from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from docpilot.config import Settings
from docpilot.errors import ConfigurationError, UpstreamError
from docpilot.services.metrics import now, elapsed_ms, record_llm
from docpilot.services.providers.http import send, json_or_empty

logger = logging.getLogger(__name__)


def candidate_text(data: Dict[str, Any]) -> str:
    """Text of the first candidate, or "" when the response carries none."""
    for cand in data.get("candidates") or []:
        parts = ((cand.get("content") or {}).get("parts")) or []
        texts = [p.get("text") or "" for p in parts if isinstance(p, dict)]
        joined = "".join(texts).strip()
        if joined:
            return joined
    return ""


def _transient(e: BaseException) -> bool:
    # Transport failures, rate limits and server errors; a missing key or a bad request is final
    if isinstance(e, UpstreamError):
        return e.status_code == 429 or e.status_code >= 500
    return isinstance(e, httpx.TransportError)


class GeminiClient:
    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(timeout=max(settings.http_timeout, 60.0))

    @property
    def enabled(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def _url(self, model: str, method: str) -> str:
        if not self.enabled:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        return f"{self.settings.gemini_base_url.rstrip('/')}/models/{model}:{method}"

    @retry(reraise=True, retry=retry_if_exception(_transient), stop=stop_after_attempt(2),
           wait=wait_exponential(multiplier=0.5, min=0.5, max=2))
    def generate(
        self,
        contents: List[Dict[str, Any]],
        *,
        system_instruction: Optional[str] = None,
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
        model: Optional[str] = None,
    ) -> str:
        model = model or self.settings.gemini_model
        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_output_tokens},
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        t0 = now()
        try:
            resp = send(
                self.client,
                "gemini",
                "/generateContent",
                "POST",
                self._url(model, "generateContent"),
                params={"key": self.settings.gemini_api_key},
                json=body,
            )
        except Exception:
            record_llm("gemini", model, latency_ms=elapsed_ms(t0), ok=False)
            raise
        record_llm("gemini", model, latency_ms=elapsed_ms(t0), ok=True)
        return candidate_text(json_or_empty(resp))

    @retry(reraise=True, retry=retry_if_exception(_transient), stop=stop_after_attempt(2),
           wait=wait_exponential(multiplier=0.5, min=0.5, max=4))
    def embed(self, texts: List[str]) -> List[List[float]]:
        model = self.settings.gemini_embed_model
        body = {
            "requests": [
                {"model": f"models/{model}", "content": {"parts": [{"text": t}]}}
                for t in texts
            ]
        }
        t0 = now()
        try:
            resp = send(
                self.client,
                "gemini",
                "/batchEmbedContents",
                "POST",
                self._url(model, "batchEmbedContents"),
                params={"key": self.settings.gemini_api_key},
                json=body,
            )
        except Exception:
            record_llm("gemini", model, latency_ms=elapsed_ms(t0), ok=False)
            raise
        record_llm("gemini", model, latency_ms=elapsed_ms(t0), ok=True)
        data = json_or_empty(resp)
        return [list(e.get("values") or []) for e in data.get("embeddings") or []]
