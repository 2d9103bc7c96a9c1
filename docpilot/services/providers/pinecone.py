from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from docpilot.config import Settings
from docpilot.errors import ConfigurationError
from docpilot.models.types import RuleMatch
from docpilot.services.providers.http import send, json_or_empty

logger = logging.getLogger(__name__)

UPSERT_BATCH = 50


class PineconeClient:
    """Minimal data-plane client: /query, /vectors/upsert, /describe_index_stats."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(timeout=settings.http_timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.settings.pinecone_api_key and self.settings.pinecone_host)

    def _base(self) -> str:
        if not self.enabled:
            raise ConfigurationError("PINECONE_API_KEY and PINECONE_HOST must be set")
        host = self.settings.pinecone_host.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return host

    def _headers(self) -> Dict[str, str]:
        return {
            "Api-Key": self.settings.pinecone_api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def query(self, vector: Sequence[float], top_k: Optional[int] = None) -> List[RuleMatch]:
        payload = {
            "vector": [float(x) for x in vector],
            "topK": int(top_k or self.settings.top_k),
            "includeMetadata": True,
            "namespace": self.settings.pinecone_namespace,
        }
        resp = send(self.client, "pinecone", "/query", "POST", f"{self._base()}/query",
                    headers=self._headers(), json=payload)
        data = json_or_empty(resp)
        out: List[RuleMatch] = []
        for m in data.get("matches") or []:
            meta = m.get("metadata") or {}
            text = meta.get("text") or ""
            if not text:
                continue
            ci = meta.get("chunk_index")
            out.append(RuleMatch(
                title=meta.get("title") or "Untitled",
                text=text,
                score=float(m.get("score") or 0.0),
                source="vector",
                chunk_index=int(ci) if ci is not None else None,
            ))
        return out

    def upsert(self, vectors: List[Dict[str, Any]]) -> int:
        """Upsert {id, values, metadata} records in batches; returns the upserted count."""
        total = 0
        for i in range(0, len(vectors), UPSERT_BATCH):
            batch = vectors[i:i + UPSERT_BATCH]
            resp = send(
                self.client,
                "pinecone",
                "/vectors/upsert",
                "POST",
                f"{self._base()}/vectors/upsert",
                headers=self._headers(),
                json={"vectors": batch, "namespace": self.settings.pinecone_namespace},
            )
            total += int(json_or_empty(resp).get("upsertedCount", len(batch)))
        return total

    def describe_index_stats(self) -> Dict[str, Any]:
        resp = send(self.client, "pinecone", "/describe_index_stats", "POST",
                    f"{self._base()}/describe_index_stats", headers=self._headers(), json={})
        return json_or_empty(resp)
