import hashlib
import logging
from typing import List

import numpy as np

from docpilot.errors import ConfigurationError, ProviderError
from docpilot.services.providers.gemini import GeminiClient

logger = logging.getLogger(__name__)

EMBED_DIM = 768  # text-embedding-004
BATCH = 100  # batchEmbedContents request cap


def fallback_embed(texts: List[str]) -> np.ndarray:
    # Deterministic hash-seeded vectors when the embedding API is unavailable
    vecs = []
    for t in texts:
        seed = int(hashlib.sha256(t.encode("utf-8")).hexdigest()[:8], 16)
        rng = np.random.default_rng(seed)
        v = rng.random(EMBED_DIM, dtype=np.float32)
        v = v / (np.linalg.norm(v) + 1e-8)
        vecs.append(v)
    return np.stack(vecs, axis=0)


class Embedder:
    def __init__(self, gemini: GeminiClient):
        self.gemini = gemini

    def embed_texts(self, texts: List[str], strict: bool = False) -> np.ndarray:
        """Gemini embeddings; without a key or on failure the fallback, or an error when strict.

        Fallback vectors are only comparable with other fallback vectors.
        """
        if not texts:
            return np.zeros((0, EMBED_DIM), dtype=np.float32)
        if not self.gemini.enabled:
            if strict:
                raise ConfigurationError("GEMINI_API_KEY is not set; semantic embeddings are unavailable")
            return fallback_embed(texts)
        try:
            rows: List[List[float]] = []
            for i in range(0, len(texts), BATCH):
                rows.extend(self.gemini.embed(texts[i:i + BATCH]))
            if len(rows) != len(texts):
                raise ValueError(f"expected {len(texts)} embeddings, got {len(rows)}")
            return np.array(rows, dtype=np.float32)
        except Exception as e:
            if strict:
                raise ProviderError(f"gemini embedding failed: {e}") from e
            logger.warning("embedder: gemini embedding failed, using fallback: %s", e)
            return fallback_embed(texts)

    def embed_query(self, text: str, strict: bool = False) -> np.ndarray:
        return self.embed_texts([text], strict=strict)[0]
