from typing import List

import numpy as np

from docpilot.models.types import Chunk, RuleMatch


class Index:
    """In-memory cosine index over rule-folder chunks."""

    def __init__(self, embeddings: np.ndarray, chunks: List[Chunk]):
        self.chunks = chunks
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True) + 1e-8
        self.unit = embeddings / norms  # (N, D)

    def __len__(self) -> int:
        return len(self.chunks)

    def search(self, query_vec: np.ndarray, top_k: int = 5, min_score: float = 0.0) -> List[RuleMatch]:
        if not self.chunks:
            return []
        q = query_vec.reshape(-1)
        q = q / (np.linalg.norm(q) + 1e-8)
        sims = self.unit @ q  # (N,)
        out: List[RuleMatch] = []
        for i in np.argsort(-sims)[:top_k]:
            score = float(sims[i])
            if score < min_score:
                break
            c = self.chunks[i]
            out.append(RuleMatch(
                title=c.title or "Untitled",
                text=c.text,
                score=score,
                source="folder",
                chunk_index=c.chunk_index,
            ))
        return out
