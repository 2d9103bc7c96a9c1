from __future__ import annotations

import logging
from typing import Any, Dict, List

from docpilot.config import Settings
from docpilot.errors import ConfigurationError
from docpilot.models.types import Chunk
from docpilot.services.chunker import chunk_rule_document
from docpilot.services.embedder import Embedder
from docpilot.services.providers.google_drive import DriveClient
from docpilot.services.providers.pinecone import PineconeClient

logger = logging.getLogger(__name__)


class RuleIndexer:
    """Re-embeds the rules folder into the vector namespace."""

    def __init__(self, settings: Settings, drive: DriveClient, embedder: Embedder, pinecone: PineconeClient):
        self.settings = settings
        self.drive = drive
        self.embedder = embedder
        self.pinecone = pinecone

    def sync(self) -> Dict[str, Any]:
        if not self.settings.rules_folder_id:
            raise ConfigurationError("RULES_FOLDER_ID is not set")
        if not self.pinecone.enabled:
            raise ConfigurationError("PINECONE_API_KEY and PINECONE_HOST must be set")
        docs = self.drive.load_folder(self.settings.rules_folder_id)
        chunks: List[Chunk] = []
        for d in docs:
            chunks.extend(chunk_rule_document(d.id, d.title, d.text, self.settings.rule_chunk_chars))
        if not chunks:
            return {"documents": len(docs), "chunks": 0, "upserted": 0}

        # Never persist fallback vectors over real ones
        embs = self.embedder.embed_texts([c.text for c in chunks], strict=True)
        vectors = [
            {
                "id": c.id,
                "values": embs[i].tolist(),
                "metadata": {
                    "title": c.title,
                    "chunk_index": c.chunk_index,
                    "text": c.text,
                    "source_id": c.source_id,
                },
            }
            for i, c in enumerate(chunks)
        ]
        upserted = self.pinecone.upsert(vectors)
        logger.info("rule_indexer: documents=%d chunks=%d upserted=%d", len(docs), len(chunks), upserted)
        return {"documents": len(docs), "chunks": len(chunks), "upserted": upserted}
