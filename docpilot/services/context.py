from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from docpilot.config import Settings
from docpilot.errors import ProviderError
from docpilot.models.types import Chunk, ContextBundle, RuleMatch
from docpilot.services.chunker import chunk_rule_document
from docpilot.services.embedder import Embedder, fallback_embed
from docpilot.services.providers.google_docs import DocsClient
from docpilot.services.providers.google_drive import DriveClient
from docpilot.services.providers.pinecone import PineconeClient
from docpilot.services.retriever import Index

logger = logging.getLogger(__name__)


class ContextAggregator:
    """Gathers rule context from the vector DB, the rules folder and the target document.

    Every lookup is best-effort: a failure is logged and contributes nothing.
    """

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder,
        pinecone: PineconeClient,
        drive: DriveClient,
        docs: DocsClient,
    ):
        self.settings = settings
        self.embedder = embedder
        self.pinecone = pinecone
        self.drive = drive
        self.docs = docs

    def gather(self, query: str, document_id: Optional[str] = None) -> ContextBundle:
        bundle = ContextBundle(document_id=document_id)
        if query.strip():
            try:
                qvec = self.embedder.embed_query(query, strict=True)
                bundle.vector_matches = self.vector_matches(qvec)
            except ProviderError as e:
                # a fallback vector means nothing to the persistent index
                logger.warning("context: skipping vector lookup, no query embedding: %s", e)
                qvec = fallback_embed([query])[0]
            bundle.folder_matches = self.folder_matches(qvec)
        if document_id:
            self._load_document(bundle, document_id)
        logger.info(
            "context: vector=%d folder=%d doc=%s doc_chars=%d",
            len(bundle.vector_matches), len(bundle.folder_matches), document_id, len(bundle.document_text),
        )
        return bundle

    def vector_matches(self, qvec: np.ndarray) -> List[RuleMatch]:
        if not self.pinecone.enabled:
            return []
        try:
            return self.pinecone.query(qvec.tolist(), top_k=self.settings.top_k)
        except Exception as e:
            logger.warning("context: vector query failed: %s", e)
            return []

    def folder_matches(self, qvec: np.ndarray) -> List[RuleMatch]:
        if not self.settings.rules_folder_id:
            return []
        try:
            docs = self.drive.load_folder(self.settings.rules_folder_id)
            chunks: List[Chunk] = []
            for d in docs:
                chunks.extend(chunk_rule_document(d.id, d.title, d.text, self.settings.rule_chunk_chars))
            if not chunks:
                return []
            embs = self.embedder.embed_texts([c.text for c in chunks])
            return Index(embs, chunks).search(qvec, top_k=self.settings.top_k)
        except Exception as e:
            logger.warning("context: rules folder lookup failed: %s", e)
            return []

    def _load_document(self, bundle: ContextBundle, document_id: str) -> None:
        try:
            doc = self.docs.read_text(document_id)
            bundle.document_title = doc.title
            bundle.document_text = doc.text
        except Exception as e:
            logger.warning("context: could not read document %s: %s", document_id, e)
