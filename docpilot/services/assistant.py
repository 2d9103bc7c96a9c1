from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import httpx

from docpilot.config import Settings
from docpilot.errors import ConfigurationError
from docpilot.models.types import ChatRequest, ChatResponse
from docpilot.services.annotator import DocumentAnnotator
from docpilot.services.context import ContextAggregator
from docpilot.services.embedder import Embedder
from docpilot.services.intent import HELP_TEXT, Command, classify, extract_document_id
from docpilot.services.metrics import begin_run, end_run
from docpilot.services.prompts import SYSTEM_PROMPT, build_chat_prompt, build_history_contents
from docpilot.services.providers.gemini import GeminiClient
from docpilot.services.providers.google_auth import TokenProvider
from docpilot.services.providers.google_docs import DocsClient
from docpilot.services.providers.google_drive import DriveClient
from docpilot.services.providers.pinecone import PineconeClient
from docpilot.services.rule_indexer import RuleIndexer

logger = logging.getLogger(__name__)

Handler = Callable[[ChatRequest], ChatResponse]


class Assistant:
    def __init__(
        self,
        settings: Settings,
        *,
        gemini: GeminiClient,
        pinecone: PineconeClient,
        drive: DriveClient,
        docs: DocsClient,
        context: Optional[ContextAggregator] = None,
        annotator: Optional[DocumentAnnotator] = None,
        indexer: Optional[RuleIndexer] = None,
    ):
        self.settings = settings
        self.gemini = gemini
        self.pinecone = pinecone
        self.drive = drive
        self.docs = docs
        embedder = Embedder(gemini)
        self.context = context or ContextAggregator(settings, embedder, pinecone, drive, docs)
        self.annotator = annotator or DocumentAnnotator(settings, docs, drive, gemini)
        self.indexer = indexer or RuleIndexer(settings, drive, embedder, pinecone)
        self._handlers: Dict[Command, Handler] = {
            Command.HELP: self._help,
            Command.ASK: self._ask,
            Command.ANNOTATE: self._annotate,
            Command.SYNC_RULES: self._sync_rules,
            Command.INDEX_STATS: self._index_stats,
            Command.LIST_RULES: self._list_rules,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "Assistant":
        http = httpx.Client(timeout=settings.http_timeout, follow_redirects=True)
        tokens = TokenProvider(settings, http)
        return cls(
            settings,
            gemini=GeminiClient(settings),
            pinecone=PineconeClient(settings, http),
            drive=DriveClient(settings, tokens, http),
            docs=DocsClient(settings, tokens, http),
        )

    def handle(self, req: ChatRequest) -> ChatResponse:
        message = (req.message or "").strip()
        if not message:
            return ChatResponse(success=False, message="Please type a message.")
        command = classify(message)
        begin_run()
        try:
            resp = self._handlers[command](req)
        except ConfigurationError as e:
            logger.warning("assistant: %s not configured: %s", command.value, e)
            resp = ChatResponse(success=False, message=f"Configuration problem: {e}")
        except Exception as e:
            logger.exception("assistant: %s failed", command.value)
            resp = ChatResponse(success=False, message=f"Sorry, something went wrong: {e}")
        finally:
            calls = end_run()
            logger.info("assistant: command=%s calls=%s", command.value, calls)
        resp.command = command.value
        return resp

    # Handlers

    def _help(self, req: ChatRequest) -> ChatResponse:
        return ChatResponse(success=True, message=HELP_TEXT)

    def _ask(self, req: ChatRequest) -> ChatResponse:
        doc_id = extract_document_id(req.message)
        bundle = self.context.gather(req.message, document_id=doc_id)
        prompt = build_chat_prompt(req.message, bundle)
        contents = build_history_contents(req.conversation_history, prompt)
        answer = self.gemini.generate(contents, system_instruction=SYSTEM_PROMPT, temperature=0.3)
        if not answer:
            return ChatResponse(success=False, message="The model returned no answer. Please try again.",
                                document_id=doc_id, sources=bundle.source_titles())
        return ChatResponse(success=True, message=answer, document_id=doc_id, sources=bundle.source_titles())

    def _annotate(self, req: ChatRequest) -> ChatResponse:
        doc_id = extract_document_id(req.message)
        if not doc_id:
            for turn in reversed(req.conversation_history):
                doc_id = extract_document_id(turn.content)
                if doc_id:
                    break
        if not doc_id:
            return ChatResponse(success=False, message="Please include the document link or ID to review.")

        bundle = self.context.gather(req.message)
        result = self.annotator.review(doc_id, bundle.rules_text())
        if not result.issues:
            msg = "No rule violations found in the document."
        else:
            msg = f"Found {len(result.issues)} issue(s); highlighted {result.highlighted}"
            if self.settings.enable_comments:
                msg += f" and added {result.comments} comment(s)"
            msg += "."
            if result.skipped:
                msg += f" {len(result.skipped)} could not be located in the document."
        return ChatResponse(success=True, message=msg, document_id=doc_id, annotations=result,
                            sources=bundle.source_titles())

    def _sync_rules(self, req: ChatRequest) -> ChatResponse:
        stats = self.indexer.sync()
        msg = (f"Indexed {stats['chunks']} chunk(s) from {stats['documents']} rule document(s) "
               f"into namespace '{self.settings.pinecone_namespace}'.")
        return ChatResponse(success=True, message=msg, stats=stats)

    def _index_stats(self, req: ChatRequest) -> ChatResponse:
        stats = self.pinecone.describe_index_stats()
        ns = (stats.get("namespaces") or {}).get(self.settings.pinecone_namespace) or {}
        count = int(ns.get("vectorCount", 0))
        total = int(stats.get("totalVectorCount", 0))
        msg = (f"Namespace '{self.settings.pinecone_namespace}' holds {count} vector(s) "
               f"({total} in the whole index, dimension {stats.get('dimension', 'n/a')}).")
        return ChatResponse(success=True, message=msg, stats=stats)

    def _list_rules(self, req: ChatRequest) -> ChatResponse:
        if not self.settings.rules_folder_id:
            raise ConfigurationError("RULES_FOLDER_ID is not set")
        docs = self.drive.list_folder(self.settings.rules_folder_id)
        if not docs:
            return ChatResponse(success=True, message="The rules folder is empty.")
        lines = "\n".join(f"- {d.title}" for d in docs)
        return ChatResponse(success=True, message=f"Rule documents ({len(docs)}):\n{lines}",
                            sources=[d.title for d in docs])
