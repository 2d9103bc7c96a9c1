from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional, Pattern, Tuple


class Command(str, Enum):
    ANNOTATE = "annotate"
    SYNC_RULES = "sync_rules"
    INDEX_STATS = "index_stats"
    LIST_RULES = "list_rules"
    HELP = "help"
    ASK = "ask"


_DOC_URL_PATTERNS = [
    re.compile(r"/document/(?:u/\d+/)?d/([a-zA-Z0-9_-]{10,})"),
    re.compile(r"/file/d/([a-zA-Z0-9_-]{10,})"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]{10,})"),
]
_BARE_ID = re.compile(r"(?<![\w/-])([a-zA-Z0-9_-]{25,})(?![\w/-])")

_DOC_WORDS = re.compile(r"\b(doc|docs|document|draft|article|file|copy|manuscript)\b", re.I)

# First match wins; ANNOTATE additionally needs a document reference
_RULES: List[Tuple[Command, Pattern[str]]] = [
    (Command.HELP, re.compile(r"^\s*(/?help|\?|what can you do\??|commands?)\s*$", re.I)),
    (Command.SYNC_RULES, re.compile(
        r"\b(sync|re-?index|index|refresh|reload|rebuild|update)\b.{0,40}\b(rules?|knowledge base|vectors?|style guides?)\b",
        re.I,
    )),
    (Command.INDEX_STATS, re.compile(
        r"\b(index|vector|namespace|database)\s+(stats|statistics|status|size|count)\b"
        r"|\bhow many (chunks|vectors|rules)\b",
        re.I,
    )),
    (Command.LIST_RULES, re.compile(
        r"\b(list|show|which|what)\b.{0,30}\b(rule (docs?|documents?|files?)|rulebooks?|style guides?|guidelines)\b",
        re.I,
    )),
    (Command.ANNOTATE, re.compile(
        r"\b(review|check|analy[sz]e|highlight|annotate|proofread|audit|scan|mark up|comment on)\b",
        re.I,
    )),
]


def extract_document_id(text: str) -> Optional[str]:
    """Document ID from a Docs/Drive URL or a bare ID in free text."""
    if not text:
        return None
    for pat in _DOC_URL_PATTERNS:
        m = pat.search(text)
        if m:
            return m.group(1)
    for m in _BARE_ID.finditer(text):
        cand = m.group(1)
        # real IDs mix letters and digits; avoid long hyphenated words
        if any(c.isdigit() for c in cand) and any(c.isalpha() for c in cand):
            return cand
    return None


def classify(text: str) -> Command:
    msg = (text or "").strip()
    if not msg:
        return Command.HELP
    for command, pattern in _RULES:
        if not pattern.search(msg):
            continue
        if command is Command.ANNOTATE and not (extract_document_id(msg) or _DOC_WORDS.search(msg)):
            continue
        return command
    return Command.ASK


HELP_TEXT = (
    "I can help you apply the team's writing rules.\n"
    "- Ask a question, e.g. \"How should we write dates?\"\n"
    "- Paste a document link and say \"review this document\" to highlight rule violations.\n"
    "- \"Sync the rules\" re-indexes the rules folder into the vector database.\n"
    "- \"Index stats\" shows how many rule chunks are indexed.\n"
    "- \"List the rule documents\" shows the documents in the rules folder."
)
