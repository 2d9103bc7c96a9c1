from __future__ import annotations

import json
from typing import Any, Dict, List

from docpilot.models.types import ChatTurn, ContextBundle, Issue

SYSTEM_PROMPT = (
    "You are a writing assistant for an editorial team. "
    "Answer using the team's writing rules provided as context. "
    "Quote the rule you rely on and name its source document in brackets. "
    "If the rules do not cover the question, say so and give general guidance, clearly labelled."
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a meticulous copy editor. You check text against a set of writing rules "
    "and report only clear violations. Respond ONLY with valid JSON."
)

MAX_HISTORY_TURNS = 10
MAX_DOCUMENT_CHARS = 12000


def build_chat_prompt(message: str, bundle: ContextBundle) -> str:
    parts: List[str] = []
    rules = bundle.rules_text()
    if rules:
        parts.append("WRITING RULES (retrieved):\n" + rules)
    else:
        parts.append("WRITING RULES (retrieved):\n(none found)")
    if bundle.document_text:
        doc = bundle.document_text[:MAX_DOCUMENT_CHARS]
        title = bundle.document_title or bundle.document_id or "document"
        parts.append(f"TARGET DOCUMENT \"{title}\":\n{doc}")
    parts.append(f"USER REQUEST:\n{message.strip()}")
    return "\n\n".join(parts)


def build_history_contents(history: List[ChatTurn], prompt: str) -> List[Dict[str, Any]]:
    """Role-tagged contents for generateContent; the prompt is the final user turn."""
    contents: List[Dict[str, Any]] = []
    for turn in history[-MAX_HISTORY_TURNS:]:
        text = (turn.content or "").strip()
        if not text:
            continue
        role = "model" if turn.role.lower() in ("assistant", "model", "bot") else "user"
        # API expects alternating roles; merge consecutive turns of the same role
        if contents and contents[-1]["role"] == role:
            contents[-1]["parts"][0]["text"] += "\n\n" + text
        else:
            contents.append({"role": role, "parts": [{"text": text}]})
    contents.append({"role": "user", "parts": [{"text": prompt}]})
    return contents


def build_analysis_prompt(window_text: str, rules_text: str) -> str:
    header = [
        "Check the TEXT below against the WRITING RULES.",
        "For every violation return an object with:",
        "  \"text\": the exact offending words copied verbatim from TEXT (short, unique, no paraphrase),",
        "  \"rule\": the rule that is broken (short name),",
        "  \"suggestion\": how to fix it.",
        "Output format (JSON array):",
        "[",
        "  {\"text\": \"utilise\", \"rule\": \"Plain words\", \"suggestion\": \"Use 'use'.\"}",
        "]",
        "If there are no violations, return an empty JSON array [].",
    ]
    return "\n".join(header) + f"\n\nWRITING RULES:\n{rules_text or '(none)'}\n\nTEXT:\n{window_text}"


def extract_json_array(raw: str) -> List[Dict[str, Any]]:
    raw = (raw or "").strip()
    if not raw:
        return []
    # Attempt direct parse first
    try:
        data = json.loads(raw)
        if isinstance(data, list):
            return [d for d in data if isinstance(d, dict)]
    except json.JSONDecodeError:
        pass
    # Look for first JSON array in output (models like ```json fences)
    start = raw.find("[")
    end = raw.rfind("]")
    if start != -1 and end > start:
        try:
            data = json.loads(raw[start:end + 1])
            if isinstance(data, list):
                return [d for d in data if isinstance(d, dict)]
        except json.JSONDecodeError:
            pass
    return []


def to_issues(entries: List[Dict[str, Any]]) -> List[Issue]:
    out: List[Issue] = []
    for e in entries:
        text = e.get("text")
        if not isinstance(text, str) or not text.strip():
            continue
        out.append(Issue(
            text=text.strip(),
            rule=str(e.get("rule") or ""),
            suggestion=str(e.get("suggestion") or ""),
        ))
    return out
