from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from docpilot.config import Settings
from docpilot.services.providers.google_auth import TokenProvider
from docpilot.services.providers.http import send, json_or_empty, bearer

logger = logging.getLogger(__name__)

DOCS_BASE = "https://docs.googleapis.com/v1/documents"


def utf16_len(s: str) -> int:
    # Docs API indices count UTF-16 code units
    return len(s.encode("utf-16-le")) // 2


def hex_to_rgb(color: str) -> Dict[str, float]:
    c = color.lstrip("#")
    if len(c) == 3:
        c = "".join(ch * 2 for ch in c)
    r, g, b = (int(c[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    return {"red": r, "green": g, "blue": b}


@dataclass
class _Segment:
    offset: int  # position in the flattened text
    index: int  # Docs startIndex
    text: str


@dataclass
class DocumentText:
    """Flattened body text of a Docs document with a map back to API indices."""

    title: str = ""
    text: str = ""
    end_index: int = 1
    segments: List[_Segment] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "DocumentText":
        out = cls(title=doc.get("title") or "")
        parts: List[str] = []
        pos = 0

        def walk(content: List[Dict[str, Any]]) -> None:
            nonlocal pos
            for el in content or []:
                if "paragraph" in el:
                    for pe in el["paragraph"].get("elements") or []:
                        run = pe.get("textRun")
                        if not run or "startIndex" not in pe:
                            continue
                        txt = run.get("content") or ""
                        out.segments.append(_Segment(offset=pos, index=int(pe["startIndex"]), text=txt))
                        parts.append(txt)
                        pos += len(txt)
                elif "table" in el:
                    for row in el["table"].get("tableRows") or []:
                        for cell in row.get("tableCells") or []:
                            walk(cell.get("content") or [])
                if "endIndex" in el:
                    out.end_index = max(out.end_index, int(el["endIndex"]))

        walk((doc.get("body") or {}).get("content") or [])
        out.text = "".join(parts)
        return out

    def to_index(self, offset: int, *, is_end: bool = False) -> Optional[int]:
        for seg in self.segments:
            seg_end = seg.offset + len(seg.text)
            inside = seg.offset < offset <= seg_end if is_end else seg.offset <= offset < seg_end
            if inside:
                return seg.index + utf16_len(seg.text[: offset - seg.offset])
        return None

    def locate(self, needle: str, start: int = 0) -> Optional[Tuple[int, int]]:
        """Docs index range of the first occurrence of needle at or after text offset start."""
        if not needle:
            return None
        pos = self.text.find(needle, start)
        if pos < 0:
            return None
        a = self.to_index(pos)
        b = self.to_index(pos + len(needle), is_end=True)
        if a is None or b is None or b <= a:
            return None
        return a, b


class DocsClient:
    def __init__(self, settings: Settings, tokens: TokenProvider, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.tokens = tokens
        self.client = client or httpx.Client(timeout=settings.http_timeout)

    def get_document(self, document_id: str) -> Dict[str, Any]:
        resp = send(
            self.client,
            "google_docs",
            "/documents.get",
            "GET",
            f"{DOCS_BASE}/{document_id}",
            headers=bearer(self.tokens.token()),
        )
        return json_or_empty(resp)

    def read_text(self, document_id: str) -> DocumentText:
        return DocumentText.from_document(self.get_document(document_id))

    def batch_update(self, document_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not requests:
            return {}
        resp = send(
            self.client,
            "google_docs",
            "/documents.batchUpdate",
            "POST",
            f"{DOCS_BASE}/{document_id}:batchUpdate",
            headers=bearer(self.tokens.token()),
            json={"requests": requests},
        )
        logger.info("docs: batchUpdate doc=%s requests=%d", document_id, len(requests))
        return json_or_empty(resp)


# Request builders (pure; batched by the caller)

def highlight_request(start: int, end: int, color: str, bold: bool = True) -> Dict[str, Any]:
    return {
        "updateTextStyle": {
            "range": {"startIndex": start, "endIndex": end},
            "textStyle": {
                "backgroundColor": {"color": {"rgbColor": hex_to_rgb(color)}},
                "bold": bold,
            },
            "fields": "backgroundColor,bold",
        }
    }


def insert_text_request(index: int, text: str) -> Dict[str, Any]:
    return {"insertText": {"location": {"index": index}, "text": text}}


def text_style_request(start: int, end: int, *, bold: Optional[bool] = None, font: Optional[str] = None,
                       size_pt: Optional[float] = None, color: Optional[str] = None,
                       clear_background: bool = False) -> Dict[str, Any]:
    style: Dict[str, Any] = {}
    fields: List[str] = []
    if clear_background:
        # listed in fields but absent from style -> reset to default
        fields.append("backgroundColor")
    if bold is not None:
        style["bold"] = bold
        fields.append("bold")
    if font:
        style["weightedFontFamily"] = {"fontFamily": font}
        fields.append("weightedFontFamily")
    if size_pt:
        style["fontSize"] = {"magnitude": size_pt, "unit": "PT"}
        fields.append("fontSize")
    if color:
        style["foregroundColor"] = {"color": {"rgbColor": hex_to_rgb(color)}}
        fields.append("foregroundColor")
    return {
        "updateTextStyle": {
            "range": {"startIndex": start, "endIndex": end},
            "textStyle": style,
            "fields": ",".join(fields),
        }
    }


def heading_request(start: int, end: int, named_style: str = "HEADING_2") -> Dict[str, Any]:
    return {
        "updateParagraphStyle": {
            "range": {"startIndex": start, "endIndex": end},
            "paragraphStyle": {"namedStyleType": named_style},
            "fields": "namedStyleType",
        }
    }
