from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from docpilot.config import Settings
from docpilot.models.types import AnnotationResult, Issue
from docpilot.services.chunker import sliding_windows
from docpilot.services.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    build_analysis_prompt,
    extract_json_array,
    to_issues,
)
from docpilot.services.providers.gemini import GeminiClient
from docpilot.services.providers.google_docs import (
    DocsClient,
    DocumentText,
    heading_request,
    highlight_request,
    insert_text_request,
    text_style_request,
    utf16_len,
)
from docpilot.services.providers.google_drive import DriveClient

logger = logging.getLogger(__name__)

REVIEW_HEADING = "Writing review"
REVIEW_FONT = "Arial"
MARKER_COLOR = "#5f6368"


def _marker(n: int) -> str:
    return f" [{n}]"


def _review_line(n: int, issue: Issue) -> Tuple[str, int]:
    """Line text and the UTF-16 length of its bold label."""
    label = f"[{n}] {issue.rule or 'Rule'}"
    rest = f": “{issue.text}”"
    if issue.suggestion:
        rest += f" → {issue.suggestion}"
    return label + rest, utf16_len(label)


class DocumentAnnotator:
    def __init__(
        self,
        settings: Settings,
        docs: DocsClient,
        drive: DriveClient,
        gemini: GeminiClient,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.docs = docs
        self.drive = drive
        self.gemini = gemini
        self.sleep = sleep

    def analyze(self, document_id: str, rules_text: str, doc: Optional[DocumentText] = None) -> List[Issue]:
        """Issues found window by window, kept only if quoted verbatim, deduplicated by text."""
        doc = doc or self.docs.read_text(document_id)
        windows = sliding_windows(doc.text, self.settings.analysis_window_chars, self.settings.analysis_overlap_chars)
        seen: Set[str] = set()
        issues: List[Issue] = []
        for i, (offset, window) in enumerate(windows):
            if i > 0 and self.settings.analysis_pause_seconds > 0:
                self.sleep(self.settings.analysis_pause_seconds)
            prompt = build_analysis_prompt(window, rules_text)
            try:
                raw = self.gemini.generate(
                    [{"role": "user", "parts": [{"text": prompt}]}],
                    system_instruction=ANALYSIS_SYSTEM_PROMPT,
                    temperature=0.1,
                )
            except Exception as e:
                logger.warning("annotator: window %d/%d (offset=%d) failed: %s", i + 1, len(windows), offset, e)
                continue
            found = to_issues(extract_json_array(raw))
            for issue in found:
                if issue.text in seen:
                    continue
                if issue.text not in doc.text:
                    logger.debug("annotator: dropping unquoted issue %r", issue.text)
                    continue
                seen.add(issue.text)
                issues.append(issue)
        logger.info("annotator: doc=%s windows=%d issues=%d", document_id, len(windows), len(issues))
        return issues

    def annotate(self, document_id: str, issues: List[Issue], doc: Optional[DocumentText] = None) -> AnnotationResult:
        result = AnnotationResult(document_id=document_id, issues=issues)
        if not issues:
            return result
        doc = doc or self.docs.read_text(document_id)

        located: List[Tuple[int, int, Issue]] = []
        for issue in issues:
            rng = doc.locate(issue.text)
            if rng is None:
                result.skipped.append(issue.text)
                continue
            located.append((rng[0], rng[1], issue))
        if not located:
            return result

        # Number in reading order, mutate from the last range end backwards so a marker
        # never lands inside a range that is still to be processed (issues may nest)
        located.sort(key=lambda t: (t[0], -t[1]))
        numbered = [(n, start, end, issue) for n, (start, end, issue) in enumerate(located, 1)]

        requests: List[Dict[str, Any]] = []
        inserted = 0
        for n, start, end, _ in sorted(numbered, key=lambda t: (t[2], t[1]), reverse=True):
            marker = _marker(n)
            mlen = utf16_len(marker)
            requests.append(highlight_request(start, end, self.settings.highlight_color))
            requests.append(insert_text_request(end, marker))
            requests.append(text_style_request(end, end + mlen, bold=False, size_pt=8,
                                               color=MARKER_COLOR, clear_background=True))
            inserted += mlen

        requests.extend(self._review_section(doc.end_index + inserted, numbered))
        self.docs.batch_update(document_id, requests)
        result.highlighted = len(numbered)

        if self.settings.enable_comments:
            result.comments = self._comment(document_id, numbered)
        return result

    def review(self, document_id: str, rules_text: str) -> AnnotationResult:
        doc = self.docs.read_text(document_id)
        issues = self.analyze(document_id, rules_text, doc=doc)
        return self.annotate(document_id, issues, doc=doc)

    def _review_section(self, end_index: int, numbered: List[Tuple[int, int, int, Issue]]) -> List[Dict[str, Any]]:
        at = end_index - 1  # before the body's final newline
        lines = [_review_line(n, issue) for n, _, _, issue in numbered]
        block = "\n" + REVIEW_HEADING + "\n" + "\n".join(text for text, _ in lines)
        reqs: List[Dict[str, Any]] = [insert_text_request(at, block)]

        block_start = at + 1
        block_end = at + utf16_len(block)
        reqs.append(text_style_request(block_start, block_end, bold=False, font=REVIEW_FONT, size_pt=10,
                                       clear_background=True))
        heading_end = block_start + utf16_len(REVIEW_HEADING)
        reqs.append(heading_request(block_start, heading_end + 1))
        reqs.append(text_style_request(block_start, heading_end, bold=True, size_pt=14))

        pos = heading_end + 1
        for text, label_len in lines:
            reqs.append(text_style_request(pos, pos + label_len, bold=True))
            pos += utf16_len(text) + 1
        return reqs

    def _comment(self, document_id: str, numbered: List[Tuple[int, int, int, Issue]]) -> int:
        made = 0
        for n, _, _, issue in numbered:
            content = f"[{n}] {issue.rule or 'Writing rule'}"
            if issue.suggestion:
                content += f": {issue.suggestion}"
            try:
                self.drive.create_comment(document_id, content, issue.text)
                made += 1
            except Exception as e:
                logger.warning("annotator: comment %d on %s failed: %s", n, document_id, e)
        return made
