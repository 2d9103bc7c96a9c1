from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from docpilot.config import Settings
from docpilot.models.types import RuleDocument
from docpilot.services.html_parser import extract_text_from_html
from docpilot.services.pdf_parser import extract_text_from_pdf
from docpilot.services.providers.google_auth import TokenProvider
from docpilot.services.providers.http import send, json_or_empty, bearer

logger = logging.getLogger(__name__)

DRIVE_BASE = "https://www.googleapis.com/drive/v3"

GOOGLE_DOC = "application/vnd.google-apps.document"
PDF = "application/pdf"
TEXT_TYPES = ("text/plain", "text/markdown", "text/html")


class DriveClient:
    def __init__(self, settings: Settings, tokens: TokenProvider, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.tokens = tokens
        self.client = client or httpx.Client(timeout=settings.http_timeout, follow_redirects=True)

    def list_folder(self, folder_id: str) -> List[RuleDocument]:
        """Readable files directly inside folder_id (text not loaded)."""
        out: List[RuleDocument] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": "nextPageToken, files(id, name, mimeType)",
                "pageSize": 100,
                "orderBy": "name",
            }
            if page_token:
                params["pageToken"] = page_token
            resp = send(
                self.client,
                "google_drive",
                "/files.list",
                "GET",
                f"{DRIVE_BASE}/files",
                params=params,
                headers=bearer(self.tokens.token()),
            )
            data = json_or_empty(resp)
            for f in data.get("files") or []:
                mime = f.get("mimeType") or ""
                if mime == GOOGLE_DOC or mime == PDF or mime in TEXT_TYPES:
                    out.append(RuleDocument(id=f["id"], title=f.get("name") or f["id"], mime_type=mime))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return out

    def read_text(self, doc: RuleDocument) -> str:
        headers = bearer(self.tokens.token())
        if doc.mime_type == GOOGLE_DOC:
            resp = send(
                self.client,
                "google_drive",
                "/files.export",
                "GET",
                f"{DRIVE_BASE}/files/{doc.id}/export",
                params={"mimeType": "text/html"},
                headers=headers,
            )
            return extract_text_from_html(resp.content)
        resp = send(
            self.client,
            "google_drive",
            "/files.get",
            "GET",
            f"{DRIVE_BASE}/files/{doc.id}",
            params={"alt": "media"},
            headers=headers,
        )
        if doc.mime_type == PDF:
            return extract_text_from_pdf(resp.content)
        if doc.mime_type == "text/html":
            return extract_text_from_html(resp.content)
        return resp.text

    def load_folder(self, folder_id: str) -> List[RuleDocument]:
        """List and read every document; unreadable files are logged and skipped."""
        docs = self.list_folder(folder_id)
        loaded: List[RuleDocument] = []
        for d in docs:
            try:
                d.text = self.read_text(d)
            except Exception as e:
                logger.warning("drive: could not read %s (%s): %s", d.title, d.id, e)
                continue
            if d.text.strip():
                loaded.append(d)
        logger.info("drive: folder=%s files=%d readable=%d", folder_id, len(docs), len(loaded))
        return loaded

    def create_comment(self, file_id: str, content: str, quoted_text: str) -> Dict[str, Any]:
        resp = send(
            self.client,
            "google_drive",
            "/comments.create",
            "POST",
            f"{DRIVE_BASE}/files/{file_id}/comments",
            params={"fields": "*"},
            headers=bearer(self.tokens.token()),
            json={
                "content": content,
                "quotedFileContent": {"mimeType": "text/plain", "value": quoted_text},
            },
        )
        return json_or_empty(resp)
