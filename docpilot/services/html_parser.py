from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

# Plain text from an exported HTML document: headings, paragraphs and list
# items become blank-line separated blocks so the chunker can split on them.


def extract_text_from_html(html_bytes: bytes) -> str:
    soup = BeautifulSoup(html_bytes, "lxml")
    for el in soup(["script", "style"]):
        el.decompose()
    parts: List[str] = []

    for el in soup.find_all(["h1", "h2", "h3", "h4", "p", "li"]):
        txt = el.get_text(separator=" ", strip=True)
        if not txt:
            continue
        if el.name == "li":
            parts.append(f"• {txt}")
        else:
            parts.append(txt)

    # Fallback to full text if structured parse produced nothing
    if not parts:
        full = soup.get_text(separator="\n", strip=True)
        if full:
            parts = [full]

    return "\n\n".join(parts)
