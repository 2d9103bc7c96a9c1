from typing import List, Tuple
import re

from docpilot.models.types import Chunk

# Boundary-preferring splitter: pieces never exceed max_chars and concatenate
# back to the original text exactly (no stripping, no overlap).

_SENTENCE_END = re.compile(r"[.!?…][\"')\]]*\s+")


def _cut_point(text: str, start: int, limit: int) -> int:
    """Best end offset for a piece starting at start and ending no later than limit."""
    window = text[start:limit]
    min_piece = max(1, (limit - start) // 3)  # don't accept tiny leading pieces
    # paragraph break
    k = window.rfind("\n\n")
    if k >= min_piece:
        return start + k + 2
    # line break
    k = window.rfind("\n")
    if k >= min_piece:
        return start + k + 1
    # sentence end (last one in the window)
    last = -1
    for m in _SENTENCE_END.finditer(window):
        last = m.end()
    if last >= min_piece:
        return start + last
    # whitespace
    k = max(window.rfind(" "), window.rfind("\t"))
    if k >= min_piece:
        return start + k + 1
    return limit


def split_text(text: str, max_chars: int) -> List[str]:
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    pieces: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        if n - i <= max_chars:
            pieces.append(text[i:])
            break
        j = _cut_point(text, i, i + max_chars)
        pieces.append(text[i:j])
        i = j
    return pieces


def chunk_rule_document(source_id: str, title: str, text: str, max_chars: int = 1000) -> List[Chunk]:
    chunks: List[Chunk] = []
    for piece in split_text(text, max_chars):
        if not piece.strip():
            continue
        idx = len(chunks)
        chunks.append(Chunk(
            id=f"{source_id}-{idx}",
            text=piece,
            title=title,
            source_id=source_id,
            chunk_index=idx,
        ))
    return chunks


def sliding_windows(text: str, size: int, overlap: int) -> List[Tuple[int, str]]:
    """Fixed-size windows as (offset, text); consecutive windows share `overlap` chars."""
    if size <= 0:
        raise ValueError("size must be positive")
    if overlap < 0 or overlap >= size:
        raise ValueError("overlap must be in [0, size)")
    n = len(text)
    if n == 0:
        return []
    if n <= size:
        return [(0, text)]
    step = size - overlap
    out: List[Tuple[int, str]] = []
    start = 0
    while True:
        end = min(n, start + size)
        out.append((start, text[start:end]))
        if end >= n:
            break
        start += step
    return out
