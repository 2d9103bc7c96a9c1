import pytest

from docpilot.services.chunker import chunk_rule_document, sliding_windows, split_text

RULES = (
    "Dates\n\nWrite dates as 3 March 2024. Never use ordinals such as 3rd.\n\n"
    "Numbers\n\nSpell out one to nine. Use numerals for 10 and above. "
    "Use a comma in numbers over 999, for example 1,000.\n\n"
    "Tone\n\nWrite plainly. Prefer short sentences and the active voice. "
    "Avoid jargon unless the audience expects it." * 3
)


@pytest.mark.parametrize("max_chars", [1, 7, 40, 120, 1000])
def test_split_text_bounds_and_preserves_content(max_chars):
    pieces = split_text(RULES, max_chars)
    assert "".join(pieces) == RULES
    assert all(0 < len(p) <= max_chars for p in pieces)


def test_split_text_prefers_paragraph_breaks():
    text = "a" * 30 + "\n\n" + "b" * 30
    pieces = split_text(text, 40)
    assert pieces[0] == "a" * 30 + "\n\n"
    assert pieces[1] == "b" * 30


def test_split_text_rejects_non_positive():
    with pytest.raises(ValueError):
        split_text("abc", 0)


def test_chunk_rule_document_ids_and_metadata():
    chunks = chunk_rule_document("file123", "House style", RULES, max_chars=120)
    assert chunks
    for i, c in enumerate(chunks):
        assert c.id == f"file123-{i}"
        assert c.chunk_index == i
        assert c.title == "House style"
        assert c.source_id == "file123"
        assert c.text.strip()


def test_chunk_rule_document_skips_blank():
    assert chunk_rule_document("f", "t", "   \n\n  ", max_chars=10) == []


def test_sliding_windows_overlap_and_coverage():
    text = "abcdefghijklmnopqrstuvwxy"  # 25 chars
    windows = sliding_windows(text, size=10, overlap=3)
    assert [o for o, _ in windows] == [0, 7, 14, 21]
    assert all(len(w) <= 10 for _, w in windows)
    for (o1, w1), (o2, _) in zip(windows, windows[1:]):
        assert o1 + len(w1) - o2 == 3
    last_off, last = windows[-1]
    assert last_off + len(last) == len(text)
    for off, w in windows:
        assert text[off:off + len(w)] == w


def test_sliding_windows_short_and_empty():
    assert sliding_windows("short", 10, 2) == [(0, "short")]
    assert sliding_windows("", 10, 2) == []


@pytest.mark.parametrize("size,overlap", [(10, 10), (10, 11), (10, -1), (0, 0)])
def test_sliding_windows_rejects_bad_overlap(size, overlap):
    with pytest.raises(ValueError):
        sliding_windows("abcdefghijkl", size, overlap)
