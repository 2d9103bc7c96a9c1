from docpilot.services.providers.google_docs import DocumentText, hex_to_rgb, text_style_request, utf16_len

DOC = {
    "title": "Launch post",
    "body": {"content": [
        {"endIndex": 1, "sectionBreak": {}},
        {"startIndex": 1, "endIndex": 14, "paragraph": {"elements": [
            {"startIndex": 1, "endIndex": 7, "textRun": {"content": "Hello "}},
            {"startIndex": 7, "endIndex": 14, "textRun": {"content": "world.\n"}},
        ]}},
        {"startIndex": 14, "endIndex": 31, "paragraph": {"elements": [
            # the emoji takes two UTF-16 code units
            {"startIndex": 14, "endIndex": 31, "textRun": {"content": "We 🚀 utilise it\n"}},
        ]}},
    ]},
}


def test_from_document_flattens_text():
    doc = DocumentText.from_document(DOC)
    assert doc.title == "Launch post"
    assert doc.text == "Hello world.\nWe 🚀 utilise it\n"
    assert doc.end_index == 31


def test_locate_across_runs():
    doc = DocumentText.from_document(DOC)
    assert doc.locate("Hello world") == (1, 12)


def test_locate_after_astral_character_uses_utf16():
    doc = DocumentText.from_document(DOC)
    # "We " = 3 units, rocket = 2, space = 1 -> "utilise" starts at 14 + 6
    assert doc.locate("utilise") == (20, 27)


def test_locate_missing():
    doc = DocumentText.from_document(DOC)
    assert doc.locate("nowhere") is None
    assert doc.locate("") is None


def test_utf16_len_and_colors():
    assert utf16_len("abc") == 3
    assert utf16_len("🚀") == 2
    assert hex_to_rgb("#ff0000") == {"red": 1.0, "green": 0.0, "blue": 0.0}
    assert hex_to_rgb("fff") == {"red": 1.0, "green": 1.0, "blue": 1.0}


def test_text_style_request_clears_background():
    req = text_style_request(5, 9, bold=False, size_pt=8, clear_background=True)["updateTextStyle"]
    assert req["range"] == {"startIndex": 5, "endIndex": 9}
    assert "backgroundColor" in req["fields"].split(",")
    assert "backgroundColor" not in req["textStyle"]
    assert req["textStyle"]["fontSize"] == {"magnitude": 8, "unit": "PT"}
