import fitz

from docpilot.services.html_parser import extract_text_from_html
from docpilot.services.pdf_parser import extract_text_from_pdf


def test_html_blocks_and_list_items():
    html = b"""<html><head><style>p{color:red}</style></head><body>
    <h2>Numbers</h2><p>Spell out <b>one</b> to nine.</p><p> </p>
    <ol><li>Use numerals for 10+</li></ol><script>var x = 1;</script></body></html>"""
    assert extract_text_from_html(html) == "Numbers\n\nSpell out one to nine.\n\n• Use numerals for 10+"


def test_html_without_blocks_falls_back_to_text():
    assert extract_text_from_html(b"<html><body><div>Just a div</div></body></html>") == "Just a div"


def test_pdf_pages_joined():
    doc = fitz.open()
    for text in ("Dates rule", "Tone rule"):
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    assert extract_text_from_pdf(data) == "Dates rule\n\nTone rule"
