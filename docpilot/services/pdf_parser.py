import fitz  # PyMuPDF


# Rule documents uploaded to the folder as PDF
def extract_text_from_pdf(file_bytes: bytes) -> str:
    pages = []
    with fitz.open(stream=file_bytes, filetype="pdf") as doc:
        for page in doc:
            text = (page.get_text("text") or "").strip()
            if text:
                pages.append(text)
    return "\n\n".join(pages)
