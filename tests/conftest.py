from pathlib import Path
from typing import List

import fitz  # PyMuPDF
import pytest


def write_pdf(path: Path, pages: List[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=12)
    doc.save(path)
    doc.close()
    return path


@pytest.fixture
def make_pdf():
    return write_pdf
