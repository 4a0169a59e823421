"""
文档处理器测试
"""

import pytest
from docx import Document

from geotext_extraction.core.exceptions import (
    DocumentNotFoundException,
    DocumentReadException,
    UnsupportedDocumentFormatException
)
from geotext_extraction.extraction import DocumentProcessor


@pytest.fixture
def processor():
    return DocumentProcessor()


@pytest.fixture
def itinerary_docx(tmp_path):
    doc = Document()
    doc.add_heading("Itinerary", level=1)
    doc.add_paragraph("Day one in Kyoto.")
    doc.add_paragraph("")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "City"
    table.cell(0, 1).text = "Hotel"
    table.cell(1, 0).text = "Osaka"
    table.cell(1, 1).text = "  Namba   Oriental  "
    doc.add_paragraph("Then fly home from Tokyo.")

    path = tmp_path / "itinerary.docx"
    doc.save(str(path))
    return path


def test_read_text(processor, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("From Lisbon to Porto by train.", encoding='utf-8')

    assert processor.process_document(str(path)) == "From Lisbon to Porto by train."


def test_read_markdown(processor, tmp_path):
    path = tmp_path / "notes.MD"
    path.write_text("# Trip\n\nReykjavík and Vík", encoding='utf-8')

    assert "Reykjavík" in processor.process_document(str(path))


def test_read_docx_keeps_body_order(processor, itinerary_docx):
    content = processor.process_document(str(itinerary_docx))

    assert content.split('\n') == [
        "Itinerary",
        "Day one in Kyoto.",
        "City; Hotel",
        "Osaka; Namba Oriental",
        "Then fly home from Tokyo.",
    ]


def test_missing_file(processor, tmp_path):
    with pytest.raises(DocumentNotFoundException):
        processor.process_document(str(tmp_path / "missing.txt"))


def test_unsupported_format(processor, tmp_path):
    path = tmp_path / "data.pdf"
    path.write_bytes(b"%PDF-1.4")

    with pytest.raises(UnsupportedDocumentFormatException):
        processor.process_document(str(path))


def test_bad_encoding(processor, tmp_path):
    path = tmp_path / "latin.txt"
    path.write_bytes("Montréal".encode('latin-1'))

    with pytest.raises(DocumentReadException):
        processor.process_document(str(path))


def test_corrupt_docx(processor, tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"not a zip file")

    with pytest.raises(DocumentReadException):
        processor.process_document(str(path))


def test_metadata(processor, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Oslo", encoding='utf-8')

    assert processor.get_document_metadata(str(path)) == {
        'document_name': 'notes.txt',
        'format': '.txt',
        'size_bytes': 4,
    }
