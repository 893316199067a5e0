"""Tests for PDF export."""

import pytest

from ezwrite.export import ExportError, write_export
from ezwrite.pdf_export import PDFExporter
from ezwrite.strike import mark


def page_count(pdf: bytes) -> int:
    return pdf.count(b"/Type /Page") - pdf.count(b"/Type /Pages")


def test_basic_pdf_generation():
    pdf = PDFExporter().generate_pdf(["# Title", "list", "milk", mark("eggs"), "line",
                                      "timer 5", "some **bold** text"])
    assert pdf.startswith(b"%PDF")
    assert b"/Font" in pdf
    assert page_count(pdf) == 1


def test_long_document_paginates():
    pdf = PDFExporter().generate_pdf([f"line {i}" for i in range(200)])
    assert page_count(pdf) > 1


def test_unprintable_characters_are_reported():
    exporter = PDFExporter()
    exporter.generate_pdf(["smile ☺"])
    assert exporter.has_unprintable
    assert "U+263A" in exporter.get_unprintable_warning()


def test_printable_text_has_no_warning():
    exporter = PDFExporter()
    exporter.generate_pdf(["café"])
    assert exporter.get_unprintable_warning() is None


def test_write_pdf(tmp_path):
    target = write_export(["hello"], "pdf", tmp_path / "out.pdf")
    assert target.read_bytes().startswith(b"%PDF")


def test_write_pdf_to_missing_directory(tmp_path):
    with pytest.raises(ExportError):
        PDFExporter().write(["hello"], tmp_path / "missing" / "out.pdf")
