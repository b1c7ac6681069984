"""Tests for upload text extraction and PDF rendering."""

import io
from datetime import date

import docx
import fitz  # PyMuPDF
import pytest

from curriculopro.core.errors import ExtractionError
from curriculopro.services import document_service, file_service


class TestExtraction:
    def test_plain_text(self):
        assert file_service.extract_text("cv.txt", "text/plain", "  Maria Souza\n".encode()) == "Maria Souza"

    def test_pdf(self):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Maria Souza - Desenvolvedora")
        data = doc.tobytes()
        doc.close()
        assert "Maria Souza" in file_service.extract_text("cv.pdf", "application/pdf", data)

    def test_docx_with_generic_content_type(self):
        document = docx.Document()
        document.add_paragraph("Experiência em Python")
        buffer = io.BytesIO()
        document.save(buffer)
        text = file_service.extract_text("cv.docx", "application/octet-stream", buffer.getvalue())
        assert "Experiência em Python" in text

    def test_unsupported_format(self):
        with pytest.raises(ExtractionError) as exc_info:
            file_service.extract_text("foto.png", "image/png", b"\x89PNG")
        assert exc_info.value.status_code == 400

    def test_non_utf8_text(self):
        with pytest.raises(ExtractionError):
            file_service.extract_text("cv.txt", "text/plain", "Currículo".encode("latin-1"))

    def test_content_type_parameters_ignored(self):
        assert file_service.resolve_content_type("cv.txt", "text/plain; charset=utf-8") == "text/plain"


class TestPdfRendering:
    @pytest.mark.parametrize(
        "line,expected",
        [
            ("EXPERIÊNCIA PROFISSIONAL", True),
            ("--- Formação ---", True),
            ("Desenvolvedora Python na Acme", False),
            ("2020 - 2024", False),
            ("UMA LINHA EM MAIÚSCULAS QUE É LONGA DEMAIS PARA SER TÍTULO", False),
        ],
    )
    def test_is_heading(self, line, expected):
        assert document_service.is_heading(line) is expected

    def test_resume_pdf_is_readable(self):
        pdf = document_service.render_resume_pdf("MARIA SOUZA\n\nEXPERIÊNCIA\nDesenvolvedora <Python> & SQL")
        assert pdf.startswith(b"%PDF")
        text = file_service.extract_text_from_pdf(pdf)
        assert "Desenvolvedora <Python> & SQL" in text

    def test_cover_letter_pdf_has_date_and_closing(self):
        pdf = document_service.render_cover_letter_pdf(
            "Prezados,\n\nTenho interesse na vaga.\n\nObrigada.", today=date(2026, 10, 5)
        )
        text = file_service.extract_text_from_pdf(pdf)
        assert "05 de outubro de 2026" in text
        assert "Atenciosamente," in text

    def test_pt_br_date(self):
        assert document_service.format_pt_br_date(date(2026, 12, 25)) == "25 de dezembro de 2026"

    def test_split_paragraphs(self):
        assert document_service.split_paragraphs("A\nB\n\n  \nC\n") == ["A\nB", "C"]


class TestFileStem:
    def test_accents_and_spaces(self):
        assert document_service.safe_file_stem("José da Silva") == "jose-da-silva"

    def test_symbols_removed(self):
        assert document_service.safe_file_stem("Ana (Dev) O'Neil") == "ana-dev-oneil"

    def test_empty_uses_default(self):
        assert document_service.safe_file_stem(None, "curriculo") == "curriculo"
        assert document_service.safe_file_stem("!!!", "curriculo") == "curriculo"
