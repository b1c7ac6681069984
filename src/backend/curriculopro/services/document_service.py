"""PDF rendering for improved résumés and cover letters (ReportLab)."""

import html
import io
import re
import unicodedata
from datetime import date

from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

MARGIN = 50
HEADING_MAX_CHARS = 50

PT_BR_MONTHS = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

STYLES = {
    "title": ParagraphStyle("title", fontName="Helvetica-Bold", fontSize=20, leading=24, alignment=TA_CENTER, spaceAfter=14),
    "letter_title": ParagraphStyle("letter_title", fontName="Helvetica-Bold", fontSize=18, leading=22, alignment=TA_CENTER, spaceAfter=24),
    "heading": ParagraphStyle("heading", fontName="Helvetica-Bold", fontSize=14, leading=18, spaceBefore=6, spaceAfter=4),
    "body": ParagraphStyle("body", fontName="Helvetica", fontSize=11, leading=14, alignment=TA_LEFT, spaceAfter=2),
    "justified": ParagraphStyle("justified", fontName="Helvetica", fontSize=11, leading=15, alignment=TA_JUSTIFY, spaceAfter=11),
    "date": ParagraphStyle("date", fontName="Helvetica", fontSize=10, leading=12, alignment=TA_RIGHT, spaceAfter=18),
}


def _new_doc(buffer: io.BytesIO, title: str) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=title,
        author="CurriculoPro IA",
    )


def is_heading(line: str) -> bool:
    """Short upper-case lines and ---/=== banners are section headings."""
    if len(line) >= HEADING_MAX_CHARS:
        return False
    if "---" in line or "===" in line:
        return True
    return any(c.isalpha() for c in line) and line == line.upper()


def render_resume_pdf(text: str) -> bytes:
    buffer = io.BytesIO()
    doc = _new_doc(buffer, "Currículo")
    story = [Paragraph("CURRÍCULO", STYLES["title"])]

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            story.append(Spacer(1, 6))
        elif is_heading(line):
            heading = re.sub(r"[-=]", "", line).strip()
            if heading:
                story.append(Paragraph(html.escape(heading), STYLES["heading"]))
        else:
            story.append(Paragraph(html.escape(line), STYLES["body"]))

    doc.build(story)
    return buffer.getvalue()


def format_pt_br_date(day: date) -> str:
    return f"{day.day:02d} de {PT_BR_MONTHS[day.month - 1]} de {day.year}"


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]


def render_cover_letter_pdf(text: str, today: date | None = None) -> bytes:
    buffer = io.BytesIO()
    doc = _new_doc(buffer, "Carta de Apresentação")
    story = [
        Paragraph("CARTA DE APRESENTAÇÃO", STYLES["letter_title"]),
        Paragraph(format_pt_br_date(today or date.today()), STYLES["date"]),
    ]

    for index, paragraph in enumerate(split_paragraphs(text)):
        # a short opening paragraph is the salutation
        style = STYLES["body"] if index == 0 and len(paragraph) < 100 else STYLES["justified"]
        story.append(Paragraph(html.escape(paragraph).replace("\n", "<br/>"), style))
        if style is STYLES["body"]:
            story.append(Spacer(1, 11))

    story += [
        Spacer(1, 24),
        Paragraph("Atenciosamente,", STYLES["body"]),
        Spacer(1, 20),
        Paragraph("___________________________", STYLES["body"]),
    ]
    doc.build(story)
    return buffer.getvalue()


def safe_file_stem(name: str | None, default: str = "") -> str:
    """ASCII slug for download file names: 'José da Silva' -> 'jose-da-silva'."""
    if not name:
        return default
    ascii_name = unicodedata.normalize("NFD", name).encode("ascii", "ignore").decode()
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", "", ascii_name).strip()
    slug = re.sub(r"\s+", "-", cleaned).lower()
    return slug or default
