"""Shared lab report PDFs, drawn with reportlab so both PDF engines read them."""

import io

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

LINE_HEIGHT = 18

CHEMISTRY_LINES = (
    "Laboratory Report",
    "Patient: Jane Doe    DOB: 1985-03-12",
    "Glucose            92   mg/dL    70-99",
    "Total Cholesterol  180  mg/dL    <200",
    "HDL                55   mg/dL    >40",
)

CBC_LINES = (
    "Complete Blood Count",
    "Hemoglobin         13.8 g/dL     12.0-15.5",
    "WBC                6.1  10^3/uL  4.0-11.0",
)

LIPID_LINES = (
    "Lipid Panel",
    "LDL Cholesterol    110  mg/dL    <130",
    "Triglycerides      140  mg/dL    <150",
)


def _draw_pages(*pages: tuple[str, ...]) -> bytes:
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    top = A4[1] - 72
    for lines in pages:
        for offset, line in enumerate(lines):
            pdf.drawString(72, top - offset * LINE_HEIGHT, line)
        pdf.showPage()
    pdf.save()
    return buf.getvalue()


@pytest.fixture()
def lab_report_pdf_bytes() -> bytes:
    """One-page chemistry report with a text layer."""
    return _draw_pages(CHEMISTRY_LINES)


@pytest.fixture()
def two_page_lab_report_pdf_bytes() -> bytes:
    """CBC on page one, lipid panel on page two."""
    return _draw_pages(CBC_LINES, LIPID_LINES)


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    """A page with no text layer, like a scan without OCR."""
    return _draw_pages(())
