"""Word and Excel exports of convention records."""
from __future__ import annotations

import io
import re
from typing import List, Sequence, Tuple
from urllib.parse import quote

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt
from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .repository import UNSPECIFIED
from .schemas import ConventionRead

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FONT_NAME = "Arial"


def _text(value) -> str:
    if value is None or value == "":
        return UNSPECIFIED
    return str(value)


def _joined(values: Sequence[str]) -> str:
    return ", ".join(values) if values else UNSPECIFIED


def _money(value) -> str:
    return f"{value:,.2f} د.م" if value is not None else UNSPECIFIED


def detail_rows(convention: ConventionRead) -> List[Tuple[str, str]]:
    """(label, value) pairs shown in the Word document."""

    return [
        ("رقم الاتفاقية", _text(convention.convention_number)),
        ("التاريخ", _text(convention.date)),
        ("السنة", _text(convention.year)),
        ("الدورة", _text(convention.session)),
        ("المجال", _text(convention.domain)),
        ("القطاع", _text(convention.sector)),
        ("رقم المقرر", _text(convention.decision_number)),
        ("الحالة", _text(convention.status)),
        ("الكلفة الإجمالية", _money(convention.amount)),
        ("مساهمة الجهة", _money(convention.contribution)),
        ("صاحب المشروع", _text(convention.contractor)),
        ("صاحب المشروع المنتدب", _joined(convention.delegated_project_owner)),
        ("نوعية التنفيذ", _text(convention.execution_type)),
        ("سريان الإتفاقية", _text(convention.validity)),
        ("الاختصاص", _text(convention.jurisdiction)),
        ("العمالة/الإقليم", _joined(convention.province)),
        ("الشركاء", _joined(convention.partners)),
        ("البرنامج", _text(convention.programme)),
    ]


def _rtl_paragraph(paragraph, text: str, size: int, bold: bool = False) -> None:
    # w:bidi precedes w:jc in pPr
    paragraph._p.get_or_add_pPr().append(OxmlElement("w:bidi"))
    paragraph.alignment = WD_ALIGN_PARAGRAPH.RIGHT
    run = paragraph.add_run(text)
    run.bold = bold
    run.font.name = FONT_NAME
    run.font.size = Pt(size)
    r_pr = run._element.get_or_add_rPr()
    r_pr.append(OxmlElement("w:rtl"))
    fonts = r_pr.find(qn("w:rFonts"))
    if fonts is not None:
        fonts.set(qn("w:cs"), FONT_NAME)


def build_convention_docx(convention: ConventionRead) -> bytes:
    """Render one convention as a right-to-left Word document."""

    document = Document()
    _rtl_paragraph(document.add_paragraph(), "الاتفاقية:", 14, bold=True)
    _rtl_paragraph(document.add_paragraph(), _text(convention.description), 12)
    _rtl_paragraph(document.add_paragraph(), "تفاصيل الاتفاقية", 18, bold=True)

    rows = detail_rows(convention)
    table = document.add_table(rows=len(rows), cols=2)
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.RIGHT
    for index, (label, value) in enumerate(rows):
        value_cell, label_cell = table.rows[index].cells
        _rtl_paragraph(value_cell.paragraphs[0], value, 12)
        _rtl_paragraph(label_cell.paragraphs[0], label, 12, bold=True)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def docx_disposition(convention_number: str) -> str:
    """Content-Disposition with an ASCII fallback and a UTF-8 filename."""

    safe = re.sub(r"[^a-zA-Z0-9\-_]", "_", convention_number or "")
    ascii_name = f"convention_{safe}.docx"
    utf8_name = f"اتفاقية_{safe}.docx"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(utf8_name)}"


EXCEL_COLUMNS: List[Tuple[str, str, int]] = [
    ("رقم الاتفاقية", "convention_number", 15),
    ("التاريخ", "date", 15),
    ("السنة", "year", 10),
    ("الدورة", "session", 12),
    ("الاتفاقية", "description", 50),
    ("المجال", "domain", 15),
    ("القطاع", "sector", 20),
    ("رقم المقرر", "decision_number", 18),
    ("الحالة", "status", 12),
    ("الكلفة الإجمالية", "amount", 15),
    ("مساهمة الجهة", "contribution", 15),
    ("صاحب المشروع", "contractor", 20),
    ("صاحب المشروع المنتدب", "delegated_project_owner", 25),
    ("نوعية التنفيذ", "execution_type", 18),
    ("سريان الإتفاقية", "validity", 18),
    ("الاختصاص", "jurisdiction", 12),
    ("البرنامج", "programme", 18),
    ("العمالة/الإقليم", "province", 20),
    ("الشركاء", "partners", 50),
]


def _cell(value):
    if isinstance(value, list):
        return ", ".join(value)
    if value is None:
        return ""
    return value


def build_conventions_workbook(conventions: Sequence[ConventionRead]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Conventions"
    ws.sheet_view.rightToLeft = True

    ws.append([header for header, _, _ in EXCEL_COLUMNS])
    for convention in conventions:
        ws.append([_cell(getattr(convention, attr)) for _, attr, _ in EXCEL_COLUMNS])

    for index, (_, _, width) in enumerate(EXCEL_COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width
    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
