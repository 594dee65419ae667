"""
Pytest configuration and fixtures for formmapper tests.

Template PDFs are built in memory with PyMuPDF widgets so the suite does not
depend on binary files checked into the repository.
"""

import io
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import fitz
import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NumberObject,
    TextStringObject,
)

from formmapper.known_forms import W9_FORM


# ============================================================================
# PDF BUILDERS
# ============================================================================

def add_widget(
    page: fitz.Page,
    field_type: int,
    name: str,
    rect: Sequence[float],
    value: Any = None,
    choices: Optional[List[str]] = None,
) -> None:
    widget = fitz.Widget()
    widget.field_type = field_type
    widget.field_name = name
    widget.rect = fitz.Rect(*rect)
    if choices is not None:
        widget.choice_values = choices
    if value is not None:
        widget.field_value = value
    page.add_widget(widget)


def build_pdf(field_specs: Sequence[Dict[str, Any]], pages: int = 1) -> bytes:
    """Build a PDF with one widget per spec dict (type, name, value, choices, page)."""

    doc = fitz.open()
    for _ in range(pages):
        doc.new_page()
    for index, spec in enumerate(field_specs):
        page = doc[spec.get("page", 0)]
        top = 40 + (index % 15) * 40
        add_widget(
            page,
            spec["type"],
            spec["name"],
            (72, top, 300, top + 22),
            value=spec.get("value"),
            choices=spec.get("choices"),
        )
    data = doc.tobytes()
    doc.close()
    return data


# ============================================================================
# SAMPLE TEMPLATES
# ============================================================================

SAMPLE_FIELDS = [
    {"type": fitz.PDF_WIDGET_TYPE_TEXT, "name": "customer_name", "value": "Original"},
    {"type": fitz.PDF_WIDGET_TYPE_TEXT, "name": "topmostSubform[0].Page1[0].quoteTotal[0]", "value": ""},
    {"type": fitz.PDF_WIDGET_TYPE_CHECKBOX, "name": "agree_terms", "value": False},
    {
        "type": fitz.PDF_WIDGET_TYPE_COMBOBOX,
        "name": "building_type",
        "value": "Office",
        "choices": ["Office", "Retail", "Warehouse"],
    },
    {
        "type": fitz.PDF_WIDGET_TYPE_LISTBOX,
        "name": "service_area",
        "value": "South",
        "choices": ["North", "South", "East"],
    },
]


@pytest.fixture
def pdf_builder():
    return build_pdf


@pytest.fixture
def sample_form_pdf() -> bytes:
    """A five-field template: two text, one checkbox, one dropdown, one list."""
    return build_pdf(SAMPLE_FIELDS)


@pytest.fixture
def two_page_form_pdf() -> bytes:
    return build_pdf(
        [
            {"type": fitz.PDF_WIDGET_TYPE_TEXT, "name": "page_one_name"},
            {"type": fitz.PDF_WIDGET_TYPE_TEXT, "name": "page_two_name", "page": 1},
        ],
        pages=2,
    )


@pytest.fixture
def plain_pdf() -> bytes:
    """A PDF with text but no form fields."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Terms and conditions")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def user_password_pdf(sample_form_pdf) -> bytes:
    doc = fitz.open(stream=sample_form_pdf, filetype="pdf")
    data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, user_pw="secret", owner_pw="owner-secret")
    doc.close()
    return data


@pytest.fixture
def owner_password_pdf(sample_form_pdf) -> bytes:
    """Encrypted, but opens without a password (owner restrictions only)."""
    doc = fitz.open(stream=sample_form_pdf, filetype="pdf")
    data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, user_pw="", owner_pw="owner-secret")
    doc.close()
    return data


# ============================================================================
# RADIO GROUPS
# ============================================================================

def _appearance(writer: PdfWriter, content: bytes) -> IndirectObject:
    stream = DecodedStreamObject()
    stream.set_data(content)
    stream.update(
        {
            NameObject("/Type"): NameObject("/XObject"),
            NameObject("/Subtype"): NameObject("/Form"),
            NameObject("/BBox"): ArrayObject([FloatObject(0), FloatObject(0), FloatObject(16), FloatObject(16)]),
        }
    )
    return writer._add_object(stream)


def build_radio_pdf(name: str, states: Sequence[str], selected: Optional[str] = None) -> bytes:
    """Build a single-page PDF holding one radio group with a kid per state."""

    writer = PdfWriter()
    page = writer.add_blank_page(width=612, height=792)
    parent = DictionaryObject(
        {
            NameObject("/FT"): NameObject("/Btn"),
            NameObject("/Ff"): NumberObject((1 << 15) | (1 << 14)),
            NameObject("/T"): TextStringObject(name),
            NameObject("/V"): NameObject(f"/{selected}" if selected else "/Off"),
            NameObject("/Kids"): ArrayObject(),
        }
    )
    parent_ref = writer._add_object(parent)
    off_ap = _appearance(writer, b"")
    annots = ArrayObject()
    for index, state in enumerate(states):
        on_ap = _appearance(writer, b"0 g 4 4 8 8 re f")
        left = 72 + index * 40
        kid = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Annot"),
                NameObject("/Subtype"): NameObject("/Widget"),
                NameObject("/Parent"): parent_ref,
                NameObject("/F"): NumberObject(4),
                NameObject("/Rect"): ArrayObject(
                    [FloatObject(left), FloatObject(700), FloatObject(left + 16), FloatObject(716)]
                ),
                NameObject("/AS"): NameObject(f"/{state}" if state == selected else "/Off"),
                NameObject("/DA"): TextStringObject("/ZaDb 0 Tf 0 g"),
                NameObject("/MK"): DictionaryObject({NameObject("/CA"): TextStringObject("l")}),
                NameObject("/AP"): DictionaryObject(
                    {NameObject("/N"): DictionaryObject({NameObject(f"/{state}"): on_ap, NameObject("/Off"): off_ap})}
                ),
            }
        )
        kid_ref = writer._add_object(kid)
        parent["/Kids"].append(kid_ref)
        annots.append(kid_ref)
    page[NameObject("/Annots")] = annots

    zadb = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/ZapfDingbats"),
        }
    )
    writer._root_object[NameObject("/AcroForm")] = DictionaryObject(
        {
            NameObject("/Fields"): ArrayObject([parent_ref]),
            NameObject("/DA"): TextStringObject("/Helv 0 Tf 0 g"),
            NameObject("/DR"): DictionaryObject(
                {NameObject("/Font"): DictionaryObject({NameObject("/ZaDb"): writer._add_object(zadb)})}
            ),
        }
    )
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def radio_builder():
    return build_radio_pdf


@pytest.fixture
def radio_form_pdf() -> bytes:
    """One radio group ``building_kind``: Residential (selected) or Commercial."""
    return build_radio_pdf("building_kind", ["Residential", "Commercial"], selected="Residential")


W9_FIELD_NAMES = [
    "topmostSubform[0].Page1[0].f1_1[0]",
    "topmostSubform[0].Page1[0].f1_2[0]",
    "topmostSubform[0].Page1[0].Address[0].f1_7[0]",
    "topmostSubform[0].Page1[0].Address[0].f1_8[0]",
    "topmostSubform[0].Page1[0].f1_9[0]",
    "topmostSubform[0].Page1[0].f1_10[0]",
    "topmostSubform[0].Page1[0].EmployerID[0].f1_14[0]",
    "topmostSubform[0].Page1[0].EmployerID[0].f1_15[0]",
]


@pytest.fixture
def w9_field_names() -> List[str]:
    return list(W9_FIELD_NAMES)


@pytest.fixture
def w9_pdf() -> bytes:
    return build_pdf([{"type": fitz.PDF_WIDGET_TYPE_TEXT, "name": name} for name in W9_FIELD_NAMES])


@pytest.fixture
def w9_form():
    return W9_FORM


# ============================================================================
# DATA CONTEXT
# ============================================================================

@pytest.fixture
def fixed_today() -> date:
    return date(2024, 3, 7)


@pytest.fixture
def data_context() -> Dict[str, Any]:
    return {
        "customer": {
            "name": "Acme",
            "business_name": "Acme Lighting LLC",
            "address": "100 Main St",
            "account_number": "ACCT-77",
            "active": True,
        },
        "provider": {"provider_name": "Salt River Project"},
        "quote": {"total": 1250.0, "status": None},
        "lines": [
            {"quantity": 2, "line_total": 50},
            {"quantity": 3, "line_total": 75},
        ],
        "audit_areas": [
            {"area_name": "Lobby", "fixture_count": 4},
            {"area_name": "Warehouse", "fixture_count": None},
            {"area_name": "Office", "fixture_count": 8},
        ],
    }
