"""Tests for fill_pdf (PyMuPDF) and the backend dispatcher."""

import fitz
import pytest

from formmapper.filler import (
    FieldWriteError,
    UnsupportedBackendError,
    _write_radio,
    fill_document,
    fill_pdf,
    is_truthy,
    match_choice,
    normalize_values,
)
from formmapper.parser import extract_fields


def _values_by_name(pdf_bytes):
    return {f.name: f.current_value for f in extract_fields(pdf_bytes)}


class FakeRadioKid:
    field_type = fitz.PDF_WIDGET_TYPE_RADIOBUTTON

    def __init__(self, state, value=False):
        self._state = state
        self.field_value = value
        self.updates = 0

    def on_state(self):
        return self._state

    def update(self):
        self.updates += 1


class TestFillPdf:

    def test_typed_writes(self, sample_form_pdf):
        result = fill_pdf(
            sample_form_pdf,
            {
                "customer_name": "Acme",
                "agree_terms": "YES",
                "building_type": "Retail",
                "service_area": "North",
            },
        )
        values = _values_by_name(result.pdf_bytes)
        assert values["customer_name"] == "Acme"
        assert values["agree_terms"] == "true"
        assert values["building_type"] == "Retail"
        assert values["service_area"] == "North"
        assert sorted(result.filled) == ["agree_terms", "building_type", "customer_name", "service_area"]
        assert result.warnings == []

    def test_every_field_changes_with_full_values(self, sample_form_pdf):
        before = _values_by_name(sample_form_pdf)
        result = fill_pdf(
            sample_form_pdf,
            {
                "customer_name": "Acme",
                "topmostSubform[0].Page1[0].quoteTotal[0]": "125",
                "agree_terms": "true",
                "building_type": "Warehouse",
                "service_area": "East",
            },
        )
        after = _values_by_name(result.pdf_bytes)
        assert all(after[name] != before[name] for name in before)

    def test_unchecking(self, sample_form_pdf):
        checked = fill_pdf(sample_form_pdf, {"agree_terms": "on"}).pdf_bytes
        assert _values_by_name(checked)["agree_terms"] == "true"
        unchecked = fill_pdf(checked, {"agree_terms": "nope"}).pdf_bytes
        assert _values_by_name(unchecked)["agree_terms"] == "false"

    def test_invalid_dropdown_option_is_a_warning(self, sample_form_pdf):
        result = fill_pdf(sample_form_pdf, {"building_type": "Castle", "customer_name": "Acme"})
        values = _values_by_name(result.pdf_bytes)
        assert values["building_type"] == "Office"
        assert values["customer_name"] == "Acme"
        assert [w.field_name for w in result.warnings] == ["building_type"]
        assert "Castle" in result.warnings[0].message
        assert result.filled == ["customer_name"]

    def test_empty_values_are_skipped(self, sample_form_pdf):
        result = fill_pdf(sample_form_pdf, {"customer_name": "", "building_type": None})
        assert _values_by_name(result.pdf_bytes)["customer_name"] == "Original"
        assert sorted(result.skipped) == ["building_type", "customer_name"]
        assert result.filled == []

    def test_unknown_field_is_skipped_silently(self, sample_form_pdf):
        result = fill_pdf(sample_form_pdf, {"not_in_this_revision": "x"})
        assert result.skipped == ["not_in_this_revision"]
        assert result.warnings == []

    def test_non_string_values_are_stringified(self, sample_form_pdf):
        result = fill_pdf(sample_form_pdf, {"customer_name": 125.0, "agree_terms": True})
        values = _values_by_name(result.pdf_bytes)
        assert values["customer_name"] == "125"
        assert values["agree_terms"] == "true"

    def test_input_bytes_untouched(self, sample_form_pdf):
        original = bytes(sample_form_pdf)
        result = fill_pdf(sample_form_pdf, {"customer_name": "Acme"})
        assert sample_form_pdf == original
        assert result.pdf_bytes != original

    def test_second_page_field(self, two_page_form_pdf):
        result = fill_pdf(two_page_form_pdf, {"page_two_name": "Back page"})
        assert _values_by_name(result.pdf_bytes)["page_two_name"] == "Back page"


class TestRadioWriter:

    def test_selects_matching_kid(self):
        kids = [FakeRadioKid("Residential", True), FakeRadioKid("Commercial")]
        _write_radio(kids, "Commercial")
        assert kids[0].field_value is False
        assert kids[1].field_value is True

    def test_unmatched_option_raises_before_writing(self):
        kids = [FakeRadioKid("Residential", True), FakeRadioKid("Commercial")]
        with pytest.raises(FieldWriteError):
            _write_radio(kids, "Industrial")
        assert kids[0].field_value is True
        assert all(k.updates == 0 for k in kids)


def test_helpers():
    assert is_truthy(" Yes ")
    assert not is_truthy("checked")
    assert match_choice("Retail", ("Office", "Retail"), {}) == "Retail"
    assert match_choice("Retail store", ("R",), {"Retail store": "R"}) == "R"
    with pytest.raises(FieldWriteError):
        match_choice("x", ("a",), {})
    assert normalize_values({"a": "", "b": 0, "c": None}) == ({"b": "0"}, ["a", "c"])


class TestFillDocument:

    def test_default_backend(self, sample_form_pdf, monkeypatch):
        monkeypatch.delenv("FORMMAPPER_FILL_BACKEND", raising=False)
        result = fill_document(sample_form_pdf, {"customer_name": "Acme"})
        assert _values_by_name(result.pdf_bytes)["customer_name"] == "Acme"

    def test_backend_from_environment(self, sample_form_pdf, monkeypatch):
        monkeypatch.setenv("FORMMAPPER_FILL_BACKEND", "pypdf")
        result = fill_document(sample_form_pdf, {"customer_name": "Acme"})
        assert result.filled == ["customer_name"]

    def test_unknown_backend(self, sample_form_pdf):
        with pytest.raises(UnsupportedBackendError):
            fill_document(sample_form_pdf, {}, backend="pdfbox")


class TestRadioGroupFill:

    @pytest.mark.parametrize("backend", ["pymupdf", "pypdf"])
    @pytest.mark.parametrize("option", ["Residential", "Commercial"])
    def test_selects_each_option(self, radio_form_pdf, backend, option):
        result = fill_document(radio_form_pdf, {"building_kind": option}, backend=backend)
        assert result.filled == ["building_kind"]
        assert result.warnings == []
        assert _values_by_name(result.pdf_bytes)["building_kind"] == option

    @pytest.mark.parametrize("backend", ["pymupdf", "pypdf"])
    def test_unmatched_option_keeps_prior_state(self, radio_form_pdf, backend):
        result = fill_document(radio_form_pdf, {"building_kind": "Industrial"}, backend=backend)
        assert result.filled == []
        assert [w.field_name for w in result.warnings] == ["building_kind"]
        assert "Industrial" in result.warnings[0].message
        assert _values_by_name(result.pdf_bytes)["building_kind"] == "Residential"
