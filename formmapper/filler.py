"""Write resolved values back into a copy of a PDF template."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import fitz

from .models import FieldWarning, FillResult, WidgetKind
from .parser import PdfSource, choice_display_map, choice_options, on_state, open_document, widget_kind_for, widget_name
from .resolver import stringify
from .settings import FILL_BACKENDS, get_logger, load_settings

logger = get_logger(__name__)

TRUTHY = frozenset({"true", "1", "yes", "on"})


class FieldWriteError(Exception):
    """A single field could not take the given value."""


class UnsupportedBackendError(ValueError):
    pass


def is_truthy(value: str) -> bool:
    return value.strip().lower() in TRUTHY


def normalize_values(values: Mapping[str, Any]) -> Tuple[Dict[str, str], List[str]]:
    """Drop empty entries and stringify the rest. Returns (values, skipped names)."""

    kept: Dict[str, str] = {}
    skipped: List[str] = []
    for name, value in values.items():
        if value is None or value == "":
            skipped.append(name)
            continue
        kept[name] = stringify(value)
    return kept, skipped


def match_choice(value: str, options: Tuple[str, ...], display_map: Mapping[str, str]) -> str:
    """Return the export value matching ``value`` by export or display text."""

    if value in options:
        return value
    if value in display_map:
        return display_map[value]
    raise FieldWriteError(f"'{value}' is not one of the options {list(options)}")


def _index_fields(doc: fitz.Document) -> Dict[str, Tuple[WidgetKind, List[int]]]:
    """Map each field name to its kind and the pages its widgets sit on."""

    index: Dict[str, Tuple[WidgetKind, List[int]]] = {}
    for page in doc:
        for widget in page.widgets() or []:
            name = widget_name(widget)
            if not name:
                continue
            if name not in index:
                index[name] = (widget_kind_for(widget), [])
            pages = index[name][1]
            if page.number not in pages:
                pages.append(page.number)
    return index


def _iter_page_widgets_by_name(page: fitz.Page, name: str) -> List[fitz.Widget]:
    """Return fresh widget objects on a page matching the given field name.

    Avoids keeping stale widget references which can cause weakref errors.
    """
    return [w for w in page.widgets() or [] if widget_name(w) == name]


def _write_text(widgets: List[fitz.Widget], value: str) -> None:
    for widget in widgets:
        widget.field_value = value
        widget.update()


def _write_checkbox(widgets: List[fitz.Widget], value: str) -> None:
    checked = is_truthy(value)
    for widget in widgets:
        if checked:
            widget.field_value = on_state(widget) or True
        else:
            widget.field_value = "Off"
        widget.update()


def _write_choice(widgets: List[fitz.Widget], value: str) -> None:
    first = widgets[0]
    target = match_choice(value, choice_options(first), choice_display_map(first))
    for widget in widgets:
        widget.field_value = target
        widget.update()


def _write_radio(widgets: List[fitz.Widget], value: str) -> None:
    states = [on_state(w) for w in widgets]
    if value not in states:
        raise FieldWriteError(f"'{value}' is not one of the options {[s for s in states if s]}")
    chosen = None
    for widget, state in zip(widgets, states):
        if state == value and chosen is None:
            chosen = widget
            continue
        widget.field_value = False
        widget.update()
    chosen.field_value = True
    chosen.update()


_WRITERS = {
    WidgetKind.TEXT: _write_text,
    WidgetKind.CHECKBOX: _write_checkbox,
    WidgetKind.DROPDOWN: _write_choice,
    WidgetKind.OPTION_LIST: _write_choice,
    WidgetKind.RADIO_GROUP: _write_radio,
}


def fill_pdf(source: PdfSource, values: Mapping[str, Any]) -> FillResult:
    """Fill the template with ``field name -> value`` and return a new document.

    Empty values and names the document does not have are skipped. A field
    that cannot take its value keeps its prior value and is reported as a
    warning; it never aborts the other fields.

    Parameters
    ----------
    source:
        Template PDF as bytes, a path, or a binary stream. It is not modified.
    values:
        Mapping of AcroForm field names to values.

    Returns
    -------
    FillResult
        Serialized PDF bytes plus the filled, skipped and warned field names.
    """

    to_write, skipped = normalize_values(values)
    doc = open_document(source)
    result = FillResult(pdf_bytes=b"", skipped=skipped)
    try:
        index = _index_fields(doc)
        logger.info("Filling %d of %d values into %d form fields", len(to_write), len(values), len(index))
        for name, value in to_write.items():
            entry = index.get(name)
            if entry is None:
                logger.debug("No field named '%s' in this document; skipping", name)
                result.skipped.append(name)
                continue
            kind, page_numbers = entry
            writer = _WRITERS.get(kind)
            try:
                if writer is None:
                    raise FieldWriteError(f"unsupported widget kind '{kind.value}'")
                # pages stay referenced while their widgets are written
                pages = [doc[number] for number in page_numbers]
                widgets = [w for page in pages for w in _iter_page_widgets_by_name(page, name)]
                writer(widgets, value)
                result.filled.append(name)
                logger.debug("Filled %s field '%s' with '%s'", kind.value, name, value)
            except Exception as e:
                logger.warning("Could not fill field '%s': %s", name, e)
                result.warnings.append(FieldWarning(name, str(e)))
        result.pdf_bytes = doc.tobytes(deflate=True, garbage=4)
    finally:
        doc.close()
    logger.info(
        "Fill complete: %d filled, %d skipped, %d warnings",
        len(result.filled),
        len(result.skipped),
        len(result.warnings),
    )
    return result


def fill_document(source: PdfSource, values: Mapping[str, Any], backend: Optional[str] = None) -> FillResult:
    """Fill with the configured backend (``FORMMAPPER_FILL_BACKEND``)."""

    name = (backend or load_settings().fill_backend).lower()
    if name == "pymupdf":
        return fill_pdf(source, values)
    if name == "pypdf":
        from .filler_pypdf import fill_pdf_acroform

        return fill_pdf_acroform(source, values)
    raise UnsupportedBackendError(f"Unknown fill backend '{name}'; expected one of {FILL_BACKENDS}")


__all__ = [
    "FieldWriteError",
    "TRUTHY",
    "UnsupportedBackendError",
    "fill_document",
    "fill_pdf",
    "is_truthy",
    "match_choice",
    "normalize_values",
]
