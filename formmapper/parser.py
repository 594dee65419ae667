"""Read the fillable fields of a PDF template."""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Union, cast

import fitz

from .models import ExtractionResult, FieldDescriptor, FieldWarning, WidgetKind
from .settings import get_logger

logger = get_logger(__name__)

PdfSource = Union[str, bytes, bytearray, BinaryIO]

_OFF_STATES = {"off", "false", ""}

_WIDGET_KIND_PAIRS = {
    "PDF_WIDGET_TYPE_TEXT": WidgetKind.TEXT,
    "PDF_WIDGET_TYPE_CHECKBOX": WidgetKind.CHECKBOX,
    "PDF_WIDGET_TYPE_RADIOBUTTON": WidgetKind.RADIO_GROUP,
    "PDF_WIDGET_TYPE_COMBOBOX": WidgetKind.DROPDOWN,
    "PDF_WIDGET_TYPE_LISTBOX": WidgetKind.OPTION_LIST,
    "PDF_WIDGET_TYPE_BUTTON": WidgetKind.UNKNOWN,
    "PDF_WIDGET_TYPE_SIGNATURE": WidgetKind.UNKNOWN,
}
_WIDGET_KIND_MAP: Dict[int, WidgetKind] = {}
for attr_name, widget_kind in _WIDGET_KIND_PAIRS.items():
    value = getattr(fitz, attr_name, None)
    if isinstance(value, int):
        _WIDGET_KIND_MAP[value] = widget_kind

_WIDGET_KIND_MAP_STR = {
    "text": WidgetKind.TEXT,
    "checkbox": WidgetKind.CHECKBOX,
    "radiobutton": WidgetKind.RADIO_GROUP,
    "combobox": WidgetKind.DROPDOWN,
    "listbox": WidgetKind.OPTION_LIST,
}


class DocumentReadError(Exception):
    """The document could not be opened, or is locked behind a password."""


def open_document(source: PdfSource) -> fitz.Document:
    """Open a PDF permissively.

    Documents that only carry an owner password open as-is; documents that
    need a user password are tried with the empty password before giving up.
    """
    try:
        if isinstance(source, str):
            doc = fitz.open(source)
        elif isinstance(source, (bytes, bytearray)):
            doc = fitz.open(stream=bytes(source), filetype="pdf")
        else:
            doc = fitz.open(stream=cast(BinaryIO, source).read(), filetype="pdf")
    except Exception as exc:
        raise DocumentReadError(f"Unreadable PDF document: {exc}") from exc

    if doc.needs_pass and not doc.authenticate(""):
        doc.close()
        raise DocumentReadError("PDF document is password protected")
    if doc.is_encrypted:
        logger.debug("Opened encrypted document with the empty user password")
    return doc


def widget_name(widget: fitz.Widget) -> Optional[str]:
    name = getattr(widget, "field_name", None)
    if isinstance(name, str):
        cleaned = name.strip()
        return cleaned or None
    return None


def widget_kind_for(widget: fitz.Widget) -> WidgetKind:
    """Tag a widget with its kind. Push buttons and signatures are UNKNOWN."""

    widget_type = getattr(widget, "field_type", None)
    if isinstance(widget_type, int):
        return _WIDGET_KIND_MAP.get(widget_type, WidgetKind.UNKNOWN)
    type_string = getattr(widget, "field_type_string", None)
    if isinstance(type_string, str):
        return _WIDGET_KIND_MAP_STR.get(type_string.strip().lower(), WidgetKind.UNKNOWN)
    return WidgetKind.UNKNOWN


def on_state(widget: fitz.Widget) -> Optional[str]:
    try:
        state = widget.on_state()
    except Exception:
        return None
    if isinstance(state, str) and state.strip():
        return state.strip()
    return None


def is_button_on(widget: fitz.Widget) -> bool:
    """Checked-state getter for checkboxes and radio kids."""

    value = widget.field_value
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip()
    if text.lower() in _OFF_STATES:
        return False
    if widget_kind_for(widget) == WidgetKind.RADIO_GROUP:
        state = on_state(widget)
        return state is None or text == state
    return True


def choice_options(widget: fitz.Widget) -> Tuple[str, ...]:
    """Export values of a choice widget; display-only pairs use the export side."""

    options: List[str] = []
    for choice in getattr(widget, "choice_values", None) or ():
        if isinstance(choice, (list, tuple)):
            if choice:
                options.append(str(choice[0]))
        elif choice is not None:
            options.append(str(choice))
    return tuple(options)


def choice_display_map(widget: fitz.Widget) -> Dict[str, str]:
    """Map display text to export value for choice widgets with paired options."""

    mapping: Dict[str, str] = {}
    for choice in getattr(widget, "choice_values", None) or ():
        if isinstance(choice, (list, tuple)) and len(choice) >= 2:
            mapping[str(choice[1])] = str(choice[0])
    return mapping


def _text_value(widget: fitz.Widget) -> str:
    value = widget.field_value
    return "" if value is None else str(value)


def _selected_value(widget: fitz.Widget) -> str:
    value: Any = widget.field_value
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _read_value(widget: fitz.Widget, kind: WidgetKind) -> str:
    if kind == WidgetKind.TEXT:
        return _text_value(widget)
    if kind == WidgetKind.CHECKBOX:
        return "true" if is_button_on(widget) else "false"
    if kind in {WidgetKind.DROPDOWN, WidgetKind.OPTION_LIST}:
        return _selected_value(widget)
    return ""


class _FieldAccumulator:
    """Collapses widgets that share a field name into one descriptor."""

    def __init__(self, name: str, kind: WidgetKind, page: int) -> None:
        self.name = name
        self.kind = kind
        self.page = page
        self.value = ""
        self.options: List[str] = []

    def add_radio_kid(self, widget: fitz.Widget) -> None:
        state = on_state(widget)
        if state and state not in self.options:
            self.options.append(state)
        if state and is_button_on(widget):
            self.value = state

    def build(self) -> FieldDescriptor:
        return FieldDescriptor(
            name=self.name,
            widget_kind=self.kind,
            current_value=self.value,
            options=tuple(self.options),
            page=self.page,
        )


def extract_fields(source: PdfSource) -> ExtractionResult:
    """Return every fillable field of the document, in document order.

    A document without form fields yields an empty result. Raises
    ``DocumentReadError`` only when the document itself cannot be opened.
    """
    doc = open_document(source)
    result = ExtractionResult()
    accumulators: Dict[str, _FieldAccumulator] = {}
    try:
        for page in doc:
            for widget in page.widgets() or []:
                name = widget_name(widget)
                if not name:
                    logger.debug("Skipping unnamed widget on page %d", page.number)
                    continue
                kind = widget_kind_for(widget)
                acc = accumulators.get(name)
                if acc is None:
                    acc = _FieldAccumulator(name, kind, page.number)
                    accumulators[name] = acc
                    first_widget = True
                else:
                    first_widget = False
                try:
                    if kind == WidgetKind.RADIO_GROUP:
                        acc.add_radio_kid(widget)
                    elif first_widget:
                        acc.value = _read_value(widget, kind)
                        if kind in {WidgetKind.DROPDOWN, WidgetKind.OPTION_LIST}:
                            acc.options = list(choice_options(widget))
                except Exception as e:
                    logger.warning("Could not read value of field '%s': %s", name, e)
                    result.warnings.append(FieldWarning(name, f"value unreadable: {e}"))
    finally:
        doc.close()

    result.fields = [acc.build() for acc in accumulators.values()]
    logger.info("Extracted %d form fields (%d warnings)", len(result.fields), len(result.warnings))
    return result


def read_pdf_bytes(source: PdfSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, str):
        with open(source, "rb") as fp:
            return fp.read()
    return cast(BinaryIO, source).read()


__all__ = [
    "DocumentReadError",
    "PdfSource",
    "choice_display_map",
    "choice_options",
    "extract_fields",
    "is_button_on",
    "on_state",
    "open_document",
    "read_pdf_bytes",
    "widget_kind_for",
    "widget_name",
]
