"""Alternative filler using pypdf to write AcroForm fields by name.

Same contract as ``filler.fill_pdf``; selected with
``FORMMAPPER_FILL_BACKEND=pypdf``.
"""
from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, List, Mapping, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.constants import FieldDictionaryAttributes as FA

from .filler import FieldWriteError, is_truthy, match_choice, normalize_values
from .models import FieldWarning, FillResult, WidgetKind
from .parser import DocumentReadError, PdfSource, read_pdf_bytes
from .settings import get_logger

logger = get_logger(__name__)

_OFF = "/Off"


def _open_reader(source: PdfSource) -> PdfReader:
    try:
        reader = PdfReader(BytesIO(read_pdf_bytes(source)))
        if reader.is_encrypted and not reader.decrypt(""):
            raise DocumentReadError("PDF document is password protected")
        return reader
    except DocumentReadError:
        raise
    except Exception as exc:
        raise DocumentReadError(f"Unreadable PDF document: {exc}") from exc


def field_kind(field: Mapping[str, Any]) -> WidgetKind:
    """Classify a pypdf field dictionary by /FT and its /Ff flag bits."""

    field_type = field.get(FA.FT)
    flags = int(field.get(FA.Ff, 0) or 0)
    if field_type == "/Tx":
        return WidgetKind.TEXT
    if field_type == "/Btn":
        if flags & (1 << 16):
            return WidgetKind.UNKNOWN
        if flags & (1 << 15):
            return WidgetKind.RADIO_GROUP
        return WidgetKind.CHECKBOX
    if field_type == "/Ch":
        return WidgetKind.DROPDOWN if flags & (1 << 17) else WidgetKind.OPTION_LIST
    return WidgetKind.UNKNOWN


def _button_states(field: Mapping[str, Any]) -> List[str]:
    return [str(s) for s in field.get("/_States_", []) or [] if str(s) != _OFF]


def _choice_options(field: Mapping[str, Any]) -> Tuple[Tuple[str, ...], Dict[str, str]]:
    options: List[str] = []
    display: Dict[str, str] = {}
    raw = field.get("/Opt") or field.get("/_States_") or []
    raw = raw.get_object() if hasattr(raw, "get_object") else raw
    for opt in raw:
        opt = opt.get_object() if hasattr(opt, "get_object") else opt
        if isinstance(opt, (list, tuple)) and len(opt) >= 2:
            options.append(str(opt[0]))
            display[str(opt[1])] = str(opt[0])
        elif isinstance(opt, (list, tuple)) and opt:
            options.append(str(opt[0]))
        else:
            options.append(str(opt))
    return tuple(options), display


def _target_value(field: Mapping[str, Any], kind: WidgetKind, value: str) -> str:
    """Translate a resolved value into what pypdf writes for this kind."""

    if kind == WidgetKind.TEXT:
        return value
    if kind == WidgetKind.CHECKBOX:
        if not is_truthy(value):
            return _OFF
        states = _button_states(field)
        return states[0] if states else "/Yes"
    if kind == WidgetKind.RADIO_GROUP:
        states = _button_states(field)
        wanted = value if value.startswith("/") else f"/{value}"
        if wanted not in states:
            raise FieldWriteError(f"'{value}' is not one of the options {[s.lstrip('/') for s in states]}")
        return wanted
    if kind in {WidgetKind.DROPDOWN, WidgetKind.OPTION_LIST}:
        options, display = _choice_options(field)
        return match_choice(value, options, display)
    raise FieldWriteError(f"unsupported widget kind '{kind.value}'")


def fill_pdf_acroform(source: PdfSource, values: Mapping[str, Any]) -> FillResult:
    """Fill form fields using pypdf and return the new document bytes."""

    to_write, skipped = normalize_values(values)
    reader = _open_reader(source)
    writer = PdfWriter(clone_from=reader)
    fields = reader.get_fields() or {}
    logger.debug("Loaded PDF with %d pages and %d fields for AcroForm filling", len(reader.pages), len(fields))
    result = FillResult(pdf_bytes=b"", skipped=skipped)

    for name, value in to_write.items():
        field = fields.get(name)
        if field is None:
            logger.debug("No field named '%s' in this document; skipping", name)
            result.skipped.append(name)
            continue
        kind = field_kind(field)
        try:
            target = _target_value(field, kind, value)
            for page in writer.pages:
                if "/Annots" not in page:
                    continue
                writer.update_page_form_field_values(page, {name: target}, auto_regenerate=False)
            result.filled.append(name)
            logger.debug("Set %s field '%s' to '%s'", kind.value, name, target)
        except Exception as e:
            logger.warning("Could not fill field '%s': %s", name, e)
            result.warnings.append(FieldWarning(name, str(e)))

    # Prompt viewers to regenerate appearances
    try:
        writer.set_need_appearances_writer(True)
    except Exception as e:
        logger.debug("Could not set NeedAppearances: %s", e)

    buf = BytesIO()
    writer.write(buf)
    result.pdf_bytes = buf.getvalue()
    logger.info("pypdf fill complete: %d filled, %d warnings", len(result.filled), len(result.warnings))
    return result


__all__ = ["field_kind", "fill_pdf_acroform"]
