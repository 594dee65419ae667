"""Streamlit page for mapping template fields to business data and generating filled PDFs."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import streamlit as st
from dotenv import load_dotenv

from formmapper import (
    FieldClassifier,
    MappingStore,
    Provenance,
    TemplateKey,
    build_catalog,
    generate_document,
    ingest_template,
)
from formmapper.models import CompletenessState

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

CLASSIFIER = FieldClassifier()
CATALOG = build_catalog()
_UNBOUND_OPTION = ""
_CATALOG_LABELS = {entry.expression: f"{entry.group}: {entry.label}" for entry in CATALOG}
_STATUS_ICONS = {
    CompletenessState.READY: "🟢",
    CompletenessState.PENDING: "⚪",
    CompletenessState.PARTIAL: "🟠",
}
_SAMPLE_CONTEXT = {
    "customer": {"name": "Acme Lighting LLC", "address": "100 Main St", "city": "Phoenix", "state": "AZ"},
    "quote": {"quote_number": "Q-1042", "total": 1250},
    "lines": [
        {"description": "LED troffer", "quantity": 2, "line_total": 50},
        {"description": "LED high bay", "quantity": 3, "line_total": 75},
    ],
}


def _init_session_state() -> None:
    defaults = {
        "store": MappingStore(),
        "template_pdfs": {},
        "ingested": {},
        "active_template": None,
        "filled_pdf_bytes": None,
        "filled_pdf_name": None,
        "fill_warnings": [],
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _store() -> MappingStore:
    return st.session_state.store


def _format_expression(expression: str) -> str:
    if expression == _UNBOUND_OPTION:
        return "(unbound)"
    return _CATALOG_LABELS.get(expression, expression)


def _build_output_name(template_name: Optional[str]) -> str:
    stem = Path(template_name or "filled_form").stem
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{stem}_filled_{timestamp}.pdf"


def _render_upload() -> None:
    st.sidebar.header("Add template")
    uploaded = st.sidebar.file_uploader("Fillable PDF", type=["pdf"])
    provenance = st.sidebar.selectbox(
        "Source",
        options=list(Provenance),
        format_func=lambda p: "Custom upload" if p == Provenance.CUSTOM else "Utility program form",
    )
    source_id = st.sidebar.text_input("Template id", value=str(len(st.session_state.template_pdfs) + 1))
    category = st.sidebar.selectbox("Category", ["CUSTOM", "CONTRACT", "APPLICATION", "TAX", "PERMIT", "PROPOSAL"])
    if uploaded is None or not st.sidebar.button("Add template", type="primary"):
        return

    key = TemplateKey(provenance, source_id.strip() or "1")
    pdf_bytes = uploaded.getvalue()
    ingested = ingest_template(
        _store(), key, pdf_bytes, classifier=CLASSIFIER, name=Path(uploaded.name).stem, category=category
    )
    st.session_state.template_pdfs[key] = pdf_bytes
    st.session_state.ingested[key] = ingested
    st.session_state.active_template = key
    if ingested.extraction_error:
        st.sidebar.warning(f"No fields could be read: {ingested.extraction_error}")
    else:
        st.sidebar.success(
            f"Added '{uploaded.name}' with {len(ingested.fields)} fields"
            + (f" ({len(ingested.suggested)} bindings suggested)" if ingested.suggested else "")
        )


def _render_library() -> None:
    store = _store()
    summary = store.summary()
    cols = st.columns(4)
    cols[0].metric("Total forms", summary["total"])
    cols[1].metric("Ready", summary["ready"])
    cols[2].metric("Partially mapped", summary["partial"])
    cols[3].metric("Packages", summary["packages"])

    records = store.templates()
    if not records:
        st.info("Upload a fillable PDF in the sidebar to get started.")
        return
    for record in records:
        status = store.get_completeness(record.key)
        label = f"{_STATUS_ICONS[status.state]} {record.name or record.key} · {record.category} · {status.label}"
        if st.button(label, key=f"open_{record.key}"):
            st.session_state.active_template = record.key


def _render_mapping_editor(key: TemplateKey) -> None:
    store = _store()
    record = store.get_template(key)
    ingested = st.session_state.ingested.get(key)
    status = store.get_completeness(key)
    st.subheader(f"{record.name or key} · {status.label}")
    st.progress(status.percent / 100 if record.field_names else 1.0)
    st.caption(f"{status.mapped_count} of {status.total_count} fields bound")

    if not record.field_names:
        st.info("This template has no fillable fields.")
        return

    options = [_UNBOUND_OPTION] + [entry.expression for entry in CATALOG]
    descriptors = {f.name: f for f in (ingested.fields if ingested else [])}
    for field_name in record.field_names:
        current = store.get_binding(key, field_name)
        field_options = options if current in options else options + [current]
        descriptor = descriptors.get(field_name)
        kind = descriptor.widget_kind.value if descriptor else "unknown"
        selected = st.selectbox(
            f"{CLASSIFIER.label(field_name)} ({kind})",
            options=field_options,
            index=field_options.index(current),
            format_func=_format_expression,
            key=f"bind_{key}_{field_name}",
            help=field_name,
        )
        if selected != current:
            store.set_binding(key, field_name, selected)


def _render_generate(key: TemplateKey) -> None:
    st.subheader("Generate document")
    raw_context = st.text_area("Data context (JSON)", value=json.dumps(_SAMPLE_CONTEXT, indent=2), height=220)
    if st.button("Generate filled PDF", type="primary"):
        try:
            context: Dict[str, Any] = json.loads(raw_context or "{}")
        except json.JSONDecodeError as exc:
            st.error(f"Invalid JSON: {exc}")
            return
        result = generate_document(_store(), key, st.session_state.template_pdfs[key], context)
        record = _store().get_template(key)
        st.session_state.filled_pdf_bytes = result.pdf_bytes
        st.session_state.filled_pdf_name = _build_output_name(record.name)
        st.session_state.fill_warnings = [str(w) for w in result.warnings]
        st.success(f"Filled {len(result.filled)} fields")

    for warning in st.session_state.fill_warnings:
        st.warning(warning)
    if st.session_state.filled_pdf_bytes:
        st.download_button(
            "Download filled PDF",
            data=st.session_state.filled_pdf_bytes,
            file_name=st.session_state.filled_pdf_name or "filled_form.pdf",
            mime="application/pdf",
        )


def _render_packages() -> None:
    store = _store()
    records = store.templates()
    category = st.text_input("Service type", value="Lighting retrofit")
    if not category:
        return
    current = store.packages.package_templates(category)
    chosen = st.multiselect(
        "Templates in this package",
        options=[r.key for r in records],
        default=[k for k in current if store.has_template(k)],
        format_func=lambda k: store.get_template(k).name or str(k),
    )
    if st.button("Save package"):
        store.packages.set_package(category, chosen)
        st.success(f"Updated package for '{category}'")

    status = store.packages.package_status(category)
    for entry in status.entries:
        st.write(f"{_STATUS_ICONS[entry.completeness.state]} {entry.name or entry.key}: {entry.completeness.label}")
    if status.entries:
        st.write("All documents ready" if status.is_ready else "Some documents still need mapping")


def main() -> None:
    st.set_page_config(page_title="Form Mapper", page_icon="📄", layout="wide")
    _init_session_state()
    st.title("Document field mapping")
    _render_upload()

    library_tab, packages_tab = st.tabs(["Form Library", "Doc Packages"])
    with library_tab:
        _render_library()
        key = st.session_state.active_template
        if key is not None and _store().has_template(key):
            st.divider()
            _render_mapping_editor(key)
            st.divider()
            _render_generate(key)
    with packages_tab:
        _render_packages()


if __name__ == "__main__":
    main()
