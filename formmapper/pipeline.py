"""High level orchestration: template ingestion and document generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .classifier import FieldClassifier
from .filler import fill_document
from .models import FieldDescriptor, FieldWarning, FillResult, TemplateKey
from .parser import DocumentReadError, extract_fields
from .resolver import resolve_all
from .settings import get_logger
from .store import MappingStore

logger = get_logger(__name__)


@dataclass
class IngestedTemplate:
    key: TemplateKey
    fields: List[FieldDescriptor] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    suggested: Dict[str, str] = field(default_factory=dict)
    warnings: List[FieldWarning] = field(default_factory=list)
    extraction_error: Optional[str] = None


def ingest_template(
    store: MappingStore,
    key: TemplateKey,
    pdf_bytes: bytes,
    classifier: Optional[FieldClassifier] = None,
    name: str = "",
    category: str = "CUSTOM",
) -> IngestedTemplate:
    """Extract a template's fields, register them and auto-suggest bindings.

    An unreadable document is registered with zero fields, which reads as
    Ready until someone reviews it by hand.
    """

    classifier = classifier or FieldClassifier()
    ingested = IngestedTemplate(key=key)
    try:
        extraction = extract_fields(pdf_bytes)
    except DocumentReadError as exc:
        logger.warning("Could not extract fields from %s: %s", key, exc)
        ingested.extraction_error = str(exc)
        store.register_template(key, [], name=name, category=category)
        return ingested

    ingested.fields = list(extraction.fields)
    ingested.warnings = list(extraction.warnings)
    ingested.labels = classifier.labels(extraction.fields)
    store.register_template(key, extraction.fields, name=name, category=category)
    ingested.suggested = store.apply_suggestions(key, classifier)
    return ingested


def generate_document(
    store: MappingStore,
    key: TemplateKey,
    pdf_bytes: bytes,
    context: Optional[Mapping[str, Any]],
    backend: Optional[str] = None,
    today: Optional[date] = None,
) -> FillResult:
    """Resolve a template's bindings against ``context`` and fill a fresh copy."""

    values = resolve_all(store.bound_mapping(key), context, today=today)
    logger.info("Generating %s with %d bound fields", key, len(values))
    return fill_document(pdf_bytes, values, backend=backend)


__all__ = ["IngestedTemplate", "generate_document", "ingest_template"]
