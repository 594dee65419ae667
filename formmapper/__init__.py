"""formmapper package."""

from .catalog import CatalogEntry, build_catalog, catalog_groups, is_catalog_expression
from .classifier import FieldClassifier, GenericPrettifier, KnownFormLabels
from .completeness import completeness, template_completeness
from .expressions import parse_expression
from .filler import fill_document, fill_pdf
from .filler_pypdf import fill_pdf_acroform
from .known_forms import DEFAULT_KNOWN_FORMS, W9_FORM, KnownForm
from .models import (
	Completeness,
	CompletenessState,
	ExtractionResult,
	FieldDescriptor,
	FieldWarning,
	FillResult,
	Provenance,
	TemplateKey,
	WidgetKind,
)
from .parser import DocumentReadError, extract_fields
from .pipeline import generate_document, ingest_template
from .resolver import resolve, resolve_all
from .store import MappingStore, MappingStoreError, UnknownFieldError, UnknownTemplateError

__all__ = [
	"CatalogEntry",
	"Completeness",
	"CompletenessState",
	"DEFAULT_KNOWN_FORMS",
	"DocumentReadError",
	"ExtractionResult",
	"FieldClassifier",
	"FieldDescriptor",
	"FieldWarning",
	"FillResult",
	"GenericPrettifier",
	"KnownForm",
	"KnownFormLabels",
	"MappingStore",
	"MappingStoreError",
	"Provenance",
	"TemplateKey",
	"UnknownFieldError",
	"UnknownTemplateError",
	"W9_FORM",
	"WidgetKind",
	"build_catalog",
	"catalog_groups",
	"completeness",
	"extract_fields",
	"fill_document",
	"fill_pdf",
	"fill_pdf_acroform",
	"generate_document",
	"ingest_template",
	"is_catalog_expression",
	"parse_expression",
	"resolve",
	"resolve_all",
	"template_completeness",
]
