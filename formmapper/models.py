"""Data models for formmapper."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Tuple


class WidgetKind(str, Enum):
    """Enumeration of supported PDF form field widget kinds."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    OPTION_LIST = "option_list"
    RADIO_GROUP = "radio_group"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldDescriptor:
    """A fillable field as read from a template document."""

    name: str
    widget_kind: WidgetKind = WidgetKind.UNKNOWN
    current_value: str = ""
    options: Tuple[str, ...] = ()
    page: int = 0


@dataclass(frozen=True)
class FieldWarning:
    """A per-field problem that did not abort extraction or filling."""

    field_name: str
    message: str

    def __str__(self) -> str:
        return f"{self.field_name}: {self.message}"


@dataclass
class ExtractionResult:
    fields: List[FieldDescriptor] = field(default_factory=list)
    warnings: List[FieldWarning] = field(default_factory=list)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass
class FillResult:
    """Output of a fill pass: the new document plus what happened per field."""

    pdf_bytes: bytes
    filled: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[FieldWarning] = field(default_factory=list)


class Provenance(str, Enum):
    """Where a template came from. Source ids are only unique per provenance."""

    CUSTOM = "custom"
    UTILITY = "utility"


@dataclass(frozen=True)
class TemplateKey:
    provenance: Provenance
    source_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "provenance", Provenance(self.provenance))
        object.__setattr__(self, "source_id", str(self.source_id))

    def __str__(self) -> str:
        return f"{self.provenance.value}:{self.source_id}"

    @classmethod
    def parse(cls, raw: str) -> "TemplateKey":
        provenance, sep, source_id = raw.partition(":")
        if not sep or not source_id:
            raise ValueError(f"Invalid template key: {raw!r}")
        return cls(Provenance(provenance), source_id)


class CompletenessState(str, Enum):
    READY = "ready"
    PENDING = "pending"
    PARTIAL = "partial"


@dataclass(frozen=True)
class Completeness:
    """Derived binding status of one template."""

    state: CompletenessState
    mapped_count: int
    total_count: int
    percent: int

    @property
    def label(self) -> str:
        if self.state == CompletenessState.READY:
            return "Ready"
        if self.state == CompletenessState.PENDING:
            return "Pending"
        return f"{self.percent}%"

    @property
    def is_ready(self) -> bool:
        return self.state == CompletenessState.READY
