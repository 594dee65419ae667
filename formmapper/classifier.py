"""Human-readable labels and binding suggestions for form fields.

Labels come from an ordered list of strategies. The first strategy that
returns a label wins; the generic prettifier always answers, so it goes last.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from .known_forms import DEFAULT_KNOWN_FORMS, KnownForm
from .models import FieldDescriptor
from .settings import get_logger

logger = get_logger(__name__)

FieldLike = Union[FieldDescriptor, str]

_CONTAINER_PREFIX = re.compile(r"^(?:(?:\w*[Ss]ubform|[Ff]orm\d*)\[\d+\]\.)?(?:[Pp]age\d+\[\d+\]\.)?")
_SEGMENT_INDEX = re.compile(r"\[\d+\](?=\.|$)")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[_.\-]+")
_WHITESPACE = re.compile(r"\s+")


def _field_names(fields: Iterable[FieldLike]) -> List[str]:
    return [f.name if isinstance(f, FieldDescriptor) else str(f) for f in fields]


def longest_suffix_match(name: str, table: Mapping[str, str]) -> Optional[str]:
    """Return the table key that ``name`` ends with, preferring the longest."""

    best: Optional[str] = None
    for key in table:
        if key and name.endswith(key) and (best is None or len(key) > len(best)):
            best = key
    return best


class LabelStrategy(Protocol):
    def label_for(self, field_name: str) -> Optional[str]:
        ...


class KnownFormLabels:
    """Suffix lookup against the label tables of known forms."""

    def __init__(self, forms: Sequence[KnownForm]) -> None:
        self._table: Dict[str, str] = {}
        for form in forms:
            self._table.update(form.labels)

    def label_for(self, field_name: str) -> Optional[str]:
        key = longest_suffix_match(field_name, self._table)
        return self._table[key] if key is not None else None


class GenericPrettifier:
    """Turn ``topmostSubform[0].Page1[0].ownerFirst_Name[0]`` into ``owner First Name``."""

    def label_for(self, field_name: str) -> Optional[str]:
        text = _CONTAINER_PREFIX.sub("", field_name, count=1)
        text = _SEGMENT_INDEX.sub("", text)
        text = _CAMEL_BOUNDARY.sub(" ", text)
        text = _SEPARATORS.sub(" ", text)
        text = _WHITESPACE.sub(" ", text).strip()
        return text or None


class FieldClassifier:
    """Labels fields and proposes bindings for recognised standardized forms."""

    def __init__(
        self,
        forms: Sequence[KnownForm] = DEFAULT_KNOWN_FORMS,
        strategies: Optional[Sequence[LabelStrategy]] = None,
    ) -> None:
        self.forms: Tuple[KnownForm, ...] = tuple(forms)
        if strategies is None:
            strategies = (KnownFormLabels(self.forms), GenericPrettifier())
        self.strategies: Tuple[LabelStrategy, ...] = tuple(strategies)

    def label(self, field_name: str) -> str:
        for strategy in self.strategies:
            result = strategy.label_for(field_name)
            if result:
                return result
        return field_name

    def labels(self, fields: Iterable[FieldLike]) -> Dict[str, str]:
        return {name: self.label(name) for name in _field_names(fields)}

    def detect_form(self, fields: Iterable[FieldLike]) -> Optional[KnownForm]:
        """Return the first known form whose markers are all present."""

        names = _field_names(fields)
        for form in self.forms:
            if form.markers and all(any(n.endswith(marker) for n in names) for marker in form.markers):
                return form
        return None

    def is_known_form(self, fields: Iterable[FieldLike]) -> bool:
        return self.detect_form(fields) is not None

    def suggest_mapping(
        self,
        fields: Iterable[FieldLike],
        existing: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """Propose bindings for a wholly unbound template of a known form.

        Returns an empty dict when any binding already exists or the fields do
        not match a known form. Unmatched fields are left out.
        """
        if existing and any(existing.values()):
            logger.debug("Template already has bindings; not suggesting")
            return {}
        names = _field_names(fields)
        form = self.detect_form(names)
        if form is None:
            return {}
        suggestions: Dict[str, str] = {}
        for name in names:
            key = longest_suffix_match(name, form.auto_map)
            if key is not None:
                suggestions[name] = form.auto_map[key]
        logger.info("Suggested %d bindings for %s", len(suggestions), form.name)
        return suggestions


__all__ = [
    "FieldClassifier",
    "GenericPrettifier",
    "KnownFormLabels",
    "LabelStrategy",
    "longest_suffix_match",
]
