"""In-memory store for template field bindings and workflow packages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .classifier import FieldClassifier
from .completeness import template_completeness
from .models import Completeness, CompletenessState, FieldDescriptor, TemplateKey
from .settings import get_logger

logger = get_logger(__name__)

FieldLike = Union[FieldDescriptor, str]


class MappingStoreError(Exception):
    """Base exception for mapping store errors."""
    pass


class UnknownTemplateError(MappingStoreError, KeyError):
    """No template is registered under the given key."""
    pass


class UnknownFieldError(MappingStoreError, KeyError):
    """The template has no field with the given name."""
    pass


@dataclass
class TemplateRecord:
    key: TemplateKey
    name: str = ""
    category: str = "CUSTOM"
    field_names: Tuple[str, ...] = ()
    bindings: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PackageEntry:
    key: TemplateKey
    name: str
    completeness: Completeness


@dataclass(frozen=True)
class PackageStatus:
    category: str
    entries: Tuple[PackageEntry, ...]

    @property
    def is_ready(self) -> bool:
        """A package is ready when it has templates and every one of them is Ready."""
        return bool(self.entries) and all(e.completeness.is_ready for e in self.entries)


def _names(fields: Iterable[FieldLike]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for f in fields:
        seen[f.name if isinstance(f, FieldDescriptor) else str(f)] = None
    return tuple(seen)


class MappingStore:
    """Holds ``field name -> binding expression`` per template.

    Templates are keyed by ``TemplateKey`` so that operator uploads and
    externally supplied forms with the same numeric id never collide.
    Completeness is derived on every read.
    """

    def __init__(self) -> None:
        self._templates: Dict[TemplateKey, TemplateRecord] = {}
        self.packages = PackageRegistry(self)

    def register_template(
        self,
        key: TemplateKey,
        fields: Iterable[FieldLike],
        name: str = "",
        category: str = "CUSTOM",
    ) -> TemplateRecord:
        """Register a template, or refresh its field list after re-extraction.

        New templates start wholly unbound. On refresh, bindings are kept even
        for fields that disappeared; they simply stop counting.

        Args:
            key: Provenance-qualified template key.
            fields: Field descriptors or names discovered at extraction.
            name: Display name.
            category: Form category, e.g. ``CONTRACT`` or ``TAX``.

        Returns:
            The stored template record.
        """
        field_names = _names(fields)
        record = self._templates.get(key)
        if record is None:
            record = TemplateRecord(key=key, name=name, category=category, field_names=field_names)
            self._templates[key] = record
            logger.info("Registered template %s with %d fields", key, len(field_names))
        else:
            record.field_names = field_names
            if name:
                record.name = name
            if category:
                record.category = category
            logger.info("Refreshed template %s: %d fields", key, len(field_names))
        return record

    def get_template(self, key: TemplateKey) -> TemplateRecord:
        try:
            return self._templates[key]
        except KeyError:
            raise UnknownTemplateError(str(key)) from None

    def has_template(self, key: TemplateKey) -> bool:
        return key in self._templates

    def set_binding(self, key: TemplateKey, field_name: str, path: Optional[str]) -> None:
        """Bind a field to a data path; an empty path clears the binding.

        Raises:
            UnknownTemplateError: The template is not registered.
            UnknownFieldError: The template has no such field.
        """
        record = self.get_template(key)
        if field_name not in record.field_names and field_name not in record.bindings:
            raise UnknownFieldError(f"{key} has no field {field_name!r}")
        if path:
            record.bindings[field_name] = path
            logger.debug("Bound %s[%s] -> %s", key, field_name, path)
        else:
            record.bindings.pop(field_name, None)
            logger.debug("Cleared binding %s[%s]", key, field_name)

    def clear_binding(self, key: TemplateKey, field_name: str) -> None:
        self.set_binding(key, field_name, "")

    def get_binding(self, key: TemplateKey, field_name: str) -> str:
        return self.get_template(key).bindings.get(field_name, "")

    def get_bindings(self, key: TemplateKey) -> Dict[str, str]:
        """Return one entry per current field, ``""`` meaning unbound."""

        record = self.get_template(key)
        return {name: record.bindings.get(name, "") for name in record.field_names}

    def bound_mapping(self, key: TemplateKey) -> Dict[str, str]:
        """Non-empty bindings of the current fields only."""

        return {name: path for name, path in self.get_bindings(key).items() if path}

    def get_completeness(self, key: TemplateKey) -> Completeness:
        record = self.get_template(key)
        return template_completeness(record.field_names, record.bindings)

    def apply_suggestions(
        self,
        key: TemplateKey,
        classifier: FieldClassifier,
        fields: Optional[Iterable[FieldLike]] = None,
    ) -> Dict[str, str]:
        """Store classifier suggestions for a wholly unbound template.

        Returns the bindings that were applied; nothing is applied when the
        template already has any binding.
        """
        record = self.get_template(key)
        names = _names(fields) if fields is not None else record.field_names
        suggestions = classifier.suggest_mapping(names, existing=record.bindings)
        for field_name, path in suggestions.items():
            if field_name in record.field_names and not record.bindings.get(field_name):
                record.bindings[field_name] = path
        return suggestions

    def delete_template(self, key: TemplateKey) -> None:
        """Remove a template, its bindings and its package memberships."""

        if key not in self._templates:
            raise UnknownTemplateError(str(key))
        del self._templates[key]
        self.packages.discard_template(key)
        logger.info("Deleted template %s", key)

    def templates(self, state: Optional[CompletenessState] = None) -> List[TemplateRecord]:
        records = list(self._templates.values())
        if state is None:
            return records
        return [r for r in records if self.get_completeness(r.key).state == state]

    def summary(self) -> Dict[str, int]:
        counts = {"total": 0, "ready": 0, "pending": 0, "partial": 0}
        for record in self._templates.values():
            counts["total"] += 1
            counts[self.get_completeness(record.key).state.value] += 1
        counts["packages"] = len(self.packages.categories())
        return counts


class PackageRegistry:
    """Named workflow categories, each an ordered list of templates."""

    def __init__(self, store: MappingStore) -> None:
        self._store = store
        self._packages: Dict[str, List[TemplateKey]] = {}

    def set_package(self, category: str, keys: Sequence[TemplateKey]) -> List[TemplateKey]:
        """Replace a package's membership, keeping order and dropping duplicates.

        Keys of unregistered templates are skipped with a warning. An empty
        selection removes the package.
        """
        members: List[TemplateKey] = []
        for key in keys:
            if key in members:
                continue
            if not self._store.has_template(key):
                logger.warning("Skipping unknown template %s in package '%s'", key, category)
                continue
            members.append(key)
        if members:
            self._packages[category] = members
        else:
            self._packages.pop(category, None)
        return list(members)

    def package_templates(self, category: str) -> List[TemplateKey]:
        return list(self._packages.get(category, []))

    def package_status(self, category: str) -> PackageStatus:
        entries = []
        for key in self._packages.get(category, []):
            record = self._store.get_template(key)
            entries.append(PackageEntry(key, record.name, self._store.get_completeness(key)))
        return PackageStatus(category, tuple(entries))

    def categories(self) -> List[str]:
        return list(self._packages)

    def packages_for(self, key: TemplateKey) -> List[str]:
        return [category for category, members in self._packages.items() if key in members]

    def discard_template(self, key: TemplateKey) -> None:
        for category in list(self._packages):
            members = [k for k in self._packages[category] if k != key]
            if members:
                self._packages[category] = members
            else:
                del self._packages[category]

    def as_dict(self) -> Mapping[str, List[str]]:
        return {category: [str(k) for k in members] for category, members in self._packages.items()}


__all__ = [
    "MappingStore",
    "MappingStoreError",
    "PackageEntry",
    "PackageRegistry",
    "PackageStatus",
    "TemplateRecord",
    "UnknownFieldError",
    "UnknownTemplateError",
]
