"""Pure functions deriving a template's binding completeness."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from .models import Completeness, CompletenessState


def completeness(mapped_count: int, total_count: int) -> Completeness:
    """Ready when there is nothing to map or everything is mapped, Pending when nothing is."""

    if total_count <= 0:
        return Completeness(CompletenessState.READY, mapped_count, total_count, 100)
    if mapped_count >= total_count:
        return Completeness(CompletenessState.READY, mapped_count, total_count, 100)
    if mapped_count <= 0:
        return Completeness(CompletenessState.PENDING, 0, total_count, 0)
    # half-up rounding; 199 of 200 reads 100% while still partial
    percent = int(100 * mapped_count / total_count + 0.5)
    return Completeness(CompletenessState.PARTIAL, mapped_count, total_count, percent)


def count_mapped(field_names: Iterable[str], bindings: Optional[Mapping[str, str]]) -> int:
    """Count fields with a non-empty binding; absent and empty are the same."""

    bindings = bindings or {}
    return sum(1 for name in field_names if bindings.get(name))


def template_completeness(field_names: Iterable[str], bindings: Optional[Mapping[str, str]]) -> Completeness:
    names = list(field_names)
    return completeness(count_mapped(names, bindings), len(names))


__all__ = ["completeness", "count_mapped", "template_completeness"]
