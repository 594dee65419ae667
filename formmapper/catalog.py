"""Closed catalog of binding expressions offered to operators.

Operators pick from this list instead of typing free-form paths, which keeps
the expression surface small and discoverable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .expressions import AGGREGATE_FUNCTIONS

SECTION_FIELDS: Dict[str, Tuple[str, ...]] = {
    "customer": (
        "name",
        "business_name",
        "email",
        "phone",
        "address",
        "city",
        "state",
        "zip",
        "account_number",
        "tax_id",
    ),
    "audit": (
        "audit_date",
        "building_type",
        "square_footage",
        "operating_hours",
        "annual_kwh_savings",
        "annual_cost_savings",
        "status",
    ),
    "quote": (
        "quote_number",
        "quote_date",
        "subtotal",
        "incentive_amount",
        "total",
        "status",
    ),
    "provider": (
        "provider_name",
        "program_name",
        "state",
        "contact_phone",
        "rate_per_kwh",
    ),
    "salesperson": (
        "name",
        "email",
        "phone",
        "license_number",
    ),
}

COLLECTION_FIELDS: Dict[str, Tuple[str, ...]] = {
    "audit_areas": (
        "area_name",
        "fixture_count",
        "existing_wattage",
        "proposed_wattage",
        "kwh_savings",
    ),
    "lines": (
        "description",
        "quantity",
        "unit_price",
        "line_total",
        "incentive",
    ),
}

_FUNCTION_LABELS = {
    "sum": "Total",
    "count": "Count",
    "avg": "Average",
    "min": "Minimum",
    "max": "Maximum",
    "join": "List of",
}


@dataclass(frozen=True)
class CatalogEntry:
    expression: str
    group: str
    label: str


def _humanize(token: str) -> str:
    return token.replace("_", " ").strip().title()


def build_catalog() -> List[CatalogEntry]:
    """Return every selectable expression, simple paths first."""

    entries: List[CatalogEntry] = [CatalogEntry("today", "Computed", "Today's Date")]
    for section, fields in SECTION_FIELDS.items():
        group = _humanize(section)
        for name in fields:
            entries.append(CatalogEntry(f"{section}.{name}", group, f"{group} {_humanize(name)}"))
    for collection, fields in COLLECTION_FIELDS.items():
        group = f"{_humanize(collection)} (aggregate)"
        for name in fields:
            for function in AGGREGATE_FUNCTIONS:
                label = f"{_FUNCTION_LABELS[function]} {_humanize(name)} ({_humanize(collection)})"
                entries.append(CatalogEntry(f"{collection}.{name}.{function}", group, label))
    return entries


def catalog_groups() -> Dict[str, List[CatalogEntry]]:
    grouped: Dict[str, List[CatalogEntry]] = {}
    for entry in build_catalog():
        grouped.setdefault(entry.group, []).append(entry)
    return grouped


def is_catalog_expression(expression: str) -> bool:
    return any(entry.expression == expression for entry in build_catalog())


__all__ = [
    "COLLECTION_FIELDS",
    "SECTION_FIELDS",
    "CatalogEntry",
    "build_catalog",
    "catalog_groups",
    "is_catalog_expression",
]
