"""Binding expression grammar.

A binding expression connects a form field to business data. Three shapes
are recognised:

* computed tokens such as ``today``
* aggregate paths ``collection.field.fn`` with ``fn`` one of
  ``sum``, ``count``, ``avg``, ``min``, ``max``, ``join``
* simple dotted paths ``section.field``

Parsing never raises; anything else is still a simple path and simply fails
to resolve.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

AGGREGATE_FUNCTIONS: Tuple[str, ...] = ("sum", "count", "avg", "min", "max", "join")
COMPUTED_TOKENS: Tuple[str, ...] = ("today",)

_AGGREGATE_PATTERN = re.compile(r"^(\w+)\.(\w+)\.(sum|count|avg|min|max|join)$")


@dataclass(frozen=True)
class EmptyExpression:
    pass


@dataclass(frozen=True)
class ComputedToken:
    name: str


@dataclass(frozen=True)
class AggregatePath:
    collection: str
    field: str
    function: str


@dataclass(frozen=True)
class SimplePath:
    segments: Tuple[str, ...]


Expression = Union[EmptyExpression, ComputedToken, AggregatePath, SimplePath]


def parse_expression(text: object) -> Expression:
    if not isinstance(text, str) or not text:
        return EmptyExpression()
    if text in COMPUTED_TOKENS:
        return ComputedToken(text)
    match = _AGGREGATE_PATTERN.match(text)
    if match:
        collection, field_name, function = match.groups()
        return AggregatePath(collection, field_name, function)
    return SimplePath(tuple(text.split(".")))


__all__ = [
    "AGGREGATE_FUNCTIONS",
    "COMPUTED_TOKENS",
    "AggregatePath",
    "ComputedToken",
    "EmptyExpression",
    "Expression",
    "SimplePath",
    "parse_expression",
]
