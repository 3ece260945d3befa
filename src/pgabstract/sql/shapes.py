"""Structural classification of caller-supplied clause values.

Every value handed to a builder is classified once into one of the node
classes below, and each clause compiler then dispatches on the node type.
Literal SQL and JSON binds are expressed with wrapper objects, since a
plain ``str`` is always an identifier or a bind value:

- ``raw("count(*)")`` is literal SQL, emitted verbatim
- ``raw_binds("? AS foo", "test")`` is literal SQL carrying bind values
- ``{"-json": value}`` (or ``JSONValue(value)``) binds ``value`` as JSON
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from ..utils.exceptions import UnsupportedShapeError


@dataclass(frozen=True)
class Absent:
    """``None``: a missing value, ``NULL`` or ``DO NOTHING`` depending on the clause."""


@dataclass(frozen=True)
class PlainScalar:
    value: Any


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class LiteralSQL:
    sql: str


@dataclass(frozen=True)
class LiteralSQLWithBinds:
    sql: str
    binds: tuple[Any, ...] = ()


@dataclass(frozen=True)
class JSONValue:
    """A bind value the execution layer must encode as JSON."""

    value: Any


@dataclass(frozen=True)
class ValueList:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class AliasPair:
    name: str
    alias: str


@dataclass(frozen=True)
class AssignmentMap:
    pairs: tuple[tuple[str, Any], ...]


@dataclass(frozen=True)
class OperatorNode:
    """A single-key mapping whose key is a dash-prefixed operator, e.g. ``{"-desc": "a"}``."""

    op: str
    value: Any


ValueNode = Union[
    Absent,
    PlainScalar,
    Identifier,
    LiteralSQL,
    LiteralSQLWithBinds,
    JSONValue,
    ValueList,
    AliasPair,
    AssignmentMap,
    OperatorNode,
]


def raw(sql: str) -> LiteralSQL:
    """Wrap trusted SQL text so it is emitted verbatim."""
    return LiteralSQL(sql)


def raw_binds(sql: str, *binds: Any) -> LiteralSQLWithBinds:
    """Wrap trusted SQL text together with the values for its ``?`` placeholders."""
    return LiteralSQLWithBinds(sql, tuple(binds))


def is_operator_key(key: object) -> bool:
    return isinstance(key, str) and len(key) > 1 and key.startswith("-")


def normalize_operator(key: str) -> str:
    return key.lstrip("-").strip().lower()


def classify(value: Any, clause: str = "value") -> ValueNode:
    """Determine the structural shape of ``value``.

    Args:
        value: Caller-supplied clause value
        clause: Name of the clause being compiled, used in error messages

    Returns:
        The node describing ``value``

    Raises:
        UnsupportedShapeError: If ``value`` is an unordered collection
    """
    if value is None:
        return Absent()
    if isinstance(value, (LiteralSQL, LiteralSQLWithBinds, JSONValue, OperatorNode)):
        return value
    if isinstance(value, (list, tuple)):
        return ValueList(tuple(value))
    if isinstance(value, Mapping):
        if len(value) == 1:
            key, inner = next(iter(value.items()))
            if is_operator_key(key):
                return OperatorNode(normalize_operator(key), inner)
        return AssignmentMap(tuple(value.items()))
    if isinstance(value, (set, frozenset)):
        raise unsupported(clause, value, "unordered collections have no stable bind order")
    return PlainScalar(value)


def unsupported(clause: str, value: Any, detail: str | None = None) -> UnsupportedShapeError:
    message = f"{clause} value of type {type(value).__name__} is not supported"
    if detail:
        message += f": {detail}"
    return UnsupportedShapeError(message, context={"clause": clause, "value": value})
