"""Tests for value shape classification."""

from __future__ import annotations

import pytest

from pgabstract.sql.shapes import (
    Absent,
    AssignmentMap,
    JSONValue,
    LiteralSQL,
    LiteralSQLWithBinds,
    OperatorNode,
    PlainScalar,
    ValueList,
    classify,
    raw,
    raw_binds,
)
from pgabstract.utils.exceptions import UnsupportedShapeError


def test_classify_scalars():
    """Test that None and plain values are classified."""
    assert classify(None) == Absent()
    assert classify("foo") == PlainScalar("foo")
    assert classify(0) == PlainScalar(0)


def test_classify_literals():
    """Test that literal wrappers classify as themselves."""
    assert classify(raw("count(*)")) == LiteralSQL("count(*)")
    assert classify(raw_binds("? AS foo", "test")) == LiteralSQLWithBinds("? AS foo", ("test",))
    assert classify(raw_binds("now()")) == LiteralSQLWithBinds("now()", ())
    assert classify(JSONValue({"a": 1})) == JSONValue({"a": 1})


def test_classify_sequences():
    """Test that lists and tuples become value lists."""
    assert classify(["a", "b"]) == ValueList(("a", "b"))
    assert classify(("a",)) == ValueList(("a",))


def test_classify_mappings():
    """Test mappings and single-key operator mappings."""
    assert classify({"a": 1, "b": 2}) == AssignmentMap((("a", 1), ("b", 2)))
    assert classify({"a": 1}) == AssignmentMap((("a", 1),))
    assert classify({"-JSON": [1, 2]}) == OperatorNode("json", [1, 2])
    assert classify({"-desc": "foo"}) == OperatorNode("desc", "foo")


def test_classify_rejects_sets():
    """Test that unordered collections are rejected with the clause name."""
    with pytest.raises(UnsupportedShapeError, match="group_by value of type set"):
        classify({"a", "b"}, "group_by")
