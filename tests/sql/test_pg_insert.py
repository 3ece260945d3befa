"""Tests for INSERT ... ON CONFLICT and the JSON marker."""

from __future__ import annotations

import pytest

from pgabstract import JSONValue, PgAbstract, raw, raw_binds
from pgabstract.utils.exceptions import MalformedConflictSpecError, UnsupportedShapeError


def test_on_conflict_do_nothing(abstract):
    """Test that None renders DO NOTHING."""
    assert abstract.insert("t", {"a": "b"}, {"on_conflict": None}) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT DO NOTHING',
        ["b"],
    )


def test_on_conflict_do_update(abstract):
    """Test target columns and SET binds follow the insert binds."""
    assert abstract.insert("t", {"a": "b"}, {"on_conflict": [["a"], {"a": "c"}]}) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT ("a") DO UPDATE SET "a" = ?',
        ["b", "c"],
    )


def test_on_conflict_multiple_target_columns(abstract):
    """Test a composite conflict target."""
    assert abstract.insert("t", {"a": "c", "b": "d"}, {"on_conflict": [["a", "b"], {"a": "e"}]}) == (
        'INSERT INTO "t" ("a", "b") VALUES (?, ?) ON CONFLICT ("a", "b") DO UPDATE SET "a" = ?',
        ["c", "d", "e"],
    )


def test_on_conflict_single_target_is_normalized(abstract):
    """Test that a bare column name is treated as a one element target."""
    assert abstract.insert("t", {"a": "b"}, {"on_conflict": ("a", {"a": raw("excluded.a")})}) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT ("a") DO UPDATE SET "a" = excluded.a',
        ["b"],
    )


def test_on_conflict_literal(abstract):
    """Test literal SQL with and without binds."""
    assert abstract.insert("t", {"a": "b"}, {"on_conflict": raw("do nothing")}) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT do nothing',
        ["b"],
    )
    assert abstract.insert(
        "t", {"a": "b"}, {"on_conflict": raw_binds("(a) do update set a = ?", "c")}
    ) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT (a) do update set a = ?',
        ["b", "c"],
    )


def test_on_conflict_requires_set_mapping(abstract):
    """Test that the second element must be a mapping."""
    with pytest.raises(MalformedConflictSpecError, match=r"\[target, \{set\}\]"):
        abstract.insert("t", {"a": "b"}, {"on_conflict": [["a"], "c"]})
    with pytest.raises(MalformedConflictSpecError):
        abstract.insert("t", {"a": "b"}, {"on_conflict": [["a"]]})


def test_on_conflict_rejects_plain_scalar(abstract):
    """Test that a plain string is not accepted as a conflict spec."""
    with pytest.raises(UnsupportedShapeError, match="on_conflict"):
        abstract.insert("t", {"a": "b"}, {"on_conflict": "do nothing"})


def test_returning_only_when_requested(abstract):
    """Test that RETURNING never appears by default, with or without a conflict spec."""
    assert abstract.insert("t", {"a": "b"}) == ('INSERT INTO "t" ("a") VALUES (?)', ["b"])
    sql, _ = abstract.insert("t", {"a": "b"}, {"on_conflict": [["a"], {"a": "c"}]})
    assert "RETURNING" not in sql
    sql, _ = abstract.insert("t", {"a": "b"}, {"on_conflict": None, "returning": False})
    assert "RETURNING" not in sql


def test_on_conflict_with_returning(abstract):
    """Test that an explicit returning request follows the conflict clause."""
    assert abstract.insert("t", {"a": "b"}, {"on_conflict": None, "returning": "*"}) == (
        'INSERT INTO "t" ("a") VALUES (?) ON CONFLICT DO NOTHING RETURNING *',
        ["b"],
    )
    assert abstract.insert("t", {"a": "b"}, {"returning": ["id"]}) == (
        'INSERT INTO "t" ("a") VALUES (?) RETURNING "id"',
        ["b"],
    )


def test_insert_does_not_mutate_options(abstract):
    """Test that caller options are left untouched."""
    options = {"on_conflict": None}
    abstract.insert("t", {"a": "b"}, options)
    assert options == {"on_conflict": None}


def test_json_marker(abstract):
    """Test that -json values are bound as JSONValue."""
    assert abstract.insert("t", {"a": {"-json": {"b": 1}}}) == (
        'INSERT INTO "t" ("a") VALUES (?)',
        [JSONValue({"b": 1})],
    )
    assert abstract.update("t", {"a": {"-json": [1, 2]}}, {"id": 1}) == (
        'UPDATE "t" SET "a" = ? WHERE "id" = ?',
        [JSONValue([1, 2]), 1],
    )
    assert abstract.select("t", "*", {"a": {"-json": {"b": 2}}}) == (
        'SELECT * FROM "t" WHERE "a" = ?',
        [JSONValue({"b": 2})],
    )


def test_json_marker_in_conflict_set(abstract):
    """Test the JSON marker inside a DO UPDATE SET list."""
    sql, binds = abstract.insert(
        "t", {"a": 1, "doc": {"-json": {}}}, {"on_conflict": ["a", {"doc": {"-json": {"x": 1}}}]}
    )
    assert sql == (
        'INSERT INTO "t" ("a", "doc") VALUES (?, ?) ON CONFLICT ("a") DO UPDATE SET "doc" = ?'
    )
    assert binds == [1, JSONValue({}), JSONValue({"x": 1})]


def test_unary_ops_are_fixed_per_instance():
    """Test that builders share no operator table."""
    first, second = PgAbstract(), PgAbstract()
    assert first.unary_ops == second.unary_ops
    assert isinstance(first.unary_ops, tuple)
    assert len(first.unary_ops) == 1
