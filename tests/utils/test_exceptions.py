"""Tests for exception hierarchy."""

from __future__ import annotations

from pgabstract.utils.exceptions import (
    CompilationError,
    DisallowedForValueError,
    MalformedAliasError,
    MalformedConflictSpecError,
    MalformedJoinError,
    PgAbstractError,
    UnsupportedShapeError,
)


def test_exception_hierarchy():
    """Test that all clause errors are compilation errors."""
    assert issubclass(CompilationError, PgAbstractError)
    for error in (
        UnsupportedShapeError,
        MalformedAliasError,
        MalformedJoinError,
        MalformedConflictSpecError,
        DisallowedForValueError,
    ):
        assert issubclass(error, CompilationError)


def test_default_suggestions():
    """Test that errors describe the accepted form."""
    assert "raw()" in str(UnsupportedShapeError("bad"))
    assert "[name, alias]" in str(MalformedAliasError("bad"))
    assert "[target, {column: value}]" in str(MalformedConflictSpecError("bad"))
    assert "raw('update skip locked')" in str(DisallowedForValueError("bad"))


def test_join_suggestion_depends_on_message():
    """Test the join suggestion for unqualified keys."""
    assert "carry their table name" in str(MalformedJoinError("key must be qualified"))
    assert "[kind, table, fk, pk, ...]" in str(MalformedJoinError("too short"))


def test_context_is_rendered():
    """Test that context values appear in the message."""
    error = DisallowedForValueError("nope", context={"clause": "for", "value": "share"})
    assert error.context == {"clause": "for", "value": "share"}
    assert "clause='for'" in str(error)
    assert "value='share'" in str(error)


def test_explicit_suggestion_wins():
    """Test that an explicit suggestion replaces the default."""
    error = MalformedAliasError("bad", suggestion="use a pair")
    assert str(error) == "bad\n\nSuggestion: use a pair"
